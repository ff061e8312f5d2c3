# salonbook/core.py

import re
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from .config import SALON_TIMEZONE
from .errors import ValidationError

MINUTES_PER_DAY = 24 * 60
HHMM_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")


def overlaps(a_start, a_end, b_start, b_end) -> bool:
    """True if [a_start, a_end) intersects [b_start, b_end)."""
    return a_start < b_end and b_start < a_end


def parse_hhmm(value: str) -> time:
    # strict HH:MM, 24-hour; seconds are tolerated only when zero ("10:00:00")
    if isinstance(value, time):
        return value
    if not isinstance(value, str) or not HHMM_RE.match(value):
        raise ValidationError(f"Invalid time {value!r}, expected HH:MM")
    try:
        parsed = datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError):
        try:
            parsed = datetime.strptime(value, "%H:%M:%S").time()
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid time {value!r}, expected HH:MM")
        if parsed.second:
            raise ValidationError(f"Invalid time {value!r}, expected HH:MM")
    return parsed


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def parse_iso_date(value: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date {value!r}, expected YYYY-MM-DD")


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    if not (0 <= minutes < MINUTES_PER_DAY):
        raise ValidationError("Time must fall within a single day")
    return time(minutes // 60, minutes % 60)


def day_of_week(on_date: date) -> int:
    # 0 = Sunday ... 6 = Saturday
    return on_date.isoweekday() % 7


def salon_now() -> datetime:
    """Current wall-clock time in the salon, as a naive datetime."""
    return datetime.now(ZoneInfo(SALON_TIMEZONE)).replace(tzinfo=None)
