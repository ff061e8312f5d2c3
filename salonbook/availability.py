# salonbook/availability.py
"""Open booking windows for one staff member on one day.

``compute_available_slots`` is the pure part: it sees only a snapshot of the
working windows and the busy intervals and returns the bookable
``[start, start + duration)`` windows on the slot grid. ``get_available_slots``
loads that snapshot from the stores. Results are never cached: reservations
change concurrently, so every query (and every booking) recomputes.
"""

import logging
from datetime import date, time
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from sqlmodel import Session

from . import repository
from .config import SLOT_GRANULARITY_MINUTES
from .core import day_of_week, from_minutes, overlaps, salon_now, to_minutes
from .errors import NotFoundError, ValidationError
from .models import BLOCKING_STATUSES

logger = logging.getLogger(__name__)


class WorkingWindow(NamedTuple):
    start: time
    end: time


class Slot(NamedTuple):
    slot_start: time
    slot_end: time


def compute_available_slots(
    windows: Iterable[WorkingWindow],
    busy: Iterable[Tuple[time, time]],
    duration_minutes: int,
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    *,
    staff_active: bool = True,
    on_date: Optional[date] = None,
    today: Optional[date] = None,
    not_before: Optional[time] = None,
) -> List[Slot]:
    """Candidate starts step through each window at ``granularity_minutes``.

    A candidate survives if its whole interval fits inside the window and
    does not overlap any busy interval. Past dates yield nothing; on
    ``today`` the caller may pass ``not_before`` to drop starts already gone.
    """
    if duration_minutes <= 0:
        raise ValidationError("Service duration must be positive")
    if granularity_minutes <= 0:
        raise ValidationError("Slot granularity must be positive")

    if not staff_active:
        return []
    if on_date is not None and today is not None and on_date < today:
        return []

    busy_minutes = [(to_minutes(s), to_minutes(e)) for s, e in busy]
    earliest = to_minutes(not_before) if not_before is not None else None

    starts = set()
    for window in windows:
        window_start = to_minutes(window.start)
        window_end = to_minutes(window.end)

        candidate = window_start
        while candidate + duration_minutes <= window_end:
            candidate_end = candidate + duration_minutes
            if earliest is not None and candidate < earliest:
                candidate += granularity_minutes
                continue
            if any(overlaps(candidate, candidate_end, b_start, b_end) for b_start, b_end in busy_minutes):
                candidate += granularity_minutes
                continue
            starts.add(candidate)
            candidate += granularity_minutes

    return [Slot(from_minutes(s), from_minutes(s + duration_minutes)) for s in sorted(starts)]


def working_windows_for(session: Session, staff_id: int, on_date: date) -> List[WorkingWindow]:
    hours = repository.get_working_hours(session, staff_id, day_of_week(on_date))
    if hours is None or not hours.is_active:
        return []
    if hours.start_time >= hours.end_time:
        return []
    return [WorkingWindow(hours.start_time, hours.end_time)]


def busy_intervals_for(session: Session, staff_id: int, on_date: date) -> List[Tuple[time, time]]:
    reservations = repository.list_reservations(session, staff_id, on_date, BLOCKING_STATUSES)
    return [(r.start_time, r.end_time) for r in reservations]


def slots_for_staff(
    session: Session,
    staff_id: int,
    on_date: date,
    duration_minutes: int,
    *,
    staff_active: bool = True,
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    now=None,
) -> List[Slot]:
    """Load the snapshot for (staff, date) and run the calculator on it."""
    now = now or salon_now()
    today = now.date()
    return compute_available_slots(
        working_windows_for(session, staff_id, on_date),
        busy_intervals_for(session, staff_id, on_date),
        duration_minutes,
        granularity_minutes,
        staff_active=staff_active,
        on_date=on_date,
        today=today,
        not_before=now.time() if on_date == today else None,
    )


def get_available_slots(
    session: Session,
    staff_id: int,
    on_date: date,
    service_id: int,
    *,
    granularity_minutes: int = SLOT_GRANULARITY_MINUTES,
    now=None,
) -> List[Slot]:
    staff = repository.get_active_staff(session, staff_id)
    if staff is None:
        raise NotFoundError(f"Staff member {staff_id} not found")
    service = repository.get_service(session, service_id)
    if service is None:
        raise NotFoundError(f"Service {service_id} not found")

    if not service.is_active or service_id not in staff.assigned_service_ids:
        return []

    slots = slots_for_staff(
        session,
        staff_id,
        on_date,
        service.duration_minutes,
        staff_active=staff.is_active,
        granularity_minutes=granularity_minutes,
        now=now,
    )
    logger.debug("Staff %s on %s: %d open slots for service %s", staff_id, on_date, len(slots), service_id)
    return slots


def candidate_fits(slots: Sequence[Slot], start: time, end: time) -> bool:
    return Slot(start, end) in slots
