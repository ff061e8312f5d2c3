import random
from datetime import date, time

import pytest

from salonbook import repository
from salonbook.availability import Slot, WorkingWindow, compute_available_slots, get_available_slots
from salonbook.core import from_minutes, overlaps, to_minutes
from salonbook.errors import NotFoundError, ValidationError
from salonbook.models import Reservation, Staff

from conftest import MONDAY, NOW, TUESDAY

DAY = [WorkingWindow(time(9, 0), time(17, 0))]


def hhmm(slots):
    return [(s.slot_start.strftime("%H:%M"), s.slot_end.strftime("%H:%M")) for s in slots]


def test_basic_slot_generation():
    slots = compute_available_slots(DAY, [], duration_minutes=30, granularity_minutes=30)

    assert len(slots) == 16
    assert hhmm(slots)[0] == ("09:00", "09:30")
    assert hhmm(slots)[1] == ("09:30", "10:00")
    assert hhmm(slots)[-1] == ("16:30", "17:00")


def test_existing_reservation_blocks_its_slot():
    slots = compute_available_slots(DAY, [(time(10, 0), time(10, 30))], 30, 30)
    starts = [s.slot_start for s in slots]

    assert time(10, 0) not in starts
    assert time(9, 30) in starts
    assert time(10, 30) in starts
    assert len(slots) == 15


def test_fully_booked_day_is_empty():
    busy = [(from_minutes(m), from_minutes(m + 30)) for m in range(9 * 60, 17 * 60, 30)]
    assert compute_available_slots(DAY, busy, 30, 30) == []


def test_inactive_staff_gets_nothing():
    assert compute_available_slots(DAY, [], 30, 30, staff_active=False) == []


def test_zero_length_window_and_long_service():
    assert compute_available_slots([WorkingWindow(time(9, 0), time(9, 0))], [], 30, 15) == []
    assert compute_available_slots(DAY, [], duration_minutes=9 * 60, granularity_minutes=15) == []


def test_past_dates_yield_nothing():
    slots = compute_available_slots(DAY, [], 30, 30, on_date=date(2030, 1, 1), today=date(2030, 1, 2))
    assert slots == []


def test_not_before_drops_earlier_starts():
    slots = compute_available_slots(DAY, [], 30, 30, not_before=time(15, 10))
    assert hhmm(slots) == [("15:30", "16:00"), ("16:00", "16:30"), ("16:30", "17:00")]


def test_longer_service_steps_on_the_grid_and_never_overhangs():
    slots = compute_available_slots(DAY, [(time(12, 0), time(12, 30))], duration_minutes=90, granularity_minutes=15)
    starts = [s.slot_start for s in slots]

    assert starts[0] == time(9, 0)
    assert time(10, 30) in starts  # 10:30-12:00 touches the booking but does not overlap
    assert time(10, 45) not in starts
    assert time(12, 30) in starts
    assert starts[-1] == time(15, 30)
    assert all(s.slot_end <= time(17, 0) for s in slots)


def test_split_windows_are_walked_independently():
    windows = [WorkingWindow(time(13, 0), time(14, 0)), WorkingWindow(time(9, 0), time(10, 0))]
    slots = compute_available_slots(windows, [], 30, 30)
    assert hhmm(slots) == [("09:00", "09:30"), ("09:30", "10:00"), ("13:00", "13:30"), ("13:30", "14:00")]


def test_rejects_nonsense_durations():
    with pytest.raises(ValidationError):
        compute_available_slots(DAY, [], 0, 30)
    with pytest.raises(ValidationError):
        compute_available_slots(DAY, [], 30, 0)


def test_same_snapshot_same_answer():
    busy = [(time(11, 0), time(11, 45)), (time(14, 15), time(15, 0))]
    first = compute_available_slots(DAY, busy, 45, 15)
    assert first == compute_available_slots(DAY, list(reversed(busy)), 45, 15)


@pytest.mark.parametrize("seed", range(25))
def test_slots_fit_hours_and_avoid_bookings(seed):
    rng = random.Random(seed)
    open_at = rng.randrange(6 * 60, 12 * 60, 15)
    close_at = rng.randrange(open_at, 22 * 60, 15)
    window = WorkingWindow(from_minutes(open_at), from_minutes(close_at))

    busy = []
    for _ in range(rng.randint(0, 6)):
        start = rng.randrange(open_at, max(open_at + 1, close_at), 15)
        length = rng.choice([15, 30, 45, 60])
        busy.append((from_minutes(start), from_minutes(min(start + length, 23 * 60 + 59))))

    duration = rng.choice([15, 30, 45, 60, 90])
    granularity = rng.choice([15, 30])
    slots = compute_available_slots([window], busy, duration, granularity)

    for slot in slots:
        assert window.start <= slot.slot_start < slot.slot_end <= window.end
        assert to_minutes(slot.slot_end) - to_minutes(slot.slot_start) == duration
        assert (to_minutes(slot.slot_start) - open_at) % granularity == 0
        for b_start, b_end in busy:
            assert not overlaps(slot.slot_start, slot.slot_end, b_start, b_end)
    assert slots == sorted(slots)


# ---- store-backed ----

def test_get_available_slots_reads_the_database(session, salon):
    session.add(Reservation(
        customer_id=salon.alice, staff_id=salon.barber, service_id=salon.haircut,
        booking_date=MONDAY, start_time=time(10, 0), end_time=time(10, 30), created_by=salon.alice,
    ))
    session.add(Reservation(
        customer_id=salon.bob, staff_id=salon.barber, service_id=salon.haircut,
        booking_date=MONDAY, start_time=time(11, 0), end_time=time(11, 30), created_by=salon.bob,
        status="cancelled",
    ))
    session.commit()

    slots = get_available_slots(session, salon.barber, MONDAY, salon.haircut, granularity_minutes=30, now=NOW)
    starts = [s.slot_start for s in slots]

    assert time(10, 0) not in starts
    assert time(11, 0) in starts  # cancelled bookings free their slot
    assert len(slots) == 15


def test_get_available_slots_empty_cases(session, salon):
    # no working hours on Tuesday
    assert get_available_slots(session, salon.barber, TUESDAY, salon.haircut, now=NOW) == []
    # service not offered by this barber
    assert get_available_slots(session, salon.other_barber, MONDAY, salon.colour, now=NOW) == []
    # inactive service
    assert get_available_slots(session, salon.barber, MONDAY, salon.retired, now=NOW) == []
    # the past
    assert get_available_slots(session, salon.barber, date(2029, 12, 31), salon.haircut, now=NOW) == []


def test_get_available_slots_inactive_staff_or_hours(session, salon):
    staff = session.get(Staff, salon.barber)
    staff.is_active = False
    session.add(staff)
    session.commit()
    assert get_available_slots(session, salon.barber, MONDAY, salon.haircut, now=NOW) == []

    hours = repository.get_working_hours(session, salon.other_barber, 1)
    hours.is_active = False
    session.add(hours)
    session.commit()
    assert get_available_slots(session, salon.other_barber, MONDAY, salon.haircut, now=NOW) == []


def test_get_available_slots_unknown_ids(session, salon):
    with pytest.raises(NotFoundError):
        get_available_slots(session, 999, MONDAY, salon.haircut, now=NOW)
    with pytest.raises(NotFoundError):
        get_available_slots(session, salon.barber, MONDAY, 999, now=NOW)


def test_today_hides_started_slots(session, salon):
    now = NOW.replace(year=2030, month=1, day=7, hour=16, minute=5)
    slots = get_available_slots(session, salon.barber, MONDAY, salon.haircut, granularity_minutes=30, now=now)
    assert slots == [Slot(time(16, 30), time(17, 0))]
