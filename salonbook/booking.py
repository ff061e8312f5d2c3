# salonbook/booking.py
"""Booking transaction manager.

Commits reservations without double-booking and owns the reservation
lifecycle::

    (none) --create--> confirmed --cancel-----> cancelled   [terminal]
                       confirmed --complete---> completed   [terminal]
                       confirmed --no_show----> no_show     [terminal]

``create_reservation`` is a check-then-insert, so it runs under a lock keyed
by ``(staff_id, booking_date)``. Inside the lock the staff row is read
``FOR UPDATE`` (serializes writers across processes on PostgreSQL) and the
availability snapshot is rebuilt from the database, never trusted from the
client. The partial unique index on reservation start times is the backstop:
if it fires, the commit is reported as a lost race.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from . import repository
from .availability import candidate_fits, slots_for_staff
from .config import SLOT_GRANULARITY_MINUTES
from .core import day_of_week, overlaps, salon_now, to_minutes
from .errors import (
    Forbidden,
    InvalidInterval,
    InvalidTransition,
    NotFoundError,
    ReservationNotFound,
    ServiceInactive,
    SlotNoLongerAvailable,
    StaffInactive,
    StaffNotAssignedToService,
)
from .models import BLOCKING_STATUSES, Reservation
from .schemas import BookingRequest, ReservationStatus, UserRole

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = frozenset({
    ReservationStatus.completed,
    ReservationStatus.cancelled,
    ReservationStatus.no_show,
})

# who may move a confirmed reservation into each terminal state
TRANSITION_PERMISSIONS = {
    ReservationStatus.cancelled: frozenset({
        UserRole.admin, UserRole.barber, UserRole.receptionist, UserRole.customer,
    }),
    ReservationStatus.completed: frozenset({UserRole.admin, UserRole.barber, UserRole.receptionist}),
    ReservationStatus.no_show: frozenset({UserRole.admin, UserRole.barber, UserRole.receptionist}),
}


class KeyedLocks:
    """One ``threading.Lock`` per key, kept only while someone holds or waits on it."""

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, number of holders and waiters]
        self._locks: Dict[Hashable, list] = {}

    @contextmanager
    def hold(self, key: Hashable):
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


class BookingManager:
    def __init__(self, granularity_minutes: int = SLOT_GRANULARITY_MINUTES, clock=salon_now):
        self.granularity_minutes = granularity_minutes
        self.clock = clock
        self._slot_locks = KeyedLocks()
        self._reservation_locks = KeyedLocks()

    # ---- create ----

    def create_reservation(self, session: Session, request: BookingRequest) -> Reservation:
        start, end = request.start_time, request.end_time
        on_date = request.booking_date

        # 1) Well-formed interval, not in the past
        if start >= end:
            raise InvalidInterval("start_time must be before end_time")
        now = self.clock()
        if on_date < now.date() or (on_date == now.date() and start < now.time().replace(second=0, microsecond=0)):
            raise InvalidInterval("Cannot book an appointment in the past")

        # 2) Service and staff must exist, be active, and go together
        service = repository.get_service(session, request.service_id)
        if service is None:
            raise NotFoundError(f"Service {request.service_id} not found")
        if not service.is_active:
            raise ServiceInactive(f"Service '{service.name}' is no longer offered")

        staff = repository.get_active_staff(session, request.staff_id)
        if staff is None:
            raise NotFoundError(f"Staff member {request.staff_id} not found")
        if not staff.is_active:
            raise StaffInactive(f"Staff member {request.staff_id} is not taking bookings")
        if request.service_id not in staff.assigned_service_ids:
            raise StaffNotAssignedToService(
                f"Staff member {request.staff_id} does not offer service '{service.name}'"
            )

        # 3) Interval width comes from the service
        if to_minutes(end) - to_minutes(start) != service.duration_minutes:
            raise InvalidInterval(
                f"Appointment must last exactly {service.duration_minutes} minutes for '{service.name}'"
            )

        # 4) Inside working hours and on the slot grid
        hours = repository.get_working_hours(session, request.staff_id, day_of_week(on_date))
        if hours is None or not hours.is_active:
            raise InvalidInterval("Staff member is not scheduled to work that day")
        if start < hours.start_time or end > hours.end_time:
            raise InvalidInterval("Appointment must be within working hours")
        if (to_minutes(start) - to_minutes(hours.start_time)) % self.granularity_minutes != 0:
            raise InvalidInterval(f"Start time must be in {self.granularity_minutes}-minute increments")

        # 5) Re-check and insert while holding the (staff, date) lock
        with self._slot_locks.hold((request.staff_id, on_date)):
            repository.get_active_staff(session, request.staff_id, for_update=True)

            for existing in repository.list_reservations(session, request.staff_id, on_date, BLOCKING_STATUSES):
                if overlaps(start, end, existing.start_time, existing.end_time):
                    session.rollback()
                    logger.warning(
                        "Booking conflict for staff %s on %s %s-%s (held by reservation %s)",
                        request.staff_id, on_date, start, end, existing.id,
                    )
                    raise SlotNoLongerAvailable()

            slots = slots_for_staff(
                session,
                request.staff_id,
                on_date,
                service.duration_minutes,
                staff_active=staff.is_active,
                granularity_minutes=self.granularity_minutes,
                now=now,
            )
            if not candidate_fits(slots, start, end):
                session.rollback()
                raise SlotNoLongerAvailable()

            try:
                reservation = repository.insert_reservation(
                    session,
                    customer_id=request.customer_id,
                    staff_id=request.staff_id,
                    service_id=request.service_id,
                    booking_date=on_date,
                    start_time=start,
                    end_time=end,
                    status=ReservationStatus.confirmed.value,
                    payment_status="pending",
                    payment_method=request.payment_method.value,
                    payment_amount_cents=service.cash_price,
                    notes=request.notes,
                    created_by=request.created_by,
                )
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.warning("Lost booking race for staff %s on %s at %s", request.staff_id, on_date, start)
                raise SlotNoLongerAvailable()

        session.refresh(reservation)
        logger.info(
            "Reservation %s booked: staff %s, %s %s-%s, customer %s",
            reservation.id, reservation.staff_id, on_date, start, end, reservation.customer_id,
        )
        return reservation

    # ---- lifecycle ----

    def transition_status(
        self,
        session: Session,
        reservation_id: int,
        new_status: ReservationStatus,
        actor_role: UserRole,
        actor_id: Optional[int] = None,
        actor_staff_id: Optional[int] = None,
    ) -> Reservation:
        new_status = ReservationStatus(new_status)
        actor_role = UserRole(actor_role)

        if new_status not in TERMINAL_STATUSES:
            raise InvalidTransition(f"Cannot move a reservation to '{new_status.value}'")
        if actor_role not in TRANSITION_PERMISSIONS[new_status]:
            raise Forbidden(f"A {actor_role.value} cannot mark a reservation as {new_status.value}")

        with self._reservation_locks.hold(reservation_id):
            reservation = repository.get_reservation(session, reservation_id, for_update=True)
            if reservation is None:
                session.rollback()
                raise ReservationNotFound(reservation_id)

            # ownership: customers act on their own bookings, barbers on their own chair
            if actor_role == UserRole.customer and reservation.customer_id != actor_id:
                session.rollback()
                raise Forbidden("You can only cancel your own reservations")
            if actor_role == UserRole.barber and reservation.staff_id != actor_staff_id:
                session.rollback()
                raise Forbidden("You can only update reservations on your own schedule")

            old_status = ReservationStatus(reservation.status)
            if old_status in TERMINAL_STATUSES:
                session.rollback()
                raise InvalidTransition(f"Reservation {reservation_id} is already {old_status.value}")

            repository.update_reservation_status(session, reservation, new_status.value)

        logger.info(
            "Reservation %s: %s -> %s by %s", reservation_id, old_status.value, new_status.value, actor_role.value
        )
        return reservation
