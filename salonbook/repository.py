# salonbook/repository.py
"""Reservation, staff, service and working-hours stores.

Thin persistence helpers shared by the availability calculator, the booking
manager and the routers. Nothing here commits except the explicit write
helpers that own a whole unit of work (``upsert_working_hours``,
``replace_staff_services``).
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import Iterable, List, Optional, Sequence

from sqlmodel import Session, select

from .models import Reservation, Service, Staff, StaffService, WorkingHours, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaffInfo:
    id: int
    is_active: bool
    assigned_service_ids: frozenset = field(default_factory=frozenset)


# ---- staff directory ----

def get_active_staff(session: Session, staff_id: int, *, for_update: bool = False) -> Optional[StaffInfo]:
    """Staff record plus assigned services, or None if the id is unknown.

    ``for_update`` takes a row lock on the staff record (PostgreSQL / MySQL)
    so that concurrent bookings for the same chair queue up behind it.
    """
    stmt = select(Staff).where(Staff.id == staff_id)
    if for_update:
        stmt = stmt.with_for_update()
    staff = session.exec(stmt).first()
    if staff is None:
        return None

    service_ids = session.exec(
        select(StaffService.service_id).where(StaffService.staff_id == staff_id)
    ).all()
    return StaffInfo(id=staff.id, is_active=staff.is_active, assigned_service_ids=frozenset(service_ids))


def list_service_ids_for_staff(session: Session, staff_id: int) -> List[int]:
    return sorted(
        session.exec(select(StaffService.service_id).where(StaffService.staff_id == staff_id)).all()
    )


def replace_staff_services(session: Session, staff_id: int, service_ids: Iterable[int]) -> List[int]:
    existing = session.exec(select(StaffService).where(StaffService.staff_id == staff_id)).all()
    for row in existing:
        session.delete(row)
    # flush deletes first so re-adding a service does not trip uq_staff_service
    session.flush()

    wanted = sorted(set(service_ids))
    for service_id in wanted:
        session.add(StaffService(staff_id=staff_id, service_id=service_id))
    session.commit()
    logger.info("Staff %s now offers services %s", staff_id, wanted)
    return wanted


# ---- working hours ----

def get_working_hours(session: Session, staff_id: int, day_of_week: int) -> Optional[WorkingHours]:
    return session.exec(
        select(WorkingHours)
        .where(WorkingHours.staff_id == staff_id)
        .where(WorkingHours.day_of_week == day_of_week)
    ).first()


def list_working_hours(session: Session, staff_id: int) -> List[WorkingHours]:
    return session.exec(
        select(WorkingHours)
        .where(WorkingHours.staff_id == staff_id)
        .order_by(WorkingHours.day_of_week)
    ).all()


def upsert_working_hours(
    session: Session,
    staff_id: int,
    day_of_week: int,
    start_time: time,
    end_time: time,
    is_active: bool = True,
) -> WorkingHours:
    # one row per (staff, weekday); overwritten in place
    row = get_working_hours(session, staff_id, day_of_week)
    if row is None:
        row = WorkingHours(staff_id=staff_id, day_of_week=day_of_week)
    row.start_time = start_time
    row.end_time = end_time
    row.is_active = is_active

    session.add(row)
    session.commit()
    session.refresh(row)
    logger.info(
        "Working hours for staff %s day %s set to %s-%s (active=%s)",
        staff_id, day_of_week, start_time, end_time, is_active,
    )
    return row


# ---- service catalog ----

def get_service(session: Session, service_id: int) -> Optional[Service]:
    return session.get(Service, service_id)


# ---- reservations ----

def list_reservations(
    session: Session,
    staff_id: int,
    on_date: date,
    statuses: Optional[Sequence[str]] = None,
) -> List[Reservation]:
    stmt = (
        select(Reservation)
        .where(Reservation.staff_id == staff_id)
        .where(Reservation.booking_date == on_date)
    )
    if statuses is not None:
        stmt = stmt.where(Reservation.status.in_(list(statuses)))
    stmt = stmt.order_by(Reservation.start_time)
    return session.exec(stmt).all()


def insert_reservation(session: Session, **fields) -> Reservation:
    """Stage a new reservation; the caller owns the commit."""
    reservation = Reservation(**fields)
    session.add(reservation)
    session.flush()
    return reservation


def get_reservation(session: Session, reservation_id: int, *, for_update: bool = False) -> Optional[Reservation]:
    stmt = select(Reservation).where(Reservation.id == reservation_id)
    if for_update:
        stmt = stmt.with_for_update()
    return session.exec(stmt).first()


def update_reservation_status(session: Session, reservation: Reservation, status: str) -> Reservation:
    reservation.status = status
    reservation.updated_at = utc_now()
    session.add(reservation)
    session.commit()
    session.refresh(reservation)
    return reservation
