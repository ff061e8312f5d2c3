# salonbook/routers/reservations_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from salonbook.auth import get_current_user
from salonbook.booking import BookingManager
from salonbook.db import get_session
from salonbook.deps import get_booking_manager, get_event_bus, require_role
from salonbook.events import BookingCreated, EventBus, ReservationStatusChanged
from salonbook.models import Reservation, User
from salonbook.schemas import (
    BookingRequest,
    ReservationCreate,
    ReservationPublic,
    ReservationStatus,
    StatusUpdate,
    UserRole,
)

router = APIRouter(
    prefix="/reservations",
    tags=["reservations"],
)

# roles that may book on behalf of a customer (walk-ins, phone bookings)
DESK_ROLES = (UserRole.admin.value, UserRole.receptionist.value)


@router.post("", response_model=ReservationPublic, status_code=201)
def book_appointment(
    payload: ReservationCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    manager: BookingManager = Depends(get_booking_manager),
    events: EventBus = Depends(get_event_bus),
):
    # 1) Work out who the booking is for
    if current_user["role"] == UserRole.customer.value:
        if payload.customer_id is not None and payload.customer_id != current_user["id"]:
            raise HTTPException(status_code=403, detail="Customers can only book for themselves")
        customer_id = current_user["id"]
    else:
        require_role(current_user, *DESK_ROLES)
        if payload.customer_id is None:
            raise HTTPException(status_code=422, detail="customer_id is required when booking for a customer")
        if session.get(User, payload.customer_id) is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        customer_id = payload.customer_id

    # 2) Check availability and commit
    reservation = manager.create_reservation(
        session,
        BookingRequest(
            customer_id=customer_id,
            staff_id=payload.staff_id,
            service_id=payload.service_id,
            booking_date=payload.booking_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            created_by=current_user["id"],
            notes=payload.notes,
            payment_method=payload.payment_method,
        ),
    )

    # 3) Let loyalty / notifications know, after the commit
    events.publish(BookingCreated(
        reservation_id=reservation.id,
        customer_id=reservation.customer_id,
        service_id=reservation.service_id,
        price_cents=reservation.payment_amount_cents or 0,
    ))
    return reservation


@router.patch("/{reservation_id}/status", response_model=ReservationPublic)
def set_reservation_status(
    reservation_id: int,
    payload: StatusUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
    manager: BookingManager = Depends(get_booking_manager),
    events: EventBus = Depends(get_event_bus),
):
    reservation = manager.transition_status(
        session,
        reservation_id,
        payload.status,
        current_user["role"],
        actor_id=current_user["id"],
        actor_staff_id=current_user["staff_id"],
    )

    # only confirmed reservations can move, so that is always where it came from
    events.publish(ReservationStatusChanged(
        reservation_id=reservation.id,
        old_status=ReservationStatus.confirmed.value,
        new_status=reservation.status,
    ))
    return reservation


@router.get("/me", response_model=List[ReservationPublic])
def list_my_reservations(
    status: Optional[ReservationStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    stmt = select(Reservation).where(Reservation.customer_id == current_user["id"])
    if status is not None:
        stmt = stmt.where(Reservation.status == status.value)
    stmt = stmt.order_by(Reservation.booking_date.desc(), Reservation.start_time.desc())

    return session.exec(stmt).all()


@router.get("", response_model=List[ReservationPublic])
def list_reservations(
    on_date: Optional[date] = None,
    staff_id: Optional[int] = None,
    status: Optional[ReservationStatus] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value, UserRole.receptionist.value)

    stmt = select(Reservation)
    if on_date is not None:
        stmt = stmt.where(Reservation.booking_date == on_date)
    if staff_id is not None:
        stmt = stmt.where(Reservation.staff_id == staff_id)
    if status is not None:
        stmt = stmt.where(Reservation.status == status.value)
    stmt = stmt.order_by(Reservation.booking_date.desc(), Reservation.start_time)

    return session.exec(stmt).all()


@router.get("/{reservation_id}", response_model=ReservationPublic)
def get_reservation(
    reservation_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    reservation = session.get(Reservation, reservation_id)
    if reservation is None:
        raise HTTPException(status_code=404, detail="Reservation not found")

    role = current_user["role"]
    if role == UserRole.customer.value and reservation.customer_id != current_user["id"]:
        raise HTTPException(status_code=403, detail="Forbidden")
    if role == UserRole.barber.value and reservation.staff_id != current_user["staff_id"]:
        raise HTTPException(status_code=403, detail="Forbidden")

    return reservation
