# salonbook/routers/staff_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from salonbook import repository
from salonbook.availability import get_available_slots
from salonbook.auth import get_current_user
from salonbook.booking import BookingManager
from salonbook.db import get_session
from salonbook.deps import get_booking_manager, require_role
from salonbook.models import Reservation, Service, Staff, User
from salonbook.schemas import (
    AvailabilityResponse,
    ReservationPublic,
    ReservationStatus,
    StaffCreate,
    StaffPublic,
    StaffServicesUpdate,
    StaffUpdate,
    UserRole,
    WorkingHoursPublic,
    WorkingHoursWindow,
)

router = APIRouter(
    prefix="/staff",
    tags=["staff"],
)


def staff_public(session: Session, staff: Staff) -> dict:
    return {
        "id": staff.id,
        "user_id": staff.user_id,
        "display_name": staff.display_name,
        "specialty": staff.specialty,
        "bio": staff.bio,
        "is_active": staff.is_active,
        "service_ids": repository.list_service_ids_for_staff(session, staff.id),
    }


def _get_staff_or_404(session: Session, staff_id: int) -> Staff:
    staff = session.get(Staff, staff_id)
    if staff is None:
        raise HTTPException(status_code=404, detail="Staff member not found")
    return staff


@router.post("", response_model=StaffPublic, status_code=201)
def create_staff(
    payload: StaffCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    user = session.get(User, payload.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    if user.role != UserRole.barber.value:
        raise HTTPException(status_code=422, detail="Only barber accounts can have a staff profile")

    existing = session.exec(select(Staff).where(Staff.user_id == payload.user_id)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="User already has a staff profile")

    staff = Staff(
        user_id=payload.user_id,
        display_name=payload.display_name,
        specialty=payload.specialty,
        bio=payload.bio,
    )
    session.add(staff)
    session.commit()
    session.refresh(staff)
    return staff_public(session, staff)


@router.get("", response_model=List[StaffPublic])
def list_staff(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
):
    stmt = select(Staff).order_by(Staff.display_name)
    if not include_inactive:
        stmt = stmt.where(Staff.is_active == True)  # noqa: E712
    return [staff_public(session, s) for s in session.exec(stmt).all()]


@router.get("/me/reservations", response_model=List[ReservationPublic])
def list_my_chair(
    status: Optional[ReservationStatus] = None,
    on_date: Optional[date] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.barber.value)
    if current_user["staff_id"] is None:
        raise HTTPException(status_code=404, detail="No staff profile for this account")

    stmt = select(Reservation).where(Reservation.staff_id == current_user["staff_id"])
    if on_date is not None:
        stmt = stmt.where(Reservation.booking_date == on_date)
    if status is not None:
        stmt = stmt.where(Reservation.status == status.value)
    stmt = stmt.order_by(Reservation.booking_date, Reservation.start_time)

    return session.exec(stmt).all()


@router.get("/{staff_id}", response_model=StaffPublic)
def get_staff(staff_id: int, session: Session = Depends(get_session)):
    return staff_public(session, _get_staff_or_404(session, staff_id))


@router.patch("/{staff_id}", response_model=StaffPublic)
def update_staff(
    staff_id: int,
    payload: StaffUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)
    staff = _get_staff_or_404(session, staff_id)

    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(staff, key, value)
    session.add(staff)
    session.commit()
    session.refresh(staff)
    return staff_public(session, staff)


@router.put("/{staff_id}/services", response_model=StaffPublic)
def assign_services(
    staff_id: int,
    payload: StaffServicesUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)
    staff = _get_staff_or_404(session, staff_id)

    for service_id in set(payload.service_ids):
        if session.get(Service, service_id) is None:
            raise HTTPException(status_code=404, detail=f"Service {service_id} not found")

    repository.replace_staff_services(session, staff_id, payload.service_ids)
    return staff_public(session, staff)


@router.get("/{staff_id}/working-hours", response_model=List[WorkingHoursPublic])
def get_working_hours(staff_id: int, session: Session = Depends(get_session)):
    _get_staff_or_404(session, staff_id)
    return repository.list_working_hours(session, staff_id)


@router.put("/{staff_id}/working-hours/{day_of_week}", response_model=WorkingHoursPublic)
def set_working_hours(
    staff_id: int,
    day_of_week: int,
    window: WorkingHoursWindow,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # the barber edits their own week; admins edit anyone's
    if current_user["role"] != UserRole.admin.value:
        require_role(current_user, UserRole.barber.value)
        if current_user["staff_id"] != staff_id:
            raise HTTPException(status_code=403, detail="Forbidden")

    _get_staff_or_404(session, staff_id)
    if not (0 <= day_of_week <= 6):
        raise HTTPException(status_code=422, detail="day_of_week must be an integer between 0 (Sunday) and 6")
    if window.start_time > window.end_time:
        raise HTTPException(status_code=422, detail="start_time cannot be after end_time")

    return repository.upsert_working_hours(
        session, staff_id, day_of_week, window.start_time, window.end_time, window.is_active
    )


@router.get("/{staff_id}/availability", response_model=AvailabilityResponse)
def staff_availability(
    staff_id: int,
    date: date,
    service_id: int,
    session: Session = Depends(get_session),
    manager: BookingManager = Depends(get_booking_manager),
):
    slots = get_available_slots(
        session,
        staff_id,
        date,
        service_id,
        granularity_minutes=manager.granularity_minutes,
        now=manager.clock(),
    )
    service = repository.get_service(session, service_id)

    return {
        "staff_id": staff_id,
        "date": date,
        "service_id": service_id,
        "duration_minutes": service.duration_minutes,
        "slot_granularity_minutes": manager.granularity_minutes,
        "slots": [{"slot_start": s.slot_start, "slot_end": s.slot_end} for s in slots],
    }
