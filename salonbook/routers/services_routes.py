# salonbook/routers/services_routes.py

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from salonbook.auth import get_current_user
from salonbook.db import get_session
from salonbook.deps import require_role
from salonbook.models import Service, Staff, StaffService
from salonbook.routers.staff_routes import staff_public
from salonbook.schemas import ServiceCreate, ServicePublic, ServiceUpdate, StaffPublic, UserRole

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
):
    stmt = select(Service).order_by(Service.category, Service.name)
    if not include_inactive:
        stmt = stmt.where(Service.is_active == True)  # noqa: E712
    return session.exec(stmt).all()


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    payload: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, UserRole.admin.value)

    service = Service(
        name=payload.name,
        category=payload.category.value,
        cash_price=payload.cash_price,
        card_price=payload.card_price,
        duration_minutes=payload.duration_minutes,
    )
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@router.patch("/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    payload: ServiceUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # existing bookings keep their own time window, so edits never move them
    require_role(current_user, UserRole.admin.value)

    service = session.get(Service, service_id)
    if service is None:
        raise HTTPException(status_code=404, detail="Service not found")

    for key, value in payload.model_dump(exclude_unset=True, mode="json").items():
        if value is not None:
            setattr(service, key, value)

    session.add(service)
    session.commit()
    session.refresh(service)
    return service


@router.get("/{service_id}/staff", response_model=List[StaffPublic])
def list_staff_for_service(service_id: int, session: Session = Depends(get_session)):
    if session.get(Service, service_id) is None:
        raise HTTPException(status_code=404, detail="Service not found")

    staff = session.exec(
        select(Staff)
        .join(StaffService, StaffService.staff_id == Staff.id)
        .where(StaffService.service_id == service_id)
        .where(Staff.is_active == True)  # noqa: E712
        .order_by(Staff.display_name)
    ).all()

    return [staff_public(session, s) for s in staff]
