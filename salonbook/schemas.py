# salonbook/schemas.py

from datetime import datetime, date, time
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from .core import format_hhmm, parse_hhmm

# "HH:MM" on the wire, datetime.time in Python
HHMM = Annotated[time, BeforeValidator(parse_hhmm), PlainSerializer(format_hhmm, return_type=str)]

class UserRole(str, Enum):
    admin = "admin"
    barber = "barber"
    receptionist = "receptionist"
    customer = "customer"

class ReservationStatus(str, Enum):
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"
    no_show = "no_show"

class ServiceCategory(str, Enum):
    men = "men"
    women = "women"

class PaymentMethod(str, Enum):
    cash = "cash"

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserPublic(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: UserRole
    staff_id: Optional[int] = None

class UserCreate(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=72)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: UserRole = UserRole.customer

class StaffCreate(BaseModel):
    user_id: int
    display_name: str
    specialty: Optional[str] = None
    bio: Optional[str] = None

class StaffUpdate(BaseModel):
    display_name: Optional[str] = None
    specialty: Optional[str] = None
    bio: Optional[str] = None
    is_active: Optional[bool] = None

class StaffPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    display_name: str
    specialty: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool
    service_ids: List[int] = []

class StaffServicesUpdate(BaseModel):
    service_ids: List[int]

class ServiceCreate(BaseModel):
    name: str
    category: ServiceCategory
    cash_price: int = Field(ge=0)
    card_price: int = Field(ge=0)
    duration_minutes: int = Field(gt=0, le=24 * 60)

class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[ServiceCategory] = None
    cash_price: Optional[int] = Field(default=None, ge=0)
    card_price: Optional[int] = Field(default=None, ge=0)
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=24 * 60)
    is_active: Optional[bool] = None

class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: ServiceCategory
    cash_price: int
    card_price: int
    duration_minutes: int
    is_active: bool

class WorkingHoursWindow(BaseModel):
    start_time: HHMM
    end_time: HHMM
    is_active: bool = True

class WorkingHoursPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    staff_id: int
    day_of_week: int  # 0=Sun ... 6=Sat
    start_time: HHMM
    end_time: HHMM
    is_active: bool

class AvailableSlot(BaseModel):
    slot_start: HHMM
    slot_end: HHMM

class AvailabilityResponse(BaseModel):
    staff_id: int
    date: date
    service_id: int
    duration_minutes: int
    slot_granularity_minutes: int
    slots: List[AvailableSlot]

class ReservationCreate(BaseModel):
    staff_id: int
    service_id: int
    booking_date: date
    start_time: HHMM
    end_time: HHMM
    # only admin / receptionist may book on behalf of someone else
    customer_id: Optional[int] = None
    notes: Optional[str] = Field(default=None, max_length=500)
    payment_method: PaymentMethod = PaymentMethod.cash

class BookingRequest(BaseModel):
    """A fully resolved booking, as handed to the transaction manager."""

    customer_id: int
    staff_id: int
    service_id: int
    booking_date: date
    start_time: HHMM
    end_time: HHMM
    created_by: int
    notes: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.cash

class ReservationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    staff_id: int
    service_id: int
    booking_date: date
    start_time: HHMM
    end_time: HHMM
    status: ReservationStatus
    payment_status: str
    payment_method: str
    payment_amount_cents: Optional[int] = None
    notes: Optional[str] = None
    created_by: int
    created_at: datetime
    updated_at: datetime

class StatusUpdate(BaseModel):
    status: ReservationStatus
