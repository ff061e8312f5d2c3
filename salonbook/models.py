# salonbook/models.py

from typing import Optional
from datetime import datetime, date as Date, time, timezone

from sqlalchemy import DateTime, Index, UniqueConstraint, text
from sqlmodel import SQLModel, Field

# statuses that hold a chair; cancelled / no_show free the slot
BLOCKING_STATUSES = ("confirmed", "completed")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    password_hash: str
    role: str  # admin, barber, receptionist or customer

class Staff(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True, unique=True)
    display_name: str
    specialty: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    category: str  # men or women
    cash_price: int  # cents
    card_price: int  # cents
    duration_minutes: int
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

class StaffService(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("staff_id", "service_id", name="uq_staff_service"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    staff_id: int = Field(foreign_key="staff.id", index=True)
    service_id: int = Field(foreign_key="service.id", index=True)

class WorkingHours(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("staff_id", "day_of_week", name="uq_staff_day"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    staff_id: int = Field(foreign_key="staff.id", index=True)
    day_of_week: int  # 0=Sun, 1=Mon ... 6=Sat
    start_time: time
    end_time: time
    is_active: bool = True

class Reservation(SQLModel, table=True):
    __table_args__ = (
        # last line of defence against two writers landing on the same start
        Index(
            "uq_reservation_active_start",
            "staff_id",
            "booking_date",
            "start_time",
            unique=True,
            sqlite_where=text("status IN ('confirmed', 'completed')"),
            postgresql_where=text("status IN ('confirmed', 'completed')"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    customer_id: int = Field(foreign_key="user.id", index=True)
    staff_id: int = Field(foreign_key="staff.id", index=True)
    service_id: int = Field(foreign_key="service.id")

    booking_date: Date = Field(index=True)
    start_time: time
    end_time: time

    status: str = "confirmed"
    payment_status: str = "pending"  # pending, paid or refunded
    payment_method: str = "cash"
    payment_amount_cents: Optional[int] = None
    notes: Optional[str] = None

    created_by: int = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
