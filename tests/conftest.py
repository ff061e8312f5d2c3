from datetime import date, datetime, time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from salonbook.auth import create_access_token, hash_password
from salonbook.booking import BookingManager
from salonbook.db import create_db_and_tables, get_session
from salonbook.deps import get_booking_manager, get_event_bus
from salonbook.events import BookingCreated, EventBus, ReservationStatusChanged
from salonbook.main import app
from salonbook.models import Service, Staff, StaffService, User, WorkingHours

# Sunday noon; the Monday after is the default booking day
NOW = datetime(2030, 1, 6, 12, 0)
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)

PASSWORD_HASH = hash_password("password123")


def make_engine(url="sqlite://"):
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url == "sqlite://":
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    create_db_and_tables(engine)
    return engine


def seed_salon(session: Session) -> SimpleNamespace:
    """One barber working Mondays 09:00-17:00 offering a 30 minute haircut."""
    admin = User(email="admin@salon.test", password_hash=PASSWORD_HASH, role="admin")
    desk = User(email="desk@salon.test", password_hash=PASSWORD_HASH, role="receptionist")
    barber_user = User(email="barber@salon.test", password_hash=PASSWORD_HASH, role="barber")
    other_barber_user = User(email="barber2@salon.test", password_hash=PASSWORD_HASH, role="barber")
    alice = User(email="alice@salon.test", full_name="Alice", password_hash=PASSWORD_HASH, role="customer")
    bob = User(email="bob@salon.test", full_name="Bob", password_hash=PASSWORD_HASH, role="customer")
    session.add_all([admin, desk, barber_user, other_barber_user, alice, bob])
    session.commit()

    barber = Staff(user_id=barber_user.id, display_name="Sam")
    other_barber = Staff(user_id=other_barber_user.id, display_name="Tia")
    haircut = Service(name="Haircut", category="men", cash_price=2500, card_price=2700, duration_minutes=30)
    colour = Service(name="Colour", category="women", cash_price=6000, card_price=6500, duration_minutes=90)
    retired = Service(
        name="Hot towel", category="men", cash_price=1000, card_price=1100, duration_minutes=15, is_active=False
    )
    session.add_all([barber, other_barber, haircut, colour, retired])
    session.commit()

    session.add_all([
        StaffService(staff_id=barber.id, service_id=haircut.id),
        StaffService(staff_id=barber.id, service_id=colour.id),
        StaffService(staff_id=barber.id, service_id=retired.id),
        StaffService(staff_id=other_barber.id, service_id=haircut.id),
        WorkingHours(staff_id=barber.id, day_of_week=1, start_time=time(9, 0), end_time=time(17, 0)),
        WorkingHours(staff_id=other_barber.id, day_of_week=1, start_time=time(9, 0), end_time=time(17, 0)),
    ])
    session.commit()

    return SimpleNamespace(
        admin=admin.id,
        desk=desk.id,
        barber_user=barber_user.id,
        other_barber_user=other_barber_user.id,
        alice=alice.id,
        bob=bob.id,
        barber=barber.id,
        other_barber=other_barber.id,
        haircut=haircut.id,
        colour=colour.id,
        retired=retired.id,
    )


@pytest.fixture
def engine():
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def salon(session):
    return seed_salon(session)


@pytest.fixture
def manager():
    return BookingManager(granularity_minutes=30, clock=lambda: NOW)


class RecordingBus(EventBus):
    def __init__(self):
        super().__init__()
        self.events = []
        self.subscribe(BookingCreated, self.events.append)
        self.subscribe(ReservationStatusChanged, self.events.append)


@pytest.fixture
def event_bus():
    return RecordingBus()


@pytest.fixture
def client(engine, manager, event_bus):
    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_booking_manager] = lambda: manager
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(email: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': email})}"}
