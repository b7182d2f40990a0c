# backend/tests/conftest.py
"""
Pytest configuration for the scheduling engine.

Every test gets a fresh in-memory SQLite database built from the ORM
metadata, a frozen clock, and a provider open 09:00-17:00 every day with a
30 minute service. Tests that need real cross-connection locking build a
file-backed database of their own.
"""

import os

# CRITICAL: Set testing mode BEFORE any slotbook imports!
os.environ["is_testing"] = "true"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["reservation_strategy"] = "strict"
os.environ["slot_lock_enabled"] = "false"
os.environ["notification_sink"] = "log"

from datetime import date, datetime, time, timedelta
from typing import Callable, Optional
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from slotbook.api.dependencies import (
    get_availability_service,
    get_db,
    get_lifecycle_service,
    get_reservation_service,
)
from slotbook.core.config import settings
from slotbook.database import Base
from slotbook.events import EventPublisher
from slotbook.main import app
from slotbook.models import Appointment, AppointmentStatus, OperatingHours, Provider, Service
from slotbook.services.appointment_lifecycle_service import AppointmentLifecycleService
from slotbook.services.availability_service import AvailabilityService
from slotbook.services.reservation_service import CustomerInfo, ReservationService

settings.is_testing = True

# Monday 08:00. The next day is the usual booking date in tests.
FIXED_NOW = datetime(2030, 1, 7, 8, 0)
TOMORROW = FIXED_NOW.date() + timedelta(days=1)

OPEN_TIME = time(9, 0)
CLOSE_TIME = time(17, 0)


def make_engine(url: str = "sqlite://"):
    if url == "sqlite://":
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url, connect_args={"check_same_thread": False, "timeout": 10})


class FrozenClock:
    """Callable clock whose time only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(FIXED_NOW)


@pytest.fixture(scope="function")
def db():
    """Fresh schema and session per test."""
    engine = make_engine()
    Base.metadata.create_all(bind=engine)
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = TestSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def seed_provider(
    session: Session,
    duration_minutes: int = 30,
    open_time: Optional[time] = OPEN_TIME,
    close_time: Optional[time] = CLOSE_TIME,
) -> tuple[Provider, Service]:
    provider = Provider(name="Maple Street Salon", is_active=True)
    session.add(provider)
    session.flush()
    service = Service(
        provider_id=provider.id,
        name="Haircut",
        duration_minutes=duration_minutes,
        price=35,
        is_active=True,
    )
    session.add(service)
    for day in range(7):
        session.add(
            OperatingHours(
                provider_id=provider.id,
                day_of_week=day,
                is_closed=False,
                open_time=open_time,
                close_time=close_time,
            )
        )
    session.commit()
    return provider, service


@pytest.fixture
def provider_and_service(db: Session) -> tuple[Provider, Service]:
    return seed_provider(db)


@pytest.fixture
def provider(provider_and_service) -> Provider:
    return provider_and_service[0]


@pytest.fixture
def service(provider_and_service) -> Service:
    return provider_and_service[1]


@pytest.fixture
def customer() -> CustomerInfo:
    return CustomerInfo(name="Jamie Rivera", email="jamie@example.com", phone="555-123-4567")


@pytest.fixture
def make_appointment(db: Session, provider: Provider, service: Service) -> Callable[..., Appointment]:
    """Insert an appointment directly, bypassing reservation checks."""

    def _make(
        start: time,
        on: date = TOMORROW,
        status: AppointmentStatus = AppointmentStatus.CONFIRMED,
        service_id: Optional[str] = None,
        email: str = "existing@example.com",
    ) -> Appointment:
        appointment = Appointment(
            provider_id=provider.id,
            service_id=service_id or service.id,
            appointment_date=on,
            start_time=start,
            status=status,
            customer_name="Existing Customer",
            customer_email=email,
        )
        db.add(appointment)
        db.commit()
        return appointment

    return _make


@pytest.fixture
def sink() -> Mock:
    return Mock()


@pytest.fixture
def publisher(sink: Mock) -> EventPublisher:
    return EventPublisher(sink=sink)


@pytest.fixture
def reservation_service(db: Session, clock: FrozenClock, publisher: EventPublisher) -> ReservationService:
    return ReservationService(db, event_publisher=publisher, clock=clock)


@pytest.fixture
def lifecycle_service(
    db: Session, clock: FrozenClock, publisher: EventPublisher
) -> AppointmentLifecycleService:
    return AppointmentLifecycleService(db, event_publisher=publisher, clock=clock)


@pytest.fixture
def availability_service(db: Session, clock: FrozenClock) -> AvailabilityService:
    return AvailabilityService(db, clock=clock)


@pytest.fixture
def client(db: Session, clock: FrozenClock, publisher: EventPublisher):
    """Create a test client bound to the test database and frozen clock."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_availability_service] = lambda: AvailabilityService(
        db, clock=clock
    )
    app.dependency_overrides[get_reservation_service] = lambda: ReservationService(
        db, event_publisher=publisher, clock=clock
    )
    app.dependency_overrides[get_lifecycle_service] = lambda: AppointmentLifecycleService(
        db, event_publisher=publisher, clock=clock
    )

    # Don't use context manager - lifespan would touch the configured engine
    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


@pytest.fixture
def booking_date() -> date:
    """A Tuesday comfortably inside the booking window."""
    return TOMORROW


@pytest.fixture
def seed() -> Callable[..., tuple[Provider, Service]]:
    return seed_provider


@pytest.fixture
def engine_factory() -> Callable[..., object]:
    return make_engine
