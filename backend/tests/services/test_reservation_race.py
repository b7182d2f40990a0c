"""
Writers for the same provider and date (reservations, and a reschedule
against a reservation) racing on separate connections to a file-backed
SQLite database.
"""

from datetime import time
import threading
from unittest.mock import Mock

import pytest
from sqlalchemy.orm import sessionmaker

from slotbook.core.exceptions import ReservationTimeoutException, SlotConflictException
from slotbook.database import Base
from slotbook.events import EventPublisher
from slotbook.models import Appointment, AppointmentStatus
from slotbook.services.appointment_lifecycle_service import AppointmentLifecycleService
from slotbook.services.reservation_service import CustomerInfo, ReservationService


@pytest.fixture
def file_sessionmaker(tmp_path, engine_factory):
    engine = engine_factory(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def _race(session_factory, clock, provider_id, service_id, booking_date, starts):
    barrier = threading.Barrier(len(starts))
    outcomes: list = [None] * len(starts)

    def worker(index: int, start: time) -> None:
        session = session_factory()
        try:
            service = ReservationService(
                session, event_publisher=EventPublisher(sink=Mock()), clock=clock
            )
            customer = CustomerInfo(name=f"Racer {index}", email=f"racer{index}@example.com")
            barrier.wait(timeout=5)
            outcomes[index] = service.reserve(
                provider_id, service_id, booking_date, start, customer
            ).id
        except Exception as exc:
            outcomes[index] = exc
        finally:
            session.close()

    threads = [
        threading.Thread(target=worker, args=(index, start)) for index, start in enumerate(starts)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


def _seed(session_factory, seed):
    session = session_factory()
    try:
        provider, service = seed(session)
        return provider.id, service.id
    finally:
        session.close()


def test_same_slot_race_has_exactly_one_winner(file_sessionmaker, seed, clock, booking_date):
    provider_id, service_id = _seed(file_sessionmaker, seed)

    outcomes = _race(
        file_sessionmaker, clock, provider_id, service_id, booking_date, [time(10, 0), time(10, 0)]
    )

    winners = [outcome for outcome in outcomes if isinstance(outcome, str)]
    losers = [outcome for outcome in outcomes if isinstance(outcome, Exception)]
    assert len(winners) == 1
    assert len(losers) == 1
    assert isinstance(losers[0], SlotConflictException)

    session = file_sessionmaker()
    try:
        active = session.query(Appointment).filter(Appointment.provider_id == provider_id).all()
        assert [appointment.id for appointment in active] == winners
    finally:
        session.close()


def test_overlapping_starts_race_has_exactly_one_winner(file_sessionmaker, seed, clock, booking_date):
    provider_id, service_id = _seed(file_sessionmaker, seed)

    # Different start times, overlapping windows: only the lock catches this
    outcomes = _race(
        file_sessionmaker, clock, provider_id, service_id, booking_date, [time(10, 0), time(10, 15)]
    )

    assert sum(isinstance(outcome, str) for outcome in outcomes) == 1
    assert sum(isinstance(outcome, SlotConflictException) for outcome in outcomes) == 1


def test_non_overlapping_starts_both_succeed(file_sessionmaker, seed, clock, booking_date):
    provider_id, service_id = _seed(file_sessionmaker, seed)

    outcomes = _race(
        file_sessionmaker, clock, provider_id, service_id, booking_date, [time(10, 0), time(13, 0)]
    )

    assert all(isinstance(outcome, str) for outcome in outcomes)


def test_reschedule_and_reserve_race_for_overlapping_slots(
    file_sessionmaker, seed, clock, booking_date
):
    provider_id, service_id = _seed(file_sessionmaker, seed)
    session = file_sessionmaker()
    try:
        existing = Appointment(
            provider_id=provider_id,
            service_id=service_id,
            appointment_date=booking_date,
            start_time=time(13, 0),
            status=AppointmentStatus.CONFIRMED,
            customer_name="Moving Customer",
            customer_email="moving@example.com",
        )
        session.add(existing)
        session.commit()
        existing_id = existing.id
    finally:
        session.close()

    barrier = threading.Barrier(2)
    outcomes: dict = {}

    def move() -> None:
        session = file_sessionmaker()
        try:
            lifecycle = AppointmentLifecycleService(
                session, event_publisher=EventPublisher(sink=Mock()), clock=clock
            )
            barrier.wait(timeout=5)
            outcomes["reschedule"] = lifecycle.reschedule(existing_id, booking_date, time(10, 0)).id
        except Exception as exc:
            outcomes["reschedule"] = exc
        finally:
            session.close()

    def reserve() -> None:
        session = file_sessionmaker()
        try:
            reservations = ReservationService(
                session, event_publisher=EventPublisher(sink=Mock()), clock=clock
            )
            customer = CustomerInfo(name="New Customer", email="new@example.com")
            barrier.wait(timeout=5)
            outcomes["reserve"] = reservations.reserve(
                provider_id, service_id, booking_date, time(10, 15), customer
            ).id
        except Exception as exc:
            outcomes["reserve"] = exc
        finally:
            session.close()

    threads = [threading.Thread(target=move), threading.Thread(target=reserve)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    for outcome in outcomes.values():
        if isinstance(outcome, Exception):
            assert isinstance(outcome, (SlotConflictException, ReservationTimeoutException))

    session = file_sessionmaker()
    try:
        in_window = (
            session.query(Appointment)
            .filter(
                Appointment.provider_id == provider_id,
                Appointment.appointment_date == booking_date,
                Appointment.status.in_(["pending", "confirmed"]),
                Appointment.start_time >= time(10, 0),
                Appointment.start_time < time(11, 0),
            )
            .all()
        )
        assert len(in_window) <= 1
        assert sum(isinstance(outcome, str) for outcome in outcomes.values()) == len(in_window)
    finally:
        session.close()
