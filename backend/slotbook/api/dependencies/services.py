# backend/slotbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets services bound to its own session; the event publisher
and its sink are shared.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...events import EventPublisher
from ...services.appointment_lifecycle_service import AppointmentLifecycleService
from ...services.availability_service import AvailabilityService
from ...services.reservation_service import ReservationService
from .database import get_db


@lru_cache
def get_event_publisher() -> EventPublisher:
    return EventPublisher()


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_reservation_service(
    db: Session = Depends(get_db),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> ReservationService:
    return ReservationService(db, event_publisher=event_publisher)


def get_lifecycle_service(
    db: Session = Depends(get_db),
    event_publisher: EventPublisher = Depends(get_event_publisher),
) -> AppointmentLifecycleService:
    return AppointmentLifecycleService(db, event_publisher=event_publisher)
