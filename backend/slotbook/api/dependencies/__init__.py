# backend/slotbook/api/dependencies/__init__.py
"""Central export point for route dependencies."""

from .database import get_db
from .services import (
    get_availability_service,
    get_event_publisher,
    get_lifecycle_service,
    get_reservation_service,
)

__all__ = [
    "get_db",
    "get_availability_service",
    "get_event_publisher",
    "get_lifecycle_service",
    "get_reservation_service",
]
