"""
Database models for the scheduling engine.

- Provider / OperatingHours: who is bookable and when they are open
- Service: what can be booked and for how long
- Appointment: the bookings themselves
- ProviderDayLock: per provider/day serialization rows for reservations
"""

from .appointment import (
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    Appointment,
    AppointmentStatus,
)
from .provider import OperatingHours, Provider, weekday_index
from .provider_day_lock import ProviderDayLock
from .service import Service

__all__ = [
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
    "TERMINAL_STATUSES",
    "Appointment",
    "AppointmentStatus",
    "OperatingHours",
    "Provider",
    "ProviderDayLock",
    "Service",
    "weekday_index",
]
