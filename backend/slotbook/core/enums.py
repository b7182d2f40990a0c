# backend/slotbook/core/enums.py
"""
Core enums for the scheduling engine.

These enums give type safety to values that flow between the API layer,
the services and the background tasks.
"""

from enum import Enum


class ActorRole(str, Enum):
    """Who initiated a reservation or status change."""

    CUSTOMER = "customer"
    PROVIDER = "provider"
    SYSTEM = "system"


class BufferPolicy(str, Enum):
    """
    How the turnaround buffer is applied when comparing a candidate slot
    against an existing appointment.

    SURROUND pads the existing appointment on both sides and the candidate
    on its trailing edge. TRAILING compares both plain occupancy intervals.
    """

    SURROUND = "surround"
    TRAILING = "trailing"


class ReservationMode(str, Enum):
    """Reservation strategy names accepted by configuration."""

    STRICT = "strict"
    BEST_EFFORT = "best_effort"


class AppointmentEventType(str, Enum):
    """Notification event types emitted after successful transitions."""

    RESERVED = "appointment.reserved"
    CONFIRMED = "appointment.confirmed"
    CANCELLED = "appointment.cancelled"
    RESCHEDULED = "appointment.rescheduled"
