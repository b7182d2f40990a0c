"""Appointment domain events."""
from dataclasses import asdict, dataclass
from datetime import date, datetime, time
from typing import Any, ClassVar, Dict, Optional

from ..core.enums import AppointmentEventType


@dataclass
class AppointmentEvent:
    """Base for events emitted after an appointment change has committed."""

    event_type: ClassVar[AppointmentEventType]

    appointment_id: str
    recipient: str  # customer email

    @property
    def type(self) -> str:
        return self.event_type.value

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        for key, value in payload.items():
            if isinstance(value, (date, datetime, time)):
                payload[key] = value.isoformat()
        payload["type"] = self.type
        return payload


@dataclass
class AppointmentReserved(AppointmentEvent):
    """Fired after a reservation commits."""

    event_type: ClassVar[AppointmentEventType] = AppointmentEventType.RESERVED

    appointment_date: Optional[date] = None
    start_time: Optional[time] = None
    status: Optional[str] = None


@dataclass
class AppointmentConfirmed(AppointmentEvent):
    event_type: ClassVar[AppointmentEventType] = AppointmentEventType.CONFIRMED


@dataclass
class AppointmentCancelled(AppointmentEvent):
    """Fired after an appointment is cancelled; carries the reason when one was given."""

    event_type: ClassVar[AppointmentEventType] = AppointmentEventType.CANCELLED

    reason: Optional[str] = None
    cancelled_by: Optional[str] = None


@dataclass
class AppointmentRescheduled(AppointmentEvent):
    """Fired after an appointment moves; carries the slot it moved from."""

    event_type: ClassVar[AppointmentEventType] = AppointmentEventType.RESCHEDULED

    previous_date: Optional[date] = None
    previous_start_time: Optional[time] = None
    new_date: Optional[date] = None
    new_start_time: Optional[time] = None
