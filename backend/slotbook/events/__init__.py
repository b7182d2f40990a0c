"""Appointment events and the publisher that delivers them to notification sinks."""

from slotbook.events.appointment_events import (
    AppointmentCancelled,
    AppointmentConfirmed,
    AppointmentEvent,
    AppointmentRescheduled,
    AppointmentReserved,
)
from slotbook.events.publisher import (
    CeleryNotificationSink,
    EventPublisher,
    LoggingNotificationSink,
    NotificationSink,
)

__all__ = [
    "AppointmentCancelled",
    "AppointmentConfirmed",
    "AppointmentEvent",
    "AppointmentRescheduled",
    "AppointmentReserved",
    "CeleryNotificationSink",
    "EventPublisher",
    "LoggingNotificationSink",
    "NotificationSink",
]
