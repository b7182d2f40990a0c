# backend/slotbook/tasks/__init__.py
"""
Celery tasks package for the scheduling engine.

- appointment_tasks: periodic auto-completion sweep
- notification_tasks: appointment event delivery
"""

from slotbook.tasks.appointment_tasks import auto_complete_appointments
from slotbook.tasks.celery_app import celery_app
from slotbook.tasks.notification_tasks import deliver_appointment_event

__all__ = [
    "auto_complete_appointments",
    "celery_app",
    "deliver_appointment_event",
]
