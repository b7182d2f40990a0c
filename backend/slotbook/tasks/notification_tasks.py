# backend/slotbook/tasks/notification_tasks.py
"""Notification delivery worker."""

import logging
from typing import Any, Dict

from slotbook.events.publisher import DELIVER_TASK_NAME, LoggingNotificationSink
from slotbook.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name=DELIVER_TASK_NAME, bind=True, max_retries=5, default_retry_delay=30)
def deliver_appointment_event(self: Any, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deliver one appointment event to its recipient.

    Delivery channels (email, SMS) plug in here; until one is configured the
    event is written to the log.
    """
    if not payload.get("recipient"):
        logger.warning(
            "Dropping appointment event without recipient",
            extra={"appointment_id": payload.get("appointment_id")},
        )
        return {"delivered": False, "type": payload.get("type")}

    LoggingNotificationSink().deliver(payload)
    return {"delivered": True, "type": payload.get("type")}
