"""Event publisher - hands committed appointment events to a notification sink."""
import logging
from typing import Any, Dict, Optional, Protocol

from ..core.config import settings
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

DELIVER_TASK_NAME = "notifications.deliver_appointment_event"


class Event(Protocol):
    """Protocol for event types."""

    @property
    def type(self) -> str:
        ...

    def to_dict(self) -> Dict[str, Any]:
        ...


class NotificationSink(Protocol):
    """Destination for appointment notifications."""

    def deliver(self, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotificationSink:
    """Default sink: records the notification in the application log."""

    def deliver(self, payload: Dict[str, Any]) -> None:
        logger.info(
            "appointment_notification",
            extra={
                "event_type": payload.get("type"),
                "appointment_id": payload.get("appointment_id"),
                "recipient": payload.get("recipient"),
            },
        )


class CeleryNotificationSink:
    """Queues the notification for the delivery worker."""

    def __init__(self, app: Any = None):
        self._app = app

    def deliver(self, payload: Dict[str, Any]) -> None:
        app = self._app
        if app is None:
            from ..tasks.celery_app import celery_app

            app = celery_app
        app.send_task(DELIVER_TASK_NAME, args=[payload])


class EventPublisher:
    """
    Publishes appointment events after commit.

    Notification delivery never affects the outcome of the operation that
    produced the event: sink failures are logged, counted and dropped.
    """

    def __init__(self, sink: Optional[NotificationSink] = None):
        self.sink: NotificationSink = sink or build_default_sink()

    def publish(self, event: Event) -> bool:
        payload = event.to_dict()
        try:
            self.sink.deliver(payload)
        except Exception as exc:
            prometheus_metrics.record_notification(event.type, "error")
            logger.warning(
                "appointment_notification_failed",
                extra={
                    "event_type": event.type,
                    "appointment_id": payload.get("appointment_id"),
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            return False
        prometheus_metrics.record_notification(event.type, "sent")
        return True


def build_default_sink() -> NotificationSink:
    if settings.notification_sink == "celery":
        return CeleryNotificationSink()
    return LoggingNotificationSink()
