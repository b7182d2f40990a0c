# backend/slotbook/tasks/appointment_tasks.py
"""Periodic appointment maintenance tasks."""

import logging
from typing import Any, Dict

from slotbook.database import SessionLocal
from slotbook.services.appointment_lifecycle_service import AppointmentLifecycleService
from slotbook.tasks.beat_schedule import AUTO_COMPLETE_TASK
from slotbook.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name=AUTO_COMPLETE_TASK,
    bind=True,
    max_retries=3,
    default_retry_delay=60,
)
def auto_complete_appointments(self: Any) -> Dict[str, Any]:
    """
    Complete active appointments whose service has already ended.

    Per-appointment failures are reported in ``failed_ids`` and retried by
    the next scheduled run; only a failure of the sweep as a whole retries
    the task.
    """
    db = SessionLocal()
    try:
        result = AppointmentLifecycleService(db).run_auto_completion_sweep()
        logger.info(
            "Auto-completion sweep finished",
            extra={
                "completed_count": result.completed_count,
                "failed_count": len(result.failed_ids),
            },
        )
        return result.to_dict()
    except Exception as exc:
        logger.exception("Auto-completion sweep failed")
        raise self.retry(exc=exc)
    finally:
        db.close()
