# backend/slotbook/tasks/celery_app.py
"""
Celery application configuration for the scheduling engine.

Redis is the broker. Tasks are JSON-serialized; beat runs the
auto-completion sweep and workers consume notification deliveries.
"""

import os
from typing import Any

from celery import Celery
from celery.signals import setup_logging

from slotbook.core.config import settings


def _broker_url() -> str:
    # Priority: CELERY_BROKER_URL -> REDIS_URL -> settings.redis_url
    broker_url = os.getenv("CELERY_BROKER_URL") or os.getenv("REDIS_URL") or settings.redis_url
    # Ensure Redis URL includes database number
    if not any(broker_url.endswith(f"/{i}") for i in range(16)):
        broker_url = f"{broker_url}/0"
    return broker_url


def create_celery_app() -> Celery:
    """
    Create and configure the Celery application.

    Returns:
        Celery: Configured Celery application instance
    """
    broker_url = _broker_url()
    celery_app = Celery(
        "slotbook",
        broker=broker_url,
        backend=os.getenv("CELERY_RESULT_BACKEND") or broker_url,
    )

    celery_app.conf.update(
        {
            "task_serializer": "json",
            "accept_content": ["json"],
            "result_serializer": "json",
            "enable_utc": True,
            "worker_prefetch_multiplier": 4,
            "worker_max_tasks_per_child": 1000,
            "task_soft_time_limit": 120,
            "task_time_limit": 300,
            "task_acks_late": True,
            "task_reject_on_worker_lost": True,
            "task_default_retry_delay": 60,
            "worker_hijack_root_logger": False,
            "broker_transport_options": {"visibility_timeout": 3600},
        }
    )

    # Force import of task modules so tasks are registered even if autodiscovery fails
    celery_app.conf.imports = (
        "slotbook.tasks.appointment_tasks",
        "slotbook.tasks.notification_tasks",
    )

    celery_app.conf.task_routes = {
        "notifications.*": {"queue": "notifications"},
        "slotbook.tasks.appointment_tasks.*": {"queue": "maintenance"},
    }

    from slotbook.tasks.beat_schedule import get_beat_schedule

    celery_app.conf.beat_schedule = get_beat_schedule(settings.auto_completion_interval_minutes)

    return celery_app


# Disable Celery's default logging configuration
@setup_logging.connect  # type: ignore[misc]
def config_loggers(*args: Any, **kwargs: Any) -> None:
    """Configure logging to integrate with the application's logging setup."""
    import logging

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


celery_app = create_celery_app()
