# backend/slotbook/tasks/beat_schedule.py
"""Celery Beat schedule for periodic scheduling-engine jobs."""

from datetime import timedelta
from typing import Any

AUTO_COMPLETE_TASK = "slotbook.tasks.appointment_tasks.auto_complete_appointments"


def get_beat_schedule(auto_completion_interval_minutes: int = 15) -> dict[str, dict[str, Any]]:
    """
    Build the beat schedule.

    Args:
        auto_completion_interval_minutes: How often the sweep runs

    Returns:
        Mapping of schedule entry name to Celery beat configuration dict
    """
    return {
        "auto-complete-past-appointments": {
            "task": AUTO_COMPLETE_TASK,
            "schedule": timedelta(minutes=auto_completion_interval_minutes),
            "options": {
                "queue": "maintenance",
                # A missed run is covered by the next one
                "expires": auto_completion_interval_minutes * 60,
            },
        },
    }
