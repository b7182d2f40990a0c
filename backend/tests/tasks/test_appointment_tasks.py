from datetime import date, time
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.orm import sessionmaker

from slotbook.models import Appointment, AppointmentStatus
from slotbook.tasks import appointment_tasks, notification_tasks
from slotbook.tasks.beat_schedule import AUTO_COMPLETE_TASK, get_beat_schedule
from slotbook.tasks.celery_app import celery_app


@pytest.fixture
def task_session_factory(db):
    return sessionmaker(bind=db.get_bind(), autoflush=False, expire_on_commit=False)


class TestAutoCompleteTask:
    def test_completes_past_appointments(self, task_session_factory, make_appointment, db):
        appointment = make_appointment(time(9, 0), on=date(2020, 3, 2))

        with patch.object(appointment_tasks, "SessionLocal", task_session_factory):
            result = appointment_tasks.auto_complete_appointments.run()

        assert result == {"completed_count": 1, "failed_ids": []}
        db.expire_all()
        assert db.get(Appointment, appointment.id).status == AppointmentStatus.COMPLETED.value

    def test_sweep_failure_retries_task(self, monkeypatch):
        session = MagicMock()
        monkeypatch.setattr(appointment_tasks, "SessionLocal", lambda: session)

        failing_service = MagicMock()
        failing_service.run_auto_completion_sweep.side_effect = RuntimeError("db down")
        monkeypatch.setattr(
            appointment_tasks, "AppointmentLifecycleService", lambda db: failing_service
        )
        retry = MagicMock(side_effect=RuntimeError("retry scheduled"))
        monkeypatch.setattr(appointment_tasks.auto_complete_appointments, "retry", retry)

        with pytest.raises(RuntimeError, match="retry scheduled"):
            appointment_tasks.auto_complete_appointments.run()

        assert isinstance(retry.call_args.kwargs["exc"], RuntimeError)
        session.close.assert_called_once()


class TestNotificationTask:
    def test_delivers_event_with_recipient(self):
        result = notification_tasks.deliver_appointment_event.run(
            {"type": "appointment.confirmed", "appointment_id": "a1", "recipient": "jamie@example.com"}
        )
        assert result == {"delivered": True, "type": "appointment.confirmed"}

    def test_drops_event_without_recipient(self):
        result = notification_tasks.deliver_appointment_event.run(
            {"type": "appointment.cancelled", "appointment_id": "a1", "recipient": ""}
        )
        assert result["delivered"] is False


class TestCeleryConfiguration:
    def test_tasks_registered(self):
        assert AUTO_COMPLETE_TASK in celery_app.tasks
        assert "notifications.deliver_appointment_event" in celery_app.tasks

    def test_beat_runs_sweep_on_configured_interval(self):
        schedule = get_beat_schedule(5)
        entry = schedule["auto-complete-past-appointments"]
        assert entry["task"] == AUTO_COMPLETE_TASK
        assert entry["schedule"].total_seconds() == 300
        assert entry["options"]["queue"] == "maintenance"

    def test_app_uses_json(self):
        assert celery_app.conf.task_serializer == "json"
        assert "auto-complete-past-appointments" in celery_app.conf.beat_schedule
