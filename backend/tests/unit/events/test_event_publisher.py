from datetime import date, time
from unittest.mock import Mock

from slotbook.core.config import settings
from slotbook.events import (
    AppointmentCancelled,
    AppointmentReserved,
    AppointmentRescheduled,
    CeleryNotificationSink,
    EventPublisher,
    LoggingNotificationSink,
)
from slotbook.events.publisher import DELIVER_TASK_NAME, build_default_sink


def _reserved() -> AppointmentReserved:
    return AppointmentReserved(
        appointment_id="appt-1",
        recipient="jamie@example.com",
        appointment_date=date(2030, 1, 8),
        start_time=time(10, 0),
        status="pending",
    )


def test_event_payload_is_json_ready():
    payload = _reserved().to_dict()
    assert payload == {
        "appointment_id": "appt-1",
        "recipient": "jamie@example.com",
        "appointment_date": "2030-01-08",
        "start_time": "10:00:00",
        "status": "pending",
        "type": "appointment.reserved",
    }


def test_rescheduled_payload_carries_previous_slot():
    event = AppointmentRescheduled(
        appointment_id="appt-1",
        recipient="jamie@example.com",
        previous_date=date(2030, 1, 8),
        previous_start_time=time(10, 0),
        new_date=date(2030, 1, 9),
        new_start_time=time(11, 30),
    )
    payload = event.to_dict()
    assert payload["type"] == "appointment.rescheduled"
    assert payload["previous_start_time"] == "10:00:00"
    assert payload["new_date"] == "2030-01-09"


def test_publish_hands_payload_to_sink():
    sink = Mock()
    assert EventPublisher(sink=sink).publish(_reserved()) is True
    sink.deliver.assert_called_once()
    assert sink.deliver.call_args[0][0]["type"] == "appointment.reserved"


def test_sink_failure_is_logged_and_swallowed(caplog):
    sink = Mock()
    sink.deliver.side_effect = RuntimeError("smtp down")
    event = AppointmentCancelled(
        appointment_id="appt-1", recipient="jamie@example.com", reason="sick", cancelled_by="customer"
    )
    assert EventPublisher(sink=sink).publish(event) is False
    assert "appointment_notification_failed" in caplog.text


def test_logging_sink_writes_log_record(caplog):
    import logging

    with caplog.at_level(logging.INFO, logger="slotbook.events.publisher"):
        LoggingNotificationSink().deliver(_reserved().to_dict())
    assert "appointment_notification" in caplog.text


def test_celery_sink_sends_named_task():
    app = Mock()
    payload = _reserved().to_dict()
    CeleryNotificationSink(app=app).deliver(payload)
    app.send_task.assert_called_once_with(DELIVER_TASK_NAME, args=[payload])


def test_default_sink_follows_settings(monkeypatch):
    monkeypatch.setattr(settings, "notification_sink", "celery")
    assert isinstance(build_default_sink(), CeleryNotificationSink)
    monkeypatch.setattr(settings, "notification_sink", "log")
    assert isinstance(build_default_sink(), LoggingNotificationSink)
