"""Route tests for availability and appointment endpoints."""

from datetime import time, timedelta
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from slotbook.api.dependencies import get_reservation_service
from slotbook.main import app
from slotbook.models import AppointmentStatus

API = "/api/v1"


def _payload(provider, service, booking_date, start="10:00", **overrides):
    payload = {
        "provider_id": provider.id,
        "service_id": service.id,
        "appointment_date": booking_date.isoformat(),
        "start_time": start,
        "customer": {"name": "Jamie Rivera", "email": "jamie@example.com", "phone": "555-123-4567"},
    }
    payload.update(overrides)
    return payload


class TestAvailabilityRoutes:
    def test_slots_listed_as_hhmm(self, client, provider, service, booking_date):
        response = client.get(
            f"{API}/providers/{provider.id}/services/{service.id}/slots",
            params={"date": booking_date.isoformat()},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["appointment_date"] == booking_date.isoformat()
        assert body["slots"][0] == "09:00"
        assert body["slots"][-1] == "16:15"

    def test_booked_slot_disappears(self, client, provider, service, booking_date, make_appointment):
        make_appointment(time(10, 0), on=booking_date)
        response = client.get(
            f"{API}/providers/{provider.id}/services/{service.id}/slots",
            params={"date": booking_date.isoformat()},
        )
        assert "10:00" not in response.json()["slots"]

    def test_unknown_provider_is_404(self, client, service, booking_date):
        response = client.get(
            f"{API}/providers/missing/services/{service.id}/slots",
            params={"date": booking_date.isoformat()},
        )
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "PROVIDER_NOT_FOUND"

    def test_date_is_required(self, client, provider, service):
        response = client.get(f"{API}/providers/{provider.id}/services/{service.id}/slots")
        assert response.status_code == 422


class TestCreateAppointment:
    def test_created_pending(self, client, provider, service, booking_date):
        response = client.post(f"{API}/appointments", json=_payload(provider, service, booking_date))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending"
        assert body["start_time"] == "10:00"
        assert body["customer_email"] == "jamie@example.com"

    def test_provider_initiated_is_confirmed(self, client, provider, service, booking_date):
        response = client.post(
            f"{API}/appointments",
            json=_payload(provider, service, booking_date, initiated_by="provider"),
        )
        assert response.status_code == 201
        assert response.json()["status"] == "confirmed"

    def test_overlap_is_409(self, client, provider, service, booking_date, make_appointment):
        make_appointment(time(10, 0), on=booking_date)
        response = client.post(
            f"{API}/appointments", json=_payload(provider, service, booking_date, start="10:30")
        )
        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "SLOT_CONFLICT"
        assert "09:45-10:45" in detail["message"]

    def test_too_soon_is_422(self, client, provider, service, clock):
        response = client.post(
            f"{API}/appointments",
            json=_payload(provider, service, clock.now.date(), start="09:00"),
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "BOOKING_TOO_SOON"

    def test_malformed_contact_is_422(self, client, provider, service, booking_date):
        payload = _payload(provider, service, booking_date)
        payload["customer"]["email"] = "not-an-email"
        assert client.post(f"{API}/appointments", json=payload).status_code == 422

    def test_unknown_fields_rejected(self, client, provider, service, booking_date):
        payload = _payload(provider, service, booking_date, surprise=True)
        assert client.post(f"{API}/appointments", json=payload).status_code == 422

    def test_lock_timeout_is_503_with_retry_after(
        self, client, db, clock, publisher, provider, service, booking_date
    ):
        from slotbook.services.reservation_service import ReservationService

        reservation_service = ReservationService(db, event_publisher=publisher, clock=clock)
        app.dependency_overrides[get_reservation_service] = lambda: reservation_service
        error = OperationalError("INSERT", {}, Exception("database is locked"))
        with patch.object(reservation_service.lock_repository, "acquire", side_effect=error):
            response = client.post(
                f"{API}/appointments", json=_payload(provider, service, booking_date)
            )

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "2"
        assert response.json()["detail"]["code"] == "RESERVATION_TIMEOUT"


class TestLifecycleRoutes:
    def test_get_and_404(self, client, make_appointment):
        appointment = make_appointment(time(10, 0))
        assert client.get(f"{API}/appointments/{appointment.id}").json()["id"] == appointment.id
        assert client.get(f"{API}/appointments/missing").status_code == 404

    def test_confirm(self, client, make_appointment):
        appointment = make_appointment(time(10, 0), status=AppointmentStatus.PENDING)
        response = client.post(
            f"{API}/appointments/{appointment.id}/status", json={"status": "confirmed"}
        )
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

    def test_cancel_without_reason_is_400(self, client, make_appointment):
        appointment = make_appointment(time(10, 0))
        response = client.post(
            f"{API}/appointments/{appointment.id}/status",
            json={"status": "cancelled", "actor": "customer"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_CANCELLATION_REASON"

    def test_terminal_status_is_immutable(self, client, make_appointment):
        appointment = make_appointment(time(10, 0), status=AppointmentStatus.COMPLETED)
        response = client.post(
            f"{API}/appointments/{appointment.id}/status",
            json={"status": "cancelled", "reason": "oops"},
        )
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

    def test_reschedule(self, client, make_appointment, booking_date):
        appointment = make_appointment(time(10, 0), on=booking_date)
        next_day = booking_date + timedelta(days=1)
        response = client.post(
            f"{API}/appointments/{appointment.id}/reschedule",
            json={"new_date": next_day.isoformat(), "new_time": "13:30"},
        )
        assert response.status_code == 200
        assert response.json()["appointment_date"] == next_day.isoformat()
        assert response.json()["start_time"] == "13:30"

    def test_list_filters(self, client, make_appointment, booking_date, provider):
        make_appointment(time(14, 0), on=booking_date)
        make_appointment(time(9, 0), on=booking_date, status=AppointmentStatus.CANCELLED)
        response = client.get(
            f"{API}/appointments",
            params={"provider_id": provider.id, "date": booking_date.isoformat(), "status": "confirmed"},
        )
        assert response.status_code == 200
        assert [a["start_time"] for a in response.json()] == ["14:00"]

    def test_auto_complete(self, client, make_appointment, clock):
        make_appointment(time(9, 0), on=clock.now.date() - timedelta(days=1))
        response = client.post(f"{API}/appointments/auto-complete")
        assert response.status_code == 200
        assert response.json() == {"completed_count": 1, "failed_ids": []}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_metrics_exposed(client, provider, service, booking_date):
    client.post(f"{API}/appointments", json=_payload(provider, service, booking_date))
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "slotbook_reservations_total" in response.text
