from datetime import datetime, time, timedelta

import pytest

from slotbook.core.exceptions import PolicyViolationException
from slotbook.services.booking_window import assert_within_booking_window, check_booking_window

NOW = datetime(2030, 1, 7, 8, 0)


def _split(moment: datetime):
    return moment.date(), moment.time()


def test_119_minutes_ahead_is_rejected():
    result = check_booking_window(*_split(NOW + timedelta(minutes=119)), NOW, min_hours=2)
    assert not result.valid
    assert result.code == "BOOKING_TOO_SOON"
    assert result.reason == (
        "Bookings must be made at least 2 hours in advance. "
        "Please select a time at least 1 hours from now."
    )


def test_121_minutes_ahead_is_accepted():
    result = check_booking_window(*_split(NOW + timedelta(minutes=121)), NOW, min_hours=2)
    assert result.valid
    assert result.reason is None


def test_exact_minimum_bound_is_accepted():
    assert check_booking_window(*_split(NOW + timedelta(hours=2)), NOW, min_hours=2).valid


def test_hours_needed_rounds_up():
    # Booking is 30 minutes from now; 90 minutes short of the 2 hour minimum
    result = check_booking_window(*_split(NOW + timedelta(minutes=30)), NOW, min_hours=2)
    assert "at least 2 hours from now" in result.reason


def test_past_time_is_rejected():
    result = check_booking_window(*_split(NOW - timedelta(days=1)), NOW)
    assert not result.valid
    assert result.code == "BOOKING_TOO_SOON"


def test_beyond_max_days_is_rejected():
    result = check_booking_window(*_split(NOW + timedelta(days=90, minutes=1)), NOW, max_days=90)
    assert not result.valid
    assert result.code == "BOOKING_TOO_FAR_AHEAD"
    assert result.reason == "Bookings can only be made up to 90 days in advance."


def test_exact_max_bound_is_accepted():
    assert check_booking_window(*_split(NOW + timedelta(days=90)), NOW, max_days=90).valid


def test_bounds_are_reported():
    result = check_booking_window(NOW.date() + timedelta(days=1), time(10), NOW)
    assert result.earliest == NOW + timedelta(hours=2)
    assert result.latest == NOW + timedelta(days=90)
    assert result.details["min_hours"] == 2


def test_assert_raises_policy_violation_with_details():
    with pytest.raises(PolicyViolationException) as exc_info:
        assert_within_booking_window(NOW.date(), time(9), NOW)
    assert exc_info.value.code == "BOOKING_TOO_SOON"
    assert exc_info.value.details["earliest"] == (NOW + timedelta(hours=2)).isoformat()
    assert exc_info.value.to_http_exception().status_code == 422


def test_timezone_aware_now_is_treated_as_wall_clock():
    from datetime import timezone

    aware_now = NOW.replace(tzinfo=timezone.utc)
    assert check_booking_window(*_split(NOW + timedelta(hours=3)), aware_now).valid
