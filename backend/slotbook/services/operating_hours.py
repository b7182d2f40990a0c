# backend/slotbook/services/operating_hours.py
"""Operating-hours policy for a single requested slot."""

from datetime import date, time, timedelta
from typing import Optional

from ..core.exceptions import PolicyViolationException
from ..models.provider import OperatingHours
from ..utils.intervals import combine


def assert_within_operating_hours(
    hours: Optional[OperatingHours],
    day: date,
    start_time: time,
    duration_minutes: int,
    buffer_minutes: int,
) -> None:
    """
    Require the slot and its trailing buffer to fit inside the day's hours.

    Uses the same fit rule as slot generation, so any offered slot passes.
    """
    if hours is None or not hours.is_open:
        raise PolicyViolationException(
            f"The provider is closed on {day:%A}s. Please choose another date.",
            code="PROVIDER_CLOSED",
            details={"date": day.isoformat()},
        )

    start = combine(day, start_time)
    opening = combine(day, hours.open_time)
    closing = combine(day, hours.close_time)
    end = start + timedelta(minutes=duration_minutes + buffer_minutes)

    if start < opening or end > closing:
        raise PolicyViolationException(
            f"Appointments on {day:%A} must start at or after {hours.open_time:%H:%M} and "
            f"finish, including the {buffer_minutes}-minute buffer, by {hours.close_time:%H:%M}.",
            code="OUTSIDE_OPERATING_HOURS",
            details={
                "date": day.isoformat(),
                "start_time": start_time.strftime("%H:%M"),
                "open_time": hours.open_time.strftime("%H:%M"),
                "close_time": hours.close_time.strftime("%H:%M"),
                "duration_minutes": duration_minutes,
                "buffer_minutes": buffer_minutes,
            },
        )
