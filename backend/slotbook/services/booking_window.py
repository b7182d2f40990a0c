# backend/slotbook/services/booking_window.py
"""
Booking window validation.

A booking must start no sooner than ``min_hours`` from now and no later than
``max_days`` from now. Both bounds are inclusive and are computed on naive
local wall-clock datetimes.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
import math
from typing import Any, Dict, Optional

from ..core.exceptions import PolicyViolationException

DEFAULT_MIN_HOURS = 2
DEFAULT_MAX_DAYS = 90


@dataclass(frozen=True)
class BookingWindowCheck:
    valid: bool
    booking_time: datetime
    earliest: datetime
    latest: datetime
    reason: Optional[str] = None
    code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


def check_booking_window(
    booking_date: date,
    start_time: time,
    now: datetime,
    min_hours: int = DEFAULT_MIN_HOURS,
    max_days: int = DEFAULT_MAX_DAYS,
) -> BookingWindowCheck:
    booking_time = datetime.combine(booking_date, start_time.replace(tzinfo=None))
    current = now.replace(tzinfo=None)
    earliest = current + timedelta(hours=min_hours)
    latest = current + timedelta(days=max_days)
    bounds = {
        "booking_time": booking_time.isoformat(),
        "earliest": earliest.isoformat(),
        "latest": latest.isoformat(),
        "min_hours": min_hours,
        "max_days": max_days,
    }

    if booking_time < earliest:
        hours_needed = math.ceil((earliest - booking_time) / timedelta(hours=1))
        return BookingWindowCheck(
            valid=False,
            booking_time=booking_time,
            earliest=earliest,
            latest=latest,
            reason=(
                f"Bookings must be made at least {min_hours} hours in advance. "
                f"Please select a time at least {hours_needed} hours from now."
            ),
            code="BOOKING_TOO_SOON",
            details=bounds,
        )

    if booking_time > latest:
        return BookingWindowCheck(
            valid=False,
            booking_time=booking_time,
            earliest=earliest,
            latest=latest,
            reason=f"Bookings can only be made up to {max_days} days in advance.",
            code="BOOKING_TOO_FAR_AHEAD",
            details=bounds,
        )

    return BookingWindowCheck(
        valid=True, booking_time=booking_time, earliest=earliest, latest=latest, details=bounds
    )


def assert_within_booking_window(
    booking_date: date,
    start_time: time,
    now: datetime,
    min_hours: int = DEFAULT_MIN_HOURS,
    max_days: int = DEFAULT_MAX_DAYS,
) -> BookingWindowCheck:
    """Raise PolicyViolationException when the booking time is outside the window."""
    result = check_booking_window(booking_date, start_time, now, min_hours, max_days)
    if not result.valid:
        raise PolicyViolationException(
            result.reason or "Booking time is outside the booking window.",
            code=result.code or "BOOKING_POLICY_VIOLATION",
            details=result.details,
        )
    return result
