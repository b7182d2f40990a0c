# backend/slotbook/services/slot_generator.py
"""
Candidate slot generation.

Walks a provider's opening window in fixed steps and yields every start time
whose service plus trailing buffer still fits before closing. Generation is
pure: it never looks at appointments, the conflict checker filters later.
"""

from datetime import date, datetime, time, timedelta
from typing import Iterator, List, Optional

from ..core.exceptions import ValidationException
from ..models.provider import OperatingHours

DEFAULT_INTERVAL_MINUTES = 15


def _validate(duration_minutes: int, interval_minutes: int, buffer_minutes: int) -> None:
    if duration_minutes is None or duration_minutes <= 0:
        raise ValidationException(
            "Service duration must be a positive number of minutes",
            code="INVALID_DURATION",
            details={"duration_minutes": duration_minutes},
        )
    if interval_minutes is None or interval_minutes <= 0:
        raise ValidationException(
            "Slot interval must be a positive number of minutes",
            code="INVALID_INTERVAL",
            details={"interval_minutes": interval_minutes},
        )
    if buffer_minutes is None or buffer_minutes < 0:
        raise ValidationException(
            "Buffer must not be negative",
            code="INVALID_BUFFER",
            details={"buffer_minutes": buffer_minutes},
        )


def iter_slot_starts(
    open_time: Optional[time],
    close_time: Optional[time],
    duration_minutes: int,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
    buffer_minutes: int = 0,
) -> Iterator[time]:
    """
    Yield candidate start times in ascending order.

    A start qualifies when ``start + duration + buffer <= close_time``.
    Missing hours yield nothing. Parameters are validated before the first
    value is produced.
    """
    _validate(duration_minutes, interval_minutes, buffer_minutes)
    if open_time is None or close_time is None:
        return

    anchor = date.min
    cursor = datetime.combine(anchor, open_time)
    closing = datetime.combine(anchor, close_time)
    step = timedelta(minutes=interval_minutes)
    occupied = timedelta(minutes=duration_minutes + buffer_minutes)

    while cursor + occupied <= closing:
        yield cursor.time()
        cursor += step


def generate_slots(
    open_time: Optional[time],
    close_time: Optional[time],
    duration_minutes: int,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
    buffer_minutes: int = 0,
) -> List[time]:
    return list(
        iter_slot_starts(open_time, close_time, duration_minutes, interval_minutes, buffer_minutes)
    )


def generate_slots_for_hours(
    hours: Optional[OperatingHours],
    duration_minutes: int,
    interval_minutes: int = DEFAULT_INTERVAL_MINUTES,
    buffer_minutes: int = 0,
) -> List[time]:
    """Slots for one day's operating-hours row; closed or missing days give []."""
    _validate(duration_minutes, interval_minutes, buffer_minutes)
    if hours is None or not hours.is_open:
        return []
    return generate_slots(
        hours.open_time, hours.close_time, duration_minutes, interval_minutes, buffer_minutes
    )
