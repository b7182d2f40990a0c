"""
Occupancy intervals.

An appointment occupies ``[start, start + duration + buffer)`` on its
provider's calendar. Intervals are half-open, so two bookings whose windows
only touch at an endpoint do not overlap.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from ..core.enums import BufferPolicy


@dataclass(frozen=True)
class Interval:
    """Half-open wall-clock interval ``[start, end)``."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError("Interval end must not precede its start")

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end

    @property
    def minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def describe(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


def combine(day: date, at: time) -> datetime:
    """Wall-clock datetime for a calendar day and a time of day."""
    return datetime.combine(day, at.replace(tzinfo=None))


def occupancy_interval(
    day: date, start_time: time, duration_minutes: int, buffer_minutes: int
) -> Interval:
    """The calendar window a booking reserves, buffer appended after the service."""
    start = combine(day, start_time)
    return Interval(start, start + timedelta(minutes=duration_minutes + buffer_minutes))


def candidate_interval(
    day: date, start_time: time, duration_minutes: int, buffer_minutes: int
) -> Interval:
    # Candidates always carry their own trailing buffer, under every policy.
    return occupancy_interval(day, start_time, duration_minutes, buffer_minutes)


def existing_interval(
    day: date,
    start_time: time,
    duration_minutes: int,
    buffer_minutes: int,
    policy: BufferPolicy = BufferPolicy.SURROUND,
) -> Interval:
    """
    Comparison window for an appointment that already holds the calendar.

    With ``SURROUND`` the window is also padded by the buffer before the
    appointment starts, so no candidate can end its own buffer inside the
    existing appointment's lead-in.
    """
    interval = occupancy_interval(day, start_time, duration_minutes, buffer_minutes)
    if policy == BufferPolicy.SURROUND:
        return Interval(interval.start - timedelta(minutes=buffer_minutes), interval.end)
    return interval

