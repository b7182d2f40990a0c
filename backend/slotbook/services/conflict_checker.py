# backend/slotbook/services/conflict_checker.py
"""
Conflict Checker Service

Decides whether candidate start times collide with appointments that still
occupy a provider's calendar. The same checker runs when slots are offered,
again inside the reservation lock, and for reschedules, so every path
applies one buffer policy.
"""

from datetime import date, time
import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import BufferPolicy
from ..core.exceptions import SlotConflictException
from ..repositories import RepositoryFactory
from ..repositories.conflict_checker_repository import ConflictCheckerRepository, OccupiedSlot
from ..utils.intervals import Interval, candidate_interval, existing_interval
from .base import BaseService, Clock

logger = logging.getLogger(__name__)


class ConflictChecker(BaseService):
    """
    Overlap detection between candidate slots and active appointments.

    Existing appointments are measured with their own service duration; when
    that service no longer resolves the configured default duration is used.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[ConflictCheckerRepository] = None,
        buffer_minutes: Optional[int] = None,
        buffer_policy: Optional[BufferPolicy] = None,
        fallback_duration_minutes: Optional[int] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock=clock)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)
        self.buffer_minutes = (
            settings.booking_buffer_minutes if buffer_minutes is None else buffer_minutes
        )
        self.buffer_policy = BufferPolicy(buffer_policy or settings.buffer_policy)
        self.fallback_duration_minutes = (
            fallback_duration_minutes or settings.default_service_duration_minutes
        )

    def _existing_duration(self, slot: OccupiedSlot) -> int:
        if slot.duration_minutes:
            return slot.duration_minutes
        self.logger.warning(
            "Service for appointment %s could not be resolved, assuming %s minutes",
            slot.appointment_id,
            self.fallback_duration_minutes,
            extra={"appointment_id": slot.appointment_id},
        )
        return self.fallback_duration_minutes

    def _blocked_intervals(
        self, day: date, occupied: Iterable[OccupiedSlot]
    ) -> List[tuple[OccupiedSlot, Interval]]:
        return [
            (
                slot,
                existing_interval(
                    day,
                    slot.start_time,
                    self._existing_duration(slot),
                    self.buffer_minutes,
                    self.buffer_policy,
                ),
            )
            for slot in occupied
        ]

    def find_conflict(
        self,
        day: date,
        start_time: time,
        duration_minutes: int,
        occupied: Sequence[OccupiedSlot],
    ) -> Optional[OccupiedSlot]:
        """Return the first occupied slot that blocks ``start_time``, if any."""
        candidate = candidate_interval(day, start_time, duration_minutes, self.buffer_minutes)
        for slot, blocked in self._blocked_intervals(day, occupied):
            if candidate.overlaps(blocked):
                return slot
        return None

    def filter_slots(
        self,
        day: date,
        candidates: Iterable[time],
        duration_minutes: int,
        occupied: Sequence[OccupiedSlot],
    ) -> List[time]:
        """
        Keep the candidates that overlap no occupied slot.

        Input order is preserved.
        """
        blocked = [interval for _, interval in self._blocked_intervals(day, occupied)]
        accepted = []
        for start in candidates:
            candidate = candidate_interval(day, start, duration_minutes, self.buffer_minutes)
            if not any(candidate.overlaps(other) for other in blocked):
                accepted.append(start)
        return accepted

    def get_occupied_slots(
        self,
        provider_id: str,
        day: date,
        exclude_appointment_id: Optional[str] = None,
        retry: bool = True,
    ) -> List[OccupiedSlot]:
        return self.repository.get_occupied_slots(
            provider_id, day, exclude_appointment_id, retry=retry
        )

    @BaseService.measure_operation("filter_available_slots")
    def filter_available_slots(
        self,
        provider_id: str,
        day: date,
        candidates: Iterable[time],
        duration_minutes: int,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[time]:
        occupied = self.get_occupied_slots(provider_id, day, exclude_appointment_id)
        return self.filter_slots(day, candidates, duration_minutes, occupied)

    @BaseService.measure_operation("assert_slot_free")
    def assert_slot_free(
        self,
        provider_id: str,
        day: date,
        start_time: time,
        duration_minutes: int,
        exclude_appointment_id: Optional[str] = None,
    ) -> None:
        """
        Raise SlotConflictException when the slot overlaps an active appointment.

        The message names the window the conflicting appointment holds.
        """
        occupied = self.get_occupied_slots(provider_id, day, exclude_appointment_id, retry=False)
        conflict = self.find_conflict(day, start_time, duration_minutes, occupied)
        if conflict is None:
            return

        held = existing_interval(
            day,
            conflict.start_time,
            self._existing_duration(conflict),
            self.buffer_minutes,
            self.buffer_policy,
        )
        self.logger.info(
            "Slot conflict detected",
            extra={
                "provider_id": provider_id,
                "date": day.isoformat(),
                "requested_start": start_time.strftime("%H:%M"),
                "conflicting_appointment_id": conflict.appointment_id,
            },
        )
        raise SlotConflictException(
            f"This time slot is no longer available: it overlaps an existing appointment "
            f"holding {held.describe()} (including the {self.buffer_minutes}-minute buffer). "
            f"Please refresh and select another time.",
            details={
                "provider_id": provider_id,
                "date": day.isoformat(),
                "start_time": start_time.strftime("%H:%M"),
                "conflicting_appointment_id": conflict.appointment_id,
                "blocked_window": held.describe(),
            },
        )
