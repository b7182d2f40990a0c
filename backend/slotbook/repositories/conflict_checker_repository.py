# backend/slotbook/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository

Loads the appointments that can block a slot: those still occupying a
provider's calendar on one date. Each row comes back with the duration of
its service so the checker can compute occupancy without extra queries.
"""

from dataclasses import dataclass
from datetime import date, time
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..database import with_db_retry
from ..models.appointment import ACTIVE_STATUSES, Appointment
from ..models.service import Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OccupiedSlot:
    """An active appointment reduced to what overlap checks need."""

    appointment_id: str
    start_time: time
    duration_minutes: Optional[int]


class ConflictCheckerRepository(BaseRepository[Appointment]):
    def __init__(self, db: Session):
        """Initialize with Appointment model as primary."""
        super().__init__(db, Appointment)
        self.logger = logging.getLogger(__name__)

    def get_occupied_slots(
        self,
        provider_id: str,
        check_date: date,
        exclude_appointment_id: Optional[str] = None,
        retry: bool = True,
    ) -> List[OccupiedSlot]:
        """
        Get active appointments for a provider on a date.

        Args:
            provider_id: The provider to check
            check_date: The calendar date
            exclude_appointment_id: Appointment to leave out (used by reschedule)
            retry: Retry transient disconnects. Must be False inside a
                reservation transaction, where the session cannot recover.

        Returns:
            Occupied slots ordered by start time. ``duration_minutes`` is None
            when the appointment's service no longer resolves.
        """
        try:
            query = (
                self.db.query(Appointment.id, Appointment.start_time, Service.duration_minutes)
                .outerjoin(Service, Service.id == Appointment.service_id)
                .filter(
                    Appointment.provider_id == provider_id,
                    Appointment.appointment_date == check_date,
                    Appointment.status.in_([s.value for s in ACTIVE_STATUSES]),
                )
            )
            if exclude_appointment_id:
                query = query.filter(Appointment.id != exclude_appointment_id)

            query = query.order_by(Appointment.start_time)
            if retry:
                rows = with_db_retry("conflict_checker.get_occupied_slots", query.all)
            else:
                rows = query.all()
            return [
                OccupiedSlot(appointment_id=row[0], start_time=row[1], duration_minutes=row[2])
                for row in rows
            ]
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting appointments for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict appointments: {str(e)}")
