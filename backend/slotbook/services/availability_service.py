# backend/slotbook/services/availability_service.py
"""
Availability Service

Answers "which start times can a customer book for this service on this
date?". The offer set is the generated slots for the provider's hours on
that weekday, minus starts outside the booking window, minus starts that
overlap an active appointment.
"""

from datetime import date, time
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import NotFoundException
from ..models.provider import weekday_index
from ..repositories import RepositoryFactory
from ..repositories.provider_repository import ProviderRepository
from .base import BaseService, Clock
from .booking_window import check_booking_window
from .conflict_checker import ConflictChecker
from .slot_generator import generate_slots_for_hours

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    def __init__(
        self,
        db: Session,
        conflict_checker: Optional[ConflictChecker] = None,
        provider_repository: Optional[ProviderRepository] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock=clock)
        self.logger = logging.getLogger(__name__)
        self.provider_repository = (
            provider_repository or RepositoryFactory.create_provider_repository(db)
        )
        self.conflict_checker = conflict_checker or ConflictChecker(db, clock=clock)

    @BaseService.measure_operation("get_available_slots")
    def get_available_slots(self, provider_id: str, service_id: str, target_date: date) -> List[time]:
        """
        Bookable start times for a service on a date, ascending.

        Args:
            provider_id: Provider offering the service
            service_id: Service to book
            target_date: Calendar date to check

        Returns:
            Start times that fit the provider's hours, fall inside the booking
            window and overlap no active appointment. Closed days give [].

        Raises:
            NotFoundException: provider or service missing, inactive, or the
                service belongs to another provider
        """
        provider = self.provider_repository.get_active_provider(provider_id)
        if provider is None:
            raise NotFoundException(f"Provider {provider_id} not found", code="PROVIDER_NOT_FOUND")

        service = self.provider_repository.get_service(service_id, provider_id=provider_id)
        if service is None or not service.is_active:
            raise NotFoundException(f"Service {service_id} not found", code="SERVICE_NOT_FOUND")

        hours = self.provider_repository.get_hours_for_day(provider_id, weekday_index(target_date))
        candidates = generate_slots_for_hours(
            hours,
            service.duration_minutes,
            interval_minutes=settings.slot_interval_minutes,
            buffer_minutes=self.conflict_checker.buffer_minutes,
        )
        if not candidates:
            return []

        now = self.now()
        in_window = [
            start
            for start in candidates
            if check_booking_window(
                target_date,
                start,
                now,
                min_hours=settings.min_booking_hours,
                max_days=settings.max_booking_days,
            ).valid
        ]
        if not in_window:
            return []

        available = self.conflict_checker.filter_available_slots(
            provider_id, target_date, in_window, service.duration_minutes
        )
        self.logger.debug(
            "Computed available slots",
            extra={
                "provider_id": provider_id,
                "service_id": service_id,
                "date": target_date.isoformat(),
                "generated": len(candidates),
                "available": len(available),
            },
        )
        return available
