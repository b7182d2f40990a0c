# backend/slotbook/repositories/provider_repository.py
"""
Provider Repository

Read-only lookups for providers, their services and their weekly operating
hours. Availability and reservation both resolve their inputs here.
"""

import logging
from typing import List, Optional, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.provider import OperatingHours, Provider
from ..models.service import Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProviderRepository(BaseRepository[Provider]):
    def __init__(self, db: Session):
        super().__init__(db, Provider)
        self.logger = logging.getLogger(__name__)

    def get_active_provider(self, provider_id: str) -> Optional[Provider]:
        try:
            result = (
                self.db.query(Provider)
                .filter(Provider.id == provider_id, Provider.is_active.is_(True))
                .first()
            )
            return cast(Optional[Provider], result)
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting provider {provider_id}: {str(e)}")
            raise RepositoryException(f"Failed to get provider: {str(e)}")

    def get_service(self, service_id: str, provider_id: Optional[str] = None) -> Optional[Service]:
        """
        Get a service by id, optionally scoped to its provider.

        Inactive services are returned too; callers decide whether an
        inactive service is acceptable for their operation.
        """
        try:
            query = self.db.query(Service).filter(Service.id == service_id)
            if provider_id is not None:
                query = query.filter(Service.provider_id == provider_id)
            return cast(Optional[Service], query.first())
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting service {service_id}: {str(e)}")
            raise RepositoryException(f"Failed to get service: {str(e)}")

    def get_operating_hours(self, provider_id: str) -> List[OperatingHours]:
        """All configured weekdays for a provider, Sunday first."""
        try:
            return cast(
                List[OperatingHours],
                self.db.query(OperatingHours)
                .filter(OperatingHours.provider_id == provider_id)
                .order_by(OperatingHours.day_of_week)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting operating hours: {str(e)}")
            raise RepositoryException(f"Failed to get operating hours: {str(e)}")

    def get_hours_for_day(self, provider_id: str, day_of_week: int) -> Optional[OperatingHours]:
        """
        Operating hours for one weekday (0 = Sunday).

        Returns None when the provider has no row for that day, which callers
        treat the same as a closed day.
        """
        for hours in self.get_operating_hours(provider_id):
            if hours.day_of_week == day_of_week:
                return hours
        return None
