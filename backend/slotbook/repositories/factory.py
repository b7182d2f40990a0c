# backend/slotbook/repositories/factory.py
"""
Repository Factory

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .appointment_repository import AppointmentRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .provider_day_lock_repository import ProviderDayLockRepository
    from .provider_repository import ProviderRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Centralizes repository creation so services never construct
    repositories directly and tests can patch a single seam.
    """

    @staticmethod
    def create_provider_repository(db: Session) -> "ProviderRepository":
        """Create repository for provider, service and operating-hours lookups."""
        from .provider_repository import ProviderRepository

        return ProviderRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_appointment_repository(db: Session) -> "AppointmentRepository":
        """Create repository for appointment data access."""
        from .appointment_repository import AppointmentRepository

        return AppointmentRepository(db)

    @staticmethod
    def create_provider_day_lock_repository(db: Session) -> "ProviderDayLockRepository":
        """Create repository for provider/day reservation locks."""
        from .provider_day_lock_repository import ProviderDayLockRepository

        return ProviderDayLockRepository(db)
