# backend/slotbook/services/reservation_service.py
"""
Reservation Service

The only way an appointment comes into existence. A reservation re-checks
everything the customer was shown (booking window, provider and service,
operating hours) against the current clock, then claims the slot inside one
transaction that serializes writers for the same provider and date.

Two strategies exist:
- StrictReservation: provider/day row lock, re-check, insert, commit.
- BestEffortReservation: re-check and insert without the lock. Degraded;
  every use is logged at WARNING and counted.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, time
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ActorRole, ReservationMode
from ..core.exceptions import (
    DomainException,
    NotFoundException,
    RepositoryException,
    ReservationTimeoutException,
    SlotConflictException,
    StoreException,
    ValidationException,
)
from ..core.slot_lock import slot_lock
from ..events import AppointmentReserved, EventPublisher
from ..models.appointment import Appointment, AppointmentStatus
from ..models.provider import weekday_index
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.appointment_repository import AppointmentRepository
from ..repositories.provider_day_lock_repository import ProviderDayLockRepository
from ..repositories.provider_repository import ProviderRepository
from ..utils import contact_validation
from .base import BaseService, Clock
from .booking_window import assert_within_booking_window
from .conflict_checker import ConflictChecker
from .operating_hours import assert_within_operating_hours

logger = logging.getLogger(__name__)

_LOCK_UNAVAILABLE_SNIPPETS = ("no such table", "does not exist", "undefinedtable")


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    email: str
    phone: Optional[str] = None
    notes: Optional[str] = None
    customer_id: Optional[str] = None

    def cleaned(self) -> "CustomerInfo":
        """Return a normalized copy or raise ValidationException naming the bad field."""
        try:
            return CustomerInfo(
                name=contact_validation.clean_name(self.name),
                email=contact_validation.clean_email(self.email),
                phone=contact_validation.clean_phone(self.phone),
                notes=contact_validation.clean_notes(self.notes),
                customer_id=self.customer_id,
            )
        except ValueError as exc:
            raise ValidationException(str(exc), code="INVALID_CUSTOMER_INFO") from exc


@dataclass(frozen=True)
class ReservationRequest:
    provider_id: str
    service_id: str
    appointment_date: date
    start_time: time
    customer: CustomerInfo
    initiated_by: ActorRole = ActorRole.CUSTOMER

    @property
    def initial_status(self) -> AppointmentStatus:
        if self.initiated_by == ActorRole.CUSTOMER:
            return AppointmentStatus.PENDING
        return AppointmentStatus.CONFIRMED


def is_lock_unavailable(exc: SQLAlchemyError) -> bool:
    """True when the lock table itself is missing, as opposed to a lock wait failing."""
    if isinstance(exc, ProgrammingError):
        return True
    message = str(exc).lower()
    return any(snippet in message for snippet in _LOCK_UNAVAILABLE_SNIPPETS)


class ReservationStrategy(ABC):
    """Claims one slot inside the caller's transaction; the caller commits."""

    mode: ReservationMode

    def __init__(
        self,
        db: Session,
        conflict_checker: ConflictChecker,
        appointment_repository: AppointmentRepository,
    ):
        self.db = db
        self.conflict_checker = conflict_checker
        self.appointment_repository = appointment_repository

    def _check_and_insert(self, request: ReservationRequest, duration_minutes: int) -> Appointment:
        self.conflict_checker.assert_slot_free(
            request.provider_id,
            request.appointment_date,
            request.start_time,
            duration_minutes,
        )
        appointment = self.appointment_repository.insert_appointment(
            provider_id=request.provider_id,
            service_id=request.service_id,
            customer_id=request.customer.customer_id,
            appointment_date=request.appointment_date,
            start_time=request.start_time,
            status=AppointmentStatus.PENDING,
            customer_name=request.customer.name,
            customer_email=request.customer.email,
            customer_phone=request.customer.phone,
            notes=request.customer.notes,
        )
        if request.initial_status == AppointmentStatus.CONFIRMED:
            appointment.confirm()
            self.appointment_repository.flush()
        return appointment

    @abstractmethod
    def reserve(self, request: ReservationRequest, duration_minutes: int) -> Appointment:
        """Claim the slot or raise; must not commit."""


class BestEffortReservation(ReservationStrategy):
    """Re-check then insert with no lock held. Two racing requests can both pass the re-check."""

    mode = ReservationMode.BEST_EFFORT

    def reserve(
        self, request: ReservationRequest, duration_minutes: int, reason: str = "configured"
    ) -> Appointment:
        logger.warning(
            "reservation_degraded_mode",
            extra={
                "event": "reservation_degraded_mode",
                "reason": reason,
                "provider_id": request.provider_id,
                "date": request.appointment_date.isoformat(),
            },
        )
        prometheus_metrics.record_degraded_reservation(reason)
        return self._check_and_insert(request, duration_minutes)


class StrictReservation(ReservationStrategy):
    """Serialize on the provider/day lock row, then re-check and insert."""

    mode = ReservationMode.STRICT

    def __init__(
        self,
        db: Session,
        conflict_checker: ConflictChecker,
        appointment_repository: AppointmentRepository,
        lock_repository: ProviderDayLockRepository,
        allow_degraded_fallback: bool = False,
    ):
        super().__init__(db, conflict_checker, appointment_repository)
        self.lock_repository = lock_repository
        self.allow_degraded_fallback = allow_degraded_fallback

    def reserve(self, request: ReservationRequest, duration_minutes: int) -> Appointment:
        try:
            self.lock_repository.acquire(request.provider_id, request.appointment_date)
        except (OperationalError, ProgrammingError) as exc:
            if not is_lock_unavailable(exc):
                raise
            self.db.rollback()
            if not self.allow_degraded_fallback:
                raise StoreException(
                    "Reservations are temporarily unavailable. Please try again shortly.",
                    code="RESERVATION_LOCK_UNAVAILABLE",
                ) from exc
            logger.error(
                "reservation_lock_unavailable_fallback",
                extra={
                    "event": "reservation_lock_unavailable_fallback",
                    "provider_id": request.provider_id,
                    "date": request.appointment_date.isoformat(),
                    "error": str(exc),
                },
            )
            fallback = BestEffortReservation(
                self.db, self.conflict_checker, self.appointment_repository
            )
            return fallback.reserve(request, duration_minutes, reason="lock_unavailable")

        return self._check_and_insert(request, duration_minutes)


class ReservationService(BaseService):
    """
    Atomic "claim this slot or fail" for customers and providers.

    Never picks a different time on the caller's behalf: a lost race is a
    SlotConflictException and the caller refreshes availability.
    """

    def __init__(
        self,
        db: Session,
        conflict_checker: Optional[ConflictChecker] = None,
        provider_repository: Optional[ProviderRepository] = None,
        appointment_repository: Optional[AppointmentRepository] = None,
        lock_repository: Optional[ProviderDayLockRepository] = None,
        event_publisher: Optional[EventPublisher] = None,
        mode: Optional[ReservationMode] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock=clock)
        self.logger = logging.getLogger(__name__)
        self.conflict_checker = conflict_checker or ConflictChecker(db, clock=clock)
        self.provider_repository = (
            provider_repository or RepositoryFactory.create_provider_repository(db)
        )
        self.appointment_repository = (
            appointment_repository or RepositoryFactory.create_appointment_repository(db)
        )
        self.lock_repository = (
            lock_repository or RepositoryFactory.create_provider_day_lock_repository(db)
        )
        self.event_publisher = event_publisher or EventPublisher()
        self.strategy = self._build_strategy(ReservationMode(mode or settings.reservation_strategy))

    def _build_strategy(self, mode: ReservationMode) -> ReservationStrategy:
        if mode == ReservationMode.BEST_EFFORT:
            return BestEffortReservation(self.db, self.conflict_checker, self.appointment_repository)
        return StrictReservation(
            self.db,
            self.conflict_checker,
            self.appointment_repository,
            self.lock_repository,
            allow_degraded_fallback=settings.reservation_allow_degraded_fallback,
        )

    @BaseService.measure_operation("reserve")
    def reserve(
        self,
        provider_id: str,
        service_id: str,
        appointment_date: date,
        start_time: time,
        customer_info: CustomerInfo,
        initiated_by: ActorRole = ActorRole.CUSTOMER,
    ) -> Appointment:
        """
        Reserve a slot.

        Args:
            provider_id: Provider to book with
            service_id: Service being booked (must belong to the provider)
            appointment_date: Calendar date
            start_time: Wall-clock start time
            customer_info: Contact details for the booking
            initiated_by: CUSTOMER creates a pending appointment, others a confirmed one

        Returns:
            The committed appointment

        Raises:
            ValidationException: malformed contact fields
            PolicyViolationException: outside the booking window or operating hours
            NotFoundException: provider or service missing or inactive
            SlotConflictException: the slot overlaps an active appointment
            ReservationTimeoutException: lock wait failed; safe to retry
            StoreException: the database failed; safe to retry
        """
        request = ReservationRequest(
            provider_id=provider_id,
            service_id=service_id,
            appointment_date=appointment_date,
            start_time=start_time,
            customer=customer_info.cleaned(),
            initiated_by=ActorRole(initiated_by),
        )

        try:
            duration_minutes = self._validate_request(request)
        except DomainException as exc:
            prometheus_metrics.record_reservation(self.strategy.mode.value, _outcome_for(exc))
            raise

        self.log_operation(
            "reserve",
            provider_id=provider_id,
            service_id=service_id,
            date=appointment_date.isoformat(),
            start_time=start_time.strftime("%H:%M"),
            initiated_by=request.initiated_by.value,
            strategy=self.strategy.mode.value,
        )

        if settings.slot_lock_enabled:
            with slot_lock(provider_id, appointment_date) as acquired:
                if not acquired:
                    prometheus_metrics.record_reservation(self.strategy.mode.value, "timeout")
                    raise ReservationTimeoutException(
                        details={"provider_id": provider_id, "date": appointment_date.isoformat()}
                    )
                appointment = self._commit(request, duration_minutes)
        else:
            appointment = self._commit(request, duration_minutes)

        self.event_publisher.publish(
            AppointmentReserved(
                appointment_id=appointment.id,
                recipient=appointment.customer_email,
                appointment_date=appointment.appointment_date,
                start_time=appointment.start_time,
                status=appointment.status,
            )
        )
        return appointment

    def _validate_request(self, request: ReservationRequest) -> int:
        """Run every check that does not need the lock; returns the service duration."""
        assert_within_booking_window(
            request.appointment_date,
            request.start_time,
            self.now(),
            min_hours=settings.min_booking_hours,
            max_days=settings.max_booking_days,
        )

        provider = self.provider_repository.get_active_provider(request.provider_id)
        if provider is None:
            raise NotFoundException(
                f"Provider {request.provider_id} not found", code="PROVIDER_NOT_FOUND"
            )

        service = self.provider_repository.get_service(
            request.service_id, provider_id=request.provider_id
        )
        if service is None or not service.is_active:
            raise NotFoundException(
                f"Service {request.service_id} not found", code="SERVICE_NOT_FOUND"
            )

        hours = self.provider_repository.get_hours_for_day(
            request.provider_id, weekday_index(request.appointment_date)
        )
        assert_within_operating_hours(
            hours,
            request.appointment_date,
            request.start_time,
            service.duration_minutes,
            self.conflict_checker.buffer_minutes,
        )
        return int(service.duration_minutes)

    def _commit(self, request: ReservationRequest, duration_minutes: int) -> Appointment:
        mode = self.strategy.mode.value
        details = {
            "provider_id": request.provider_id,
            "date": request.appointment_date.isoformat(),
            "start_time": request.start_time.strftime("%H:%M"),
        }
        try:
            appointment = self.strategy.reserve(request, duration_minutes)
            self.db.commit()
        except DomainException as exc:
            self.db.rollback()
            prometheus_metrics.record_reservation(mode, _outcome_for(exc))
            raise
        except IntegrityError as exc:
            self.db.rollback()
            prometheus_metrics.record_reservation(mode, "conflict")
            raise SlotConflictException(details=details) from exc
        except OperationalError as exc:
            self.db.rollback()
            prometheus_metrics.record_reservation(mode, "timeout")
            self.logger.warning(
                "reservation_lock_timeout",
                extra={**details, "error": str(exc), "error_type": type(exc).__name__},
            )
            raise ReservationTimeoutException(details=details) from exc
        except (SQLAlchemyError, RepositoryException) as exc:
            self.db.rollback()
            prometheus_metrics.record_reservation(mode, "error")
            raise StoreException(f"Database operation failed: {str(exc)}") from exc

        prometheus_metrics.record_reservation(mode, "success")
        self.logger.info(
            "Appointment reserved",
            extra={**details, "appointment_id": appointment.id, "status": appointment.status},
        )
        return appointment


def _outcome_for(exc: DomainException) -> str:
    if isinstance(exc, SlotConflictException):
        return "conflict"
    if isinstance(exc, ReservationTimeoutException):
        return "timeout"
    if isinstance(exc, NotFoundException):
        return "not_found"
    if isinstance(exc, ValidationException):
        return "invalid"
    if isinstance(exc, StoreException):
        return "error"
    return "policy"
