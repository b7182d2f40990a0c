# backend/slotbook/services/appointment_lifecycle_service.py
"""
Appointment Lifecycle Service

Owns every change made to an appointment after it is reserved:

    pending   -> confirmed | cancelled | completed
    confirmed -> completed | cancelled
    completed, cancelled: terminal

Reschedules move an active appointment in place under the same provider/day
lock as reservations. The auto-completion sweep completes active
appointments whose service has already ended.
"""

from dataclasses import dataclass, field
from datetime import date, time
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ActorRole
from ..core.exceptions import (
    DomainException,
    InvalidStatusTransitionException,
    NotFoundException,
    RepositoryException,
    ReservationTimeoutException,
    SlotConflictException,
    StoreException,
    ValidationException,
)
from ..events import (
    AppointmentCancelled,
    AppointmentConfirmed,
    AppointmentEvent,
    AppointmentRescheduled,
    EventPublisher,
)
from ..models.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus
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


@dataclass
class AutoCompletionResult:
    completed_count: int = 0
    failed_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"completed_count": self.completed_count, "failed_ids": list(self.failed_ids)}


class AppointmentLifecycleService(BaseService):
    def __init__(
        self,
        db: Session,
        appointment_repository: Optional[AppointmentRepository] = None,
        provider_repository: Optional[ProviderRepository] = None,
        lock_repository: Optional[ProviderDayLockRepository] = None,
        conflict_checker: Optional[ConflictChecker] = None,
        event_publisher: Optional[EventPublisher] = None,
        clock: Optional[Clock] = None,
    ):
        super().__init__(db, clock=clock)
        self.logger = logging.getLogger(__name__)
        self.appointment_repository = (
            appointment_repository or RepositoryFactory.create_appointment_repository(db)
        )
        self.provider_repository = (
            provider_repository or RepositoryFactory.create_provider_repository(db)
        )
        self.lock_repository = (
            lock_repository or RepositoryFactory.create_provider_day_lock_repository(db)
        )
        self.conflict_checker = conflict_checker or ConflictChecker(db, clock=clock)
        self.event_publisher = event_publisher or EventPublisher()

    # Reads

    @BaseService.measure_operation("get_appointment")
    def get_appointment(self, appointment_id: str) -> Appointment:
        appointment = self.appointment_repository.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundException(
                f"Appointment {appointment_id} not found", code="APPOINTMENT_NOT_FOUND"
            )
        return appointment

    @BaseService.measure_operation("list_appointments")
    def list_appointments(
        self,
        provider_id: Optional[str] = None,
        customer_id: Optional[str] = None,
        status: Optional[Sequence[AppointmentStatus]] = None,
        on_date: Optional[date] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Appointment]:
        """Appointments matching every given filter, ordered by date then time."""
        date_range = (on_date, on_date) if on_date else (start_date, end_date)
        return self.appointment_repository.list_appointments(
            provider_id=provider_id,
            date_range=date_range,
            status_filter=status,
            customer_id=customer_id,
            limit=limit,
            offset=offset,
        )

    # Status changes

    @BaseService.measure_operation("change_status")
    def change_status(
        self,
        appointment_id: str,
        new_status: AppointmentStatus,
        reason: Optional[str] = None,
        actor: ActorRole = ActorRole.PROVIDER,
    ) -> Appointment:
        """
        Move an appointment to a new status.

        Cancellations by a customer or provider need a reason; system
        cancellations may omit it. Same-status requests are rejected.

        Raises:
            NotFoundException: unknown appointment
            InvalidStatusTransitionException: transition not allowed
            ValidationException: missing or oversized cancellation reason
        """
        new_status = AppointmentStatus(new_status)
        actor = ActorRole(actor)

        with self.transaction():
            appointment = self.get_appointment(appointment_id)
            current = appointment.status_enum
            if not appointment.can_transition_to(new_status):
                raise InvalidStatusTransitionException(current.value, new_status.value)

            cleaned_reason = None
            if new_status == AppointmentStatus.CANCELLED:
                try:
                    cleaned_reason = contact_validation.clean_cancellation_reason(
                        reason, required=actor != ActorRole.SYSTEM
                    )
                except ValueError as exc:
                    raise ValidationException(str(exc), code="INVALID_CANCELLATION_REASON") from exc

            self.appointment_repository.update_appointment_status(
                appointment, new_status, reason=cleaned_reason
            )

        self.log_operation(
            "change_status",
            appointment_id=appointment_id,
            from_status=current.value,
            to_status=new_status.value,
            actor=actor.value,
        )

        event: Optional[AppointmentEvent] = None
        if new_status == AppointmentStatus.CONFIRMED:
            event = AppointmentConfirmed(
                appointment_id=appointment.id, recipient=appointment.customer_email
            )
        elif new_status == AppointmentStatus.CANCELLED:
            event = AppointmentCancelled(
                appointment_id=appointment.id,
                recipient=appointment.customer_email,
                reason=cleaned_reason,
                cancelled_by=actor.value,
            )
        if event is not None:
            self.event_publisher.publish(event)
        return appointment

    def confirm(self, appointment_id: str) -> Appointment:
        return self.change_status(appointment_id, AppointmentStatus.CONFIRMED)

    def cancel(
        self, appointment_id: str, reason: Optional[str], actor: ActorRole = ActorRole.CUSTOMER
    ) -> Appointment:
        return self.change_status(appointment_id, AppointmentStatus.CANCELLED, reason, actor)

    def complete(self, appointment_id: str) -> Appointment:
        return self.change_status(appointment_id, AppointmentStatus.COMPLETED)

    # Reschedule

    @BaseService.measure_operation("reschedule")
    def reschedule(self, appointment_id: str, new_date: date, new_time: time) -> Appointment:
        """
        Move an active appointment to a new date and start time.

        The appointment keeps its id and status. The new slot goes through
        the booking window, operating hours and a conflict re-check that
        ignores the appointment's own current slot.

        Raises:
            NotFoundException: unknown appointment, or provider/service inactive
            InvalidStatusTransitionException: appointment is completed or cancelled
            PolicyViolationException: new slot outside window or hours
            SlotConflictException: new slot overlaps another active appointment
            ReservationTimeoutException: lock wait failed; safe to retry
        """
        appointment = self.get_appointment(appointment_id)
        if appointment.status_enum not in ACTIVE_STATUSES:
            raise InvalidStatusTransitionException(appointment.status, "rescheduled")

        assert_within_booking_window(
            new_date,
            new_time,
            self.now(),
            min_hours=settings.min_booking_hours,
            max_days=settings.max_booking_days,
        )

        provider = self.provider_repository.get_active_provider(appointment.provider_id)
        if provider is None:
            raise NotFoundException(
                f"Provider {appointment.provider_id} not found", code="PROVIDER_NOT_FOUND"
            )
        service = self.provider_repository.get_service(
            appointment.service_id, provider_id=appointment.provider_id
        )
        if service is None or not service.is_active:
            raise NotFoundException(
                f"Service {appointment.service_id} not found", code="SERVICE_NOT_FOUND"
            )

        duration_minutes = int(service.duration_minutes)
        hours = self.provider_repository.get_hours_for_day(
            appointment.provider_id, weekday_index(new_date)
        )
        assert_within_operating_hours(
            hours, new_date, new_time, duration_minutes, self.conflict_checker.buffer_minutes
        )

        previous_date, previous_time = appointment.appointment_date, appointment.start_time
        details = {
            "appointment_id": appointment_id,
            "date": new_date.isoformat(),
            "start_time": new_time.strftime("%H:%M"),
        }
        try:
            self.lock_repository.acquire(appointment.provider_id, new_date)
            self.db.refresh(appointment)
            if appointment.status_enum not in ACTIVE_STATUSES:
                raise InvalidStatusTransitionException(appointment.status, "rescheduled")
            self.conflict_checker.assert_slot_free(
                appointment.provider_id,
                new_date,
                new_time,
                duration_minutes,
                exclude_appointment_id=appointment.id,
            )
            appointment.move_to(new_date, new_time)
            self.appointment_repository.flush()
            self.db.commit()
        except DomainException:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            raise SlotConflictException(details=details) from exc
        except OperationalError as exc:
            self.db.rollback()
            raise ReservationTimeoutException(details=details) from exc
        except (SQLAlchemyError, RepositoryException) as exc:
            self.db.rollback()
            raise StoreException(f"Database operation failed: {str(exc)}") from exc

        self.log_operation(
            "reschedule",
            appointment_id=appointment_id,
            previous_date=previous_date.isoformat(),
            previous_start_time=previous_time.strftime("%H:%M"),
            new_date=new_date.isoformat(),
            new_start_time=new_time.strftime("%H:%M"),
        )
        self.event_publisher.publish(
            AppointmentRescheduled(
                appointment_id=appointment.id,
                recipient=appointment.customer_email,
                previous_date=previous_date,
                previous_start_time=previous_time,
                new_date=new_date,
                new_start_time=new_time,
            )
        )
        return appointment

    # Auto-completion

    @BaseService.measure_operation("run_auto_completion_sweep")
    def run_auto_completion_sweep(self) -> AutoCompletionResult:
        """
        Complete every active appointment whose service has already ended.

        Each appointment is completed in its own savepoint; one failure is
        recorded and the sweep moves on. Failed ids are picked up again by
        the next sweep.
        """
        now = self.now()
        result = AutoCompletionResult()
        candidates = self.appointment_repository.get_auto_completion_candidates(now.date())

        for appointment in candidates:
            if appointment.ends_at(self._duration_for(appointment)) >= now:
                continue
            try:
                with self.db.begin_nested():
                    self.appointment_repository.update_appointment_status(
                        appointment, AppointmentStatus.COMPLETED
                    )
                result.completed_count += 1
            except (SQLAlchemyError, RepositoryException) as exc:
                result.failed_ids.append(appointment.id)
                self.logger.warning(
                    "auto_completion_failed",
                    extra={
                        "appointment_id": appointment.id,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )

        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreException(f"Database operation failed: {str(exc)}") from exc

        prometheus_metrics.record_auto_completion(result.completed_count, len(result.failed_ids))
        if result.completed_count or result.failed_ids:
            self.log_operation(
                "run_auto_completion_sweep",
                completed_count=result.completed_count,
                failed_count=len(result.failed_ids),
            )
        return result

    def _duration_for(self, appointment: Appointment) -> int:
        service = appointment.service
        if service is not None and service.duration_minutes:
            return int(service.duration_minutes)
        self.logger.warning(
            "Service for appointment %s could not be resolved, assuming %s minutes",
            appointment.id,
            settings.default_service_duration_minutes,
        )
        return settings.default_service_duration_minutes
