# backend/slotbook/models/appointment.py
"""
Appointment model for the scheduling engine.

Appointments store provider, service, date and start time directly. While an
appointment is pending or confirmed it occupies the provider's calendar for
its service duration plus the turnaround buffer; completed and cancelled
appointments no longer occupy anything and are kept as history. Scheduling
logic never deletes rows, cancellation is a status change.
"""

from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    Time,
    func,
    text,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class AppointmentStatus(str, Enum):
    """Appointment lifecycle statuses."""

    PENDING = "pending"  # Customer-initiated, awaiting provider confirmation
    CONFIRMED = "confirmed"  # Provider-initiated or confirmed by provider
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ACTIVE_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}
)
TERMINAL_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
)

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

# Raw SQL predicate for partial indexes; must match ACTIVE_STATUSES.
_ACTIVE_STATUS_SQL = "status IN ('pending', 'confirmed')"


class Appointment(Base):
    """A customer's booking of one service with one provider."""

    __tablename__ = "appointments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    provider_id = Column(String(26), ForeignKey("providers.id"), nullable=False, index=True)
    service_id = Column(String(26), ForeignKey("services.id"), nullable=False)
    customer_id = Column(String(26), nullable=True)  # Null for guest bookings

    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)

    status = Column(String(20), nullable=False, default=AppointmentStatus.PENDING.value, index=True)

    customer_name = Column(String(100), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    provider = relationship("Provider")
    service = relationship("Service")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_appointments_status",
        ),
        # Normalized slot key: two active appointments may never share a start.
        Index(
            "uq_appointments_active_slot",
            "provider_id",
            "appointment_date",
            "start_time",
            unique=True,
            postgresql_where=text(_ACTIVE_STATUS_SQL),
            sqlite_where=text(_ACTIVE_STATUS_SQL),
        ),
        Index("ix_appointments_provider_date", "provider_id", "appointment_date"),
    )

    def __init__(self, **kwargs: Any) -> None:
        status = kwargs.get("status")
        if isinstance(status, AppointmentStatus):
            kwargs["status"] = status.value
        super().__init__(**kwargs)
        if not self.status:
            self.status = AppointmentStatus.PENDING.value

    def __repr__(self) -> str:
        return (
            f"<Appointment {self.id}: provider={self.provider_id}, "
            f"date={self.appointment_date}, time={self.start_time}, status={self.status}>"
        )

    @property
    def status_enum(self) -> AppointmentStatus:
        return AppointmentStatus(self.status)

    @property
    def is_active(self) -> bool:
        """Whether this appointment still occupies the provider's calendar."""
        return self.status_enum in ACTIVE_STATUSES

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.appointment_date, self.start_time)

    def ends_at(self, duration_minutes: int) -> datetime:
        """Wall-clock end of the service itself, without buffer."""
        return self.starts_at + timedelta(minutes=duration_minutes)

    def can_transition_to(self, new_status: AppointmentStatus) -> bool:
        return new_status in ALLOWED_TRANSITIONS[self.status_enum]

    def confirm(self) -> None:
        self.status = AppointmentStatus.CONFIRMED.value
        self.confirmed_at = datetime.now(timezone.utc)
        logger.info(f"Appointment {self.id} confirmed")

    def cancel(self, reason: Optional[str] = None) -> None:
        self.status = AppointmentStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancellation_reason = reason
        logger.info(f"Appointment {self.id} cancelled")

    def complete(self) -> None:
        self.status = AppointmentStatus.COMPLETED.value
        self.completed_at = datetime.now(timezone.utc)
        logger.info(f"Appointment {self.id} marked as completed")

    def move_to(self, new_date: date, new_time: time) -> None:
        self.appointment_date = new_date
        self.start_time = new_time
