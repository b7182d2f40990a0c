# backend/slotbook/repositories/appointment_repository.py
"""
Appointment Repository

Data access for appointment rows: inserts made under the reservation lock,
status updates, listing with filters, and the candidate set for the
auto-completion sweep.
"""

from datetime import date
import logging
from typing import Any, List, Optional, Sequence, Tuple, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AppointmentRepository(BaseRepository[Appointment]):
    def __init__(self, db: Session):
        super().__init__(db, Appointment)
        self.logger = logging.getLogger(__name__)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(joinedload(Appointment.service))

    def insert_appointment(self, **fields: Any) -> Appointment:
        """
        Insert and flush a new appointment.

        IntegrityError from the active-slot unique index propagates untouched
        so the reservation layer can report it as a slot conflict.
        """
        return self.create(**fields)

    def update_appointment_status(
        self, appointment: Appointment, new_status: AppointmentStatus, reason: Optional[str] = None
    ) -> Appointment:
        """
        Apply a status change through the model's transition helpers.

        Legality of the transition is checked by the caller.
        """
        try:
            if new_status == AppointmentStatus.CONFIRMED:
                appointment.confirm()
            elif new_status == AppointmentStatus.CANCELLED:
                appointment.cancel(reason)
            elif new_status == AppointmentStatus.COMPLETED:
                appointment.complete()
            else:
                appointment.status = new_status.value
            self.db.flush()
            return appointment
        except SQLAlchemyError as e:
            self.logger.error(f"Error updating appointment {appointment.id} status: {str(e)}")
            raise RepositoryException(f"Failed to update appointment status: {str(e)}")

    def list_appointments(
        self,
        provider_id: Optional[str] = None,
        date_range: Optional[Tuple[Optional[date], Optional[date]]] = None,
        status_filter: Optional[Sequence[AppointmentStatus]] = None,
        customer_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Appointment]:
        """
        List appointments ordered by date then start time.

        Args:
            provider_id: Only this provider's appointments
            date_range: Inclusive (start, end); either side may be None
            status_filter: Only these statuses
            customer_id: Only this customer's appointments
            limit: Page size
            offset: Rows to skip

        Returns:
            Matching appointments with their services loaded
        """
        try:
            query = self.db.query(Appointment).options(joinedload(Appointment.service))
            if provider_id:
                query = query.filter(Appointment.provider_id == provider_id)
            if customer_id:
                query = query.filter(Appointment.customer_id == customer_id)
            if date_range:
                start_date, end_date = date_range
                if start_date:
                    query = query.filter(Appointment.appointment_date >= start_date)
                if end_date:
                    query = query.filter(Appointment.appointment_date <= end_date)
            if status_filter:
                query = query.filter(Appointment.status.in_([s.value for s in status_filter]))

            return cast(
                List[Appointment],
                query.order_by(Appointment.appointment_date, Appointment.start_time, Appointment.id)
                .offset(offset)
                .limit(limit)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing appointments: {str(e)}")
            raise RepositoryException(f"Failed to list appointments: {str(e)}")

    def get_auto_completion_candidates(self, through_date: date) -> List[Appointment]:
        """
        Active appointments dated on or before ``through_date``.

        The caller still compares each end time against the clock; the date
        filter only narrows the scan.
        """
        try:
            return cast(
                List[Appointment],
                self.db.query(Appointment)
                .options(joinedload(Appointment.service))
                .filter(
                    Appointment.appointment_date <= through_date,
                    Appointment.status.in_([s.value for s in ACTIVE_STATUSES]),
                )
                .order_by(Appointment.appointment_date, Appointment.start_time)
                .all(),
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting auto-completion candidates: {str(e)}")
            raise RepositoryException(f"Failed to get auto-completion candidates: {str(e)}")
