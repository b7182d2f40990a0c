# backend/slotbook/routes/appointments.py
"""
Appointment routes.

Router Endpoints:
    POST /appointments - Reserve a slot
    GET /appointments - List appointments with filters
    POST /appointments/auto-complete - Run the auto-completion sweep now
    GET /appointments/{appointment_id} - Appointment details
    POST /appointments/{appointment_id}/reschedule - Move to a new date/time
    POST /appointments/{appointment_id}/status - Confirm, cancel or complete
"""

import asyncio
from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..api.dependencies import get_lifecycle_service, get_reservation_service
from ..core.exceptions import DomainException
from ..models.appointment import AppointmentStatus
from ..schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AutoCompletionResponse,
    RescheduleRequest,
    StatusChangeRequest,
)
from ..services.appointment_lifecycle_service import AppointmentLifecycleService
from ..services.reservation_service import CustomerInfo, ReservationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


# 1. First: routes without path parameters


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreate,
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> AppointmentResponse:
    """
    Reserve a slot.

    409 means the slot was taken in the meantime: refresh availability and
    pick another time. 503 is retryable.
    """
    customer = CustomerInfo(
        name=payload.customer.name,
        email=payload.customer.email,
        phone=payload.customer.phone,
        notes=payload.customer.notes,
        customer_id=payload.customer.customer_id,
    )
    try:
        appointment = await asyncio.to_thread(
            reservation_service.reserve,
            payload.provider_id,
            payload.service_id,
            payload.appointment_date,
            payload.start_time,
            customer,
            payload.initiated_by,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentResponse.model_validate(appointment)


@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(
    provider_id: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None),
    status_filter: Optional[List[AppointmentStatus]] = Query(None, alias="status"),
    on_date: Optional[date] = Query(None, alias="date"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    lifecycle_service: AppointmentLifecycleService = Depends(get_lifecycle_service),
) -> List[AppointmentResponse]:
    try:
        appointments = await asyncio.to_thread(
            lifecycle_service.list_appointments,
            provider_id=provider_id,
            customer_id=customer_id,
            status=status_filter,
            on_date=on_date,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return [AppointmentResponse.model_validate(a) for a in appointments]


@router.post("/auto-complete", response_model=AutoCompletionResponse)
async def run_auto_completion(
    lifecycle_service: AppointmentLifecycleService = Depends(get_lifecycle_service),
) -> AutoCompletionResponse:
    """Complete active appointments that have already ended."""
    try:
        result = await asyncio.to_thread(lifecycle_service.run_auto_completion_sweep)
    except DomainException as e:
        handle_domain_exception(e)
    return AutoCompletionResponse(**result.to_dict())


# 2. Then: routes with path parameters


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    lifecycle_service: AppointmentLifecycleService = Depends(get_lifecycle_service),
) -> AppointmentResponse:
    try:
        appointment = await asyncio.to_thread(lifecycle_service.get_appointment, appointment_id)
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentResponse.model_validate(appointment)


@router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(
    appointment_id: str,
    payload: RescheduleRequest,
    lifecycle_service: AppointmentLifecycleService = Depends(get_lifecycle_service),
) -> AppointmentResponse:
    try:
        appointment = await asyncio.to_thread(
            lifecycle_service.reschedule, appointment_id, payload.new_date, payload.new_time
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentResponse.model_validate(appointment)


@router.post("/{appointment_id}/status", response_model=AppointmentResponse)
async def change_appointment_status(
    appointment_id: str,
    payload: StatusChangeRequest,
    lifecycle_service: AppointmentLifecycleService = Depends(get_lifecycle_service),
) -> AppointmentResponse:
    """
    Confirm, cancel or complete an appointment.

    Customer and provider cancellations need a reason.
    """
    try:
        appointment = await asyncio.to_thread(
            lifecycle_service.change_status,
            appointment_id,
            payload.status,
            payload.reason,
            payload.actor,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AppointmentResponse.model_validate(appointment)
