# backend/slotbook/routes/availability.py
"""
Availability routes.

Router Endpoints:
    GET /providers/{provider_id}/services/{service_id}/slots?date= - bookable start times
"""

import asyncio
from datetime import date
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..api.dependencies import get_availability_service
from ..core.exceptions import DomainException
from ..schemas.appointment import AvailableSlotsResponse
from ..services.availability_service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["availability"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get(
    "/{provider_id}/services/{service_id}/slots",
    response_model=AvailableSlotsResponse,
)
async def get_available_slots(
    provider_id: str,
    service_id: str,
    target_date: date = Query(..., alias="date", description="Date to check (YYYY-MM-DD)"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailableSlotsResponse:
    """
    Start times a customer can book for the service on the date.

    Closed days return an empty list; an unknown or inactive provider or
    service returns 404.
    """
    try:
        slots = await asyncio.to_thread(
            availability_service.get_available_slots, provider_id, service_id, target_date
        )
    except DomainException as e:
        handle_domain_exception(e)

    return AvailableSlotsResponse(
        provider_id=provider_id,
        service_id=service_id,
        appointment_date=target_date,
        slots=[slot.strftime("%H:%M") for slot in slots],
    )
