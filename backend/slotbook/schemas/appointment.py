"""
Request and response DTOs for availability, reservations and lifecycle changes.

Contact fields follow the booking form rules: name 2-100 characters, a
valid email of at most 255, an optional phone number and notes of at most
500 characters.
"""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import Field, field_serializer, field_validator

from ..core.enums import ActorRole
from ..models.appointment import AppointmentStatus
from ..utils import contact_validation
from .base import ResponseModel, StrictRequestModel, parse_wall_time


class CustomerInfoRequest(StrictRequestModel):
    name: str = Field(..., description="Customer's full name")
    email: str = Field(..., description="Customer's email address")
    phone: Optional[str] = Field(None, description="Optional phone number")
    notes: Optional[str] = Field(None, description="Optional notes for the provider")
    customer_id: Optional[str] = Field(None, description="Registered customer id, if any")

    @field_validator("name")
    @classmethod
    def _validate_name(cls, v: str) -> str:
        return contact_validation.clean_name(v)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, v: str) -> str:
        return contact_validation.clean_email(v)

    @field_validator("phone")
    @classmethod
    def _validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return contact_validation.clean_phone(v)

    @field_validator("notes")
    @classmethod
    def _validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return contact_validation.clean_notes(v)


class AppointmentCreate(StrictRequestModel):
    """Reserve one slot for one service with one provider."""

    provider_id: str = Field(..., min_length=1)
    service_id: str = Field(..., min_length=1)
    appointment_date: date
    start_time: time
    customer: CustomerInfoRequest
    initiated_by: ActorRole = Field(
        ActorRole.CUSTOMER,
        description="customer creates a pending appointment, provider a confirmed one",
    )

    @field_validator("start_time", mode="before")
    @classmethod
    def _parse_start_time(cls, v: object) -> object:
        return parse_wall_time(v)


class RescheduleRequest(StrictRequestModel):
    new_date: date
    new_time: time

    @field_validator("new_time", mode="before")
    @classmethod
    def _parse_new_time(cls, v: object) -> object:
        return parse_wall_time(v)


class StatusChangeRequest(StrictRequestModel):
    status: AppointmentStatus
    reason: Optional[str] = Field(
        None, max_length=contact_validation.CANCELLATION_REASON_MAX_LENGTH
    )
    actor: ActorRole = ActorRole.PROVIDER


class AppointmentResponse(ResponseModel):
    id: str
    provider_id: str
    service_id: str
    customer_id: Optional[str] = None
    appointment_date: date
    start_time: time
    status: AppointmentStatus
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @field_serializer("start_time")
    def _serialize_start_time(self, value: time) -> str:
        return value.strftime("%H:%M")


class AvailableSlotsResponse(ResponseModel):
    provider_id: str
    service_id: str
    appointment_date: date
    slots: List[str] = Field(default_factory=list, description="Start times as HH:MM, ascending")


class AutoCompletionResponse(ResponseModel):
    completed_count: int
    failed_ids: List[str] = Field(default_factory=list)
