"""Pydantic DTOs for the HTTP surface."""

from .appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AutoCompletionResponse,
    AvailableSlotsResponse,
    CustomerInfoRequest,
    RescheduleRequest,
    StatusChangeRequest,
)

__all__ = [
    "AppointmentCreate",
    "AppointmentResponse",
    "AutoCompletionResponse",
    "AvailableSlotsResponse",
    "CustomerInfoRequest",
    "RescheduleRequest",
    "StatusChangeRequest",
]
