# backend/slotbook/core/exceptions.py
"""
Domain-specific exceptions for the scheduling engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Every reservation and lifecycle failure surfaces as one of these
so callers can tell "try a different slot" from "try again later"
from "abort".
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input is malformed; the caller can correct and resubmit."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a provider, service or appointment is missing or inactive."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific scheduling exceptions


class PolicyViolationException(BusinessRuleException):
    """Raised when a booking falls outside the booking window or operating hours."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "BOOKING_POLICY_VIOLATION",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)


class SlotConflictException(ConflictException):
    """Raised when the requested slot overlaps an active appointment."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message
            or "This time slot is no longer available. Please refresh and select another time.",
            code="SLOT_CONFLICT",
            details=details or {},
        )


class InvalidStatusTransitionException(BusinessRuleException):
    """Raised when an appointment cannot move to the requested status."""

    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            message=f"Cannot change appointment status from {current_status} to {requested_status}",
            code="INVALID_STATUS_TRANSITION",
            details={"current_status": current_status, "requested_status": requested_status},
        )


class StoreException(ServiceException):
    """Raised when the backing store fails; safe to retry with backoff."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": "2"}
        return exc


class ReservationTimeoutException(StoreException):
    """Raised when a reservation could not obtain its lock in time."""

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message
            or "The schedule is busy right now. Please refresh availability and try again.",
            code="RESERVATION_TIMEOUT",
            details=details,
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
