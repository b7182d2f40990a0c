"""
Customer contact field rules shared by the request schemas and the services.

Every cleaner returns the normalized value or raises ValueError with a
message fit to show the customer.
"""

import re
from typing import Optional

from email_validator import EmailNotValidError, validate_email

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 255
PHONE_MAX_LENGTH = 20
NOTES_MAX_LENGTH = 500
CANCELLATION_REASON_MAX_LENGTH = 500

PHONE_PATTERN = re.compile(r"^[+]?[(]?[0-9]{3}[)]?[-\s.]?[0-9]{3}[-\s.]?[0-9]{4,6}$")


def clean_name(value: str) -> str:
    name = (value or "").strip()
    if len(name) < NAME_MIN_LENGTH:
        raise ValueError(f"Name must be at least {NAME_MIN_LENGTH} characters")
    if len(name) > NAME_MAX_LENGTH:
        raise ValueError(f"Name must be less than {NAME_MAX_LENGTH} characters")
    return name


def clean_email(value: str) -> str:
    email = (value or "").strip()
    if not email:
        raise ValueError("Email is required")
    if len(email) > EMAIL_MAX_LENGTH:
        raise ValueError(f"Email must be less than {EMAIL_MAX_LENGTH} characters")
    try:
        result = validate_email(email, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError("Invalid email address") from exc
    return result.normalized


def clean_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    phone = value.strip()
    if not phone:
        return None
    if len(phone) > PHONE_MAX_LENGTH:
        raise ValueError(f"Phone number must be less than {PHONE_MAX_LENGTH} characters")
    if not PHONE_PATTERN.match(phone):
        raise ValueError("Invalid phone number format")
    return phone


def clean_notes(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    notes = value.strip()
    if not notes:
        return None
    if len(notes) > NOTES_MAX_LENGTH:
        raise ValueError(f"Notes must be less than {NOTES_MAX_LENGTH} characters")
    return notes


def clean_cancellation_reason(value: Optional[str], required: bool) -> Optional[str]:
    reason = (value or "").strip()
    if not reason:
        if required:
            raise ValueError("Please provide a reason for cancellation")
        return None
    if len(reason) > CANCELLATION_REASON_MAX_LENGTH:
        raise ValueError(
            f"Cancellation reason must be less than {CANCELLATION_REASON_MAX_LENGTH} characters"
        )
    return reason
