"""Schema baselines shared by request and response DTOs."""

from datetime import time

from pydantic import BaseModel, ConfigDict


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, str_strip_whitespace=True)


class ResponseModel(BaseModel):
    """Response DTO base populated straight from ORM objects."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


def parse_wall_time(value: object) -> object:
    """Accept ``HH:MM`` (and ``HH:MM:SS``) strings for time fields."""
    if isinstance(value, str):
        parts = value.strip().split(":")
        try:
            if len(parts) == 2:
                return time(int(parts[0]), int(parts[1]))
            if len(parts) == 3:
                return time(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            pass
        raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
    return value
