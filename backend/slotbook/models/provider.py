# backend/slotbook/models/provider.py
"""
Provider and operating-hours models.

A provider is a service business. Operating hours are stored one row per
weekday using the 0 = Sunday convention, as local wall-clock times; the
engine performs no timezone conversion.
"""

from datetime import date, time
import logging
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


def weekday_index(value: date) -> int:
    """Return the 0 = Sunday weekday index used by operating hours."""
    return (value.weekday() + 1) % 7


class Provider(Base):
    """A service business that owns services, hours and appointments."""

    __tablename__ = "providers"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    services = relationship("Service", back_populates="provider", cascade="all, delete-orphan")
    operating_hours = relationship(
        "OperatingHours",
        back_populates="provider",
        cascade="all, delete-orphan",
        order_by="OperatingHours.day_of_week",
    )

    def __repr__(self) -> str:
        return f"<Provider {self.id}: {self.name} active={self.is_active}>"


class OperatingHours(Base):
    """Opening hours for one weekday of a provider."""

    __tablename__ = "operating_hours"
    __table_args__ = (
        UniqueConstraint("provider_id", "day_of_week", name="uq_operating_hours_provider_day"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_operating_hours_day"),
    )

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    provider_id = Column(
        String(26), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_of_week = Column(Integer, nullable=False)
    is_closed = Column(Boolean, nullable=False, default=False)
    open_time = Column(Time, nullable=True)
    close_time = Column(Time, nullable=True)

    provider = relationship("Provider", back_populates="operating_hours")

    @property
    def is_open(self) -> bool:
        """True when the day has usable opening hours."""
        return not self.is_closed and self.open_time is not None and self.close_time is not None

    def window(self) -> Optional[tuple[time, time]]:
        if not self.is_open:
            return None
        return self.open_time, self.close_time

    def __repr__(self) -> str:
        if not self.is_open:
            return f"<OperatingHours {self.provider_id} day={self.day_of_week} closed>"
        return (
            f"<OperatingHours {self.provider_id} day={self.day_of_week} "
            f"{self.open_time}-{self.close_time}>"
        )
