# backend/slotbook/models/service.py
"""Bookable service offered by a provider."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship
import ulid

from ..database import Base


class Service(Base):
    """
    A service with a fixed duration.

    Inactive services no longer generate slots or accept new bookings, but
    appointments that reference them stay valid historical records.
    """

    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_service_duration_positive"),
        CheckConstraint("price >= 0", name="check_service_price_non_negative"),
    )

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    provider_id = Column(
        String(26), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    provider = relationship("Provider", back_populates="services")

    def __repr__(self) -> str:
        return (
            f"<Service {self.id}: {self.name} ({self.duration_minutes} min) "
            f"active={self.is_active}>"
        )
