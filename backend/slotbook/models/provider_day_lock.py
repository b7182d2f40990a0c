"""Provider/day lock rows used to serialize reservations."""

from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, PrimaryKeyConstraint, String, func

from ..database import Base


class ProviderDayLock(Base):
    """
    One row per provider and calendar day.

    Writers bump ``version`` inside their transaction before re-reading the
    day's appointments, which takes a row lock on PostgreSQL and the database
    write lock on SQLite. Concurrent writers for the same provider/day queue
    behind each other; other providers and days are unaffected.
    """

    __tablename__ = "provider_day_locks"
    __table_args__ = (PrimaryKeyConstraint("provider_id", "lock_date", name="pk_provider_day_locks"),)

    provider_id = Column(String(26), ForeignKey("providers.id", ondelete="CASCADE"), nullable=False)
    lock_date = Column(Date, nullable=False)
    version = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<ProviderDayLock provider={self.provider_id} date={self.lock_date} v={self.version}>"
