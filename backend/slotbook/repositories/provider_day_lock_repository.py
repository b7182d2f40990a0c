# backend/slotbook/repositories/provider_day_lock_repository.py
"""
Provider/day lock repository.

``acquire`` upserts the (provider, date) row and bumps its version inside the
caller's transaction. The write blocks while another transaction holds the
same row (PostgreSQL) or the database write lock (SQLite), and the lock is
released by that transaction's commit or rollback.
"""

from datetime import date
import logging

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from ..models.provider_day_lock import ProviderDayLock
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ProviderDayLockRepository(BaseRepository[ProviderDayLock]):
    def __init__(self, db: Session):
        super().__init__(db, ProviderDayLock)

    def acquire(self, provider_id: str, lock_date: date) -> None:
        """
        Take the provider/day lock for the rest of the current transaction.

        OperationalError (lock timeout, busy database, deadlock) propagates so
        the reservation layer can report it as retryable.
        """
        dialect = self.dialect_name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            self._acquire_generic(provider_id, lock_date)
            return

        stmt = insert(ProviderDayLock).values(provider_id=provider_id, lock_date=lock_date, version=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ProviderDayLock.provider_id, ProviderDayLock.lock_date],
            set_={"version": ProviderDayLock.version + 1},
        )
        self.db.execute(stmt)
        self.logger.debug(
            "provider_day_lock_acquired",
            extra={"provider_id": provider_id, "lock_date": lock_date.isoformat()},
        )

    def _acquire_generic(self, provider_id: str, lock_date: date) -> None:
        row = (
            self.db.query(ProviderDayLock)
            .filter(
                ProviderDayLock.provider_id == provider_id,
                ProviderDayLock.lock_date == lock_date,
            )
            .with_for_update()
            .first()
        )
        if row is None:
            self.db.add(ProviderDayLock(provider_id=provider_id, lock_date=lock_date, version=1))
        else:
            row.version = (row.version or 0) + 1
        self.db.flush()
