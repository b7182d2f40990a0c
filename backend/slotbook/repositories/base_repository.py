# backend/slotbook/repositories/base_repository.py
"""
Base Repository Pattern for the scheduling engine

Repositories own every query the services run. They never commit: the
service layer decides transaction boundaries, repositories only add, flush
and read. SQLAlchemy failures surface as RepositoryException so services
can translate them into store errors in one place.
"""

import logging
from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Common data access for one model.

    Attributes:
        db: SQLAlchemy session (managed by the service layer)
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        """Name of the SQL dialect the session is bound to ("postgresql", "sqlite", ...)."""
        bind = self.db.get_bind()
        return str(bind.dialect.name)

    def _apply_eager_loading(self, query: Query) -> Query:
        """Hook for subclasses that want relationships loaded with get_by_id."""
        return query

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        try:
            query = self.db.query(self.model).filter(self.model.id == id)  # type: ignore[attr-defined]
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting {self.model.__name__} by id {id}: {str(e)}")
            raise RepositoryException(f"Failed to retrieve {self.model.__name__}: {str(e)}")

    def create(self, **kwargs: Any) -> T:
        """
        Create a new entity.

        Note: Does NOT commit. Integrity errors are re-raised untouched so
        callers can map unique-index violations to domain conflicts.
        """
        entity = self.model(**kwargs)
        try:
            self.db.add(entity)
            self.db.flush()  # Get ID without committing
            return entity
        except (IntegrityError, OperationalError):
            # Constraint violations and lock waits are mapped by the caller
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            raise RepositoryException(f"Failed to create {self.model.__name__}: {str(e)}")

    def flush(self) -> None:
        self.db.flush()

