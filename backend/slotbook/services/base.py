# backend/slotbook/services/base.py
"""
Base Service Pattern for the scheduling engine

Provides common functionality for all service classes including:
- Transaction management
- Logging
- Error translation from the data layer
- Performance monitoring
"""

from contextlib import contextmanager
from datetime import datetime
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import DomainException, RepositoryException, StoreException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

F = TypeVar("F", bound=Callable[..., Any])


def local_now() -> datetime:
    """Naive local wall-clock time; callers normalize timezones before calling in."""
    return datetime.now()


class BaseService:
    """
    Base class for all service layer components.

    Provides common patterns for:
    - Database session management
    - Logging
    - Transaction handling
    - Performance monitoring
    """

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        """
        Initialize base service.

        Args:
            db: Database session
            clock: Optional callable returning the current wall-clock time
        """
        self.db = db
        self.clock: Clock = clock or local_now
        self.logger = logging.getLogger(self.__class__.__name__)

    def now(self) -> datetime:
        return self.clock()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                # Do multiple operations
                self.db.add(entity)
                # Note: commit is handled automatically

        Domain exceptions raised inside the block roll back and propagate
        unchanged; data-layer failures roll back and surface as StoreException.
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except DomainException:
            self.db.rollback()
            raise
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise StoreException(f"Database operation failed: {str(e)}") from e
        except Exception as e:
            self.logger.error(f"Unexpected error in transaction: {str(e)}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("reserve")
            def reserve(self, ...):
                # Method implementation

        Args:
            operation_name: Name of the operation for metrics

        Returns:
            Decorator function
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time

                    # Only log if it's actually slow
                    if elapsed > 1.0 and hasattr(self, "logger"):
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    try:
                        prometheus_metrics.record_service_operation(
                            service=self.__class__.__name__,
                            operation=operation_name,
                            duration=elapsed,
                            status="success" if success else "error",
                            error_type=error_type,
                        )
                    except Exception as metrics_error:
                        # Metrics collection never breaks the operation
                        logger.debug(f"Failed to record metrics for {operation_name}: {metrics_error}")

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """
        Log an operation with context.

        Args:
            operation: Operation name
            **context: Additional context to log
        """
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

