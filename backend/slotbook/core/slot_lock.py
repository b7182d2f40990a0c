from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
import time
from typing import Iterator, Optional

from redis import Redis

from slotbook.core.config import settings
from slotbook.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_REDIS: Optional[Redis] = None
_REDIS_LOCK = threading.Lock()


def _lock_key(provider_id: str, lock_date: date) -> str:
    return f"slots:{provider_id}:{lock_date.isoformat()}:mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.slot_lock_namespace}:lock:{key}"


def _get_redis() -> Optional[Redis]:
    global _REDIS
    if _REDIS is not None:
        return _REDIS
    with _REDIS_LOCK:
        if _REDIS is not None:
            return _REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("slot_lock_redis_unavailable: %s", exc)
            return None
        _REDIS = client
        return _REDIS


def acquire_slot_lock(provider_id: str, lock_date: date, ttl_s: Optional[int] = None) -> bool:
    """
    Try to take the cross-worker pre-lock for one provider/day.

    Returns False only when another worker holds the lock. An unreachable
    Redis returns True: the database lock remains the authority.
    """
    ttl = ttl_s or settings.slot_lock_ttl_seconds
    client = _get_redis()
    if client is None:
        prometheus_metrics.record_slot_lock("acquire", "redis_unavailable")
        logger.warning(
            "slot_lock_redis_unavailable",
            extra={"provider_id": provider_id, "lock_date": lock_date.isoformat()},
        )
        return True
    try:
        acquired = bool(
            client.set(
                _namespaced_key(_lock_key(provider_id, lock_date)),
                str(time.time()),
                nx=True,
                ex=ttl,
            )
        )
        if acquired:
            prometheus_metrics.record_slot_lock("acquire", "success")
        else:
            prometheus_metrics.record_slot_lock("acquire", "blocked")
        return acquired
    except Exception as exc:
        prometheus_metrics.record_slot_lock("acquire", "error")
        logger.warning(
            "slot_lock_acquire_failed",
            extra={
                "provider_id": provider_id,
                "lock_date": lock_date.isoformat(),
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return True


def release_slot_lock(provider_id: str, lock_date: date) -> None:
    client = _get_redis()
    if client is None:
        prometheus_metrics.record_slot_lock("release", "redis_unavailable")
        return
    try:
        deleted = client.delete(_namespaced_key(_lock_key(provider_id, lock_date)))
        if deleted:
            prometheus_metrics.record_slot_lock("release", "success")
        else:
            prometheus_metrics.record_slot_lock("release", "not_found")
    except Exception as exc:
        prometheus_metrics.record_slot_lock("release", "error")
        logger.warning(
            "slot_lock_release_failed",
            extra={
                "provider_id": provider_id,
                "lock_date": lock_date.isoformat(),
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def slot_lock(provider_id: str, lock_date: date, ttl_s: Optional[int] = None) -> Iterator[bool]:
    acquired = acquire_slot_lock(provider_id, lock_date, ttl_s=ttl_s)
    try:
        yield acquired
    finally:
        if acquired:
            release_slot_lock(provider_id, lock_date)
