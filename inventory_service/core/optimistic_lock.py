"""
Inventory Service — Optimistic locking retry

Stock writes are compare-and-swap updates guarded by the `revision` column.
A write that matches no row means someone else committed first; the ledger
rolls back and raises StaleDataError, and the decorated operation is re-run
from a fresh read after an exponential, jittered pause.
"""
import asyncio
import functools
import logging
import random

from inventory_service.core.config import get_settings

logger = logging.getLogger(__name__)


class StaleDataError(Exception):
    """The revision in the DB changed between our read and our update."""


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after failed attempt number `attempt` (1-based)."""
    settings = get_settings()
    capped = min(settings.OPT_LOCK_BASE_DELAY_MS * (2 ** attempt), settings.OPT_LOCK_MAX_DELAY_MS)
    return (capped + random.uniform(0, settings.OPT_LOCK_JITTER_MS)) / 1000.0


def with_optimistic_retry(max_retries: int | None = None):
    """
    Re-run an async ledger mutation on StaleDataError, at most `max_retries`
    attempts in total (OPT_LOCK_MAX_RETRIES when not given). The last
    StaleDataError propagates to the caller, which owns the transaction.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempts = max_retries or get_settings().OPT_LOCK_MAX_RETRIES
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except StaleDataError as exc:
                    if attempt >= attempts:
                        logger.error("%s: giving up after %d conflicting attempts (%s)",
                                     func.__qualname__, attempts, exc)
                        raise
                    delay = backoff_delay(attempt)
                    logger.warning("%s: revision conflict on attempt %d/%d, retrying in %.3fs",
                                   func.__qualname__, attempt, attempts, delay)
                    await asyncio.sleep(delay)
                    attempt += 1
        return wrapper
    return decorator
