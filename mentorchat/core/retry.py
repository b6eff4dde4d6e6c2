# mentorchat/core/retry.py
"""Retry decorator for pure reads against the store."""
from functools import wraps
from typing import Optional
import asyncio
import logging

from sqlalchemy.exc import OperationalError

from .config import settings
from .exceptions import TransientIOError

logger = logging.getLogger(__name__)

def retry_read(attempts: Optional[int] = None, base_delay: Optional[float] = None):
    """Retry an idempotent read on storage outages with exponential backoff.

    Never apply this to writes: a retried send could store the message twice.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(self, *args, **kwargs):
            max_attempts = attempts or settings.read_retry_attempts
            delay = base_delay if base_delay is not None else settings.read_retry_base_delay

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(self, *args, **kwargs)
                except OperationalError as e:
                    await self.db.rollback()
                    if attempt == max_attempts:
                        logger.error(f"{func.__name__} failed after {attempt} attempts: {e}")
                        raise TransientIOError(f"Storage unavailable while running {func.__name__}") from e
                    logger.warning(f"{func.__name__} attempt {attempt} failed, retrying: {e}")
                    await asyncio.sleep(delay * (2 ** (attempt - 1)))

        return wrapper
    return decorator
