"""
Retry policy for data store reads.

Reads that hit a transient store failure (sqlalchemy OperationalError) are
retried with exponential backoff, then surfaced as TransientIOError.
Writes are never wrapped: a retried write could duplicate an order.
"""
import functools
import logging

from sqlalchemy.exc import OperationalError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from config import settings
from domain.errors import TransientIOError

logger = logging.getLogger(__name__)


def db_read_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(max(1, settings.read_retry_attempts)),
        wait=wait_exponential(
            multiplier=settings.read_retry_backoff_seconds,
            min=settings.read_retry_backoff_seconds,
            max=settings.read_retry_backoff_seconds * 8,
        ),
        retry=retry_if_exception_type(OperationalError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def read_retry(func):
    """Decorate an async read: retry transient store errors, then raise TransientIOError."""
    retrying = db_read_retry()(func)

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await retrying(*args, **kwargs)
        except OperationalError as e:
            logger.error(f"{func.__name__} failed after retries: {e}")
            raise TransientIOError("Data store unavailable. Please try again shortly.") from e

    return wrapper
