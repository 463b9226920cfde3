"""
Exponential backoff retry for settlement writes.

Resolution is retried on transient failures: database errors such as a
locked SQLite file, or a provider error flagged retriable. Permanent
failures are raised immediately. Retrying is safe because applying a
settlement is conditional on the transaction still being PENDING.
"""

import asyncio
import logging
from typing import Any, Callable

from sqlalchemy.exc import OperationalError

logger = logging.getLogger("gateway.retry")

MAX_RETRIES = 3
BASE_DELAY = 0.5
MAX_DELAY = 10.0


class ProviderError(Exception):
    """Base exception for settlement provider errors."""

    def __init__(self, message: str, retriable: bool = True):
        super().__init__(message)
        self.retriable = retriable


class PermanentError(ProviderError):
    """Non-retriable settlement error."""

    def __init__(self, message: str):
        super().__init__(message, retriable=False)


def is_retriable(error: Exception) -> bool:
    if isinstance(error, ProviderError):
        return error.retriable
    return isinstance(error, OperationalError)


async def with_retry(
    func: Callable[..., Any],
    *args: Any,
    max_retries: int = MAX_RETRIES,
    base_delay: float = BASE_DELAY,
    **kwargs: Any,
) -> Any:
    """
    Execute an async function with exponential backoff on retriable errors.

    Args:
        func: Async callable to execute.
        max_retries: Maximum number of retry attempts.
        base_delay: First backoff interval in seconds; doubles per attempt.

    Returns:
        The result of the function call.

    Raises:
        The last error, on permanent failure or exhausted retries.
    """
    delay = base_delay

    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not is_retriable(e):
                raise
            if attempt >= max_retries:
                logger.error("Exhausted %d retries: %s", max_retries, e)
                raise

            sleep_for = min(delay, MAX_DELAY)
            logger.warning(
                "Retriable error on attempt %d/%d: %s, sleeping %.1fs",
                attempt + 1,
                max_retries + 1,
                e,
                sleep_for,
            )
            await asyncio.sleep(sleep_for)
            delay = min(delay * 2, MAX_DELAY)
