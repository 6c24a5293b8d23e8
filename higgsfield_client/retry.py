import asyncio
import random
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from higgsfield_client.errors import is_retryable

T = TypeVar("T")


def calculate_delay(attempt: int, backoff: float, max_backoff: float) -> float:
    """Exponential backoff for the given retry attempt with up to one second of jitter"""
    return min(backoff * (2**attempt) + random.random(), max_backoff)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int,
    backoff: float,
    max_backoff: float,
) -> T:
    """Run ``operation``, retrying transient failures up to ``max_retries`` times.

    Non-retryable failures propagate on first occurrence; once retries are
    exhausted the last failure propagates.
    """
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as error:
            if attempt >= max_retries or not is_retryable(error):
                raise

            delay = calculate_delay(attempt, backoff, max_backoff)
            logger.warning(
                f"Attempt {attempt + 1} of {max_retries + 1} failed ({error!r}), "
                f"retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)
            attempt += 1
