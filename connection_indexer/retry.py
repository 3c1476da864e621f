"""
Retry utilities for one-off calls that may fail transiently.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args,
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: tuple = (Exception,),
    **kwargs,
) -> T:
    """Retry an async function with exponential backoff, re-raising the last error."""
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    name = getattr(func, "__qualname__", repr(func))
    current_delay = delay

    for attempt in range(1, max_attempts + 1):
        try:
            return await func(*args, **kwargs)
        except exceptions as e:
            if attempt == max_attempts:
                logger.error(f"{name}: all {max_attempts} attempts failed. Last error: {e}")
                raise
            logger.warning(
                f"{name}: attempt {attempt}/{max_attempts} failed: {e}. "
                f"Retrying in {current_delay:.2f}s..."
            )
            await asyncio.sleep(current_delay)
            current_delay *= backoff
