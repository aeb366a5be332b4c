"""Retry utilities with exponential backoff.

Order book fetches can fail transiently (timeouts, 5xx, rate limits). The
engine itself never retries; these helpers wrap the fetching side only.
"""

import asyncio
import random
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from arbscope.utils.logging import get_logger


logger = get_logger("retry")


T = TypeVar('T')


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    jitter: bool = True,
    **kwargs
) -> T:
    """Retry an async function with exponential backoff.

    Args:
        func: The async function to retry
        *args: Positional arguments to pass to func
        max_retries: Maximum number of attempts
        initial_delay: Initial delay in seconds before first retry
        backoff_factor: Multiplier for delay between retries
        max_delay: Maximum delay between retries in seconds
        exceptions: Tuple of exception types to catch and retry
        jitter: Whether to add random jitter to delays
        **kwargs: Keyword arguments to pass to func

    Returns:
        The result of calling func

    Raises:
        The last exception raised by func if all retries fail
    """
    delay = initial_delay

    for attempt in range(max_retries):
        try:
            return await func(*args, **kwargs)
        except exceptions as e:
            if attempt >= max_retries - 1:
                logger.warning("All %d retry attempts failed: %s", max_retries, e)
                raise

            # Add jitter to prevent thundering herd
            actual_delay = delay * (0.5 + random.random() * 0.5) if jitter else delay
            actual_delay = min(actual_delay, max_delay)

            logger.debug(
                "Retry attempt %d/%d after %.2fs: %s",
                attempt + 1,
                max_retries,
                actual_delay,
                e,
            )

            await asyncio.sleep(actual_delay)
            delay *= backoff_factor

    raise RuntimeError("retry_with_backoff called with max_retries < 1")

