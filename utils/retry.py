# © 2024–2025 Harnisch LLC. All Rights Reserved.
# Licensed exclusively for use by St. Edward Church & School (Nashville, TN).
# Unauthorized use, distribution, or modification is prohibited.

"""
Retry Utilities - Retry gateway calls with exponential backoff
"""
import logging
import time
from functools import wraps
from typing import Any, Callable, Iterator, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


def backoff_delays(max_retries: int, base_delay: float, max_delay: float,
                   exponential_base: float) -> Iterator[float]:
    """Seconds to wait before each retry: base, base*k, base*k^2 ... capped at max_delay"""
    for attempt in range(max_retries):
        yield min(base_delay * (exponential_base ** attempt), max_delay)


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    retry_on: tuple = (Exception,)
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator that retries a call with exponential backoff

    Args:
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry in seconds
        max_delay: Upper bound for any single delay in seconds
        exponential_base: Growth factor between retries
        retry_on: Exceptions worth retrying; anything else propagates at once
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            delays = backoff_delays(max_retries, base_delay, max_delay, exponential_base)

            for attempt in range(max_retries + 1):
                try:
                    result = func(*args, **kwargs)
                except retry_on as e:
                    delay = next(delays, None)
                    if delay is None:
                        logger.error(f"❌ Giving up on {func.__name__} after {attempt + 1} attempts: {e}")
                        raise
                    logger.warning(
                        f"⚠️ {func.__name__} failed ({type(e).__name__}: {e}), "
                        f"retry {attempt + 1}/{max_retries} in {delay:.1f}s"
                    )
                    time.sleep(delay)
                else:
                    if attempt:
                        logger.info(f"✅ {func.__name__} succeeded on retry {attempt}")
                    return result

        return wrapper
    return decorator
