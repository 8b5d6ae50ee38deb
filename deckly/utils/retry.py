"""Retry logic for transient failures.

Used for database writes (operational errors) and for outbound HTTP calls
to the ticketing API (timeouts, dropped connections).
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar, cast

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)

# Type variable for generic return type
T = TypeVar('T')


def with_retry(
    max_attempts: int = 3,
    delay: float = 0.1,
    backoff: float = 2,
    exceptions: tuple = (OperationalError,)
) -> Callable:
    """
    Decorator that retries a callable when it raises one of `exceptions`.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between attempts in seconds
        backoff: Multiplier for delay between attempts
        exceptions: Tuple of exceptions to catch and retry

    Example:
        @with_retry(max_attempts=3, exceptions=(requests.Timeout,))
        def fetch(url: str) -> dict:
            return requests.get(url, timeout=10).json()
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            current_delay = delay

            for attempt in range(max_attempts):
                try:
                    return cast(T, func(*args, **kwargs))
                except exceptions as e:
                    if attempt + 1 == max_attempts:
                        logger.error(
                            f"Final attempt failed for {func.__name__}: {str(e)}"
                        )
                        raise

                    logger.warning(
                        f"Attempt {attempt + 1}/{max_attempts} failed for "
                        f"{func.__name__}: {str(e)}. Retrying in {current_delay}s..."
                    )

                    time.sleep(current_delay)
                    current_delay *= backoff

            raise RuntimeError(f"{func.__name__} was called with max_attempts={max_attempts}")

        return wrapper
    return decorator
