"""Standardized retry logic for pagescout.

Provides a centralized way to create async retry configurations using tenacity.
"""

from collections.abc import Callable
from typing import Any

import logfire
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)


def get_async_retryer(
    max_attempts: int = 2,
    wait_min: float = 1.0,
    wait_max: float = 10.0,
    wait_multiplier: float = 1.0,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    log_callback: Callable[[Any], None] | None = None,
    reraise: bool = True,
) -> AsyncRetrying:
    """Create a standardized tenacity AsyncRetrying object.

    Args:
        max_attempts: Maximum number of attempts (1 disables retrying).
        wait_min: Minimum wait time between retries in seconds.
        wait_max: Maximum wait time between retries in seconds.
        wait_multiplier: Multiplier for exponential backoff.
        exceptions: Tuple of exception types to retry on.
        log_callback: Optional callback for before_sleep logging.
                      Receives the retry state.
        reraise: Whether to reraise the exception after all retries fail.

    Returns:
        A configured tenacity.AsyncRetrying object.

    """
    return AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_exponential(multiplier=wait_multiplier, min=wait_min, max=wait_max),
        retry=retry_if_exception_type(exceptions),
        before_sleep=log_callback or log_retry,
        reraise=reraise,
    )


def log_retry(retry_state: Any) -> None:
    """Default logging callback for retries.

    Args:
        retry_state: The tenacity retry state object.

    """
    exception = retry_state.outcome.exception()
    attempt = retry_state.attempt_number
    logfire.warn('Retrying operation', attempt=attempt, error=str(exception) if exception else 'Unknown error')
