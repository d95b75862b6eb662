"""Resilience layer for remote API calls.

Provides retry logic, error classification, and user-friendly error messages
for handling transient network failures gracefully.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from pokedex.data.source import MalformedResponseError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorCategory(Enum):
    """Classification of API errors for retry decisions."""

    TRANSIENT = "transient"  # Network issues, timeouts, 5xx - safe to retry
    PERMANENT = "permanent"  # Bad request, bad payload - don't retry


# HTTP statuses worth retrying even though they are client errors
RETRYABLE_STATUS_CODES = (408, 425, 429)

# Error messages indicating transient issues
TRANSIENT_ERROR_MESSAGES = (
    "timeout",
    "timed out",
    "network",
    "connection refused",
    "connection reset",
    "broken pipe",
    "no route to host",
    "temporarily unavailable",
)


def _status_code(exception: Exception) -> Optional[int]:
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code
    if isinstance(exception, TransportError):
        return exception.status_code
    return None


def classify_error(exception: Exception) -> ErrorCategory:
    """Classify an exception to determine retry behavior.

    Args:
        exception: The exception to classify

    Returns:
        ErrorCategory indicating whether to retry or fail
    """
    if isinstance(exception, MalformedResponseError):
        return ErrorCategory.PERMANENT

    status = _status_code(exception)
    if status is not None:
        if status >= 500 or status in RETRYABLE_STATUS_CODES:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.PERMANENT

    if isinstance(exception, (httpx.TimeoutException, httpx.NetworkError,
                              httpx.RemoteProtocolError, TimeoutError,
                              ConnectionError)):
        return ErrorCategory.TRANSIENT

    error_msg = str(exception).lower()
    for indicator in TRANSIENT_ERROR_MESSAGES:
        if indicator in error_msg:
            return ErrorCategory.TRANSIENT

    # Unknown errors are not retried; a bug should surface, not loop
    logger.warning(f"Unknown error type {type(exception).__name__}: {exception}")
    return ErrorCategory.PERMANENT


def get_user_message(exception: Exception) -> str:
    """Get a user-friendly error message for an exception.

    Args:
        exception: The exception to describe

    Returns:
        Human-readable error message
    """
    if isinstance(exception, MalformedResponseError):
        return "The server sent an unexpected response. Please try again later."

    status = _status_code(exception)
    if status == 429:
        return "Too many requests. Please wait a moment and try again."
    if status is not None and status >= 500:
        return "The server is having trouble right now. Please try again."

    error_msg = str(exception).lower()

    if "timeout" in error_msg or "timed out" in error_msg:
        return "The server took too long to respond. Please try again."

    if any(x in error_msg for x in ("connection", "network", "refused", "reset")):
        return "Unable to reach the server. Please check your internet connection."

    if classify_error(exception) == ErrorCategory.TRANSIENT:
        return "A temporary error occurred. Please try again."

    return f"Request failed: {exception}"


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    initial_delay: float = 0.5,
    max_delay: float = 5.0,
    backoff_factor: float = 2.0,
    on_retry: Optional[Callable[[int, float, Exception], None]] = None,
) -> T:
    """Execute an async operation with exponential backoff retry.

    Args:
        operation: Async callable to execute
        max_retries: Maximum number of retry attempts (default: 2)
        initial_delay: Initial delay between retries in seconds (default: 0.5)
        max_delay: Maximum delay between retries in seconds (default: 5.0)
        backoff_factor: Multiplier for delay after each retry (default: 2.0)
        on_retry: Optional callback(attempt, delay, error) called before each retry

    Returns:
        Result of the operation

    Raises:
        Exception: The last exception if all retries fail, or immediately
                   for permanent errors
    """
    delay = initial_delay

    for attempt in range(max_retries + 1):
        try:
            return await operation()
        except Exception as e:
            if classify_error(e) == ErrorCategory.PERMANENT:
                logger.error(f"Permanent error (no retry): {e}")
                raise

            if attempt >= max_retries:
                logger.error(f"Max retries ({max_retries}) exceeded: {e}")
                raise

            logger.warning(
                f"Transient error (attempt {attempt + 1}/{max_retries + 1}), "
                f"retrying in {delay:.1f}s: {e}"
            )

            if on_retry:
                on_retry(attempt + 1, delay, e)

            await asyncio.sleep(delay)
            delay = min(delay * backoff_factor, max_delay)

    raise RuntimeError("Retry loop completed without result or exception")
