"""
Retry utilities for handling rate limits and transient provider errors.
"""

import asyncio
import logging
import re
from collections.abc import Callable
from typing import Any

import anthropic

logger = logging.getLogger(__name__)

# Provider exceptions that are transient and worth retrying.
# Authentication, bad request and permission errors are permanent.
_TRANSIENT_PROVIDER_ERRORS: tuple[type[Exception], ...] = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,  # includes APITimeoutError
    anthropic.InternalServerError,
)


def is_transient_provider_error(exception: Exception) -> bool:
    """Check if a model provider error is transient and worth retrying.

    Covers rate limits (429), connection failures and timeouts, and 5xx
    responses including ``overloaded_error`` (529).
    """
    if isinstance(exception, _TRANSIENT_PROVIDER_ERRORS):
        return True
    if isinstance(exception, anthropic.APIStatusError):
        return exception.status_code == 429 or exception.status_code >= 500
    return False


def _retry_after_seconds(exception: Exception) -> float | None:
    """Server-suggested wait, from a Retry-After header or the error text."""
    response = getattr(exception, "response", None)
    headers = getattr(response, "headers", None)
    if headers is not None:
        retry_after = headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
    match = re.search(r"(\d+)\s{0,10}seconds?", str(exception), re.IGNORECASE)
    if match:
        return float(match.group(1))
    return None


async def run_with_retry(
    func: Callable[[], Any],
    max_retries: int = 3,
    initial_delay: float = 2.0,
    backoff_factor: float = 2.0,
    retry_on_rate_limit: bool = True,
) -> Any:
    """
    Execute an async function with retry logic for rate limit and transient errors.

    Args:
        func: Async function to execute (no parameters)
        max_retries: Maximum number of attempts
        initial_delay: Initial delay in seconds before first retry
        backoff_factor: Multiplier for delay between retries
        retry_on_rate_limit: Whether to retry on rate limit errors

    Returns:
        Result from the function

    Raises:
        Exception: If max retries exceeded or non-retryable error occurs
    """
    attempts = max(1, max_retries)

    for attempt in range(attempts):
        try:
            return await func()
        except Exception as e:
            error_str = str(e).lower()
            is_rate_limit = (
                isinstance(e, anthropic.RateLimitError)
                or "rate limit" in error_str
                or "rate_limit" in error_str
            )
            is_transient = (
                isinstance(e, (TimeoutError, asyncio.TimeoutError))
                or is_transient_provider_error(e)
            )

            should_retry = (is_rate_limit or is_transient) and retry_on_rate_limit

            if should_retry and attempt < attempts - 1:
                wait_time = _retry_after_seconds(e)
                if wait_time is None:
                    wait_time = initial_delay * (backoff_factor**attempt)

                error_type = "rate limit" if is_rate_limit else "connection/timeout"
                logger.warning(
                    "Transient %s error detected (%s). Attempt %s/%s. Waiting %.1f seconds before retry...",
                    error_type,
                    e,
                    attempt + 1,
                    attempts,
                    wait_time,
                )
                await asyncio.sleep(wait_time)
                continue

            # If not retryable or max retries reached, raise the exception
            raise

    raise RuntimeError("Max retries exceeded")
