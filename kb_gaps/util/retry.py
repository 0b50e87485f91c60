"""
Retry logic with exponential backoff for provider calls.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import TypeVar

from kb_gaps.exceptions import RetryableError

T = TypeVar("T")


def retry_with_backoff(
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 60.0,
    retryable_exceptions: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[Exception, int, int], None] | None = None,
):
    """
    Decorator to retry a function with exponential backoff.

    Only exceptions listed in ``retryable_exceptions`` are retried; anything
    else propagates on the first attempt.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        initial_delay: Initial delay in seconds (default: 1.0)
        backoff_factor: Multiplier for delay after each failure (default: 2.0)
        max_delay: Maximum delay between retries (default: 60.0)
        retryable_exceptions: Tuple of exception types to retry (default: all)
        on_retry: Optional callback called on each retry: (error, attempt, max_attempts)

    Returns:
        Decorated function with retry logic

    Raises:
        RetryableError: When every attempt failed with a retryable exception

    Example:
        @retry_with_backoff(max_attempts=3, initial_delay=2.0)
        def call_api():
            response = requests.post("https://api.example.com/search", json=body)
            response.raise_for_status()
            return response.json()
    """
    max_attempts = max(1, max_attempts)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            delay = initial_delay
            last_exception = None

            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e

                    if attempt == max_attempts:
                        break

                    if on_retry is not None:
                        on_retry(e, attempt, max_attempts)

                    time.sleep(min(delay, max_delay))
                    delay *= backoff_factor

            assert last_exception is not None  # Always set in the except block
            raise RetryableError(last_exception, max_attempts, max_attempts)

        return wrapper

    return decorator


def is_retryable_error(error: Exception) -> bool:
    """
    Determine if an error should be retried.

    Args:
        error: The exception to check

    Returns:
        True if error should be retried

    Retryable errors include:
    - Network errors
    - Timeout errors
    - Rate limit errors (429)
    - Server errors (500-599)
    """
    status = getattr(error, "status_code", None)
    if isinstance(status, int) and (status == 429 or status >= 500):
        return True

    error_msg = str(error).lower()

    if any(
        keyword in error_msg
        for keyword in [
            "connection",
            "timeout",
            "timed out",
            "network",
            "unreachable",
        ]
    ):
        return True

    if "rate limit" in error_msg or "429" in error_msg:
        return True

    if any(
        keyword in error_msg
        for keyword in ["500", "502", "503", "504", "server error", "internal error"]
    ):
        return True

    if "overloaded" in error_msg or "capacity" in error_msg:
        return True

    return False


def is_permission_error(error: Exception) -> bool:
    """
    Determine if an error means the credential itself is not accepted.

    Matches HTTP 401/403 status codes and "insufficient permissions" style
    payloads. Such errors cannot succeed on retry.
    """
    status = getattr(error, "status_code", None)
    if status in (401, 403):
        return True

    error_msg = str(error).lower()
    return any(
        keyword in error_msg
        for keyword in ["insufficient permissions", "model.request", "error code: 401", "error code: 403"]
    )


class RetryStrategy:
    """
    Preset retry parameters for provider calls.
    """

    LLM_API = {
        "initial_delay": 2.0,
        "backoff_factor": 2.0,
        "max_delay": 60.0,
    }

    @staticmethod
    def apply(strategy_name: str = "LLM_API") -> dict:
        """
        Get retry parameters for a named strategy.

        Args:
            strategy_name: Name of the strategy (LLM_API)

        Returns:
            Dictionary of retry parameters (without max_attempts)

        Raises:
            ValueError: If the strategy does not exist

        Example:
            params = RetryStrategy.apply("LLM_API")
            @retry_with_backoff(max_attempts=3, **params)
            def call_llm():
                ...
        """
        strategy = getattr(RetryStrategy, strategy_name, None)
        if not isinstance(strategy, dict):
            raise ValueError(f"Unknown retry strategy: {strategy_name}")
        return strategy.copy()
