"""
Retry helpers for transient RPC and HTTP failures.

Two entry points share one retry loop:
- with_retry: decorator for async functions with a fixed attempt budget
- retry_async_operation: call-time variant, for budgets chosen by the caller

Only exceptions listed in ``retryable_exceptions`` are retried. By default
that is RetryableException plus transport errors from httpx and web3;
NonRetryableException and anything else propagates on the first failure.
"""

import asyncio
import logging
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type, TypeVar

import httpx
from web3.exceptions import BadFunctionCallOutput, Web3Exception

from tvl_toolkit.shared.exceptions import RetryableException

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    RetryableException,  # PriceAPIException, MulticallException
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
    Web3Exception,
    BadFunctionCallOutput,
)

OnRetry = Callable[[Exception, int], None]


def _backoff_delay(
    attempt: int, base_delay: float, max_delay: float, exponential: bool
) -> float:
    if exponential:
        return min(base_delay * (2**attempt), max_delay)
    return base_delay


async def _run(
    operation: Callable[..., Any],
    args: Tuple[Any, ...],
    kwargs: dict,
    name: str,
    max_attempts: int,
    base_delay: float,
    max_delay: float,
    exponential: bool,
    retryable_exceptions: Tuple[Type[Exception], ...],
    on_retry: Optional[OnRetry] = None,
) -> Any:
    attempts = max(1, max_attempts)

    for attempt in range(attempts):
        try:
            return await operation(*args, **kwargs)
        except retryable_exceptions as e:
            if attempt == attempts - 1:
                raise

            delay = _backoff_delay(attempt, base_delay, max_delay, exponential)
            logger.warning(
                f"Attempt {attempt + 1}/{attempts} failed for {name}: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            if on_retry:
                on_retry(e, attempt + 1)
            await asyncio.sleep(delay)

    raise RuntimeError(f"{name}: retry loop exited without a result")


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential: bool = True,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    on_retry: Optional[OnRetry] = None,
) -> Callable:
    """
    Decorator for retrying async functions with backoff.

    Args:
        max_attempts: Total attempts, including the first call
        base_delay: Delay before the first retry, in seconds
        max_delay: Upper bound for any single delay
        exponential: Double the delay after each failure
        retryable_exceptions: Exception types worth retrying
        on_retry: Called with (exception, attempt) before each retry

    Example:
        @with_retry(max_attempts=3, base_delay=1.0)
        async def fetch_block():
            ...
    """
    retryable = retryable_exceptions or DEFAULT_RETRYABLE_EXCEPTIONS

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await _run(
                func,
                args,
                kwargs,
                func.__name__,
                max_attempts,
                base_delay,
                max_delay,
                exponential,
                retryable,
                on_retry,
            )

        return wrapper

    return decorator


async def retry_async_operation(
    operation: Callable[..., T],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential: bool = True,
    retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    operation_name: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """
    Call ``operation(*args, **kwargs)`` with retries.

    Budgets below 1 still make a single attempt.

    Example:
        prices = await retry_async_operation(
            fetch_prices,
            url,
            max_attempts=user_budget,
            operation_name="coingecko_prices",
        )
    """
    return await _run(
        operation,
        args,
        kwargs,
        operation_name or getattr(operation, "__name__", "operation"),
        max_attempts,
        base_delay,
        max_delay,
        exponential,
        retryable_exceptions or DEFAULT_RETRYABLE_EXCEPTIONS,
    )


class RetryConfig:
    """Reusable retry settings shared by several call sites."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential: bool = True,
        retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None,
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential = exponential
        self.retryable_exceptions = (
            retryable_exceptions or DEFAULT_RETRYABLE_EXCEPTIONS
        )

    def decorator(self) -> Callable:
        return with_retry(
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            exponential=self.exponential,
            retryable_exceptions=self.retryable_exceptions,
        )


# Multicall round trips
RPC_RETRY_CONFIG = RetryConfig(max_attempts=3, base_delay=1.0, max_delay=10.0)

# CoinGecko requests (attempt count comes from the caller)
HTTP_RETRY_CONFIG = RetryConfig(max_attempts=3, base_delay=0.5, max_delay=5.0)
