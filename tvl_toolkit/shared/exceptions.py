"""
Exception hierarchy for the TVL toolkit.

Exception Categories:
- RetryableException: Transient failures that may succeed on retry (RPC, HTTP)
- NonRetryableException: Permanent failures that won't benefit from retry
- ConfigurationException: Missing providers or invalid settings

Concrete exceptions:
- PriceAPIException -> RetryableException (rate limits, pricing outages)
- MulticallException -> RetryableException (batched RPC call failures)
- BalanceFormatException -> NonRetryableException (unparseable balances)
"""

from typing import Optional


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - RPC timeouts
    - Rate limiting (HTTP 429)
    - Temporary network issues
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Invalid input data
    - Unsupported chains
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration errors.

    Use when:
    - No provider is registered for a chain
    - An ABI short name is unknown
    """

    pass


class PriceAPIException(RetryableException):
    """
    Exception for pricing service failures.

    Raised on rate limiting and malformed price responses; the price client
    retries these before giving up on a request.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MulticallException(RetryableException):
    """Exception for a failed batched contract call round trip."""

    pass


class BalanceFormatException(NonRetryableException):
    """Exception for balance values that cannot be read as numbers."""

    pass
