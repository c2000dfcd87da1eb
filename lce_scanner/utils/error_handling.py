"""Error types and recovery helpers for the scanner.

Provides the exception hierarchy shared by the data layer, the market-data
client and the scan orchestrator, plus retry and safe-arithmetic helpers.
"""

import time
from typing import TypeVar, Callable, Type, Tuple
from functools import wraps
import logging

logger = logging.getLogger("lce_scanner.error_handling")

T = TypeVar('T')


def retry_with_backoff(
    max_retries: int = 3,
    backoff_factor: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    logger_func: Callable[[str], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
    max_wait: float | None = None,
):
    """Decorator to retry function with exponential backoff.

    Args:
        max_retries: Maximum number of attempts (1 = no retry)
        backoff_factor: Multiplier for exponential backoff (wait time = backoff_factor ** attempt)
        exceptions: Tuple of exception types to catch and retry
        logger_func: Optional logging function (defaults to logger.warning)
        sleep: Sleep function, injectable for tests
        max_wait: Longest single wait in seconds. A failure asking for more
            (e.g. a long Retry-After) is re-raised at once instead of waited out

    Returns:
        Decorated function with retry logic

    Example:
        >>> @retry_with_backoff(max_retries=3, exceptions=(TransientError,))
        >>> def fetch_chain():
        >>>     return client.get_option_chain("SPY")

    Raises:
        The original exception if all retries are exhausted
    """
    log_func = logger_func or logger.warning
    attempts = max(1, max_retries)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            for attempt in range(attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts - 1:
                        logger.error(
                            "Function %s failed after %d attempts: %s",
                            func.__name__, attempts, e
                        )
                        raise

                    wait_time = getattr(e, 'retry_after', None) or backoff_factor ** attempt
                    if max_wait is not None and wait_time > max_wait:
                        logger.warning(
                            "%s asked to wait %.1fs (limit %.1fs), giving up: %s",
                            func.__name__, wait_time, max_wait, e
                        )
                        raise

                    log_func(
                        f"Attempt {attempt + 1}/{attempts} failed for {func.__name__}: {e}. "
                        f"Retrying in {wait_time:.1f}s..."
                    )
                    sleep(wait_time)

            raise RuntimeError(f"Unexpected state in retry logic for {func.__name__}")

        return wrapper
    return decorator


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers, returning default on division by zero.

    Example:
        >>> safe_divide(0.5, 2.25) * 100
        22.22222222222222
        >>> safe_divide(0.5, 0, default=100.0)
        100.0
    """
    if denominator == 0:
        logger.debug("Division by zero: %s/%s, returning %s", numerator, denominator, default)
        return default
    return numerator / denominator


class ScannerError(Exception):
    """Base exception for scanner-related errors."""
    pass


class DataValidationError(ValueError, ScannerError):
    """Raised when a chain payload or contract fails validation.

    Inherits from ValueError so callers can treat it as bad input.
    """
    pass


class NoDataError(ScannerError):
    """Raised when a provider payload carries neither calls nor puts."""

    def __init__(self, symbol: str):
        super().__init__(f"No options data for {symbol}")
        self.symbol = symbol


class ConfigurationError(ScannerError):
    """Raised when configuration is missing or invalid."""
    pass


class ValidationError(ValueError, ScannerError):
    """Raised when user-supplied input (symbols, account numbers...) is invalid."""

    def __init__(self, message: str, field: str | None = None, code: str | None = None):
        super().__init__(message)
        self.field = field
        self.code = code


class MarketDataError(ScannerError):
    """Raised when the market-data provider rejects or fails a request."""

    def __init__(self, message: str, status: int | None = None, response_text: str | None = None):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


class NotFoundError(MarketDataError):
    """Requested symbol, account or order does not exist at the provider."""
    pass


class RateLimitedError(MarketDataError):
    """Provider rate limit hit (HTTP 429)."""

    def __init__(self, message: str, retry_after: float | None = None, **kwargs):
        super().__init__(message, status=kwargs.pop('status', 429), **kwargs)
        self.retry_after = retry_after


class TransientError(MarketDataError):
    """Server-side or network failure that may succeed on a later attempt."""
    pass


class AuthenticationError(MarketDataError):
    """Access token missing, expired or rejected."""
    pass
