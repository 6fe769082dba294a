"""Centralized resilience patterns using hyx.

Pre-configured patterns for the two kinds of external collaborators:
- LLM calls (synthesis, fact extraction)
- HTTP tool calls (geocoding, stations, places, reinfolib)

Usage:
    from flyer_deck.core.resilience import (
        llm_retry,
        llm_circuit_breaker,
        llm_timeout,
        wrap_anthropic_errors,
    )

    @llm_retry
    @llm_circuit_breaker
    @llm_timeout
    @wrap_anthropic_errors
    async def call_llm_api(...):
        ...

HTTP tools build their own breaker with tool_circuit_breaker() so one
failing provider does not open the circuit for the others.
"""

import asyncio
from functools import wraps
from typing import Any, Callable, TypeVar

from hyx.circuitbreaker.api import consecutive_breaker
from hyx.circuitbreaker.exceptions import BreakerFailing
from hyx.retry.api import retry
from hyx.retry.backoffs import expo
from hyx.timeout.exceptions import MaxDurationExceeded

# Aliases for clarity
BreakerOpen = BreakerFailing
MaxTimeoutExceeded = MaxDurationExceeded

__all__ = [
    # Exceptions
    "BreakerOpen",
    "MaxTimeoutExceeded",
    "TransientError",
    "RateLimitError",
    "PermanentError",
    # Tool patterns
    "tool_retry",
    "tool_circuit_breaker",
    "tool_timeout",
    # LLM patterns
    "llm_retry",
    "llm_circuit_breaker",
    "llm_timeout",
    # Error classification
    "classify_http_error",
    "wrap_httpx_errors",
    "wrap_anthropic_errors",
    # Configuration
    "ResilienceConfig",
]


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class TransientError(Exception):
    """Error that is likely to succeed on retry (network issues, timeouts)."""
    pass


class RateLimitError(Exception):
    """Error indicating rate limiting (HTTP 429, throttling)."""
    pass


class PermanentError(Exception):
    """Error that will not succeed on retry (HTTP 4xx other than 429)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# CONFIGURATION
# =============================================================================


class ResilienceConfig:
    """Centralized configuration for resilience patterns."""

    # Tool (HTTP) Configuration
    TOOL_RETRY_ATTEMPTS: int = 3
    TOOL_RETRY_BACKOFF_BASE: float = 1.0  # seconds
    TOOL_RETRY_BACKOFF_MAX: float = 10.0  # seconds

    TOOL_CIRCUIT_FAILURE_THRESHOLD: int = 5
    TOOL_CIRCUIT_RECOVERY_TIME: float = 30.0  # seconds
    TOOL_CIRCUIT_RECOVERY_THRESHOLD: int = 2

    TOOL_TIMEOUT: float = 30.0  # seconds

    # LLM Configuration
    LLM_RETRY_ATTEMPTS: int = 3
    LLM_RETRY_BACKOFF_BASE: float = 2.0  # seconds (longer for rate limits)
    LLM_RETRY_BACKOFF_MAX: float = 60.0  # seconds

    LLM_CIRCUIT_FAILURE_THRESHOLD: int = 3
    LLM_CIRCUIT_RECOVERY_TIME: float = 60.0  # seconds
    LLM_CIRCUIT_RECOVERY_THRESHOLD: int = 1

    LLM_TIMEOUT: float = 120.0  # seconds (vision and long JSON outputs are slow)


# Type variable for generic functions
F = TypeVar("F", bound=Callable[..., Any])


def _wait_for_timeout(seconds: float) -> Callable[[F], F]:
    """Build a timeout decorator that creates no loop state at import time."""

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await asyncio.wait_for(func(*args, **kwargs), timeout=seconds)
            except asyncio.TimeoutError:
                raise MaxTimeoutExceeded(f"Operation timed out after {seconds}s")

        return wrapper  # type: ignore

    return decorator


# =============================================================================
# TOOL RESILIENCE PATTERNS
# =============================================================================


# Retry for HTTP tool calls with exponential backoff
tool_retry = retry(
    on=(TransientError, RateLimitError, ConnectionError, TimeoutError),
    attempts=ResilienceConfig.TOOL_RETRY_ATTEMPTS,
    backoff=expo(
        min_delay_secs=ResilienceConfig.TOOL_RETRY_BACKOFF_BASE,
        max_delay_secs=ResilienceConfig.TOOL_RETRY_BACKOFF_MAX,
    ),
)


def tool_circuit_breaker() -> Any:
    """Create a circuit breaker for one external provider."""
    return consecutive_breaker(
        exceptions=(TransientError, RateLimitError, ConnectionError, TimeoutError),
        failure_threshold=ResilienceConfig.TOOL_CIRCUIT_FAILURE_THRESHOLD,
        recovery_time_secs=ResilienceConfig.TOOL_CIRCUIT_RECOVERY_TIME,
        recovery_threshold=ResilienceConfig.TOOL_CIRCUIT_RECOVERY_THRESHOLD,
    )


tool_timeout = _wait_for_timeout(ResilienceConfig.TOOL_TIMEOUT)


# =============================================================================
# LLM RESILIENCE PATTERNS
# =============================================================================


# Retry for LLM API calls with exponential backoff
llm_retry = retry(
    on=(TransientError, RateLimitError, ConnectionError, TimeoutError),
    attempts=ResilienceConfig.LLM_RETRY_ATTEMPTS,
    backoff=expo(
        min_delay_secs=ResilienceConfig.LLM_RETRY_BACKOFF_BASE,
        max_delay_secs=ResilienceConfig.LLM_RETRY_BACKOFF_MAX,
    ),
)

# Circuit breaker for the LLM provider
llm_circuit_breaker = consecutive_breaker(
    exceptions=(TransientError, RateLimitError, ConnectionError),
    failure_threshold=ResilienceConfig.LLM_CIRCUIT_FAILURE_THRESHOLD,
    recovery_time_secs=ResilienceConfig.LLM_CIRCUIT_RECOVERY_TIME,
    recovery_threshold=ResilienceConfig.LLM_CIRCUIT_RECOVERY_THRESHOLD,
)

llm_timeout = _wait_for_timeout(ResilienceConfig.LLM_TIMEOUT)


# =============================================================================
# ERROR CLASSIFICATION
# =============================================================================


def classify_http_error(status_code: int) -> Exception:
    """
    Classify HTTP status codes into resilience-aware exceptions.

    Args:
        status_code: HTTP status code

    Returns:
        RateLimitError for 429, TransientError for 5xx,
        PermanentError for everything else
    """
    if status_code == 429:
        return RateLimitError(f"Rate limited (HTTP {status_code})")
    elif status_code >= 500:
        return TransientError(f"Server error (HTTP {status_code})")
    elif status_code >= 400:
        return PermanentError(f"Client error (HTTP {status_code})", status_code)
    return PermanentError(f"Unexpected status (HTTP {status_code})", status_code)


def wrap_httpx_errors(func: F) -> F:
    """
    Decorator to convert httpx exceptions to resilience-aware exceptions.

    This allows the retry and circuit breaker patterns to properly
    classify transient vs permanent errors.
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        import httpx

        try:
            return await func(*args, **kwargs)
        except httpx.TimeoutException as e:
            raise TransientError(f"Request timeout: {e}") from e
        except httpx.ConnectError as e:
            raise TransientError(f"Connection error: {e}") from e
        except httpx.HTTPStatusError as e:
            raise classify_http_error(e.response.status_code) from e

    return wrapper  # type: ignore


def wrap_anthropic_errors(func: F) -> F:
    """
    Decorator to convert Anthropic API exceptions to resilience-aware exceptions.
    """
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        import anthropic

        try:
            return await func(*args, **kwargs)
        except anthropic.RateLimitError as e:
            raise RateLimitError(f"Anthropic rate limit: {e}") from e
        except anthropic.APIConnectionError as e:
            raise TransientError(f"Anthropic connection error: {e}") from e
        except anthropic.InternalServerError as e:
            raise TransientError(f"Anthropic server error: {e}") from e
        except anthropic.APIStatusError as e:
            if e.status_code == 529:  # Overloaded
                raise TransientError(f"Anthropic overloaded: {e}") from e
            raise

    return wrapper  # type: ignore
