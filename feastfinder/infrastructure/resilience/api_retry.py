"""Service for executing outbound API calls with automatic retries.

Implements exponential backoff (1s, 2s, 4s, ...) for transient failures
such as timeouts, connection errors, HTTP 429 and 5xx. Anything else fails
fast. The final failure is always surfaced as a ServiceError so the web
layer can render a uniform error envelope.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Coroutine, Optional

import httpx

from feastfinder.domain.errors import (
    ExternalServiceError,
    ServiceError,
    ServiceTimeoutError,
)
from feastfinder.domain.events.api_events import (
    ApiCallFailed,
    ApiCallInitiated,
    ApiCallSucceeded,
    RetryScheduled,
)

logger = logging.getLogger(__name__)

DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_INITIAL_BACKOFF_S = 1.0
DEFAULT_BACKOFF_FACTOR = 2.0


def is_retryable_error(error: BaseException) -> bool:
    """Classifies an error by type, never by message text."""
    if isinstance(error, ServiceError):
        return error.retryable
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    if isinstance(error, (httpx.TimeoutException, httpx.TransportError)):
        # Connect refused, DNS failure, reset connections, read/write timeouts.
        return True
    if isinstance(error, (TimeoutError, ConnectionError)):
        return True
    return False


def describe_error(error: BaseException) -> str:
    if isinstance(error, httpx.HTTPStatusError):
        return f"External API returned {error.response.status_code}: {error.response.reason_phrase}"
    if isinstance(error, (httpx.TimeoutException, TimeoutError)):
        return "Request timed out"
    if isinstance(error, httpx.TransportError):
        return f"Network error: {error}" if str(error) else "Network error"
    return str(error) or type(error).__name__


def wrap_error(error: BaseException, default_message: str) -> ServiceError:
    """Converts a raw failure into the uniform {message, code, retryable} shape."""
    if isinstance(error, ServiceError):
        return error
    message = f"{default_message}: {describe_error(error)}"
    if isinstance(error, (httpx.TimeoutException, TimeoutError)):
        return ServiceTimeoutError(message)
    return ExternalServiceError(message, retryable=is_retryable_error(error))


class ApiRetryService:
    """Handles API call execution with retries and exponential backoff."""

    def __init__(
        self,
        max_retries: int = DEFAULT_RETRY_ATTEMPTS,
        initial_backoff_s: float = DEFAULT_INITIAL_BACKOFF_S,
        backoff_factor: float = DEFAULT_BACKOFF_FACTOR,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """Initializes the ApiRetryService.

        Args:
            max_retries: Default number of retries after the first attempt.
            initial_backoff_s: Delay in seconds before the first retry.
            backoff_factor: Multiplier applied to the delay on every retry.
            sleep: Awaitable used to wait between attempts (replaced in tests).
        """
        self.max_retries = max_retries
        self.initial_backoff_s = initial_backoff_s
        self.backoff_factor = backoff_factor
        self._sleep = sleep

        logger.info(
            f"ApiRetryService initialized: max_retries={max_retries}, "
            f"initial_backoff={initial_backoff_s}s, factor={backoff_factor}"
        )

    def backoff_for(self, attempt: int) -> float:
        """Delay before retrying after the given zero-based attempt."""
        return self.initial_backoff_s * (self.backoff_factor ** attempt)

    async def execute_with_retry(
        self,
        func: Callable[..., Coroutine[Any, Any, Any]],
        *args: Any,
        retry_attempts: Optional[int] = None,
        provider_name: str = "external",
        endpoint_name: Optional[str] = None,
        error_message: str = "External request failed",
        **kwargs: Any,
    ) -> Any:
        """Executes an async function, retrying transient failures.

        Args:
            func: The async function (API call) to execute.
            *args: Positional arguments for the function.
            retry_attempts: Retries after the first attempt (service default if None).
            provider_name: Name of the upstream, for logging and events.
            endpoint_name: Name of the endpoint called, for logging and events.
            error_message: Prefix used when wrapping the final error.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function call.

        Raises:
            ServiceError: The wrapped last error, once retries are exhausted
                or as soon as a non-retryable error occurs.
        """
        retries = self.max_retries if retry_attempts is None else retry_attempts
        endpoint = endpoint_name or getattr(func, "__name__", "call")
        last_exception: Optional[BaseException] = None

        for attempt in range(retries + 1):
            logger.debug(f"EVENT: {ApiCallInitiated(provider=provider_name, endpoint=endpoint, attempt_number=attempt + 1)}")
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                last_exception = e
                retryable = is_retryable_error(e)
                if not retryable:
                    logger.error(
                        f"Non-retryable error calling {provider_name}.{endpoint} on attempt {attempt + 1}: {e}"
                    )
                    break
                if attempt == retries:
                    logger.error(f"Max retries ({retries}) reached for {provider_name}.{endpoint}. Last error: {e}")
                    break
                delay = self.backoff_for(attempt)
                logger.warning(
                    f"Retryable error calling {provider_name}.{endpoint} on attempt {attempt + 1}/{retries + 1}: "
                    f"{type(e).__name__}. Waiting {delay:.2f}s..."
                )
                logger.debug(f"EVENT: {RetryScheduled(provider=provider_name, endpoint=endpoint, attempt_number=attempt + 1, delay_seconds=delay)}")
                await self._sleep(delay)
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.debug(f"EVENT: {ApiCallSucceeded(provider=provider_name, endpoint=endpoint, latency_ms=latency_ms)}")
            return result

        final_error = wrap_error(last_exception or RuntimeError("unknown error"), error_message)
        logger.debug(
            f"EVENT: {ApiCallFailed(provider=provider_name, endpoint=endpoint, error_type=type(last_exception).__name__, error_message=final_error.message, retryable=final_error.retryable)}"
        )
        raise final_error from last_exception
