"""JSON envelopes shared by every API route.

Success: {"success": true, "data": ..., "metadata": {"timestamp": ms, ...}}
Failure: {"success": false, "error": {"message", "code", "retryable"}, "metadata": {...}}
"""

import functools
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, Union

from starlette.requests import Request
from starlette.responses import JSONResponse

from feastfinder.domain.errors import ErrorCode, RateLimitExceededError, ServiceError

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.RATE_LIMIT_EXCEEDED: 429,
    ErrorCode.SERVICE_UNAVAILABLE: 503,
}
DEFAULT_RESET_DELAY_MS = 60_000

RouteResult = Union[Any, Tuple[Any, Dict[str, Any]]]


def now_ms() -> int:
    return int(time.time() * 1000)


def status_for(error: ServiceError) -> int:
    return STATUS_BY_CODE.get(error.code, 500)


def success_response(data: Any, metadata: Optional[Mapping[str, Any]] = None) -> JSONResponse:
    return JSONResponse(
        {"success": True, "data": data, "metadata": {"timestamp": now_ms(), **(metadata or {})}}
    )


def error_response(error: ServiceError, metadata: Optional[Mapping[str, Any]] = None) -> JSONResponse:
    headers = {}
    if isinstance(error, RateLimitExceededError):
        reset_ms = int(error.reset_time * 1000) if error.reset_time else now_ms() + DEFAULT_RESET_DELAY_MS
        headers["X-RateLimit-Reset"] = str(reset_ms)
    return JSONResponse(
        {"success": False, "error": error.to_dict(), "metadata": {"timestamp": now_ms(), **(metadata or {})}},
        status_code=status_for(error),
        headers=headers,
    )


def api_endpoint(route: Callable[[Request], Awaitable[RouteResult]]):
    """Wraps a route returning `data` or `(data, metadata)` in the envelopes.

    ServiceErrors map to their status code; anything else is logged and
    reported as a 500 INTERNAL_ERROR without leaking details.
    """

    @functools.wraps(route)
    async def wrapper(request: Request) -> JSONResponse:
        try:
            result = await route(request)
        except ServiceError as e:
            logger.warning(f"{request.method} {request.url.path} -> {e.code.value}: {e.message}")
            return error_response(e)
        except Exception as e:
            logger.error(f"Unhandled error in {request.method} {request.url.path}: {e}", exc_info=True)
            return error_response(ServiceError("An unexpected error occurred. Please try again later."))
        if isinstance(result, tuple):
            data, metadata = result
            return success_response(data, metadata)
        return success_response(result)

    return wrapper
