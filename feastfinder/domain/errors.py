"""Error taxonomy shared by services, adapters and the web layer.

Every failure that crosses a layer boundary is a ServiceError carrying an
explicit ErrorCode and a retryable flag. Adapters translate library
exceptions (httpx, openai) into these; nothing downstream inspects
message text.
"""

import enum
from typing import Any, Dict, Optional


class ErrorCode(str, enum.Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    RESPONSE_FORMAT_ERROR = "RESPONSE_FORMAT_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ServiceError(Exception):
    """Base error with an explicit code and retry hint."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    retryable: bool = False

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if retryable is not None:
            self.retryable = retryable

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code.value, "retryable": self.retryable}


class ValidationError(ServiceError):
    """Bad input; fails fast before any cache or upstream interaction."""
    code = ErrorCode.VALIDATION_ERROR
    retryable = False


class ExternalServiceError(ServiceError):
    """An upstream call failed after local retries."""
    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    retryable = True


class AuthenticationFailedError(ServiceError):
    code = ErrorCode.AUTHENTICATION_ERROR
    retryable = False


class ServiceTimeoutError(ServiceError):
    """An outbound call exceeded its deadline."""
    code = ErrorCode.TIMEOUT_ERROR
    retryable = True


class ResponseFormatError(ServiceError):
    """Upstream answered, but the payload failed parsing or validation."""
    code = ErrorCode.RESPONSE_FORMAT_ERROR
    retryable = False


class RateLimitExceededError(ServiceError):
    code = ErrorCode.RATE_LIMIT_EXCEEDED
    retryable = True

    def __init__(self, message: str, reset_time: Optional[float] = None):
        super().__init__(message)
        self.reset_time = reset_time  # epoch seconds
