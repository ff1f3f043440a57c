"""Domain Events related to outbound API calls and resilience.

Examples include events for when calls are started, retried, fail, succeed
or are rejected by the rate limiter.
"""

from dataclasses import dataclass, field
import time
from typing import Optional


@dataclass
class DomainEvent:
    """Base class for domain events."""
    pass


@dataclass
class ApiCallInitiated(DomainEvent):
    """Event triggered when an API call is about to be made."""
    provider: str  # e.g., 'sample-api', 'openai'
    endpoint: str
    attempt_number: int = 1
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallSucceeded(DomainEvent):
    provider: str
    endpoint: str
    latency_ms: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class ApiCallFailed(DomainEvent):
    """Event triggered when an API call fails definitively (after retries)."""
    provider: str
    endpoint: str
    error_type: str
    error_message: str
    retryable: bool = False
    timestamp: float = field(default_factory=time.time)


@dataclass
class RetryScheduled(DomainEvent):
    provider: str
    endpoint: str
    attempt_number: int
    delay_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class RateLimitRejected(DomainEvent):
    """Event triggered when the limiter turns a request away."""
    service_id: str
    window: str  # 'minute', 'hour' or 'day'
    reset_time: Optional[float] = None
    timestamp: float = field(default_factory=time.time)
