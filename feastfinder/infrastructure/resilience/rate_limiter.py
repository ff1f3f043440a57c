"""Sliding-window rate limiter for inbound AI service requests.

Keeps one timestamp deque per service id, pruned to the trailing 24 hours
on every check. The minute, hour and day windows are all derived from that
single deque. Growth is bounded only by the daily prune, which is fine at
demo traffic levels.
"""

import collections
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Optional, Tuple

from feastfinder.domain.events.api_events import RateLimitRejected
from feastfinder.domain.models.config import RateLimitConfig

logger = logging.getLogger(__name__)

MINUTE_SECONDS = 60
HOUR_SECONDS = 60 * 60
DAY_SECONDS = 24 * 60 * 60


@dataclass
class RateLimitDecision:
    allowed: bool
    reset_time: Optional[float] = None  # epoch seconds when the blocking window frees a slot
    window: Optional[str] = None


class SlidingWindowRateLimiter:
    """Manages request rate limiting per service using sliding windows."""

    def __init__(self, clock: Callable[[], float] = time.time):
        # Epoch clock: reset times are handed back to clients.
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        logger.info("SlidingWindowRateLimiter initialized.")

    @staticmethod
    def _prune(timestamps: Deque[float], now: float) -> None:
        """Drops timestamps older than 24 hours. Deque is in arrival order."""
        while timestamps and timestamps[0] <= now - DAY_SECONDS:
            timestamps.popleft()

    def check(self, service_id: str, limits: RateLimitConfig) -> RateLimitDecision:
        """Checks limits for service_id and records the request if allowed.

        Windows are checked minute, hour, day; the first one at or over its
        limit rejects the call with the time its oldest counted request
        ages out.
        """
        windows: Tuple[Tuple[str, float, int], ...] = (
            ("minute", MINUTE_SECONDS, limits.requests_per_minute),
            ("hour", HOUR_SECONDS, limits.requests_per_hour),
            ("day", DAY_SECONDS, limits.requests_per_day),
        )
        with self._lock:
            now = self._clock()
            timestamps = self._requests.setdefault(service_id, collections.deque())
            self._prune(timestamps, now)

            for name, span, limit in windows:
                in_window = [t for t in timestamps if t > now - span]
                if len(in_window) >= limit:
                    reset_time = (min(in_window) if in_window else now) + span
                    logger.warning(
                        f"Rate limit exceeded for '{service_id}' ({name}: {len(in_window)}/{limit}). "
                        f"Resets at {reset_time:.3f}."
                    )
                    logger.debug(f"EVENT: {RateLimitRejected(service_id=service_id, window=name, reset_time=reset_time)}")
                    return RateLimitDecision(allowed=False, reset_time=reset_time, window=name)

            timestamps.append(now)
            logger.debug(f"Rate limit permission granted for '{service_id}' ({len(timestamps)} in last 24h).")
            return RateLimitDecision(allowed=True)

    def reset(self, service_id: str) -> None:
        """Forgets all recorded requests for a service."""
        with self._lock:
            self._requests.pop(service_id, None)
