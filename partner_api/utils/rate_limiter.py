"""
Rate limiting utilities for Partner API calls
"""
import time
from collections import deque
from dataclasses import dataclass
from typing import Mapping, Optional
import logging

logger = logging.getLogger(__name__)

# Reset values above this are treated as epoch seconds, below as a delta.
_EPOCH_THRESHOLD = 1_000_000_000


def _int_header(headers: Mapping[str, str], name: str) -> Optional[int]:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(float(str(raw).strip()))
    except (ValueError, OverflowError):
        return None


@dataclass
class RateLimitInfo:
    """Quota snapshot taken from ``X-RateLimit-*`` response headers."""

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[int] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo":
        # requests and httpx both hand us case-insensitive mappings
        return cls(
            limit=_int_header(headers, "X-RateLimit-Limit"),
            remaining=_int_header(headers, "X-RateLimit-Remaining"),
            reset=_int_header(headers, "X-RateLimit-Reset"),
        )

    def seconds_until_reset(self, now: Optional[float] = None) -> Optional[float]:
        if self.reset is None:
            return None
        if self.reset >= _EPOCH_THRESHOLD:
            current = time.time() if now is None else now
            return max(0.0, self.reset - current)
        return float(max(0, self.reset))

    @property
    def exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0


class RateLimiter:
    """
    Client-side pacer that enforces a requests per minute limit
    Uses sliding window algorithm
    """

    def __init__(self, requests_per_minute: int, clock=time.time, sleep=time.sleep):
        """
        Initialize rate limiter

        Args:
            requests_per_minute: Maximum number of requests allowed per minute (0 disables)
        """
        self.requests_per_minute = requests_per_minute
        self.request_times: deque = deque()
        self.last_request_time: Optional[float] = None
        self._clock = clock
        self._sleep = sleep

    def _cleanup_old_requests(self, current_time: float) -> None:
        """Remove requests older than 1 minute"""
        while self.request_times and current_time - self.request_times[0] >= 60.0:
            self.request_times.popleft()

    def wait_if_needed(self) -> float:
        """
        Wait if necessary to respect rate limit
        Should be called before each request. Returns the seconds slept.
        """
        if not self.requests_per_minute:
            return 0.0

        waited = 0.0
        current_time = self._clock()
        self._cleanup_old_requests(current_time)

        if len(self.request_times) >= self.requests_per_minute:
            oldest_time = self.request_times[0]
            wait_time = 60.0 - (current_time - oldest_time)
            if wait_time > 0:
                logger.debug("Rate limit reached. Waiting %.2f seconds", wait_time)
                self._sleep(wait_time)
                waited = wait_time
                current_time = self._clock()
                self._cleanup_old_requests(current_time)

        now = self._clock()
        self.request_times.append(now)
        self.last_request_time = now
        return waited

    def pause_for(self, info: RateLimitInfo) -> float:
        """Sleep until the server-side quota resets when it is exhausted."""
        if not info.exhausted:
            return 0.0
        delay = info.seconds_until_reset(now=self._clock()) or 0.0
        if delay > 0:
            logger.info("Server quota exhausted (limit=%s). Sleeping %.1fs until reset", info.limit, delay)
            self._sleep(delay)
        return delay

    def get_stats(self) -> dict:
        """Get current rate limiter statistics"""
        current_time = self._clock()
        self._cleanup_old_requests(current_time)

        return {
            'requests_in_last_minute': len(self.request_times),
            'limit': self.requests_per_minute,
            'last_request_time': self.last_request_time
        }
