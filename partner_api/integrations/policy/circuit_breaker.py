"""
Circuit breaker for Partner API calls.

CLOSED    -> normal operation; consecutive failures are counted
OPEN      -> calls fail fast with CircuitOpenError until the recovery timeout passes
HALF_OPEN -> one trial call is let through; success closes, failure re-opens

Only server-side trouble counts as failure (5xx, 429, transport errors).
Client errors such as 400/404 mean the service is healthy.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from partner_api.integrations.errors import CircuitOpenError, is_retryable
from partner_api.utils.config_loader import CircuitBreakerConfig

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    def __init__(
        self,
        config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "partner_api",
    ) -> None:
        self.config = config or CircuitBreakerConfig()
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        with self._lock:
            self._maybe_half_open()
            return self._state

    @property
    def failure_count(self) -> int:
        return self._failures

    def _transition(self, new_state: CircuitState) -> None:
        if new_state != self._state:
            logger.warning("Circuit '%s' %s -> %s (failures=%d)", self.name, self._state.value, new_state.value, self._failures)
            self._state = new_state

    def _maybe_half_open(self) -> None:
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if self._clock() - self._opened_at >= self.config.recovery_timeout_seconds:
                self._transition(CircuitState.HALF_OPEN)
                self._trial_in_flight = False

    def before_call(self) -> None:
        """Raise CircuitOpenError when the call must not go out."""
        if not self.config.enabled:
            return
        with self._lock:
            self._maybe_half_open()
            if self._state == CircuitState.OPEN:
                remaining = self.config.recovery_timeout_seconds - (self._clock() - (self._opened_at or 0.0))
                raise CircuitOpenError(f"Circuit '{self.name}' is open; retry in {max(0.0, remaining):.1f}s")
            if self._state == CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    raise CircuitOpenError(f"Circuit '{self.name}' is half-open; trial call already in flight")
                self._trial_in_flight = True

    def record_success(self) -> None:
        if not self.config.enabled:
            return
        with self._lock:
            self._failures = 0
            self._opened_at = None
            self._trial_in_flight = False
            self._transition(CircuitState.CLOSED)

    def record_failure(self, error: BaseException) -> None:
        if not self.config.enabled:
            return
        with self._lock:
            if not is_retryable(error):
                # the service answered, which breaks the failure streak
                self._failures = 0
                if self._state == CircuitState.HALF_OPEN:
                    self._trial_in_flight = False
                    self._opened_at = None
                    self._transition(CircuitState.CLOSED)
                return
            self._failures += 1
            if self._state == CircuitState.HALF_OPEN or self._failures >= self.config.failure_threshold:
                self._opened_at = self._clock()
                self._trial_in_flight = False
                self._transition(CircuitState.OPEN)

    def release_trial(self) -> None:
        """Free the half-open trial slot when a call ended without an answer to judge."""
        with self._lock:
            self._trial_in_flight = False

    def reset(self) -> None:
        with self._lock:
            self._failures = 0
            self._opened_at = None
            self._trial_in_flight = False
            self._transition(CircuitState.CLOSED)
