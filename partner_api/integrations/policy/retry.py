from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from partner_api.integrations.errors import PartnerAPIError, RateLimitError, TransportError, is_retryable
from partner_api.utils.config_loader import RetryConfig

logger = logging.getLogger(__name__)


class RetryPolicy:
    """
    Exponential backoff with full jitter for idempotent requests.

    A 429 that tells us when the quota resets (Retry-After or X-RateLimit-Reset)
    waits for that instead of the computed backoff.
    """

    def __init__(self, config: Optional[RetryConfig] = None, rng: Callable[[], float] = random.random) -> None:
        self.config = config or RetryConfig()
        self._rng = rng
        self._methods = {m.upper() for m in self.config.retry_methods}
        self._statuses = set(self.config.retry_statuses)

    def should_retry(self, method: str, attempt: int, error: BaseException) -> bool:
        """``attempt`` is zero-based: the first retry is decided with attempt=0."""
        if attempt >= self.config.max_retries:
            return False
        if method.upper() not in self._methods:
            return False
        if not is_retryable(error):
            return False
        if isinstance(error, TransportError):
            return True
        status = getattr(error, "status_code", None)
        return status in self._statuses

    def backoff_delay(self, attempt: int, error: Optional[PartnerAPIError] = None) -> float:
        cap = self.config.max_backoff_seconds
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return min(cap, error.retry_after)
        ceiling = min(cap, self.config.backoff_factor * (2 ** attempt))
        return ceiling * self._rng()
