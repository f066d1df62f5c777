"""
Lightweight in-memory webhook event store for local development.

Implements the same interface as partner_api.database.redis_real so the
webhook receiver can run without a real Redis instance.
"""

from __future__ import annotations

import time
from typing import Callable, Dict


class WebhookEventStore:
    def __init__(self, ttl: int = 7 * 24 * 3600, clock: Callable[[], float] = time.time) -> None:
        # event_id -> expiry timestamp
        self._seen: Dict[str, float] = {}
        self._ttl = ttl
        self._clock = clock

    def _purge(self, now: float) -> None:
        expired = [event_id for event_id, expires in self._seen.items() if expires <= now]
        for event_id in expired:
            del self._seen[event_id]

    def mark_seen(self, event_id: str) -> bool:
        """Record ``event_id``; returns False if it was already recorded."""
        now = self._clock()
        self._purge(now)
        if event_id in self._seen:
            return False
        self._seen[event_id] = now + self._ttl
        return True

    def forget(self, event_id: str) -> None:
        self._seen.pop(event_id, None)

    def ping(self) -> bool:
        return True
