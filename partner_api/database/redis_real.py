"""
Real Redis-backed webhook event store for production when REDIS_URL is set.
Implements the same interface as partner_api.database.redis (in-memory stub).
"""

from __future__ import annotations

from typing import Optional

import redis


class RedisWebhookEventStore:
    """
    Deduplicates webhook deliveries across worker processes.
    """

    def __init__(self, url: Optional[str] = None, ttl: int = 7 * 24 * 3600, client: Optional[redis.Redis] = None) -> None:
        if client is None and not url:
            raise ValueError("RedisWebhookEventStore needs a REDIS_URL or a client")
        self._client = client or redis.from_url(url, decode_responses=True)
        self._ttl = ttl

    def _key(self, event_id: str) -> str:
        return f"partner_webhook:{event_id}"

    def mark_seen(self, event_id: str) -> bool:
        return bool(self._client.set(self._key(event_id), "1", nx=True, ex=self._ttl))

    def forget(self, event_id: str) -> None:
        self._client.delete(self._key(event_id))

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False
