"""Storage backends for webhook delivery deduplication."""

from __future__ import annotations

import os

from partner_api.database.redis import WebhookEventStore


def get_event_store():
    """Redis when REDIS_URL is set, otherwise the in-memory store."""
    if os.getenv("REDIS_URL"):
        from partner_api.database.redis_real import RedisWebhookEventStore

        return RedisWebhookEventStore(url=os.environ["REDIS_URL"])
    return WebhookEventStore()
