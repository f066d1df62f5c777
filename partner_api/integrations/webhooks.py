"""
Inbound Partner API webhooks.

The vendor POSTs JSON events and signs each delivery with HMAC-SHA256 over the
raw body (or ``"{timestamp}.{body}"`` when it also sends a timestamp header).
A non-2xx reply makes the vendor redeliver on WEBHOOK_RETRY_SCHEDULE, so
handlers must tolerate the same event arriving more than once; the event
store below drops repeats by event id.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Union

from partner_api.integrations.contracts.interfaces import WebhookEvent

logger = logging.getLogger(__name__)

# Seconds between redelivery attempts after a failed delivery.
WEBHOOK_RETRY_SCHEDULE: List[int] = [60, 300, 1800, 7200, 21600]

WebhookHandler = Callable[[WebhookEvent], Any]


class WebhookSignatureError(Exception):
    pass


def _as_bytes(body: Union[bytes, str]) -> bytes:
    return body.encode("utf-8") if isinstance(body, str) else body


def compute_signature(secret: str, body: Union[bytes, str], timestamp: Optional[str] = None) -> str:
    message = _as_bytes(body)
    if timestamp:
        message = f"{timestamp}.".encode("utf-8") + message
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(
    secret: str,
    body: Union[bytes, str],
    signature: Optional[str],
    timestamp: Optional[str] = None,
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> None:
    """Raise WebhookSignatureError unless ``signature`` matches ``body``."""
    if not secret:
        raise WebhookSignatureError("Webhook secret is not configured.")
    candidate = (signature or "").strip()
    if not candidate:
        raise WebhookSignatureError("Missing webhook signature.")
    if candidate.lower().startswith("sha256="):
        candidate = candidate[len("sha256="):]

    if timestamp:
        try:
            sent_at = float(timestamp)
        except ValueError as exc:
            raise WebhookSignatureError(f"Invalid webhook timestamp {timestamp!r}.") from exc
        current = time.time() if now is None else now
        if tolerance_seconds and abs(current - sent_at) > tolerance_seconds:
            raise WebhookSignatureError("Webhook timestamp outside tolerance window.")

    expected = compute_signature(secret, body, timestamp)
    if not hmac.compare_digest(expected, candidate.lower()):
        raise WebhookSignatureError("Webhook signature mismatch.")


def next_retry_delay(attempt: int) -> Optional[int]:
    """Delay before redelivery number ``attempt`` (1-based); None once the vendor gives up."""
    if attempt < 1 or attempt > len(WEBHOOK_RETRY_SCHEDULE):
        return None
    return WEBHOOK_RETRY_SCHEDULE[attempt - 1]


class WebhookDispatcher:
    """Routes events to handlers registered by event name ("*" receives everything)."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[WebhookHandler]] = {}

    def register(self, event_name: str, handler: WebhookHandler) -> None:
        self._handlers.setdefault(event_name, []).append(handler)

    def on(self, event_name: str) -> Callable[[WebhookHandler], WebhookHandler]:
        def decorator(handler: WebhookHandler) -> WebhookHandler:
            self.register(event_name, handler)
            return handler

        return decorator

    def handlers_for(self, event_name: str) -> List[WebhookHandler]:
        return self._handlers.get(event_name, []) + self._handlers.get("*", [])

    def dispatch(self, event: WebhookEvent) -> int:
        handlers = self.handlers_for(event.event)
        if not handlers:
            logger.info("No handler registered for webhook event %s (%s)", event.event, event.id)
        for handler in handlers:
            handler(event)
        return len(handlers)
