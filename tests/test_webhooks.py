import json
import time

import pytest
from fastapi.testclient import TestClient

from partner_api.api.main import create_app
from partner_api.database.redis import WebhookEventStore
from partner_api.integrations.webhooks import (
    WEBHOOK_RETRY_SCHEDULE,
    WebhookDispatcher,
    WebhookSignatureError,
    compute_signature,
    next_retry_delay,
    verify_signature,
)
from partner_api.utils.config_loader import PartnerAPIConfig, WebhookConfig

SECRET = "whsec_test"


def test_verify_signature_accepts_prefixed_and_bare_hex():
    body = b'{"id": "evt-1"}'
    sig = compute_signature(SECRET, body)

    verify_signature(SECRET, body, sig)
    verify_signature(SECRET, body, f"sha256={sig}")
    verify_signature(SECRET, body.decode(), sig.upper())


def test_verify_signature_rejects_tampering():
    body = b'{"id": "evt-1"}'
    sig = compute_signature(SECRET, body)

    with pytest.raises(WebhookSignatureError):
        verify_signature(SECRET, b'{"id": "evt-2"}', sig)
    with pytest.raises(WebhookSignatureError):
        verify_signature("other-secret", body, sig)
    with pytest.raises(WebhookSignatureError):
        verify_signature(SECRET, body, None)
    with pytest.raises(WebhookSignatureError):
        verify_signature("", body, sig)


def test_timestamped_signature_enforces_tolerance():
    body = b"{}"
    sig = compute_signature(SECRET, body, timestamp="1000")

    verify_signature(SECRET, body, sig, timestamp="1000", tolerance_seconds=300, now=1200)
    with pytest.raises(WebhookSignatureError):
        verify_signature(SECRET, body, sig, timestamp="1000", tolerance_seconds=300, now=1400)
    with pytest.raises(WebhookSignatureError):
        # timestamp is part of the signed message
        verify_signature(SECRET, body, sig, timestamp="1001", tolerance_seconds=300, now=1001)


def test_retry_schedule():
    assert next_retry_delay(1) == WEBHOOK_RETRY_SCHEDULE[0]
    assert next_retry_delay(len(WEBHOOK_RETRY_SCHEDULE)) == WEBHOOK_RETRY_SCHEDULE[-1]
    assert next_retry_delay(len(WEBHOOK_RETRY_SCHEDULE) + 1) is None
    assert next_retry_delay(0) is None
    assert WEBHOOK_RETRY_SCHEDULE == sorted(WEBHOOK_RETRY_SCHEDULE)


def test_event_store_expires_entries():
    now = [0.0]
    store = WebhookEventStore(ttl=10, clock=lambda: now[0])

    assert store.mark_seen("evt-1") is True
    assert store.mark_seen("evt-1") is False
    now[0] = 11.0
    assert store.mark_seen("evt-1") is True


@pytest.fixture
def received():
    return []


@pytest.fixture
def client(received):
    dispatcher = WebhookDispatcher()

    @dispatcher.on("milestone.updated")
    def on_milestone(event):
        received.append(event)

    config = PartnerAPIConfig(webhook=WebhookConfig(secret=SECRET))
    app = create_app(config=config, dispatcher=dispatcher, event_store=WebhookEventStore())
    return TestClient(app)


def _deliver(client, payload, secret=SECRET, timestamp=None):
    body = json.dumps(payload).encode("utf-8")
    headers = {"Content-Type": "application/json", "X-Partner-Signature": "sha256=" + compute_signature(secret, body, timestamp)}
    if timestamp:
        headers["X-Partner-Timestamp"] = timestamp
    return client.post("/api/v1/webhooks/partner", content=body, headers=headers)


EVENT = {
    "id": "evt-100",
    "event": "milestone.updated",
    "created_at": "2026-03-01T12:00:00Z",
    "data": {"property_id": "prop-1", "milestone": {"id": "m3", "status": "completed"}},
}


def test_webhook_dispatches_verified_event(client, received):
    response = _deliver(client, EVENT, timestamp=str(int(time.time())))

    assert response.status_code == 200
    assert response.json() == {"received": True, "duplicate": False, "event_id": "evt-100"}
    assert len(received) == 1
    assert received[0].property_id == "prop-1"
    assert received[0].data["milestone"]["status"] == "completed"


def test_webhook_redelivery_is_not_dispatched_twice(client, received):
    assert _deliver(client, EVENT).status_code == 200
    second = _deliver(client, EVENT)

    assert second.status_code == 200
    assert second.json()["duplicate"] is True
    assert len(received) == 1


def test_webhook_bad_signature_is_rejected(client, received):
    response = _deliver(client, EVENT, secret="wrong")

    assert response.status_code == 401
    assert received == []


def test_webhook_malformed_payload_is_rejected(client):
    body = b"not json"
    headers = {"X-Partner-Signature": compute_signature(SECRET, body)}
    response = client.post("/api/v1/webhooks/partner", content=body, headers=headers)

    assert response.status_code == 400


def test_handler_failure_allows_redelivery():
    attempts = []
    dispatcher = WebhookDispatcher()

    def flaky(event):
        attempts.append(event.id)
        if len(attempts) == 1:
            raise RuntimeError("database down")

    dispatcher.register("*", flaky)
    config = PartnerAPIConfig(webhook=WebhookConfig(secret=SECRET))
    client = TestClient(create_app(config=config, dispatcher=dispatcher, event_store=WebhookEventStore()))

    assert _deliver(client, EVENT).status_code == 500
    assert _deliver(client, EVENT).status_code == 200
    assert attempts == ["evt-100", "evt-100"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "event_store": True}
