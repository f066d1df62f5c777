"""Pytest fixtures for Partner API client tests."""

import pytest

from partner_api.integrations.contracts.interfaces import (
    Address,
    ClientDetails,
    Contact,
    ContactRole,
    PropertyCreateRequest,
)
from partner_api.utils.config_loader import CircuitBreakerConfig, PartnerAPIConfig, RetryConfig


@pytest.fixture(autouse=True)
def _clear_partner_env(monkeypatch):
    for name in (
        "PARTNER_API_URL",
        "PARTNER_API_KEY",
        "PARTNER_API_MODE",
        "PARTNER_API_ENV",
        "PARTNER_API_TIMEOUT",
        "PARTNER_WEBHOOK_SECRET",
        "REDIS_URL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    return PartnerAPIConfig(
        base_url="https://partner.test/api/v1/",
        api_key="test-key",
        retry=RetryConfig(max_retries=2, backoff_factor=0.1),
        circuit_breaker=CircuitBreakerConfig(failure_threshold=10),
    )


@pytest.fixture
def property_request():
    return PropertyCreateRequest(
        client=ClientDetails(first_name="Ada", last_name="Lovelace", email="ada@example.com"),
        address=Address(line_1="1 High Street", town="Leeds", postcode="LS1 1AA"),
        price=250_000,
        contacts=[Contact(role=ContactRole.CONVEYANCER, name="Smith & Co", email="case@smithco.example")],
        reference="REF-001",
    )


@pytest.fixture
def property_payload():
    return {
        "id": "prop-1",
        "reference": "REF-001",
        "status": "active",
        "transaction_type": "purchase",
        "price": 250000,
        "address": {"line_1": "1 High Street", "town": "Leeds", "postcode": "ls1 1aa"},
        "created_at": "2026-01-05T10:00:00Z",
    }
