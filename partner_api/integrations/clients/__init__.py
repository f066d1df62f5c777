"""
Partner API clients and the single place that chooses between mock and real.
"""

from __future__ import annotations

import logging
from typing import Optional

from partner_api.integrations.clients.mocks import MockPartnerAPIClient
from partner_api.integrations.clients.real_http import AsyncPartnerAPIClient, PartnerAPIClient
from partner_api.integrations.contracts.interfaces import PartnerClient
from partner_api.utils.config_loader import PartnerAPIConfig, load_partner_config

logger = logging.getLogger(__name__)


def should_use_real_client(config: PartnerAPIConfig) -> bool:
    mode = (config.mode or "").strip().lower()
    if mode in {"real", "live"}:
        return True
    if mode in {"mock", "test"}:
        return False
    return config.is_configured


def get_partner_client(config: Optional[PartnerAPIConfig] = None) -> PartnerClient:
    config = config or load_partner_config()
    if should_use_real_client(config):
        return PartnerAPIClient(config)
    logger.info("Partner API credentials not configured; using mock client")
    return MockPartnerAPIClient(page_size=config.default_page_size)


__all__ = [
    "AsyncPartnerAPIClient",
    "MockPartnerAPIClient",
    "PartnerAPIClient",
    "get_partner_client",
    "should_use_real_client",
]
