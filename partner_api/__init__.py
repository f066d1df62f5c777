"""
Client toolkit for the vendor's property-transaction Partner API.
"""

from partner_api.integrations.clients import (
    AsyncPartnerAPIClient,
    MockPartnerAPIClient,
    PartnerAPIClient,
    get_partner_client,
)
from partner_api.utils.config_loader import PartnerAPIConfig, load_partner_config

__version__ = "1.0.0"

__all__ = [
    "AsyncPartnerAPIClient",
    "MockPartnerAPIClient",
    "PartnerAPIClient",
    "PartnerAPIConfig",
    "get_partner_client",
    "load_partner_config",
]
