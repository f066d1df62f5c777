"""
Real HTTP integration clients.

These clients communicate with the vendor's Partner API over HTTPS:
- partner.py: synchronous client (requests)
- partner_async.py: asyncio client (httpx)

Important:
- Must implement the same interface as the mock client
- Must return data shaped according to partner_api/integrations/contracts/*

Switching:
The selection of mock vs real clients happens in partner_api/integrations/clients/__init__.py only.
"""

from .partner import PartnerAPIClient
from .partner_async import AsyncPartnerAPIClient

__all__ = ["PartnerAPIClient", "AsyncPartnerAPIClient"]
