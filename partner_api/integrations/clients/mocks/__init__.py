"""
Mock integration clients.

These clients return fake (but realistic) responses without calling the Partner API.
They are used when:
- no sandbox credentials are configured
- we want to test imports and webhook handling end-to-end without network access

Important:
- Mock clients must follow the SAME interface as real HTTP clients.
- Mock clients should return data shaped according to partner_api/integrations/contracts/*
"""

from .partner import MockPartnerAPIClient

__all__ = ["MockPartnerAPIClient"]
