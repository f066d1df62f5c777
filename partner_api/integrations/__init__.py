"""
Integrations layer.
This package contains all code used to communicate with the vendor's Partner API:
- contracts: request/response models (products, properties, milestones, webhooks)
- clients: real HTTP clients (sync + async) and an in-memory mock
- policy: retry, circuit breaker and response normalization
- webhooks: signature verification and event dispatch

Key rule:
- Application code MUST NOT call the Partner API directly.
- It should go through a client returned by get_partner_client().
"""

from .contracts.interfaces import (
    Address,
    ChatMessage,
    ChatReply,
    ClientDetails,
    Contact,
    ContactRole,
    Milestone,
    MilestoneStatus,
    Page,
    PartnerClient,
    Product,
    Property,
    PropertyCreateRequest,
    TransactionType,
    WebhookEvent,
)
from .contracts.properties import is_terminal_milestone, validate_property_request
from .errors import (
    AuthenticationError,
    CircuitOpenError,
    NotFoundError,
    PartnerAPIError,
    PermissionDeniedError,
    RateLimitError,
    ServerError,
    TransportError,
    ValidationError,
    error_from_response,
    is_retryable,
)

__all__ = [
    # contracts
    "Address", "ChatMessage", "ChatReply", "ClientDetails", "Contact", "ContactRole",
    "Milestone", "MilestoneStatus", "Page", "PartnerClient", "Product", "Property",
    "PropertyCreateRequest", "TransactionType", "WebhookEvent",
    "is_terminal_milestone", "validate_property_request",
    # errors
    "AuthenticationError", "CircuitOpenError", "NotFoundError", "PartnerAPIError",
    "PermissionDeniedError", "RateLimitError", "ServerError", "TransportError",
    "ValidationError", "error_from_response", "is_retryable",
]
