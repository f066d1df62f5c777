"""
Shared plumbing for the sync and async Partner API clients.

Everything that does not touch the network lives here: URL building, auth
headers, status-to-error mapping and payload normalization. The concrete
clients only differ in how they send the request and how they sleep.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from partner_api.integrations.contracts.interfaces import PropertyCreateRequest
from partner_api.integrations.contracts.properties import validate_property_request
from partner_api.integrations.errors import ValidationError, error_from_response
from partner_api.integrations.policy.circuit_breaker import CircuitBreaker
from partner_api.integrations.policy.retry import RetryPolicy
from partner_api.utils.config_loader import PartnerAPIConfig
from partner_api.utils.rate_limiter import RateLimitInfo

logger = logging.getLogger(__name__)

PRODUCTS_PATH = "products/"
CLIENTS_PATH = "clients/"
PROPERTIES_PATH = "properties/"
CHAT_PATH = "chat/"


def property_path(property_id: str) -> str:
    return f"{PROPERTIES_PATH}{property_id}/"


def milestones_path(property_id: str) -> str:
    return f"{PROPERTIES_PATH}{property_id}/milestones/"


class BasePartnerClient:
    def __init__(
        self,
        config: PartnerAPIConfig,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
    ) -> None:
        if not config.base_url:
            raise ValueError("PARTNER_API_URL is not configured.")
        if not config.api_key:
            raise ValueError("PARTNER_API_KEY is not configured.")
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy(config.retry)
        self.circuit_breaker = circuit_breaker or CircuitBreaker(config.circuit_breaker)
        self.last_rate_limit: Optional[RateLimitInfo] = None

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self) -> Dict[str, str]:
        return {
            self.config.api_key_header: self.config.api_key,
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
        }

    def _page_params(self, page: int, page_size: Optional[int], filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if page < 1:
            raise ValueError("page must be >= 1")
        params: Dict[str, Any] = {"page": page, "page_size": page_size or self.config.default_page_size}
        for key, value in (filters or {}).items():
            if value is not None:
                params[key] = value
        return params

    @staticmethod
    def _prepare_property_request(request: PropertyCreateRequest) -> Dict[str, Any]:
        errors = validate_property_request(request)
        if errors:
            raise ValidationError(" | ".join(errors), non_field_errors=errors, status_code=400)
        return request.model_dump(mode="json", exclude_none=True)

    def _handle_response(self, method: str, path: str, status_code: int, headers: Mapping[str, str], body: Any, elapsed: float) -> None:
        """Record rate-limit state and raise the typed error on non-2xx."""
        self.last_rate_limit = RateLimitInfo.from_headers(headers)
        logger.info(
            "Partner API %s %s -> %s (%.0fms, remaining=%s)",
            method, path, status_code, elapsed * 1000, self.last_rate_limit.remaining,
        )
        if 200 <= status_code < 300:
            return
        error = error_from_response(status_code, body, headers)
        logger.error("Partner API error on %s %s: %s %s", method, path, status_code, error.message)
        raise error
