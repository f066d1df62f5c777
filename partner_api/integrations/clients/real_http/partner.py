"""
Real Partner API HTTP Client (synchronous).

Purpose:
- Talks to the vendor's property-transaction REST API
- Attaches the API key header to every request
- Maps 400/401/403/404/429/5xx to typed errors
- Retries idempotent GETs with exponential backoff on 429/5xx
- Normalizes responses into our contract models

Usage:
- Built by get_partner_client() when PARTNER_API_URL / PARTNER_API_KEY are configured
- Used by the bulk importer and the scripts under scripts/

Important:
- Keep this client (and its async twin) as the ONLY place where Partner API HTTP calls are made.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from partner_api.integrations.clients.real_http.base import (
    CHAT_PATH,
    CLIENTS_PATH,
    PRODUCTS_PATH,
    PROPERTIES_PATH,
    BasePartnerClient,
    milestones_path,
    property_path,
)
from partner_api.integrations.contracts.interfaces import (
    ChatMessage,
    ChatReply,
    Milestone,
    Page,
    PartnerClient,
    Product,
    Property,
    PropertyCreateRequest,
)
from partner_api.integrations.errors import PartnerAPIError, TransportError
from partner_api.integrations.policy.circuit_breaker import CircuitBreaker
from partner_api.integrations.policy.response_wrappers import (
    IntegrationResponseError,
    normalize_milestone,
    normalize_page,
    normalize_product,
    normalize_property,
)
from partner_api.integrations.policy.retry import RetryPolicy
from partner_api.utils.config_loader import PartnerAPIConfig

logger = logging.getLogger(__name__)


class PartnerAPIClient(BasePartnerClient, PartnerClient):
    def __init__(
        self,
        config: PartnerAPIConfig,
        *,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(config, retry_policy=retry_policy, circuit_breaker=circuit_breaker)
        self.session = session or requests.Session()
        self._sleep = sleep

    def __enter__(self) -> "PartnerAPIClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _send(self, method: str, path: str, params: Optional[Dict[str, Any]], json_body: Optional[Dict[str, Any]]) -> Any:
        started = time.monotonic()
        try:
            response = self.session.request(
                method,
                self._url(path),
                params=params,
                json=json_body,
                headers=self._headers(),
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.error(f"Request error connecting to Partner API ({method} {path}): {exc}")
            raise TransportError(f"Could not reach Partner API: {exc}") from exc

        self._handle_response(method, path, response.status_code, response.headers, response.content, time.monotonic() - started)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise IntegrationResponseError(f"Partner API returned non-JSON body for {method} {path}") from exc

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        attempt = 0
        while True:
            self.circuit_breaker.before_call()
            try:
                data = self._send(method, path, params, json_body)
            except PartnerAPIError as error:
                self.circuit_breaker.record_failure(error)
                if not self.retry_policy.should_retry(method, attempt, error):
                    raise
                delay = self.retry_policy.backoff_delay(attempt, error)
                logger.warning(
                    "Retrying %s %s after %s (attempt %d/%d, sleeping %.2fs)",
                    method, path, type(error).__name__, attempt + 1, self.retry_policy.config.max_retries, delay,
                )
                self._sleep(delay)
                attempt += 1
                continue
            except IntegrationResponseError:
                # a 2xx with an unreadable body still means the service is up
                self.circuit_breaker.record_success()
                raise
            except BaseException:
                self.circuit_breaker.release_trial()
                raise
            self.circuit_breaker.record_success()
            return data

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def list_products(self) -> List[Product]:
        data = self._request("GET", PRODUCTS_PATH)
        return normalize_page(data, normalize_product).results

    def create_property(self, request: PropertyCreateRequest) -> Property:
        payload = self._prepare_property_request(request)
        logger.info("Creating client/property (reference=%s)", request.reference)
        data = self._request("POST", CLIENTS_PATH, json_body=payload)
        return normalize_property(data)

    def list_properties(self, page: int = 1, page_size: Optional[int] = None, **filters: Any) -> Page[Property]:
        data = self._request("GET", PROPERTIES_PATH, params=self._page_params(page, page_size, filters))
        return normalize_page(data, normalize_property)

    def get_property(self, property_id: str) -> Property:
        return normalize_property(self._request("GET", property_path(property_id)))

    def list_milestones(self, property_id: str, page: int = 1, page_size: Optional[int] = None) -> Page[Milestone]:
        data = self._request("GET", milestones_path(property_id), params=self._page_params(page, page_size))
        return normalize_page(data, lambda raw: normalize_milestone(raw, property_id=property_id))

    def send_chat_message(self, message: ChatMessage) -> ChatReply:
        data = self._request("POST", CHAT_PATH, json_body=message.model_dump(exclude_none=True))
        reply = data.get("reply") or data.get("message") or data.get("detail") or ""
        return ChatReply(reply=str(reply), mocked=bool(data.get("mocked", True)), raw=data)
