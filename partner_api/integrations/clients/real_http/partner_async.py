"""
Real Partner API HTTP Client (asyncio).

Same surface as PartnerAPIClient, built on httpx.AsyncClient for use inside
async services (e.g. the webhook receiver fetching a property after a
milestone event).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import httpx

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


class AsyncPartnerAPIClient(BasePartnerClient):
    def __init__(
        self,
        config: PartnerAPIConfig,
        *,
        client: Optional[httpx.AsyncClient] = None,
        retry_policy: Optional[RetryPolicy] = None,
        circuit_breaker: Optional[CircuitBreaker] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        super().__init__(config, retry_policy=retry_policy, circuit_breaker=circuit_breaker)
        self.client = client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._sleep = sleep

    async def __aenter__(self) -> "AsyncPartnerAPIClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _send(self, method: str, path: str, params: Optional[Dict[str, Any]], json_body: Optional[Dict[str, Any]]) -> Any:
        started = time.monotonic()
        try:
            response = await self.client.request(method, self._url(path), params=params, json=json_body, headers=self._headers())
        except httpx.RequestError as e:
            logger.error(f"Request error connecting to Partner API ({method} {path}): {e}")
            raise TransportError(f"Could not reach Partner API: {e}") from e

        self._handle_response(method, path, response.status_code, response.headers, response.content, time.monotonic() - started)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise IntegrationResponseError(f"Partner API returned non-JSON body for {method} {path}") from e

    async def _request(
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
                data = await self._send(method, path, params, json_body)
            except PartnerAPIError as error:
                self.circuit_breaker.record_failure(error)
                if not self.retry_policy.should_retry(method, attempt, error):
                    raise
                delay = self.retry_policy.backoff_delay(attempt, error)
                logger.warning(
                    "Retrying %s %s after %s (attempt %d/%d, sleeping %.2fs)",
                    method, path, type(error).__name__, attempt + 1, self.retry_policy.config.max_retries, delay,
                )
                await self._sleep(delay)
                attempt += 1
                continue
            except IntegrationResponseError:
                # a 2xx with an unreadable body still means the service is up
                self.circuit_breaker.record_success()
                raise
            except BaseException:
                # includes cancellation of the awaiting task
                self.circuit_breaker.release_trial()
                raise
            self.circuit_breaker.record_success()
            return data

    async def list_products(self) -> List[Product]:
        data = await self._request("GET", PRODUCTS_PATH)
        return normalize_page(data, normalize_product).results

    async def create_property(self, request: PropertyCreateRequest) -> Property:
        payload = self._prepare_property_request(request)
        data = await self._request("POST", CLIENTS_PATH, json_body=payload)
        return normalize_property(data)

    async def list_properties(self, page: int = 1, page_size: Optional[int] = None, **filters: Any) -> Page[Property]:
        data = await self._request("GET", PROPERTIES_PATH, params=self._page_params(page, page_size, filters))
        return normalize_page(data, normalize_property)

    async def iter_properties(self, page_size: Optional[int] = None, **filters: Any) -> AsyncIterator[Property]:
        page_number = 1
        while True:
            page = await self.list_properties(page=page_number, page_size=page_size, **filters)
            for item in page.results:
                yield item
            if not page.has_next or not page.results:
                return
            page_number += 1

    async def get_property(self, property_id: str) -> Property:
        return normalize_property(await self._request("GET", property_path(property_id)))

    async def list_milestones(self, property_id: str, page: int = 1, page_size: Optional[int] = None) -> Page[Milestone]:
        data = await self._request("GET", milestones_path(property_id), params=self._page_params(page, page_size))
        return normalize_page(data, lambda raw: normalize_milestone(raw, property_id=property_id))

    async def iter_milestones(self, property_id: str, page_size: Optional[int] = None) -> AsyncIterator[Milestone]:
        page_number = 1
        while True:
            page = await self.list_milestones(property_id, page=page_number, page_size=page_size)
            for item in page.results:
                yield item
            if not page.has_next or not page.results:
                return
            page_number += 1

    async def send_chat_message(self, message: ChatMessage) -> ChatReply:
        data = await self._request("POST", CHAT_PATH, json_body=message.model_dump(exclude_none=True))
        reply = data.get("reply") or data.get("message") or data.get("detail") or ""
        return ChatReply(reply=str(reply), mocked=bool(data.get("mocked", True)), raw=data)
