"""
Typed errors for Partner API calls.

Status mapping:
- 400 -> ValidationError (field errors + non_field_errors)
- 401 -> AuthenticationError
- 403 -> PermissionDeniedError
- 404 -> NotFoundError
- 429 -> RateLimitError
- 5xx -> ServerError

Network failures surface as TransportError; an open circuit breaker as CircuitOpenError.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Mapping, Optional

from partner_api.utils.rate_limiter import RateLimitInfo


class PartnerAPIError(Exception):
    status_code: Optional[int] = None

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload if payload is not None else {}
        self.request_id = request_id


class ValidationError(PartnerAPIError):
    status_code = 400

    def __init__(
        self,
        message: str,
        *,
        field_errors: Optional[Dict[str, List[str]]] = None,
        non_field_errors: Optional[List[str]] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.field_errors = field_errors or {}
        self.non_field_errors = non_field_errors or []


class AuthenticationError(PartnerAPIError):
    status_code = 401


class PermissionDeniedError(PartnerAPIError):
    status_code = 403


class NotFoundError(PartnerAPIError):
    status_code = 404


class RateLimitError(PartnerAPIError):
    status_code = 429

    def __init__(
        self,
        message: str,
        *,
        rate_limit: Optional[RateLimitInfo] = None,
        retry_after: Optional[float] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.rate_limit = rate_limit or RateLimitInfo()
        self.retry_after = retry_after


class ServerError(PartnerAPIError):
    pass


class TransportError(PartnerAPIError):
    """Connection failure, timeout or other error before a response arrived."""


class CircuitOpenError(PartnerAPIError):
    pass


_STATUS_MAP = {
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
}


def _decode_body(body: Any) -> Any:
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8", errors="replace")
    if isinstance(body, str):
        text = body.strip()
        if not text:
            return {}
        try:
            return json.loads(text)
        except ValueError:
            return text
    return body if body is not None else {}


def _as_messages(value: Any) -> List[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return [str(value)]


def _parse_retry_after(headers: Mapping[str, str], info: RateLimitInfo) -> Optional[float]:
    raw = headers.get("Retry-After")
    if raw is not None:
        try:
            return max(0.0, float(str(raw).strip()))
        except ValueError:
            pass
    return info.seconds_until_reset()


def error_from_response(
    status_code: int,
    body: Any,
    headers: Optional[Mapping[str, str]] = None,
) -> PartnerAPIError:
    """Build the typed error for a non-2xx Partner API response."""
    headers = headers or {}
    payload = _decode_body(body)
    request_id = headers.get("X-Request-ID")

    field_errors: Dict[str, List[str]] = {}
    non_field_errors: List[str] = []
    detail: Optional[str] = None

    if isinstance(payload, dict):
        if isinstance(payload.get("detail"), str):
            detail = payload["detail"]
        for key, value in payload.items():
            if key == "detail":
                continue
            if key == "non_field_errors":
                non_field_errors.extend(_as_messages(value))
            else:
                field_errors[key] = _as_messages(value)
    elif isinstance(payload, str) and payload:
        detail = payload[:500]
    elif isinstance(payload, list):
        non_field_errors.extend(_as_messages(payload))

    if detail:
        message = detail
    elif field_errors or non_field_errors:
        parts = [f"{field}: {'; '.join(msgs)}" for field, msgs in field_errors.items()]
        parts.extend(non_field_errors)
        message = " | ".join(parts)
    else:
        message = f"Partner API returned HTTP {status_code}"

    common = {"status_code": status_code, "payload": payload, "request_id": request_id}

    if status_code == 400:
        return ValidationError(message, field_errors=field_errors, non_field_errors=non_field_errors, **common)
    if status_code == 429:
        info = RateLimitInfo.from_headers(headers)
        return RateLimitError(message, rate_limit=info, retry_after=_parse_retry_after(headers, info), **common)
    if status_code >= 500:
        return ServerError(message, **common)
    error_cls = _STATUS_MAP.get(status_code, PartnerAPIError)
    return error_cls(message, **common)


def is_retryable(error: BaseException) -> bool:
    return isinstance(error, (RateLimitError, ServerError, TransportError))
