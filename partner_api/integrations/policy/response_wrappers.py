from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, TypeVar

from pydantic import ValidationError

from partner_api.integrations.contracts.interfaces import (
    Address,
    Milestone,
    MilestoneStatus,
    Page,
    Product,
    Property,
    WebhookEvent,
)

T = TypeVar("T")


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Any] = None) -> None:
        super().__init__(message)
        self.payload = payload if payload is not None else {}


def normalize_product(raw: Dict[str, Any]) -> Product:
    _require_mapping(raw, "product")
    price = _first_non_empty(raw, "price", "amount", "fee", default=_MISSING)
    return _build_model(
        Product,
        {
            "id": str(_first_non_empty(raw, "id", "uuid", "product_id")),
            "name": str(_first_non_empty(raw, "name", "title")),
            "description": str(_first_non_empty(raw, "description", "summary", default="")),
            "price": None if price is None else _coerce_amount(price, "product price"),
            "currency": str(_first_non_empty(raw, "currency", default="GBP")).upper(),
            "metadata": {k: v for k, v in raw.items() if k not in _PRODUCT_KEYS},
        },
        raw,
    )


def normalize_address(raw: Dict[str, Any]) -> Address:
    _require_mapping(raw, "address")
    return _build_model(
        Address,
        {
            "line_1": str(_first_non_empty(raw, "line_1", "address_line_1", "line1", "street")),
            "line_2": _first_non_empty(raw, "line_2", "address_line_2", "line2", default=_MISSING),
            "town": str(_first_non_empty(raw, "town", "city", "locality")),
            "county": _first_non_empty(raw, "county", "region", default=_MISSING),
            "postcode": str(_first_non_empty(raw, "postcode", "post_code", "postal_code")).upper(),
            "country": str(_first_non_empty(raw, "country", default="GB")),
        },
        raw,
    )


def normalize_property(raw: Dict[str, Any]) -> Property:
    _require_mapping(raw, "property")
    address_raw = raw.get("address")
    if not isinstance(address_raw, dict):
        address_raw = raw  # some responses flatten the address into the property
    pdtf = raw.get("pdtf") or raw.get("pdtf_data") or {}
    return _build_model(
        Property,
        {
            "id": str(_first_non_empty(raw, "id", "uuid", "property_id")),
            "address": normalize_address(address_raw),
            "reference": _first_non_empty(raw, "reference", "client_reference", "external_reference", default=_MISSING),
            "status": str(_first_non_empty(raw, "status", "state", default="active")).lower(),
            "transaction_type": _first_non_empty(raw, "transaction_type", "type", default=_MISSING),
            "price": _first_non_empty(raw, "price", "purchase_price", default=_MISSING),
            "created_at": _first_non_empty(raw, "created_at", "created", default=_MISSING),
            "pdtf": pdtf if isinstance(pdtf, dict) else {},
        },
        raw,
    )


def normalize_milestone(raw: Dict[str, Any], *, property_id: Optional[str] = None) -> Milestone:
    _require_mapping(raw, "milestone")
    owner = _first_non_empty(raw, "property_id", "property", default=_MISSING) or property_id
    if owner is None:
        raise IntegrationResponseError("Milestone is missing its property id.", payload=raw)
    return _build_model(
        Milestone,
        {
            "id": str(_first_non_empty(raw, "id", "uuid", "milestone_id")),
            "property_id": str(owner),
            "name": str(_first_non_empty(raw, "name", "title", "label")),
            "status": _map_milestone_status(_first_non_empty(raw, "status", "state", default="pending")),
            "order": int(_first_non_empty(raw, "order", "position", "sequence", default=0)),
            "completed_at": _first_non_empty(raw, "completed_at", "completed_on", default=_MISSING),
        },
        raw,
    )


def normalize_page(raw: Any, item_normalizer: Callable[[Dict[str, Any]], T]) -> Page[T]:
    """
    Accept either the ``count/next/previous/results`` envelope or a bare list
    (the products endpoint is not paginated).
    """
    if isinstance(raw, list):
        items = [item_normalizer(item) for item in raw]
        return Page(count=len(items), results=items)
    _require_mapping(raw, "page")
    results = raw.get("results")
    if not isinstance(results, list):
        raise IntegrationResponseError("Paginated response is missing a 'results' list.", payload=raw)
    items = [item_normalizer(item) for item in results]
    count = raw.get("count")
    return Page(
        count=int(count) if count is not None else len(items),
        next=raw.get("next") or None,
        previous=raw.get("previous") or None,
        results=items,
    )


def normalize_webhook_event(raw: Dict[str, Any]) -> WebhookEvent:
    _require_mapping(raw, "webhook event")
    data = raw.get("data") if isinstance(raw.get("data"), dict) else {}
    property_id = _first_non_empty(raw, "property_id", default=_MISSING)
    if property_id is None:
        property_id = data.get("property_id") or data.get("property")
    return _build_model(
        WebhookEvent,
        {
            "id": str(_first_non_empty(raw, "id", "event_id", "delivery_id")),
            "event": str(_first_non_empty(raw, "event", "type", "event_type")),
            "created_at": _first_non_empty(raw, "created_at", "timestamp", default=_MISSING),
            "property_id": str(property_id) if property_id is not None else None,
            "data": data,
        },
        raw,
    )


_MISSING = object()

_PRODUCT_KEYS = {"id", "uuid", "product_id", "name", "title", "description", "summary", "price", "amount", "fee", "currency"}

_MILESTONE_STATUS = {
    "PENDING": MilestoneStatus.PENDING,
    "NOT_STARTED": MilestoneStatus.PENDING,
    "TODO": MilestoneStatus.PENDING,
    "IN_PROGRESS": MilestoneStatus.IN_PROGRESS,
    "STARTED": MilestoneStatus.IN_PROGRESS,
    "ACTIVE": MilestoneStatus.IN_PROGRESS,
    "COMPLETED": MilestoneStatus.COMPLETED,
    "COMPLETE": MilestoneStatus.COMPLETED,
    "DONE": MilestoneStatus.COMPLETED,
    "BLOCKED": MilestoneStatus.BLOCKED,
    "ON_HOLD": MilestoneStatus.BLOCKED,
}


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is _MISSING:
        return None
    if default is not None:
        return default
    raise IntegrationResponseError(f"Missing required field. Checked keys: {', '.join(keys)}", payload=data)


def _require_mapping(raw: Any, label: str) -> None:
    if not isinstance(raw, dict):
        raise IntegrationResponseError(f"Expected a JSON object for {label}; got {type(raw).__name__}.", payload=raw)


def _coerce_amount(value: Any, label: str) -> float:
    try:
        amount = float(value)
    except (TypeError, ValueError) as exc:
        raise IntegrationResponseError(f"Invalid {label}: {value!r}") from exc
    if amount < 0:
        raise IntegrationResponseError(f"{label.capitalize()} must be >= 0; got {amount}.")
    return amount


def _map_milestone_status(raw_status: Any) -> MilestoneStatus:
    value = str(raw_status or "").strip().upper().replace("-", "_").replace(" ", "_")
    if value not in _MILESTONE_STATUS:
        raise IntegrationResponseError(f"Unsupported milestone status '{value}'.")
    return _MILESTONE_STATUS[value]


def _build_model(model_type, payload: Dict[str, Any], raw: Any):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", payload=raw) from exc


__all__: List[str] = [
    "IntegrationResponseError",
    "normalize_address",
    "normalize_milestone",
    "normalize_page",
    "normalize_product",
    "normalize_property",
    "normalize_webhook_event",
]
