"""
Partner API: MOCK client.

This is an in-memory implementation for development and testing.
It makes no network calls, applies the same validation rules as the vendor,
and returns data shaped according to partner_api/integrations/contracts/*.
Chat replies are canned, matching the vendor's own mocked chat endpoint.
"""

import logging
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from partner_api.integrations.contracts.interfaces import (
    ChatMessage,
    ChatReply,
    Milestone,
    MilestoneStatus,
    Page,
    PartnerClient,
    Product,
    Property,
    PropertyCreateRequest,
)
from partner_api.integrations.contracts.properties import is_terminal_milestone, validate_property_request
from partner_api.integrations.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

_MOCK_PRODUCTS: List[Product] = [
    Product(
        id="prod-conveyancing",
        name="Conveyancing Tracker",
        description="Milestone tracking for residential purchases and sales.",
        price=0.0,
    ),
    Product(
        id="prod-property-pack",
        name="Property Information Pack",
        description="PDTF-structured property data collected from the seller up front.",
        price=95.0,
    ),
    Product(
        id="prod-id-check",
        name="Identity and AML Check",
        description="Client identity verification and anti-money-laundering screening.",
        price=12.5,
    ),
]

MILESTONE_TEMPLATE: List[str] = [
    "Instruction received",
    "ID and AML checks",
    "Property information pack",
    "Searches ordered",
    "Mortgage offer",
    "Exchange of contracts",
    "Completion",
]


# ---------------------------------------------------------------------------
# Mock client
# ---------------------------------------------------------------------------

class MockPartnerAPIClient(PartnerClient):
    """
    In-memory Partner API.

    Parameters
    ----------
    page_size : int
        Default page size for list endpoints.
    products : list[Product], optional
        Override the seeded product list.
    """

    def __init__(self, page_size: int = 50, products: Optional[List[Product]] = None) -> None:
        self.page_size = page_size
        self._products = list(products) if products is not None else list(_MOCK_PRODUCTS)
        self._properties: Dict[str, Property] = {}
        self._milestones: Dict[str, List[Milestone]] = {}
        self.last_rate_limit = None

    # -- Products --

    def list_products(self) -> List[Product]:
        return list(self._products)

    # -- Clients / properties --

    def create_property(self, request: PropertyCreateRequest) -> Property:
        errors = validate_property_request(request)
        if errors:
            raise ValidationError(" | ".join(errors), non_field_errors=errors, status_code=400)
        if request.product_id and request.product_id not in {p.id for p in self._products}:
            raise ValidationError(
                f"product_id: Invalid product '{request.product_id}'.",
                field_errors={"product_id": [f"Invalid product '{request.product_id}'."]},
                status_code=400,
            )

        property_id = str(uuid.uuid4())
        prop = Property(
            id=property_id,
            address=request.address,
            reference=request.reference,
            status="active",
            transaction_type=request.transaction_type,
            price=request.price,
            created_at=datetime.now(timezone.utc),
        )
        self._properties[property_id] = prop
        self._milestones[property_id] = [
            Milestone(
                id=f"{property_id}-m{index + 1}",
                property_id=property_id,
                name=name,
                status=MilestoneStatus.IN_PROGRESS if index == 0 else MilestoneStatus.PENDING,
                order=index + 1,
            )
            for index, name in enumerate(MILESTONE_TEMPLATE)
        ]
        logger.info("[MOCK] Created property %s (reference=%s)", property_id, request.reference)
        return prop

    def list_properties(self, page: int = 1, page_size: Optional[int] = None, **filters: Any) -> Page[Property]:
        items = list(self._properties.values())
        status = filters.get("status")
        if status:
            items = [p for p in items if p.status == status]
        reference = filters.get("reference")
        if reference:
            items = [p for p in items if p.reference == reference]
        return self._paginate(items, page, page_size, "properties/")

    def get_property(self, property_id: str) -> Property:
        prop = self._properties.get(property_id)
        if prop is None:
            raise NotFoundError("Not found.", status_code=404, payload={"detail": "Not found."})
        return prop

    # -- Milestones --

    def list_milestones(self, property_id: str, page: int = 1, page_size: Optional[int] = None) -> Page[Milestone]:
        self.get_property(property_id)
        return self._paginate(self._milestones[property_id], page, page_size, f"properties/{property_id}/milestones/")

    def advance_milestone(self, property_id: str) -> Optional[Milestone]:
        """
        Complete the current milestone and start the next one.
        Returns the milestone that was completed, or None when all are done.
        """
        self.get_property(property_id)
        milestones = self._milestones[property_id]
        for index, milestone in enumerate(milestones):
            if is_terminal_milestone(milestone.status):
                continue
            milestones[index] = milestone.model_copy(
                update={"status": MilestoneStatus.COMPLETED, "completed_at": datetime.now(timezone.utc)}
            )
            if index + 1 < len(milestones):
                milestones[index + 1] = milestones[index + 1].model_copy(update={"status": MilestoneStatus.IN_PROGRESS})
            else:
                self._properties[property_id] = self._properties[property_id].model_copy(update={"status": "completed"})
            return milestones[index]
        return None

    # -- Chat --

    def send_chat_message(self, message: ChatMessage) -> ChatReply:
        logger.info("[MOCK] Chat message received: %s", message.message[:80])
        return ChatReply(
            reply="Thanks for your message. Chat is not yet available; a case handler will be in touch.",
            mocked=True,
            raw={"echo": message.message},
        )

    # -- Helpers --

    def _paginate(self, items: List[Any], page: int, page_size: Optional[int], path: str) -> Page:
        if page < 1:
            raise ValueError("page must be >= 1")
        size = page_size or self.page_size
        total = len(items)
        last_page = max(1, math.ceil(total / size))
        if page > last_page:
            raise NotFoundError("Invalid page.", status_code=404, payload={"detail": "Invalid page."})
        start = (page - 1) * size
        return Page(
            count=total,
            next=f"mock://{path}?page={page + 1}&page_size={size}" if page < last_page else None,
            previous=f"mock://{path}?page={page - 1}&page_size={size}" if page > 1 else None,
            results=items[start:start + size],
        )
