from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TransactionType(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"
    REMORTGAGE = "remortgage"


class ContactRole(str, Enum):
    ESTATE_AGENT = "estate_agent"
    CONVEYANCER = "conveyancer"
    MORTGAGE_BROKER = "mortgage_broker"
    OTHER = "other"


class MilestoneStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


# ---------------------------------------------------------------------------
# Shared data models
# ---------------------------------------------------------------------------

class Address(BaseModel):
    line_1: str
    town: str
    postcode: str
    line_2: Optional[str] = None
    county: Optional[str] = None
    country: str = "GB"


class ClientDetails(BaseModel):
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class Contact(BaseModel):
    role: ContactRole
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


class Product(BaseModel):
    id: str
    name: str
    description: str = ""
    price: Optional[float] = None
    currency: str = "GBP"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class PropertyCreateRequest(BaseModel):
    """Body of ``POST clients/``: a client and the property they are transacting on."""

    client: ClientDetails
    address: Address
    transaction_type: TransactionType = TransactionType.PURCHASE
    price: Optional[float] = None
    product_id: Optional[str] = None
    contacts: List[Contact] = Field(default_factory=list)
    reference: Optional[str] = None


class Property(BaseModel):
    id: str
    address: Address
    reference: Optional[str] = None
    status: str = "active"
    transaction_type: Optional[TransactionType] = None
    price: Optional[float] = None
    created_at: Optional[datetime] = None
    pdtf: Dict[str, Any] = Field(default_factory=dict)        # opaque PDTF payload


class Milestone(BaseModel):
    id: str
    property_id: str
    name: str
    status: MilestoneStatus = MilestoneStatus.PENDING
    order: int = 0
    completed_at: Optional[datetime] = None


class ChatMessage(BaseModel):
    message: str
    property_id: Optional[str] = None


class ChatReply(BaseModel):
    reply: str
    mocked: bool = True
    raw: Dict[str, Any] = Field(default_factory=dict)


class WebhookEvent(BaseModel):
    id: str
    event: str                                                # e.g. "milestone.updated"
    created_at: Optional[datetime] = None
    property_id: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)


T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """Offset pagination envelope: ``count`` / ``next`` / ``previous`` / ``results``."""

    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[T] = Field(default_factory=list)

    @property
    def has_next(self) -> bool:
        return bool(self.next)


# ---------------------------------------------------------------------------
# Abstract client interface
# ---------------------------------------------------------------------------

class PartnerClient(ABC):
    """Every Partner API client (real or mock) must implement this interface."""

    # -- Products --

    @abstractmethod
    def list_products(self) -> List[Product]:
        """Return the vendor's product list."""

    # -- Clients / properties --

    @abstractmethod
    def create_property(self, request: PropertyCreateRequest) -> Property:
        """Create a client together with their property."""

    @abstractmethod
    def list_properties(self, page: int = 1, page_size: Optional[int] = None, **filters: Any) -> Page[Property]:
        """Fetch a single page of properties."""

    @abstractmethod
    def get_property(self, property_id: str) -> Property:
        """Fetch one property; raises NotFoundError when it does not exist."""

    def iter_properties(self, page_size: Optional[int] = None, **filters: Any) -> Iterator[Property]:
        page_number = 1
        while True:
            page = self.list_properties(page=page_number, page_size=page_size, **filters)
            yield from page.results
            if not page.has_next or not page.results:
                return
            page_number += 1

    # -- Milestones --

    @abstractmethod
    def list_milestones(self, property_id: str, page: int = 1, page_size: Optional[int] = None) -> Page[Milestone]:
        """Fetch a page of milestones for a property."""

    def iter_milestones(self, property_id: str, page_size: Optional[int] = None) -> Iterator[Milestone]:
        page_number = 1
        while True:
            page = self.list_milestones(property_id, page=page_number, page_size=page_size)
            yield from page.results
            if not page.has_next or not page.results:
                return
            page_number += 1

    # -- Chat --

    @abstractmethod
    def send_chat_message(self, message: ChatMessage) -> ChatReply:
        """Send a chat message. The vendor only mocks this endpoint."""
