from typing import List

from .interfaces import ContactRole, MilestoneStatus, PropertyCreateRequest

"""
Property contract: validation helpers for client/property creation and
milestone tracking.

The vendor rejects a creation request that has no professional contact with an
email address (reported under ``non_field_errors``). We check the same rule
locally so bulk imports fail fast without spending rate-limit quota.
"""

PROFESSIONAL_ROLES = {ContactRole.ESTATE_AGENT, ContactRole.CONVEYANCER, ContactRole.MORTGAGE_BROKER}

MISSING_PROFESSIONAL_EMAIL = "At least one professional contact email is required."


def validate_property_request(request: PropertyCreateRequest) -> List[str]:
    """
    Return a list of non-field validation errors.
    Empty list means the request is valid.
    """
    errors: List[str] = []

    if not any(c.role in PROFESSIONAL_ROLES and (c.email or "").strip() for c in request.contacts):
        errors.append(MISSING_PROFESSIONAL_EMAIL)
    if request.price is not None and request.price <= 0:
        errors.append("price must be greater than zero")
    if not request.address.postcode.strip():
        errors.append("address postcode is required")

    return errors


def is_terminal_milestone(status: MilestoneStatus) -> bool:
    """Return True if the milestone can no longer change."""
    return status == MilestoneStatus.COMPLETED
