"""
Bulk client/property import.

Reads rows from CSV or JSON, builds PropertyCreateRequest objects and creates
them one at a time, paced by a RateLimiter so the vendor quota is respected.
A bad row is recorded and skipped; an authentication/permission failure
aborts the run because every following row would fail the same way.
"""

from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as ModelValidationError

from partner_api.integrations.contracts.interfaces import (
    Address,
    ClientDetails,
    Contact,
    ContactRole,
    PartnerClient,
    PropertyCreateRequest,
)
from partner_api.integrations.contracts.properties import validate_property_request
from partner_api.integrations.errors import (
    AuthenticationError,
    PartnerAPIError,
    PermissionDeniedError,
    ValidationError,
)
from partner_api.integrations.policy.response_wrappers import IntegrationResponseError
from partner_api.utils.config_loader import PartnerAPIConfig
from partner_api.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Flat CSV columns -> contact role
_CONTACT_COLUMNS = {
    "agent": ContactRole.ESTATE_AGENT,
    "conveyancer": ContactRole.CONVEYANCER,
    "broker": ContactRole.MORTGAGE_BROKER,
}


@dataclass
class RowError:
    row: int
    reference: Optional[str]
    message: str
    field_errors: Dict[str, List[str]] = field(default_factory=dict)
    non_field_errors: List[str] = field(default_factory=list)


@dataclass
class BulkImportResult:
    total: int = 0
    created: int = 0
    failed: int = 0
    aborted: bool = False
    property_ids: List[str] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "created": self.created,
            "failed": self.failed,
            "aborted": self.aborted,
            "property_ids": list(self.property_ids),
            "errors": [e.__dict__ for e in self.errors],
        }


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def row_to_request(row: Dict[str, Any]) -> PropertyCreateRequest:
    """Build a request from either a nested JSON object or a flat CSV row."""
    if isinstance(row.get("client"), dict):
        return PropertyCreateRequest(**row)

    contacts: List[Contact] = []
    for prefix, role in _CONTACT_COLUMNS.items():
        name = _clean(row.get(f"{prefix}_name"))
        email = _clean(row.get(f"{prefix}_email"))
        if name or email:
            contacts.append(Contact(role=role, name=name or email, email=email, phone=_clean(row.get(f"{prefix}_phone"))))

    price = _clean(row.get("price"))
    return PropertyCreateRequest(
        client=ClientDetails(
            first_name=_clean(row.get("first_name")) or "",
            last_name=_clean(row.get("last_name")) or "",
            email=_clean(row.get("email")),
            phone=_clean(row.get("phone")),
        ),
        address=Address(
            line_1=_clean(row.get("line_1")) or "",
            line_2=_clean(row.get("line_2")),
            town=_clean(row.get("town")) or "",
            county=_clean(row.get("county")),
            postcode=(_clean(row.get("postcode")) or "").upper(),
        ),
        transaction_type=_clean(row.get("transaction_type")) or "purchase",
        price=float(price) if price else None,
        product_id=_clean(row.get("product_id")),
        contacts=contacts,
        reference=_clean(row.get("reference")),
    )


def load_rows(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        raise FileNotFoundError(f"Import file not found: {path}")
    if path.suffix.lower() == ".json":
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("results") or data.get("rows") or []
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON list of rows in {path}")
        return data
    with open(path, "r", encoding="utf-8-sig", newline="") as f:
        return list(csv.DictReader(f))


def pacing_rpm(config: PartnerAPIConfig, override: Optional[int] = None) -> int:
    """Requests per minute for the importer; an explicit 0 disables pacing."""
    if override is not None:
        return override
    return config.rate_limit.requests_per_minute if config.rate_limit.enabled else 0


class BulkImporter:
    def __init__(self, client: PartnerClient, rate_limiter: Optional[RateLimiter] = None) -> None:
        self.client = client
        self.rate_limiter = rate_limiter or RateLimiter(requests_per_minute=0)

    def run(self, rows: Iterable[Dict[str, Any]], dry_run: bool = False) -> BulkImportResult:
        result = BulkImportResult()

        for index, row in enumerate(rows, start=1):
            result.total += 1
            reference = _clean(row.get("reference"))

            try:
                request = row_to_request(row)
            except (ModelValidationError, ValueError) as e:
                result.failed += 1
                result.errors.append(RowError(row=index, reference=reference, message="Invalid row", field_errors=_model_errors(e)))
                logger.warning("Row %d (%s) is invalid: %s", index, reference, e)
                continue

            if dry_run:
                problems = validate_property_request(request)
                if problems:
                    result.failed += 1
                    result.errors.append(RowError(row=index, reference=reference, message=" | ".join(problems), non_field_errors=problems))
                continue

            self.rate_limiter.wait_if_needed()
            try:
                created = self.client.create_property(request)
            except ValidationError as e:
                result.failed += 1
                result.errors.append(
                    RowError(
                        row=index,
                        reference=reference,
                        message=e.message,
                        field_errors=e.field_errors,
                        non_field_errors=e.non_field_errors,
                    )
                )
                logger.warning("Row %d (%s) rejected: %s", index, reference, e.message)
                continue
            except (AuthenticationError, PermissionDeniedError) as e:
                result.failed += 1
                result.aborted = True
                result.errors.append(RowError(row=index, reference=reference, message=e.message))
                logger.error("Aborting import at row %d: %s", index, e.message)
                break
            except PartnerAPIError as e:
                result.failed += 1
                result.errors.append(RowError(row=index, reference=reference, message=e.message))
                logger.error("Row %d (%s) failed: %s", index, reference, e.message)
                continue
            except IntegrationResponseError as e:
                result.failed += 1
                result.errors.append(RowError(row=index, reference=reference, message=str(e)))
                logger.error("Row %d (%s): unreadable response: %s", index, reference, e)
                continue

            result.created += 1
            result.property_ids.append(created.id)
            info = getattr(self.client, "last_rate_limit", None)
            if info is not None:
                self.rate_limiter.pause_for(info)

        logger.info(
            "Bulk import finished: total=%d created=%d failed=%d aborted=%s",
            result.total, result.created, result.failed, result.aborted,
        )
        return result


def _model_errors(exc: Exception) -> Dict[str, List[str]]:
    if isinstance(exc, ModelValidationError):
        errors: Dict[str, List[str]] = {}
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ())) or "non_field_errors"
            errors.setdefault(loc, []).append(err.get("msg", "invalid"))
        return errors
    return {"non_field_errors": [str(exc)]}
