import csv
import json

import pytest

from partner_api.bulk_import import BulkImporter, load_rows, pacing_rpm, row_to_request
from partner_api.integrations.clients import MockPartnerAPIClient
from partner_api.integrations.contracts.interfaces import ContactRole
from partner_api.integrations.errors import AuthenticationError, ServerError
from partner_api.integrations.policy.response_wrappers import IntegrationResponseError
from partner_api.utils.config_loader import PartnerAPIConfig, RateLimitConfig
from partner_api.utils.rate_limiter import RateLimiter

FIELDS = [
    "reference", "first_name", "last_name", "email", "line_1", "town", "postcode",
    "price", "transaction_type", "conveyancer_name", "conveyancer_email", "agent_name", "agent_email",
]


def _row(reference, **overrides):
    row = {
        "reference": reference,
        "first_name": "Grace",
        "last_name": "Hopper",
        "email": "grace@example.com",
        "line_1": "5 Station Road",
        "town": "Bath",
        "postcode": "ba1 1aa",
        "price": "310000",
        "transaction_type": "purchase",
        "conveyancer_name": "Legal LLP",
        "conveyancer_email": "team@legal.example",
        "agent_name": "",
        "agent_email": "",
    }
    row.update(overrides)
    return row


class RecordingLimiter(RateLimiter):
    def __init__(self):
        super().__init__(requests_per_minute=0)
        self.calls = 0

    def wait_if_needed(self):
        self.calls += 1
        return 0.0


def test_row_to_request_builds_contacts_from_flat_columns():
    request = row_to_request(_row("R1", agent_name="Homes Ltd", agent_email="sales@homes.example"))

    assert request.address.postcode == "BA1 1AA"
    assert request.price == 310000.0
    assert {c.role for c in request.contacts} == {ContactRole.CONVEYANCER, ContactRole.ESTATE_AGENT}


def test_load_rows_reads_csv_and_json(tmp_path):
    csv_path = tmp_path / "rows.csv"
    with open(csv_path, "w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDS)
        writer.writeheader()
        writer.writerow(_row("R1"))
    json_path = tmp_path / "rows.json"
    json_path.write_text(json.dumps({"rows": [_row("R2")]}), encoding="utf-8")

    assert load_rows(csv_path)[0]["reference"] == "R1"
    assert load_rows(json_path)[0]["reference"] == "R2"
    with pytest.raises(FileNotFoundError):
        load_rows(tmp_path / "nope.csv")


def test_import_creates_valid_rows_and_reports_bad_ones():
    client = MockPartnerAPIClient()
    limiter = RecordingLimiter()
    rows = [
        _row("R1"),
        _row("R2", conveyancer_email=""),          # no professional email
        _row("R3", price="not-a-number"),
        _row("R4"),
    ]

    result = BulkImporter(client, limiter).run(rows)

    assert result.total == 4
    assert result.created == 2
    assert result.failed == 2
    assert [e.row for e in result.errors] == [2, 3]
    assert result.errors[0].non_field_errors
    assert limiter.calls == 3
    assert client.list_properties().count == 2


def test_dry_run_does_not_call_the_api():
    client = MockPartnerAPIClient()
    result = BulkImporter(client).run([_row("R1"), _row("R2", conveyancer_email="")], dry_run=True)

    assert result.created == 0
    assert result.failed == 1
    assert client.list_properties().count == 0


class RejectingClient(MockPartnerAPIClient):
    def __init__(self, error):
        super().__init__()
        self.error = error
        self.attempts = 0

    def create_property(self, request):
        self.attempts += 1
        raise self.error


def test_auth_failure_aborts_the_batch():
    client = RejectingClient(AuthenticationError("Invalid API key.", status_code=401))
    result = BulkImporter(client).run([_row("R1"), _row("R2"), _row("R3")])

    assert result.aborted is True
    assert client.attempts == 1
    assert result.total == 1


def test_server_errors_are_recorded_and_import_continues():
    client = RejectingClient(ServerError("Service unavailable", status_code=503))
    result = BulkImporter(client).run([_row("R1"), _row("R2")])

    assert result.aborted is False
    assert client.attempts == 2
    assert result.failed == 2
    assert result.to_dict()["errors"][0]["message"] == "Service unavailable"


class FlakyBodyClient(MockPartnerAPIClient):
    """First create returns an unreadable body; later ones succeed."""

    def __init__(self):
        super().__init__()
        self.attempts = 0

    def create_property(self, request):
        self.attempts += 1
        if self.attempts == 1:
            raise IntegrationResponseError("Partner API returned non-JSON body for POST clients/")
        return super().create_property(request)


def test_unreadable_response_is_recorded_and_import_continues():
    client = FlakyBodyClient()
    result = BulkImporter(client).run([_row("R1"), _row("R2")])

    assert result.created == 1
    assert result.failed == 1
    assert result.aborted is False
    assert len(result.property_ids) == 1
    assert result.errors[0].reference == "R1"
    assert "non-JSON" in result.errors[0].message


def test_pacing_rpm_prefers_explicit_override():
    config = PartnerAPIConfig(rate_limit=RateLimitConfig(enabled=True, requests_per_minute=60))

    assert pacing_rpm(config) == 60
    assert pacing_rpm(config, 30) == 30
    assert pacing_rpm(config, 0) == 0
    assert pacing_rpm(config.model_copy(update={"rate_limit": RateLimitConfig(enabled=False)})) == 0
