import pytest

from partner_api.integrations.clients import MockPartnerAPIClient, PartnerAPIClient, get_partner_client
from partner_api.integrations.contracts.interfaces import ChatMessage, MilestoneStatus
from partner_api.integrations.errors import NotFoundError, ValidationError
from partner_api.utils.config_loader import PartnerAPIConfig


def test_create_property_seeds_milestones(property_request):
    client = MockPartnerAPIClient()

    prop = client.create_property(property_request)
    milestones = list(client.iter_milestones(prop.id))

    assert client.get_property(prop.id).reference == "REF-001"
    assert len(milestones) == 7
    assert milestones[0].status == MilestoneStatus.IN_PROGRESS
    assert all(m.status == MilestoneStatus.PENDING for m in milestones[1:])
    assert [m.order for m in milestones] == list(range(1, 8))


def test_advance_milestone_moves_progress_forward(property_request):
    client = MockPartnerAPIClient()
    prop = client.create_property(property_request)

    completed = client.advance_milestone(prop.id)
    milestones = client.list_milestones(prop.id).results

    assert completed.status == MilestoneStatus.COMPLETED
    assert completed.completed_at is not None
    assert milestones[1].status == MilestoneStatus.IN_PROGRESS


def test_advancing_past_last_milestone_completes_property(property_request):
    client = MockPartnerAPIClient()
    prop = client.create_property(property_request)

    for _ in range(7):
        assert client.advance_milestone(prop.id) is not None

    assert client.advance_milestone(prop.id) is None
    assert client.get_property(prop.id).status == "completed"


def test_mock_enforces_professional_contact_rule(property_request):
    client = MockPartnerAPIClient()
    with pytest.raises(ValidationError) as exc_info:
        client.create_property(property_request.model_copy(update={"contacts": []}))
    assert exc_info.value.non_field_errors


def test_mock_rejects_unknown_product(property_request):
    client = MockPartnerAPIClient()
    with pytest.raises(ValidationError) as exc_info:
        client.create_property(property_request.model_copy(update={"product_id": "nope"}))
    assert "product_id" in exc_info.value.field_errors


def test_mock_paginates_properties(property_request):
    client = MockPartnerAPIClient(page_size=2)
    for i in range(5):
        client.create_property(property_request.model_copy(update={"reference": f"REF-{i}"}))

    first = client.list_properties()
    every = list(client.iter_properties())

    assert first.count == 5
    assert first.has_next is True
    assert first.previous is None
    assert len(first.results) == 2
    assert [p.reference for p in every] == [f"REF-{i}" for i in range(5)]
    assert client.list_properties(reference="REF-3").count == 1


def test_mock_unknown_property_raises_not_found():
    client = MockPartnerAPIClient()
    with pytest.raises(NotFoundError):
        client.get_property("missing")
    with pytest.raises(NotFoundError):
        client.list_milestones("missing")


def test_mock_chat_is_canned():
    reply = MockPartnerAPIClient().send_chat_message(ChatMessage(message="Any update?"))
    assert reply.mocked is True
    assert reply.raw["echo"] == "Any update?"


def test_get_partner_client_selects_implementation():
    assert isinstance(get_partner_client(PartnerAPIConfig()), MockPartnerAPIClient)

    configured = PartnerAPIConfig(base_url="https://partner.test/api/v1", api_key="k")
    assert isinstance(get_partner_client(configured), PartnerAPIClient)

    forced_mock = configured.model_copy(update={"mode": "mock"})
    assert isinstance(get_partner_client(forced_mock), MockPartnerAPIClient)
