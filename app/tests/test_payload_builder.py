import pytest

from app.models import CrmRecord, CustomerPayload, ItemPayload, LineItem, OrderPayload
from app.netsuite.payload_builder import build_payload
from app.sync.event_classifier import Action, ActionKind

COMPANY = CrmRecord.model_validate({"id": "42", "properties": {"name": "Acme", "city": "Leeds", "zip": None}})
DEAL = CrmRecord.model_validate({"id": "7", "properties": {"dealname": "Acme renewal", "dealstage": "closedwon"}})


@pytest.mark.parametrize("kind", [ActionKind.CREATE_CUSTOMER, ActionKind.UPDATE_CUSTOMER])
def test_customer_wraps_whole_record(kind):
    payload = build_payload(Action(kind, "companies", "42"), COMPANY)
    assert isinstance(payload, CustomerPayload)
    assert payload.to_body() == {
        "hubspotRecord": {"id": "42", "properties": {"name": "Acme", "city": "Leeds", "zip": None}},
    }


def test_item_wraps_whole_record():
    product = CrmRecord.model_validate({"id": "9001", "properties": {"name": "Widget", "hs_sku": "W-1"}})
    payload = build_payload(Action(ActionKind.CREATE_ITEM, "products", "9001"), product)
    assert isinstance(payload, ItemPayload)
    assert payload.to_body()["hubspotRecord"]["properties"]["hs_sku"] == "W-1"


def test_quote_payload():
    items = [
        LineItem(item_internal_id="555", quantity=2, rate=15.5, source_line_item_id="101"),
        LineItem(item_internal_id="556", quantity=1, source_line_item_id="103"),
    ]
    payload = build_payload(Action(ActionKind.CREATE_QUOTE, "deals", "7"), DEAL, company_id="42", line_items=items)

    assert isinstance(payload, OrderPayload)
    body = payload.to_body()
    assert body["action"] == "createQuote"
    assert body["dealId"] == "7"
    assert body["companyId"] == "42"
    assert body["lineItems"] == [
        {"itemInternalId": "555", "quantity": 2, "rate": 15.5, "sourceLineItemId": "101"},
        {"itemInternalId": "556", "quantity": 1, "sourceLineItemId": "103"},
    ]
    assert body["hubspotRecord"]["properties"]["dealname"] == "Acme renewal"


def test_degenerate_order_still_built():
    payload = build_payload(Action(ActionKind.CONVERT_QUOTE_TO_ORDER, "deals", "7"), DEAL)
    body = payload.to_body()
    assert body["action"] == "convertQuoteToSalesOrder"
    assert body["companyId"] is None
    assert body["lineItems"] == []
