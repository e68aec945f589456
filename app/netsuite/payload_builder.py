# =============================
# NetSuite RESTlet Payloads
# Pure transforms: resolved HubSpot records → request bodies.
# Field-level mapping lives in the RESTlet scripts, not here.
# =============================

from typing import List, Optional, Union

from app.models import CrmRecord, CustomerPayload, ItemPayload, LineItem, OrderPayload
from app.sync.event_classifier import Action, ActionKind

ErpPayload = Union[CustomerPayload, ItemPayload, OrderPayload]

# value of the "action" field the order RESTlet switches on
ORDER_ACTIONS = {
    ActionKind.CREATE_QUOTE: "createQuote",
    ActionKind.CONVERT_QUOTE_TO_ORDER: "convertQuoteToSalesOrder",
}


def build_customer_payload(record: CrmRecord) -> CustomerPayload:
    return CustomerPayload(record=record)


def build_item_payload(record: CrmRecord) -> ItemPayload:
    return ItemPayload(record=record)


def build_order_payload(
    kind: ActionKind,
    deal: CrmRecord,
    company_id: Optional[str],
    line_items: List[LineItem],
) -> OrderPayload:
    """
    No company / no line items still builds: NetSuite decides whether
    that order is acceptable.
    """
    return OrderPayload(
        action=ORDER_ACTIONS[kind],
        deal_id=deal.id,
        company_id=company_id,
        line_items=list(line_items),
        record=deal,
    )


def build_payload(
    action: Action,
    record: CrmRecord,
    company_id: Optional[str] = None,
    line_items: Optional[List[LineItem]] = None,
) -> ErpPayload:
    if action.kind in (ActionKind.CREATE_CUSTOMER, ActionKind.UPDATE_CUSTOMER):
        return build_customer_payload(record)
    if action.kind == ActionKind.CREATE_ITEM:
        return build_item_payload(record)
    if action.kind in ORDER_ACTIONS:
        return build_order_payload(action.kind, record, company_id, line_items or [])
    raise ValueError(f"No payload for action {action.kind}")
