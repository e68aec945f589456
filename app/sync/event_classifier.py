# =============================
# Webhook Event Classifier
# - Turns a HubSpot notification into one NetSuite action (or a Skip)
# - Deal lifecycle: creation → quote, closed-won → sales order
# =============================

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from pydantic import ValidationError

from app.models import OBJECT_TYPE_MAP, WebhookEvent

logger = logging.getLogger("uvicorn.error")


class ActionKind(str, Enum):
    CREATE_CUSTOMER = "create_customer"
    UPDATE_CUSTOMER = "update_customer"
    CREATE_ITEM = "create_item"
    CREATE_QUOTE = "create_quote"
    CONVERT_QUOTE_TO_ORDER = "convert_quote_to_order"


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    api_type: str
    object_id: str


@dataclass(frozen=True)
class Skip:
    reason: str


@dataclass(frozen=True)
class Notification:
    object_id: str
    raw_type: str
    raw_event: str
    api_type: str

    @property
    def event_class(self) -> str:
        return CREATION if self.raw_event == "creation" else OTHER


# event classes
CREATION = "creation"
OTHER = "other"
# deal stage classes, observed on the live record, never stored
OPEN = "open"
CLOSED_WON = "closed_won"

# (api type, event class, stage class) → action; None means skip.
# Stage only matters where the two stage columns differ.
TRANSITIONS = {
    ("companies", CREATION, OPEN): ActionKind.CREATE_CUSTOMER,
    ("companies", CREATION, CLOSED_WON): ActionKind.CREATE_CUSTOMER,
    ("companies", OTHER, OPEN): ActionKind.UPDATE_CUSTOMER,
    ("companies", OTHER, CLOSED_WON): ActionKind.UPDATE_CUSTOMER,

    ("products", CREATION, OPEN): ActionKind.CREATE_ITEM,
    ("products", CREATION, CLOSED_WON): ActionKind.CREATE_ITEM,
    ("products", OTHER, OPEN): None,
    ("products", OTHER, CLOSED_WON): None,

    ("contacts", CREATION, OPEN): None,
    ("contacts", CREATION, CLOSED_WON): None,
    ("contacts", OTHER, OPEN): None,
    ("contacts", OTHER, CLOSED_WON): None,

    ("deals", CREATION, OPEN): ActionKind.CREATE_QUOTE,
    ("deals", CREATION, CLOSED_WON): ActionKind.CREATE_QUOTE,
    ("deals", OTHER, OPEN): None,
    ("deals", OTHER, CLOSED_WON): ActionKind.CONVERT_QUOTE_TO_ORDER,
}

SKIP_REASONS = {
    "contacts": "contact events are not synced to NetSuite",
    "products": "only product creation is synced",
    "deals": "deal is not closed-won",
}


def parse_notification(raw: Union[WebhookEvent, Any]) -> Union[Notification, Skip]:
    """Validate the identifying fields of one webhook element."""
    if isinstance(raw, WebhookEvent):
        event = raw
    else:
        if not isinstance(raw, dict):
            return Skip("event is not an object")
        try:
            event = WebhookEvent.model_validate(raw)
        except ValidationError as e:
            return Skip(f"event failed validation: {e.error_count()} error(s)")

    if not event.object_id or not event.subscription_type:
        return Skip("event missing objectId or subscriptionType")

    # CRM object ids are numeric
    if not (event.object_id.isascii() and event.object_id.isdigit()):
        return Skip(f"non-numeric objectId {event.object_id!r}")

    raw_type, sep, raw_event = event.subscription_type.partition(".")
    if not sep or not raw_type or not raw_event:
        return Skip(f"malformed subscriptionType {event.subscription_type!r}")

    api_type = OBJECT_TYPE_MAP.get(raw_type)
    if not api_type:
        return Skip(f"unhandled object type {raw_type!r}")

    return Notification(
        object_id=event.object_id,
        raw_type=raw_type,
        raw_event=raw_event,
        api_type=api_type,
    )


class EventClassifier:
    def __init__(self, closed_won_stage: str):
        self.closed_won_stage = closed_won_stage

    def stage_class(self, stage: Optional[str]) -> str:
        return CLOSED_WON if stage is not None and stage == self.closed_won_stage else OPEN

    def needs_stage(self, n: Notification) -> bool:
        """True when the outcome depends on the record's current dealstage."""
        return TRANSITIONS[(n.api_type, n.event_class, OPEN)] != TRANSITIONS[(n.api_type, n.event_class, CLOSED_WON)]

    def classify(self, event: Union[Notification, WebhookEvent, Any], current_stage: Optional[str] = None) -> Union[Action, Skip]:
        n = event if isinstance(event, Notification) else parse_notification(event)
        if isinstance(n, Skip):
            return n

        kind = TRANSITIONS.get((n.api_type, n.event_class, self.stage_class(current_stage)))
        if kind is None:
            reason = SKIP_REASONS.get(n.api_type, f"no action for {n.api_type}")
            if n.api_type == "deals":
                reason = f"{reason} (stage {current_stage!r}, event {n.raw_event!r})"
            return Skip(reason)

        logger.info("[Classifier] %s.%s %s → %s", n.raw_type, n.raw_event, n.object_id, kind.value)
        return Action(kind=kind, api_type=n.api_type, object_id=n.object_id)
