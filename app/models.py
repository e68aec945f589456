# =============================
# HubSpot → NetSuite data model
# Request-scoped shapes, checked where data enters the bridge
# =============================

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Raw webhook object type → CRM v3 API resource name
OBJECT_TYPE_MAP = {
    "company": "companies",
    "deal": "deals",
    "product": "products",
    "contact": "contacts",
}


def _id_to_str(v):
    # HubSpot sends numeric ids in webhooks and string ids in REST responses
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return str(int(v))
    if isinstance(v, str):
        return v.strip() or None
    return v


class WebhookEvent(BaseModel):
    """One element of a HubSpot webhook batch."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    object_id: Optional[str] = Field(default=None, alias="objectId")
    subscription_type: Optional[str] = Field(default=None, alias="subscriptionType")
    property_name: Optional[str] = Field(default=None, alias="propertyName")
    property_value: Optional[str] = Field(default=None, alias="propertyValue")
    properties: Optional[Dict[str, Any]] = None

    @field_validator("object_id", mode="before")
    @classmethod
    def _coerce_object_id(cls, v):
        return _id_to_str(v)

    @field_validator("subscription_type", mode="before")
    @classmethod
    def _notification_key(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("property_value", mode="before")
    @classmethod
    def _coerce_property_value(cls, v):
        if v is None or isinstance(v, str):
            return v
        return str(v)


class AssociationRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return _id_to_str(v)


class CrmRecord(BaseModel):
    """
    A HubSpot object as returned by GET /crm/v3/objects/{type}/{id}.
    `associations` is keyed by target type, underscore form
    (`line_items`, not `line items`).
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    properties: Dict[str, Optional[str]] = Field(default_factory=dict)
    associations: Dict[str, List[AssociationRef]] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return _id_to_str(v)

    @field_validator("properties", mode="before")
    @classmethod
    def _stringify_properties(cls, v):
        if not v:
            return {}
        return {k: (None if val is None else str(val)) for k, val in v.items()}

    @field_validator("associations", mode="before")
    @classmethod
    def _flatten_associations(cls, v):
        if not v:
            return {}
        out: Dict[str, List[dict]] = {}
        for key, block in v.items():
            # a block with a next page is partial; the associations lookup pages it fully
            if isinstance(block, dict) and ((block.get("paging") or {}).get("next")):
                continue
            results = block.get("results", []) if isinstance(block, dict) else block
            out[normalize_association_key(key)] = dedupe_refs(results or [])
        return out

    def prop(self, name: str) -> Optional[str]:
        return self.properties.get(name)

    def to_body(self) -> Dict[str, Any]:
        return {"id": self.id, "properties": dict(self.properties)}


def normalize_association_key(key: str) -> str:
    return key.strip().replace(" ", "_")


def dedupe_refs(results: List[Any]) -> List[Any]:
    """
    HubSpot lists a target once per association label. Keep the first
    occurrence of each id, in order.
    """
    seen = set()
    out = []
    for r in results:
        rid = r.get("id") if isinstance(r, dict) else getattr(r, "id", None)
        rid = _id_to_str(rid)
        if not rid or rid in seen:
            continue
        seen.add(rid)
        out.append(r)
    return out


class LineItem(BaseModel):
    item_internal_id: str
    quantity: Union[int, float] = 1
    rate: Optional[Union[int, float]] = None
    source_line_item_id: str

    def to_body(self) -> Dict[str, Any]:
        body = {
            "itemInternalId": self.item_internal_id,
            "quantity": self.quantity,
            "sourceLineItemId": self.source_line_item_id,
        }
        # absent rate lets NetSuite apply its own pricing
        if self.rate is not None:
            body["rate"] = self.rate
        return body


class CustomerPayload(BaseModel):
    record: CrmRecord

    def to_body(self) -> Dict[str, Any]:
        return {"hubspotRecord": self.record.to_body()}


class ItemPayload(BaseModel):
    record: CrmRecord

    def to_body(self) -> Dict[str, Any]:
        return {"hubspotRecord": self.record.to_body()}


class OrderPayload(BaseModel):
    action: str
    deal_id: str
    company_id: Optional[str] = None
    line_items: List[LineItem] = Field(default_factory=list)
    record: CrmRecord

    def to_body(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "dealId": self.deal_id,
            "companyId": self.company_id,
            "lineItems": [li.to_body() for li in self.line_items],
            "hubspotRecord": self.record.to_body(),
        }


class SignedRequest(BaseModel):
    method: str
    url: str
    authorization_header: str
