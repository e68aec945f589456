#=================================
#HubSpot → NetSuite Integration
#Fetches a HubSpot record plus everything NetSuite needs alongside it.
#=================================

# app/hubspot/record_resolver.py
import asyncio
import logging
import math
from typing import List, Mapping, Optional, Sequence, Union

from app.config import Settings
from app.hubspot.hubspot_client import HubSpotClient
from app.models import AssociationRef, CrmRecord, LineItem, dedupe_refs

logger = logging.getLogger("uvicorn.error")

# HubSpot only returns properties that are asked for by name
COMPANY_PROPERTIES = ("name", "address", "address2", "city", "state", "zip", "country")
DEAL_PROPERTIES = ("dealname", "dealstage", "amount", "pipeline", "closedate")
DEAL_ASSOCIATIONS = ("companies", "line_items")
LINE_ITEM_PROPERTIES = ("name", "quantity", "hs_product_id")
PRODUCT_PROPERTIES = ("name", "hs_sku", "price", "description")

DEFAULT_QUANTITY = 1
# line items resolved in parallel per deal
LINE_ITEM_CONCURRENCY = 5

Number = Union[int, float]


def first_non_empty(props: Mapping[str, Optional[str]], candidates: Sequence[str]) -> Optional[str]:
    """Value of the first candidate property that is set and not blank."""
    for name in candidates:
        val = props.get(name)
        if val is not None and str(val).strip():
            return str(val).strip()
    return None


def to_number(raw) -> Optional[Number]:
    if raw is None:
        return None
    try:
        val = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(val):
        return None
    return int(val) if val.is_integer() else val


def _merge(*groups: Sequence[str]) -> tuple:
    out: List[str] = []
    for g in groups:
        for name in g:
            if name not in out:
                out.append(name)
    return tuple(out)


class RecordResolver:
    def __init__(self, client: HubSpotClient, settings: Settings):
        self.client = client
        self.settings = settings

    def properties_for(self, api_type: str) -> tuple:
        if api_type == "companies":
            return COMPANY_PROPERTIES
        if api_type == "deals":
            return DEAL_PROPERTIES
        if api_type == "line_items":
            return _merge(LINE_ITEM_PROPERTIES, self.settings.rate_fields)
        if api_type == "products":
            return _merge(PRODUCT_PROPERTIES, self.settings.item_id_fields)
        return ()

    async def resolve(self, api_type: str, object_id: str) -> CrmRecord:
        associations = DEAL_ASSOCIATIONS if api_type == "deals" else None
        data = await self.client.fetch_object(
            api_type,
            object_id,
            properties=self.properties_for(api_type),
            associations=associations,
        )
        record = CrmRecord.model_validate(data)
        logger.info("[HubSpot] Fetched full %s record %s", api_type, record.id)
        return record

    async def resolve_associations(self, object_id: str, to_type: str, api_type: str = "deals") -> List[AssociationRef]:
        rows = await self.client.fetch_associations(api_type, object_id, to_type)
        return [AssociationRef.model_validate(r) for r in dedupe_refs(rows)]

    async def associated(self, record: CrmRecord, to_type: str, api_type: str = "deals") -> List[AssociationRef]:
        """
        Inline association set when the primary fetch returned one,
        otherwise a dedicated associations lookup.
        """
        if to_type in record.associations:
            return record.associations[to_type]
        logger.info("[HubSpot] No inline %s on %s/%s, querying associations", to_type, api_type, record.id)
        return await self.resolve_associations(record.id, to_type, api_type=api_type)

    async def primary_company_id(self, deal: CrmRecord) -> Optional[str]:
        companies = await self.associated(deal, "companies")
        if not companies:
            logger.warning("[HubSpot] Deal %s has no associated company", deal.id)
            return None
        return companies[0].id

    async def resolve_line_items(self, deal: CrmRecord) -> List[LineItem]:
        refs = await self.associated(deal, "line_items")
        if not refs:
            logger.warning("[HubSpot] Deal %s has no line items", deal.id)
            return []
        sem = asyncio.Semaphore(LINE_ITEM_CONCURRENCY)

        async def bounded(line_item_id: str) -> Optional[LineItem]:
            async with sem:
                return await self.resolve_line_item(line_item_id)

        # gather keeps input order, which NetSuite uses as line order
        tasks = [asyncio.ensure_future(bounded(r.id)) for r in refs]
        try:
            resolved = await asyncio.gather(*tasks)
        except Exception:
            # the event has failed; stop the remaining fetches
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return [li for li in resolved if li is not None]

    async def resolve_line_item(self, line_item_id: str) -> Optional[LineItem]:
        li = await self.resolve("line_items", line_item_id)

        product_id = li.prop("hs_product_id")
        if not product_id:
            logger.warning("[HubSpot] Line item %s has no hs_product_id, dropped", line_item_id)
            return None

        product = await self.resolve("products", product_id)
        internal_id = first_non_empty(product.properties, self.settings.item_id_fields)
        if not internal_id:
            logger.warning(
                "[HubSpot] Product %s (line item %s) has none of %s set, dropped",
                product_id, line_item_id, list(self.settings.item_id_fields),
            )
            return None

        quantity = to_number(li.prop("quantity"))
        return LineItem(
            item_internal_id=internal_id,
            quantity=DEFAULT_QUANTITY if quantity is None else quantity,
            rate=to_number(first_non_empty(li.properties, self.settings.rate_fields)),
            source_line_item_id=li.id,
        )
