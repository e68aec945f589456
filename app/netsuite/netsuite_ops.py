# =============================
# HubSpot → NetSuite Integration - RESTlet Operations
# Routes each action to its RESTlet endpoint and HTTP method
# =============================

import logging
from typing import Any, Optional, Tuple

from app.config import Settings
from app.netsuite.payload_builder import ErpPayload
from app.netsuite.restlet_client import RestletClient
from app.sync.event_classifier import Action, ActionKind

logger = logging.getLogger("uvicorn.error")


class NetSuiteOperations:
    def __init__(self, client: RestletClient, settings: Settings):
        self.client = client
        self.settings = settings

    def route(self, kind: ActionKind) -> Tuple[Optional[str], str]:
        """(RESTlet URL, HTTP method) for an action; URL may be None."""
        s = self.settings
        if kind == ActionKind.CREATE_CUSTOMER:
            return s.customer_url, "POST"
        if kind == ActionKind.UPDATE_CUSTOMER:
            return s.customer_url, "PUT"
        if kind == ActionKind.CREATE_ITEM:
            return s.item_url, "POST"
        if kind in (ActionKind.CREATE_QUOTE, ActionKind.CONVERT_QUOTE_TO_ORDER):
            return s.order_url, "POST"
        raise ValueError(f"No RESTlet for action {kind}")

    def is_enabled(self, kind: ActionKind) -> bool:
        url, _ = self.route(kind)
        return bool(url)

    async def dispatch(self, action: Action, payload: ErpPayload) -> Any:
        url, method = self.route(action.kind)
        logger.info("[NetSuite] %s for %s %s", action.kind.value, action.api_type, action.object_id)
        return await self.client.send(method, url, payload.to_body())
