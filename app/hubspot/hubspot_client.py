# app/hubspot/hubspot_client.py
# =============================
# HubSpot CRM API Helpers (ASYNC, read-only)
# =============================

import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx
from httpx import HTTPStatusError, RequestError

from app.config import Settings
from app.exceptions import ConfigurationError, UpstreamApiError

logger = logging.getLogger("uvicorn.error")

ASSOCIATIONS_PAGE_SIZE = 500


def object_path(api_type: str, object_id: str, *rest: str) -> str:
    """/crm/v3/objects/... with every segment percent-encoded, slashes included."""
    segments = [api_type, object_id, *rest]
    return "/crm/v3/objects/" + "/".join(quote(str(s), safe="") for s in segments)


def _raise_with_body(exc: HTTPStatusError):
    try:
        body = exc.response.json()
    except ValueError:
        body = exc.response.text
    raise UpstreamApiError(exc.response.status_code, body) from exc


class HubSpotClient:
    """Bearer-token client for the CRM v3 objects API."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        token = self.settings.hubspot_token
        if not token:
            raise ConfigurationError("HUBSPOT_ACCESS_TOKEN")
        return {"Authorization": f"Bearer {token}", "Accept": "application/json"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.settings.hubspot_base_url,
            timeout=self.settings.timeout,
            transport=self._transport,
        )

    async def get(self, path: str, params: Optional[dict] = None) -> Any:
        headers = self._headers()
        async with self._client() as c:
            try:
                r = await c.get(path, params=params or {}, headers=headers)
            except httpx.TimeoutException as e:
                raise UpstreamApiError(None, str(e), message="timed out") from e
            except RequestError as e:
                raise UpstreamApiError(None, str(e), message="request failed") from e
            try:
                r.raise_for_status()
            except HTTPStatusError as e:
                _raise_with_body(e)
            return r.json()

    async def fetch_object(
        self,
        api_type: str,
        object_id: str,
        properties: Optional[Sequence[str]] = None,
        associations: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        params = {}
        if properties:
            params["properties"] = ",".join(properties)
        if associations:
            params["associations"] = ",".join(associations)
        logger.info("[HubSpot] Fetching %s/%s %s", api_type, object_id, params or "")
        return await self.get(object_path(api_type, object_id), params)

    async def fetch_associations(self, api_type: str, object_id: str, to_type: str) -> List[Dict[str, Any]]:
        """All association rows of one object towards `to_type` (paged)."""
        results: List[Dict[str, Any]] = []
        after = None
        while True:
            params = {"limit": ASSOCIATIONS_PAGE_SIZE}
            if after:
                params["after"] = after
            data = await self.get(object_path(api_type, object_id, "associations", to_type), params)
            results.extend(data.get("results") or [])
            after = ((data.get("paging") or {}).get("next") or {}).get("after")
            if not after:
                break
        return results
