# =============================
# NetSuite RESTlet Client (ASYNC)
# Signs every call with TBA and normalizes errors
# =============================

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
from httpx import HTTPStatusError, RequestError

from app.config import Settings
from app.exceptions import DownstreamApiError
from app.netsuite.oauth import sign_request

logger = logging.getLogger("uvicorn.error")


def _response_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _raise_with_body(exc: HTTPStatusError):
    body = _response_body(exc.response)
    raise DownstreamApiError(exc.response.status_code, body) from exc


class RestletClient:
    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    @asynccontextmanager
    async def _client(self):
        async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self._transport) as client:
            yield client

    def _headers(self, method: str, url: str) -> dict:
        # fresh nonce + timestamp on every call, never reused
        signed = sign_request(method, url, self.settings.netsuite)
        headers = {
            "Authorization": signed.authorization_header,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.settings.routing_cookie:
            headers["Cookie"] = self.settings.routing_cookie
        return headers

    async def send(self, method: str, url: Optional[str], payload: Optional[dict] = None) -> Any:
        """
        Send one signed request to a RESTlet and return the parsed body.
        A missing `url` means the operation is switched off: nothing is
        sent and None comes back.
        """
        if not url:
            logger.warning("[NetSuite] %s skipped, RESTlet URL not configured", method.upper())
            return None

        method = method.upper()
        headers = self._headers(method, url)
        logger.info("[NetSuite] %s %s", method, url)

        async with self._client() as c:
            try:
                r = await c.request(method, url, headers=headers, json=payload)
            except httpx.TimeoutException as e:
                raise DownstreamApiError(None, str(e), message="timed out") from e
            except RequestError as e:
                raise DownstreamApiError(None, str(e), message="request failed") from e
            try:
                r.raise_for_status()
            except HTTPStatusError as e:
                _raise_with_body(e)
            return _response_body(r)
