import httpx
import pytest

from app.config import NetSuiteCredentials, Settings

RESTLET_BASE = "https://1234567-sb1.restlets.api.netsuite.com/app/site/hosting/restlet.nl"
CUSTOMER_URL = f"{RESTLET_BASE}?script=101&deploy=1"
ITEM_URL = f"{RESTLET_BASE}?script=102&deploy=1"
ORDER_URL = f"{RESTLET_BASE}?script=103&deploy=1"


class FakeApi:
    """Records every request and answers from a path → (status, body) table."""

    def __init__(self, routes=None, default=None):
        self.routes = dict(routes or {})
        self.default = default
        self.requests = []

    def add(self, path, body, status=200):
        self.routes[path] = (status, body)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        hit = self.routes.get(request.url.path, self.default)
        if hit is None:
            return httpx.Response(404, json={"status": "error", "message": "resource not found"})
        status, body = hit
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    @property
    def paths(self):
        return [r.url.path for r in self.requests]


@pytest.fixture
def settings():
    return Settings(
        hubspot_token="hs-test-token",
        netsuite=NetSuiteCredentials(
            account_id="1234567_SB1",
            consumer_key="ck",
            consumer_secret="cs",
            token_id="tk",
            token_secret="ts",
        ),
        customer_url=CUSTOMER_URL,
        item_url=ITEM_URL,
        order_url=ORDER_URL,
        routing_cookie="NS_ROUTING_VERSION=LAGGING",
    )


@pytest.fixture
def hubspot_api():
    return FakeApi()


@pytest.fixture
def netsuite_api():
    return FakeApi(default=(200, {"success": True}))
