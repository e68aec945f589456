import base64
import hashlib
import hmac
import json
import time
from dataclasses import replace

from fastapi.testclient import TestClient

from app.main_app import create_app
from app.webhook_handler import EventOutcome


class StubProcessor:
    def __init__(self, outcomes=None, explode=False):
        self.outcomes = list(outcomes or [])
        self.explode = explode
        self.seen = []

    async def process(self, raw):
        if self.explode:
            raise RuntimeError("unexpected")
        self.seen.append(raw)
        return self.outcomes.pop(0) if self.outcomes else EventOutcome("skipped", reason="stub")


def test_root_and_health(settings):
    client = TestClient(create_app(settings, processor=StubProcessor()))
    assert client.get("/").json()["status"] == "ok"
    assert client.get("/health").json() == {"status": "ok"}


def test_webhook_batch_counts(settings):
    stub = StubProcessor([
        EventOutcome("dispatched", action="create_customer"),
        EventOutcome("failed", reason="NetSuite 500"),
        EventOutcome("skipped", reason="contact"),
    ])
    client = TestClient(create_app(settings, processor=stub))

    events = [
        {"objectId": 1, "subscriptionType": "company.creation"},
        {"objectId": 7, "subscriptionType": "deal.propertyChange"},
        {"objectId": 3, "subscriptionType": "contact.creation"},
    ]
    resp = client.post("/hubspot/webhook", json=events)

    assert resp.status_code == 200
    assert resp.json() == {
        "status": "success", "received": 3,
        "skipped": 1, "dispatched": 1, "disabled": 0, "failed": 1,
    }
    assert stub.seen == events


def test_single_object_is_one_event(settings):
    stub = StubProcessor()
    client = TestClient(create_app(settings, processor=stub))

    resp = client.post("/hubspot/webhook", json={"objectId": 1, "subscriptionType": "company.creation"})

    assert resp.json()["received"] == 1
    assert stub.seen == [{"objectId": 1, "subscriptionType": "company.creation"}]


def test_invalid_json_is_400(settings):
    client = TestClient(create_app(settings, processor=StubProcessor()))
    resp = client.post("/hubspot/webhook", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json() == {"status": "error"}


def test_unexpected_error_is_generic_500(settings):
    client = TestClient(create_app(settings, processor=StubProcessor(explode=True)))
    resp = client.post("/hubspot/webhook", json=[{"objectId": 1, "subscriptionType": "company.creation"}])
    assert resp.status_code == 500
    assert resp.json() == {"status": "error"}


def test_signature_required_when_secret_set(settings):
    secured = replace(settings, hubspot_client_secret="shh")
    client = TestClient(create_app(secured, processor=StubProcessor()))
    body = json.dumps([{"objectId": 1, "subscriptionType": "company.creation"}]).encode()

    unsigned = client.post("/hubspot/webhook", content=body)
    assert unsigned.status_code == 401

    ts = str(int(time.time() * 1000))
    uri = "http://testserver/hubspot/webhook"
    msg = f"POST{uri}".encode() + body + ts.encode()
    sig = base64.b64encode(hmac.new(b"shh", msg, hashlib.sha256).digest()).decode()

    signed = client.post(
        "/hubspot/webhook",
        content=body,
        headers={"X-HubSpot-Signature-v3": sig, "X-HubSpot-Request-Timestamp": ts},
    )
    assert signed.status_code == 200
    assert signed.json()["received"] == 1


def _sign(secret, uri, body, ts):
    msg = f"POST{uri}".encode() + body + ts.encode()
    return base64.b64encode(hmac.new(secret, msg, hashlib.sha256).digest()).decode()


def test_signature_uses_forwarded_scheme_and_host(settings):
    client = TestClient(create_app(replace(settings, hubspot_client_secret="shh"), processor=StubProcessor()))
    body = b'[{"objectId": 1, "subscriptionType": "company.creation"}]'
    ts = str(int(time.time() * 1000))
    sig = _sign(b"shh", "https://bridge.example.com/hubspot/webhook", body, ts)

    resp = client.post(
        "/hubspot/webhook",
        content=body,
        headers={
            "X-HubSpot-Signature-v3": sig,
            "X-HubSpot-Request-Timestamp": ts,
            "X-Forwarded-Proto": "https",
            "X-Forwarded-Host": "bridge.example.com",
        },
    )
    assert resp.status_code == 200


def test_signature_uses_public_base_url(settings):
    secured = replace(settings, hubspot_client_secret="shh", public_base_url="https://bridge.example.com")
    client = TestClient(create_app(secured, processor=StubProcessor()))
    body = b'[{"objectId": 1, "subscriptionType": "company.creation"}]'
    ts = str(int(time.time() * 1000))
    headers = {"X-HubSpot-Request-Timestamp": ts}

    headers["X-HubSpot-Signature-v3"] = _sign(b"shh", "http://testserver/hubspot/webhook", body, ts)
    assert client.post("/hubspot/webhook", content=body, headers=headers).status_code == 401

    headers["X-HubSpot-Signature-v3"] = _sign(b"shh", "https://bridge.example.com/hubspot/webhook", body, ts)
    assert client.post("/hubspot/webhook", content=body, headers=headers).status_code == 200
