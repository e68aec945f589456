# app/webhook_handler.py
# ────────────────────────────────────────────
# Handles incoming HubSpot webhooks → NetSuite RESTlet calls
# ────────────────────────────────────────────

import base64
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from fastapi import HTTPException

from app.config import Settings
from app.exceptions import ConfigurationError, TransportError
from app.hubspot.hubspot_client import HubSpotClient
from app.hubspot.record_resolver import RecordResolver
from app.netsuite.netsuite_ops import NetSuiteOperations
from app.netsuite.payload_builder import ORDER_ACTIONS, build_payload
from app.netsuite.restlet_client import RestletClient
from app.sync.event_classifier import EventClassifier, Skip, parse_notification

logger = logging.getLogger("uvicorn.error")

MAX_SIGNATURE_AGE_MS = 5 * 60 * 1000

SKIPPED = "skipped"
DISPATCHED = "dispatched"
DISABLED = "disabled"
FAILED = "failed"


def verify_signature(
    secret: str,
    method: str,
    uri: str,
    body: bytes,
    signature: Optional[str],
    timestamp: Optional[str],
    now_ms: Optional[int] = None,
):
    """
    HubSpot v3 request signature:
    base64(HMAC-SHA256(client secret, method + uri + body + timestamp)).
    """
    if not signature or not timestamp:
        raise HTTPException(status_code=401, detail="Missing webhook signature")
    try:
        ts = int(timestamp)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid webhook timestamp")

    now_ms = int(time.time() * 1000) if now_ms is None else now_ms
    if now_ms - ts > MAX_SIGNATURE_AGE_MS:
        raise HTTPException(status_code=401, detail="Stale webhook timestamp")

    message = f"{method.upper()}{uri}".encode() + body + timestamp.encode()
    digest = base64.b64encode(hmac.new(secret.encode(), message, hashlib.sha256).digest()).decode()
    if not hmac.compare_digest(digest, signature):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")


@dataclass
class EventOutcome:
    status: str
    reason: Optional[str] = None
    action: Optional[str] = None
    object_id: Optional[str] = None
    error_status: Optional[int] = None
    error_body: Any = None


class EventProcessor:
    """
    One webhook element → classify → resolve → build → dispatch.
    Holds only read-only collaborators, so one instance serves every
    request.
    """

    def __init__(
        self,
        settings: Settings,
        hubspot: Optional[HubSpotClient] = None,
        restlet: Optional[RestletClient] = None,
    ):
        self.settings = settings
        self.classifier = EventClassifier(settings.closed_won_stage)
        self.resolver = RecordResolver(hubspot or HubSpotClient(settings), settings)
        self.netsuite = NetSuiteOperations(restlet or RestletClient(settings), settings)

    async def process(self, raw: Any) -> EventOutcome:
        n = parse_notification(raw)
        if isinstance(n, Skip):
            logger.info("[Webhook] Skipping event: %s", n.reason)
            return EventOutcome(SKIPPED, reason=n.reason)

        try:
            record = None
            stage = None
            if self.classifier.needs_stage(n):
                record = await self.resolver.resolve(n.api_type, n.object_id)
                stage = record.prop("dealstage")

            decision = self.classifier.classify(n, current_stage=stage)
            if isinstance(decision, Skip):
                logger.info("[Webhook] Skipping %s %s: %s", n.api_type, n.object_id, decision.reason)
                return EventOutcome(SKIPPED, reason=decision.reason, object_id=n.object_id)

            if not self.netsuite.is_enabled(decision.kind):
                logger.warning("[Webhook] %s is disabled, %s %s not synced",
                               decision.kind.value, n.api_type, n.object_id)
                return EventOutcome(DISABLED, action=decision.kind.value, object_id=n.object_id,
                                    reason="RESTlet URL not configured")

            if record is None:
                record = await self.resolver.resolve(n.api_type, n.object_id)

            company_id, line_items = None, None
            if decision.kind in ORDER_ACTIONS:
                company_id = await self.resolver.primary_company_id(record)
                line_items = await self.resolver.resolve_line_items(record)

            payload = build_payload(decision, record, company_id=company_id, line_items=line_items)
            await self.netsuite.dispatch(decision, payload)
            return EventOutcome(DISPATCHED, action=decision.kind.value, object_id=n.object_id)

        except TransportError as e:
            logger.error("[Webhook] %s API error for %s %s: status=%s body=%s",
                         e.service, n.api_type, n.object_id, e.status, e.body)
            return EventOutcome(FAILED, reason=str(e), object_id=n.object_id,
                                error_status=e.status, error_body=e.body)
        except ConfigurationError as e:
            logger.error("[Webhook] Configuration error for %s %s: %s", n.api_type, n.object_id, e)
            return EventOutcome(FAILED, reason=str(e), object_id=n.object_id)
        except Exception as e:
            logger.exception("[Webhook] Failed to process %s %s", n.api_type, n.object_id)
            return EventOutcome(FAILED, reason=str(e), object_id=n.object_id)


async def handle_webhook(processor: EventProcessor, events: Iterable[Any]) -> dict:
    """
    Process a HubSpot batch one element at a time. A failing element
    never stops the rest of the batch.
    """
    counts = {SKIPPED: 0, DISPATCHED: 0, DISABLED: 0, FAILED: 0}
    received = 0
    for event in events:
        received += 1
        outcome = await processor.process(event)
        counts[outcome.status] += 1
    logger.info("[Webhook] Batch done: received=%s %s", received, counts)
    return {"received": received, **counts}
