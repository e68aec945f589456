# =============================
# ✅ Import and Load .env at startup
# =============================
import os
from dotenv import load_dotenv
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), ".env"))

import json
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from app.config import Settings
from app.webhook_handler import EventProcessor, handle_webhook, verify_signature

logger = logging.getLogger("uvicorn.error")


def _first_header(request: Request, name: str) -> Optional[str]:
    value = request.headers.get(name)
    if not value:
        return None
    return value.split(",")[0].strip() or None


def signed_uri(request: Request, public_base_url: Optional[str] = None) -> str:
    """
    The URI HubSpot signed: the configured public origin plus path, else
    the request URL with scheme and host from X-Forwarded-Proto / -Host.
    """
    url = request.url
    if public_base_url:
        return public_base_url + url.path + (f"?{url.query}" if url.query else "")
    proto = _first_header(request, "X-Forwarded-Proto")
    host = _first_header(request, "X-Forwarded-Host")
    if proto:
        url = url.replace(scheme=proto)
    if host:
        url = url.replace(netloc=host)
    return str(url)


# =============================
# ✅ FastAPI App Initialization
# =============================
def create_app(settings: Optional[Settings] = None, processor: Optional[EventProcessor] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    processor = processor or EventProcessor(settings)

    app = FastAPI()
    app.state.settings = settings
    app.state.processor = processor

    @app.get("/")
    def root():
        return {"status": "ok", "msg": "HubSpot → NetSuite integration running"}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ======================================
    # ✅ Webhook Handler (public endpoint)
    # ======================================
    @app.post("/hubspot/webhook")
    async def webhook_endpoint(request: Request):
        body = await request.body()

        if settings.hubspot_client_secret:
            try:
                verify_signature(
                    settings.hubspot_client_secret,
                    request.method,
                    signed_uri(request, settings.public_base_url),
                    body,
                    request.headers.get("X-HubSpot-Signature-v3"),
                    request.headers.get("X-HubSpot-Request-Timestamp"),
                )
            except HTTPException as e:
                logger.warning("[Webhook] Rejected delivery: %s", e.detail)
                return JSONResponse(status_code=e.status_code, content={"status": "error"})

        try:
            payload = json.loads(body or b"null")
        except ValueError:
            logger.warning("[Webhook] Body is not JSON")
            return JSONResponse(status_code=400, content={"status": "error"})

        # HubSpot always sends a list; tolerate a single object
        events = payload if isinstance(payload, list) else [payload]
        logger.info("[Webhook] Received %s HubSpot event(s)", len(events))

        try:
            result = await handle_webhook(app.state.processor, events)
            return {"status": "success", **result}
        except Exception:
            logger.exception("[Webhook] Failed to process payload")
            return JSONResponse(status_code=500, content={"status": "error"})

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main_app:app", host="0.0.0.0", port=int(os.getenv("PORT", "3000")))
