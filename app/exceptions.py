"""
Bridge exceptions.

Resolution and dispatch failures abort a single event; the webhook
handler catches them and turns them into a logged outcome. Malformed or
unsupported events are not errors at all, see `Skip` in
app/sync/event_classifier.py.
"""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base class for everything the bridge raises on purpose."""


class ConfigurationError(BridgeError):
    """A credential needed for the current call is not configured."""

    def __init__(self, setting: str, message: str | None = None):
        self.setting = setting
        self.message = message or f"{setting} is not set"
        super().__init__(self.message)


class SigningError(ConfigurationError):
    """NetSuite token-based-auth credentials are incomplete."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            ", ".join(self.missing),
            f"Cannot sign NetSuite request, missing: {', '.join(self.missing)}",
        )


class TransportError(BridgeError):
    """
    A call to a remote API failed. `status` is None when no response
    arrived (timeout, connection refused).
    """

    service = "remote"

    def __init__(self, status: int | None, body: Any = None, message: str | None = None):
        self.status = status
        self.body = body
        detail = message or (f"HTTP {status}" if status is not None else "no response")
        super().__init__(f"{self.service} API error: {detail} :: {body}")


class UpstreamApiError(TransportError):
    """HubSpot returned non-2xx or could not be reached."""

    service = "hubspot"


class DownstreamApiError(TransportError):
    """NetSuite RESTlet returned non-2xx or could not be reached."""

    service = "netsuite"
