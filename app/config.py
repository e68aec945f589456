# =============================
# Global Config
# =============================

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

DEFAULT_HUBSPOT_BASE_URL = "https://api.hubapi.com"
DEFAULT_CLOSED_WON_STAGE = "closedwon"
DEFAULT_TIMEOUT_SECS = 20.0

# Candidate product properties holding the NetSuite internal item id, tried in order
DEFAULT_ITEM_ID_FIELDS = ("netsuite_internal_id", "netsuite_item_id", "ns_internal_id")
# Candidate line-item properties holding the unit rate, tried in order
DEFAULT_RATE_FIELDS = ("price",)


def _split_fields(raw: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if not raw:
        return default
    fields = tuple(f.strip() for f in raw.split(",") if f.strip())
    return fields or default


def _blank_to_none(val: Optional[str]) -> Optional[str]:
    if val is None:
        return None
    val = val.strip()
    return val or None


@dataclass(frozen=True)
class NetSuiteCredentials:
    account_id: Optional[str] = None
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    token_id: Optional[str] = None
    token_secret: Optional[str] = None

    def missing(self) -> list:
        """Names of the env vars that are not set."""
        names = {
            "NS_ACCOUNT_ID": self.account_id,
            "NS_CONSUMER_KEY": self.consumer_key,
            "NS_CONSUMER_SECRET": self.consumer_secret,
            "NS_TOKEN_ID": self.token_id,
            "NS_TOKEN_SECRET": self.token_secret,
        }
        return [k for k, v in names.items() if not v]


@dataclass(frozen=True)
class Settings:
    """
    Process-wide configuration, read once at startup and passed into
    every component. Nothing here is validated eagerly: missing
    credentials surface when the first call needs them.
    """
    hubspot_token: Optional[str] = None
    hubspot_base_url: str = DEFAULT_HUBSPOT_BASE_URL
    hubspot_client_secret: Optional[str] = None
    public_base_url: Optional[str] = None
    closed_won_stage: str = DEFAULT_CLOSED_WON_STAGE
    item_id_fields: Tuple[str, ...] = DEFAULT_ITEM_ID_FIELDS
    rate_fields: Tuple[str, ...] = DEFAULT_RATE_FIELDS

    netsuite: NetSuiteCredentials = field(default_factory=NetSuiteCredentials)
    customer_url: Optional[str] = None
    item_url: Optional[str] = None
    order_url: Optional[str] = None
    routing_cookie: Optional[str] = None

    timeout: float = DEFAULT_TIMEOUT_SECS

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        get = lambda name: _blank_to_none(env.get(name))

        try:
            timeout = float(env.get("HTTP_TIMEOUT_SECS") or DEFAULT_TIMEOUT_SECS)
        except ValueError:
            timeout = DEFAULT_TIMEOUT_SECS

        return cls(
            hubspot_token=get("HUBSPOT_ACCESS_TOKEN"),
            hubspot_base_url=(get("HUBSPOT_BASE_URL") or DEFAULT_HUBSPOT_BASE_URL).rstrip("/"),
            hubspot_client_secret=get("HUBSPOT_CLIENT_SECRET"),
            public_base_url=(get("PUBLIC_BASE_URL") or "").rstrip("/") or None,
            closed_won_stage=get("HUBSPOT_CLOSED_WON_STAGE") or DEFAULT_CLOSED_WON_STAGE,
            item_id_fields=_split_fields(env.get("HUBSPOT_ITEM_ID_FIELDS"), DEFAULT_ITEM_ID_FIELDS),
            rate_fields=_split_fields(env.get("HUBSPOT_RATE_FIELDS"), DEFAULT_RATE_FIELDS),
            netsuite=NetSuiteCredentials(
                account_id=get("NS_ACCOUNT_ID"),
                consumer_key=get("NS_CONSUMER_KEY"),
                consumer_secret=get("NS_CONSUMER_SECRET"),
                token_id=get("NS_TOKEN_ID"),
                token_secret=get("NS_TOKEN_SECRET"),
            ),
            customer_url=get("NS_CUSTOMER_RESTLET_URL"),
            item_url=get("NS_ITEM_RESTLET_URL"),
            order_url=get("NS_ORDER_RESTLET_URL"),
            routing_cookie=get("NS_ROUTING_COOKIE"),
            timeout=timeout,
        )
