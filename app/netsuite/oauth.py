# =============================
# NetSuite Token-Based Auth
# OAuth 1.0a request signing with HMAC-SHA256
# =============================

import base64
import hashlib
import hmac
import secrets
import time
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlsplit

from app.config import NetSuiteCredentials
from app.exceptions import SigningError
from app.models import SignedRequest

SIGNATURE_METHOD = "HMAC-SHA256"
OAUTH_VERSION = "1.0"
NONCE_BYTES = 16

_DEFAULT_PORTS = {"http": 80, "https": 443}


def percent_encode(value) -> str:
    """RFC 3986 encoding: only A-Z a-z 0-9 - . _ ~ stay unescaped."""
    return quote(str(value), safe="~")


def generate_nonce() -> str:
    return secrets.token_hex(NONCE_BYTES)


def generate_timestamp() -> str:
    return str(int(time.time()))


def base_url(url: str) -> str:
    """Scheme + host (+ non-default port) + path, no query or fragment."""
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if parts.port and parts.port != _DEFAULT_PORTS.get(scheme):
        host = f"{host}:{parts.port}"
    return f"{scheme}://{host}{parts.path or '/'}"


def query_params(url: str) -> List[Tuple[str, str]]:
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def oauth_params(creds: NetSuiteCredentials, nonce: str, timestamp: str) -> Dict[str, str]:
    return {
        "oauth_consumer_key": creds.consumer_key,
        "oauth_token": creds.token_id,
        "oauth_signature_method": SIGNATURE_METHOD,
        "oauth_timestamp": timestamp,
        "oauth_nonce": nonce,
        "oauth_version": OAUTH_VERSION,
    }


def normalized_params(params: List[Tuple[str, str]]) -> str:
    """Encode each key and value, sort the pairs, join as k=v&k=v."""
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params)
    return "&".join(f"{k}={v}" for k, v in encoded)


def signature_base_string(method: str, url: str, params: List[Tuple[str, str]]) -> str:
    return "&".join([
        method.upper(),
        percent_encode(base_url(url)),
        percent_encode(normalized_params(params)),
    ])


def sign(base_string: str, consumer_secret: str, token_secret: str) -> str:
    key = f"{consumer_secret}&{token_secret}".encode()
    digest = hmac.new(key, base_string.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def authorization_header(creds: NetSuiteCredentials, oauth: Dict[str, str], signature: str) -> str:
    fields = [
        ("oauth_consumer_key", oauth["oauth_consumer_key"]),
        ("oauth_token", oauth["oauth_token"]),
        ("oauth_signature_method", oauth["oauth_signature_method"]),
        ("oauth_timestamp", oauth["oauth_timestamp"]),
        ("oauth_nonce", oauth["oauth_nonce"]),
        ("oauth_version", oauth["oauth_version"]),
        ("oauth_signature", percent_encode(signature)),
    ]
    joined = ", ".join(f'{k}="{v}"' for k, v in fields)
    return f'OAuth realm="{creds.account_id}", {joined}'


def sign_request(
    method: str,
    url: str,
    creds: NetSuiteCredentials,
    nonce: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> SignedRequest:
    """
    Build a fresh Authorization header for one RESTlet call.
    `nonce` / `timestamp` are only passed explicitly by tests; callers
    leave them out so each request gets new values.
    """
    missing = creds.missing()
    if missing:
        raise SigningError(missing)

    oauth = oauth_params(
        creds,
        nonce or generate_nonce(),
        timestamp or generate_timestamp(),
    )
    params = list(oauth.items()) + query_params(url)
    base_string = signature_base_string(method, url, params)
    signature = sign(base_string, creds.consumer_secret, creds.token_secret)

    return SignedRequest(
        method=method.upper(),
        url=url,
        authorization_header=authorization_header(creds, oauth, signature),
    )
