"""OAuth 1.0a request signing with the body hash extension.

Outcomes requests carry an XML body, so the body is not part of the OAuth
parameter set. Instead its SHA-1 digest travels as ``oauth_body_hash`` and
is covered by the signature. Signing is two-legged: consumer key and secret
only, no token.

Body hash extension: https://oauth.googlecode.com/svn/spec/ext/body_hash/1.0/oauth-bodyhash.html
"""

from __future__ import annotations

import base64
import hashlib
from typing import Optional
from urllib.parse import urlsplit

from oauthlib.common import generate_nonce, generate_timestamp
from oauthlib.oauth1.rfc5849 import signature, utils

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"
AUTH_SCHEME = "OAuth"


def body_hash(body: bytes) -> str:
    """Base64 of the SHA-1 digest of the raw request body."""
    return base64.b64encode(hashlib.sha1(body).digest()).decode("ascii")


def build_oauth_params(
    consumer_key: str,
    body: bytes,
    nonce: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> list[tuple[str, str]]:
    """Protocol parameters in header order, without the signature."""
    return [
        ("oauth_consumer_key", consumer_key),
        ("oauth_nonce", nonce or generate_nonce()),
        ("oauth_signature_method", SIGNATURE_METHOD),
        ("oauth_version", OAUTH_VERSION),
        ("oauth_timestamp", timestamp or generate_timestamp()),
        ("oauth_body_hash", body_hash(body)),
    ]


def base_string(method: str, url: str, oauth_params: list[tuple[str, str]]) -> str:
    """Signature base string over the method, base URI, query and OAuth params."""
    query = urlsplit(url).query
    params = signature.collect_parameters(uri_query=query, with_realm=False) + list(oauth_params)
    normalized = signature.normalize_parameters(params)
    return signature.signature_base_string(method.upper(), signature.base_string_uri(url), normalized)


def sign_request(
    method: str,
    url: str,
    consumer_key: str,
    consumer_secret: str,
    body: bytes,
    nonce: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> str:
    """Return the complete ``Authorization`` header value for a request.

    Args:
        method: HTTP method, upper-cased before signing.
        url: Absolute service URL.
        consumer_key: OAuth consumer key.
        consumer_secret: OAuth consumer secret.
        body: Exact bytes that will be sent as the request body.
        nonce: Override the generated nonce (tests).
        timestamp: Override the generated timestamp (tests).
    """
    params = build_oauth_params(consumer_key, body, nonce=nonce, timestamp=timestamp)
    base = base_string(method, url, params)
    params.append(("oauth_signature", signature.sign_hmac_sha1(base, consumer_secret, None)))
    return AUTH_SCHEME + " " + ",".join(f'{key}="{utils.escape(value)}"' for key, value in params)


def parse_authorization(header: str) -> dict[str, str]:
    """Decode an ``OAuth k="v",...`` header into a dict of unescaped values."""
    return dict(utils.parse_authorization_header(header))
