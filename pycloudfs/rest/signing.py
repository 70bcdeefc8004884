"""Request signing for the CloudFS token endpoint.

The token request is authorized with a header of the form::

    Authorization: BCS <client_id>:<signature>

where the signature is computed over a canonical string built from the HTTP
method, the request URI, the form-encoded body and the Content-Type and Date
headers. The signing primitive is pluggable through `RequestSigner`.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from email.utils import formatdate
from typing import Protocol
from urllib.parse import quote_plus

FORM_URLENCODED = "application/x-www-form-urlencoded"
AUTHORIZATION_SCHEME = "BCS"


class RequestSigner(Protocol):
    """Anything that can turn a secret and a canonical string into a signature."""

    def sign(self, secret: str, canonical: str) -> str: ...


class HmacSha1Signer:
    """Base64-encoded HMAC-SHA1 signer."""

    def sign(self, secret: str, canonical: str) -> str:
        digest = hmac.new(
            secret.encode("utf-8"), canonical.encode("utf-8"), hashlib.sha1
        ).digest()
        return base64.b64encode(digest).decode("ascii")


def http_date(timestamp: float | None = None) -> str:
    """Format a timestamp as an RFC 1123 date in GMT."""
    return formatdate(timestamp, usegmt=True)


def _encode_header(name: str, value: str) -> str:
    return quote_plus(f"{name}:{value}", safe=":")


def canonical_request(
    method: str,
    uri: str,
    body: str,
    date: str,
    content_type: str = FORM_URLENCODED,
) -> str:
    """Build the string that gets signed for a request.

    Args:
        method: HTTP method, e.g. "POST".
        uri: Request path including the API version, e.g. "/v2/oauth2/token".
        body: The form-encoded request body.
        date: The value of the Date header.
        content_type: The value of the Content-Type header.

    Returns:
        The canonical request string.
    """
    return "&".join(
        [
            method.upper(),
            uri,
            body,
            _encode_header("Content-Type", content_type),
            _encode_header("Date", date),
        ]
    )


def authorization_value(
    signer: RequestSigner,
    client_id: str,
    secret: str,
    canonical: str,
) -> str:
    """Produce the Authorization header value for a canonical request."""
    signature = signer.sign(secret, canonical)
    return f"{AUTHORIZATION_SCHEME} {client_id}:{signature}"
