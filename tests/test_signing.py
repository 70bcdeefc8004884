"""Tests for request signing."""

from __future__ import annotations

import base64

from pycloudfs.rest.signing import (
    HmacSha1Signer,
    authorization_value,
    canonical_request,
    http_date,
)


class _FixedSigner:
    def sign(self, secret: str, canonical: str) -> str:
        return f"sig({secret})"


class TestHmacSha1Signer:
    """Tests for the default signer."""

    def test_rfc2202_vector(self) -> None:
        """Test against RFC 2202 HMAC-SHA1 test case 2."""
        signature = HmacSha1Signer().sign("Jefe", "what do ya want for nothing?")
        digest = base64.b64decode(signature)
        assert digest.hex() == "effcdf6ae5eb2fa2d27416d5f184df9c259a7c79"

    def test_signature_depends_on_secret(self) -> None:
        """Test that different secrets give different signatures."""
        signer = HmacSha1Signer()
        assert signer.sign("a", "payload") != signer.sign("b", "payload")


class TestCanonicalRequest:
    """Tests for the canonical request string."""

    def test_http_date(self) -> None:
        """Test RFC 1123 formatting in GMT."""
        assert http_date(0) == "Thu, 01 Jan 1970 00:00:00 GMT"

    def test_layout(self) -> None:
        """Test the order and encoding of the canonical parts."""
        canonical = canonical_request(
            "post", "/v2/oauth2/token", "a=b", "Thu, 01 Jan 1970 00:00:00 GMT"
        )
        assert canonical == (
            "POST&/v2/oauth2/token&a=b"
            "&Content-Type:application%2Fx-www-form-urlencoded"
            "&Date:Thu%2C+01+Jan+1970+00:00:00+GMT"
        )

    def test_authorization_value(self) -> None:
        """Test the Authorization header layout with a pluggable signer."""
        value = authorization_value(_FixedSigner(), "client-id", "s3cret", "x")
        assert value == "BCS client-id:sig(s3cret)"
