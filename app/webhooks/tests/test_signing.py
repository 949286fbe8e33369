"""
Tests for webhook payload signing.
"""

from __future__ import annotations

import hashlib
import hmac

from webhooks.signing import (
    serialize_payload,
    sign_payload,
    signature_header,
    verify_signature,
)

SECRET = "merchant-secret"
TIMESTAMP = 1_760_000_000


class TestSignPayload:
    def test_signs_timestamp_and_body(self):
        body = '{"type":"test"}'
        expected = hmac.new(
            SECRET.encode(), f"{TIMESTAMP}.{body}".encode(), hashlib.sha256
        ).hexdigest()

        assert sign_payload(SECRET, TIMESTAMP, body) == expected

    def test_header_carries_prefix(self):
        header = signature_header(SECRET, TIMESTAMP, "{}")
        assert header == f"sha256={sign_payload(SECRET, TIMESTAMP, '{}')}"

    def test_serialization_is_compact(self):
        assert serialize_payload({"a": 1, "b": "x"}) == '{"a":1,"b":"x"}'


class TestVerifySignature:
    def test_accepts_prefixed_and_bare_signatures(self):
        body = serialize_payload({"type": "test"})
        header = signature_header(SECRET, TIMESTAMP, body)

        assert verify_signature(SECRET, TIMESTAMP, body, header, now=TIMESTAMP)
        assert verify_signature(
            SECRET, TIMESTAMP, body, header.removeprefix("sha256="), now=TIMESTAMP
        )

    def test_rejects_tampered_body(self):
        header = signature_header(SECRET, TIMESTAMP, '{"amount":"1"}')
        assert not verify_signature(SECRET, TIMESTAMP, '{"amount":"2"}', header, now=TIMESTAMP)

    def test_rejects_wrong_secret(self):
        header = signature_header("other-secret", TIMESTAMP, "{}")
        assert not verify_signature(SECRET, TIMESTAMP, "{}", header, now=TIMESTAMP)

    def test_rejects_stale_timestamp(self):
        header = signature_header(SECRET, TIMESTAMP, "{}")
        assert not verify_signature(SECRET, TIMESTAMP, "{}", header, now=TIMESTAMP + 301)
        assert verify_signature(SECRET, TIMESTAMP, "{}", header, now=TIMESTAMP + 300)
