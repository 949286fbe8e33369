"""
Webhook payload signing.

Signature scheme:
    signature = HMAC-SHA256(secret, "{timestamp}.{body}") as hex
    header    = "sha256=" + signature

Receivers recompute the HMAC over the X-Webhook-Timestamp header and
the raw body, compare in constant time and reject stale timestamps.

Usage:
    from webhooks.signing import serialize_payload, sign_payload

    body = serialize_payload(payload)
    signature = sign_payload(secret, timestamp, body)
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time

from django.core.serializers.json import DjangoJSONEncoder

SIGNATURE_PREFIX = "sha256="

# Receivers should reject timestamps further than this from their clock
DEFAULT_TOLERANCE_SECONDS = 300


def serialize_payload(payload: dict) -> str:
    """Serialize a payload exactly as it is sent and signed."""
    return json.dumps(payload, cls=DjangoJSONEncoder, separators=(",", ":"))


def sign_payload(secret: str, timestamp: int, body: str) -> str:
    """
    Compute the hex HMAC-SHA256 signature of a webhook body.

    Args:
        secret: Merchant webhook secret
        timestamp: Unix seconds, also sent as X-Webhook-Timestamp
        body: Serialized JSON body

    Returns:
        Hex digest (without the "sha256=" prefix)
    """
    message = f"{timestamp}.{body}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signature_header(secret: str, timestamp: int, body: str) -> str:
    return f"{SIGNATURE_PREFIX}{sign_payload(secret, timestamp, body)}"


def verify_signature(
    secret: str,
    timestamp: int,
    body: str,
    signature: str,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    now: float | None = None,
) -> bool:
    """
    Check a received signature and timestamp.

    Accepts the signature with or without the "sha256=" prefix.

    Returns:
        True if the signature matches and the timestamp is within tolerance
    """
    current = time.time() if now is None else now
    if abs(current - int(timestamp)) > tolerance_seconds:
        return False

    if signature.startswith(SIGNATURE_PREFIX):
        signature = signature[len(SIGNATURE_PREFIX):]
    expected = sign_payload(secret, timestamp, body)
    return hmac.compare_digest(expected, signature)
