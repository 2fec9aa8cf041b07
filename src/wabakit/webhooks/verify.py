"""Webhook signature verification (HMAC-SHA256).

Meta signs each webhook delivery with the app secret and sends the result
in the X-Hub-Signature-256 header as ``sha256=<hex_digest>``. The digest
is computed over the raw request body: re-serialized JSON may differ in
whitespace and will not verify.
"""

import hashlib
import hmac

from wabakit.errors import ConfigurationError

SIGNATURE_HEADER = "X-Hub-Signature-256"
SIGNATURE_PREFIX = "sha256="


def _compute_digest(raw_body: bytes | str, secret: str) -> str:
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    return hmac.new(
        key=secret.encode("utf-8"),
        msg=raw_body,
        digestmod=hashlib.sha256,
    ).hexdigest()


def verify_signature(
    signature_header: str | None, raw_body: bytes | str, secret: str | None
) -> bool:
    """Verify a webhook signature in constant time.

    Args:
        signature_header: X-Hub-Signature-256 header value. The ``sha256=``
            prefix is optional.
        raw_body: Raw request body bytes, before any JSON parsing.
        secret: Meta App Secret.

    Returns:
        True if the signature matches, False otherwise. A wrong secret and
        a tampered body are indistinguishable.

    Raises:
        ConfigurationError: If secret is missing or empty.
    """
    if not secret:
        raise ConfigurationError("app secret is required for webhook verification")

    if not signature_header:
        return False

    received = signature_header
    if received.startswith(SIGNATURE_PREFIX):
        received = received[len(SIGNATURE_PREFIX):]

    expected = _compute_digest(raw_body, secret).encode("ascii")
    received_bytes = received.encode("utf-8")

    if len(received_bytes) != len(expected):
        return False

    return hmac.compare_digest(received_bytes, expected)


def sign_payload(raw_body: bytes | str, secret: str) -> str:
    """Build the X-Hub-Signature-256 header value for a body."""
    if not secret:
        raise ConfigurationError("app secret is required to sign payloads")
    return f"{SIGNATURE_PREFIX}{_compute_digest(raw_body, secret)}"
