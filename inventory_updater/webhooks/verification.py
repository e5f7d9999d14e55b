"""Webhook signature verification — constant-time HMAC.

Security contract:
- Shopify signs the raw body: base64(HMAC-SHA256(secret, body))
- Comparison uses hmac.compare_digest() (constant-time, no timing attacks)
- Verification failure -> 401 immediately, no payload processing
- Empty secret -> verification always fails (fail-closed)
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

SHOPIFY_SIGNATURE_HEADER = "x-shopify-hmac-sha256"


def compute_shopify_signature(body: bytes, secret: str) -> str:
    """Return the base64 HMAC-SHA256 digest Shopify would send for body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_shopify(body: bytes, signature_header: str | None, secret: str) -> bool:
    """Verify a Shopify webhook HMAC-SHA256 signature.

    Args:
        body: Raw request body bytes, exactly as received
        signature_header: Value of the X-Shopify-Hmac-Sha256 header
        secret: Shared webhook secret

    Returns:
        True if signature is valid
    """
    if not secret:
        logger.warning("SHOPIFY_WEBHOOK_SECRET not set — rejecting webhook")
        return False
    if not signature_header:
        return False

    computed = compute_shopify_signature(body, secret)
    # compare_digest only accepts ASCII str, header values may be any latin-1
    return hmac.compare_digest(
        computed.encode("utf-8"), signature_header.encode("utf-8", "surrogateescape")
    )


def verify_webhook(body: bytes, headers: dict[str, str], secret: str) -> bool:
    """Verify a webhook using its request headers (lowercase keys)."""
    return verify_shopify(body, headers.get(SHOPIFY_SIGNATURE_HEADER), secret)
