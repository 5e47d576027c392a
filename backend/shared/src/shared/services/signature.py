"""Stripe webhook signature verification.

Stripe signs each delivery with HMAC-SHA256 over "{t}.{raw body}" using the
endpoint's signing secret, and sends the result in the Stripe-Signature
header:

    Stripe-Signature: t=1704067200,v1=5257a869e7ecebeda32affa62cdca3fa51cad7e77a0e56ff536d0ce8e108d8bd

Verification must run on the body exactly as received. Re-serializing the
parsed JSON changes the bytes and invalidates the signature.
"""

import hashlib
import hmac
import logging

logger = logging.getLogger(__name__)

TIMESTAMP_KEY = "t"
SIGNATURE_SCHEME = "v1"


class SignatureHeaderError(ValueError):
    """Raised when a Stripe-Signature header is not a list of key=value pairs."""

    pass


def parse_signature_header(header: str) -> dict[str, str]:
    """Parse a Stripe-Signature header into a key/value mapping.

    Elements are separated by commas and split on the first "=". When a key
    repeats, the last value wins. Keys other than t and v1 (e.g. v0) are kept
    but never consulted.

    Args:
        header: Raw Stripe-Signature header value

    Returns:
        Mapping of header keys to values.

    Raises:
        SignatureHeaderError: If any element lacks an "=".
    """
    elements: dict[str, str] = {}
    for element in header.split(","):
        key, sep, value = element.partition("=")
        if not sep:
            raise SignatureHeaderError(f"Malformed signature element: {element!r}")
        elements[key] = value
    return elements


def compute_signature(timestamp: str, raw_body: str, secret: str) -> str:
    """Compute the lowercase hex v1 signature for a payload.

    Args:
        timestamp: Value of the t element, used verbatim
        raw_body: Request body exactly as received
        secret: Endpoint signing secret (whsec_...)

    Returns:
        Hex-encoded HMAC-SHA256 of "{timestamp}.{raw_body}".
    """
    signed_payload = f"{timestamp}.{raw_body}"
    return hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_stripe_signature(raw_body: str, signature_header: str, secret: str) -> bool:
    """Check that a webhook body was signed by Stripe with our secret.

    Never raises: a malformed header, a missing t or v1, a failure while
    computing the HMAC and a mismatch all yield False.

    Args:
        raw_body: Request body exactly as received
        signature_header: Stripe-Signature header value
        secret: Endpoint signing secret

    Returns:
        True only if the v1 signature matches the expected digest.
    """
    try:
        elements = parse_signature_header(signature_header)
    except SignatureHeaderError as e:
        logger.warning("Rejecting webhook: %s", e)
        return False

    timestamp = elements.get(TIMESTAMP_KEY)
    expected = elements.get(SIGNATURE_SCHEME)
    if not timestamp or not expected:
        logger.warning("Rejecting webhook: signature header missing t or v1")
        return False

    try:
        computed = compute_signature(timestamp, raw_body, secret)
        # compare_digest on str only accepts ASCII, so encode both sides.
        return hmac.compare_digest(
            computed.encode("utf-8"), expected.encode("utf-8")
        )
    except (TypeError, ValueError, UnicodeError) as e:
        logger.warning("Signature computation failed: %s", e)
        return False
