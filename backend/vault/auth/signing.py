"""HMAC-SHA256 signed cookie values.

Session ids and OAuth state nonces travel to the browser as
``value.base64url(hmac_sha256(value))``. A value whose signature does not
verify is treated as absent, so a forged or truncated cookie never reaches
the session store.
"""

import base64
import binascii
import hashlib
import hmac

import structlog

logger = structlog.get_logger()

_SEPARATOR = "."


def _signature(value: str, secret: str) -> bytes:
    return hmac.new(secret.encode(), value.encode(), hashlib.sha256).digest()


def sign_value(value: str, secret: str) -> str:
    """Return ``value.signature`` for embedding in a cookie."""
    if _SEPARATOR in value:
        raise ValueError("Signed values must not contain '.'")
    sig_b64 = base64.urlsafe_b64encode(_signature(value, secret)).decode().rstrip("=")
    return f"{value}{_SEPARATOR}{sig_b64}"


def unsign_value(signed: str | None, secret: str) -> str | None:
    """Verify a signed cookie value. Returns the inner value or None on any failure."""
    if not signed:
        return None
    value, sep, sig_b64 = signed.rpartition(_SEPARATOR)
    if not sep or not value or not sig_b64:
        return None

    padding = "=" * (-len(sig_b64) % 4)
    try:
        provided = base64.urlsafe_b64decode(sig_b64 + padding)
    except (ValueError, binascii.Error):
        return None

    if not hmac.compare_digest(provided, _signature(value, secret)):
        logger.debug("cookie signature mismatch")
        return None
    return value
