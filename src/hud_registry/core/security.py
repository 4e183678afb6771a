"""Short shared-secret signatures sized for embedded script clients."""
from __future__ import annotations

import hashlib
import hmac

SIGNATURE_SEPARATOR = "|"
SIGNATURE_LENGTH = 8


def _utf8(text: str) -> bytes:
    # JSON may decode "\ud800" escapes into lone surrogates; keep them hashable.
    return text.encode("utf-8", "surrogatepass")


def compute_signature(secret: str, candidate: str) -> str:
    """Return the 8-character lowercase hex signature of ``candidate``.

    Args:
        secret: Shared secret known to the server and its clients.
        candidate: Exact text that was signed on the client.

    Returns:
        The first eight hex digits of SHA-1 over ``secret|candidate``.
    """
    data = _utf8(f"{secret}{SIGNATURE_SEPARATOR}{candidate}")
    return hashlib.sha1(data).hexdigest()[:SIGNATURE_LENGTH]


def normalize_signature(value: object) -> str:
    """Trim and lower-case a client supplied signature."""
    if value is None:
        return ""
    return str(value).strip().lower()


def signatures_match(expected: str, received: str) -> bool:
    """Compare two signatures in constant time."""
    return hmac.compare_digest(_utf8(expected), _utf8(received))


def secrets_match(expected: str, received: str | None) -> bool:
    """Return True when a static shared-secret credential matches."""
    if not received:
        return False
    return hmac.compare_digest(_utf8(expected), _utf8(received))
