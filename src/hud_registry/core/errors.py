"""Rejection kinds raised while admitting a signed request.

Every error carries the HTTP status it maps to and a stable ``kind`` string
that clients can switch on. Messages never contain the shared secret.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class GateError(Exception):
    """Base exception for every request rejection."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "ServerError"
    message: str = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.message
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        """Return the JSON body sent back to the client."""
        return {"ok": False, "error": self.message, "kind": self.kind}

    def headers(self) -> dict[str, str] | None:
        """Return extra response headers for this rejection, if any."""
        return None


class MissingSignature(GateError):
    """No signature was supplied by header, query parameter or envelope."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "MissingSignature"
    message = "Missing signature (X-Sig or ?sig=)"


class SignatureMismatch(GateError):
    """None of the candidate encodings produced the asserted signature."""

    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "SignatureMismatch"
    message = "Bad sig"

    def __init__(
        self,
        received: str,
        computed: str | None = None,
        message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.received = received
        self.computed = computed

    def to_body(self) -> dict[str, Any]:
        body = super().to_body()
        body["received"] = self.received
        if self.computed is not None:
            body["computed"] = self.computed
        return body


class MalformedPayload(GateError):
    """Body absent, unparsable, or carrying fields of the wrong type."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "MalformedPayload"
    message = "Bad payload"


class StaleTimestamp(GateError):
    """Timestamp claim missing, non-numeric or outside the replay window."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "StaleTimestamp"
    message = "Stale or invalid timestamp"


class TooManyRequests(GateError):
    """The source exceeded its fixed-window request budget."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    kind = "TooManyRequests"
    message = "Too many requests"

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = max(0, int(retry_after))

    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}


class UpstreamUnavailable(GateError):
    """The backing store failed to complete an operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "UpstreamUnavailable"
    message = "Storage unavailable"


class ServerError(GateError):
    """Unexpected failure inside a business operation."""


class UnknownClub(GateError):
    """A member rank referenced a club that was never created."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "UnknownClub"
    message = "Unknown club"
