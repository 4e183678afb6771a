"""Signature verification over a fixed set of candidate encodings.

Embedded clients build their request bodies by hand, so the bytes they sign
can differ cosmetically from what a JSON encoder would emit. The engine checks
an ordered, closed list of candidate encodings of the same logical payload and
stops at the first one whose signature matches.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Final

from hud_registry.core.errors import MalformedPayload, MissingSignature, SignatureMismatch
from hud_registry.core.security import compute_signature, normalize_signature, signatures_match

logger = logging.getLogger(__name__)

VARIANT_RAW: Final[str] = "raw"
VARIANT_CANONICAL: Final[str] = "canonical"
VARIANT_UNESCAPED_SLASHES: Final[str] = "unescaped_slashes"
VARIANT_LF_ENDINGS: Final[str] = "lf_endings"
VARIANT_NO_TRAILING_NEWLINE: Final[str] = "no_trailing_newline"
VARIANT_TRAILING_NEWLINE: Final[str] = "trailing_newline"

TRANSPORT_HEADER: Final[str] = "header"
TRANSPORT_QUERY: Final[str] = "query"
TRANSPORT_ENVELOPE: Final[str] = "envelope"

_LENIENT_REWRITES: Final[tuple[tuple[str, Callable[[str], str]], ...]] = (
    (VARIANT_UNESCAPED_SLASHES, lambda text: text.replace("\\/", "/")),
    (VARIANT_LF_ENDINGS, lambda text: text.replace("\r\n", "\n")),
    (VARIANT_NO_TRAILING_NEWLINE, lambda text: text.rstrip("\r\n")),
    (VARIANT_TRAILING_NEWLINE, lambda text: text if text.endswith("\n") else text + "\n"),
)

LENIENT_VARIANTS: Final[tuple[str, ...]] = tuple(name for name, _ in _LENIENT_REWRITES)

_UNPARSED: Final[object] = object()


@dataclass(frozen=True)
class Candidate:
    """One byte-exact encoding that a client may have signed."""

    variant: str
    text: str


@dataclass(frozen=True)
class VerifiedPayload:
    """Outcome of a successful verification."""

    payload: dict[str, Any]
    variant: str
    transport: str
    signature: str


def canonical_json(value: Any) -> str:
    """Serialize ``value`` with sorted keys and no insignificant whitespace."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return _UNPARSED


class SignatureEngine:
    """Derive and verify request signatures for a single shared secret."""

    def __init__(
        self,
        secret: str,
        *,
        lenient: bool = True,
        expose_computed: bool = False,
    ) -> None:
        self._secret = secret
        self._lenient = lenient
        self._expose_computed = expose_computed

    def sign(self, text: str) -> str:
        """Return the signature a client would attach to ``text``."""
        return compute_signature(self._secret, text)

    def candidates(self, signed_text: str | None, payload: Any) -> list[Candidate]:
        """Return the ordered, de-duplicated candidate encodings for a payload.

        Args:
            signed_text: Exact text received from the client, when there is one.
            payload: Logical value decoded from the request.
        """
        ordered: list[Candidate] = []
        if signed_text is not None:
            ordered.append(Candidate(VARIANT_RAW, signed_text))
        ordered.append(Candidate(VARIANT_CANONICAL, canonical_json(payload)))
        if self._lenient and signed_text is not None:
            for name, rewrite in _LENIENT_REWRITES:
                ordered.append(Candidate(name, rewrite(signed_text)))

        seen: set[str] = set()
        unique: list[Candidate] = []
        for candidate in ordered:
            if candidate.text in seen:
                continue
            seen.add(candidate.text)
            unique.append(candidate)
        return unique

    def verify(
        self,
        signed_text: str | None,
        payload: Any,
        asserted_sig: str,
    ) -> tuple[Candidate, str] | None:
        """Return the matching candidate and its signature, or None.

        Lenient candidates only match when they decode to the same logical
        value as the received payload.
        """
        received = normalize_signature(asserted_sig)
        if not received:
            return None
        for candidate in self.candidates(signed_text, payload):
            computed = self.sign(candidate.text)
            if not signatures_match(computed, received):
                continue
            if candidate.variant in LENIENT_VARIANTS and _parse_json(candidate.text) != payload:
                logger.warning(
                    "Signature matched %s rewrite that changes the payload; ignoring",
                    candidate.variant,
                )
                continue
            return candidate, computed
        return None

    def verify_request(
        self,
        raw_body: bytes,
        header_sig: str | None = None,
        query_sig: str | None = None,
    ) -> VerifiedPayload:
        """Authenticate a request body against whichever signature transport it used.

        Args:
            raw_body: Exact request body bytes.
            header_sig: Value of the ``X-Sig`` header, if any.
            query_sig: Value of the ``sig`` query parameter, if any.

        Returns:
            The trusted payload together with the variant and transport that matched.

        Raises:
            MissingSignature: No signature was presented.
            MalformedPayload: The body or envelope payload is not a JSON object.
            SignatureMismatch: No candidate encoding matched.
        """
        try:
            body_text = raw_body.decode("utf-8")
        except UnicodeDecodeError as err:
            raise MalformedPayload("Body is not valid UTF-8") from err
        parsed = _parse_json(body_text) if body_text else _UNPARSED

        received = normalize_signature(header_sig)
        transport = TRANSPORT_HEADER
        if not received:
            received = normalize_signature(query_sig)
            transport = TRANSPORT_QUERY

        if received:
            signed_text: str | None = body_text
            payload = parsed
        elif isinstance(parsed, dict) and "payload" in parsed and "sig" in parsed:
            received = normalize_signature(parsed["sig"])
            transport = TRANSPORT_ENVELOPE
            signed_text, payload = self._unwrap_envelope(parsed["payload"])
        else:
            raise MissingSignature()

        if not received:
            raise MissingSignature()
        if not isinstance(payload, dict):
            raise MalformedPayload()

        match = self.verify(signed_text, payload, received)
        if match is None:
            computed = None
            if self._expose_computed:
                computed = self.sign(signed_text if signed_text is not None else canonical_json(payload))
            raise SignatureMismatch(received=received, computed=computed)

        candidate, signature = match
        if candidate.variant != VARIANT_RAW:
            logger.info("Signature accepted via %s encoding (%s)", candidate.variant, transport)
        return VerifiedPayload(
            payload=payload,
            variant=candidate.variant,
            transport=transport,
            signature=signature,
        )

    @staticmethod
    def _unwrap_envelope(inner: Any) -> tuple[str | None, Any]:
        if isinstance(inner, str):
            if not inner:
                raise MalformedPayload()
            return inner, _parse_json(inner)
        if isinstance(inner, dict):
            return None, inner
        raise MalformedPayload()
