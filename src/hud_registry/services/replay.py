"""Replay protection based on a bounded timestamp window.

The window is the only replay defense: a captured request stays valid for at
most ``tolerance`` seconds either side of the server clock. Replays inside the
window are not detected.
"""

from __future__ import annotations

import math
import re
from typing import Any, Final

from hud_registry.core.errors import StaleTimestamp

DEFAULT_TOLERANCE_SECONDS: Final[int] = 60
TIMESTAMP_FIELD: Final[str] = "timestamp"

_INTEGER_TEXT = re.compile(r"^[+-]?\d+$")


def parse_timestamp_claim(claim: Any) -> int | None:
    """Return the claim as whole seconds, or None when it is not an integer.

    Integers, finite integral floats and decimal integer strings are accepted.
    Booleans are rejected even though they subclass ``int``.
    """
    if isinstance(claim, bool):
        return None
    if isinstance(claim, int):
        return claim
    if isinstance(claim, float):
        if math.isfinite(claim) and claim.is_integer():
            return int(claim)
        return None
    if isinstance(claim, str):
        text = claim.strip()
        if _INTEGER_TEXT.match(text):
            return int(text)
    return None


def is_fresh(claim: Any, now: float, tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS) -> bool:
    """Return True if ``|now - claim| <= tolerance_seconds``."""
    seconds = parse_timestamp_claim(claim)
    if seconds is None:
        return False
    return abs(int(now) - seconds) <= tolerance_seconds


class FreshnessGuard:
    """Reject payloads whose timestamp claim falls outside the replay window."""

    def __init__(self, tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS) -> None:
        self.tolerance_seconds = int(tolerance_seconds)

    def check(self, payload: dict[str, Any], now: float) -> int:
        """Return the validated claim or raise StaleTimestamp."""
        claim = payload.get(TIMESTAMP_FIELD)
        if not is_fresh(claim, now, self.tolerance_seconds):
            raise StaleTimestamp()
        return parse_timestamp_claim(claim)  # type: ignore[return-value]
