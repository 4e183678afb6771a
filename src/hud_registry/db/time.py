# src/hud_registry/db/time.py
"""Time utilities shared by handlers and stores."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def utcnow_iso() -> str:
    """Return the current UTC time as ISO-8601 with millisecond precision."""
    return utcnow().isoformat(timespec="milliseconds").replace("+00:00", "Z")
