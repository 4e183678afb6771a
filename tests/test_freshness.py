"""Tests for the timestamp replay window."""

from __future__ import annotations

import math

import pytest

from hud_registry.core.errors import StaleTimestamp
from hud_registry.services.replay import FreshnessGuard, is_fresh, parse_timestamp_claim

NOW = 1_700_000_000
TOLERANCE = 60


def test_claim_equal_to_now_is_fresh() -> None:
    assert is_fresh(NOW, NOW, TOLERANCE)


@pytest.mark.parametrize("offset", [-TOLERANCE, TOLERANCE])
def test_window_boundary_is_inclusive(offset: int) -> None:
    assert is_fresh(NOW + offset, NOW, TOLERANCE)


@pytest.mark.parametrize("offset", [-(TOLERANCE + 1), TOLERANCE + 1, -120])
def test_claims_outside_window_are_stale(offset: int) -> None:
    assert not is_fresh(NOW + offset, NOW, TOLERANCE)


def test_fractional_server_time_is_truncated() -> None:
    assert is_fresh(NOW - TOLERANCE, NOW + 0.9, TOLERANCE)


@pytest.mark.parametrize(
    ("claim", "expected"),
    [
        (NOW, NOW),
        (float(NOW), NOW),
        (str(NOW), NOW),
        (f" {NOW} ", NOW),
        ("-5", -5),
        (1.5, None),
        (math.nan, None),
        (math.inf, None),
        (True, None),
        (None, None),
        ("soon", None),
        ("1e9", None),
        ([NOW], None),
    ],
)
def test_parse_timestamp_claim(claim: object, expected: int | None) -> None:
    assert parse_timestamp_claim(claim) == expected


@pytest.mark.parametrize("claim", [None, "abc", 1.5, False])
def test_non_integer_claims_are_stale(claim: object) -> None:
    assert not is_fresh(claim, NOW, TOLERANCE)


def test_guard_returns_claim_or_raises() -> None:
    guard = FreshnessGuard(TOLERANCE)
    assert guard.check({"timestamp": NOW - 10}, NOW) == NOW - 10
    with pytest.raises(StaleTimestamp):
        guard.check({"timestamp": NOW - 120}, NOW)
    with pytest.raises(StaleTimestamp):
        guard.check({}, NOW)


def test_zero_tolerance_accepts_only_exact_time() -> None:
    guard = FreshnessGuard(0)
    assert guard.check({"timestamp": NOW}, NOW) == NOW
    with pytest.raises(StaleTimestamp):
        guard.check({"timestamp": NOW + 1}, NOW)
