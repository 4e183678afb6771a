"""Admission pipeline for signed requests.

Every signed endpoint goes through the same sequence of states::

    RATE_CHECK -> SIG_CHECK -> FRESHNESS_CHECK -> BUSINESS_OP -> RESPONSE

A failing state raises one of the ``GateError`` kinds and short-circuits the
rest. Nothing is retried. The gate keeps no per-request state of its own; the
rate limiters and the registry passed to operations hold all shared state.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from hud_registry.core.errors import GateError, ServerError
from hud_registry.core.settings import Settings
from hud_registry.services.rate_limit import FixedWindowRateLimiter
from hud_registry.services.replay import FreshnessGuard
from hud_registry.services.signing import SignatureEngine, VerifiedPayload

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[dict[str, Any], int], T]


class RequestState(str, Enum):
    """Stages a request passes through inside the gate."""

    RATE_CHECK = "rate_check"
    SIG_CHECK = "sig_check"
    FRESHNESS_CHECK = "freshness_check"
    BUSINESS_OP = "business_op"
    RESPONSE = "response"


@dataclass(frozen=True)
class SignedRequest:
    """Transport-neutral view of an incoming signed request."""

    source: str
    raw_body: bytes
    header_sig: str | None = None
    query_sig: str | None = None
    endpoint: str = ""


class RequestGate:
    """Decide whether a signed request is admitted and run its operation."""

    def __init__(
        self,
        engine: SignatureEngine,
        limiters: Mapping[str, FixedWindowRateLimiter],
        freshness: FreshnessGuard,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.engine = engine
        self.limiters = dict(limiters)
        self.freshness = freshness
        self._clock = clock

    def now(self) -> int:
        """Return the server time in whole seconds."""
        return int(self._clock())

    def admit(self, request: SignedRequest, bucket: str) -> VerifiedPayload:
        """Run the rate, signature and freshness checks for one request.

        Raises:
            GateError: The first check that failed.
        """
        limiter = self.limiters[bucket]
        state = RequestState.RATE_CHECK
        try:
            limiter.admit(request.source, self._clock())

            state = RequestState.SIG_CHECK
            verified = self.engine.verify_request(
                request.raw_body,
                header_sig=request.header_sig,
                query_sig=request.query_sig,
            )

            state = RequestState.FRESHNESS_CHECK
            self.freshness.check(verified.payload, self._clock())
        except GateError as err:
            logger.info(
                "Rejected %s from %s at %s: %s",
                request.endpoint or bucket,
                request.source,
                state.value,
                err.kind,
            )
            raise
        return verified

    def dispatch(self, request: SignedRequest, bucket: str, operation: Operation[T]) -> T:
        """Admit ``request`` and hand its trusted payload to ``operation``.

        Args:
            request: The incoming request.
            bucket: Name of the rate limiter that governs this endpoint.
            operation: Business operation called with the payload and server time.

        Returns:
            Whatever the operation returned.

        Raises:
            GateError: A check failed, the operation raised a rejection, or the
                operation failed unexpectedly (as ``ServerError``).
        """
        verified = self.admit(request, bucket)
        try:
            return operation(verified.payload, self.now())
        except GateError as err:
            logger.warning(
                "%s failed during %s: %s",
                request.endpoint or bucket,
                RequestState.BUSINESS_OP.value,
                err.kind,
            )
            raise
        except Exception as err:
            logger.exception("Unexpected error handling %s", request.endpoint or bucket)
            raise ServerError() from err


def build_gate(config: Settings, clock: Callable[[], float] = time.time) -> RequestGate:
    """Assemble a gate from application settings."""
    engine = SignatureEngine(
        config.shared_secret,
        lenient=config.sig_lenient_variants,
        expose_computed=config.sig_debug,
    )
    limiters = {
        name: FixedWindowRateLimiter(
            limit,
            window_seconds=config.rate_window_seconds,
            max_buckets=config.rate_max_buckets,
            sweep_interval=config.rate_sweep_interval_seconds,
            name=name,
        )
        for name, limit in config.rate_limits.items()
    }
    return RequestGate(engine, limiters, FreshnessGuard(config.ts_drift_sec), clock=clock)
