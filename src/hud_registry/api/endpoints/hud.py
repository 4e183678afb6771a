"""Signed registration and scan endpoints used by in-world HUDs."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from hud_registry.api.dependencies import (
    GateDep,
    RegistryDep,
    SignedRequestDep,
    parse_payload,
)
from hud_registry.db.time import utcnow_iso
from hud_registry.schemas import (
    ErrorResponse,
    InfoResponse,
    RegisterPayload,
    RegisterResponse,
    ScanPayload,
    ScanResponse,
    ScanResult,
)

router = APIRouter(prefix="/api", tags=["hud"])

_REJECTIONS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get("/register")
async def register_info() -> InfoResponse:
    """Explain how to call the registration endpoint."""
    return InfoResponse(info="POST JSON with ?sig= or X-Sig")


@router.post("/register", responses=_REJECTIONS)
async def register(
    signed: SignedRequestDep,
    gate: GateDep,
    registry: RegistryDep,
) -> RegisterResponse:
    """Register or refresh a subject and echo back its identity.

    The body must carry ``avatar_id`` and an integer ``timestamp``; the
    signature travels in ``X-Sig``, ``?sig=`` or a ``{payload, sig}`` envelope.
    """

    def _register(payload: dict[str, Any], now: int) -> RegisterResponse:
        data = parse_payload(RegisterPayload, payload)
        record = registry.upsert(
            data.avatar_id,
            data.avatar_name,
            now,
            callback_url=data.url or None,
        )
        return RegisterResponse(
            who=record.display_name,
            where=data.region,
            rank=record.rank,
            at=utcnow_iso(),
        )

    return gate.dispatch(signed, "register", _register)


@router.post("/scan", responses=_REJECTIONS)
async def scan(
    signed: SignedRequestDep,
    gate: GateDep,
    registry: RegistryDep,
) -> ScanResponse:
    """Look up a batch of subject ids, returning one result per id in order."""

    def _scan(payload: dict[str, Any], now: int) -> ScanResponse:
        data = parse_payload(ScanPayload, payload)
        outcomes = registry.bulk_lookup(data.targets, now)
        return ScanResponse(results=[ScanResult.model_validate(o) for o in outcomes])

    return gate.dispatch(signed, "scan", _scan)
