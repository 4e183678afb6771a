"""Registration, heartbeat and listing endpoints of the persisted HUD API."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Header, Query, Request, status
from fastapi.responses import PlainTextResponse

from hud_registry.api.dependencies import (
    GateDep,
    RegistryDep,
    SignedRequestDep,
    client_source,
    parse_payload,
)
from hud_registry.core.security import secrets_match
from hud_registry.core.settings import settings
from hud_registry.schemas import HeartbeatPayload, RegisterPayload

router = APIRouter(prefix="/v1/hud", tags=["hud", "persisted"])


@router.post("/register", response_class=PlainTextResponse)
async def register_hud(
    signed: SignedRequestDep,
    gate: GateDep,
    registry: RegistryDep,
) -> str:
    """Store a HUD's identity and callback address."""

    def _register(payload: dict[str, Any], now: int) -> str:
        data = parse_payload(RegisterPayload, payload)
        registry.upsert(data.avatar_id, data.avatar_name, now, callback_url=data.url or None)
        return "OK"

    return gate.dispatch(signed, "register", _register)


@router.post("/heartbeat", response_class=PlainTextResponse)
async def heartbeat(
    signed: SignedRequestDep,
    gate: GateDep,
    registry: RegistryDep,
) -> str:
    """Refresh last_seen for a HUD that registered earlier."""

    def _heartbeat(payload: dict[str, Any], now: int) -> str:
        data = parse_payload(HeartbeatPayload, payload)
        registry.touch(data.avatar_id, now)
        return "OK"

    return gate.dispatch(signed, "register", _heartbeat)


@router.get("/endpoints", response_class=PlainTextResponse)
async def list_endpoints(
    request: Request,
    gate: GateDep,
    registry: RegistryDep,
    x_auth: Annotated[str | None, Header()] = None,
    auth: Annotated[str | None, Query()] = None,
) -> PlainTextResponse:
    """List ``subject_id,url`` lines for every HUD with a callback address.

    Guarded by the static shared secret in ``X-Auth`` or ``?auth=``.
    """
    gate.limiters["register"].admit(client_source(request), gate.now())
    if not secrets_match(settings.shared_secret, x_auth or auth):
        return PlainTextResponse("No", status_code=status.HTTP_401_UNAUTHORIZED)
    lines = [f"{subject_id},{url}" for subject_id, url in registry.list_endpoints()]
    return PlainTextResponse("\n".join(lines))
