"""Club creation and member rank endpoints of the persisted HUD API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from hud_registry.api.dependencies import (
    GateDep,
    RosterDep,
    SignedRequestDep,
    parse_payload,
)
from hud_registry.schemas import (
    ClubCreatePayload,
    ClubCreateResponse,
    ErrorResponse,
    MemberSetPayload,
)

router = APIRouter(prefix="/v1", tags=["clubs", "persisted"])


@router.post("/club/create")
async def create_club(
    signed: SignedRequestDep,
    gate: GateDep,
    roster: RosterDep,
) -> ClubCreateResponse:
    """Create a club and make its founder the ``Prez``."""

    def _create(payload: dict[str, Any], now: int) -> ClubCreateResponse:
        data = parse_payload(ClubCreatePayload, payload)
        club = roster.create_club(data.name, data.tag, data.founder_id, now)
        return ClubCreateResponse(club_id=club.club_id)

    return gate.dispatch(signed, "register", _create)


@router.post(
    "/member/set",
    response_class=PlainTextResponse,
    responses={404: {"model": ErrorResponse}},
)
async def set_member(
    signed: SignedRequestDep,
    gate: GateDep,
    roster: RosterDep,
) -> str:
    """Assign a subject's club and rank; scans and registrations report it."""

    def _set(payload: dict[str, Any], now: int) -> str:
        data = parse_payload(MemberSetPayload, payload)
        roster.set_member(data.avatar_id, data.club_id, data.rank)
        return "OK"

    return gate.dispatch(signed, "register", _set)
