"""Shared API dependencies for signed requests and registry access."""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache
from typing import Annotated, Any, TypeVar

from fastapi import Depends, Request
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from hud_registry.core.errors import MalformedPayload
from hud_registry.core.settings import settings
from hud_registry.db.session import get_db
from hud_registry.repositories.club_repo import SqlRoster
from hud_registry.repositories.hud_repo import SqlRegistryStore
from hud_registry.services.gate import RequestGate, SignedRequest, build_gate
from hud_registry.services.membership import InMemoryRoster, Roster, RosterClassification
from hud_registry.services.registry import (
    ClassificationPolicy,
    InMemoryRegistry,
    RegistryStore,
    StaticClassification,
)

ModelT = TypeVar("ModelT", bound=BaseModel)

SIGNATURE_HEADER = "X-Sig"
SIGNATURE_QUERY_PARAM = "sig"
UNKNOWN_SOURCE = "unknown"

def get_backend_session() -> Generator[Session | None, None, None]:
    """Yield a database session only when the SQL backend is selected."""
    if settings.registry_backend != "sql":
        yield None
        return
    yield from get_db()


BackendSessionDep = Annotated[Session | None, Depends(get_backend_session)]


def client_source(request: Request) -> str:
    """Return the rate-limit key for a request.

    Uses the first hop of ``X-Forwarded-For`` when present, otherwise the peer
    address. This is best-effort: the header is client controlled.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_SOURCE


async def get_signed_request(request: Request) -> SignedRequest:
    """Capture the exact body bytes and out-of-band signature of a request."""
    return SignedRequest(
        source=client_source(request),
        raw_body=await request.body(),
        header_sig=request.headers.get(SIGNATURE_HEADER),
        query_sig=request.query_params.get(SIGNATURE_QUERY_PARAM),
        endpoint=request.url.path,
    )


@lru_cache
def get_gate() -> RequestGate:
    """Return the process-wide request gate."""
    return build_gate(settings)


@lru_cache
def get_default_classification() -> ClassificationPolicy:
    """Return the classification given to subjects outside any club."""
    return StaticClassification(settings.default_affiliation, settings.default_rank)


@lru_cache
def get_memory_roster() -> InMemoryRoster:
    """Return the process-wide in-memory roster."""
    return InMemoryRoster()


@lru_cache
def get_memory_registry() -> InMemoryRegistry:
    """Return the process-wide in-memory registry."""
    return InMemoryRegistry(
        RosterClassification(get_memory_roster(), get_default_classification()),
        scan_limit=settings.scan_max_targets,
    )


def get_roster(db: BackendSessionDep) -> Roster:
    """Return the roster backend selected by ``REGISTRY_BACKEND``."""
    if db is not None:
        return SqlRoster(db)
    return get_memory_roster()


RosterDep = Annotated[Roster, Depends(get_roster)]


def get_registry(db: BackendSessionDep, roster: RosterDep) -> RegistryStore:
    """Return the registry backend selected by ``REGISTRY_BACKEND``."""
    if db is not None:
        classification = RosterClassification(roster, get_default_classification())
        return SqlRegistryStore(db, classification, scan_limit=settings.scan_max_targets)
    return get_memory_registry()


def parse_payload(model: type[ModelT], payload: dict[str, Any]) -> ModelT:
    """Validate a trusted payload, mapping failures to MalformedPayload."""
    try:
        return model.model_validate(payload)
    except ValidationError as err:
        fields = ", ".join(str(error["loc"][0]) for error in err.errors() if error.get("loc"))
        raise MalformedPayload(f"Bad payload: {fields}" if fields else None) from err


SignedRequestDep = Annotated[SignedRequest, Depends(get_signed_request)]
GateDep = Annotated[RequestGate, Depends(get_gate)]
RegistryDep = Annotated[RegistryStore, Depends(get_registry)]
