"""Pydantic schemas for HUD registration and scan traffic."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegisterPayload(BaseModel):
    """Trusted body of a registration request."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    avatar_id: str = Field(..., min_length=1, description="Stable subject identifier.")
    avatar_name: str = Field(default="", description="Display name; empty keeps the stored one.")
    region: str = Field(default="", description="Region or location label reported by the HUD.")
    url: str = Field(default="", description="Callback address the HUD listens on.")
    timestamp: Any = None

    @field_validator("avatar_name", "region", "url", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class HeartbeatPayload(BaseModel):
    """Trusted body of a heartbeat request."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    avatar_id: str = Field(..., min_length=1)
    timestamp: Any = None


class ScanPayload(BaseModel):
    """Trusted body of a bulk lookup request; ``targets`` is normalized later."""

    model_config = ConfigDict(extra="ignore")

    targets: Any = None
    timestamp: Any = None


class ClubCreatePayload(BaseModel):
    """Trusted body of a club creation request."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str = Field(default="", description="Club name; empty becomes \"Club\".")
    tag: str = Field(default="", description="Short club tag; empty becomes \"MC\".")
    founder_id: str = Field(default="", description="Subject that becomes the club's Prez.")
    timestamp: Any = None

    @field_validator("name", "tag", "founder_id", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class MemberSetPayload(BaseModel):
    """Trusted body of a rank assignment request."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    avatar_id: str = Field(..., min_length=1)
    club_id: str = Field(..., min_length=1)
    rank: str = Field(default="", description="Rank within the club; empty becomes \"Member\".")
    timestamp: Any = None

    @field_validator("rank", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class RegisterResponse(BaseModel):
    """Identity echoed back after a successful registration."""

    ok: bool = True
    who: str
    where: str
    rank: str
    at: str = Field(..., description="Server time in ISO-8601.")


class ClubCreateResponse(BaseModel):
    """Identifier of a newly created club."""

    club_id: str


class ScanResult(BaseModel):
    """Outcome for one requested subject id."""

    model_config = ConfigDict(from_attributes=True)

    id: Any
    who: str
    mc: str
    rank: str
    age_days: int


class ScanResponse(BaseModel):
    """Bulk lookup results in request order."""

    ok: bool = True
    results: list[ScanResult]


class InfoResponse(BaseModel):
    """Usage hint for clients that GET a signed endpoint."""

    ok: bool = True
    info: str


class ErrorResponse(BaseModel):
    """Body of every rejected request."""

    ok: bool = False
    error: str
    kind: str
    received: str | None = None
    computed: str | None = None
