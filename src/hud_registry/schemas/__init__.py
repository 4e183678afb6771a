# src/hud_registry/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .hud import (
    ClubCreatePayload,
    ClubCreateResponse,
    ErrorResponse,
    HeartbeatPayload,
    InfoResponse,
    MemberSetPayload,
    RegisterPayload,
    RegisterResponse,
    ScanPayload,
    ScanResponse,
    ScanResult,
)

__all__ = [
    "ClubCreatePayload", "ClubCreateResponse",
    "ErrorResponse",
    "HeartbeatPayload",
    "InfoResponse",
    "MemberSetPayload",
    "RegisterPayload", "RegisterResponse",
    "ScanPayload", "ScanResponse", "ScanResult",
]
