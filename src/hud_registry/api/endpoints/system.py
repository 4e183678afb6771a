"""Unauthenticated liveness endpoints."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["system"])


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Plain-text liveness check kept at the root for in-world scripts."""
    return "OK"


@router.get("/health", response_class=PlainTextResponse)
async def health_check() -> str:
    """Health check endpoint to verify the service is running."""
    return "OK"
