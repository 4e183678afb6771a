# src/hud_registry/main.py
"""Main entry point for the HUD registry application."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hud_registry.api import club_v1_router, hud_router, hud_v1_router, system_router
from hud_registry.core.errors import GateError, ServerError
from hud_registry.core.settings import settings
from hud_registry.db.session import create_tables

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="HUD Registry API",
    description="Signed registration and lookup service for scripted HUDs",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# No GZip middleware: some viewer HTTP stacks cannot decode compressed bodies.


@app.middleware("http")
async def identity_encoding(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Log the request line and force uncompressed, uncached responses."""
    logger.info("%s %s", request.method, request.url.path)
    response = await call_next(request)
    response.headers["Content-Encoding"] = "identity"
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(GateError)
async def gate_error_handler(_request: Request, exc: GateError) -> JSONResponse:
    """Render a rejection as ``{"ok": false, "error": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_body(),
        headers=exc.headers(),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert anything unexpected into a generic server error."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    error = ServerError()
    return JSONResponse(status_code=error.status_code, content=error.to_body())


# Include API routers
app.include_router(system_router)
app.include_router(hud_router)
app.include_router(hud_v1_router)
app.include_router(club_v1_router)


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.on_event("startup")
async def on_startup() -> None:
    _configure_logging()
    if settings.registry_backend == "sql":
        create_tables()
    logger.info(
        "HUD registry ready (backend=%s, drift=%ss, rate=%s/%s per %ss)",
        settings.registry_backend,
        settings.ts_drift_sec,
        settings.rate_per_min,
        settings.scan_rate_per_min,
        settings.rate_window_seconds,
    )
    if settings.uses_default_secret:
        logger.warning("SHARED_SECRET is using the default value; change it in production")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hud_registry.main:app", host="0.0.0.0", port=3000, reload=settings.debug)
