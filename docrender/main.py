#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
docrender - FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from docrender.core.config import get_settings
from docrender.routes import content
from docrender.services.cache import ContentCache
from docrender.services.renderer import RENDERER_VERSION

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings = get_settings()
    if settings.prewarm_paths:
        root = settings.content_dir_resolved
        paths = [p if p.is_absolute() else root / p for p in settings.prewarm_paths]
        await run_in_threadpool(app.state.content_cache.prewarm, paths)
    yield


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Markdown document rendering engine with an mtime-keyed content cache.",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    app.state.content_cache = ContentCache(settings)

    # ── API routers ───────────────────────────────────────────────────────

    prefix = "/api/v1"

    app.include_router(content.router, prefix=prefix)

    # ── Global exception handlers ─────────────────────────────────────────

    @app.exception_handler(500)
    async def server_error(request: Request, exc):
        log.error("Unhandled error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health():
        return {
            "status": "ok",
            "version": settings.app_version,
            "app": settings.app_name,
            "renderer": RENDERER_VERSION,
        }

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------
