#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Content router
==============
POST   /api/v1/render                 - render a snippet (live preview, uncached)
GET    /api/v1/content?path=REL       - render a file under content_dir, through the cache
GET    /api/v1/cache/stats            - cache counters
POST   /api/v1/cache/invalidate       - drop one entry, or everything when no path is given
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Query, Request
from starlette.concurrency import run_in_threadpool

from docrender.core.config import get_settings
from docrender.core.exceptions import SourceUnavailableError
from docrender.schemas import CacheStats, InvalidateRequest, OKResponse, RenderRequest
from docrender.services.cache import ContentCache
from docrender.services.pipeline import render_document


# -----------------------------------------------------------------------------

router = APIRouter(tags=["content"])


# -----------------------------------------------------------------------------

def _cache(request: Request) -> ContentCache:
    return request.app.state.content_cache


def _content_path(rel: str) -> Path:
    """Resolve *rel* under content_dir; 403 when it points outside."""
    root = get_settings().content_dir_resolved
    target = (root / rel.lstrip("/")).resolve()
    if target != root and root not in target.parents:
        raise HTTPException(status_code=403, detail="Path outside content directory")
    return target


# ── Render ───────────────────────────────────────────────────────────────────

@router.post("/render")
async def render_preview(data: RenderRequest):
    """Render markdown sent by the editor.  Never cached."""
    output = await run_in_threadpool(render_document, data.content, data.path)
    return output.to_public_dict()


# ── Content ──────────────────────────────────────────────────────────────────

@router.get("/content")
async def get_content(
    request: Request,
    path: str = Query(..., min_length=1, max_length=1024),
):
    target = _content_path(path)
    try:
        output = await run_in_threadpool(_cache(request).get, target)
    except SourceUnavailableError:
        raise HTTPException(status_code=404, detail="Content not found")
    return output.to_public_dict()


# ── Cache ────────────────────────────────────────────────────────────────────

@router.get("/cache/stats", response_model=CacheStats)
async def cache_stats(request: Request):
    return _cache(request).stats()


@router.post("/cache/invalidate", response_model=OKResponse)
async def cache_invalidate(request: Request, data: InvalidateRequest):
    cache = _cache(request)
    if data.path is None:
        cleared = cache.invalidate_all()
        return OKResponse(message=f"{cleared} entries cleared")
    removed = cache.invalidate(_content_path(data.path))
    return OKResponse(message="entry cleared" if removed else "no entry")


# -----------------------------------------------------------------------------
