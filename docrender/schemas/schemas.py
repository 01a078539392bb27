#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 models for engine output and HTTP request / response bodies.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


RENDER_STATUSES = ("ok", "truncated", "degraded")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Frontmatter
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Frontmatter(BaseModel):
    """Recognised frontmatter fields plus an open bag for everything else.

    A recognised key whose value has the wrong type is not promoted to its
    typed field; it is only kept in ``extra``.
    """

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    description: Optional[str] = None
    order: Optional[Union[int, float]] = None
    draft: Optional[bool] = None
    excerpt: Optional[str] = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Return the mapping as it appeared in the document header."""
        data: dict[str, Any] = dict(self.extra)
        for name in ("title", "description", "order", "draft", "excerpt"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Render output
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TocItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    level: Literal[2, 3]
    children: list[TocItem] = Field(default_factory=list)


# -----------------------------------------------------------------------------

class RenderOutput(BaseModel):
    """Immutable bundle produced per file: markup, outline, metadata and plain text."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    html: str
    toc: list[TocItem] = Field(default_factory=list)
    frontmatter: Frontmatter = Field(default_factory=Frontmatter)
    plain_text: str = Field(default="", alias="plainText")
    title: str
    raw_body: str = Field(default="", alias="rawBody")
    order: Union[int, float]
    excerpt: str = ""
    status: Literal["ok", "truncated", "degraded"] = "ok"
    error: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.status == "truncated"

    @property
    def degraded(self) -> bool:
        return self.status == "degraded"

    def approx_bytes(self) -> int:
        """Rough in-memory footprint of the text fields."""
        return (len(self.html) + len(self.plain_text) + len(self.raw_body)) * 2

    def to_public_dict(self) -> dict[str, Any]:
        """Serialise using the output-contract key names."""
        data = self.model_dump(by_alias=True)
        data["frontmatter"] = self.frontmatter.as_dict()
        return data


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Cache
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CacheStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entries: int
    hits: int
    misses: int
    approx_bytes: int = Field(alias="approxBytes")


# -----------------------------------------------------------------------------

class PrewarmResult(BaseModel):
    cached: int = 0
    errors: int = 0


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HTTP bodies
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderRequest(BaseModel):
    content: str = Field(..., max_length=5_000_000)
    path: str = Field(default="untitled.md", max_length=1024)


# -----------------------------------------------------------------------------

class InvalidateRequest(BaseModel):
    path: Optional[str] = Field(default=None, max_length=1024)


# -----------------------------------------------------------------------------

class OKResponse(BaseModel):
    ok: bool = True
    message: str = "success"
