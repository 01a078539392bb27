from docrender.schemas.schemas import (
    Frontmatter,
    TocItem,
    RenderOutput,
    CacheStats, PrewarmResult,
    RenderRequest, InvalidateRequest, OKResponse,
    RENDER_STATUSES,
)

__all__ = [
    "Frontmatter",
    "TocItem",
    "RenderOutput",
    "CacheStats", "PrewarmResult",
    "RenderRequest", "InvalidateRequest", "OKResponse",
    "RENDER_STATUSES",
]
