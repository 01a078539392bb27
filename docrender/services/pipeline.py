#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Render pipeline
===============
``render_document()`` turns one source text into a ``RenderOutput``:

    split frontmatter -> preprocess directives -> parse -> transforms
    -> HTML, plus the plain-text mirror and resolved metadata.

It is a total function.  Oversized sources short-circuit to a truncated
preview before any parsing; any exception raised by a stage is logged and
turned into a degraded output that still carries the raw source.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html
import logging
from typing import Optional, Union

from docrender.core.config import Settings, get_settings
from docrender.schemas import Frontmatter, RenderOutput
from .directives import preprocess
from .frontmatter import split_frontmatter
from .metadata import DEFAULT_TITLE, resolve_excerpt, resolve_order, resolve_title
from .plaintext import markdown_to_plain_text
from .renderer import render_html
from .transforms import run_transforms
from .tree import parse

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

def _source_bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogatepass")


def _safe_meta(text: str, path: str, settings: Settings) -> tuple[Frontmatter, str, str, Union[int, float]]:
    """Frontmatter, body, title and order without touching the parser."""
    try:
        frontmatter, body = split_frontmatter(text, path)
    except Exception:
        log.warning("Frontmatter fallback failed for %s", path or "<string>", exc_info=True)
        frontmatter, body = Frontmatter(), text
    try:
        title = resolve_title(frontmatter, body, path)
        order = resolve_order(frontmatter, path, settings.default_order)
    except Exception:
        log.warning("Metadata fallback failed for %s", path or "<string>", exc_info=True)
        title, order = DEFAULT_TITLE, settings.default_order
    return frontmatter, body, title, order


# -----------------------------------------------------------------------------
# Size guard
# -----------------------------------------------------------------------------

def _truncated_output(text: str, path: str, size: int, settings: Settings) -> RenderOutput:
    frontmatter, body, title, order = _safe_meta(text, path, settings)
    limit = settings.max_source_bytes
    plain = _source_bytes(text)[:limit].decode("utf-8", "ignore")
    preview = text[:settings.preview_chars]
    notice = (
        '<div class="render-notice render-notice-truncated" role="alert">'
        f"<p>This document is too large to render ({size:,} bytes; "
        f"the limit is {limit:,} bytes). A raw preview follows.</p>"
        "</div>\n"
        f'<pre class="raw-source">{html.escape(preview)}</pre>'
    )
    log.warning("Source %s is %d bytes, over the %d byte limit; not parsed", path or "<string>", size, limit)
    return RenderOutput(
        html=notice,
        toc=[],
        frontmatter=frontmatter,
        plain_text=plain,
        title=title,
        raw_body=text,
        order=order,
        excerpt=frontmatter.excerpt or frontmatter.description or "",
        status="truncated",
    )


# -----------------------------------------------------------------------------
# Failure boundary
# -----------------------------------------------------------------------------

def _degraded_output(text: str, path: str, exc: Exception, settings: Settings) -> RenderOutput:
    frontmatter, body, title, order = _safe_meta(text, path, settings)
    if settings.is_development:
        detail = f"{type(exc).__name__}: {exc}"
        message = f"This document could not be rendered. {detail}"
    else:
        detail = "render failed"
        message = "This document could not be rendered."
    notice = (
        '<div class="render-notice render-notice-error" role="alert">'
        f"<p>{html.escape(message)}</p>"
        "</div>\n"
        f'<pre class="raw-source">{html.escape(text)}</pre>'
    )
    try:
        plain = markdown_to_plain_text(body)
    except Exception:
        plain = text
    return RenderOutput(
        html=notice,
        toc=[],
        frontmatter=frontmatter,
        plain_text=plain,
        title=title,
        raw_body=text,
        order=order,
        excerpt=frontmatter.excerpt or frontmatter.description or "",
        status="degraded",
        error=detail,
    )


# -----------------------------------------------------------------------------

def _render(text: str, path: str, settings: Settings) -> RenderOutput:
    frontmatter, body = split_frontmatter(text, path)
    # NUL is not valid in HTML output
    prepared = preprocess(body.replace("\x00", "\ufffd"))
    doc = parse(prepared.text, prepared.table)
    toc = run_transforms(
        doc,
        asset_base_url=settings.asset_base_url,
        image_widths=settings.image_widths,
        image_modern_format=settings.image_modern_format,
        highlight_css_class=settings.highlight_css_class,
    )
    markup = render_html(doc)
    plain = markdown_to_plain_text(body)
    return RenderOutput(
        html=markup,
        toc=toc,
        frontmatter=frontmatter,
        plain_text=plain,
        title=resolve_title(frontmatter, body, path),
        raw_body=text,
        order=resolve_order(frontmatter, path, settings.default_order),
        excerpt=resolve_excerpt(frontmatter, plain, settings.excerpt_length),
    )


def render_document(text: str, path: str = "", settings: Optional[Settings] = None) -> RenderOutput:
    """Render *text* (the full file, frontmatter included).  Never raises.

    *path* is only used for filename-derived metadata and log messages.
    """
    settings = settings or get_settings()
    raw = _source_bytes(text)
    # lone surrogates cannot be carried by the output model
    text = raw.decode("utf-8", "replace")
    if len(raw) > settings.max_source_bytes:
        return _truncated_output(text, path, len(raw), settings)
    try:
        return _render(text, path, settings)
    except Exception as exc:
        log.exception("Render failed for %s; returning degraded output", path or "<string>")
        return _degraded_output(text, path, exc, settings)


# -----------------------------------------------------------------------------
