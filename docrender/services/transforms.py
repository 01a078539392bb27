#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tree transform chain
====================
Passes run in this order over the tree owned by one pipeline run:

1. ``assign_heading_ids``   - unique slug ``id`` on every heading
2. ``rewrite_media``        - image references -> asset service / responsive
3. ``collect_toc``          - nested H2 / H3 outline
4. ``decorate_code_blocks`` - language header + copy button; mermaid -> Diagram
5. ``highlight_code_blocks``- Pygments, best effort
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import posixpath
import re
from typing import Iterable, Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from docrender.schemas import TocItem
from .tree import (
    CodeBlock, CodeFrame, Diagram, Document, Fragment, Heading, Image, Node,
    child_lists, text_content, walk,
)

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# 1. Heading slugs
# -----------------------------------------------------------------------------

def slugify(text: str) -> str:
    """Convert heading text to an anchor id.

    lowercase -> drop everything but ``[a-z0-9]``, whitespace and ``-`` ->
    whitespace runs become ``-`` -> hyphen runs collapse -> trim hyphens.
    """
    text = text.lower()
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text.strip("-")


def assign_heading_ids(doc: Document) -> None:
    used: set[str] = set()
    for node in walk(doc):
        if not isinstance(node, Heading):
            continue
        base = slugify(text_content(node)) or "section"
        anchor = base
        n = 1
        while anchor in used:
            n += 1
            anchor = f"{base}-{n}"
        used.add(anchor)
        node.id = anchor


# -----------------------------------------------------------------------------
# 2. Media references
# -----------------------------------------------------------------------------

_EXTERNAL_RE   = re.compile(r"^(?:[a-z][a-z0-9+.-]*:|//)", re.IGNORECASE)
_LAZY_ONLY_EXT = {".svg", ".gif"}


def asset_url(src: str, base_url: str) -> str:
    """Map a content-relative image path onto the asset service."""
    path, _, suffix = src.partition("?")
    path = posixpath.normpath("/" + path.replace("\\", "/")).lstrip("/")
    # normpath keeps nothing above the root, so ../ segments are dropped here
    if path.startswith("assets/"):
        path = path[len("assets/"):]
    url = f"{base_url.rstrip('/')}/{path}"
    return f"{url}?{suffix}" if suffix else url


def rewrite_media(
    doc: Document,
    base_url: str,
    widths: Iterable[int] = (400, 800, 1200),
    modern_format: str = "webp",
) -> None:
    widths = tuple(widths)
    for node in walk(doc):
        if not isinstance(node, Image) or not node.url:
            continue
        if _EXTERNAL_RE.match(node.url):
            continue   # absolute URL or data: URI, untouched
        ext = posixpath.splitext(node.url.partition("?")[0])[1].lower()
        node.url = asset_url(node.url, base_url)
        node.lazy = True
        if ext not in _LAZY_ONLY_EXT:
            node.widths = widths
            node.modern_format = modern_format


# -----------------------------------------------------------------------------
# 3. Heading outline
# -----------------------------------------------------------------------------

def collect_toc(doc: Document) -> list[TocItem]:
    """H2 at the top level, H3 under the nearest preceding H2.

    An H3 before any H2 is dropped.
    """
    toc: list[TocItem] = []
    for node in walk(doc):
        if not isinstance(node, Heading) or node.level not in (2, 3):
            continue
        text = text_content(node).strip()
        if not node.id or not text:
            continue
        if node.level == 2:
            toc.append(TocItem(id=node.id, text=text, level=2))
        elif toc:
            toc[-1].children.append(TocItem(id=node.id, text=text, level=3))
    return toc


# -----------------------------------------------------------------------------
# 4. Code block decoration
# -----------------------------------------------------------------------------

DIAGRAM_LANGUAGE = "mermaid"


def _decorate(children: list[Node]) -> None:
    for i, child in enumerate(children):
        if isinstance(child, CodeBlock):
            language = child.language.lower()
            if language == DIAGRAM_LANGUAGE:
                children[i] = Diagram(source=child.code.rstrip("\n"))
            else:
                children[i] = CodeFrame(language=child.language or "text", children=[child])
        elif not isinstance(child, CodeFrame):
            for nested in child_lists(child):
                _decorate(nested)


def decorate_code_blocks(doc: Document) -> None:
    _decorate(doc.children)


# -----------------------------------------------------------------------------
# 5. Syntax highlighting
# -----------------------------------------------------------------------------

def highlight_code(code: str, lang: str, css_class: str = "highlight") -> Optional[str]:
    """Highlight *code* with Pygments.  None when the language is empty or unknown."""
    lang = lang.strip()
    if not lang:
        return None
    try:
        lexer = get_lexer_by_name(lang, stripall=False)
    except ClassNotFound:
        return None
    formatter = HtmlFormatter(nowrap=False, cssclass=css_class)
    return highlight(code, lexer, formatter)


def highlight_code_blocks(doc: Document, css_class: str = "highlight") -> None:
    for node in walk(doc):
        if not isinstance(node, CodeFrame):
            continue
        for i, child in enumerate(node.children):
            if not isinstance(child, CodeBlock):
                continue
            try:
                html = highlight_code(child.code, child.language, css_class)
            except Exception:
                # a broken lexer only costs this block its colours
                log.warning("Highlighting failed for language %r", child.language, exc_info=True)
                html = None
            if html is not None:
                node.children[i] = Fragment(html)


# -----------------------------------------------------------------------------

def run_transforms(
    doc: Document,
    asset_base_url: str,
    image_widths: Iterable[int] = (400, 800, 1200),
    image_modern_format: str = "webp",
    highlight_css_class: str = "highlight",
) -> list[TocItem]:
    """Apply every pass in order; return the heading outline."""
    assign_heading_ids(doc)
    rewrite_media(doc, asset_base_url, image_widths, image_modern_format)
    toc = collect_toc(doc)
    decorate_code_blocks(doc)
    highlight_code_blocks(doc, highlight_css_class)
    return toc


# -----------------------------------------------------------------------------
