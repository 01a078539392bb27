#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Metadata resolver
=================
Title, ordering key and excerpt for a document, each taken from the first
source that has one:

    title    frontmatter title -> first ``# `` heading -> filename -> "Untitled"
    order    frontmatter order (numeric) -> filename prefix ``NN-`` -> default
    excerpt  frontmatter excerpt -> frontmatter description -> plain text
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import posixpath
import re
from typing import Optional, Union

from docrender.schemas import Frontmatter
from .directives import CODE_FENCE_RE


DEFAULT_TITLE = "Untitled"
DEFAULT_ORDER = 999
EXCERPT_LENGTH = 160

_H1_RE          = re.compile(r"^#[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$")
_ORDER_PREFIX_RE = re.compile(r"^(\d+)-")
_UNDERLINE_RE   = re.compile(r"^[ \t]*(?:={3,}|-{3,})[ \t]*$", re.MULTILINE)
_WS_RE          = re.compile(r"\s+")


# -----------------------------------------------------------------------------
# Title
# -----------------------------------------------------------------------------

def extract_h1(body: str) -> Optional[str]:
    """Text of the first ``# `` heading outside fenced code, or None."""
    fence: Optional[str] = None
    for line in body.replace("\r\n", "\n").split("\n"):
        if fence is not None:
            stripped = line.strip()
            if stripped.startswith(fence) and set(stripped) == {fence[0]}:
                fence = None
            continue
        m = CODE_FENCE_RE.match(line)
        if m:
            fence = m.group(1)
            continue
        m = _H1_RE.match(line)
        if m and m.group(1).strip():
            return m.group(1).strip()
    return None


def title_from_filename(path: str) -> str:
    """``01-getting-started.md`` -> ``Getting Started``."""
    name = posixpath.basename(path.replace("\\", "/"))
    name = posixpath.splitext(name)[0]
    name = _ORDER_PREFIX_RE.sub("", name)
    words = [w for w in re.split(r"[-_]+", name) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def resolve_title(frontmatter: Frontmatter, body: str, path: str = "") -> str:
    if frontmatter.title and frontmatter.title.strip():
        return frontmatter.title.strip()
    h1 = extract_h1(body)
    if h1:
        return h1
    if path:
        name = title_from_filename(path)
        if name:
            return name
    return DEFAULT_TITLE


# -----------------------------------------------------------------------------
# Order
# -----------------------------------------------------------------------------

def order_from_filename(path: str) -> Optional[int]:
    name = posixpath.basename(path.replace("\\", "/"))
    m = _ORDER_PREFIX_RE.match(name)
    return int(m.group(1)) if m else None


def resolve_order(
    frontmatter: Frontmatter,
    path: str = "",
    default: int = DEFAULT_ORDER,
) -> Union[int, float]:
    if frontmatter.order is not None and not isinstance(frontmatter.order, bool):
        return frontmatter.order
    prefix = order_from_filename(path) if path else None
    return prefix if prefix is not None else default


# -----------------------------------------------------------------------------
# Excerpt
# -----------------------------------------------------------------------------

def make_excerpt(plain_text: str, length: int = EXCERPT_LENGTH) -> str:
    """First *length* characters of *plain_text*, cut back to a word boundary."""
    text = _UNDERLINE_RE.sub("", plain_text)
    text = _WS_RE.sub(" ", text).strip()
    if len(text) <= length:
        return text
    cut = text[:length]
    space = cut.rfind(" ")
    if space > 0:
        cut = cut[:space]
    return cut.rstrip(" ,;:.-") + "..."


def resolve_excerpt(frontmatter: Frontmatter, plain_text: str, length: int = EXCERPT_LENGTH) -> str:
    for value in (frontmatter.excerpt, frontmatter.description):
        if value and value.strip():
            return value.strip()
    return make_excerpt(plain_text, length)


# -----------------------------------------------------------------------------
