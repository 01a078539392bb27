#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Frontmatter splitter
====================
Separates an optional YAML header from the document body::

    ---
    title: My Page
    order: 1
    ---
    # Body starts here

A malformed header never fails the document: it is dropped, a warning is
logged and an empty Frontmatter is returned.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from typing import Any

import yaml

from docrender.schemas import Frontmatter

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)

_TYPED_FIELDS: dict[str, tuple[type, ...]] = {
    "title":       (str,),
    "description": (str,),
    "order":       (int, float),
    "draft":       (bool,),
    "excerpt":     (str,),
}


# -----------------------------------------------------------------------------

def build_frontmatter(data: dict[str, Any], source: str = "") -> Frontmatter:
    """Promote recognised keys with the right type; keep everything else in ``extra``."""
    typed: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in data.items():
        key = str(key)
        expected = _TYPED_FIELDS.get(key)
        if expected is None or value is None:
            if expected is None:
                extra[key] = value
            continue
        # bool is an int subclass; an order of `true` is not a number
        if isinstance(value, expected) and not (key == "order" and isinstance(value, bool)):
            typed[key] = value
        else:
            log.warning(
                "Frontmatter field %r has unexpected type %s in %s",
                key, type(value).__name__, source or "<string>",
            )
            extra[key] = value
    return Frontmatter(extra=extra, **typed)


# -----------------------------------------------------------------------------

def split_frontmatter(text: str, source: str = "") -> tuple[Frontmatter, str]:
    """Return ``(frontmatter, body)``.

    No header: ``(empty, text)``.  Undecodable header: ``(empty, body)``
    with a logged warning.
    """
    m = FRONTMATTER_RE.match(text)
    if not m:
        return Frontmatter(), text

    body = text[m.end():]
    try:
        data = yaml.safe_load(m.group(1))
    except yaml.YAMLError as exc:
        log.warning("Invalid YAML frontmatter in %s: %s", source or "<string>", exc)
        return Frontmatter(), body

    if data is None:
        return Frontmatter(), body
    if not isinstance(data, dict):
        log.warning(
            "Invalid YAML frontmatter in %s: expected a mapping, got %s",
            source or "<string>", type(data).__name__,
        )
        return Frontmatter(), body
    return build_frontmatter(data, source), body


# -----------------------------------------------------------------------------
