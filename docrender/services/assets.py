#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Asset reference check
=====================
Finds the local images a document points at and reports the ones that are
missing on disk.  Missing assets are warnings only; the page still renders.

Resolution rules for an image ``src``:

  - ``/assets/x.png``, ``assets/x.png``, ``./assets/x.png``  -> ``content_dir/assets/x.png``
  - anything else relative                                   -> next to the markdown file
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

_MD_IMAGE_RE   = re.compile(r"!\[[^\]]*\]\(([^)]+)\)")
_HTML_IMAGE_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["'][^>]*>""", re.IGNORECASE)
_SKIP_PREFIXES = ("http://", "https://", "//", "data:")


@dataclass(frozen=True)
class AssetReference:
    src: str
    resolved_path: Path
    exists: bool


@dataclass
class AssetReport:
    total: int = 0
    missing: list[AssetReference] = field(default_factory=list)

    @property
    def valid(self) -> int:
        return self.total - len(self.missing)


# -----------------------------------------------------------------------------

def extract_image_references(markdown: str) -> list[str]:
    """Local image sources from markdown and ``<img>`` syntax, deduplicated, in order."""
    refs: list[str] = []
    for m in _MD_IMAGE_RE.finditer(markdown):
        parts = m.group(1).split()     # drop a trailing "title"
        src = parts[0] if parts else ""
        if src and not src.startswith(_SKIP_PREFIXES):
            refs.append(src)
    for m in _HTML_IMAGE_RE.finditer(markdown):
        src = m.group(1)
        if src and not src.startswith(_SKIP_PREFIXES + ("/api/",)):
            refs.append(src)
    return list(dict.fromkeys(refs))


def resolve_asset_path(content_dir: Path, markdown_path: Path, src: str) -> Path:
    src = src.partition("?")[0].partition("#")[0]
    if src.startswith("/"):
        return content_dir / src.lstrip("/")
    if src.startswith(("./assets/", "assets/")):
        return content_dir / src.removeprefix("./")
    return (markdown_path.parent / src).resolve()


def validate_assets(markdown: str, markdown_path: Path, content_dir: Path) -> AssetReport:
    """Check every local image reference in *markdown*; log one warning per missing file."""
    report = AssetReport()
    for src in extract_image_references(markdown):
        resolved = resolve_asset_path(content_dir, markdown_path, src)
        ref = AssetReference(src=src, resolved_path=resolved, exists=resolved.is_file())
        report.total += 1
        if not ref.exists:
            report.missing.append(ref)
            log.warning("Missing asset %r referenced in %s (looked for %s)", src, markdown_path, resolved)
    return report


# -----------------------------------------------------------------------------
