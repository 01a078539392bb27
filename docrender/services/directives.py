#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Directive preprocessor
======================
Rewrites the author-facing block syntax before markdown parsing.

Supported syntax (recognised at column 0, never inside fenced code)::

    :::info | warning | error | success | tip | note | danger
    content, any markdown
    :::

    :::api GET /users/{id}
    One-line summary

    Longer markdown description.
    :::

    ::youtube[Title]{id=VIDEO_ID}
    ::vimeo[Title]{id=VIDEO_ID}
    ::embed[Title]{url=https://...}

    ::mermaid
    graph TD; A-->B
    ::

Fencing rule: a line that is exactly ``:::`` closes the innermost open
``:::`` block, so callouts nest and a body line of ``:::`` can never be
content.  Openers without a matching close are left as literal text.

Each directive is replaced by an HTML comment placeholder carrying a nonce
derived from the source text; the parsed tree resolves placeholders back to
typed records through ``DirectiveTable``.  Bodies of callouts and API blocks
stay in place as markdown between an open and a close placeholder.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import hashlib
import re
import secrets
from dataclasses import dataclass, field
from typing import Optional, Union


CALLOUT_TYPES = ("info", "warning", "error", "success", "tip", "note", "danger")
API_METHODS   = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD")

CALLOUT_OPEN_RE = re.compile(r"^:::(" + "|".join(CALLOUT_TYPES) + r")[ \t]*$")
API_OPEN_RE     = re.compile(r"^:::api[ \t]+(" + "|".join(API_METHODS) + r")[ \t]+(\S+)[ \t]*$", re.IGNORECASE)
BLOCK_CLOSE_RE  = re.compile(r"^:::[ \t]*$")
DIAGRAM_OPEN_RE = re.compile(r"^::mermaid[ \t]*$")
DIAGRAM_CLOSE_RE = re.compile(r"^::[ \t]*$")
ID_EMBED_RE     = re.compile(r"^::(youtube|vimeo)\[([^\]\n]*)\]\{id=([^}\s]+)\}[ \t]*$")
URL_EMBED_RE    = re.compile(r"^::embed\[([^\]\n]*)\]\{url=([^}\s]+)\}[ \t]*$")
CODE_FENCE_RE   = re.compile(r"^ {0,3}(`{3,}|~{3,})")

_OPENER_PATTERNS = (CALLOUT_OPEN_RE, API_OPEN_RE, BLOCK_CLOSE_RE, DIAGRAM_OPEN_RE, ID_EMBED_RE, URL_EMBED_RE)


# -----------------------------------------------------------------------------
# Directive records
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class CalloutOpen:
    variant: str


@dataclass
class ApiOpen:
    method: str
    path: str
    summary: str = ""


@dataclass(frozen=True)
class BlockClose:
    opener: int


@dataclass(frozen=True)
class EmbedDirective:
    kind: str          # "youtube", "vimeo" or "embed"
    title: str
    target: str        # media id, or URL for kind == "embed"


@dataclass(frozen=True)
class DiagramDirective:
    source: str


Directive = Union[CalloutOpen, ApiOpen, BlockClose, EmbedDirective, DiagramDirective]


# -----------------------------------------------------------------------------

@dataclass
class DirectiveTable:
    """Placeholder -> directive record mapping for one preprocessing run."""

    nonce: str = field(default_factory=lambda: secrets.token_hex(8))
    records: dict[int, Directive] = field(default_factory=dict)

    def add(self, record: Directive) -> int:
        index = len(self.records)
        self.records[index] = record
        return index

    def placeholder(self, index: int) -> str:
        return f"<!--docrender:{self.nonce}:{index}-->"

    def lookup(self, raw: str) -> Optional[tuple[int, Directive]]:
        m = re.fullmatch(r"\s*<!--docrender:([0-9a-f]+):(\d+)-->\s*", raw)
        if not m or m.group(1) != self.nonce:
            return None
        index = int(m.group(2))
        record = self.records.get(index)
        return (index, record) if record is not None else None

    def split(self, raw: str) -> list[str]:
        """Split *raw* around this run's placeholders (odd items are placeholders)."""
        return re.split(r"(<!--docrender:" + re.escape(self.nonce) + r":\d+-->)", raw)


@dataclass
class Preprocessed:
    text: str
    table: DirectiveTable


# -----------------------------------------------------------------------------
# Scanner
# -----------------------------------------------------------------------------

def content_nonce(body: str) -> str:
    """Placeholder nonce derived from the source, so equal input renders equally."""
    return hashlib.sha256(body.encode("utf-8", "surrogatepass")).hexdigest()[:16]


def next_match_index(lines: list[str], pattern: re.Pattern) -> list[Optional[int]]:
    """For each line index i, the first index j >= i whose line matches *pattern*.

    One backward pass, so unclosed openers never rescan the rest of the text.
    """
    found: list[Optional[int]] = [None] * (len(lines) + 1)
    for j in range(len(lines) - 1, -1, -1):
        found[j] = j if pattern.match(lines[j]) else found[j + 1]
    return found


def _fence_closes(line: str, marker: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(marker) and set(stripped) == {marker[0]}


def preprocess(body: str) -> Preprocessed:
    """Replace directives in *body* with placeholders; see module docstring."""
    table = DirectiveTable(nonce=content_nonce(body))
    lines = body.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    diagram_close = next_match_index(lines, DIAGRAM_CLOSE_RE)
    out: list[str] = []
    # open :::blocks as (position of the placeholder in out, record index, original line)
    stack: list[tuple[int, int, str]] = []
    fence: Optional[str] = None

    def _emit(index: int) -> int:
        out.extend(["", table.placeholder(index), ""])
        return len(out) - 2

    i = 0
    while i < len(lines):
        line = lines[i]

        if fence is not None:
            out.append(line)
            if _fence_closes(line, fence):
                fence = None
            i += 1
            continue

        m = CODE_FENCE_RE.match(line)
        if m:
            fence = m.group(1)
            out.append(line)
            i += 1
            continue

        if DIAGRAM_OPEN_RE.match(line):
            close = diagram_close[i + 1]
            if close is not None:
                source = "\n".join(lines[i + 1:close])
                _emit(table.add(DiagramDirective(source=source)))
                i = close + 1
                continue

        m = ID_EMBED_RE.match(line)
        if m:
            _emit(table.add(EmbedDirective(kind=m.group(1), title=m.group(2).strip(), target=m.group(3))))
            i += 1
            continue

        m = URL_EMBED_RE.match(line)
        if m:
            _emit(table.add(EmbedDirective(kind="embed", title=m.group(1).strip(), target=m.group(2))))
            i += 1
            continue

        m = CALLOUT_OPEN_RE.match(line)
        if m:
            index = table.add(CalloutOpen(variant=m.group(1)))
            stack.append((_emit(index), index, line))
            i += 1
            continue

        m = API_OPEN_RE.match(line)
        if m:
            index = table.add(ApiOpen(method=m.group(1).upper(), path=m.group(2)))
            stack.append((_emit(index), index, line))
            i += 1
            continue

        if BLOCK_CLOSE_RE.match(line) and stack:
            position, index, _ = stack.pop()
            record = table.records[index]
            if isinstance(record, ApiOpen):
                _take_summary(out, position + 1, record)
            _emit(table.add(BlockClose(opener=index)))
            i += 1
            continue

        out.append(line)
        i += 1

    # Unterminated openers revert to their literal line, innermost last.
    for position, index, original in reversed(stack):
        out[position - 1:position + 2] = [original]
        del table.records[index]

    return Preprocessed(text="\n".join(out), table=table)


def _take_summary(out: list[str], start: int, record: ApiOpen) -> None:
    """Move the first non-blank body line of an API block into its record.

    No summary is taken when the body opens with code, a directive or a
    placeholder; those lines stay in the body.
    """
    for j in range(start, len(out)):
        if out[j].strip():
            line = out[j]
            if line.lstrip().startswith("<!--docrender:") or CODE_FENCE_RE.match(line):
                return
            if any(p.match(line) for p in _OPENER_PATTERNS):
                return
            record.summary = line.strip()
            out[j] = ""
            return


# -----------------------------------------------------------------------------
