#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Plain-text mirror
=================
Turns the markdown *source* (frontmatter already removed) into dense plain
text for machine ingestion.  This works on the text directly, not on the
render tree, and follows its own rules:

  - fenced code: fence markers dropped, content kept apart from callout
    fence lines and the markdown residue no output may carry
  - ``::mermaid`` / ```` ```mermaid ````: ``[Diagram]`` followed by the source
  - callout fences dropped, content kept
  - ``:::api GET /x``: ``GET /x`` underlined, then summary and description
  - embeds: ``[YouTube Video: Title](https://www.youtube.com/watch?v=ID)``
  - headings: text underlined with ``=`` (H1) or ``-``
  - images: ``[Image: alt]``;  links: ``text (url)``
  - emphasis / strong / strikethrough / inline code markers stripped

Verbatim pieces (code, diagrams, embed references) are set aside before
the inline rules run and put back at the end, so the rules never touch
them.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re

from .directives import (
    API_OPEN_RE, BLOCK_CLOSE_RE, CALLOUT_OPEN_RE, CODE_FENCE_RE,
    DIAGRAM_CLOSE_RE, DIAGRAM_OPEN_RE, ID_EMBED_RE, URL_EMBED_RE, next_match_index,
)
from .embeds import id_embed_text, url_embed_text

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

_STASH_OPEN  = "\ue000"
_STASH_CLOSE = "\ue001"
_STASH_RE    = re.compile(_STASH_OPEN + r"(\d+)" + _STASH_CLOSE)

_HEADING_RE   = re.compile(r"^ {0,3}(#{1,6})[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$", re.MULTILINE)
_IMAGE_RE     = re.compile(r"!\[([^\]]*)\]\((?:[^()\s]|\([^()]*\))*(?:\s+\"[^\"]*\")?\)")
_LINK_RE      = re.compile(r"\[([^\]]+)\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)")
_AUTOLINK_RE  = re.compile(r"<((?:https?|mailto):[^>\s]+)>")
_CODESPAN_RE  = re.compile(r"(`+)(.+?)\1")
_STRONG_RE    = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1")
_EM_STAR_RE   = re.compile(r"(?<![\w*])\*(?=\S)([^*\n]+?)(?<=\S)\*(?![\w*])")
_EM_UNDER_RE  = re.compile(r"(?<![\w_])_(?=\S)([^_\n]+?)(?<=\S)_(?![\w_])")
_STRIKE_RE    = re.compile(r"~~(?=\S)(.+?)(?<=\S)~~")
_HR_RE        = re.compile(r"^ {0,3}(?:(?:-[ \t]*){3,}|(?:\*[ \t]*){3,}|(?:_[ \t]*){3,})$", re.MULTILINE)
_QUOTE_RE     = re.compile(r"^ {0,3}> ?", re.MULTILINE)
_TABLE_SEP_RE = re.compile(r"^[ \t]*\|?[ \t]*:?-{3,}:?[ \t]*(?:\|[ \t]*:?-{3,}:?[ \t]*)*\|?[ \t]*$", re.MULTILINE)
_TABLE_ROW_RE = re.compile(r"^[ \t]*\|(.*)\|[ \t]*$", re.MULTILINE)
_TASK_RE      = re.compile(r"^(\s*(?:[-*+]|\d+[.)])\s+)\[([ xX])\]\s+", re.MULTILINE)
_HTML_TAG_RE  = re.compile(r"</?[A-Za-z][A-Za-z0-9-]*(?:\s[^<>]*)?/?>|<!--.*?-->", re.DOTALL)
_BLANKS_RE    = re.compile(r"\n{3,}")

# Markdown residue that must never reach the output, code included.
_RESIDUE = ("```", ":::", "**", "~~", "##")
_LEADING_HASHES_RE = re.compile(r"^[ \t]*#{2,}[ \t]*", re.MULTILINE)


# -----------------------------------------------------------------------------

class _Stash:
    def __init__(self) -> None:
        self.items: list[str] = []

    def put(self, text: str) -> str:
        self.items.append(text)
        return f"{_STASH_OPEN}{len(self.items) - 1}{_STASH_CLOSE}"

    def restore(self, text: str) -> str:
        return _STASH_RE.sub(lambda m: _scrub(self.items[int(m.group(1))]), text)


# -----------------------------------------------------------------------------

def _underline(text: str, char: str) -> str:
    return f"\n{text}\n{char * max(len(text), 3)}\n"


def _block_pass(text: str, stash: _Stash) -> str:
    """Line-level directives and fenced code."""
    lines = text.split("\n")
    diagram_close = next_match_index(lines, DIAGRAM_CLOSE_RE)
    out: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]

        m = CODE_FENCE_RE.match(line)
        if m:
            marker = m.group(1)
            info = line.strip()[len(marker):].strip().split()
            j = i + 1
            while j < len(lines) and not (lines[j].strip().startswith(marker)
                                          and set(lines[j].strip()) == {marker[0]}):
                j += 1
            code = _scrub_code(lines[i + 1:j])
            if info and info[0].lower() == "mermaid":
                out.append(stash.put(f"[Diagram]\n{code}"))
            else:
                out.append(stash.put(code))
            i = j + 1
            continue

        if DIAGRAM_OPEN_RE.match(line):
            j = diagram_close[i + 1]
            if j is not None:
                out.append(stash.put("[Diagram]\n" + _scrub_code(lines[i + 1:j])))
                i = j + 1
                continue
            out.append("[Diagram]")
            i += 1
            continue

        m = ID_EMBED_RE.match(line)
        if m:
            out.append(stash.put(id_embed_text(m.group(1), m.group(2).strip(), m.group(3))))
            i += 1
            continue

        m = URL_EMBED_RE.match(line)
        if m:
            out.append(stash.put(url_embed_text(m.group(1).strip(), m.group(2))))
            i += 1
            continue

        m = API_OPEN_RE.match(line)
        if m:
            # rendered as a heading by the structure pass
            out.append(f"## {m.group(1).upper()} {m.group(2)}")
            i += 1
            continue

        if CALLOUT_OPEN_RE.match(line) or BLOCK_CLOSE_RE.match(line) or DIAGRAM_CLOSE_RE.match(line):
            i += 1
            continue

        out.append(line)
        i += 1
    return "\n".join(out)


def _inline_pass(text: str, stash: _Stash) -> str:
    text = _IMAGE_RE.sub(lambda m: stash.put(f"[Image: {m.group(1).strip()}]"), text)
    text = _LINK_RE.sub(lambda m: f"{m.group(1)} ({m.group(2)})", text)
    text = _AUTOLINK_RE.sub(r"\1", text)
    text = _CODESPAN_RE.sub(lambda m: stash.put(m.group(2).strip()), text)
    text = _HTML_TAG_RE.sub("", text)
    text = _STRONG_RE.sub(r"\2", text)
    text = _STRIKE_RE.sub(r"\1", text)
    text = _EM_STAR_RE.sub(r"\1", text)
    text = _EM_UNDER_RE.sub(r"\1", text)
    text = _TASK_RE.sub(lambda m: f"{m.group(1)}[{'x' if m.group(2) in 'xX' else ' '}] ", text)
    return text


def _structure_pass(text: str) -> str:
    text = _HR_RE.sub("", text)
    text = _QUOTE_RE.sub("", text)
    text = _TABLE_SEP_RE.sub("", text)
    text = _TABLE_ROW_RE.sub(lambda m: " | ".join(c.strip() for c in m.group(1).split("|")), text)
    text = _HEADING_RE.sub(
        lambda m: _underline(m.group(2).strip(), "=" if len(m.group(1)) == 1 else "-"),
        text,
    )
    return text


def _scrub(text: str) -> str:
    for token in _RESIDUE:
        text = text.replace(token, "")
    return _LEADING_HASHES_RE.sub("", text)


def _scrub_code(lines: list[str]) -> str:
    """Code and diagram source minus callout fence lines and markdown residue."""
    kept = [line for line in lines if not (CALLOUT_OPEN_RE.match(line) or BLOCK_CLOSE_RE.match(line))]
    return _scrub("\n".join(kept))


def _finish(text: str) -> str:
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    return _BLANKS_RE.sub("\n\n", text).strip()


# -----------------------------------------------------------------------------

def markdown_to_plain_text(body: str) -> str:
    """Plain-text mirror of *body*.  Never raises."""
    try:
        text = body.replace("\r\n", "\n").replace("\r", "\n")
        text = text.replace("\x00", "").replace(_STASH_OPEN, "").replace(_STASH_CLOSE, "")
        stash = _Stash()
        text = _block_pass(text, stash)
        text = _inline_pass(text, stash)
        text = _structure_pass(text)
        text = _scrub(text)
        return _finish(stash.restore(text))
    except Exception:
        log.exception("Plain-text conversion failed; returning scrubbed source")
        try:
            return _finish(_scrub(body.replace("\x00", "")))
        except Exception:
            return ""


# -----------------------------------------------------------------------------
