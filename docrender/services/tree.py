#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Document tree
=============
A closed set of node types built from mistune's AST.

mistune parses the preprocessed body (GFM tables, strikethrough, autolinks
and task lists enabled); ``parse()`` converts its token dicts into the
dataclasses below and resolves directive placeholders into ``Callout``,
``ApiBlock``, ``Embed`` and ``Diagram`` nodes.

Each pipeline run builds and owns exactly one tree.  Transform passes
mutate that tree in place; nothing outside the run ever sees it.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterator, Optional, Union

import mistune
from mistune.plugins.formatting import strikethrough
from mistune.plugins.table import table
from mistune.plugins.task_lists import task_lists
from mistune.plugins.url import url

from .directives import (
    ApiOpen, BlockClose, CalloutOpen, DiagramDirective, DirectiveTable, EmbedDirective,
)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Inline nodes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class Text:
    text: str
    kind: ClassVar[str] = "text"


@dataclass
class CodeSpan:
    code: str
    kind: ClassVar[str] = "codespan"


@dataclass
class Emphasis:
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "emphasis"


@dataclass
class Strong:
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "strong"


@dataclass
class Strikethrough:
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "strikethrough"


@dataclass
class Link:
    url: str
    title: Optional[str] = None
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "link"


@dataclass
class Image:
    url: str
    alt: str = ""
    title: Optional[str] = None
    # Set by the media rewrite pass.
    lazy: bool = False
    widths: tuple[int, ...] = ()
    modern_format: str = ""
    kind: ClassVar[str] = "image"


@dataclass
class LineBreak:
    kind: ClassVar[str] = "linebreak"


@dataclass
class SoftBreak:
    kind: ClassVar[str] = "softbreak"


@dataclass
class RawHtml:
    """HTML written by the author.  Always escaped on output."""
    html: str
    inline: bool = False
    kind: ClassVar[str] = "raw_html"


@dataclass
class Fragment:
    """Markup generated by the engine itself.  Emitted verbatim."""
    html: str
    kind: ClassVar[str] = "fragment"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Block nodes
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class Document:
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "document"


@dataclass
class Heading:
    level: int
    children: list[Node] = field(default_factory=list)
    id: str = ""
    kind: ClassVar[str] = "heading"


@dataclass
class Paragraph:
    children: list[Node] = field(default_factory=list)
    tight: bool = False      # tight list item text: no <p> wrapper
    kind: ClassVar[str] = "paragraph"


@dataclass
class BlockQuote:
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "block_quote"


@dataclass
class ListItem:
    children: list[Node] = field(default_factory=list)
    checked: Optional[bool] = None       # None: not a task item
    kind: ClassVar[str] = "list_item"


@dataclass
class ListBlock:
    ordered: bool = False
    start: Optional[int] = None
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "list"


@dataclass
class CodeBlock:
    code: str
    language: str = ""
    kind: ClassVar[str] = "code_block"


@dataclass
class CodeFrame:
    """Code block wrapper with a language label and copy button."""
    language: str
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "code_frame"


@dataclass
class TableCell:
    children: list[Node] = field(default_factory=list)
    header: bool = False
    align: Optional[str] = None
    kind: ClassVar[str] = "table_cell"


@dataclass
class TableRow:
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "table_row"


@dataclass
class Table:
    head: list[Node] = field(default_factory=list)
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "table"


@dataclass
class ThematicBreak:
    kind: ClassVar[str] = "thematic_break"


@dataclass
class Callout:
    variant: str
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "callout"


@dataclass
class ApiBlock:
    method: str
    path: str
    summary: str = ""
    children: list[Node] = field(default_factory=list)
    kind: ClassVar[str] = "api_block"


@dataclass
class Embed:
    provider: str            # "youtube", "vimeo" or "embed"
    title: str
    target: str
    kind: ClassVar[str] = "embed"


@dataclass
class Diagram:
    source: str
    kind: ClassVar[str] = "diagram"


Node = Union[
    Text, CodeSpan, Emphasis, Strong, Strikethrough, Link, Image, LineBreak, SoftBreak,
    RawHtml, Fragment, Document, Heading, Paragraph, BlockQuote, ListItem, ListBlock,
    CodeBlock, CodeFrame, TableCell, TableRow, Table, ThematicBreak, Callout, ApiBlock,
    Embed, Diagram,
]


# -----------------------------------------------------------------------------
# Traversal helpers
# -----------------------------------------------------------------------------

def child_lists(node: Node) -> Iterator[list[Node]]:
    """Yield every child list of *node* (tables have two)."""
    if isinstance(node, Table):
        yield node.head
    children = getattr(node, "children", None)
    if children is not None:
        yield children


def walk(node: Node) -> Iterator[Node]:
    """Depth-first, document-order traversal including *node* itself."""
    yield node
    for children in child_lists(node):
        for child in children:
            yield from walk(child)


def text_content(node: Node) -> str:
    """Concatenated visible text of *node*."""
    if isinstance(node, Text):
        return node.text
    if isinstance(node, CodeSpan):
        return node.code
    if isinstance(node, Image):
        return node.alt
    if isinstance(node, (LineBreak, SoftBreak)):
        return " "
    parts: list[str] = []
    for children in child_lists(node):
        parts.extend(text_content(c) for c in children)
    return "".join(parts)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# mistune AST -> tree
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _make_parser() -> mistune.Markdown:
    return mistune.create_markdown(
        renderer=None,
        plugins=[table, strikethrough, url, task_lists],
    )


_parser: Optional[mistune.Markdown] = None


def _get_parser() -> mistune.Markdown:
    global _parser
    if _parser is None:
        _parser = _make_parser()
    return _parser


# -----------------------------------------------------------------------------

def _attrs(tok: dict[str, Any]) -> dict[str, Any]:
    return tok.get("attrs") or {}


def _inlines(tokens: list[dict[str, Any]]) -> list[Node]:
    nodes: list[Node] = []
    for tok in tokens:
        t = tok.get("type")
        if t == "text":
            nodes.append(Text(tok.get("raw", "")))
        elif t == "codespan":
            nodes.append(CodeSpan(tok.get("raw", "")))
        elif t == "emphasis":
            nodes.append(Emphasis(_inlines(tok.get("children", []))))
        elif t == "strong":
            nodes.append(Strong(_inlines(tok.get("children", []))))
        elif t == "strikethrough":
            nodes.append(Strikethrough(_inlines(tok.get("children", []))))
        elif t == "link":
            a = _attrs(tok)
            nodes.append(Link(url=a.get("url", ""), title=a.get("title"),
                              children=_inlines(tok.get("children", []))))
        elif t == "image":
            a = _attrs(tok)
            alt = text_content(Paragraph(_inlines(tok.get("children", []))))
            nodes.append(Image(url=a.get("url", ""), alt=alt, title=a.get("title")))
        elif t == "linebreak":
            nodes.append(LineBreak())
        elif t == "softbreak":
            nodes.append(SoftBreak())
        elif t == "inline_html":
            nodes.append(RawHtml(tok.get("raw", ""), inline=True))
        elif "children" in tok:
            nodes.extend(_inlines(tok["children"]))
        elif "raw" in tok:
            nodes.append(Text(tok["raw"]))
    return nodes


def _blocks(tokens: list[dict[str, Any]]) -> list[Node]:
    nodes: list[Node] = []
    for tok in tokens:
        node = _block(tok)
        if node is not None:
            nodes.append(node)
    return nodes


def _block(tok: dict[str, Any]) -> Optional[Node]:
    t = tok.get("type")
    if t == "blank_line":
        return None
    if t == "paragraph":
        return Paragraph(_inlines(tok.get("children", [])))
    if t == "block_text":
        return Paragraph(_inlines(tok.get("children", [])), tight=True)
    if t == "heading":
        return Heading(level=int(_attrs(tok).get("level", 1)), children=_inlines(tok.get("children", [])))
    if t == "block_code":
        info = (_attrs(tok).get("info") or "").strip()
        return CodeBlock(code=tok.get("raw", ""), language=info.split()[0] if info else "")
    if t == "block_quote":
        return BlockQuote(_blocks(tok.get("children", [])))
    if t == "list":
        a = _attrs(tok)
        return ListBlock(
            ordered=bool(a.get("ordered")),
            start=a.get("start"),
            children=_blocks(tok.get("children", [])),
        )
    if t in ("list_item", "task_list_item"):
        checked = _attrs(tok).get("checked") if t == "task_list_item" else None
        return ListItem(_blocks(tok.get("children", [])), checked=checked)
    if t == "thematic_break":
        return ThematicBreak()
    if t == "block_html":
        return RawHtml(tok.get("raw", ""))
    if t == "table":
        return _table(tok)
    if "children" in tok:
        return Paragraph(_inlines(tok["children"]))
    if "raw" in tok:
        return Paragraph([Text(tok["raw"])])
    return None


def _table(tok: dict[str, Any]) -> Table:
    node = Table()
    for part in tok.get("children", []):
        if part.get("type") == "table_head":
            # head cells sit directly under table_head
            node.head.append(TableRow([_cell(c) for c in part.get("children", [])]))
        else:
            for row in part.get("children", []):
                node.children.append(TableRow([_cell(c) for c in row.get("children", [])]))
    return node


def _cell(tok: dict[str, Any]) -> TableCell:
    a = _attrs(tok)
    return TableCell(_inlines(tok.get("children", [])), header=bool(a.get("head")), align=a.get("align"))


# -----------------------------------------------------------------------------
# Directive placeholders -> nodes
# -----------------------------------------------------------------------------

def _release_placeholders(node: RawHtml, directives: DirectiveTable) -> list[Node]:
    """Pull placeholders out of an HTML block that swallowed them.

    An unterminated ``<!--``, ``<script>`` or ``<pre>`` runs on until a line
    containing its end marker, which may be a placeholder line.  The text
    before the first placeholder stays raw HTML; the text after each one is
    parsed again as markdown.
    """
    parts = directives.split(node.html)
    if len(parts) == 1 or (len(parts) == 3 and not parts[0].strip() and not parts[2].strip()):
        return [node]
    nodes: list[Node] = []
    for i, part in enumerate(parts):
        if i % 2:
            nodes.append(RawHtml(part))
        elif not part.strip():
            continue
        elif i == 0:
            nodes.append(RawHtml(part))
        else:
            nodes.extend(_blocks(_get_parser()(part)))
    return nodes


def _resolve(blocks: list[Node], directives: DirectiveTable) -> list[Node]:
    out: list[Node] = []
    open_blocks: list[tuple[Union[Callout, ApiBlock], int]] = []

    pending = list(reversed(blocks))
    while pending:
        node = pending.pop()
        if isinstance(node, RawHtml) and not node.inline:
            released = _release_placeholders(node, directives)
            if len(released) != 1 or released[0] is not node:
                pending.extend(reversed(released))
                continue

        for children in child_lists(node):
            children[:] = _resolve(children, directives)

        target = open_blocks[-1][0].children if open_blocks else out
        found = directives.lookup(node.html) if isinstance(node, RawHtml) and not node.inline else None
        if found is None:
            target.append(node)
            continue

        index, record = found
        if isinstance(record, CalloutOpen):
            container: Union[Callout, ApiBlock] = Callout(variant=record.variant)
        elif isinstance(record, ApiOpen):
            container = ApiBlock(method=record.method, path=record.path, summary=record.summary)
        elif isinstance(record, BlockClose):
            if open_blocks and open_blocks[-1][1] == record.opener:
                open_blocks.pop()
            continue
        elif isinstance(record, EmbedDirective):
            target.append(Embed(provider=record.kind, title=record.title, target=record.target))
            continue
        elif isinstance(record, DiagramDirective):
            target.append(Diagram(source=record.source))
            continue
        else:
            continue
        target.append(container)
        open_blocks.append((container, index))

    return out


# -----------------------------------------------------------------------------

def parse(text: str, directives: Optional[DirectiveTable] = None) -> Document:
    """Parse preprocessed markdown into a Document tree."""
    tokens = _get_parser()(text)
    doc = Document(_blocks(tokens))
    if directives is not None and directives.records:
        doc.children = _resolve(doc.children, directives)
    return doc


# -----------------------------------------------------------------------------
