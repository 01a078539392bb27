#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
HTML renderer
=============
Serializes a transformed document tree to HTML.

``Fragment`` nodes and the directive containers carry markup the engine
built itself and are emitted as-is.  Every other piece of text, including
raw HTML typed by the author, is escaped.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import re

from .embeds import ID_EMBED_TYPES, id_embed_html, url_embed_html
from .tree import (
    ApiBlock, BlockQuote, Callout, CodeBlock, CodeFrame, CodeSpan, Diagram, Document,
    Embed, Emphasis, Fragment, Heading, Image, LineBreak, Link, ListBlock, ListItem,
    Node, Paragraph, RawHtml, SoftBreak, Strikethrough, Strong, Table, TableCell,
    TableRow, Text, ThematicBreak,
)


# Bump this whenever the render pipeline output changes.
RENDERER_VERSION = 1

_EXTERNAL_HREF_RE = re.compile(r"^(?:https?:)?//", re.IGNORECASE)
_UNSAFE_SCHEME_RE = re.compile(r"^\s*(?:javascript|vbscript|data):", re.IGNORECASE)


def _esc(text: str) -> str:
    return _html.escape(text, quote=False)


def _attr(value: str) -> str:
    return _html.escape(value, quote=True)


# -----------------------------------------------------------------------------

class HtmlRenderer:
    """Dispatches on ``node.kind`` to a ``render_<kind>`` method."""

    def render(self, node: Node) -> str:
        method = getattr(self, f"render_{node.kind}", None)
        if method is None:
            raise TypeError(f"No renderer for node kind {node.kind!r}")
        return method(node)

    def children(self, nodes: list[Node], sep: str = "") -> str:
        return sep.join(self.render(n) for n in nodes)

    # ── Blocks ───────────────────────────────────────────────────────────────

    def render_document(self, node: Document) -> str:
        return self.children(node.children, "\n")

    def render_heading(self, node: Heading) -> str:
        tag = f"h{max(1, min(node.level, 6))}"
        id_attr = f' id="{_attr(node.id)}"' if node.id else ""
        return f"<{tag}{id_attr}>{self.children(node.children)}</{tag}>"

    def render_paragraph(self, node: Paragraph) -> str:
        inner = self.children(node.children)
        return inner if node.tight else f"<p>{inner}</p>"

    def render_block_quote(self, node: BlockQuote) -> str:
        return f"<blockquote>\n{self.children(node.children, chr(10))}\n</blockquote>"

    def render_list(self, node: ListBlock) -> str:
        if node.ordered:
            start = f' start="{int(node.start)}"' if node.start not in (None, 1) else ""
            return f"<ol{start}>\n{self.children(node.children, chr(10))}\n</ol>"
        if any(isinstance(c, ListItem) and c.checked is not None for c in node.children):
            return f'<ul class="task-list">\n{self.children(node.children, chr(10))}\n</ul>'
        return f"<ul>\n{self.children(node.children, chr(10))}\n</ul>"

    def render_list_item(self, node: ListItem) -> str:
        inner = self.children(node.children, "\n")
        if node.checked is None:
            return f"<li>{inner}</li>"
        checked = " checked" if node.checked else ""
        return (
            f'<li class="task-list-item">'
            f'<input type="checkbox" class="task-list-item-checkbox" disabled{checked}> '
            f"{inner}</li>"
        )

    def render_thematic_break(self, node: ThematicBreak) -> str:
        return "<hr>"

    def render_code_block(self, node: CodeBlock) -> str:
        cls = f' class="language-{_attr(node.language)}"' if node.language else ""
        return f"<pre><code{cls}>{_esc(node.code)}</code></pre>"

    def render_code_frame(self, node: CodeFrame) -> str:
        return (
            '<div class="code-block">'
            '<div class="code-block-header">'
            f'<span class="code-block-language">{_esc(node.language)}</span>'
            '<button class="copy-button" data-copy="true" type="button">Copy</button>'
            "</div>"
            f"{self.children(node.children)}"
            "</div>"
        )

    def render_table(self, node: Table) -> str:
        parts = ["<table>"]
        if node.head:
            parts.append(f"<thead>\n{self.children(node.head, chr(10))}\n</thead>")
        if node.children:
            parts.append(f"<tbody>\n{self.children(node.children, chr(10))}\n</tbody>")
        parts.append("</table>")
        return "\n".join(parts)

    def render_table_row(self, node: TableRow) -> str:
        return f"<tr>{self.children(node.children)}</tr>"

    def render_table_cell(self, node: TableCell) -> str:
        tag = "th" if node.header else "td"
        align = f' style="text-align:{node.align}"' if node.align in ("left", "center", "right") else ""
        return f"<{tag}{align}>{self.children(node.children)}</{tag}>"

    # ── Directive containers ─────────────────────────────────────────────────

    def render_callout(self, node: Callout) -> str:
        return (
            f'<div class="callout callout-{_attr(node.variant)}" role="note">\n'
            f"{self.children(node.children, chr(10))}\n</div>"
        )

    def render_api_block(self, node: ApiBlock) -> str:
        method = _esc(node.method)
        summary = f'<p class="api-summary">{_esc(node.summary)}</p>' if node.summary else ""
        body = self.children(node.children, "\n")
        description = f'<div class="api-description">\n{body}\n</div>' if body else ""
        return (
            f'<div class="api-endpoint api-{method.lower()}">'
            f'<div class="api-endpoint-header">'
            f'<span class="api-method api-method-{method.lower()}">{method}</span>'
            f'<code class="api-path">{_esc(node.path)}</code>'
            f"</div>{summary}{description}</div>"
        )

    def render_embed(self, node: Embed) -> str:
        if node.provider in ID_EMBED_TYPES:
            return id_embed_html(node.provider, node.title, node.target)
        return url_embed_html(node.title, node.target)

    def render_diagram(self, node: Diagram) -> str:
        return f'<div class="mermaid-diagram"><pre class="mermaid">{_esc(node.source)}</pre></div>'

    def render_fragment(self, node: Fragment) -> str:
        return node.html

    def render_raw_html(self, node: RawHtml) -> str:
        if node.inline:
            return _esc(node.html)
        return f"<p>{_esc(node.html.strip())}</p>"

    # ── Inlines ──────────────────────────────────────────────────────────────

    def render_text(self, node: Text) -> str:
        return _esc(node.text)

    def render_codespan(self, node: CodeSpan) -> str:
        return f"<code>{_esc(node.code)}</code>"

    def render_emphasis(self, node: Emphasis) -> str:
        return f"<em>{self.children(node.children)}</em>"

    def render_strong(self, node: Strong) -> str:
        return f"<strong>{self.children(node.children)}</strong>"

    def render_strikethrough(self, node: Strikethrough) -> str:
        return f"<del>{self.children(node.children)}</del>"

    def render_linebreak(self, node: LineBreak) -> str:
        return "<br>\n"

    def render_softbreak(self, node: SoftBreak) -> str:
        return "\n"

    def render_link(self, node: Link) -> str:
        href = "#" if _UNSAFE_SCHEME_RE.match(node.url) else node.url
        attrs = f' href="{_attr(href)}"'
        if node.title:
            attrs += f' title="{_attr(node.title)}"'
        if _EXTERNAL_HREF_RE.match(href):
            attrs += ' target="_blank" rel="noopener noreferrer"'
        return f"<a{attrs}>{self.children(node.children)}</a>"

    def render_image(self, node: Image) -> str:
        src = "" if _UNSAFE_SCHEME_RE.match(node.url) and not node.url.lower().startswith("data:image/") else node.url
        common = f' alt="{_attr(node.alt)}"'
        if node.title:
            common += f' title="{_attr(node.title)}"'
        if node.lazy:
            common += ' loading="lazy" decoding="async"'

        if not node.widths:
            return f'<img src="{_attr(src)}"{common}>'

        sep = "&" if "?" in src else "?"
        widths = sorted(node.widths)
        fallback = ", ".join(f"{src}{sep}w={w} {w}w" for w in widths)
        modern = ", ".join(f"{src}{sep}w={w}&format={node.modern_format} {w}w" for w in widths)
        middle = widths[len(widths) // 2]
        sizes = f"(max-width: {middle}px) 100vw, {middle}px"
        return (
            '<picture class="responsive-image">'
            f'<source type="image/{_attr(node.modern_format)}" srcset="{_attr(modern)}" sizes="{sizes}">'
            f'<img src="{_attr(f"{src}{sep}w={middle}")}" srcset="{_attr(fallback)}" sizes="{sizes}"{common}>'
            "</picture>"
        )


# -----------------------------------------------------------------------------

def render_html(doc: Document) -> str:
    return HtmlRenderer().render(doc)


# -----------------------------------------------------------------------------
