"""
End-to-end tests for render_document(): the assembled output, the size
guard and the failure boundary.
"""
from __future__ import annotations

import logging
import time

import pytest

from docrender.core.config import Settings
from docrender.schemas import RenderOutput
from docrender.services import pipeline
from docrender.services.pipeline import render_document


# ── Scenarios ────────────────────────────────────────────────────────────────

def test_frontmatter_title_callout_and_empty_toc():
    out = render_document("---\ntitle: Demo\n---\n# Hi\n\n:::info\nNote\n:::")
    assert out.status == "ok"
    assert out.title == "Demo"
    assert out.html.count('class="callout callout-info"') == 1
    assert "<p>Note</p>" in out.html
    assert out.toc == []


def test_duplicate_setup_headings():
    out = render_document("## Setup\n\nA\n\n## Setup\n\nB\n")
    assert [t.id for t in out.toc] == ["setup", "setup-2"]
    assert 'id="setup"' in out.html and 'id="setup-2"' in out.html


def test_relative_image():
    out = render_document("![alt](./assets/images/a.png)")
    assert "<picture" in out.html
    assert "/api/content/assets/images/a.png" in out.html
    assert "[Image: alt]" in out.plain_text


def test_youtube_embed():
    out = render_document("::youtube[My Vid]{id=abc123XYZ90}")
    assert "abc123XYZ90" in out.html
    assert out.plain_text.startswith("[YouTube Video: My Vid](")


def test_oversized_source_is_truncated(settings):
    text = "# Big\n\n" + ("lorem ipsum " * 200_000)      # ~2.4 MB
    out = render_document(text, "big.md", settings)
    assert out.status == "truncated"
    assert out.truncated
    assert "too large" in out.html
    assert len(out.plain_text) <= settings.max_source_bytes
    assert out.toc == []
    assert out.title == "Big"


def test_oversized_source_never_parsed(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("parser must not run")

    monkeypatch.setattr(pipeline, "parse", _fail)
    monkeypatch.setattr(pipeline, "preprocess", _fail)
    out = render_document("x" * 2048, "big.md", Settings(max_source_bytes=1024, preview_chars=100))
    assert out.status == "truncated"
    assert "x" * 100 in out.html
    assert "x" * 101 not in out.html


def test_size_measured_in_utf8_bytes():
    settings = Settings(max_source_bytes=10)
    assert render_document("ééééé", "", settings).status == "ok"        # 10 bytes
    out = render_document("éééééé", "", settings)                        # 12 bytes
    assert out.status == "truncated"
    assert len(out.plain_text.encode("utf-8")) <= 10


# ── Output shape ─────────────────────────────────────────────────────────────

def test_output_fields():
    text = "---\norder: 2\nexcerpt: Hello\n---\n# Page\n\n## Part\n\nBody text.\n"
    out = render_document(text, "05-page.md")
    assert isinstance(out, RenderOutput)
    assert out.title == "Page"
    assert out.order == 2
    assert out.excerpt == "Hello"
    assert out.raw_body == text
    assert out.frontmatter.as_dict() == {"order": 2, "excerpt": "Hello"}
    assert "Body text." in out.plain_text
    assert out.error is None


def test_filename_fallbacks():
    out = render_document("Just text, long enough to be an excerpt.", "03-the-page.md")
    assert out.title == "The Page"
    assert out.order == 3
    assert out.excerpt == "Just text, long enough to be an excerpt."


def test_public_dict_uses_contract_keys():
    out = render_document("---\ntags: [a]\n---\n# T\n")
    data = out.to_public_dict()
    assert {"html", "toc", "frontmatter", "plainText", "title", "rawBody"} <= set(data)
    assert data["frontmatter"] == {"tags": ["a"]}


def test_output_is_frozen():
    out = render_document("# T")
    with pytest.raises(Exception):
        out.title = "changed"


def test_idempotent():
    text = (
        "---\ntitle: Same\n---\n# H\n\n:::info\nx\n:::\n\n::youtube[V]{id=abcdefghijk}\n\n"
        "```python\nprint(1)\n```\n\n![i](a.png)\n\n## A\n### B\n"
    )
    first = render_document(text, "a.md")
    second = render_document(text, "a.md")
    assert first.model_dump() == second.model_dump()
    assert first.html == second.html


# ── Failure boundary ─────────────────────────────────────────────────────────

PATHOLOGICAL = [
    ":::info\n:::warning\n:::api GET /x\nunclosed",
    "a\x00b\x00\n\n# T\x00itle",
    "::mermaid\n" + ":::\n" * 50,
    "[" * 500 + "]" * 500,
    "> " * 500 + "deep",
    "---\n: : :\n---\n",
    "\ud800 lone surrogate",
]


@pytest.mark.parametrize("text", PATHOLOGICAL)
def test_pathological_inputs_never_raise(text):
    out = render_document(text, "p.md")
    assert isinstance(out, RenderOutput)
    assert out.status in ("ok", "degraded")


def test_null_bytes_render():
    out = render_document("a\x00b")
    assert out.status == "ok"
    assert "\x00" not in out.html
    assert "a\ufffdb" in out.html


def test_stage_failure_gives_degraded_output(monkeypatch, caplog):
    def _boom(*args, **kwargs):
        raise ValueError("tree exploded")

    monkeypatch.setattr(pipeline, "parse", _boom)
    text = "---\ntitle: Broken\n---\n# Heading\n\n<raw> & text"
    with caplog.at_level(logging.ERROR, logger="docrender.services.pipeline"):
        out = render_document(text, "07-broken.md", Settings(environment="development"))

    assert out.status == "degraded"
    assert out.degraded
    assert out.toc == []
    assert out.title == "Broken"
    assert out.order == 7
    assert out.raw_body == text
    assert "ValueError: tree exploded" in out.html
    assert "&lt;raw&gt; &amp; text" in out.html
    assert "Heading" in out.plain_text
    assert out.error == "ValueError: tree exploded"
    assert any("07-broken.md" in r.getMessage() for r in caplog.records)


def test_degraded_notice_generic_in_production(monkeypatch):
    def _boom(*args, **kwargs):
        raise ValueError("secret detail")

    monkeypatch.setattr(pipeline, "render_html", _boom)
    out = render_document("# T", "", Settings(environment="production"))
    assert out.status == "degraded"
    assert "secret detail" not in out.html
    assert "could not be rendered" in out.html
    assert out.error == "render failed"


def test_lone_surrogate_replaced():
    out = render_document("a\ud800b")
    assert out.status == "ok"
    assert "\ud800" not in out.raw_body
    assert "\ufffd" in out.raw_body


def test_unterminated_diagrams_render_quickly():
    start = time.perf_counter()
    out = render_document("::mermaid\n" * 20_000, "d.md")
    assert time.perf_counter() - start < 15
    assert out.status == "ok"


def test_api_block_with_leading_code_keeps_placeholders_internal():
    out = render_document(':::api GET /x\n```json\n{"a": 1}\n```\n:::\n\n## After\n')
    assert "docrender:" not in out.html
    assert "api-summary" not in out.html
    assert out.html.endswith('<h2 id="after">After</h2>')


def test_unterminated_comment_in_callout_does_not_swallow_document():
    out = render_document(":::info\n<!-- note\n:::\n\n## After\n")
    assert "docrender:" not in out.html
    assert out.html.endswith('<h2 id="after">After</h2>')
    assert [t.id for t in out.toc] == ["after"]


def test_plain_text_pure_even_for_code_samples():
    body = "## Syntax\n\n```markdown\n:::warning\n**Careful**\n:::\n```\n\n~~~\n## raw\n~~~\n"
    plain = render_document(body).plain_text
    for token in ("**", ":::", "```", "##"):
        assert token not in plain
