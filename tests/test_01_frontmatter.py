"""
Tests for the frontmatter splitter.

A YAML header is optional; a broken one is dropped with a warning and never
fails the document.
"""
from __future__ import annotations

import logging

from docrender.schemas import Frontmatter
from docrender.services.frontmatter import build_frontmatter, split_frontmatter


# ── Happy path ───────────────────────────────────────────────────────────────

def test_split_returns_typed_fields_and_body():
    fm, body = split_frontmatter("---\ntitle: Demo\norder: 3\ndraft: false\n---\n# Hi\n")
    assert fm.title == "Demo"
    assert fm.order == 3
    assert fm.draft is False
    assert body == "# Hi\n"


def test_unknown_keys_go_to_extra():
    fm, _ = split_frontmatter("---\ntitle: X\ntags: [a, b]\nauthor: Ann\n---\nbody")
    assert fm.extra == {"tags": ["a", "b"], "author": "Ann"}
    assert fm.as_dict() == {"title": "X", "tags": ["a", "b"], "author": "Ann"}


def test_crlf_header():
    fm, body = split_frontmatter("---\r\ntitle: Windows\r\n---\r\nText\r\n")
    assert fm.title == "Windows"
    assert body == "Text\r\n"


def test_closing_marker_on_last_line():
    fm, body = split_frontmatter("---\ntitle: Only header\n---")
    assert fm.title == "Only header"
    assert body == ""


def test_float_order_kept():
    fm, _ = split_frontmatter("---\norder: 2.5\n---\n")
    assert fm.order == 2.5


# ── No header ────────────────────────────────────────────────────────────────

def test_no_header_returns_full_text():
    text = "# Title\n\nSome text\n"
    fm, body = split_frontmatter(text)
    assert fm == Frontmatter()
    assert body == text


def test_horizontal_rule_later_is_not_a_header():
    text = "Intro\n\n---\ntitle: nope\n---\n"
    fm, body = split_frontmatter(text)
    assert fm.title is None
    assert body == text


def test_empty_header_is_empty_frontmatter():
    fm, body = split_frontmatter("---\n\n---\nBody")
    assert fm.as_dict() == {}
    assert body == "Body"


# ── Malformed header ─────────────────────────────────────────────────────────

def test_invalid_yaml_is_dropped_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="docrender.services.frontmatter"):
        fm, body = split_frontmatter("---\ntitle: [unclosed\n---\n# Body\n", "bad.md")
    assert fm == Frontmatter()
    assert body == "# Body\n"
    assert any("bad.md" in r.getMessage() for r in caplog.records)


def test_non_mapping_yaml_is_dropped(caplog):
    with caplog.at_level(logging.WARNING):
        fm, body = split_frontmatter("---\n- a\n- b\n---\ntext")
    assert fm == Frontmatter()
    assert body == "text"
    assert caplog.records


# ── Type checks on known keys ────────────────────────────────────────────────

def test_mistyped_known_key_stays_in_extra(caplog):
    with caplog.at_level(logging.WARNING):
        fm = build_frontmatter({"title": 42, "order": "first"})
    assert fm.title is None
    assert fm.order is None
    assert fm.extra == {"title": 42, "order": "first"}
    assert len(caplog.records) == 2


def test_boolean_order_is_rejected():
    fm = build_frontmatter({"order": True})
    assert fm.order is None
    assert fm.extra == {"order": True}


def test_frontmatter_is_frozen():
    fm = Frontmatter(title="A")
    try:
        fm.title = "B"
    except Exception:
        pass
    assert fm.title == "A"
