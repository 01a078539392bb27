"""
Tests for the asset reference check and the command line entry point.
"""
from __future__ import annotations

import json
import logging

from docrender.cli import main
from docrender.services.assets import (
    extract_image_references, resolve_asset_path, validate_assets,
)


# ── Image references ─────────────────────────────────────────────────────────

def test_extract_markdown_and_html_images():
    md = (
        '![a](./assets/a.png)\n'
        '![b](images/b.png "Title")\n'
        '<img src="./assets/c.jpg" alt="c">\n'
        '![a again](./assets/a.png)\n'
    )
    assert extract_image_references(md) == ["./assets/a.png", "images/b.png", "./assets/c.jpg"]


def test_remote_and_inline_images_skipped():
    md = (
        "![r](https://cdn.example.com/x.png)\n"
        "![p](//cdn.example.com/y.png)\n"
        "![d](data:image/png;base64,AAAA)\n"
        '<img src="/api/content/assets/z.png">\n'
    )
    assert extract_image_references(md) == []


def test_resolve_asset_paths(tmp_path):
    content = tmp_path / "content"
    page = content / "guide" / "page.md"
    assert resolve_asset_path(content, page, "/assets/x.png") == content / "assets" / "x.png"
    assert resolve_asset_path(content, page, "./assets/x.png") == content / "assets" / "x.png"
    assert resolve_asset_path(content, page, "assets/x.png?v=2") == content / "assets" / "x.png"
    assert resolve_asset_path(content, page, "img/y.png") == (content / "guide" / "img" / "y.png").resolve()


def test_validate_assets_reports_missing(content_dir, caplog):
    (content_dir / "assets").mkdir()
    (content_dir / "assets" / "ok.png").write_bytes(b"\x89PNG")
    md = "![ok](./assets/ok.png)\n![gone](./assets/gone.png)\n"

    with caplog.at_level(logging.WARNING, logger="docrender.services.assets"):
        report = validate_assets(md, content_dir / "page.md", content_dir)

    assert report.total == 2
    assert report.valid == 1
    assert [ref.src for ref in report.missing] == ["./assets/gone.png"]
    assert any("gone.png" in r.getMessage() for r in caplog.records)


def test_validate_assets_no_images(content_dir):
    report = validate_assets("# Just text", content_dir / "p.md", content_dir)
    assert (report.total, report.valid, report.missing) == (0, 0, [])


# ── CLI: render ──────────────────────────────────────────────────────────────

def test_cli_render_summary(write_doc, capsys):
    path = write_doc("01-intro.md", "# Intro\n\n## Install\n\n## Use\n\nSome words.\n")
    assert main(["render", str(path)]) == 0
    out = capsys.readouterr().out
    assert "title:   Intro" in out
    assert "order:   1" in out
    assert "status:  ok" in out
    assert "- Install (#install)" in out


def test_cli_render_text(write_doc, capsys):
    path = write_doc("a.md", "**bold** text\n")
    assert main(["render", "--format", "text", str(path)]) == 0
    assert capsys.readouterr().out.strip() == "bold text"


def test_cli_render_json(write_doc, capsys):
    path = write_doc("a.md", "---\ntitle: J\n---\nbody\n")
    assert main(["render", "--format", "json", str(path)]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["title"] == "J"
    assert "plainText" in data


def test_cli_render_missing_file(content_dir, capsys):
    assert main(["render", str(content_dir / "missing.md")]) == 1
    assert "missing.md" in capsys.readouterr().err


# ── CLI: css ─────────────────────────────────────────────────────────────────

def test_cli_css_stdout(capsys):
    assert main(["css"]) == 0
    assert ".highlight" in capsys.readouterr().out


def test_cli_css_to_file(tmp_path, capsys):
    target = tmp_path / "pygments.css"
    assert main(["css", "--style", "monokai", "--css-class", "code", "-o", str(target)]) == 0
    assert ".code" in target.read_text(encoding="utf-8")


def test_cli_css_unknown_style(capsys):
    assert main(["css", "--style", "no-such-style"]) == 2
    assert "no-such-style" in capsys.readouterr().err
