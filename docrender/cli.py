#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Command line entry point.

Usage:
    docrender render docs/01-intro.md docs/02-setup.md
    docrender render --format text docs/01-intro.md
    docrender render --format json docs/01-intro.md > intro.json
    docrender css --style friendly -o static/pygments.css
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from docrender.core.config import get_settings
from docrender.core.exceptions import SourceUnavailableError
from docrender.schemas import RenderOutput
from docrender.services.cache import ContentCache


# -----------------------------------------------------------------------------

def _summary(path: str, output: RenderOutput) -> str:
    lines = [
        f"{path}",
        f"  title:   {output.title}",
        f"  order:   {output.order}",
        f"  status:  {output.status}",
        f"  excerpt: {output.excerpt}",
    ]
    for item in output.toc:
        lines.append(f"  - {item.text} (#{item.id})")
        for child in item.children:
            lines.append(f"    - {child.text} (#{child.id})")
    return "\n".join(lines)


def cmd_render(args: argparse.Namespace) -> int:
    cache = ContentCache(get_settings())
    failed = 0
    for name in args.files:
        try:
            output = cache.get(name)
        except SourceUnavailableError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            failed += 1
            continue

        if args.format == "json":
            print(json.dumps(output.to_public_dict(), ensure_ascii=False, indent=2))
        elif args.format == "html":
            print(output.html)
        elif args.format == "text":
            print(output.plain_text)
        else:
            print(_summary(name, output))
    return 1 if failed else 0


def cmd_css(args: argparse.Namespace) -> int:
    selector = "." + (args.css_class or get_settings().highlight_css_class)
    try:
        css = HtmlFormatter(style=args.style).get_style_defs(selector)
    except ClassNotFound:
        print(f"Error: unknown Pygments style {args.style!r}", file=sys.stderr)
        return 2
    if args.output:
        Path(args.output).write_text(css, encoding="utf-8")
        print(f"Written {args.output}")
    else:
        print(css)
    return 0


# ── CLI ───────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docrender",
        description="Render markdown documents to HTML, plain text and a heading outline.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("render", help="Render one or more markdown files")
    p.add_argument("files", nargs="+", metavar="FILE")
    p.add_argument("--format", choices=("summary", "json", "html", "text"), default="summary",
                   help="What to print for each file (default: summary)")
    p.set_defaults(func=cmd_render)

    p = sub.add_parser("css", help="Write the Pygments stylesheet for highlighted code")
    p.add_argument("--style", default="friendly", help="Pygments style name (default: friendly)")
    p.add_argument("--css-class", default=None, metavar="CLASS",
                   help="Wrapper class (default: the configured highlight class)")
    p.add_argument("-o", "--output", default=None, metavar="FILE", help="Write to FILE instead of stdout")
    p.set_defaults(func=cmd_css)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
