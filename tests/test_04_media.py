"""
Tests for image reference rewriting.

Content-relative images are pointed at the asset service and get a
responsive <picture>; external and data: URIs are left alone.
"""
from __future__ import annotations

import pytest

from docrender.services.directives import preprocess
from docrender.services.renderer import render_html
from docrender.services.transforms import asset_url, rewrite_media
from docrender.services.tree import Image, parse, walk

BASE = "/api/content/assets"


def _images(body: str, **kwargs):
    prepared = preprocess(body)
    doc = parse(prepared.text, prepared.table)
    rewrite_media(doc, BASE, **kwargs)
    return doc, [n for n in walk(doc) if isinstance(n, Image)]


# ── asset_url ────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("src,expected", [
    ("./assets/images/a.png", f"{BASE}/images/a.png"),
    ("assets/images/a.png",   f"{BASE}/images/a.png"),
    ("/assets/images/a.png",  f"{BASE}/images/a.png"),
    ("images/a.png",          f"{BASE}/images/a.png"),
    ("../a.png",              f"{BASE}/a.png"),
    ("../../assets/x/y.jpg",  f"{BASE}/x/y.jpg"),
    ("a.png?v=2",             f"{BASE}/a.png?v=2"),
])
def test_asset_url(src, expected):
    assert asset_url(src, BASE) == expected


def test_asset_url_base_trailing_slash():
    assert asset_url("a.png", "/cdn/") == "/cdn/a.png"


# ── rewrite_media ────────────────────────────────────────────────────────────

@pytest.mark.parametrize("src", [
    "https://example.com/a.png",
    "http://example.com/a.png",
    "//cdn.example.com/a.png",
    "data:image/png;base64,AAAA",
])
def test_external_images_untouched(src):
    _, images = _images(f"![x]({src})")
    assert images[0].url == src
    assert images[0].widths == ()
    assert images[0].lazy is False


def test_relative_raster_gets_widths():
    _, images = _images("![alt](./assets/images/a.png)")
    img = images[0]
    assert img.url == f"{BASE}/images/a.png"
    assert img.widths == (400, 800, 1200)
    assert img.modern_format == "webp"
    assert img.lazy is True


@pytest.mark.parametrize("name", ["logo.svg", "spinner.gif", "LOGO.SVG"])
def test_svg_and_gif_only_lazy(name):
    _, images = _images(f"![x](assets/{name})")
    assert images[0].lazy is True
    assert images[0].widths == ()


def test_custom_widths():
    _, images = _images("![x](a.jpg)", widths=[320, 640], modern_format="avif")
    assert images[0].widths == (320, 640)
    assert images[0].modern_format == "avif"


# ── Rendered markup ──────────────────────────────────────────────────────────

def test_picture_markup():
    doc, _ = _images("![alt](./assets/images/a.png)")
    html = render_html(doc)
    assert '<picture class="responsive-image">' in html
    assert f'<source type="image/webp" srcset="{BASE}/images/a.png?w=400&amp;format=webp 400w' in html
    assert f'{BASE}/images/a.png?w=1200&amp;format=webp 1200w' in html
    assert f'src="{BASE}/images/a.png?w=800"' in html
    assert f'{BASE}/images/a.png?w=400 400w' in html
    assert 'alt="alt"' in html
    assert 'loading="lazy"' in html


def test_svg_markup_is_plain_img():
    doc, _ = _images("![Logo](logo.svg)")
    html = render_html(doc)
    assert "<picture" not in html
    assert f'<img src="{BASE}/logo.svg" alt="Logo" loading="lazy" decoding="async">' in html


def test_external_markup_not_lazy():
    doc, _ = _images('![x](https://example.com/a.png "Title")')
    html = render_html(doc)
    assert '<img src="https://example.com/a.png" alt="x" title="Title">' in html


def test_alt_text_is_escaped():
    doc, _ = _images('![say "hi"](x.svg)')
    html = render_html(doc)
    assert 'alt="say &quot;hi&quot;"' in html


def test_javascript_image_src_is_dropped():
    doc, _ = _images("![x](javascript:alert(1))")
    html = render_html(doc)
    assert "javascript:" not in html
