#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Media embeds
============
Markup and plain-text equivalents for the two embed directives::

    ::youtube[Title]{id=VIDEO_ID}
    ::vimeo[Title]{id=VIDEO_ID}
    ::embed[Title]{url=https://...}

URL embeds are resolved through ``URL_HANDLERS``, a table keyed by domain.
A handler returns ``None`` when it cannot pull an id out of the URL; the
caller then falls back to a link card.  Gists are never embedded inline.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import parse_qs, urlparse


# -----------------------------------------------------------------------------

_YOUTUBE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{6,20}$")
_VIMEO_ID_RE   = re.compile(r"^\d{3,12}$")
_LOOM_ID_RE    = re.compile(r"^[0-9a-f]{16,40}$", re.IGNORECASE)
_CODEPEN_ID_RE = re.compile(r"^[A-Za-z0-9]{3,12}$")

_IFRAME_ALLOW = "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture"


@dataclass(frozen=True)
class Provider:
    name: str            # css suffix, e.g. "youtube"
    label: str           # plain-text label, e.g. "YouTube Video"
    embed_url: str       # format string taking {id}
    watch_url: str       # canonical public URL taking {id}
    id_re: re.Pattern


PROVIDERS: dict[str, Provider] = {
    "youtube": Provider(
        "youtube", "YouTube Video",
        "https://www.youtube-nocookie.com/embed/{id}",
        "https://www.youtube.com/watch?v={id}",
        _YOUTUBE_ID_RE,
    ),
    "vimeo": Provider(
        "vimeo", "Vimeo Video",
        "https://player.vimeo.com/video/{id}",
        "https://vimeo.com/{id}",
        _VIMEO_ID_RE,
    ),
    "loom": Provider(
        "loom", "Loom Video",
        "https://www.loom.com/embed/{id}",
        "https://www.loom.com/share/{id}",
        _LOOM_ID_RE,
    ),
    "codepen": Provider(
        "codepen", "CodePen",
        "https://codepen.io/{id}?default-tab=result",
        "https://codepen.io/{id}",
        re.compile(r"^[A-Za-z0-9_-]+/embed/[A-Za-z0-9]+$"),
    ),
}

# Directive names accepted in the ::TYPE[...]{id=...} form.
ID_EMBED_TYPES = ("youtube", "vimeo")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# URL handlers: url -> (provider, id) or None
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _path_segments(url: str) -> list[str]:
    return [p for p in urlparse(url).path.split("/") if p]


def _youtube(url: str) -> Optional[tuple[Provider, str]]:
    parsed = urlparse(url)
    segments = _path_segments(url)
    if parsed.hostname and parsed.hostname.endswith("youtu.be"):
        video_id = segments[0] if segments else ""
    elif segments and segments[0] in ("embed", "shorts", "live") and len(segments) > 1:
        video_id = segments[1]
    else:
        video_id = (parse_qs(parsed.query).get("v") or [""])[0]
    if _YOUTUBE_ID_RE.match(video_id):
        return PROVIDERS["youtube"], video_id
    return None


def _vimeo(url: str) -> Optional[tuple[Provider, str]]:
    segments = _path_segments(url)
    # vimeo.com/123456 or player.vimeo.com/video/123456
    for segment in reversed(segments):
        if _VIMEO_ID_RE.match(segment):
            return PROVIDERS["vimeo"], segment
    return None


def _loom(url: str) -> Optional[tuple[Provider, str]]:
    segments = _path_segments(url)
    if len(segments) >= 2 and segments[0] in ("share", "embed") and _LOOM_ID_RE.match(segments[1]):
        return PROVIDERS["loom"], segments[1]
    return None


def _codepen(url: str) -> Optional[tuple[Provider, str]]:
    # codepen.io/<user>/pen/<id>
    segments = _path_segments(url)
    if len(segments) >= 3 and segments[1] in ("pen", "embed") and _CODEPEN_ID_RE.match(segments[2]):
        return PROVIDERS["codepen"], f"{segments[0]}/embed/{segments[2]}"
    return None


def _never(url: str) -> Optional[tuple[Provider, str]]:
    return None


URL_HANDLERS: dict[str, Callable[[str], Optional[tuple[Provider, str]]]] = {
    "youtube.com":     _youtube,
    "youtu.be":        _youtube,
    "vimeo.com":       _vimeo,
    "loom.com":        _loom,
    "codepen.io":      _codepen,
    # Gists inject script tags; they only ever get a link card.
    "gist.github.com": _never,
}


def _handler_for(host: str) -> Optional[Callable[[str], Optional[tuple[Provider, str]]]]:
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    while host:
        if host in URL_HANDLERS:
            return URL_HANDLERS[host]
        if "." not in host:
            break
        host = host.split(".", 1)[1]
    return None


def resolve_url(url: str) -> Optional[tuple[Provider, str]]:
    """Return ``(provider, id)`` for an embeddable URL, else None."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    handler = _handler_for(parsed.hostname)
    if handler is None:
        return None
    return handler(url)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Markup
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def iframe_html(provider: Provider, media_id: str, title: str) -> str:
    title = title or provider.label
    src   = provider.embed_url.format(id=media_id)
    return (
        f'<div class="embed embed-{provider.name}" '
        f'data-embed-id="{html.escape(media_id)}" data-embed-title="{html.escape(title)}">'
        f'<iframe src="{html.escape(src)}" title="{html.escape(title)}" '
        f'loading="lazy" frameborder="0" allow="{_IFRAME_ALLOW}" allowfullscreen></iframe>'
        f'</div>'
    )


def _hostname(url: str) -> str:
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


def link_card_html(url: str, title: str) -> str:
    host   = _hostname(url)
    safe   = bool(host) and url.lower().startswith(("http://", "https://"))
    label  = title or host or url
    inner  = (
        f'<span class="embed-card-title">{html.escape(label)}</span>'
        f'<span class="embed-card-url">{html.escape(url)}</span>'
    )
    if not safe:
        return f'<div class="embed-card embed-card-disabled">{inner}</div>'
    return (
        f'<a class="embed-card" href="{html.escape(url)}" data-embed-host="{html.escape(host)}" '
        f'target="_blank" rel="noopener noreferrer">{inner}</a>'
    )


def id_embed_html(kind: str, title: str, media_id: str) -> str:
    provider = PROVIDERS[kind]
    if not provider.id_re.match(media_id):
        return link_card_html(provider.watch_url.format(id=media_id), title)
    return iframe_html(provider, media_id, title)


def url_embed_html(title: str, url: str) -> str:
    resolved = resolve_url(url)
    if resolved is None:
        return link_card_html(url, title)
    provider, media_id = resolved
    return iframe_html(provider, media_id, title)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Plain text
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def id_embed_text(kind: str, title: str, media_id: str) -> str:
    provider = PROVIDERS[kind]
    return f"[{provider.label}: {title or provider.label}]({provider.watch_url.format(id=media_id)})"


def url_embed_text(title: str, url: str) -> str:
    return f"[Embed: {title or _hostname(url) or url}]({url})"


# -----------------------------------------------------------------------------
