"""Build the card surface as an SVG element tree.

The tree only uses the small vocabulary the PNG exporter understands:
``rect`` (optionally rounded, solid or gradient fill), ``text``, ``image``
clipped by a ``clipPath`` circle, and two-stop ``linearGradient`` defs.
"""

from __future__ import annotations
from typing import List, Optional

from lxml import etree

from .models import CardView
from .themes import DEFAULT_THEME, PILL_DEFAULT_THEME, STAT_DEFAULT_THEME, Theme, resolve_theme

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

CARD_WIDTH = 720
CARD_HEIGHT = 440
TITLE = "GitHub Pokémon Card"
DASH = "—"

INK = "#0f172a"
MUTED = "#64748b"
PLACEHOLDER = "#e2e8f0"
ERROR_RED = "#dc2626"

NARROW_CHARS = set("iljtfrI.,:;'!|() ")
WIDE_CHARS = set("mwMW@")
MAX_LOGIN_CHARS = 22
MAX_NAME_CHARS = 18
MAX_ERROR_CHARS = 44


def truncate_text(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    if max_chars <= 1:
        return '…'
    return text[:max_chars-1] + '…'


def approx_text_px(text: str, font_size: float = 12, bold: bool = False) -> int:
    """Rough advance width of proportional sans-serif text, in em fractions per glyph."""
    em = 0.0
    for ch in text:
        if ch in NARROW_CHARS:
            em += 0.3
        elif ch in WIDE_CHARS:
            em += 0.85
        elif ch.isupper() or ch.isdigit():
            em += 0.65
        else:
            em += 0.55
    # bold text is painted with a 1px stroke on each side
    return int(round(em * font_size)) + (2 if bold else 0)


def _el(parent: etree._Element, tag: str, text: Optional[str] = None, **attrs) -> etree._Element:
    el = etree.SubElement(parent, f"{{{SVG_NS}}}{tag}")
    for k, v in attrs.items():
        el.set(k.replace('_', '-'), str(v))
    if text is not None:
        el.text = text
    return el


def _gradient(defs: etree._Element, grad_id: str, theme: Theme):
    grad = _el(defs, "linearGradient", id=grad_id, x1="0", y1="0", x2="1", y2="1")
    _el(grad, "stop", offset="0%", stop_color=theme.start)
    _el(grad, "stop", offset="100%", stop_color=theme.end)


def _format_stat(value: Optional[int]) -> str:
    return DASH if value is None else str(value)


def _header(root: etree._Element, defs: etree._Element, view: CardView):
    _el(defs, "clipPath", id="avatar-clip").append(
        etree.Element(f"{{{SVG_NS}}}circle", cx="76", cy="124", r="32")
    )
    avatar_src = None
    if view.profile is not None and not view.loading_profile:
        avatar_src = view.avatar.src if view.avatar else view.profile.avatar_url
    if avatar_src:
        _el(root, "image", x=44, y=92, width=64, height=64, href=avatar_src,
            clip_path="url(#avatar-clip)", preserveAspectRatio="xMidYMid slice", id="avatar")
    else:
        _el(root, "rect", x=44, y=92, width=64, height=64, rx=32, fill=PLACEHOLDER, id="avatar")

    if view.loading_profile:
        login = "Loading..."
    else:
        login = view.login or "Unknown"
    _el(root, "text", "Trainer", x=124, y=112, font_size=13, fill=MUTED)
    _el(root, "text", truncate_text(login, MAX_LOGIN_CHARS), x=124, y=140,
        font_size=20, font_weight="bold", fill=INK, id="login")


def _partner(root: etree._Element, defs: etree._Element, view: CardView):
    _el(root, "text", "Partner Pokémon", x=44, y=196, font_size=17, font_weight="bold", fill=INK)
    sp = view.species
    sprite_src = None
    if sp is not None and sp.sprite_url:
        sprite_src = view.sprite.src if view.sprite else sp.sprite_url
    if sprite_src:
        _el(root, "image", x=44, y=212, width=112, height=112, href=sprite_src,
            preserveAspectRatio="xMidYMid meet", style="image-rendering:pixelated", id="sprite")
    else:
        _el(root, "rect", x=44, y=212, width=112, height=112, rx=12, fill="#f1f5f9", id="sprite")
        _el(root, "text", "..." if view.loading_species else "No Pokémon", x=100, y=272,
            font_size=13, fill="#94a3b8", text_anchor="middle")

    name = truncate_text(sp.display_name, MAX_NAME_CHARS) if sp else DASH
    _el(root, "text", "Name", x=176, y=228, font_size=13, fill=MUTED)
    _el(root, "text", name, x=176, y=254, font_size=20, font_weight="bold", fill=INK, id="species_name")
    _el(root, "text", "Type(s)", x=176, y=284, font_size=13, fill=MUTED)

    if sp is None or not sp.types:
        _el(root, "text", DASH, x=176, y=310, font_size=13, fill=INK)
    else:
        cursor_x = 176
        for t in sp.types:
            label = t.name[:1].upper() + t.name[1:]
            width = 16 + approx_text_px(label, font_size=12, bold=True)
            _gradient(defs, f"pill-{t.name}", resolve_theme(t.name, PILL_DEFAULT_THEME))
            _el(root, "rect", x=cursor_x, y=294, width=width, height=24, rx=12,
                fill=f"url(#pill-{t.name})", **{"class": "type-pill"})
            _el(root, "text", label, x=cursor_x + width // 2, y=311, font_size=12,
                font_weight="bold", fill="#ffffff", text_anchor="middle")
            cursor_x += width + 8

    if view.error:
        _el(root, "text", truncate_text(view.error, MAX_ERROR_CHARS), x=44, y=352,
            font_size=13, fill=ERROR_RED, id="error")


def _stats(root: etree._Element, defs: etree._Element, view: CardView):
    theme = resolve_theme(view.primary_type, STAT_DEFAULT_THEME) if view.species else STAT_DEFAULT_THEME
    _gradient(defs, "stat-bg", theme)
    profile = view.profile
    tiles = [
        ("HP", "hp_data", view.account_age_days),
        ("Attack", "attack_data", view.commit_count),
        ("Defense", "defense_data", profile.public_repos if profile else None),
        ("Charm", "charm_data", profile.followers if profile else None),
    ]
    _el(root, "text", "Stats", x=392, y=112, font_size=17, font_weight="bold", fill=INK)
    for i, (label, stat_id, value) in enumerate(tiles):
        x = 392 + (i % 2) * 156
        y = 128 + (i // 2) * 76
        _el(root, "rect", x=x, y=y, width=144, height=64, rx=10, fill="url(#stat-bg)")
        _el(root, "text", label, x=x + 12, y=y + 22, font_size=12, fill="#ffffff", fill_opacity="0.9")
        _el(root, "text", _format_stat(value), x=x + 12, y=y + 50, font_size=20,
            font_weight="bold", fill="#ffffff", id=stat_id)


def render_card(view: CardView) -> etree._Element:
    """Lay out ``view`` as an SVG card and return the root element."""
    root = etree.Element(f"{{{SVG_NS}}}svg", nsmap={None: SVG_NS, "xlink": XLINK_NS})
    root.set("width", str(CARD_WIDTH))
    root.set("height", str(CARD_HEIGHT))
    root.set("viewBox", f"0 0 {CARD_WIDTH} {CARD_HEIGHT}")
    root.set("data-state", view.state)
    defs = _el(root, "defs")

    theme = resolve_theme(view.primary_type) if view.species else DEFAULT_THEME
    _gradient(defs, "card-bg", theme)
    _el(root, "rect", x=0, y=0, width=CARD_WIDTH, height=CARD_HEIGHT, rx=24, fill="url(#card-bg)", id="card")
    _el(root, "text", TITLE, x=28, y=48, font_size=24, font_weight="bold", fill="#ffffff")
    _el(root, "rect", x=20, y=68, width=680, height=352, rx=16, fill="#ffffff", fill_opacity="0.85")

    _header(root, defs, view)
    _partner(root, defs, view)
    _stats(root, defs, view)
    return root


def image_hrefs(surface: etree._Element) -> List[str]:
    hrefs = []
    for img in surface.iter(f"{{{SVG_NS}}}image"):
        href = img.get("href") or img.get(f"{{{XLINK_NS}}}href")
        if href:
            hrefs.append(href)
    return hrefs


def to_svg_bytes(surface: etree._Element) -> bytes:
    return etree.tostring(surface, encoding="utf-8", xml_declaration=True)
