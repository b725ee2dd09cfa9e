"""Rasterize a rendered card surface to PNG with Pillow."""

from __future__ import annotations
import base64
import binascii
import io
import re
from pathlib import Path
from typing import Dict, Optional, Tuple

from lxml import etree
from PIL import Image, ImageChops, ImageColor, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError

from . import config
from .config import debug, warn
from .errors import ExportFailure
from .render import SVG_NS, XLINK_NS

DATA_URI = re.compile(r'^data:([^;,]*)((?:;[^;,]*)*),(.*)$', re.DOTALL)
URL_REF = re.compile(r'^url\(#([^)]+)\)$')
ANCHORS = {"start": "ls", "middle": "ms", "end": "rs"}
UNSAFE_FILENAME = re.compile(r'[\\/\x00]+')


def export_filename(login: Optional[str], username: Optional[str]) -> str:
    """Card file name; path separators in the name are replaced so it stays one path component."""
    stem = UNSAFE_FILENAME.sub("_", login or username or "") or "github"
    return f"{stem}-pokemon-card.png"


def _local(el: etree._Element) -> str:
    if not isinstance(el.tag, str):
        return ""
    return etree.QName(el).localname


def _num(el: etree._Element, name: str, default: float = 0.0) -> float:
    raw = el.get(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ExportFailure(f"bad {name}={raw!r} on <{_local(el)}>") from e


def _color(value: str, opacity: float = 1.0) -> Tuple[int, int, int, int]:
    try:
        rgb = ImageColor.getrgb(value)
    except ValueError as e:
        raise ExportFailure(f"unsupported color {value!r}") from e
    alpha = rgb[3] if len(rgb) == 4 else 255
    return rgb[0], rgb[1], rgb[2], int(round(alpha * opacity))


def _diagonal_gradient(size: Tuple[int, int], start: str, end: str) -> Image.Image:
    """Top-left to bottom-right two-stop gradient."""
    ramp = Image.linear_gradient("L").rotate(45, resample=Image.Resampling.BILINEAR, expand=True)
    side = int(256 / 2 ** 0.5) - 2
    cx, cy = ramp.size[0] // 2, ramp.size[1] // 2
    ramp = ramp.crop((cx - side // 2, cy - side // 2, cx + side // 2, cy + side // 2))
    mask = ramp.resize(size, Image.Resampling.BILINEAR)
    return Image.composite(Image.new("RGBA", size, _color(end)), Image.new("RGBA", size, _color(start)), mask)


class _Painter:
    def __init__(self, surface: etree._Element, scale: float, strict: bool):
        self.surface = surface
        self.scale = scale
        self.strict = strict
        self.gradients: Dict[str, Tuple[str, str]] = {}
        self.clips: Dict[str, Tuple[float, float, float]] = {}
        self.fonts: Dict[int, ImageFont.FreeTypeFont] = {}
        width = _num(surface, "width")
        height = _num(surface, "height")
        if width <= 0 or height <= 0:
            raise ExportFailure("card surface has no size")
        self.canvas = Image.new("RGBA", (self._px(width), self._px(height)), (0, 0, 0, 0))

    def _px(self, v: float) -> int:
        return int(round(v * self.scale))

    def _font(self, size: float):
        px = max(1, self._px(size))
        if px not in self.fonts:
            font = None
            if config.FONT_PATH:
                try:
                    font = ImageFont.truetype(config.FONT_PATH, px)
                except OSError as e:
                    debug(f"font {config.FONT_PATH} unusable: {e}")
            self.fonts[px] = font or ImageFont.load_default(px)
        return self.fonts[px]

    def _layer(self) -> Image.Image:
        return Image.new("RGBA", self.canvas.size, (0, 0, 0, 0))

    # ------------------ defs ------------------
    def collect_defs(self):
        for defs in self.surface.iter(f"{{{SVG_NS}}}defs"):
            for el in defs:
                kind = _local(el)
                if kind == "linearGradient":
                    stops = [s.get("stop-color") for s in el if _local(s) == "stop"]
                    if len(stops) < 2 or not all(stops):
                        raise ExportFailure(f"gradient {el.get('id')!r} needs two stops")
                    self.gradients[el.get("id")] = (stops[0], stops[-1])
                elif kind == "clipPath":
                    circle = next((c for c in el if _local(c) == "circle"), None)
                    if circle is None:
                        raise ExportFailure(f"clipPath {el.get('id')!r} is not a circle")
                    self.clips[el.get("id")] = (_num(circle, "cx"), _num(circle, "cy"), _num(circle, "r"))

    def _fill_image(self, fill: str, size: Tuple[int, int], opacity: float) -> Image.Image:
        ref = URL_REF.match(fill)
        if ref is None:
            return Image.new("RGBA", size, _color(fill, opacity))
        grad = self.gradients.get(ref.group(1))
        if grad is None:
            raise ExportFailure(f"unknown paint server {fill!r}")
        img = _diagonal_gradient(size, *grad)
        if opacity < 1:
            img.putalpha(img.getchannel("A").point(lambda a: int(a * opacity)))
        return img

    # ------------------ shapes ------------------
    def rect(self, el: etree._Element):
        x, y = self._px(_num(el, "x")), self._px(_num(el, "y"))
        w, h = self._px(_num(el, "width")), self._px(_num(el, "height"))
        if w <= 0 or h <= 0:
            return
        opacity = _num(el, "fill-opacity", 1.0)
        img = self._fill_image(el.get("fill", "#000000"), (w, h), opacity)
        mask = Image.new("L", (w, h), 0)
        ImageDraw.Draw(mask).rounded_rectangle([0, 0, w - 1, h - 1], radius=self._px(_num(el, "rx")), fill=255)
        img.putalpha(ImageChops.multiply(img.getchannel("A"), mask))
        self.canvas.alpha_composite(img, dest=(x, y))

    def text(self, el: etree._Element):
        content = "".join(el.itertext())
        if not content:
            return
        size = _num(el, "font-size", 16)
        bold = el.get("font-weight") in ("bold", "600", "700", "800", "900")
        fill = _color(el.get("fill", "#000000"), _num(el, "fill-opacity", 1.0))
        layer = self._layer()
        ImageDraw.Draw(layer).text(
            (self._px(_num(el, "x")), self._px(_num(el, "y"))),
            content,
            font=self._font(size),
            fill=fill,
            anchor=ANCHORS.get(el.get("text-anchor", "start"), "ls"),
            stroke_width=1 if bold else 0,
            stroke_fill=fill,
        )
        self.canvas.alpha_composite(layer)

    def image(self, el: etree._Element):
        href = el.get("href") or el.get(f"{{{XLINK_NS}}}href") or ""
        m = DATA_URI.match(href)
        if m is None:
            if self.strict:
                raise ExportFailure(f"image {href!r} is not inlined and cannot be read")
            warn(f"skipping remote image {href}")
            return
        params, payload = m.group(2), m.group(3)
        try:
            raw = base64.b64decode(payload, validate=True) if ";base64" in params else payload.encode("latin-1")
            with Image.open(io.BytesIO(raw)) as src:
                img = src.convert("RGBA")
        except (binascii.Error, UnicodeEncodeError, UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ExportFailure(f"cannot decode image <{el.get('id') or 'image'}>: {e}") from e

        x, y = _num(el, "x"), _num(el, "y")
        w, h = self._px(_num(el, "width")), self._px(_num(el, "height"))
        if w <= 0 or h <= 0:
            return
        resample = Image.Resampling.NEAREST if "pixelated" in el.get("style", "") else Image.Resampling.LANCZOS
        if "slice" in el.get("preserveAspectRatio", ""):
            fitted = ImageOps.fit(img, (w, h), method=resample)
        else:
            fitted = Image.new("RGBA", (w, h), (0, 0, 0, 0))
            inner = ImageOps.contain(img, (w, h), method=resample)
            fitted.paste(inner, ((w - inner.width) // 2, (h - inner.height) // 2))

        clip = URL_REF.match(el.get("clip-path", ""))
        if clip is not None:
            circle = self.clips.get(clip.group(1))
            if circle is None:
                raise ExportFailure(f"unknown clip path {clip.group(1)!r}")
            cx, cy, r = circle
            mask = Image.new("L", (w, h), 0)
            ImageDraw.Draw(mask).ellipse(
                [self._px(cx - r - x), self._px(cy - r - y), self._px(cx + r - x) - 1, self._px(cy + r - y) - 1],
                fill=255,
            )
            fitted.putalpha(ImageChops.multiply(fitted.getchannel("A"), mask))
        self.canvas.alpha_composite(fitted, dest=(self._px(x), self._px(y)))

    def paint(self) -> Image.Image:
        self.collect_defs()
        for el in self.surface:
            kind = _local(el)
            handler = getattr(self, kind, None) if kind in ("rect", "text", "image") else None
            if handler is None:
                if kind != "defs":
                    debug(f"export ignores <{kind}>")
                continue
            handler(el)
        return self.canvas


def export_png(surface: Optional[etree._Element], *, strict: bool = False, scale: float = 1) -> bytes:
    """Rasterize ``surface`` and return PNG bytes.

    Images that were not inlined are skipped with a warning, or fail the export
    when ``strict`` is set.
    """
    if surface is None:
        raise ExportFailure("card has not been rendered yet")
    if not isinstance(surface, etree._Element) or _local(surface) != "svg":
        raise ExportFailure("surface is not an SVG card")
    if scale <= 0:
        raise ExportFailure(f"invalid scale {scale}")
    canvas = _Painter(surface, scale, strict).paint()
    buf = io.BytesIO()
    canvas.save(buf, format="PNG")
    return buf.getvalue()


def save_png(
    surface: Optional[etree._Element],
    directory,
    login: Optional[str] = None,
    username: Optional[str] = None,
    *,
    strict: bool = False,
    scale: float = 1,
) -> Path:
    data = export_png(surface, strict=strict, scale=scale)
    out_dir = Path(directory)
    path = out_dir / export_filename(login, username)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise ExportFailure(f"cannot write {path}: {e}") from e
    debug(f"wrote {path} ({len(data)} bytes)")
    return path
