"""Turn remote images into data URIs so a card renders without network access."""

from __future__ import annotations
import base64
import io
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from . import config
from .config import debug
from .errors import InlineFailure
from .models import INLINED, REMOTE, ImageRef, InlinedAsset


def _sniff_mime(content: bytes) -> str:
    try:
        with Image.open(io.BytesIO(content)) as img:
            fmt = img.format
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError) as e:
        raise InlineFailure(f"unreadable image payload: {e}") from e
    mime = Image.MIME.get(fmt or "")
    if not mime:
        raise InlineFailure(f"unsupported image format {fmt!r}")
    return mime


def inline_asset(url: str, *, session=None, timeout: float = config.REQUEST_TIMEOUT) -> InlinedAsset:
    http = session or requests
    try:
        r = http.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise InlineFailure(f"{url}: {e}") from e
    if not 200 <= r.status_code < 300:
        raise InlineFailure(f"{url}: status {r.status_code}")
    content = r.content or b""
    if not content:
        raise InlineFailure(f"{url}: empty body")
    mime = _sniff_mime(content)
    b64 = base64.b64encode(content).decode("ascii")
    return InlinedAsset(source=url, data_uri=f"data:{mime};base64,{b64}", mime_type=mime, size=len(content))


def inline_or_fallback(url: Optional[str], **kwargs) -> Optional[ImageRef]:
    """Inline ``url`` when possible, otherwise keep the remote url as the image source."""
    if not url:
        return None
    try:
        asset = inline_asset(url, **kwargs)
    except InlineFailure as e:
        debug(f"inline fallback to remote: {e}")
        return ImageRef(src=url, provenance=REMOTE)
    return ImageRef(src=asset.data_uri, provenance=INLINED)
