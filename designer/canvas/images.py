from __future__ import annotations

import io
import os
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import requests
from PIL import Image, UnidentifiedImageError

from designer.core.errors import ResourceLoadFailure
from designer.core.state import UPLOAD_MAX_RATIO

logger = logging.getLogger(__name__)

ImageSource = Union[str, Path, bytes]


def mockup_source(root: Union[str, Path], category: str, color: str) -> str:
    """Return where the mockup for ``category``/``color`` lives.

    ``root`` is either a local directory or an http(s) base URL; the file is
    always ``{root}/{category}/{color}.png``.
    """
    root_s = str(root)
    if root_s.startswith(("http://", "https://")):
        return f"{root_s.rstrip('/')}/{category}/{color}.png"
    return str(Path(root_s) / category / f"{color}.png")


def describe_source(source: Any) -> str:
    if isinstance(source, (bytes, bytearray)):
        return "<bytes>"
    s = str(source)
    if s.startswith("data:"):
        return "<data-uri>"
    return s


def _decode_data_uri(uri: str) -> bytes:
    header, _, payload = uri.partition(",")
    if not header.startswith("data:") or not payload:
        raise ValueError("Malformed data URI")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=True)
    return payload.encode("utf-8")


def fetch_bytes(url: str, timeout: float = 10.0) -> bytes:
    """Download ``url`` anonymously (no cookies, no auth)."""
    with requests.Session() as session:
        session.trust_env = False
        resp = session.get(url, timeout=timeout, allow_redirects=True)
        resp.raise_for_status()
        return resp.content


def open_image(source: ImageSource, timeout: float = 10.0) -> Image.Image:
    """Decode an image from a path, http(s) URL, data URI or raw bytes.

    The returned image is fully loaded and converted to RGBA so that the file
    handle is released and transparency survives scaling.

    Raises:
        ResourceLoadFailure: when the resource cannot be fetched or decoded.
    """
    label = describe_source(source)
    try:
        if isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        else:
            s = str(source)
            if s.startswith("data:"):
                data = _decode_data_uri(s)
            elif s.startswith(("http://", "https://")):
                data = fetch_bytes(s, timeout=timeout)
            else:
                if not os.path.exists(s):
                    raise ResourceLoadFailure(f"Image not found: {s}", source=label)
                data = Path(s).read_bytes()
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except ResourceLoadFailure:
        raise
    except requests.RequestException as e:
        raise ResourceLoadFailure(f"Failed to download image: {e}", source=label) from e
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ResourceLoadFailure(f"Failed to decode image: {e}", source=label) from e
    except MemoryError as e:
        raise ResourceLoadFailure("Not enough memory to decode image", source=label) from e


def read_as_data_uri(blob: Any) -> str:
    """Read an uploaded file once and return it as a ``data:`` URI.

    ``blob`` may be a filesystem path, raw bytes, or a binary file object.
    The MIME type comes from the file name when there is one, otherwise
    ``application/octet-stream``.

    Raises:
        ResourceLoadFailure: when the file cannot be read.
    """
    name: Optional[str] = None
    try:
        if isinstance(blob, (bytes, bytearray)):
            data = bytes(blob)
        elif isinstance(blob, (str, Path)):
            name = str(blob)
            data = Path(blob).read_bytes()
        elif hasattr(blob, "read"):
            name = getattr(blob, "name", None)
            data = blob.read()
            if isinstance(data, str):
                raise ValueError("Upload must be opened in binary mode")
        else:
            raise ValueError(f"Unsupported upload type: {type(blob).__name__}")
    except (OSError, ValueError) as e:
        raise ResourceLoadFailure(f"Failed to read upload: {e}", source=name or "<upload>") from e

    mime = None
    if name:
        mime, _ = mimetypes.guess_type(str(name))
    mime = mime or "application/octet-stream"
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def fill_scale(canvas_w: float, canvas_h: float, img_w: float, img_h: float) -> Tuple[float, float]:
    """Per-axis scale that stretches an image to exactly cover the canvas."""
    if img_w <= 0 or img_h <= 0:
        raise ValueError("Image has no size")
    return float(canvas_w) / float(img_w), float(canvas_h) / float(img_h)


def contain_scale(canvas_w: float, canvas_h: float, img_w: float, img_h: float,
                  ratio: float = UPLOAD_MAX_RATIO) -> float:
    """Uniform scale that fits an image inside ``ratio`` of the canvas.

    Images already inside the bounds keep scale 1 (never upscaled).
    """
    if img_w <= 0 or img_h <= 0:
        raise ValueError("Image has no size")
    max_w = float(canvas_w) * ratio
    max_h = float(canvas_h) * ratio
    if img_w > max_w or img_h > max_h:
        return min(max_w / float(img_w), max_h / float(img_h))
    return 1.0
