"""
Liquid Glass — Bitmap Encoding
Turns RGBA buffers into embeddable image hrefs (PNG data URLs).

The rest of the core only sees the Encoder signature and treats the href as
opaque; swap in another encoder (e.g. one that writes files and returns
paths) by passing it to GlassFilter.
"""

import base64
import logging
from io import BytesIO
from typing import Callable

import numpy as np
from PIL import Image

from core.safety import ResourceError

logger = logging.getLogger(__name__)

Encoder = Callable[[np.ndarray], str]

DATA_URL_PREFIX = "data:image/png;base64,"


def encode_png_data_url(rgba: np.ndarray) -> str:
    """Encode an (H, W, 4) uint8 RGBA buffer as a PNG data URL.

    PNG keeps every sample exact, which the displacement channels rely on.
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected (H, W, 4) RGBA buffer, got shape {rgba.shape}")
    img = Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8))
    buf = BytesIO()
    img.save(buf, format="PNG")
    b64 = base64.b64encode(buf.getvalue()).decode()
    return f"{DATA_URL_PREFIX}{b64}"


def decode_data_url(href: str) -> np.ndarray:
    """Decode a base64 image data URL back into an (H, W, 4) uint8 array."""
    if not href.startswith("data:") or "," not in href:
        raise ResourceError(f"Not a data URL: {href[:40]!r}")
    header, payload = href.split(",", 1)
    if ";base64" not in header:
        raise ResourceError(f"Only base64 data URLs are supported: {header!r}")
    try:
        img = Image.open(BytesIO(base64.b64decode(payload)))
        return np.array(img.convert("RGBA"))
    except Exception as e:
        raise ResourceError(f"Could not decode image data URL: {e}") from e


def encode_bitmap(bitmap, encoder: Encoder = encode_png_data_url) -> str:
    """Run a bitmap through an encoder, wrapping failures in ResourceError.

    Args:
        bitmap: Anything with a to_rgba() method (VectorBitmap, ScalarBitmap)
            or a raw RGBA array.
        encoder: RGBA -> href callable.

    Raises:
        ResourceError: If the encoder fails or returns an empty href.
    """
    rgba = bitmap.to_rgba() if hasattr(bitmap, "to_rgba") else bitmap
    try:
        href = encoder(rgba)
    except Exception as e:
        logger.error("Bitmap encode failed for %sx%s buffer: %s", rgba.shape[1], rgba.shape[0], e)
        raise ResourceError(f"Bitmap encode failed: {e}") from e
    if not href:
        raise ResourceError("Bitmap encoder returned an empty reference")
    return href
