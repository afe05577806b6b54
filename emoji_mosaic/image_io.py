"""Image decoding and PNG encoding (Pillow)."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from emoji_mosaic.errors import DecodeFailure, InvalidInput
from emoji_mosaic.pixels import PixelGrid, build_pixel_grid

logger = logging.getLogger(__name__)


def decode_image(source: str | Path | bytes) -> tuple[int, int, bytes]:
    """Decode a file path or encoded byte buffer.

    Returns:
        ``(width, height, rgba_bytes)`` with ``width * height * 4`` bytes.

    Raises:
        DecodeFailure: missing, unreadable or corrupt image.
    """
    label = "<bytes>" if isinstance(source, (bytes, bytearray)) else str(source)
    try:
        fp = io.BytesIO(source) if isinstance(source, (bytes, bytearray)) else source
        with Image.open(fp) as img:
            rgba = img.convert("RGBA")
            width, height = rgba.size
            data = rgba.tobytes()
    except FileNotFoundError:
        msg = f"Image not found: {label}"
        raise DecodeFailure(msg) from None
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        msg = f"Cannot decode image {label}: {exc}"
        raise DecodeFailure(msg) from exc

    logger.debug("Decoded %s (%dx%d)", label, width, height)
    return width, height, data


def load_pixel_grid(source: str | Path | bytes) -> PixelGrid:
    """Decode *source* straight into a :class:`PixelGrid`."""
    width, height, data = decode_image(source)
    return build_pixel_grid(data, width, height)


def save_png(
    array: np.ndarray,
    path: str | Path,
    upscale: int = 1,
) -> Path:
    """Save an (H, W, 3|4) uint8 raster as PNG, nearest-neighbour upscaled."""
    if array.ndim != 3 or array.shape[2] not in (3, 4):
        msg = f"Expected an (H, W, 3) or (H, W, 4) raster, got shape {array.shape}"
        raise InvalidInput(msg)
    if array.shape[0] == 0 or array.shape[1] == 0:
        msg = "Cannot encode an empty raster"
        raise InvalidInput(msg)
    if upscale < 1:
        msg = f"Upscale must be >= 1, got {upscale}"
        raise InvalidInput(msg)

    img = Image.fromarray(np.ascontiguousarray(array, dtype=np.uint8))
    if upscale > 1:
        h, w = array.shape[:2]
        img = img.resize((w * upscale, h * upscale), Image.NEAREST)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    img.save(path, format="PNG")
    logger.debug("Wrote %s (%dx%d)", path, img.width, img.height)
    return path
