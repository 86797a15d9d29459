"""Raster renderer: paints placed tiles onto an RGBA pixel buffer.

Tiles are drawn as solid squares inset by half the padding on every side, so
neighbouring tiles are always separated by a gutter of background pixels and
each tile reads back as its own 4-connected component.

The buffer round-trips through PNG (Pillow) for transport.
"""

from __future__ import annotations

import base64
import binascii
import io
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray
from PIL import Image, UnidentifiedImageError

from mondrian.engine.config import DEFAULT_CONFIG
from mondrian.engine.layout import PlacedTile

_DATA_URL_PREFIX = "data:image/png;base64,"

# RGBA channel count and opaque alpha
_CHANNELS = 4
_OPAQUE = 255


class ImageDecodeError(ValueError):
    """Raised when an image payload cannot be decoded into pixels."""


# ---------------------------------------------------------------------------
# Pixel buffer
# ---------------------------------------------------------------------------

@dataclass
class PixelBuffer:
    """Row-major RGBA image, ``pixels.shape == (height, width, 4)``, uint8."""
    pixels: NDArray[np.uint8]

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def to_png(self) -> bytes:
        return encode_png(self)

    def to_data_url(self) -> str:
        return _DATA_URL_PREFIX + base64.b64encode(self.to_png()).decode("ascii")


def blank_buffer(width: int, height: int,
                 background: tuple[int, int, int] = DEFAULT_CONFIG.background_color) -> PixelBuffer:
    pixels = np.empty((height, width, _CHANNELS), dtype=np.uint8)
    pixels[:, :, :3] = background
    pixels[:, :, 3] = _OPAQUE
    return PixelBuffer(pixels)


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def _px(value: float) -> int:
    # Round half up; Python's round() is banker's rounding
    return int(math.floor(value + 0.5))


def canvas_scale(layout_width: int, min_canvas_size: int = DEFAULT_CONFIG.min_canvas_size,
                 cell_size: int = DEFAULT_CONFIG.cell_size) -> tuple[int, float]:
    """Initial canvas size and grid-to-pixel scale for a layout ``layout_width`` wide.

    The canvas is at least ``min_canvas_size`` and gives each grid unit at
    least ``cell_size`` pixels; the scale stretches the grid across it.
    """
    layout_width = max(1, layout_width)
    initial = max(min_canvas_size, layout_width * cell_size)
    return initial, initial / layout_width


def tile_rect(tile: PlacedTile, scale: float,
              padding: int = DEFAULT_CONFIG.tile_padding) -> tuple[int, int, int, int]:
    """Pixel rectangle ``(x0, y0, x1, y1)`` (end-exclusive) painted for a tile."""
    inset = padding / 2
    x0 = _px(tile.grid_x * scale + inset)
    y0 = _px(tile.grid_y * scale + inset)
    x1 = _px(tile.right * scale - inset)
    y1 = _px(tile.bottom * scale - inset)
    return x0, y0, x1, y1


def canvas_size(tiles: Sequence[PlacedTile], scale: float,
                min_canvas_size: int = DEFAULT_CONFIG.min_canvas_size,
                margin: int = DEFAULT_CONFIG.canvas_margin) -> tuple[int, int]:
    """Buffer (width, height): collisions can push tiles past the naive estimate."""
    max_x = max((tile.right * scale for tile in tiles), default=0.0)
    max_y = max((tile.bottom * scale for tile in tiles), default=0.0)
    width = max(min_canvas_size, int(math.ceil(max_x + margin)))
    height = max(min_canvas_size, int(math.ceil(max_y + margin)))
    return width, height


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render(
    tiles: Sequence[PlacedTile],
    scale: float,
    background: tuple[int, int, int] = DEFAULT_CONFIG.background_color,
    tile_color: tuple[int, int, int] = DEFAULT_CONFIG.tile_color,
    *,
    min_canvas_size: int = DEFAULT_CONFIG.min_canvas_size,
    padding: int = DEFAULT_CONFIG.tile_padding,
    margin: int = DEFAULT_CONFIG.canvas_margin,
) -> PixelBuffer:
    """Paint ``tiles`` (grid units) at ``scale`` pixels per unit."""
    width, height = canvas_size(tiles, scale, min_canvas_size, margin)
    buffer = blank_buffer(width, height, background)
    for tile in tiles:
        x0, y0, x1, y1 = tile_rect(tile, scale, padding)
        if x1 <= x0 or y1 <= y0:
            continue
        buffer.pixels[y0:y1, x0:x1, :3] = tile_color
    return buffer


# ---------------------------------------------------------------------------
# PNG codec
# ---------------------------------------------------------------------------

def encode_png(buffer: PixelBuffer) -> bytes:
    out = io.BytesIO()
    Image.fromarray(buffer.pixels).save(out, format="PNG")
    return out.getvalue()


def decode_png(data: bytes) -> PixelBuffer:
    """Decode any Pillow-readable image into an RGBA buffer."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return PixelBuffer(np.array(img.convert("RGBA"), dtype=np.uint8))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(str(e)) from e


def payload_to_bytes(payload: str | bytes) -> bytes:
    """Accept raw bytes, bare base64, or a ``data:image/...;base64,`` URL."""
    if isinstance(payload, bytes):
        return payload
    text = payload.strip()
    if text.startswith("data:"):
        _, _, text = text.partition(",")
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"invalid base64 image payload: {e}") from e
