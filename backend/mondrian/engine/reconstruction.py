"""Reconstruction engine: recovers tile geometry from a rendered buffer.

Scans the buffer in row-major order and flood-fills every 4-connected run of
tile-colored pixels it has not seen yet, keeping only the bounding box of
each run. Each box becomes an axis-aligned block for the 3D extrusion view.

The fill is iterative with an explicit stack so pathological images cannot
exhaust the interpreter's recursion limit. Two safety valves bound the work:

- at most ``max_components`` components are reported; scanning stops at the
  first new component past the cap and the result is marked ``truncated``;
- a single fill stops after ``max_component_pixels`` pixels and keeps the
  bounding box accumulated so far.

Neither valve raises; both log a warning and flag the result.

``sequence_index`` is the discovery order of each component's first pixel.
It matches placement order only while every tile's top-left pixel precedes
the next placed tile's in scan order. With mixed sizes that breaks: a later,
smaller tile can drop into a gap left of (or above) an earlier, larger one
and is then discovered first. Treat it as a positional hint, not as an item
index.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from mondrian.engine.config import DEFAULT_CONFIG, MondrianConfig
from mondrian.engine.renderer import PixelBuffer

logger = logging.getLogger(__name__)

ColorPredicate = Callable[[NDArray[np.uint8]], NDArray[np.bool_]]


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TileColorBand:
    """Tolerance band around the tile color (all bounds exclusive).

    A band rather than an exact match absorbs anti-aliased edges and lossy
    re-encoding by whoever rendered the image.
    """
    red_min: int = DEFAULT_CONFIG.band_red_min
    green_min: int = DEFAULT_CONFIG.band_green_min
    green_max: int = DEFAULT_CONFIG.band_green_max
    blue_max: int = DEFAULT_CONFIG.band_blue_max

    @classmethod
    def from_config(cls, config: MondrianConfig) -> TileColorBand:
        return cls(config.band_red_min, config.band_green_min,
                   config.band_green_max, config.band_blue_max)

    def __call__(self, pixels: NDArray[np.uint8]) -> NDArray[np.bool_]:
        r = pixels[..., 0]
        g = pixels[..., 1]
        b = pixels[..., 2]
        return (r > self.red_min) & (g > self.green_min) & (g < self.green_max) & (b < self.blue_max)


@dataclass
class ReconstructedSquare:
    """One recovered tile, in world units centred on the buffer middle."""
    center_x: float
    center_z: float
    width: float
    depth: float
    extruded_height: float
    sequence_index: int
    bbox: tuple[int, int, int, int]  # min_x, min_y, max_x, max_y (pixels, inclusive)

    def contains_pixel(self, px: float, py: float) -> bool:
        min_x, min_y, max_x, max_y = self.bbox
        return min_x <= px <= max_x and min_y <= py <= max_y


@dataclass
class ReconstructionResult:
    squares: list[ReconstructedSquare] = field(default_factory=list)
    truncated: bool = False           # component cap reached
    oversized_components: int = 0     # fills stopped by the pixel cap
    pixels_visited: int = 0
    decode_failed: bool = False

    def __len__(self) -> int:
        return len(self.squares)


# ---------------------------------------------------------------------------
# Flood fill
# ---------------------------------------------------------------------------

def _flood_fill(
    mask: NDArray[np.bool_],
    visited: NDArray[np.bool_],
    seed_x: int,
    seed_y: int,
    max_pixels: int,
) -> tuple[tuple[int, int, int, int], int, bool]:
    """4-connected fill from a seed; returns (bbox, pixel count, capped)."""
    height, width = mask.shape
    min_x = max_x = seed_x
    min_y = max_y = seed_y
    count = 0
    capped = False
    stack = [(seed_x, seed_y)]

    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        if visited[y, x] or not mask[y, x]:
            continue
        if count >= max_pixels:
            capped = True
            break
        visited[y, x] = True
        count += 1
        if x < min_x:
            min_x = x
        elif x > max_x:
            max_x = x
        if y < min_y:
            min_y = y
        elif y > max_y:
            max_y = y
        stack.append((x + 1, y))
        stack.append((x - 1, y))
        stack.append((x, y + 1))
        stack.append((x, y - 1))

    return (min_x, min_y, max_x, max_y), count, capped


def _to_square(bbox: tuple[int, int, int, int], index: int,
               canvas_w: int, canvas_h: int, config: MondrianConfig) -> ReconstructedSquare:
    min_x, min_y, max_x, max_y = bbox
    w = max_x - min_x + 1
    h = max_y - min_y + 1
    cx = (min_x + max_x) / 2
    cy = (min_y + max_y) / 2
    scale = config.world_scale
    return ReconstructedSquare(
        center_x=(cx - canvas_w / 2) * scale,
        center_z=(cy - canvas_h / 2) * scale,
        width=w * scale,
        depth=h * scale,
        extruded_height=max(w, h) * scale * config.height_factor + config.base_height,
        sequence_index=index,
        bbox=bbox,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def reconstruct(
    buffer: PixelBuffer,
    predicate: ColorPredicate | None = None,
    config: MondrianConfig = DEFAULT_CONFIG,
) -> ReconstructionResult:
    """Recover one ReconstructedSquare per tile-colored component of ``buffer``."""
    if predicate is None:
        predicate = TileColorBand.from_config(config)

    mask = np.asarray(predicate(buffer.pixels), dtype=bool)
    height, width = mask.shape
    visited = np.zeros((height, width), dtype=bool)
    visited_flat = visited.reshape(-1)
    result = ReconstructionResult()

    # Row-major order of candidate pixels == scan order of the full image
    for flat_index in np.flatnonzero(mask):
        if visited_flat[flat_index]:
            continue
        if len(result.squares) >= config.max_components:
            result.truncated = True
            logger.warning(
                "Component limit reached (%d squares found), stopping scan",
                len(result.squares),
            )
            break

        y, x = divmod(int(flat_index), width)
        bbox, count, capped = _flood_fill(mask, visited, x, y, config.max_component_pixels)
        result.pixels_visited += count
        if capped:
            result.oversized_components += 1
            logger.warning(
                "Component at (%d, %d) exceeded %d pixels, stopping fill early",
                x, y, config.max_component_pixels,
            )
        result.squares.append(_to_square(bbox, len(result.squares), width, height, config))

    logger.info(
        "Reconstructed %d squares from %d pixels (%dx%d buffer)",
        len(result.squares), result.pixels_visited, width, height,
    )
    return result


def square_at(squares: Sequence[ReconstructedSquare], px: float, py: float) -> ReconstructedSquare | None:
    """First square whose pixel bounding box contains ``(px, py)``."""
    for square in squares:
        if square.contains_pixel(px, py):
            return square
    return None
