"""Pipeline: items -> size tiers -> packed tiles -> raster -> reconstructed squares."""

from __future__ import annotations

import asyncio
import functools
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from mondrian.engine.cache import CacheKey, SquareCache
from mondrian.engine.classifier import block_weight, classify, weight_from_outputs
from mondrian.engine.config import DEFAULT_CONFIG, MondrianConfig
from mondrian.engine.layout import Layout, PlacedTile, pack
from mondrian.engine.reconstruction import ColorPredicate, ReconstructionResult, reconstruct
from mondrian.engine.renderer import (
    ImageDecodeError,
    PixelBuffer,
    blank_buffer,
    canvas_scale,
    decode_png,
    payload_to_bytes,
    render,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Item:
    id: str
    raw_weight: float = 0

    @classmethod
    def from_outputs(cls, item_id: str, outputs: Sequence[dict[str, Any]] | None) -> Item:
        return cls(item_id, weight_from_outputs(outputs))


@dataclass
class Visualization:
    """Everything produced for one render call."""
    buffer: PixelBuffer
    tiles: list[PlacedTile] = field(default_factory=list)
    grid_width: int = 0
    grid_height: int = 0
    scale: float = 0.0
    layout: Layout | None = None


def size_items(items: Sequence[Item], max_tier: int | None = None,
               config: MondrianConfig = DEFAULT_CONFIG) -> list[int]:
    return [classify(item.raw_weight, max_tier, config.size_offset) for item in items]


def layout_width(tiers: Sequence[int]) -> int:
    """Square-ish grid: side of a square holding the total tile area."""
    return max(1, math.ceil(math.sqrt(block_weight(tiers))))


def build_layout(items: Sequence[Item], max_tier: int | None = None,
                 config: MondrianConfig = DEFAULT_CONFIG) -> Layout:
    tiers = size_items(items, max_tier, config)
    return pack(tiers, layout_width(tiers), list(items))


def generate_visualization(items: Sequence[Item], max_tier: int | None = None,
                           config: MondrianConfig = DEFAULT_CONFIG) -> Visualization:
    """Pack and paint ``items``; no items gives a blank minimum-size canvas."""
    if not items:
        size = config.min_canvas_size
        return Visualization(buffer=blank_buffer(size, size, config.background_color))

    layout = build_layout(items, max_tier, config)
    initial, scale = canvas_scale(layout.width, config.min_canvas_size, config.cell_size)
    buffer = render(
        layout.tiles,
        scale,
        config.background_color,
        config.tile_color,
        min_canvas_size=initial,
        padding=config.tile_padding,
        margin=config.canvas_margin,
    )
    logger.info(
        "Rendered %d tiles on %dx%d grid -> %dx%d px",
        len(layout.tiles), layout.width, layout.height, buffer.width, buffer.height,
    )
    return Visualization(
        buffer=buffer,
        tiles=list(layout.tiles),
        grid_width=layout.width,
        grid_height=layout.height,
        scale=scale,
        layout=layout,
    )


async def decode_image(payload: str | bytes) -> PixelBuffer:
    """Decode an image payload off the event loop."""
    data = payload_to_bytes(payload)
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, decode_png, data)


async def reconstruct_image(
    payload: str | bytes,
    predicate: ColorPredicate | None = None,
    config: MondrianConfig = DEFAULT_CONFIG,
) -> ReconstructionResult:
    """Decode, then reconstruct; an undecodable payload yields an empty result."""
    try:
        buffer = await decode_image(payload)
    except ImageDecodeError as e:
        logger.warning("Image decode failed: %s", e)
        return ReconstructionResult(decode_failed=True)
    return reconstruct(buffer, predicate, config)


async def reconstruct_image_cached(
    cache: SquareCache,
    key: CacheKey,
    payload: str | bytes,
    config: MondrianConfig = DEFAULT_CONFIG,
) -> tuple[ReconstructionResult, bool]:
    """Cached variant of ``reconstruct_image``; returns (result, was_cached).

    Decode failures are reported but never cached.
    """
    cached = cache.get(key)
    if cached is not None:
        return cached, True

    try:
        buffer = await decode_image(payload)
    except ImageDecodeError as e:
        logger.warning("Image decode failed for %s: %s", key, e)
        return ReconstructionResult(decode_failed=True), False

    loop = asyncio.get_running_loop()
    compute = functools.partial(reconstruct, buffer, None, config)
    return await loop.run_in_executor(None, cache.fetch, key, compute)


def visualize_cached(
    cache: SquareCache,
    dataset_id: str,
    items: Sequence[Item],
    max_tier: int | None = None,
    config: MondrianConfig = DEFAULT_CONFIG,
) -> tuple[Visualization, ReconstructionResult, bool]:
    """Render ``items`` and reconstruct them, reusing cached squares when present.

    The cache key is ``(dataset_id, len(items))``. A tier cap changes the
    picture, so a capped render is stored under ``"<dataset_id>@max_tier=N"``
    and never shares squares with an uncapped or differently capped one.
    """
    if max_tier is not None:
        dataset_id = f"{dataset_id}@max_tier={max_tier}"
    key = CacheKey(dataset_id, len(items))
    viz = generate_visualization(items, max_tier, config)
    result, was_cached = cache.fetch(key, lambda: reconstruct(viz.buffer, None, config))
    return viz, result, was_cached
