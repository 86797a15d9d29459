"""POST /api/reconstruct, /api/visualize: read tile geometry back from pixels."""

from __future__ import annotations

import asyncio
import time

from fastapi import APIRouter, Depends

from mondrian.config import Settings
from mondrian.dependencies import get_settings, get_square_cache
from mondrian.engine.cache import CacheKey, SquareCache
from mondrian.engine.pipeline import reconstruct_image_cached, visualize_cached
from mondrian.models.requests import ReconstructRequest, VisualizeRequest
from mondrian.models.responses import ReconstructResponse, SquareOut, TileOut, VisualizeResponse

router = APIRouter()


@router.post("/reconstruct", response_model=ReconstructResponse)
async def reconstruct(
    req: ReconstructRequest,
    cache: SquareCache = Depends(get_square_cache),
) -> ReconstructResponse:
    start = time.perf_counter()

    key = CacheKey(req.dataset_id, req.item_count)
    result, cached = await reconstruct_image_cached(cache, key, req.image)

    elapsed = (time.perf_counter() - start) * 1000

    return ReconstructResponse(
        squares=[SquareOut.from_square(s) for s in result.squares],
        cached=cached,
        truncated=result.truncated,
        oversized_components=result.oversized_components,
        decode_failed=result.decode_failed,
        processing_time_ms=round(elapsed, 1),
    )


@router.post("/visualize", response_model=VisualizeResponse)
async def visualize(
    req: VisualizeRequest,
    cache: SquareCache = Depends(get_square_cache),
    settings: Settings = Depends(get_settings),
) -> VisualizeResponse:
    start = time.perf_counter()

    items = req.to_items()
    # Pack/render/reconstruct are synchronous; keep them off the event loop
    viz, result, cached = await asyncio.get_running_loop().run_in_executor(
        None, visualize_cached, cache, req.dataset_id, items, req.max_tier or settings.max_tier,
    )

    elapsed = (time.perf_counter() - start) * 1000

    return VisualizeResponse(
        image=viz.buffer.to_data_url(),
        width=viz.buffer.width,
        height=viz.buffer.height,
        tiles=[TileOut.from_tile(t, items) for t in viz.tiles],
        squares=[SquareOut.from_square(s) for s in result.squares],
        cached=cached,
        truncated=result.truncated,
        oversized_components=result.oversized_components,
        processing_time_ms=round(elapsed, 1),
    )
