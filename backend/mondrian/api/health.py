"""Health check + meta endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from mondrian.dependencies import get_square_cache
from mondrian.engine.cache import SquareCache
from mondrian.models.responses import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(cache: SquareCache = Depends(get_square_cache)) -> HealthResponse:
    return HealthResponse(status="ok", version="0.1.0", cache_entries=len(cache))


@router.get("/cache")
async def cache_stats(cache: SquareCache = Depends(get_square_cache)) -> dict[str, int]:
    return cache.stats()
