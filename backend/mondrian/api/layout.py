"""POST /api/layout, /api/render: pack items and paint them.

Packing and painting are CPU-bound, so the handlers are plain functions and
FastAPI runs them in its threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from mondrian.config import Settings
from mondrian.dependencies import get_settings
from mondrian.engine.pipeline import build_layout, generate_visualization
from mondrian.models.requests import LayoutRequest
from mondrian.models.responses import LayoutResponse, RenderResponse, TileOut

router = APIRouter()


@router.post("/layout", response_model=LayoutResponse)
def layout(req: LayoutRequest, settings: Settings = Depends(get_settings)) -> LayoutResponse:
    items = req.to_items()
    if not items:
        return LayoutResponse()
    packed = build_layout(items, req.max_tier or settings.max_tier)
    return LayoutResponse(
        width=packed.width,
        rows=packed.height,
        tiles=[TileOut.from_tile(t, items) for t in packed.tiles],
    )


@router.post("/render", response_model=RenderResponse)
def render(req: LayoutRequest, settings: Settings = Depends(get_settings)) -> RenderResponse:
    items = req.to_items()
    viz = generate_visualization(items, req.max_tier or settings.max_tier)
    return RenderResponse(
        image=viz.buffer.to_data_url(),
        width=viz.buffer.width,
        height=viz.buffer.height,
        grid_width=viz.grid_width,
        grid_height=viz.grid_height,
        scale=viz.scale,
        tiles=[TileOut.from_tile(t, items) for t in viz.tiles],
    )


@router.post("/render.png")
def render_png(req: LayoutRequest, settings: Settings = Depends(get_settings)) -> Response:
    viz = generate_visualization(req.to_items(), req.max_tier or settings.max_tier)
    return Response(content=viz.buffer.to_png(), media_type="image/png")
