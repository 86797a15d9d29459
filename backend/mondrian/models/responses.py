"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from mondrian.engine.layout import PlacedTile
from mondrian.engine.pipeline import Item
from mondrian.engine.reconstruction import ReconstructedSquare


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    cache_entries: int = 0


class TileOut(BaseModel):
    item_index: int
    item_id: str
    grid_x: int
    grid_y: int
    side: int

    @classmethod
    def from_tile(cls, tile: PlacedTile, items: list[Item]) -> TileOut:
        return cls(
            item_index=tile.item_index,
            item_id=items[tile.item_index].id,
            grid_x=tile.grid_x,
            grid_y=tile.grid_y,
            side=tile.side,
        )


class LayoutResponse(BaseModel):
    width: int = 0
    rows: int = 0
    tiles: list[TileOut] = Field(default_factory=list)


class RenderResponse(BaseModel):
    image: str
    width: int
    height: int
    grid_width: int = 0
    grid_height: int = 0
    scale: float = 0.0
    tiles: list[TileOut] = Field(default_factory=list)


class SquareOut(BaseModel):
    center_x: float
    center_z: float
    width: float
    depth: float
    extruded_height: float
    sequence_index: int
    bbox: tuple[int, int, int, int]

    @classmethod
    def from_square(cls, square: ReconstructedSquare) -> SquareOut:
        return cls(
            center_x=square.center_x,
            center_z=square.center_z,
            width=square.width,
            depth=square.depth,
            extruded_height=square.extruded_height,
            sequence_index=square.sequence_index,
            bbox=square.bbox,
        )


class ReconstructResponse(BaseModel):
    squares: list[SquareOut] = Field(default_factory=list)
    cached: bool = False
    truncated: bool = False
    oversized_components: int = 0
    decode_failed: bool = False
    processing_time_ms: float = 0.0


class VisualizeResponse(ReconstructResponse):
    image: str
    width: int
    height: int
    tiles: list[TileOut] = Field(default_factory=list)
