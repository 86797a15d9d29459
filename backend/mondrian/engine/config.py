"""Engine configuration: every policy constant of the layout/raster codec."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class MondrianConfig:
    """Fixed policy constants shared by the packer, renderer and reconstructor."""

    # Size classifier: tier = ceil(log10(weight)) - size_offset
    size_offset: int = 5

    # Canvas geometry (pixels)
    min_canvas_size: int = 500
    cell_size: int = 60  # minimum pixels per grid unit
    tile_padding: int = 20  # gutter between neighbouring tiles (half on each side)
    canvas_margin: int = 20

    # Colors (RGB)
    background_color: tuple[int, int, int] = (26, 26, 26)  # #1a1a1a
    tile_color: tuple[int, int, int] = (255, 140, 0)

    # Tile color band used when reading pixels back (exclusive bounds)
    band_red_min: int = 200
    band_green_min: int = 100
    band_green_max: int = 180
    band_blue_max: int = 50

    # Reconstruction safety valves
    max_components: int = 10_000
    max_component_pixels: int = 1_000_000

    # Extrusion: pixel -> world units, height = max(w, h) * scale * factor + base
    world_scale: float = 0.15
    height_factor: float = 0.5
    base_height: float = 2.0


DEFAULT_CONFIG = MondrianConfig()
