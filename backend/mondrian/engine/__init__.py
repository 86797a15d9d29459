"""Layout/raster codec: size classes, square packing, rendering, read-back."""
