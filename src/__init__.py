"""Route heatmap: GPS tracks rendered as antialiased XYZ raster tiles.

This package turns sets of noisy GPS tracks into 256×256 RGBA tiles showing
cumulative route density, for slippy-map viewers.

Architecture layers (strict one-way dependency):
    scripts/ → src/heatmap/ → src/utils/

Key invariants:
    - Tiles are 256×256 px, Web Mercator, XYZ addressing (y grows southward)
    - Coverage is exact polygon area per pixel, accumulated in FP32
    - Bitmaps are straight (non-premultiplied) RGBA, uint8, row-major
    - YAML-only configs, validated with pydantic
"""

__version__ = "1.0.0"
