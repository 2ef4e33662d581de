"""Exact-coverage antialiased rasterization of paths into tile bitmaps.

Architecture:
    - Paths (lon, lat) → tile-local integer pixels on a padded grid
    - Dedup + Ramer-Douglas-Peucker (1 px² tolerance)
    - Stroke builder → convex clockwise polygons
    - Per pixel: clip polygon to the pixel's unit square, add clipped area
    - Inner 256×256 window → gradient colors

Invariants:
    - Grid is FP32, shape (256 + 2p, 256 + 2p) with p = ceil(line_width / 2)
    - Pixel (x, y) covers [x - 0.5, x + 0.5] × [y - 0.5, y + 0.5]
    - Coverage is additive across strokes and never clamped here;
      saturation happens in the color mapping
    - Writes falling outside the grid are dropped
"""

import logging
import math
from typing import Sequence

import numpy as np

from src.utils import color as color_utils
from src.utils.errors import BoundsError, GeometryError
from src.utils.geometry import Bounds, Point, Polygon
from src.utils.simplify import simplify_path

from .projection import TILE_SIZE, project, tile_padding
from .stroke import build_stroke_polygons

logger = logging.getLogger(__name__)


def new_grid(padding: int) -> np.ndarray:
    """Zeroed coverage grid for one tile with ``padding`` on every side."""
    size = TILE_SIZE + 2 * padding
    return np.zeros((size, size), dtype=np.float32)


def pixel_coverage(polygon: Polygon, x: int, y: int) -> float:
    """Fraction of pixel (x, y) covered by ``polygon``."""
    square = Bounds(x - 0.5, x + 0.5, y - 0.5, y + 0.5)
    return polygon.clip(square).area()


def _put_pixel(grid: np.ndarray, x: int, y: int, alpha: float) -> None:
    height, width = grid.shape
    if x < 0 or x >= width or y < 0 or y >= height:
        return
    grid[y, x] += alpha


def _scan_polygon(polygon: Polygon, grid: np.ndarray) -> None:
    """Accumulate the coverage of one convex polygon into ``grid``.

    Scans along the longer side of the bounding box. A convex polygon crosses
    each scan line in one run, so once a fully covered pixel is found the
    line is probed from the far end for the other fully covered pixel and
    everything in between is filled with 1.0 without clipping.
    """
    bounds = polygon.bounds()
    x_start, x_stop = math.floor(bounds.min_x), math.ceil(bounds.max_x)
    y_start, y_stop = math.floor(bounds.min_y), math.ceil(bounds.max_y)
    steep = bounds.max_y - bounds.min_y > bounds.max_x - bounds.min_x

    if steep:
        # columns are scan lines
        outer_range, inner_start, inner_stop = range(x_start, x_stop + 1), y_start, y_stop

        def put(line: int, pos: int, alpha: float) -> None:
            _put_pixel(grid, line, pos, alpha)

        def coverage(line: int, pos: int) -> float:
            return pixel_coverage(polygon, line, pos)
    else:
        outer_range, inner_start, inner_stop = range(y_start, y_stop + 1), x_start, x_stop

        def put(line: int, pos: int, alpha: float) -> None:
            _put_pixel(grid, pos, line, alpha)

        def coverage(line: int, pos: int) -> float:
            return pixel_coverage(polygon, pos, line)

    for line in outer_range:
        for pos1 in range(inner_start, inner_stop + 1):
            area = coverage(line, pos1)
            put(line, pos1, area)
            if area != 1.0:
                continue
            for pos2 in range(inner_stop, pos1, -1):
                area = coverage(line, pos2)
                put(line, pos2, area)
                if area == 1.0:
                    for pos in range(pos1 + 1, pos2):
                        put(line, pos, 1.0)
                    break
            break


def draw_path_antialiased(path: Sequence[Point], line_width: float, grid: np.ndarray) -> None:
    """Stroke ``path`` with exact antialiasing, adding coverage to ``grid``.

    Parameters
    ----------
    path : Sequence[Point]
        Simplified pixel-space path in grid coordinates
    line_width : float
        Stroke width in pixels
    grid : np.ndarray
        Coverage grid, shape (H, W), modified in place

    Notes
    -----
    An empty path draws nothing; a single point (a track that collapsed
    to one pixel after rounding) adds full coverage to that pixel.
    """
    if len(path) == 0:
        return
    if len(path) == 1:
        _put_pixel(grid, int(path[0].x), int(path[0].y), 1.0)
        return

    for polygon in build_stroke_polygons(path, line_width):
        _scan_polygon(polygon, grid)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def project_path(path: Sequence[Sequence[float]], x: int, y: int, z: int, padding: int) -> list:
    """Project lon/lat positions to integer pixels on the padded tile grid.

    Raises
    ------
    ProjectionError
        If a latitude is outside the Mercator range
    BoundsError
        If a point lands outside [0, 256 + 2·padding] on either axis
    """
    limit = TILE_SIZE + 2 * padding
    origin_x = x * TILE_SIZE - padding
    origin_y = y * TILE_SIZE - padding

    points = []
    for position in path:
        world = project(position[0], position[1], z)
        xpos = _round_half_up(world.x) - origin_x
        ypos = _round_half_up(world.y) - origin_y
        if xpos < 0 or xpos > limit or ypos < 0 or ypos > limit:
            raise BoundsError(
                f"Position {tuple(position[:2])} projects to ({xpos}, {ypos}), "
                f"outside the padded tile raster [0, {limit}] of tile {z}/{x}/{y}"
            )
        points.append(Point(xpos, ypos))
    return points


def rasterize_paths(
    paths: Sequence[Sequence[Sequence[float]]],
    x: int,
    y: int,
    z: int,
    options
) -> np.ndarray:
    """Render geographic paths into one RGBA tile.

    Parameters
    ----------
    paths : Sequence of paths
        Each path a sequence of (lon, lat), already clipped to the padded
        tile bbox
    x, y, z : int
        Tile address
    options : RenderingOptions
        line_width, value_for_max_color, gradient_colors

    Returns
    -------
    np.ndarray
        Bitmap, shape (256, 256, 4), uint8, straight alpha

    Raises
    ------
    GeometryError
        If a path has exactly one position
    ProjectionError, BoundsError
        From projection of the path positions
    """
    padding = tile_padding(options.line_width)
    grid = new_grid(padding)

    drawn = 0
    for path in paths:
        if len(path) == 0:
            continue
        if len(path) == 1:
            raise GeometryError("path length should be greater than 1")
        points = project_path(path, x, y, z, padding)
        draw_path_antialiased(simplify_path(points), options.line_width, grid)
        drawn += 1

    logger.debug(f"Rasterized {drawn} paths into tile {z}/{x}/{y} (padding={padding})")

    inner = grid[padding:padding + TILE_SIZE, padding:padding + TILE_SIZE]
    return color_utils.colorize(inner, options)
