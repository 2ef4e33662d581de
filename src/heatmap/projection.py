"""Web Mercator projection and XYZ tile footprints.

Provides:
    - project(): (lon, lat, zoom) → pixel on the 256·2^zoom world plane
    - unproject(): world-plane pixel → (lon, lat)
    - tile_bounds(): geographic bbox of a tile grown by a pixel padding
    - tile_padding(): padding needed so strokes near the edge render fully

Conventions:
    - Spherical Web Mercator (EPSG:3857), origin at the top-left (180°W, ~85°N)
    - Pixel y grows southwards
    - Bounding boxes are (west, south, east, north) in degrees
    - Forward direction is geographic → pixel
"""

import math
from typing import Tuple

from src.utils.errors import ProjectionError
from src.utils.geometry import BBox, Point

TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798


def world_size(zoom: int) -> int:
    """Width (= height) of the world plane in pixels at ``zoom``."""
    return TILE_SIZE * 2 ** zoom


def project(lon: float, lat: float, zoom: int) -> Point:
    """Project a geographic position to world-plane pixels.

    Parameters
    ----------
    lon, lat : float
        Position in degrees
    zoom : int
        Zoom level

    Returns
    -------
    Point
        Unrounded pixel position

    Raises
    ------
    ProjectionError
        If |lat| exceeds MAX_LATITUDE
    """
    if lat > MAX_LATITUDE or lat < -MAX_LATITUDE:
        raise ProjectionError(
            f"Latitude must be between -{MAX_LATITUDE} and {MAX_LATITUDE}, got {lat}"
        )

    scale = world_size(zoom)
    sin = math.sin(math.radians(lat))
    return Point(
        scale * (0.5 * (lon / 180.0) + 0.5),
        scale * ((-0.5 / math.pi) * (math.log((1 + sin) / (1 - sin)) / 2) + 0.5),
    )


def _normalized_x_to_longitude(nx: float) -> float:
    return 360.0 * nx - 180.0


def _normalized_y_to_latitude(ny: float) -> float:
    return math.degrees(math.atan(math.sinh(math.pi * (1 - 2 * ny))))


def unproject(px: float, py: float, zoom: int) -> Tuple[float, float]:
    """Inverse of project(): world-plane pixel → (lon, lat)."""
    scale = world_size(zoom)
    return (
        _normalized_x_to_longitude(px / scale),
        _normalized_y_to_latitude(py / scale),
    )


def tile_bounds(x: int, y: int, z: int, padding: float = 0) -> BBox:
    """Geographic bbox of tile (x, y, z) grown by ``padding`` pixels.

    Parameters
    ----------
    x, y, z : int
        XYZ tile address
    padding : float
        Extra pixels on every side, default 0

    Returns
    -------
    BBox
        (west, south, east, north) in degrees, latitudes clamped to
        [-MAX_LATITUDE, MAX_LATITUDE] so both corners stay projectable
    """
    west, north = unproject(x * TILE_SIZE - padding, y * TILE_SIZE - padding, z)
    east, south = unproject((x + 1) * TILE_SIZE + padding, (y + 1) * TILE_SIZE + padding, z)
    # the plane edge unprojects to atan(sinh(pi)), a hair above MAX_LATITUDE
    north = min(north, MAX_LATITUDE)
    south = max(south, -MAX_LATITUDE)
    return (west, south, east, north)


def tile_padding(line_width: float) -> int:
    """Pixels of padding so strokes centred on the tile edge still render."""
    return int(math.ceil(line_width / 2))
