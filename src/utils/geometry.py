"""Geometric primitives for stroke construction and coverage.

Provides:
    - Point, Vector: immutable 2D values
    - Line: unbounded line through two points (projection, mirroring)
    - Polygon: corner list with bounds, shoelace area and rectangle clipping
    - clip_polyline_to_bbox: split a lon/lat polyline on a bounding box

Used by:
    - Stroke builder: offset corners, miter joins
    - Rasterizer: exact pixel coverage via Polygon.clip(...).area()
    - In-memory path source: clipping tracks to the requested bbox

Coordinates are tile-local pixels (y down) unless noted as lon/lat.
Stroke polygons are wound clockwise on screen; area() is absolute so
clipping and coverage do not depend on winding.

Values are immutable; derived quantities (length, bounds, area) are
recomputed on demand rather than cached on the instance.
"""

import math
from dataclasses import dataclass
from typing import List, NamedTuple, Sequence, Tuple

LonLat = Tuple[float, float]
BBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Point:
    """Point in pixel or geographic space."""
    x: float
    y: float


@dataclass(frozen=True)
class Vector:
    """Directional quantity in pixel space."""
    x: float
    y: float

    @classmethod
    def between(cls, start: Point, end: Point) -> "Vector":
        """Vector from ``start`` to ``end``."""
        return cls(end.x - start.x, end.y - start.y)

    @property
    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def normalized(self) -> "Vector":
        """Unit vector with the same direction.

        Returns a NaN vector for zero length; callers test degeneracy
        explicitly before relying on the result.
        """
        length = self.length
        if length == 0.0:
            return Vector(math.nan, math.nan)
        return Vector(self.x / length, self.y / length)

    def add(self, other: "Vector") -> "Vector":
        return Vector(self.x + other.x, self.y + other.y)

    def scale(self, factor: float) -> "Vector":
        return Vector(self.x * factor, self.y * factor)

    def dot(self, other: "Vector") -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: "Vector") -> float:
        """2D cross product (determinant of [self, other]).

        Sign gives orientation of ``other`` relative to ``self``; zero means
        parallel vectors.
        """
        return self.x * other.y - self.y * other.x

    def orthogonal(self) -> "Vector":
        """Rotate by 90 degrees: (x, y) -> (y, -x)."""
        return Vector(self.y, -self.x)

    def offset(self, point: Point, factor: float = 1.0) -> Point:
        """Translate ``point`` by ``factor`` times this vector."""
        return Point(point.x + self.x * factor, point.y + self.y * factor)


@dataclass(frozen=True)
class Line:
    """Unbounded line through ``pt1`` and ``pt2``."""
    pt1: Point
    pt2: Point

    def projected_point(self, point: Point) -> Point:
        """Orthogonal projection of ``point`` onto the line."""
        direction = Vector.between(self.pt1, self.pt2)
        to_point = Vector.between(self.pt1, point)
        t = direction.dot(to_point) / direction.dot(direction)
        return direction.offset(self.pt1, t)

    def mirror(self, point: Point) -> Point:
        """Reflection of ``point`` across the line."""
        projected = self.projected_point(point)
        return Point(2 * projected.x - point.x, 2 * projected.y - point.y)


class Bounds(NamedTuple):
    """Axis-aligned rectangle."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float


class Polygon:
    """Ordered corner list (clockwise for stroke polygons).

    Parameters
    ----------
    corners : Sequence[Point]
        Polygon corners. Clip results may hold fewer than 3 corners, in
        which case the area is 0.
    """

    __slots__ = ("corners",)

    def __init__(self, corners: Sequence[Point]):
        self.corners: Tuple[Point, ...] = tuple(corners)

    def __len__(self) -> int:
        return len(self.corners)

    def __repr__(self) -> str:
        return f"Polygon({list(self.corners)!r})"

    def bounds(self) -> Bounds:
        """Axis-aligned bounds of the corners."""
        xs = [c.x for c in self.corners]
        ys = [c.y for c in self.corners]
        return Bounds(min(xs), max(xs), min(ys), max(ys))

    def area(self) -> float:
        """Absolute area via the shoelace formula."""
        corners = self.corners
        if len(corners) < 3:
            return 0.0
        total = 0.0
        prev = corners[-1]
        for corner in corners:
            total += corner.x * prev.y - prev.x * corner.y
            prev = corner
        return abs(0.5 * total)

    def clip(self, bounds: Bounds) -> "Polygon":
        """Clip against an axis-aligned rectangle.

        Four sequential half-plane passes (top, right, bottom, left). A corner
        exactly on the boundary counts as outside; the boundary crossing
        point is inserted instead, so the result is exact for convex input.

        Parameters
        ----------
        bounds : Bounds
            Clip rectangle

        Returns
        -------
        Polygon
            Intersection, possibly with no corners
        """
        corners = list(self.corners)
        corners = _clip_half_plane(corners, 1, bounds.min_y, keep_above=True)
        corners = _clip_half_plane(corners, 0, bounds.max_x, keep_above=False)
        corners = _clip_half_plane(corners, 1, bounds.max_y, keep_above=False)
        corners = _clip_half_plane(corners, 0, bounds.min_x, keep_above=True)
        return Polygon(corners)


def _clip_half_plane(
    corners: List[Point],
    axis: int,
    limit: float,
    keep_above: bool
) -> List[Point]:
    """One Sutherland-Hodgman pass against ``coord(axis) = limit``.

    axis 0 clips on x (vertical boundary), axis 1 on y (horizontal boundary).
    """
    result: List[Point] = []
    if not corners:
        return result

    def inside(p: Point) -> bool:
        value = p.x if axis == 0 else p.y
        return value > limit if keep_above else value < limit

    prev = corners[-1]
    prev_inside = inside(prev)
    for point in corners:
        point_inside = inside(point)
        if point_inside != prev_inside:
            if axis == 0:
                t = (limit - prev.x) / (point.x - prev.x)
                result.append(Point(limit, prev.y + t * (point.y - prev.y)))
            else:
                t = (limit - prev.y) / (point.y - prev.y)
                result.append(Point(prev.x + t * (point.x - prev.x), limit))
        if point_inside:
            result.append(point)
        prev, prev_inside = point, point_inside
    return result


# ============================================================================
# GEOGRAPHIC POLYLINE CLIPPING
# ============================================================================

_LEFT, _RIGHT, _BOTTOM, _TOP = 1, 2, 4, 8


def _bit_code(p: LonLat, bbox: BBox) -> int:
    code = 0
    if p[0] < bbox[0]:
        code |= _LEFT
    elif p[0] > bbox[2]:
        code |= _RIGHT
    if p[1] < bbox[1]:
        code |= _BOTTOM
    elif p[1] > bbox[3]:
        code |= _TOP
    return code


def _intersect(a: LonLat, b: LonLat, edge: int, bbox: BBox) -> LonLat:
    if edge & _TOP:
        return (a[0] + (b[0] - a[0]) * (bbox[3] - a[1]) / (b[1] - a[1]), bbox[3])
    if edge & _BOTTOM:
        return (a[0] + (b[0] - a[0]) * (bbox[1] - a[1]) / (b[1] - a[1]), bbox[1])
    if edge & _RIGHT:
        return (bbox[2], a[1] + (b[1] - a[1]) * (bbox[2] - a[0]) / (b[0] - a[0]))
    return (bbox[0], a[1] + (b[1] - a[1]) * (bbox[0] - a[0]) / (b[0] - a[0]))


def clip_polyline_to_bbox(
    coords: Sequence[Sequence[float]],
    bbox: BBox
) -> List[List[LonLat]]:
    """Clip a lon/lat polyline to a bounding box.

    Parameters
    ----------
    coords : Sequence[Sequence[float]]
        Polyline positions as (lon, lat)
    bbox : BBox
        (west, south, east, north) in degrees

    Returns
    -------
    List[List[LonLat]]
        Pieces of the polyline inside the box, in order. A track that leaves
        and re-enters the box yields several pieces. Fewer than two positions
        yield no pieces.

    Notes
    -----
    Cohen-Sutherland per segment; crossing points are placed exactly on the
    box edges so they project onto the padded raster border.
    """
    points = [(float(c[0]), float(c[1])) for c in coords]
    parts: List[List[LonLat]] = []
    if len(points) < 2:
        return parts

    part: List[LonLat] = []
    last = len(points) - 1
    code_a = _bit_code(points[0], bbox)
    for i in range(1, len(points)):
        a = points[i - 1]
        b = points[i]
        code_b = last_code = _bit_code(b, bbox)

        while True:
            if not (code_a | code_b):
                part.append(a)
                if code_b != last_code:
                    # segment leaves the box
                    part.append(b)
                    if i < last:
                        parts.append(part)
                        part = []
                elif i == last:
                    part.append(b)
                break
            if code_a & code_b:
                break
            if code_a:
                a = _intersect(a, b, code_a, bbox)
                code_a = _bit_code(a, bbox)
            else:
                b = _intersect(a, b, code_b, bbox)
                code_b = _bit_code(b, bbox)

        code_a = last_code

    if part:
        parts.append(part)
    return parts
