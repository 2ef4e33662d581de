"""Stroke builder: pixel path + width → convex clockwise polygons.

Each segment becomes a body quadrilateral. At a turn the two offset edges
are joined along the bisector of the turn:

    -----------------,   x
                    . \\
    -------------x    /
                /    /
               /    /
              /    /

The inside corner sits on the bisector at the miter distance, capped by the
adjacent segment lengths so sharp turns cannot produce long spikes. The
outside corners are the inside corner mirrored across each segment's line.
A triangular join patch closes the wedge left open on the outer side of
the turn (a bevel join).

Invariants:
    - Every polygon is convex and wound clockwise on screen (y down)
    - Adjacent polygons share edges. While the inside corner sits at the
      full miter distance they do not overlap, so coverage sums exactly.
      When a short segment caps the miter at a sharp turn, the body quads
      of the two segments can overlap slightly and a cell may exceed 1.0
    - The first vertex emits nothing (no previous corners to connect)
"""

import math
from typing import List, Optional, Sequence

from src.utils.errors import GeometryError
from src.utils.geometry import Line, Point, Polygon, Vector

# |cross| of unit vectors below this counts as a straight continuation
COLINEAR_EPS = 1e-9


def _is_degenerate(v1: Vector, v2: Vector, v1_norm: Vector, v2_norm: Vector) -> bool:
    if v1.length < COLINEAR_EPS or v2.length < COLINEAR_EPS:
        return True
    return abs(v1_norm.cross(v2_norm)) <= COLINEAR_EPS


def build_stroke_polygons(path: Sequence[Point], width: float) -> List[Polygon]:
    """Convert a simplified path into stroke polygons.

    Parameters
    ----------
    path : Sequence[Point]
        Pixel-space path, at least 2 points, no consecutive duplicates
    width : float
        Stroke width in pixels

    Returns
    -------
    List[Polygon]
        Body quads and join triangles, in path order

    Raises
    ------
    GeometryError
        If the path has fewer than 2 points
    """
    if len(path) < 2:
        raise GeometryError(f"path must contain at least two points, got {len(path)}")

    half_width = width / 2
    polygons: List[Polygon] = []
    prev_left: Optional[Point] = None
    prev_right: Optional[Point] = None

    last = len(path) - 1
    for i, current in enumerate(path):
        previous = path[i - 1] if i > 0 else None
        following = path[i + 1] if i < last else None

        # v1 looks back, v2 looks ahead; synthesise the missing one at the ends
        if previous is None:
            v1 = Vector.between(current, following)
        else:
            v1 = Vector.between(current, previous)
        if following is None:
            v2 = Vector.between(previous, current)
        else:
            v2 = Vector.between(current, following)

        v1_norm = v1.normalized()
        v2_norm = v2.normalized()

        if _is_degenerate(v1, v2, v1_norm, v2_norm):
            folds_back = (
                previous is not None
                and following is not None
                and v1_norm.dot(v2_norm) > 0
            )
            if folds_back:
                # out-and-back: square off the incoming segment, then restart
                # the outgoing one with left and right swapped
                incoming = v1_norm.scale(-1).orthogonal()
                polygons.append(Polygon([
                    prev_right,
                    prev_left,
                    incoming.offset(current, half_width),
                    incoming.offset(current, -half_width),
                ]))

            orthogonal = v2_norm.orthogonal()
            left = orthogonal.offset(current, half_width)
            right = orthogonal.offset(current, -half_width)
            if prev_left is not None and prev_right is not None and not folds_back:
                polygons.append(Polygon([prev_right, prev_left, left, right]))
            prev_left, prev_right = left, right
            continue

        bisector = v1_norm.add(v2_norm).normalized()
        cos_t = v1_norm.dot(bisector)
        sin_t = math.sqrt(max(0.0, 1.0 - cos_t ** 2))

        d = min(v1.length, v2.length)
        if sin_t > 0:
            d = min(d, half_width / sin_t)

        inside = bisector.offset(current, d)
        outside1 = Line(current, previous).mirror(inside)
        outside2 = Line(current, following).mirror(inside)

        if v1.cross(v2) < 0:
            # right turn: inside corner on the right edge
            polygons.append(Polygon([prev_right, prev_left, outside1, inside]))
            polygons.append(Polygon([inside, outside1, outside2]))
            prev_right, prev_left = inside, outside2
        else:
            # left turn: inside corner on the left edge
            polygons.append(Polygon([prev_right, prev_left, inside, outside1]))
            polygons.append(Polygon([inside, outside2, outside1]))
            prev_right, prev_left = outside2, inside

    return polygons
