"""Pixel-space path simplification.

Provides:
    - dedupe_consecutive(): drop repeated samples (GPS fixes while stopped)
    - simplify_dp(): Ramer-Douglas-Peucker reduction
    - simplify_path(): both, with the 1 px² tolerance used for tiles

Invariants:
    - Endpoints always kept; original order preserved
    - Output is a subset of the input (no new points)
    - Idempotent: simplify_dp(simplify_dp(P)) == simplify_dp(P)

Distances are measured to the chord *segment* (closest point clamped to
the endpoints), not the unbounded line, so a track doubling back over
itself keeps its turnaround point.
"""

from typing import List, Sequence

from .geometry import Point

SQ_TOLERANCE_PX = 1.0


def dedupe_consecutive(points: Sequence[Point]) -> List[Point]:
    """Remove consecutive exact duplicates."""
    result: List[Point] = []
    for point in points:
        if result and point == result[-1]:
            continue
        result.append(point)
    return result


def _sq_segment_distance(p: Point, a: Point, b: Point) -> float:
    """Squared distance from ``p`` to segment ``ab``."""
    x, y = a.x, a.y
    dx, dy = b.x - x, b.y - y
    dot = dx * dx + dy * dy

    if dot > 0:
        t = ((p.x - x) * dx + (p.y - y) * dy) / dot
        if t > 1:
            x, y = b.x, b.y
        elif t > 0:
            x += dx * t
            y += dy * t

    dx = p.x - x
    dy = p.y - y
    return dx * dx + dy * dy


def simplify_dp(points: Sequence[Point], sq_tolerance: float = SQ_TOLERANCE_PX) -> List[Point]:
    """Ramer-Douglas-Peucker simplification.

    Parameters
    ----------
    points : Sequence[Point]
        Ordered path, ideally already deduplicated
    sq_tolerance : float
        Squared distance a point must exceed to be kept, default 1.0 px²

    Returns
    -------
    List[Point]
        Retained points in original order

    Notes
    -----
    Uses an explicit stack of (first, last) index ranges and a retention
    mask instead of recursion, so very long tracks cannot hit the
    interpreter recursion limit.
    """
    n = len(points)
    if n <= 2:
        return list(points)

    keep = [False] * n
    keep[0] = keep[n - 1] = True

    stack = [(0, n - 1)]
    while stack:
        first, last = stack.pop()
        max_sq_dist = 0.0
        index = -1
        for i in range(first + 1, last):
            sq_dist = _sq_segment_distance(points[i], points[first], points[last])
            if sq_dist > max_sq_dist:
                index = i
                max_sq_dist = sq_dist

        if max_sq_dist > sq_tolerance:
            keep[index] = True
            stack.append((index, last))
            stack.append((first, index))

    return [p for p, kept in zip(points, keep) if kept]


def simplify_path(points: Sequence[Point]) -> List[Point]:
    """Deduplicate then simplify a projected, integer-rounded path."""
    if not points:
        return []
    return simplify_dp(dedupe_consecutive(points), SQ_TOLERANCE_PX)
