"""
Convex Hull Builder
===================

Andrew's monotone chain over normalized Points.

Output contract:
- Counter-clockwise winding
- Starts at the canonical point (lowest y, ties broken by lowest x)
- No repeated points, no three consecutive collinear points
- Every hull point is one of the input Point objects (nothing synthesized)

Numeric semantics:
- Orientation is compared against zero exactly by default
- collinear_tolerance widens that comparison and must be passed explicitly
"""

import logging
from typing import Any, List, Sequence

from freightmap_geometry.normalizer import normalize_coordinates
from freightmap_geometry.point import Point

logger = logging.getLogger(__name__)


def cross(a: Point, b: Point, c: Point) -> float:
    """
    Cross product of (b - a) and (c - a).

    Returns:
        > 0: a -> b -> c turns counter-clockwise
        < 0: clockwise
        0: collinear
    """
    return (b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x)


def _canonical_index(points: Sequence[Point]) -> int:
    """Index of the lowest-y point, ties broken by lowest x."""
    return min(range(len(points)), key=lambda i: (points[i].y, points[i].x))


def _unique_sorted(points: Sequence[Point]) -> List[Point]:
    """Sort by (x, y) and drop exact duplicates, keeping the first seen."""
    ordered = sorted(points, key=lambda p: p.xy)
    unique: List[Point] = []
    for point in ordered:
        if unique and unique[-1].xy == point.xy:
            continue
        unique.append(point)
    return unique


def _half_hull(points: Sequence[Point], tolerance: float) -> List[Point]:
    chain: List[Point] = []
    for point in points:
        while len(chain) >= 2 and cross(chain[-2], chain[-1], point) <= tolerance:
            chain.pop()
        chain.append(point)
    return chain


def convex_hull(points: Sequence[Point], collinear_tolerance: float = 0.0) -> List[Point]:
    """
    Compute the convex hull of a point sequence.

    Args:
        points: Normalized points (any order, duplicates allowed)
        collinear_tolerance: Cross products <= this value count as
            non-left turns. 0.0 means exact collinearity only.

    Returns:
        Hull vertices, counter-clockwise, starting at the canonical point.
        0 points -> [], identical points -> [p], collinear points -> the
        two extremes.

    Raises:
        ValueError: If collinear_tolerance is negative
    """
    if collinear_tolerance < 0:
        raise ValueError(f"collinear_tolerance must be >= 0, got {collinear_tolerance}")

    unique = _unique_sorted(points)
    if len(unique) <= 2:
        hull = unique
    else:
        lower = _half_hull(unique, collinear_tolerance)
        upper = _half_hull(list(reversed(unique)), collinear_tolerance)
        # Last point of each chain is the first point of the other
        hull = lower[:-1] + upper[:-1]

    if hull:
        start = _canonical_index(hull)
        hull = hull[start:] + hull[:start]

    logger.debug("Hull of %d points (%d unique) has %d vertices", len(points), len(unique), len(hull))
    return hull


def terminal_hull(
    coordinates: Any,
    include_trailing_duplicate: bool = False,
    collinear_tolerance: float = 0.0,
) -> List[Point]:
    """
    Normalize a terminal footprint and return its boundary hull.

    Normalization runs to completion first, so malformed input raises
    before any hull is computed.

    Raises:
        MalformedInputError: If the coordinate structure is invalid
    """
    points = normalize_coordinates(
        coordinates, include_trailing_duplicate=include_trailing_duplicate
    )
    return convex_hull(points, collinear_tolerance=collinear_tolerance)


def is_strictly_convex(hull: Sequence[Point]) -> bool:
    """True if every consecutive triple (with wraparound) turns counter-clockwise."""
    n = len(hull)
    if n < 3:
        return True
    return all(cross(hull[i], hull[(i + 1) % n], hull[(i + 2) % n]) > 0 for i in range(n))


def polygon_contains(hull: Sequence[Point], point: Point) -> bool:
    """
    Check whether a point lies on or inside a counter-clockwise convex hull.

    Degenerate hulls (a point or a segment) contain only the points on them.
    """
    n = len(hull)
    if n == 0:
        return False
    if n == 1:
        return hull[0].xy == point.xy
    if n == 2:
        a, b = hull
        if cross(a, b, point) != 0:
            return False
        return (
            min(a.x, b.x) <= point.x <= max(a.x, b.x)
            and min(a.y, b.y) <= point.y <= max(a.y, b.y)
        )
    return all(cross(hull[i], hull[(i + 1) % n], point) >= 0 for i in range(n))
