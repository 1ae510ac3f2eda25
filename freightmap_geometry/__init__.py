"""
Geometry Layer
==============

Bounded Context: Terminal boundaries and route geometry.

Responsibilities:
- Point normalization (nested [lng, lat] structures -> flat Points)
- Convex hull construction (monotone chain, CCW, canonical start)
- Route geometry parsing and waypoint legs
- NO state, NO routing, NO rendering

Design Philosophy:
- Pure functions
- Immutable data structures
- Fail-fast validation (MalformedInputError before any hull work)
- Zero side effects

Usage:

    from freightmap_geometry import terminal_hull, hull_waypoint_loop

    hull = terminal_hull([[[0, 0], [1, 0], [1, 1], [0, 1], [0.5, 0.5]]])
    legs = hull_waypoint_loop(hull)
"""

from freightmap_geometry.errors import MalformedInputError
from freightmap_geometry.point import Point, points_to_array
from freightmap_geometry.normalizer import normalize_coordinates
from freightmap_geometry.hull import (
    convex_hull,
    cross,
    is_strictly_convex,
    polygon_contains,
    terminal_hull,
)
from freightmap_geometry.legs import RouteLeg, route_legs, hull_waypoint_loop
from freightmap_geometry.route_geometry import parse_route_geometry

__all__ = [
    "MalformedInputError",
    "Point",
    "points_to_array",
    "normalize_coordinates",
    "convex_hull",
    "cross",
    "is_strictly_convex",
    "polygon_contains",
    "terminal_hull",
    "RouteLeg",
    "route_legs",
    "hull_waypoint_loop",
    "parse_route_geometry",
]

__version__ = "1.0.0"
