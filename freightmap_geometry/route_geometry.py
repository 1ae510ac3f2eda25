"""
Route Geometry Parser
=====================

Parses the `route_geom` strings of the freight-route dataset.

Format (WKT LineString, longitude first):
    LINESTRING (153.02 -27.47, 151.20 -33.86, 144.96 -37.81)

Doubled parentheses and any tag casing are accepted, since the dataset
export is not consistent about either.
"""

import math
import re
from typing import List

from freightmap_geometry.errors import MalformedInputError
from freightmap_geometry.point import Point

_LINESTRING = re.compile(r"^\s*LINESTRING\s*\(+(?P<body>[^()]*)\)+\s*$", re.IGNORECASE)


def parse_route_geometry(text: str) -> List[Point]:
    """
    Parse a LINESTRING into ordered Points.

    Args:
        text: WKT-style line string, vertices as "lng lat"

    Returns:
        Points in the order they appear

    Raises:
        MalformedInputError: On a missing tag, unbalanced parentheses,
            a vertex without exactly two numbers, or fewer than two vertices
    """
    if not isinstance(text, str):
        raise MalformedInputError(
            f"Route geometry must be a string, got {type(text).__name__}", value=text
        )

    match = _LINESTRING.match(text)
    if match is None or text.count("(") != text.count(")"):
        raise MalformedInputError(f"Not a LINESTRING geometry: {text[:40]!r}", value=text)

    points: List[Point] = []
    for i, vertex in enumerate(match.group("body").split(",")):
        parts = vertex.split()
        if len(parts) != 2:
            raise MalformedInputError(
                f"Expected 'lng lat', got {vertex.strip()!r}", (i,), vertex
            )
        try:
            lng, lat = float(parts[0]), float(parts[1])
        except ValueError:
            raise MalformedInputError(
                f"Vertex values must be numeric, got {vertex.strip()!r}", (i,), vertex
            ) from None
        if not (math.isfinite(lng) and math.isfinite(lat)):
            raise MalformedInputError(f"Vertex must be finite, got {vertex.strip()!r}", (i,), vertex)
        points.append(Point.from_lng_lat(lng, lat))

    if len(points) < 2:
        raise MalformedInputError(f"A route needs at least 2 vertices, got {len(points)}", value=text)

    return points
