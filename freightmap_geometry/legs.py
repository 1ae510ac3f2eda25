"""
Waypoint Legs
=============

Turns ordered Points into origin/destination legs for a routing service.

- route_legs: open polyline, p0->p1, p1->p2, ...
- hull_waypoint_loop: closed loop, h0->h1, ..., hn-1->h0
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from freightmap_geometry.point import Point


@dataclass(frozen=True)
class RouteLeg:
    """
    One origin/destination pair in traversal order.

    Attributes:
        index: Position of the leg within its path
        origin: Start point
        destination: End point
    """

    index: int
    origin: Point
    destination: Point

    def to_dict(self) -> Dict[str, object]:
        return {
            "index": self.index,
            "origin": self.origin.to_dict(),
            "destination": self.destination.to_dict(),
        }


def route_legs(points: Sequence[Point]) -> List[RouteLeg]:
    """Consecutive legs of an open path. Fewer than two points -> no legs."""
    return [
        RouteLeg(index=i, origin=points[i], destination=points[i + 1])
        for i in range(len(points) - 1)
    ]


def hull_waypoint_loop(hull: Sequence[Point]) -> List[RouteLeg]:
    """
    Legs of the hull treated as a closed waypoint loop.

    The last leg returns to the first vertex. A single point has no legs;
    a two-point hull yields the segment out and back.
    """
    if len(hull) < 2:
        return []
    return route_legs(list(hull) + [hull[0]])
