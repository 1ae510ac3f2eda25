"""
Point Module
============

Immutable 2-D point carrying planar and geographic coordinates together.

Axis convention:
- x is longitude, y is latitude (direct relabeling, NOT a projection)
- Source data is ordered [lng, lat]; swapping silently corrupts geography
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np


@dataclass(frozen=True)
class Point:
    """
    Immutable point with both coordinate systems.

    The hull algorithm only reads x and y. lat and lng ride along unchanged
    for downstream consumers.

    Attributes:
        x: Planar x (equals lng)
        y: Planar y (equals lat)
        lat: Latitude
        lng: Longitude

    Invariants:
        - x == lng
        - y == lat

    Example:
        >>> p = Point.from_lng_lat(133.88, -23.69)
        >>> (p.x, p.y)
        (133.88, -23.69)
    """

    x: float
    y: float
    lat: float
    lng: float

    def __post_init__(self):
        """Validate the axis invariant."""
        if self.x != self.lng or self.y != self.lat:
            raise ValueError(
                f"Point axes out of sync: x={self.x} lng={self.lng}, "
                f"y={self.y} lat={self.lat} (x must equal lng, y must equal lat)"
            )

    @classmethod
    def from_lng_lat(cls, lng: float, lat: float) -> "Point":
        """Build a point from a source-ordered [lng, lat] pair."""
        return cls(x=lng, y=lat, lat=lat, lng=lng)

    @property
    def xy(self) -> Tuple[float, float]:
        """Planar key used for sorting and deduplication."""
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, float]:
        """Serialize in the {lat, lng} shape the map surface expects."""
        return {"lat": self.lat, "lng": self.lng}


def points_to_array(points) -> np.ndarray:
    """
    Stack points into an Nx2 float array of (x, y).

    Returns:
        Array of shape (N, 2); shape (0, 2) for no points
    """
    if len(points) == 0:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array([p.xy for p in points], dtype=np.float64)
