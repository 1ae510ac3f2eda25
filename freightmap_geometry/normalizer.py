"""
Point Normalizer
================

Flattens a terminal footprint's coordinate structure into Points.

Accepted shapes (inferred structurally, no type tag):
- flat:   [[lng, lat], [lng, lat], ...]
- nested: [[[lng, lat], ...], [[lng, lat], ...], ...]
- mixed:  top-level elements of either kind in the same call

Design:
- Pure function (no state, no side effects)
- Fail fast: the whole structure is validated while flattening,
  so a hull is never built from partial data
- Encounter order preserved, no deduplication
"""

import logging
import math
from collections.abc import Sequence
from numbers import Real
from typing import Any, List, Tuple

import numpy as np

from freightmap_geometry.errors import MalformedInputError
from freightmap_geometry.point import Point

logger = logging.getLogger(__name__)


def _is_sequence(value: Any) -> bool:
    if isinstance(value, (str, bytes)):
        return False
    return isinstance(value, (Sequence, np.ndarray))


def _is_flat(element: Any) -> bool:
    """An element is flat when none of its members is itself a sequence."""
    return not any(_is_sequence(member) for member in element)


def _pair_to_point(pair: Any, path: Tuple[int, ...]) -> Point:
    """Convert a raw [lng, lat] pair into a Point."""
    if len(pair) != 2:
        raise MalformedInputError(
            f"Expected a [lng, lat] pair, got {len(pair)} values", path, pair
        )

    values = []
    for value in pair:
        # bool is a Real subclass but never a coordinate
        if isinstance(value, bool) or not isinstance(value, Real):
            raise MalformedInputError(
                f"Coordinate must be numeric, got {type(value).__name__}", path, pair
            )
        value = float(value)
        if not math.isfinite(value):
            raise MalformedInputError(f"Coordinate must be finite, got {value}", path, pair)
        values.append(value)

    lng, lat = values
    return Point.from_lng_lat(lng, lat)


def normalize_coordinates(
    coordinates: Any,
    include_trailing_duplicate: bool = False,
) -> List[Point]:
    """
    Flatten a coordinate structure into an ordered list of Points.

    A flat top-level element is a single [lng, lat] pair and yields one
    Point. A nested element is a ring and yields one Point per inner pair.

    Args:
        coordinates: Flat, nested (one level) or mixed coordinate structure
        include_trailing_duplicate: Append the last pair of every ring a
            second time after expanding it. Reproduces the source dataset's
            flattening quirk; off by default.

    Returns:
        Flat list of Points in encounter order (outer-to-inner, ring-by-ring)

    Raises:
        MalformedInputError: If an element is neither a numeric pair nor a
            sequence of numeric pairs
    """
    if not _is_sequence(coordinates):
        raise MalformedInputError(
            f"Coordinate structure must be a sequence, got {type(coordinates).__name__}",
            value=coordinates,
        )

    points: List[Point] = []
    for i, element in enumerate(coordinates):
        if not _is_sequence(element):
            raise MalformedInputError(
                "Expected a [lng, lat] pair or a ring of pairs", (i,), element
            )

        if _is_flat(element):
            points.append(_pair_to_point(element, (i,)))
            continue

        for j, pair in enumerate(element):
            if not _is_sequence(pair) or not _is_flat(pair):
                raise MalformedInputError("Expected a [lng, lat] pair", (i, j), pair)
            points.append(_pair_to_point(pair, (i, j)))

        if include_trailing_duplicate:
            last = len(element) - 1
            points.append(_pair_to_point(element[last], (i, last)))

    logger.debug("Normalized %d top-level elements into %d points", len(coordinates), len(points))
    return points
