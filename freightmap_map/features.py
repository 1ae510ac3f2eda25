"""
Feature Catalog
===============

Loads the named input features the map overlays.

Routes:
    [{"route_name": "Brisbane - Sydney", "route_geom": "LINESTRING (...)"}]

Terminals (either shape):
    [{"name": "Moorebank", "coordinates": [[[150.93, -33.95], ...]]}]

    {"type": "FeatureCollection", "features": [
        {"type": "Feature",
         "properties": {"name": "Moorebank"},
         "geometry": {"type": "Polygon", "coordinates": [[[150.93, -33.95], ...]]}}
    ]}

Coordinates are kept raw here. Validation is the normalizer's job, so one
bad terminal never blocks loading the rest.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List


@dataclass(frozen=True)
class RouteFeature:
    """A named freight route with its raw line geometry."""

    name: str
    geometry: str


@dataclass(frozen=True)
class TerminalFeature:
    """A named intermodal terminal with its raw footprint coordinates."""

    name: str
    coordinates: Any


def _read_json(path: Path) -> Any:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Feature file not found: {path}")

    try:
        with open(path) as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e


def load_routes(path: Path) -> List[RouteFeature]:
    """
    Load freight routes.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: On invalid JSON or a record missing route_name/route_geom
    """
    data = _read_json(path)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of routes, got {type(data).__name__}")

    routes = []
    for i, record in enumerate(data):
        try:
            routes.append(RouteFeature(name=str(record["route_name"]), geometry=record["route_geom"]))
        except (KeyError, TypeError) as e:
            raise ValueError(f"{path}: route #{i} is missing field {e}") from e
    return routes


def _terminal_from_record(record: Any) -> TerminalFeature:
    return TerminalFeature(name=str(record["name"]), coordinates=record["coordinates"])


def _terminal_from_geojson(feature: Any) -> TerminalFeature:
    properties = feature.get("properties") or {}
    geometry = feature["geometry"]
    return TerminalFeature(name=str(properties["name"]), coordinates=geometry["coordinates"])


def load_terminals(path: Path) -> List[TerminalFeature]:
    """
    Load intermodal terminals from a plain list or a GeoJSON FeatureCollection.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: On invalid JSON, a record missing its name/coordinates,
            or two terminals sharing a name
    """
    data = _read_json(path)

    if isinstance(data, dict) and data.get("type") == "FeatureCollection":
        records = data.get("features") or []
        parse = _terminal_from_geojson
    elif isinstance(data, list):
        records = data
        parse = _terminal_from_record
    else:
        raise ValueError(
            f"{path}: expected a list of terminals or a GeoJSON FeatureCollection"
        )

    terminals = []
    seen = set()
    for i, record in enumerate(records):
        try:
            terminal = parse(record)
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"{path}: terminal #{i} is missing field {e}") from e
        # Names key the map layers and the hull output
        if terminal.name in seen:
            raise ValueError(f"{path}: terminal #{i} duplicates name {terminal.name!r}")
        seen.add(terminal.name)
        terminals.append(terminal)
    return terminals
