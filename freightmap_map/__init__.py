"""
freightmap_map - Map session for freight routes and terminal boundaries

Architecture:
- MapSession: Owns map state with an explicit open/close lifecycle
- RoutingClient: Future-based front end for a directions backend
- PreviewRenderer: Raster map surface
- SessionConfig: YAML configuration
- load_routes / load_terminals: Input feeds
"""

from freightmap_map.config import SessionConfig
from freightmap_map.features import RouteFeature, TerminalFeature, load_routes, load_terminals
from freightmap_map.routing import (
    DirectRouter,
    RouteRequest,
    RouteResult,
    RouteStatus,
    RoutingClient,
)
from freightmap_map.rendering import MapRenderer, PreviewRenderer
from freightmap_map.session import MapSession

__all__ = [
    "SessionConfig",
    "RouteFeature",
    "TerminalFeature",
    "load_routes",
    "load_terminals",
    "DirectRouter",
    "RouteRequest",
    "RouteResult",
    "RouteStatus",
    "RoutingClient",
    "MapRenderer",
    "PreviewRenderer",
    "MapSession",
]
