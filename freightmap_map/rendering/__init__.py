"""
Rendering Layer
===============

Bounded Context: Map surface.

Responsibilities:
- MapRenderer protocol consumed by the session
- Raster preview of routes and terminal boundaries

Non-responsibilities:
- Hull computation (handled by freightmap_geometry)
- Routing (handled by freightmap_map.routing)
"""

from freightmap_map.rendering.preview import MapRenderer, PreviewRenderer

__all__ = [
    "MapRenderer",
    "PreviewRenderer",
]
