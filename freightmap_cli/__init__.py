"""
freightmap CLI - Command-line interface for terminal boundaries and routes.

Usage:
    freightmap hull data/terminals.geojson
    freightmap route data/geometries.json --index 1
    freightmap preview data/terminals.geojson --routes data/geometries.json
"""

__version__ = "1.0.0"
