"""
Preview Renderer Module
=======================

Raster stand-in for the interactive map surface.

Design:
- MapRenderer protocol: what the session needs from any map surface
- PreviewRenderer: draws layers onto a numpy canvas with supervision
- Layers hold paths until cleared; render() redraws from scratch
- Equirectangular view: lng/lat map linearly to pixels around the center

Dependencies:
- supervision (draw utilities, Color, Point, Rect)
- numpy (canvas)
- opencv (image output)
"""

from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Protocol, Sequence, Tuple

import numpy as np
import supervision as sv
import supervision.draw.utils as sv_draw

from freightmap_geometry import Point
from freightmap_map.config import MapViewConfig

# Pixels per tile edge at zoom 0, as on slippy-map surfaces
TILE_SIZE = 256


class MapRenderer(Protocol):
    """Protocol for map surfaces (interface)."""

    def draw_path(self, layer_id: str, points: Sequence[Point], color: str) -> None:
        """Add a path to a layer. Consecutive points are joined."""
        ...

    def clear(self, layer_id: str) -> None:
        """Remove every path in a layer. Unknown layers are ignored."""
        ...


class PreviewRenderer:
    """
    Renders layers to an image.

    Usage:
        renderer = PreviewRenderer(view=MapViewConfig(zoom=5))
        renderer.draw_path("terminal/Moorebank", hull_path, "#000000")
        renderer.save("preview.png")
    """

    def __init__(
        self,
        view: MapViewConfig = MapViewConfig(),
        background_color: str = "#ffffff",
        thickness: int = 2,
    ):
        """
        Args:
            view: Viewport (center, zoom, pixel size)
            background_color: Canvas fill as '#rrggbb'
            thickness: Line thickness in pixels
        """
        self.view = view
        self.background_color = sv.Color.from_hex(background_color)
        self.thickness = thickness
        self._layers: "OrderedDict[str, List[Tuple[Tuple[Point, ...], str]]]" = OrderedDict()
        self._degrees_per_pixel = 360.0 / (TILE_SIZE * 2 ** view.zoom)

    @property
    def layers(self) -> Dict[str, int]:
        """Layer id -> number of paths currently drawn."""
        return {layer_id: len(paths) for layer_id, paths in self._layers.items()}

    def draw_path(self, layer_id: str, points: Sequence[Point], color: str) -> None:
        self._layers.setdefault(layer_id, []).append((tuple(points), color))

    def clear(self, layer_id: str) -> None:
        self._layers.pop(layer_id, None)

    def to_pixel(self, point: Point) -> Tuple[int, int]:
        """Project a point onto the canvas (may fall outside it)."""
        px = (point.lng - self.view.center_lng) / self._degrees_per_pixel + self.view.width / 2
        py = self.view.height / 2 - (point.lat - self.view.center_lat) / self._degrees_per_pixel
        return int(round(px)), int(round(py))

    def render(self) -> np.ndarray:
        """Draw every layer onto a fresh canvas, in insertion order."""
        frame = np.zeros((self.view.height, self.view.width, 3), dtype=np.uint8)
        frame[:] = self.background_color.as_bgr()

        for paths in self._layers.values():
            for points, color in paths:
                frame = self._draw_points(frame, points, sv.Color.from_hex(color))

        return frame

    def _draw_points(self, frame: np.ndarray, points: Sequence[Point], color: sv.Color) -> np.ndarray:
        pixels = [self.to_pixel(p) for p in points]

        if len(pixels) == 1:
            # Single waypoint: small square marker
            x, y = pixels[0]
            size = 2 * self.thickness + 1
            marker = sv.Rect(x=x - self.thickness, y=y - self.thickness, width=size, height=size)
            return sv_draw.draw_filled_rectangle(frame, rect=marker, color=color)

        for (x0, y0), (x1, y1) in zip(pixels, pixels[1:]):
            frame = sv_draw.draw_line(
                frame,
                start=sv.Point(x=x0, y=y0),
                end=sv.Point(x=x1, y=y1),
                color=color,
                thickness=self.thickness,
            )
        return frame

    def save(self, path: str) -> str:
        """
        Render and write the image.

        Returns:
            The output path

        Raises:
            RuntimeError: If OpenCV cannot write the file
        """
        import cv2

        Path(path).parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(path), self.render()):
            raise RuntimeError(f"Failed to write preview image: {path}")
        return str(path)
