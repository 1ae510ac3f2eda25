"""
Configuration schema for the map session.

Defines hull options, the preview viewport, routing and rendering settings.
Every section is a frozen dataclass validated at construction, and the whole
tree loads from a single YAML file.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple
import yaml

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")

# Alternating colors for consecutive legs of a route
DEFAULT_PALETTE = (
    "#1f77b4",
    "#ff7f0e",
    "#2ca02c",
    "#d62728",
    "#9467bd",
    "#8c564b",
)


@dataclass(frozen=True)
class HullConfig:
    """
    Terminal boundary options.

    include_trailing_duplicate reproduces the source dataset's flattening
    quirk (last pair of each ring appended twice). It never changes the hull,
    only the normalized point list.
    """

    include_trailing_duplicate: bool = False
    collinear_tolerance: float = 0.0

    def __post_init__(self):
        """Validate hull configuration."""
        if self.collinear_tolerance < 0:
            raise ValueError(
                f"collinear_tolerance must be >= 0, got {self.collinear_tolerance}"
            )


@dataclass(frozen=True)
class MapViewConfig:
    """Viewport for the preview surface. Defaults frame mainland Australia."""

    center_lat: float = -23.6980
    center_lng: float = 133.8807
    zoom: int = 4
    width: int = 1280
    height: int = 720

    def __post_init__(self):
        """Validate view configuration."""
        if not -90.0 <= self.center_lat <= 90.0:
            raise ValueError(f"center_lat must be in [-90, 90], got {self.center_lat}")

        if not -180.0 <= self.center_lng <= 180.0:
            raise ValueError(f"center_lng must be in [-180, 180], got {self.center_lng}")

        if not 0 <= self.zoom <= 22:
            raise ValueError(f"zoom must be in [0, 22], got {self.zoom}")

        if not (0 < self.width <= 8192 and 0 < self.height <= 8192):
            raise ValueError(
                f"width/height must be in (0, 8192], got {self.width}x{self.height}"
            )


@dataclass(frozen=True)
class RoutingConfig:
    """Routing client settings."""

    travel_mode: str = "DRIVING"
    max_workers: int = 4
    timeout_s: float = 30.0

    def __post_init__(self):
        """Validate routing configuration."""
        valid_modes = {"DRIVING", "WALKING", "BICYCLING", "TRANSIT"}
        if self.travel_mode not in valid_modes:
            raise ValueError(
                f"Invalid travel_mode: {self.travel_mode}. "
                f"Must be one of {sorted(valid_modes)}"
            )

        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {self.timeout_s}")


@dataclass(frozen=True)
class RenderConfig:
    """Preview drawing style."""

    palette: Tuple[str, ...] = DEFAULT_PALETTE
    terminal_color: str = "#000000"
    background_color: str = "#ffffff"
    thickness: int = 2

    def __post_init__(self):
        """Validate render configuration."""
        if len(self.palette) == 0:
            raise ValueError("palette must contain at least one color")

        for color in (*self.palette, self.terminal_color, self.background_color):
            if not _HEX_COLOR.match(color):
                raise ValueError(f"Colors must be '#rrggbb' hex strings, got {color!r}")

        if self.thickness < 1:
            raise ValueError(f"thickness must be >= 1, got {self.thickness}")

    def leg_color(self, index: int) -> str:
        """Palette color for the leg at index, cycling."""
        return self.palette[index % len(self.palette)]


@dataclass(frozen=True)
class SessionConfig:
    """
    Main configuration for a MapSession.

    Immutable after construction (frozen dataclass).
    """

    hull: HullConfig = field(default_factory=HullConfig)
    view: MapViewConfig = field(default_factory=MapViewConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    render: RenderConfig = field(default_factory=RenderConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        """Build from a plain mapping; missing sections take defaults."""
        render_data = dict(data.get("render") or {})
        if "palette" in render_data:
            render_data["palette"] = tuple(render_data["palette"])

        return cls(
            hull=HullConfig(**(data.get("hull") or {})),
            view=MapViewConfig(**(data.get("view") or {})),
            routing=RoutingConfig(**(data.get("routing") or {})),
            render=RenderConfig(**render_data),
        )

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "SessionConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            hull:
              include_trailing_duplicate: false
              collinear_tolerance: 0.0

            view:
              center_lat: -33.87
              center_lng: 151.21
              zoom: 9

            routing:
              travel_mode: "DRIVING"
              max_workers: 4

            render:
              palette: ["#1f77b4", "#ff7f0e"]
              thickness: 3

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the YAML is invalid or a value fails validation
        """
        path = Path(yaml_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")

        try:
            return cls.from_dict(data)
        except TypeError as e:
            # Unknown keys surface as unexpected keyword arguments
            raise ValueError(f"Invalid config in {yaml_path}: {e}") from e
