"""
Map Session Module
==================

Bounded Context: Map state and orchestration.

Design:
- Single owner of all mutable map state (renderer, routing client,
  selected route, visible terminals)
- Explicit lifecycle: open() before use, close() to tear down
- Routing through futures; each result updates rendering state once
- Per-feature isolation: a malformed feature is logged and skipped

Usage:
    config = SessionConfig.from_yaml("config/freightmap.yaml")
    renderer = PreviewRenderer(view=config.view)

    with MapSession(config, renderer, DirectRouter()) as session:
        session.select_route(routes[0])
        session.show_terminal(terminals[0])
        renderer.save("preview.png")
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from freightmap_geometry import (
    MalformedInputError,
    Point,
    RouteLeg,
    hull_waypoint_loop,
    parse_route_geometry,
    route_legs,
    terminal_hull,
)
from freightmap_map.config import SessionConfig
from freightmap_map.features import RouteFeature, TerminalFeature
from freightmap_map.logging import LogEvent, StructuredLogger, create_logger
from freightmap_map.rendering import MapRenderer
from freightmap_map.routing import RouteRequest, RouteResult, RoutingClient, RoutingService

ROUTE_LAYER = "route"


def terminal_layer(name: str) -> str:
    """Layer id for a terminal boundary."""
    return f"terminal/{name}"


class MapSession:
    """
    Controller that owns map state for one viewer.

    Not thread-safe: the caller drives it from one thread. Only routing
    requests run concurrently, inside the RoutingClient.
    """

    def __init__(
        self,
        config: SessionConfig,
        renderer: MapRenderer,
        router: RoutingService,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            config: Session configuration
            renderer: Map surface to draw on
            router: Directions backend
            logger: Structured logger (default: component "session")
        """
        self.config = config
        self.renderer = renderer
        self.router = router
        self.logger = logger or create_logger("session")

        self._client: Optional[RoutingClient] = None
        self._selected_route: Optional[str] = None
        self._visible_terminals: Dict[str, Tuple[Point, ...]] = {}

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def open(self) -> "MapSession":
        """Start the routing client. Opening twice is an error."""
        if self.is_open:
            raise RuntimeError("MapSession already open")

        self._client = RoutingClient(
            self.router,
            max_workers=self.config.routing.max_workers,
            timeout_s=self.config.routing.timeout_s,
        )
        self.logger.info(
            event=LogEvent.SESSION_OPENED,
            message="Map session opened",
            metadata={'travel_mode': self.config.routing.travel_mode},
        )
        return self

    def close(self) -> None:
        """Clear every layer this session drew and stop the routing client."""
        if not self.is_open:
            return

        if self._selected_route is not None:
            self.renderer.clear(ROUTE_LAYER)
        for name in list(self._visible_terminals):
            self.renderer.clear(terminal_layer(name))

        self._client.close()
        self._client = None
        self._selected_route = None
        self._visible_terminals.clear()
        self.logger.info(event=LogEvent.SESSION_CLOSED, message="Map session closed")

    def __enter__(self) -> "MapSession":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> RoutingClient:
        if self._client is None:
            raise RuntimeError("MapSession is not open (call open() first)")
        return self._client

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def selected_route(self) -> Optional[str]:
        return self._selected_route

    @property
    def visible_layers(self) -> List[str]:
        """Layer ids currently drawn by this session."""
        layers = [terminal_layer(name) for name in self._visible_terminals]
        if self._selected_route is not None:
            layers.insert(0, ROUTE_LAYER)
        return layers

    def terminal_boundary(self, name: str) -> Optional[Tuple[Point, ...]]:
        """Hull of a visible terminal, or None when hidden."""
        return self._visible_terminals.get(name)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _draw_legs(
        self,
        layer_id: str,
        legs: Sequence[RouteLeg],
        color: Optional[str] = None,
    ) -> List[RouteResult]:
        """Route legs and draw every OK result in color, or by leg index if None."""
        client = self._require_open()
        requests = [
            RouteRequest(leg=leg, travel_mode=self.config.routing.travel_mode)
            for leg in legs
        ]
        self.logger.debug(
            event=LogEvent.ROUTE_REQUEST_SUBMITTED,
            message=f"Routing {len(requests)} legs for {layer_id}",
            metadata={'layer': layer_id, 'legs': len(requests)},
        )

        results = client.route_all(requests)
        for result in results:
            leg_index = result.request.leg.index
            if not result.ok:
                self.logger.warning(
                    event=LogEvent.ROUTE_REQUEST_FAILED,
                    message=f"Leg {leg_index} of {layer_id} not drawn",
                    metadata={'layer': layer_id, 'leg': leg_index,
                              'status': result.status.value, 'error': result.error},
                )
                continue

            leg_color = color if color is not None else self.config.render.leg_color(leg_index)
            self.renderer.draw_path(layer_id, result.path, leg_color)
            self.logger.debug(
                event=LogEvent.ROUTE_REQUEST_RESOLVED,
                message=f"Drew leg {leg_index} of {layer_id}",
                metadata={'layer': layer_id, 'leg': leg_index, 'points': len(result.path)},
            )

        self.logger.debug(event=LogEvent.LAYER_DRAWN, message=f"Layer {layer_id} drawn")
        return results

    def select_route(self, route: RouteFeature) -> List[RouteResult]:
        """
        Show a freight route, replacing any previously selected one.

        Returns:
            One RouteResult per leg, in leg order

        Raises:
            MalformedInputError: If the route geometry cannot be parsed.
                The previous route stays on the map in that case.
        """
        self._require_open()
        try:
            points = parse_route_geometry(route.geometry)
        except MalformedInputError as e:
            self.logger.error(
                event=LogEvent.ROUTE_MALFORMED,
                message=f"Route {route.name!r} has malformed geometry",
                metadata={'route': route.name},
                exc_info=e,
            )
            raise

        if self._selected_route is not None:
            self.renderer.clear(ROUTE_LAYER)
            self.logger.debug(event=LogEvent.LAYER_CLEARED, message="Previous route cleared")

        self._selected_route = route.name
        legs = route_legs(points)
        self.logger.info(
            event=LogEvent.ROUTE_SELECTED,
            message=f"Selected route {route.name}",
            metadata={'route': route.name, 'legs': len(legs)},
        )
        return self._draw_legs(ROUTE_LAYER, legs)

    def compute_boundary(self, terminal: TerminalFeature) -> List[Point]:
        """
        Hull of a terminal footprint using the session's hull options.

        Raises:
            MalformedInputError: If the footprint coordinates are invalid
        """
        hull = terminal_hull(
            terminal.coordinates,
            include_trailing_duplicate=self.config.hull.include_trailing_duplicate,
            collinear_tolerance=self.config.hull.collinear_tolerance,
        )
        self.logger.debug(
            event=LogEvent.TERMINAL_HULL_COMPUTED,
            message=f"Computed boundary for {terminal.name}",
            metadata={'terminal': terminal.name, 'vertices': len(hull)},
        )
        return hull

    def build_boundaries(
        self, terminals: Iterable[TerminalFeature]
    ) -> Tuple[Dict[str, List[Point]], Dict[str, MalformedInputError]]:
        """
        Compute hulls for many terminals without drawing them.

        Returns:
            (hulls by terminal name, errors by terminal name). A malformed
            terminal lands in errors and does not stop the others.
        """
        hulls: Dict[str, List[Point]] = {}
        failures: Dict[str, MalformedInputError] = {}

        for terminal in terminals:
            try:
                hulls[terminal.name] = self.compute_boundary(terminal)
            except MalformedInputError as e:
                failures[terminal.name] = e
                self.logger.warning(
                    event=LogEvent.TERMINAL_MALFORMED,
                    message=f"Skipping terminal {terminal.name!r}",
                    metadata={'terminal': terminal.name},
                    exc_info=e,
                )

        return hulls, failures

    def show_terminal(self, terminal: TerminalFeature) -> List[RouteResult]:
        """
        Draw a terminal boundary as a routed closed loop.

        Showing an already visible terminal redraws it.

        Raises:
            MalformedInputError: If the footprint coordinates are invalid
        """
        self._require_open()
        hull = self.compute_boundary(terminal)

        layer_id = terminal_layer(terminal.name)
        if terminal.name in self._visible_terminals:
            self.renderer.clear(layer_id)
        self._visible_terminals[terminal.name] = tuple(hull)

        legs = hull_waypoint_loop(hull)
        if not legs:
            # Single-point footprint: nothing to route, mark the spot
            self.renderer.draw_path(layer_id, hull, self.config.render.terminal_color)
            results: List[RouteResult] = []
        else:
            results = self._draw_legs(layer_id, legs, self.config.render.terminal_color)

        self.logger.info(
            event=LogEvent.TERMINAL_SHOWN,
            message=f"Showing terminal {terminal.name}",
            metadata={'terminal': terminal.name, 'vertices': len(hull)},
        )
        return results

    def hide_terminal(self, name: str) -> bool:
        """
        Remove a terminal boundary from the map.

        Returns:
            True if the terminal was visible
        """
        self._require_open()
        if name not in self._visible_terminals:
            return False

        del self._visible_terminals[name]
        self.renderer.clear(terminal_layer(name))
        self.logger.info(
            event=LogEvent.TERMINAL_HIDDEN,
            message=f"Hid terminal {name}",
            metadata={'terminal': name},
        )
        return True

    def toggle_terminal(self, terminal: TerminalFeature, visible: bool) -> None:
        """Checkbox semantics: show when checked, hide when unchecked."""
        if visible:
            self.show_terminal(terminal)
        else:
            self.hide_terminal(terminal.name)
