"""
Test Map Session
================

Config, feature loading, routing client, session lifecycle and the
preview renderer, without any network directions service.

Usage:
    pytest test_map_session.py
"""

import json
import logging
import threading
import time
from pathlib import Path

import numpy as np
import pytest

from freightmap_geometry import MalformedInputError, Point, route_legs
from freightmap_map import (
    DirectRouter,
    MapSession,
    PreviewRenderer,
    RouteFeature,
    RouteRequest,
    RouteResult,
    RouteStatus,
    RoutingClient,
    SessionConfig,
    TerminalFeature,
    load_routes,
    load_terminals,
)
from freightmap_map.config import HullConfig, MapViewConfig, RenderConfig, RoutingConfig
from freightmap_map.logging import LogEvent, create_logger
from freightmap_map.session import ROUTE_LAYER, terminal_layer

SQUARE_TERMINAL = TerminalFeature(
    name="Square",
    coordinates=[[[0, 0], [2, 0], [2, 2], [0, 2], [1, 1]]],
)
BROKEN_TERMINAL = TerminalFeature(name="Broken", coordinates=[[[0, 0], [1, "x"]]])
THREE_LEG_ROUTE = RouteFeature(name="North", geometry="LINESTRING (0 0, 1 0, 2 1, 3 1)")


class RecordingRenderer:
    """MapRenderer that remembers what was drawn."""

    def __init__(self):
        self.layers = {}
        self.cleared = []

    def draw_path(self, layer_id, points, color):
        self.layers.setdefault(layer_id, []).append(([p.xy for p in points], color))

    def clear(self, layer_id):
        self.cleared.append(layer_id)
        self.layers.pop(layer_id, None)


class FailingLegRouter(DirectRouter):
    """Raises for one leg index, routes the rest directly."""

    def __init__(self, failing_index):
        self.failing_index = failing_index

    def route(self, request):
        if request.leg.index == self.failing_index:
            raise ConnectionError("directions service unavailable")
        return super().route(request)


class NoPathRouter:
    def route(self, request):
        return RouteResult(request=request, status=RouteStatus.ZERO_RESULTS)


def make_requests(*pairs):
    legs = route_legs([Point.from_lng_lat(x, y) for x, y in pairs])
    return [RouteRequest(leg=leg) for leg in legs]


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def session(renderer):
    with MapSession(SessionConfig(), renderer, DirectRouter()) as s:
        yield s


# ========== Config ==========

def test_default_config_is_valid():
    config = SessionConfig()
    assert config.hull.include_trailing_duplicate is False
    assert config.hull.collinear_tolerance == 0.0
    assert config.routing.travel_mode == "DRIVING"
    assert (config.view.center_lat, config.view.center_lng) == (-23.6980, 133.8807)


def test_config_from_yaml(tmp_path):
    path = tmp_path / "freightmap.yaml"
    path.write_text(
        "hull:\n"
        "  include_trailing_duplicate: true\n"
        "  collinear_tolerance: 0.001\n"
        "view:\n"
        "  zoom: 9\n"
        "routing:\n"
        "  max_workers: 2\n"
        "render:\n"
        "  palette: ['#ff0000', '#00ff00']\n"
    )
    config = SessionConfig.from_yaml(path)

    assert config.hull == HullConfig(include_trailing_duplicate=True, collinear_tolerance=0.001)
    assert config.view.zoom == 9
    assert config.routing.max_workers == 2
    assert config.render.palette == ("#ff0000", "#00ff00")


def test_repository_config_loads():
    config = SessionConfig.from_yaml(Path(__file__).parent / "config" / "freightmap.yaml")
    assert config == SessionConfig()


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert SessionConfig.from_yaml(path) == SessionConfig()


def test_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        SessionConfig.from_yaml(tmp_path / "nope.yaml")


def test_config_unknown_key(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("hull:\n  epsilon: 0.1\n")
    with pytest.raises(ValueError, match="Invalid config"):
        SessionConfig.from_yaml(path)


def test_config_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("hull: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid YAML"):
        SessionConfig.from_yaml(path)


@pytest.mark.parametrize("build", [
    lambda: HullConfig(collinear_tolerance=-0.1),
    lambda: MapViewConfig(center_lat=91),
    lambda: MapViewConfig(zoom=30),
    lambda: MapViewConfig(width=0),
    lambda: RoutingConfig(travel_mode="FLYING"),
    lambda: RoutingConfig(max_workers=0),
    lambda: RenderConfig(palette=()),
    lambda: RenderConfig(palette=("red",)),
    lambda: RenderConfig(thickness=0),
])
def test_config_validation(build):
    with pytest.raises(ValueError):
        build()


def test_leg_colors_alternate():
    render = RenderConfig(palette=("#111111", "#222222"))
    assert [render.leg_color(i) for i in range(4)] == ["#111111", "#222222", "#111111", "#222222"]


# ========== Features ==========

def test_load_routes(tmp_path):
    path = tmp_path / "geometries.json"
    path.write_text(json.dumps([
        {"route_name": "A", "route_geom": "LINESTRING (0 0, 1 1)"},
        {"route_name": "B", "route_geom": "LINESTRING (1 1, 2 2)"},
    ]))
    routes = load_routes(path)
    assert [r.name for r in routes] == ["A", "B"]
    assert routes[0].geometry == "LINESTRING (0 0, 1 1)"


def test_load_routes_missing_field(tmp_path):
    path = tmp_path / "geometries.json"
    path.write_text(json.dumps([{"route_name": "A"}]))
    with pytest.raises(ValueError, match="route_geom"):
        load_routes(path)


def test_load_terminals_from_list(tmp_path):
    path = tmp_path / "terminals.json"
    path.write_text(json.dumps([{"name": "T1", "coordinates": [[0, 0], [1, 1]]}]))
    assert load_terminals(path) == [TerminalFeature(name="T1", coordinates=[[0, 0], [1, 1]])]


def test_load_terminals_from_geojson():
    terminals = load_terminals(Path(__file__).parent / "data" / "terminals.geojson")
    assert [t.name for t in terminals] == ["Moorebank", "Acacia Ridge", "Dynon"]


def test_load_terminals_defers_coordinate_validation(tmp_path):
    path = tmp_path / "terminals.json"
    path.write_text(json.dumps([{"name": "Bad", "coordinates": [["x", None]]}]))
    assert load_terminals(path)[0].name == "Bad"


def test_load_terminals_rejects_duplicate_names(tmp_path):
    path = tmp_path / "terminals.json"
    path.write_text(json.dumps([
        {"name": "Dynon", "coordinates": [[0, 0], [1, 1]]},
        {"name": "Moorebank", "coordinates": [[2, 2], [3, 3]]},
        {"name": "Dynon", "coordinates": [[4, 4], [5, 5]]},
    ]))
    with pytest.raises(ValueError, match="terminal #2 duplicates name 'Dynon'"):
        load_terminals(path)


def test_load_terminals_invalid_json(tmp_path):
    path = tmp_path / "terminals.json"
    path.write_text("{not json")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_terminals(path)


def test_load_terminals_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_terminals(tmp_path / "missing.json")


# ========== Routing client ==========

def test_direct_router_returns_straight_leg():
    request = make_requests((0, 0), (1, 1))[0]
    result = DirectRouter().route(request)
    assert result.ok
    assert [p.xy for p in result.path] == [(0, 0), (1, 1)]


def test_submit_resolves_future():
    with RoutingClient(DirectRouter()) as client:
        future = client.submit(make_requests((0, 0), (1, 0))[0])
        assert future.result(timeout=5).status == RouteStatus.OK


def test_route_all_keeps_request_order():
    requests = make_requests((0, 0), (1, 0), (2, 0), (3, 0), (4, 0))
    with RoutingClient(DirectRouter(), max_workers=3) as client:
        results = client.route_all(requests)

    assert [r.request for r in results] == requests
    assert all(r.ok for r in results)


def test_service_exception_becomes_error_result():
    requests = make_requests((0, 0), (1, 0), (2, 0))
    with RoutingClient(FailingLegRouter(failing_index=1)) as client:
        results = client.route_all(requests)

    assert [r.status for r in results] == [RouteStatus.OK, RouteStatus.ERROR, RouteStatus.OK]
    assert "unavailable" in results[1].error
    assert results[1].path == ()


def test_route_all_times_out():
    release = threading.Event()

    class BlockingRouter:
        def route(self, request):
            release.wait(timeout=5)
            return DirectRouter().route(request)

    client = RoutingClient(BlockingRouter(), timeout_s=0.05)
    try:
        results = client.route_all(make_requests((0, 0), (1, 0)))
    finally:
        release.set()
        client.close()

    assert results[0].status == RouteStatus.ERROR
    assert "timed out" in results[0].error


class LegBlockingRouter(DirectRouter):
    """Blocks on the given leg indexes until released."""

    def __init__(self, blocked_indexes):
        self.blocked_indexes = blocked_indexes
        self.release = threading.Event()

    def route(self, request):
        if request.leg.index in self.blocked_indexes:
            self.release.wait(timeout=5)
        return super().route(request)


def test_close_does_not_wait_for_timed_out_requests():
    router = LegBlockingRouter(blocked_indexes={0})
    client = RoutingClient(router, max_workers=1, timeout_s=0.1)
    try:
        client.route_all(make_requests((0, 0), (1, 0)))
        assert client.abandoned == 1

        started = time.monotonic()
        client.close()
        assert time.monotonic() - started < 1.0
    finally:
        router.release.set()


def test_route_all_shares_one_deadline():
    router = LegBlockingRouter(blocked_indexes={0, 1, 2})
    client = RoutingClient(router, max_workers=3, timeout_s=0.2)
    try:
        started = time.monotonic()
        results = client.route_all(make_requests((0, 0), (1, 0), (2, 0), (3, 0)))
        elapsed = time.monotonic() - started
        client.close()
    finally:
        router.release.set()

    assert [r.status for r in results] == [RouteStatus.ERROR] * 3
    assert elapsed < 0.5


def test_timed_out_requests_do_not_starve_later_ones():
    router = LegBlockingRouter(blocked_indexes={0})
    client = RoutingClient(router, max_workers=1, timeout_s=0.1)
    try:
        client.route_all(make_requests((0, 0), (1, 0)))
        results = client.route_all(make_requests((5, 5), (6, 5), (7, 5))[1:])
        client.close()
    finally:
        router.release.set()

    assert [r.status for r in results] == [RouteStatus.OK]


def test_session_close_after_timed_out_legs_is_prompt(renderer):
    router = LegBlockingRouter(blocked_indexes={0})
    config = SessionConfig(routing=RoutingConfig(max_workers=1, timeout_s=0.1))
    session = MapSession(config, renderer, router).open()
    try:
        results = session.select_route(THREE_LEG_ROUTE)

        started = time.monotonic()
        session.close()
        assert time.monotonic() - started < 1.0
    finally:
        router.release.set()

    assert [r.status for r in results] == [RouteStatus.ERROR] * 3


def test_closed_client_rejects_requests():
    client = RoutingClient(DirectRouter())
    client.close()
    with pytest.raises(RuntimeError):
        client.submit(make_requests((0, 0), (1, 0))[0])


# ========== Session lifecycle ==========

def test_session_requires_open(renderer):
    session = MapSession(SessionConfig(), renderer, DirectRouter())
    with pytest.raises(RuntimeError):
        session.select_route(THREE_LEG_ROUTE)
    with pytest.raises(RuntimeError):
        session.show_terminal(SQUARE_TERMINAL)


def test_session_cannot_open_twice(session):
    with pytest.raises(RuntimeError):
        session.open()


def test_close_clears_drawn_layers(renderer):
    session = MapSession(SessionConfig(), renderer, DirectRouter()).open()
    session.select_route(THREE_LEG_ROUTE)
    session.show_terminal(SQUARE_TERMINAL)

    session.close()

    assert not session.is_open
    assert renderer.layers == {}
    assert session.visible_layers == []
    session.close()  # second close is a no-op


# ========== Routes ==========

def test_select_route_draws_each_leg_with_alternating_colors(session, renderer):
    results = session.select_route(THREE_LEG_ROUTE)
    palette = session.config.render.palette

    assert len(results) == 3
    assert session.selected_route == "North"
    assert renderer.layers[ROUTE_LAYER] == [
        ([(0, 0), (1, 0)], palette[0]),
        ([(1, 0), (2, 1)], palette[1]),
        ([(2, 1), (3, 1)], palette[2]),
    ]


def test_selecting_another_route_replaces_the_previous(session, renderer):
    session.select_route(THREE_LEG_ROUTE)
    session.select_route(RouteFeature(name="South", geometry="LINESTRING (5 5, 6 6)"))

    assert session.selected_route == "South"
    assert renderer.cleared == [ROUTE_LAYER]
    assert renderer.layers[ROUTE_LAYER] == [([(5, 5), (6, 6)], session.config.render.palette[0])]


def test_malformed_route_keeps_previous_selection(session, renderer):
    session.select_route(THREE_LEG_ROUTE)
    with pytest.raises(MalformedInputError):
        session.select_route(RouteFeature(name="Bad", geometry="LINESTRING (0 0)"))

    assert session.selected_route == "North"
    assert len(renderer.layers[ROUTE_LAYER]) == 3


def test_failed_legs_leave_gaps(renderer):
    session = MapSession(SessionConfig(), renderer, FailingLegRouter(failing_index=1)).open()
    results = session.select_route(THREE_LEG_ROUTE)

    assert [r.ok for r in results] == [True, False, True]

    drawn = [path for path, _ in renderer.layers[ROUTE_LAYER]]
    assert drawn == [[(0, 0), (1, 0)], [(2, 1), (3, 1)]]
    session.close()


def test_zero_results_draw_nothing(renderer):
    with MapSession(SessionConfig(), renderer, NoPathRouter()) as session:
        results = session.select_route(THREE_LEG_ROUTE)
        assert all(r.status == RouteStatus.ZERO_RESULTS for r in results)
        assert ROUTE_LAYER not in renderer.layers


# ========== Terminals ==========

def test_show_terminal_routes_closed_hull_loop(session, renderer):
    results = session.show_terminal(SQUARE_TERMINAL)

    assert len(results) == 4
    assert session.terminal_boundary("Square") is not None
    drawn = [path for path, _ in renderer.layers[terminal_layer("Square")]]
    assert drawn == [
        [(0, 0), (2, 0)],
        [(2, 0), (2, 2)],
        [(2, 2), (0, 2)],
        [(0, 2), (0, 0)],
    ]


def test_terminal_loop_is_drawn_in_terminal_color(renderer):
    config = SessionConfig(render=RenderConfig(terminal_color="#123456"))
    with MapSession(config, renderer, DirectRouter()) as session:
        session.show_terminal(SQUARE_TERMINAL)
        session.select_route(THREE_LEG_ROUTE)

        terminal_colors = [color for _, color in renderer.layers[terminal_layer("Square")]]
        route_colors = [color for _, color in renderer.layers[ROUTE_LAYER]]

    assert terminal_colors == ["#123456"] * 4
    assert "#123456" not in route_colors


def test_hide_terminal_clears_layer(session, renderer):
    session.show_terminal(SQUARE_TERMINAL)

    assert session.hide_terminal("Square") is True
    assert terminal_layer("Square") not in renderer.layers
    assert session.terminal_boundary("Square") is None
    assert session.hide_terminal("Square") is False


def test_toggle_terminal(session, renderer):
    session.toggle_terminal(SQUARE_TERMINAL, True)
    assert session.visible_layers == [terminal_layer("Square")]

    session.toggle_terminal(SQUARE_TERMINAL, False)
    assert session.visible_layers == []


def test_showing_twice_redraws(session, renderer):
    session.show_terminal(SQUARE_TERMINAL)
    session.show_terminal(SQUARE_TERMINAL)

    assert renderer.cleared == [terminal_layer("Square")]
    assert len(renderer.layers[terminal_layer("Square")]) == 4


def test_single_point_terminal_draws_marker(session, renderer):
    depot = TerminalFeature(name="Depot", coordinates=[[5, 5], [5, 5]])
    assert session.show_terminal(depot) == []
    assert renderer.layers[terminal_layer("Depot")] == [
        ([(5, 5)], session.config.render.terminal_color)
    ]


def test_malformed_terminal_is_not_shown(session, renderer):
    with pytest.raises(MalformedInputError):
        session.show_terminal(BROKEN_TERMINAL)
    assert session.visible_layers == []


def test_visible_layers_lists_route_first(session):
    session.show_terminal(SQUARE_TERMINAL)
    session.select_route(THREE_LEG_ROUTE)
    assert session.visible_layers == [ROUTE_LAYER, terminal_layer("Square")]


def test_build_boundaries_isolates_malformed_terminals(renderer):
    session = MapSession(SessionConfig(), renderer, DirectRouter())
    hulls, failures = session.build_boundaries([SQUARE_TERMINAL, BROKEN_TERMINAL])

    assert [p.xy for p in hulls["Square"]] == [(0, 0), (2, 0), (2, 2), (0, 2)]
    assert list(failures) == ["Broken"]
    assert isinstance(failures["Broken"], MalformedInputError)
    assert renderer.layers == {}


def test_session_uses_hull_config(renderer):
    near_collinear = TerminalFeature(name="Near", coordinates=[[0, 0], [1, -1e-9], [2, 0], [1, 1]])
    exact = MapSession(SessionConfig(), renderer, DirectRouter())
    tolerant = MapSession(
        SessionConfig(hull=HullConfig(collinear_tolerance=1e-6)), renderer, DirectRouter()
    )

    assert len(exact.compute_boundary(near_collinear)) == 4
    assert len(tolerant.compute_boundary(near_collinear)) == 3


# ========== Preview renderer ==========

def test_preview_projects_center_to_middle():
    view = MapViewConfig(center_lat=-33.0, center_lng=151.0, zoom=6, width=400, height=300)
    renderer = PreviewRenderer(view=view)
    assert renderer.to_pixel(Point.from_lng_lat(151.0, -33.0)) == (200, 150)

    east, north = renderer.to_pixel(Point.from_lng_lat(152.0, -32.0))
    assert east > 200
    assert north < 150


def test_preview_render_draws_and_clears():
    view = MapViewConfig(center_lat=0.0, center_lng=0.0, zoom=2, width=200, height=100)
    renderer = PreviewRenderer(view=view, background_color="#ffffff")
    blank = renderer.render()

    assert blank.shape == (100, 200, 3)
    assert (blank == 255).all()

    path = [Point.from_lng_lat(-20.0, 0.0), Point.from_lng_lat(20.0, 0.0)]
    renderer.draw_path("route", path, "#ff0000")
    assert renderer.layers == {"route": 1}
    assert not (renderer.render() == 255).all()

    renderer.clear("route")
    renderer.clear("never-drawn")
    assert np.array_equal(renderer.render(), blank)


def test_preview_save(tmp_path):
    renderer = PreviewRenderer(view=MapViewConfig(width=64, height=64))
    renderer.draw_path("marker", [Point.from_lng_lat(133.88, -23.69)], "#000000")

    output = renderer.save(str(tmp_path / "out" / "preview.png"))
    assert Path(output).exists()


def test_session_with_preview_renderer():
    config = SessionConfig(view=MapViewConfig(center_lat=1.0, center_lng=1.0, zoom=6, width=128, height=128))
    renderer = PreviewRenderer(view=config.view)

    with MapSession(config, renderer, DirectRouter()) as session:
        session.show_terminal(SQUARE_TERMINAL)
        assert renderer.layers == {terminal_layer("Square"): 4}

    assert renderer.layers == {}


# ========== Logging ==========

def test_structured_logger_emits_json(caplog):
    logger = create_logger("test")
    with caplog.at_level(logging.INFO):
        logger.info(
            event=LogEvent.TERMINAL_HULL_COMPUTED,
            message="Computed boundary",
            metadata={'terminal': 'Square', 'vertices': 4},
        )

    entry = json.loads(caplog.records[-1].getMessage())
    assert entry['event'] == "terminal.hull.computed"
    assert entry['component'] == "test"
    assert entry['metadata'] == {'terminal': 'Square', 'vertices': 4}


def test_malformed_terminal_is_logged(caplog, renderer):
    session = MapSession(SessionConfig(), renderer, DirectRouter())
    with caplog.at_level(logging.WARNING):
        session.build_boundaries([BROKEN_TERMINAL])

    entries = [json.loads(r.getMessage()) for r in caplog.records if r.name == "freightmap.session"]
    assert entries[-1]['event'] == "terminal.malformed"
    assert entries[-1]['exception']['type'] == "MalformedInputError"
