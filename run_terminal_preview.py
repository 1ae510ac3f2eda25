"""
Terminal Boundary Demo
======================

Draws a freight route and every intermodal terminal boundary to an image.

Architecture:
- geometry: normalize + hull (pure)
- routing: DirectRouter behind a RoutingClient (futures)
- rendering: PreviewRenderer (raster map surface)
- session: MapSession owns the state
"""

from pathlib import Path

from freightmap_map import (
    DirectRouter,
    MapSession,
    PreviewRenderer,
    SessionConfig,
    load_routes,
    load_terminals,
)
from utils import get_target_run_folder

CONFIG_PATH = Path("./config/freightmap.yaml")
ROUTES_PATH = Path("./data/geometries.json")
TERMINALS_PATH = Path("./data/terminals.geojson")


def main():
    config = SessionConfig.from_yaml(CONFIG_PATH)
    routes = load_routes(ROUTES_PATH)
    terminals = load_terminals(TERMINALS_PATH)

    renderer = PreviewRenderer(
        view=config.view,
        background_color=config.render.background_color,
        thickness=config.render.thickness,
    )

    with MapSession(config, renderer, DirectRouter()) as session:
        session.select_route(routes[0])

        hulls, failures = session.build_boundaries(terminals)
        for terminal in terminals:
            if terminal.name in hulls:
                session.show_terminal(terminal)

        output_path = renderer.save(f"{get_target_run_folder(application_name='terminal_preview')}/preview.png")

    print(f"Preview written to {output_path}")
    for name, hull in hulls.items():
        print(f"  {name}: {len(hull)} boundary vertices")
    for name, error in failures.items():
        print(f"  {name}: skipped ({error})")


if __name__ == "__main__":
    main()
