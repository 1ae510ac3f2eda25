"""
freightmap CLI - Main entry point.

Computes terminal boundaries, lists route legs and renders previews from
feature files.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from freightmap_geometry import MalformedInputError, parse_route_geometry, route_legs
from freightmap_map import (
    DirectRouter,
    MapSession,
    PreviewRenderer,
    SessionConfig,
    load_routes,
    load_terminals,
)
from freightmap_map.config import HullConfig
from freightmap_map.logging import LogEvent, create_logger
from utils import get_target_run_folder


def load_config(args: argparse.Namespace) -> SessionConfig:
    """Session config from --config, with hull flags from the command line on top."""
    config = SessionConfig()
    if args.config:
        config = SessionConfig.from_yaml(Path(args.config))
        create_logger("cli").info(
            event=LogEvent.CONFIG_LOADED,
            message=f"Loaded config from {args.config}",
            metadata={'path': str(args.config), 'travel_mode': config.routing.travel_mode},
        )

    trailing = getattr(args, "include_trailing_duplicate", False)
    tolerance = getattr(args, "tolerance", None)
    if trailing or tolerance is not None:
        hull = HullConfig(
            include_trailing_duplicate=trailing or config.hull.include_trailing_duplicate,
            collinear_tolerance=tolerance if tolerance is not None else config.hull.collinear_tolerance,
        )
        config = SessionConfig(hull=hull, view=config.view, routing=config.routing, render=config.render)
    return config


def cmd_hull(args: argparse.Namespace) -> Dict[str, Any]:
    """Hull per terminal, plus the terminals that failed to normalize."""
    config = load_config(args)
    terminals = load_terminals(Path(args.terminals))

    session = MapSession(config, renderer=PreviewRenderer(view=config.view), router=DirectRouter())
    hulls, failures = session.build_boundaries(terminals)

    return {
        "hulls": {
            name: [point.to_dict() for point in hull]
            for name, hull in hulls.items()
        },
        "failures": {name: str(error) for name, error in failures.items()},
    }


def cmd_route(args: argparse.Namespace) -> Dict[str, Any]:
    """Legs of one route, in traversal order."""
    routes = load_routes(Path(args.routes))
    if not 0 <= args.index < len(routes):
        raise ValueError(f"Route index {args.index} out of range (0..{len(routes) - 1})")

    route = routes[args.index]
    legs = route_legs(parse_route_geometry(route.geometry))
    return {
        "route_name": route.name,
        "legs": [leg.to_dict() for leg in legs],
    }


def cmd_preview(args: argparse.Namespace) -> Dict[str, Any]:
    """Draw the selected route and every terminal boundary to an image."""
    config = load_config(args)
    logger = create_logger("cli")

    output = args.output or f"{get_target_run_folder(application_name='preview')}/preview.png"
    renderer = PreviewRenderer(
        view=config.view,
        background_color=config.render.background_color,
        thickness=config.render.thickness,
    )

    skipped: List[str] = []
    with MapSession(config, renderer=renderer, router=DirectRouter(), logger=logger) as session:
        if args.routes:
            routes = load_routes(Path(args.routes))
            if not 0 <= args.route_index < len(routes):
                raise ValueError(
                    f"Route index {args.route_index} out of range (0..{len(routes) - 1})"
                )
            session.select_route(routes[args.route_index])

        for terminal in load_terminals(Path(args.terminals)):
            try:
                session.show_terminal(terminal)
            except MalformedInputError:
                skipped.append(terminal.name)

        layers = session.visible_layers
        renderer.save(output)

    logger.info(
        event=LogEvent.PREVIEW_SAVED,
        message=f"Preview written to {output}",
        metadata={'layers': len(layers), 'skipped': skipped},
    )
    return {"output": output, "layers": layers, "skipped": skipped}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="freightmap",
        description="freightmap - Freight route and terminal boundary tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Terminal boundaries as JSON
  freightmap hull data/terminals.geojson

  # Keep the dataset's trailing duplicate points while flattening
  freightmap hull data/terminals.geojson --include-trailing-duplicate

  # Legs of the second route
  freightmap route data/geometries.json --index 1

  # Render route 0 and all terminals
  freightmap preview data/terminals.geojson --routes data/geometries.json --output out.png
"""
    )
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    hull = subparsers.add_parser('hull', help='Compute terminal boundary hulls')
    hull.add_argument('terminals', help='Terminals JSON or GeoJSON file')
    hull.add_argument('--config', help='Session config YAML')
    hull.add_argument(
        '--include-trailing-duplicate',
        action='store_true',
        help='Append the last pair of each ring twice while flattening'
    )
    hull.add_argument('--tolerance', type=float, help='Collinearity tolerance (default: 0, exact)')

    route = subparsers.add_parser('route', help='List the legs of a freight route')
    route.add_argument('routes', help='Routes JSON file')
    route.add_argument('--index', type=int, default=0, help='Route index (default: 0)')

    preview = subparsers.add_parser('preview', help='Render routes and terminals to an image')
    preview.add_argument('terminals', help='Terminals JSON or GeoJSON file')
    preview.add_argument('--routes', help='Routes JSON file')
    preview.add_argument('--route-index', type=int, default=0, help='Route to draw (default: 0)')
    preview.add_argument('--config', help='Session config YAML')
    preview.add_argument('--output', help='Output image (default: ./runs/preview/<timestamp>/preview.png)')

    return parser


COMMANDS = {
    'hull': cmd_hull,
    'route': cmd_route,
    'preview': cmd_preview,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        result = COMMANDS[args.command](args)
    except (ValueError, FileNotFoundError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
