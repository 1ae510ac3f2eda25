"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging.

Event Naming Convention:
    <component>.<category>.<action>

    component: session, terminal, route, render, config
    category: hull, request, layer, ...
    action: computed, resolved, failed, ...

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.terminal
    | filter event = "terminal.malformed"
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - session.*: Session lifecycle
    - terminal.*: Terminal boundary computation
    - route.*: Routing requests and results
    - render.*: Layer drawing and preview output
    - config.*: Configuration loading
    """

    # ========== Session Events ==========
    SESSION_OPENED = "session.opened"
    """Map session initialized (renderer and router ready)."""

    SESSION_CLOSED = "session.closed"
    """Map session torn down."""

    # ========== Terminal Events ==========
    TERMINAL_HULL_COMPUTED = "terminal.hull.computed"
    """Terminal boundary hull computed."""

    TERMINAL_MALFORMED = "terminal.malformed"
    """Terminal geometry rejected by the normalizer."""

    TERMINAL_SHOWN = "terminal.shown"
    """Terminal boundary toggled on."""

    TERMINAL_HIDDEN = "terminal.hidden"
    """Terminal boundary toggled off."""

    # ========== Route Events ==========
    ROUTE_SELECTED = "route.selected"
    """Freight route selected for display."""

    ROUTE_REQUEST_SUBMITTED = "route.request.submitted"
    """Leg submitted to the routing service."""

    ROUTE_REQUEST_RESOLVED = "route.request.resolved"
    """Routing result received with status OK."""

    ROUTE_REQUEST_FAILED = "route.request.failed"
    """Routing result received with a non-OK status."""

    ROUTE_MALFORMED = "route.malformed"
    """Route geometry rejected by the parser."""

    # ========== Render Events ==========
    LAYER_DRAWN = "render.layer.drawn"
    """Path drawn on a layer."""

    LAYER_CLEARED = "render.layer.cleared"
    """Layer removed from the map surface."""

    PREVIEW_SAVED = "render.preview.saved"
    """Preview image written to disk."""

    # ========== Config Events ==========
    CONFIG_LOADED = "config.loaded"
    """Configuration loaded from YAML."""
