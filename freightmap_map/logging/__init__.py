"""
Structured Logging for freightmap
=================================

Bounded Context: Observability

JSON-structured logging for the session and CLI layers.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from freightmap_map.logging import create_logger, LogEvent
    >>> logger = create_logger("session")
    >>> logger.info(
    ...     event=LogEvent.ROUTE_SELECTED,
    ...     message="Selected Brisbane - Sydney",
    ...     metadata={'legs': 3}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'create_logger',
]
