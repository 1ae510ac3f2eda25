"""
Geometry Errors
===============

The only error kind the geometry layer raises.
"""

from typing import Any, Tuple


class MalformedInputError(ValueError):
    """
    Raised when coordinate data is structurally invalid.

    Covers wrong arity, non-numeric values and null entries. Raised eagerly
    during normalization or route parsing, before any hull work starts.

    Attributes:
        path: Index path of the offending element (e.g. (2, 0) for the
              first pair of the third ring), empty when not applicable
        value: The offending raw value
    """

    def __init__(self, message: str, path: Tuple[int, ...] = (), value: Any = None):
        self.path = tuple(path)
        self.value = value
        if self.path:
            location = "".join(f"[{i}]" for i in self.path)
            message = f"{message} at coordinates{location}"
        super().__init__(message)
