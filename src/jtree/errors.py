"""
Exception hierarchy for jtree.

Data-shape problems (wrong kind for a strict get, missing keys) are reported
as absent values and never raise. The exceptions below signal malformed text
or a caller breaking the handle contract.
"""

from __future__ import annotations


class JsonTreeError(Exception):
    """Base class for every error raised by jtree."""


class JSONDecodeError(JsonTreeError, ValueError):
    """
    Handles JSON parsing failures with precise position information.

    ``pos`` is a byte offset into the UTF-8 encoded input; ``lineno`` and
    ``colno`` are 1-based and count characters.
    """

    def __init__(
        self, msg: str, pos: int = 0, lineno: int = 1, colno: int = 1
    ) -> None:
        if not isinstance(msg, str):
            raise TypeError("msg must be a string")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")

        self.msg = msg
        self.pos = pos
        self.lineno = lineno
        self.colno = colno

        super().__init__(
            f"{msg} at line {lineno}, column {colno} (byte {pos})"
        )


class JsonWriteError(JsonTreeError, ValueError):
    """Raised when a tree holds a value that cannot be written as JSON."""


class KindError(JsonTreeError, TypeError):
    """Raised when an operation needs a node kind the target does not have."""


class OutOfRangeError(JsonTreeError, IndexError):
    """Raised when an array position lies outside the array."""


class EmptyContainerError(JsonTreeError, IndexError):
    """Raised by front()/back() on an empty array."""


class StaleReferenceError(JsonTreeError, RuntimeError):
    """Raised when a handle points at a node that was released."""


__all__ = [
    "EmptyContainerError",
    "JSONDecodeError",
    "JsonTreeError",
    "JsonWriteError",
    "KindError",
    "OutOfRangeError",
    "StaleReferenceError",
]
