"""
Serializes arena subtrees as compact or indented JSON text.

Output is accumulated in blocks and handed to a WriteSink, so the same code
path serves in-memory buffers, open files and arbitrary streams.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from dataclasses import dataclass

from jtree._profile import ProfileContext
from jtree.arena import Arena
from jtree.arena import Kind
from jtree.arena import Member
from jtree.arena import node_text
from jtree.errors import JsonWriteError
from jtree.streams import StringSink
from jtree.streams import WriteSink

ASCII_LIMIT = 127
BMP_LIMIT = 0xFFFF

_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


@dataclass(frozen=True)
class WriteConfig:
    """
    Configures JSON writing behavior with immutable settings.

    Compact output carries no whitespace at all; pretty output places each
    element and member on its own line, indented by ``indent`` spaces.
    """

    pretty: bool = False
    indent: int = 4
    ensure_ascii: bool = False
    allow_nan_and_inf: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.pretty, bool):
            raise TypeError("pretty must be a boolean")
        if not isinstance(self.ensure_ascii, bool):
            raise TypeError("ensure_ascii must be a boolean")
        if not isinstance(self.allow_nan_and_inf, bool):
            raise TypeError("allow_nan_and_inf must be a boolean")
        if isinstance(self.indent, bool) or not isinstance(self.indent, int):
            raise TypeError("indent must be an integer")
        if self.indent < 0:
            raise ValueError("indent must be non-negative")


def _escape_code_point(code_point: int) -> str:
    if code_point <= BMP_LIMIT:
        return f"\\u{code_point:04x}"
    code_point -= 0x10000
    high = 0xD800 + (code_point >> 10)
    low = 0xDC00 + (code_point & 0x3FF)
    return f"\\u{high:04x}\\u{low:04x}"


def _encode_string(s: str, ensure_ascii: bool) -> str:
    """Encode string with proper escape sequences."""
    result = ['"']
    for char in s:
        escaped = _ESCAPES.get(char)
        if escaped is not None:
            result.append(escaped)
        elif ord(char) < 0x20:
            result.append(f"\\u{ord(char):04x}")
        elif ensure_ascii and ord(char) > ASCII_LIMIT:
            result.append(_escape_code_point(ord(char)))
        else:
            result.append(char)
    result.append('"')
    return "".join(result)


def _encode_double(value: float, config: WriteConfig) -> str:
    """Encode a double with JSON compliance."""
    if math.isnan(value) or math.isinf(value):
        if not config.allow_nan_and_inf:
            msg = "Out of range float values are not JSON compliant"
            raise JsonWriteError(msg)
        if math.isnan(value):
            return "NaN"
        return "Infinity" if value > 0 else "-Infinity"
    return repr(value)


def _get_indent_string(indent: int, level: int) -> str:
    """Generate indentation string for given level."""
    return " " * (indent * level)


@dataclass
class _Frame:
    """An open container: its remaining children and its nesting level."""

    children: Iterator[tuple[int, int | Member]]
    level: int
    closer: str


class TreeWriter:
    """
    Walks a subtree and emits its JSON text into a sink.

    Open containers are kept on an explicit stack, so trees built through
    the ref API serialize at any depth.
    """

    BUFFER_SIZE = 65536

    def __init__(
        self, arena: Arena, sink: WriteSink, config: WriteConfig
    ) -> None:
        self.arena = arena
        self.sink = sink
        self.config = config
        self._pending: list[str] = []
        self._pending_size = 0
        self._written = 0
        self._separator = ": " if config.pretty else ":"

    def _put(self, chunk: str) -> None:
        self._pending.append(chunk)
        self._pending_size += len(chunk)
        if self._pending_size >= self.BUFFER_SIZE:
            self._drain()

    def _drain(self) -> None:
        if self._pending:
            self.sink.put("".join(self._pending))
            self._written += self._pending_size
            self._pending.clear()
            self._pending_size = 0

    def write(self, index: int) -> None:
        """Writes the subtree at ``index`` and flushes the sink."""
        with ProfileContext("write_tree") as profile:
            self._write_tree(index)
            self._drain()
            self.sink.flush()
            profile.count(self._written)

    def _newline(self, level: int) -> None:
        if self.config.pretty:
            self._put("\n" + _get_indent_string(self.config.indent, level))

    def _write_tree(self, root: int) -> None:
        stack: list[_Frame] = []
        self._open_value(root, 0, stack)
        while stack:
            frame = stack[-1]
            entry = next(frame.children, None)
            if entry is None:
                stack.pop()
                self._newline(frame.level)
                self._put(frame.closer)
                continue

            position, child = entry
            if position:
                self._put(",")
            self._newline(frame.level + 1)
            if isinstance(child, Member):
                name = node_text(self.arena.at(child.name))
                self._put(_encode_string(name, self.config.ensure_ascii))
                self._put(self._separator)
                child = child.value
            self._open_value(child, frame.level + 1, stack)

    def _open_value(self, index: int, level: int, stack: list[_Frame]) -> None:
        """Writes a scalar, or opens a container and pushes its frame."""
        node = self.arena.at(index)
        match node.kind:
            case Kind.NULL:
                self._put("null")
            case Kind.BOOL:
                self._put("true" if node.payload else "false")
            case Kind.DOUBLE:
                self._put(_encode_double(node.payload, self.config))
            case Kind.STRING:
                self._put(
                    _encode_string(node_text(node), self.config.ensure_ascii)
                )
            case Kind.ARRAY if not node.payload:
                self._put("[]")
            case Kind.OBJECT if not node.payload:
                self._put("{}")
            case Kind.ARRAY:
                self._put("[")
                stack.append(_Frame(enumerate(node.payload), level, "]"))
            case Kind.OBJECT:
                self._put("{")
                stack.append(_Frame(enumerate(node.payload), level, "}"))
            case _:
                # integral kinds
                self._put(str(node.payload))


def write_node(
    arena: Arena,
    index: int,
    sink: WriteSink,
    config: WriteConfig | None = None,
) -> None:
    """Serializes the subtree at ``index`` into ``sink``."""
    TreeWriter(arena, sink, config or WriteConfig()).write(index)


def write_to_string(
    arena: Arena, index: int, config: WriteConfig | None = None
) -> str:
    """Serializes the subtree at ``index`` into a string."""
    sink = StringSink()
    write_node(arena, index, sink, config)
    return sink.getvalue()


__all__ = [
    "TreeWriter",
    "WriteConfig",
    "write_node",
    "write_to_string",
]
