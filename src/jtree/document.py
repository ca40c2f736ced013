"""
Documents: the owners of a JSON tree.

A Document holds the arena every ref points into, loads JSON text into it
and saves it back. Value is a Document that also behaves as a ValueRef onto
its own root, which makes it handy for building small trees in place.
"""

from __future__ import annotations

import logging
import os
from typing import IO
from typing import Any
from typing import TypeAlias

from jtree.arena import Arena
from jtree.errors import JSONDecodeError
from jtree.errors import JsonWriteError
from jtree.reader import ParseConfig
from jtree.reader import ParseResult
from jtree.reader import parse_into
from jtree.refs import NO_VALUE
from jtree.refs import ValueRef
from jtree.streams import ReadCursor
from jtree.streams import StreamCursor
from jtree.streams import StreamSink
from jtree.streams import WriteSink
from jtree.writer import WriteConfig
from jtree.writer import write_node
from jtree.writer import write_to_string

logger = logging.getLogger(__name__)

PathLike: TypeAlias = str | os.PathLike[str]


class Document:
    """
    Owns one JSON tree and its load state.

    Loading replaces the whole tree on success and leaves it untouched on
    failure; either way the outcome is kept in ``load_result``. Refs taken
    from ``get_root()`` stay valid across loads.

    Example::
        doc = Document()
        if not doc.load_from_buffer('{"port": 8080}'):
            raise SystemExit(doc.get_load_error())
        doc.get_root()["port"].get(int)  # 8080
    """

    BUFFER_SIZE = 65536

    def __init__(self, config: ParseConfig | None = None) -> None:
        self._arena = Arena()
        self._config = config or ParseConfig()
        self._load_result = ParseResult(True)

    @property
    def arena(self) -> Arena:
        return self._arena

    @property
    def config(self) -> ParseConfig:
        return self._config

    @property
    def load_result(self) -> ParseResult:
        """Outcome of the most recent load."""
        return self._load_result

    def _load(self, source: str | bytes | ReadCursor) -> bool:
        self._load_result = parse_into(self._arena, source, self._config)
        return self._load_result.success

    def load_from_buffer(self, buffer: str | bytes) -> bool:
        """Parses JSON text held in memory (str or UTF-8 bytes)."""
        return self._load(buffer)

    def load_from_stream(self, fp: IO[str] | ReadCursor) -> bool:
        """Parses JSON read from a text stream or a ReadCursor."""
        if isinstance(fp, ReadCursor):
            return self._load(fp)
        return self._load(StreamCursor(fp, self.BUFFER_SIZE))

    def load_from_file(self, path: PathLike) -> bool:
        """Parses a UTF-8 JSON file; False if it cannot be opened or parsed."""
        try:
            fp = open(path, encoding="utf-8", newline="")  # noqa: SIM115
        except OSError as exc:
            logger.warning("Cannot open %s for reading: %s", path, exc)
            self._load_result = ParseResult(
                False, 0, f"Cannot open file: {exc.strerror or exc}"
            )
            return False

        with fp:
            return self.load_from_stream(fp)

    def get_load_error(self) -> str:
        """Formatted ``Error offset[N]: message`` of the last load."""
        return self._load_result.describe()

    def save_to_buffer(self, pretty: bool = False) -> str:
        return write_to_string(
            self._arena, self._arena.root, WriteConfig(pretty=pretty)
        )

    def save_to_stream(
        self, fp: IO[str] | WriteSink, pretty: bool = False
    ) -> None:
        sink = fp if isinstance(fp, WriteSink) else StreamSink(fp)
        config = WriteConfig(pretty=pretty)
        write_node(self._arena, self._arena.root, sink, config)

    def save_to_file(self, path: PathLike, pretty: bool = False) -> bool:
        """
        Writes the tree as UTF-8.

        The text is rendered before the file is opened, so a tree that
        cannot be serialized leaves an existing file untouched. Returns
        False when rendering fails or the file cannot be opened.
        """
        try:
            text = self.save_to_buffer(pretty)
        except JsonWriteError as exc:
            logger.warning("Cannot serialize tree for %s: %s", path, exc)
            return False

        try:
            fp = open(path, "w", encoding="utf-8", newline="")  # noqa: SIM115
        except OSError as exc:
            logger.warning("Cannot open %s for writing: %s", path, exc)
            return False

        with fp:
            fp.write(text)
        return True

    def get_root(self) -> ValueRef:
        return ValueRef(self._arena, self._arena.root)

    @property
    def root(self) -> ValueRef:
        return self.get_root()

    def __str__(self) -> str:
        return str(self.get_root())


class Value(Document, ValueRef):
    """
    A standalone JSON value.

    A ``str`` source is parsed as JSON text; anything else is assigned as
    with ``ValueRef.set``, so refs are deep-copied and native containers are
    converted. Equality stays identity, like every ValueRef.

    Example::
        point = Value({"x": 1, "y": 2})
        point["z"] = 3
        str(point)  # '{"x":1,"y":2,"z":3}'
    """

    def __init__(
        self, source: Any = NO_VALUE, *, config: ParseConfig | None = None
    ) -> None:
        Document.__init__(self, config)
        ValueRef.__init__(self, self._arena, self._arena.root)
        if source is NO_VALUE:
            return

        if isinstance(source, str):
            if not self.load_from_buffer(source):
                result = self._load_result
                raise JSONDecodeError(result.message, result.offset)
        else:
            self.set(source)

    def copy(self) -> Value:
        """Independent deep copy of this value."""
        return Value(self, config=self._config)

    def __copy__(self) -> Value:
        return self.copy()

    def __deepcopy__(self, memo: dict[int, Any]) -> Value:
        return self.copy()

    def __str__(self) -> str:
        return ValueRef.__str__(self)

    def __repr__(self) -> str:
        return f"Value({self.to_string(32)})"


__all__ = ["Document", "Value"]
