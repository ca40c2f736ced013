"""
Read cursors and write sinks used by the reader and writer.

The reader only needs ``peek``/``take``/``tell`` and the writer only needs
``put``/``flush``, so any backing store satisfying these protocols can be
parsed from or written to.
"""

from __future__ import annotations

from typing import IO
from typing import Protocol
from typing import runtime_checkable

END_OF_INPUT = "\0"

# Largest code points encodable in 1, 2 and 3 UTF-8 bytes
_UTF8_ONE_BYTE = 0x7F
_UTF8_TWO_BYTES = 0x7FF
_UTF8_THREE_BYTES = 0xFFFF


def utf8_width(char: str) -> int:
    """Returns how many bytes ``char`` occupies in UTF-8."""
    code_point = ord(char)
    if code_point <= _UTF8_ONE_BYTE:
        return 1
    if code_point <= _UTF8_TWO_BYTES:
        return 2
    if code_point <= _UTF8_THREE_BYTES:
        return 3
    return 4


@runtime_checkable
class ReadCursor(Protocol):
    """Character source; ``peek``/``take`` return ``"\\0"`` at the end."""

    def peek(self) -> str: ...

    def take(self) -> str: ...

    def tell(self) -> int: ...


@runtime_checkable
class WriteSink(Protocol):
    """Character sink for serialized output."""

    def put(self, chunk: str) -> None: ...

    def flush(self) -> None: ...


class StringCursor:
    """Cursor over an in-memory string, reporting UTF-8 byte offsets."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.length = len(text)
        self._offset = 0

    def peek(self) -> str:
        """Returns current character without advancing."""
        return self.text[self.pos] if self.pos < self.length else END_OF_INPUT

    def take(self) -> str:
        """Returns current character and advances position."""
        char = self.peek()
        if self.pos < self.length:
            self.pos += 1
            self._offset += utf8_width(char)
        return char

    def tell(self) -> int:
        return self._offset


class StreamCursor:
    """
    Cursor over a text stream.

    Reads the stream in blocks and keeps a single character of lookahead;
    the stream is never rewound.
    """

    BUFFER_SIZE = 65536

    def __init__(self, fp: IO[str], buffer_size: int = BUFFER_SIZE) -> None:
        if not hasattr(fp, "read"):
            raise TypeError("fp must have a read() method")
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")

        self._fp = fp
        self._buffer_size = buffer_size
        self._buffer = ""
        self._index = 0
        self._offset = 0
        self._exhausted = False

    def _fill(self) -> bool:
        if self._index < len(self._buffer):
            return True
        if self._exhausted:
            return False

        chunk = self._fp.read(self._buffer_size)
        if not chunk:
            self._exhausted = True
            return False
        if not isinstance(chunk, str):
            raise TypeError("stream must be opened in text mode")

        self._buffer = chunk
        self._index = 0
        return True

    def peek(self) -> str:
        if not self._fill():
            return END_OF_INPUT
        return self._buffer[self._index]

    def take(self) -> str:
        if not self._fill():
            return END_OF_INPUT
        char = self._buffer[self._index]
        self._index += 1
        self._offset += utf8_width(char)
        return char

    def tell(self) -> int:
        return self._offset


class StringSink:
    """Collects written chunks in memory."""

    def __init__(self) -> None:
        self._chunks: list[str] = []

    def put(self, chunk: str) -> None:
        self._chunks.append(chunk)

    def flush(self) -> None:
        pass

    def getvalue(self) -> str:
        return "".join(self._chunks)


class StreamSink:
    """Forwards written chunks to a text stream."""

    def __init__(self, fp: IO[str]) -> None:
        if not hasattr(fp, "write"):
            raise TypeError("fp must have a write() method")
        self._fp = fp

    def put(self, chunk: str) -> None:
        self._fp.write(chunk)

    def flush(self) -> None:
        flush = getattr(self._fp, "flush", None)
        if flush is not None:
            flush()


__all__ = [
    "END_OF_INPUT",
    "ReadCursor",
    "StreamCursor",
    "StreamSink",
    "StringCursor",
    "StringSink",
    "WriteSink",
    "utf8_width",
]
