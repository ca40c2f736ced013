"""
JSON text reader that fills an Arena.

A character-level lexer over a ReadCursor feeds a recursive descent parser
that allocates nodes straight into the target arena. Failures surface as a
ParseResult carrying the byte offset and a message; the tree being loaded
into is left untouched when parsing fails.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

from jtree._profile import ProfileContext
from jtree.arena import Arena
from jtree.arena import Kind
from jtree.arena import Member
from jtree.arena import classify_int
from jtree.errors import JSONDecodeError
from jtree.streams import END_OF_INPUT
from jtree.streams import ReadCursor
from jtree.streams import StringCursor

logger = logging.getLogger(__name__)

Position: TypeAlias = int

DIGITS = frozenset("0123456789")
HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
WHITESPACE = frozenset(" \t\n\r")

# Control characters below this code point must be escaped inside strings
_CONTROL_LIMIT = 0x20
_HIGH_SURROGATES = range(0xD800, 0xDC00)
_LOW_SURROGATES = range(0xDC00, 0xE000)

_ESCAPE_MAP = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_LITERALS = {
    "t": "true",
    "f": "false",
    "n": "null",
    "I": "Infinity",
    "N": "NaN",
}


class ParseState(Enum):
    """Token categories produced by the lexer."""

    OBJECT_START = "{"
    OBJECT_END = "}"
    ARRAY_START = "["
    ARRAY_END = "]"
    COMMA = ","
    COLON = ":"
    STRING = "string"
    NUMBER = "number"
    LITERAL = "literal"


_STRUCTURAL = {
    state.value: state for state in ParseState if len(state.value) == 1
}


@dataclass(frozen=True)
class ParseConfig:
    """
    Configures JSON parsing behavior with immutable settings.

    ``max_depth`` bounds container nesting so deeply nested input fails
    cleanly instead of exhausting the interpreter stack.
    """

    allow_nan_and_inf: bool = False
    max_depth: int = 256

    def __post_init__(self) -> None:
        if not isinstance(self.allow_nan_and_inf, bool):
            raise TypeError("allow_nan_and_inf must be a boolean")
        if isinstance(self.max_depth, bool) or not isinstance(
            self.max_depth, int
        ):
            raise TypeError("max_depth must be an integer")
        if self.max_depth < 1:
            raise ValueError("max_depth must be at least 1")


@dataclass(frozen=True)
class ParseResult:
    """Outcome of a load: success flag, byte offset and message."""

    success: bool
    offset: Position = 0
    message: str = "No error."

    def __bool__(self) -> bool:
        return self.success

    def describe(self) -> str:
        return f"Error offset[{self.offset}]: {self.message}"


@dataclass(frozen=True)
class JsonToken:
    """A lexed token with the position where it starts."""

    type: ParseState
    value: str
    start: Position
    line: int
    column: int


class JsonLexer:
    """
    Tokenizes JSON input read from a cursor.

    Tracks line and column while consuming characters so errors can point at
    the offending token. String escapes are decoded while scanning.
    """

    def __init__(self, cursor: ReadCursor):
        self.cursor = cursor
        self.line = 1
        self.column = 1

    @property
    def pos(self) -> Position:
        return self.cursor.tell()

    def peek(self) -> str:
        """Returns current character without advancing."""
        return self.cursor.peek()

    def advance(self) -> str:
        """Returns current character and advances position."""
        char = self.cursor.take()
        if char == "\n":
            self.line += 1
            self.column = 1
        elif char != END_OF_INPUT:
            self.column += 1
        return char

    def error(
        self,
        msg: str,
        pos: Position | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> JSONDecodeError:
        return JSONDecodeError(
            msg,
            self.pos if pos is None else pos,
            self.line if line is None else line,
            self.column if column is None else column,
        )

    def token_error(self, msg: str, token: JsonToken) -> JSONDecodeError:
        return JSONDecodeError(msg, token.start, token.line, token.column)

    def skip_whitespace(self) -> None:
        """Skips whitespace characters as defined by RFC 8259."""
        while self.peek() in WHITESPACE:
            self.advance()

    def _scan_hex_quad(self, start: Position) -> int:
        """Reads the four hex digits of a \\u escape."""
        digits = []
        for _ in range(4):
            char = self.peek()
            if char not in HEX_DIGITS:
                raise self.error("Invalid unicode escape sequence", start)
            digits.append(self.advance())
        return int("".join(digits), 16)

    def _scan_escape(self) -> str:
        """Decodes one escape sequence; the backslash is already consumed."""
        start = self.pos - 1
        char = self.advance()
        if char in _ESCAPE_MAP:
            return _ESCAPE_MAP[char]
        if char != "u":
            raise self.error(f"Invalid escape sequence: \\{char}", start)

        code_point = self._scan_hex_quad(start)
        if code_point in _LOW_SURROGATES:
            raise self.error("Invalid surrogate pair in string", start)
        if code_point in _HIGH_SURROGATES:
            if self.advance() != "\\" or self.advance() != "u":
                raise self.error("Invalid surrogate pair in string", start)
            low = self._scan_hex_quad(start)
            if low not in _LOW_SURROGATES:
                raise self.error("Invalid surrogate pair in string", start)
            code_point = 0x10000 + ((code_point - 0xD800) << 10) + (
                low - 0xDC00
            )
        return chr(code_point)

    def scan_string(self) -> JsonToken:
        """Scans a JSON string token, returning its decoded text."""
        with ProfileContext("scan_string") as profile:
            start, line, column = self.pos, self.line, self.column
            if self.advance() != '"':
                raise self.error("Expected string", start, line, column)

            chars: list[str] = []
            while True:
                char = self.peek()
                if char == END_OF_INPUT:
                    raise self.error(
                        "Unterminated string starting at", start, line, column
                    )
                if ord(char) < _CONTROL_LIMIT:
                    raise self.error("Invalid control character in string")

                self.advance()
                if char == '"':
                    profile.count(self.pos - start)
                    return JsonToken(
                        ParseState.STRING, "".join(chars), start, line, column
                    )
                if char == "\\":
                    chars.append(self._scan_escape())
                else:
                    chars.append(char)

    def _scan_integer_part(self, chars: list[str], token: JsonToken) -> None:
        """Scans the integer part of a JSON number."""
        if self.peek() not in DIGITS:
            raise self.token_error("Invalid number", token)

        if self.peek() == "0":
            chars.append(self.advance())
            if self.peek() in DIGITS:
                raise self.token_error("Leading zeros not allowed", token)
        else:
            while self.peek() in DIGITS:
                chars.append(self.advance())

    def _scan_decimal_part(self, chars: list[str], token: JsonToken) -> None:
        """Scans the decimal part of a JSON number if present."""
        if self.peek() == ".":
            chars.append(self.advance())
            if self.peek() not in DIGITS:
                raise self.token_error("Invalid decimal number", token)
            while self.peek() in DIGITS:
                chars.append(self.advance())

    def _scan_exponent_part(self, chars: list[str], token: JsonToken) -> None:
        """Scans the exponent part of a JSON number if present."""
        if self.peek() in ("e", "E"):
            chars.append(self.advance())
            if self.peek() in ("+", "-"):
                chars.append(self.advance())
            if self.peek() not in DIGITS:
                raise self.token_error("Invalid exponent", token)
            while self.peek() in DIGITS:
                chars.append(self.advance())

    def scan_number(self) -> JsonToken:
        """Scans a JSON number token, or the -Infinity literal."""
        with ProfileContext("scan_number") as profile:
            start, line, column = self.pos, self.line, self.column
            placeholder = JsonToken(ParseState.NUMBER, "", start, line, column)
            chars: list[str] = []

            if self.peek() == "-":
                chars.append(self.advance())
                if self.peek() == "I":
                    literal = self.scan_literal()
                    return JsonToken(
                        ParseState.LITERAL,
                        "-" + literal.value,
                        start,
                        line,
                        column,
                    )

            self._scan_integer_part(chars, placeholder)
            self._scan_decimal_part(chars, placeholder)
            self._scan_exponent_part(chars, placeholder)
            profile.count(self.pos - start)

            return JsonToken(
                ParseState.NUMBER, "".join(chars), start, line, column
            )

    def scan_literal(self) -> JsonToken:
        """Scans literal tokens: true, false, null, Infinity, NaN."""
        with ProfileContext("scan_literal") as profile:
            start, line, column = self.pos, self.line, self.column
            expected = _LITERALS.get(self.peek())
            if expected is None:
                raise self.error("Invalid literal", start, line, column)

            for char in expected:
                if self.peek() != char:
                    raise self.error("Invalid literal", start, line, column)
                self.advance()

            profile.count(self.pos - start)
            return JsonToken(ParseState.LITERAL, expected, start, line, column)

    def next_token(self) -> JsonToken | None:
        """Returns the next token or None if at end."""
        self.skip_whitespace()

        char = self.peek()
        if char == END_OF_INPUT:
            return None

        if char in _STRUCTURAL:
            start, line, column = self.pos, self.line, self.column
            self.advance()
            return JsonToken(_STRUCTURAL[char], char, start, line, column)
        elif char == '"':
            return self.scan_string()
        elif char in DIGITS or char == "-":
            return self.scan_number()
        elif char in _LITERALS:
            return self.scan_literal()
        else:
            raise self.error("Expecting value")


class JsonParser:
    """
    Recursive descent parser allocating nodes into an Arena.

    Containers are attached to their node before their children are parsed,
    so releasing the staging node after a failure frees everything built so
    far.
    """

    def __init__(self, lexer: JsonLexer, arena: Arena, config: ParseConfig):
        self.lexer = lexer
        self.arena = arena
        self.config = config
        self.current_token: JsonToken | None = None
        self._key_cache: dict[str, str] = {}

    def advance_token(self) -> JsonToken | None:
        """Advances to next token and returns it."""
        self.current_token = self.lexer.next_token()
        return self.current_token

    def expect_token(self, expected_value: str) -> JsonToken:
        """Expects a specific token value and advances."""
        token = self.current_token
        if token is None:
            raise self.lexer.error(f"Expecting '{expected_value}' delimiter")
        if token.value != expected_value or token.type is ParseState.STRING:
            raise self.lexer.token_error(
                f"Expecting '{expected_value}' delimiter", token
            )
        self.advance_token()
        return token

    def _at(self, state: ParseState) -> bool:
        token = self.current_token
        return token is not None and token.type is state

    def parse_document(self) -> int:
        """Parses a whole document into a new staging node."""
        if self.lexer.peek() == "\ufeff":
            raise self.lexer.error(
                "JSON input should not contain BOM (Byte Order Mark)"
            )

        index = self.arena.allocate()
        try:
            self.advance_token()
            self.parse_value(index, 0)
            if self.current_token is not None:
                raise self.lexer.token_error("Extra data", self.current_token)
        except Exception:
            self.arena.release(index)
            raise
        return index

    def parse_value(self, index: int, depth: int) -> None:
        """Parses any JSON value into the node at ``index``."""
        token = self.current_token
        if token is None:
            raise self.lexer.error("Expecting value")

        match token.type:
            case ParseState.LITERAL:
                self._store_literal(index, token)
                self.advance_token()
            case ParseState.STRING:
                self.arena.assign(index, Kind.STRING, token.value)
                self.advance_token()
            case ParseState.NUMBER:
                self._store_number(index, token)
                self.advance_token()
            case ParseState.OBJECT_START:
                self.parse_object(index, depth + 1)
            case ParseState.ARRAY_START:
                self.parse_array(index, depth + 1)
            case _:
                raise self.lexer.token_error("Expecting value", token)

    def _store_literal(self, index: int, token: JsonToken) -> None:
        if token.value == "null":
            self.arena.assign(index, Kind.NULL)
        elif token.value == "true":
            self.arena.assign(index, Kind.BOOL, True)
        elif token.value == "false":
            self.arena.assign(index, Kind.BOOL, False)
        elif self.config.allow_nan_and_inf:
            self.arena.assign(index, Kind.DOUBLE, float(token.value))
        else:
            raise self.lexer.token_error("Invalid literal", token)

    def _store_number(self, index: int, token: JsonToken) -> None:
        text = token.value
        if "." not in text and "e" not in text and "E" not in text:
            try:
                value = int(text)
            except ValueError:
                # Beyond the interpreter's digit limit; far outside 64 bits
                value = None
            if value is not None:
                kind = classify_int(value)
                if kind is not None:
                    self.arena.assign(index, kind, value)
                    return

        number = float(text)
        if math.isinf(number):
            raise self.lexer.token_error(
                "Number too big to be stored in double", token
            )
        self.arena.assign(index, Kind.DOUBLE, number)

    def _check_depth(self, depth: int, token: JsonToken) -> None:
        if depth > self.config.max_depth:
            raise self.lexer.token_error(
                "Maximum nesting depth exceeded", token
            )

    def _intern_key(self, key: str) -> str:
        """Caches parsed keys so identical keys share one string object."""
        return self._key_cache.setdefault(key, key)

    def _parse_object_key(self) -> str:
        """Parses object key and validates it's a proper string token."""
        token = self.current_token
        if token is None:
            raise self.lexer.error(
                "Expecting property name enclosed in double quotes"
            )
        if token.type is not ParseState.STRING:
            raise self.lexer.token_error(
                "Expecting property name enclosed in double quotes", token
            )

        self.advance_token()
        return self._intern_key(token.value)

    def _handle_continuation(
        self, end: ParseState, container: str
    ) -> bool:
        """Consumes ',' or the closing token; True if more items follow."""
        token = self.current_token
        if token is None:
            raise self.lexer.error("Expecting ',' delimiter")

        if token.type is end:
            self.advance_token()
            return False
        elif token.type is ParseState.COMMA:
            self.advance_token()
            if self._at(end):
                raise self.lexer.token_error(
                    f"Illegal trailing comma before end of {container}", token
                )
            return True
        else:
            raise self.lexer.token_error("Expecting ',' delimiter", token)

    def parse_object(self, index: int, depth: int) -> None:
        """Parses a JSON object into the node at ``index``."""
        with ProfileContext("parse_object"):
            token = self.expect_token("{")
            self._check_depth(depth, token)

            members: list[Member] = []
            self.arena.assign(index, Kind.OBJECT, members)

            if self._at(ParseState.OBJECT_END):
                self.advance_token()
                return

            while True:
                key = self._parse_object_key()
                self.expect_token(":")
                member = Member(
                    self.arena.allocate(Kind.STRING, key),
                    self.arena.allocate(),
                )
                members.append(member)
                self.parse_value(member.value, depth)

                if not self._handle_continuation(
                    ParseState.OBJECT_END, "object"
                ):
                    break

    def parse_array(self, index: int, depth: int) -> None:
        """Parses a JSON array into the node at ``index``."""
        with ProfileContext("parse_array"):
            token = self.expect_token("[")
            self._check_depth(depth, token)

            elements: list[int] = []
            self.arena.assign(index, Kind.ARRAY, elements)

            if self._at(ParseState.ARRAY_END):
                self.advance_token()
                return

            while True:
                element = self.arena.allocate()
                elements.append(element)
                self.parse_value(element, depth)

                if not self._handle_continuation(
                    ParseState.ARRAY_END, "array"
                ):
                    break

            self.arena.at(index).capacity = len(elements)


def _make_cursor(source: object) -> ReadCursor:
    if isinstance(source, str):
        return StringCursor(source)
    if isinstance(source, bytes | bytearray | memoryview):
        try:
            return StringCursor(bytes(source).decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise JSONDecodeError("Invalid UTF-8 encoding", exc.start) from exc
    if isinstance(source, ReadCursor):
        return source
    raise TypeError(
        f"the JSON source must be str, bytes or a ReadCursor, "
        f"not {type(source).__name__}"
    )


def parse_into(
    arena: Arena, source: object, config: ParseConfig | None = None
) -> ParseResult:
    """
    Parses ``source`` and, on success, replaces the tree under the root.

    Never raises for malformed input; the returned ParseResult tells
    whether the load worked and where it failed.
    """
    config = config or ParseConfig()
    try:
        cursor = _make_cursor(source)
        parser = JsonParser(JsonLexer(cursor), arena, config)
        start = cursor.tell()
        with ProfileContext("parse_document") as profile:
            staging = parser.parse_document()
            profile.count(cursor.tell() - start)
    except JSONDecodeError as exc:
        logger.debug("JSON parse failed: %s", exc)
        return ParseResult(False, exc.pos, exc.msg)
    except UnicodeDecodeError as exc:
        logger.debug("JSON stream is not valid UTF-8: %s", exc)
        return ParseResult(False, cursor.tell(), "Invalid UTF-8 encoding")
    except RecursionError:
        # max_depth set beyond what the interpreter stack can hold
        logger.debug("JSON nesting exhausted the stack at %d", cursor.tell())
        return ParseResult(
            False, cursor.tell(), "Maximum nesting depth exceeded"
        )

    arena.adopt(arena.root, staging)
    return ParseResult(True)


__all__ = [
    "JsonLexer",
    "JsonParser",
    "JsonToken",
    "ParseConfig",
    "ParseResult",
    "ParseState",
    "parse_into",
]
