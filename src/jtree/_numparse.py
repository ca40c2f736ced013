"""Locale-independent parsing of numbers and booleans held in strings."""

from __future__ import annotations

import math
import re

from jtree.targets import BoolTarget
from jtree.targets import FloatTarget
from jtree.targets import IntTarget

_LEADING_WHITESPACE = " \t\n\r\f\v"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+", re.ASCII)
_FLOAT_PATTERN = re.compile(
    r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    r"|[+-]?(?:inf|infinity|nan)",
    re.ASCII | re.IGNORECASE,
)


def parse_int(text: str, target: IntTarget) -> int | None:
    """
    Parses a base-10 integer that must fit ``target``.

    Leading whitespace is skipped; trailing characters, an empty string,
    a minus sign for unsigned targets and out-of-range values all fail.
    """
    stripped = text.lstrip(_LEADING_WHITESPACE)
    if not stripped:
        return None
    if not target.signed and "-" in stripped:
        return None
    if not _INT_PATTERN.fullmatch(stripped):
        return None

    value = int(stripped)
    if not target.contains(value):
        return None
    return value


def _has_nonzero_digit(mantissa: str) -> bool:
    return any(c in "123456789" for c in mantissa)


def parse_float(text: str, target: FloatTarget) -> float | None:
    """
    Parses a decimal floating point number.

    ``inf`` and ``nan`` spellings are accepted; values that overflow to
    infinity or underflow to zero are rejected.
    """
    stripped = text.lstrip(_LEADING_WHITESPACE)
    if not stripped or not _FLOAT_PATTERN.fullmatch(stripped):
        return None

    value = float(stripped)
    if stripped.lstrip("+-")[:1].lower() in ("i", "n"):
        return target.narrow(value)

    mantissa = re.split("[eE]", stripped, maxsplit=1)[0]
    if math.isinf(value):
        return None
    if value == 0.0 and _has_nonzero_digit(mantissa):
        return None

    narrowed = target.narrow(value)
    if math.isinf(narrowed):
        return None
    return narrowed


def parse_bool(text: str) -> bool | None:
    """Parses ``true``/``false`` in any letter case."""
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return None


def parse_text(
    text: str, target: IntTarget | FloatTarget | BoolTarget
) -> int | float | bool | None:
    """Parses ``text`` for a numeric or boolean target, None on failure."""
    if isinstance(target, IntTarget):
        return parse_int(text, target)
    if isinstance(target, FloatTarget):
        return parse_float(text, target)
    return parse_bool(text)


__all__ = ["parse_bool", "parse_float", "parse_int", "parse_text"]
