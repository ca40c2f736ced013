"""
Numeric text parsing tests.

Validates the locale-independent parsers behind permissive reads of
strings: empty input, trailing garbage, overflow and underflow all fail.
"""

import math

import pytest

from jtree import boolean
from jtree import float32
from jtree import float64
from jtree import int8
from jtree import int64
from jtree import integer
from jtree import uint8
from jtree import uint64
from jtree._numparse import parse_bool
from jtree._numparse import parse_float
from jtree._numparse import parse_int
from jtree._numparse import parse_text


@pytest.mark.parametrize(
    "text,expected",
    [
        ("0", 0),
        ("127", 127),
        ("-128", -128),
        ("+5", 5),
        ("\t\n 12", 12),
        ("128", None),
        ("-129", None),
        ("", None),
        ("   ", None),
        ("12 ", None),
        ("1_000", None),
        ("0x10", None),
        ("1.0", None),
        ("١٢", None),
    ],
)
def test_parse_int8(text: str, expected: int | None) -> None:
    """
    Validates integer parsing against the int8 range.
    """
    assert parse_int(text, int8) == expected


def test_parse_int_unsigned_rejects_minus() -> None:
    """
    Validates unsigned targets refuse any minus sign, even for zero.
    """
    assert parse_int("-0", uint8) is None
    assert parse_int("255", uint8) == 255
    assert parse_int("18446744073709551615", uint64) == 2**64 - 1
    assert parse_int("18446744073709551616", uint64) is None
    assert parse_int("-9223372036854775809", int64) is None
    assert parse_int("-9223372036854775808", integer) == -(2**63)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("1.5", 1.5),
        ("-0.25", -0.25),
        (".5", 0.5),
        ("5.", 5.0),
        ("1e3", 1000.0),
        ("  2E-2", 0.02),
        ("0", 0.0),
        ("0e10", 0.0),
        ("inf", math.inf),
        ("-Infinity", -math.inf),
        ("", None),
        ("1e400", None),
        ("1e-400", None),
        ("1.5x", None),
        ("e5", None),
        ("1,5", None),
    ],
)
def test_parse_float64(text: str, expected: float | None) -> None:
    """
    Validates double parsing including overflow and underflow rejection.
    """
    assert parse_float(text, float64) == expected


def test_parse_float_nan() -> None:
    """
    Validates NaN spellings parse to NaN.
    """
    result = parse_float("NaN", float64)
    assert result is not None
    assert math.isnan(result)


def test_parse_float32_range() -> None:
    """
    Validates single precision rejects values beyond its range.
    """
    assert parse_float("1e38", float32) == pytest.approx(1e38, rel=1e-7)
    assert parse_float("1e39", float32) is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("true", True),
        ("False", False),
        ("TRUE", True),
        ("yes", None),
        ("1", None),
        ("", None),
        (" true", None),
    ],
)
def test_parse_bool(text: str, expected: bool | None) -> None:
    """
    Validates case-insensitive true/false parsing.
    """
    assert parse_bool(text) is expected


def test_parse_text_dispatches_on_target() -> None:
    """
    Validates parse_text routes to the parser matching the target.
    """
    assert parse_text("7", int8) == 7
    assert parse_text("7.5", float64) == 7.5
    assert parse_text("false", boolean) is False
    assert parse_text("7.5", int8) is None
