"""
Conversion targets for typed reads.

Python has a single unbounded ``int``, so fixed-width integer and float
targets are described explicitly. Narrowing uses ctypes, which truncates
modulo 2**bits exactly like a C cast.
"""

from __future__ import annotations

import ctypes
from dataclasses import dataclass
from typing import TypeAlias

from jtree.arena import INT64_MIN
from jtree.arena import UINT64_MAX

_CTYPES_INTS: dict[tuple[int, bool], type[ctypes._SimpleCData]] = {
    (8, True): ctypes.c_int8,
    (8, False): ctypes.c_uint8,
    (16, True): ctypes.c_int16,
    (16, False): ctypes.c_uint16,
    (32, True): ctypes.c_int32,
    (32, False): ctypes.c_uint32,
    (64, True): ctypes.c_int64,
    (64, False): ctypes.c_uint64,
}


@dataclass(frozen=True)
class IntTarget:
    """
    Integer target of a given width and signedness.

    ``bits=None`` is the unbounded Python ``int``: any integral value the
    tree can hold is accepted and nothing is truncated.
    """

    name: str
    bits: int | None
    signed: bool = True

    @property
    def min_value(self) -> int:
        if self.bits is None:
            return INT64_MIN
        return -(2 ** (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        if self.bits is None:
            return UINT64_MAX
        if self.signed:
            return 2 ** (self.bits - 1) - 1
        return 2**self.bits - 1

    def contains(self, value: int) -> bool:
        return self.min_value <= value <= self.max_value

    def wrap(self, value: int) -> int:
        """Truncates ``value`` to the target width."""
        if self.bits is None:
            return value
        return _CTYPES_INTS[(self.bits, self.signed)](value).value

    def zero(self) -> int:
        return 0


@dataclass(frozen=True)
class FloatTarget:
    """Binary floating point target (32 or 64 bits)."""

    name: str
    bits: int

    def narrow(self, value: float) -> float:
        if self.bits == 32:
            return ctypes.c_float(value).value
        return float(value)

    def zero(self) -> float:
        return 0.0


@dataclass(frozen=True)
class BoolTarget:
    name: str = "bool"

    def zero(self) -> bool:
        return False


@dataclass(frozen=True)
class StrTarget:
    name: str = "str"

    def zero(self) -> str:
        return ""


@dataclass(frozen=True)
class CharTarget:
    """A single character; the permissive fallback is a space."""

    name: str = "char"

    def zero(self) -> str:
        return " "


Target: TypeAlias = IntTarget | FloatTarget | BoolTarget | StrTarget | CharTarget

int8 = IntTarget("int8", 8, True)
int16 = IntTarget("int16", 16, True)
int32 = IntTarget("int32", 32, True)
int64 = IntTarget("int64", 64, True)
uint8 = IntTarget("uint8", 8, False)
uint16 = IntTarget("uint16", 16, False)
uint32 = IntTarget("uint32", 32, False)
uint64 = IntTarget("uint64", 64, False)
integer = IntTarget("int", None)
float32 = FloatTarget("float32", 32)
float64 = FloatTarget("float64", 64)
boolean = BoolTarget()
string = StrTarget()
char = CharTarget()

_TARGET_TYPES = (IntTarget, FloatTarget, BoolTarget, StrTarget, CharTarget)

_BUILTIN_TARGETS: dict[type, Target] = {
    bool: boolean,
    int: integer,
    float: float64,
    str: string,
}


def resolve_target(target: object) -> Target:
    """Maps a target descriptor or builtin type to a descriptor."""
    if isinstance(target, _TARGET_TYPES):
        return target
    if isinstance(target, type) and target in _BUILTIN_TARGETS:
        return _BUILTIN_TARGETS[target]
    raise TypeError(f"unsupported conversion target: {target!r}")


__all__ = [
    "BoolTarget",
    "CharTarget",
    "FloatTarget",
    "IntTarget",
    "StrTarget",
    "Target",
    "boolean",
    "char",
    "float32",
    "float64",
    "int8",
    "int16",
    "int32",
    "int64",
    "integer",
    "resolve_target",
    "string",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
]
