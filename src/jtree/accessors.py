"""
Typed reads of a single node.

``as_value`` is permissive: it always produces a value of the requested
type, falling back to the type's zero when nothing sensible applies.
``get_value`` is strict: it answers None unless the stored kind matches the
target (and, for fixed-width integers, the value fits). Whenever
``get_value`` succeeds both functions agree.
"""

from __future__ import annotations

import math
from typing import Any

from jtree._numparse import parse_bool
from jtree._numparse import parse_float
from jtree._numparse import parse_int
from jtree.arena import INTEGRAL_KINDS
from jtree.arena import NUMBER_KINDS
from jtree.arena import Kind
from jtree.arena import Node
from jtree.arena import node_text
from jtree.targets import BoolTarget
from jtree.targets import CharTarget
from jtree.targets import FloatTarget
from jtree.targets import IntTarget
from jtree.targets import StrTarget
from jtree.targets import Target
from jtree.targets import uint8


def render_number(node: Node) -> str:
    """Natural text of a numeric node."""
    if node.kind is Kind.DOUBLE:
        return repr(node.payload)
    return str(node.payload)


def _truncate(value: float) -> int | None:
    if math.isnan(value) or math.isinf(value):
        return None
    return math.trunc(value)


def _as_int(node: Node, target: IntTarget) -> int:
    kind = node.kind
    if kind in INTEGRAL_KINDS:
        return target.wrap(node.payload)
    if kind is Kind.DOUBLE:
        truncated = _truncate(node.payload)
        return 0 if truncated is None else target.wrap(truncated)
    if kind is Kind.BOOL:
        return int(node.payload)
    if kind is Kind.STRING:
        parsed = parse_int(node_text(node), target)
        return 0 if parsed is None else parsed
    return 0


def _as_float(node: Node, target: FloatTarget) -> float:
    kind = node.kind
    if kind in NUMBER_KINDS or kind is Kind.BOOL:
        return target.narrow(float(node.payload))
    if kind is Kind.STRING:
        parsed = parse_float(node_text(node), target)
        return 0.0 if parsed is None else parsed
    return 0.0


def _as_bool(node: Node) -> bool:
    kind = node.kind
    if kind in NUMBER_KINDS or kind is Kind.BOOL:
        return bool(node.payload)
    if kind is Kind.STRING:
        return bool(parse_bool(node_text(node)))
    return False


def _as_str(node: Node) -> str:
    kind = node.kind
    if kind in NUMBER_KINDS:
        return render_number(node)
    if kind is Kind.BOOL:
        return "true" if node.payload else "false"
    if kind is Kind.STRING:
        return node_text(node)
    return ""


def _as_char(node: Node) -> str:
    kind = node.kind
    if kind in INTEGRAL_KINDS:
        return chr(uint8.wrap(node.payload))
    if kind is Kind.DOUBLE:
        truncated = _truncate(node.payload)
        return " " if truncated is None else chr(uint8.wrap(truncated))
    if kind is Kind.STRING:
        text = node_text(node)
        if text:
            return text[0]
    return " "


def as_value(node: Node, target: Target) -> Any:
    """Permissive conversion; never fails."""
    match target:
        case IntTarget():
            return _as_int(node, target)
        case FloatTarget():
            return _as_float(node, target)
        case BoolTarget():
            return _as_bool(node)
        case StrTarget():
            return _as_str(node)
        case CharTarget():
            return _as_char(node)
    raise TypeError(f"unsupported conversion target: {target!r}")


def get_value(node: Node, target: Target) -> Any | None:
    """Strict conversion; None when the node does not hold a ``target``."""
    kind = node.kind
    match target:
        case IntTarget():
            if kind in INTEGRAL_KINDS and target.contains(node.payload):
                return node.payload
            return None
        case FloatTarget():
            if kind in NUMBER_KINDS:
                return target.narrow(float(node.payload))
            return None
        case BoolTarget():
            return node.payload if kind is Kind.BOOL else None
        case StrTarget():
            return node_text(node) if kind is Kind.STRING else None
        case CharTarget():
            if kind is Kind.STRING:
                text = node_text(node)
                if len(text) == 1:
                    return text
            return None
    raise TypeError(f"unsupported conversion target: {target!r}")


__all__ = ["as_value", "get_value", "render_number"]
