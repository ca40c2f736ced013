"""
Mapping between native Python values and arena nodes.

Dispatch is by capability, not by concrete type: any string-keyed
``Mapping`` becomes an object, any other ordered iterable becomes an array,
any ``numbers.Integral`` is normalized through ``operator.index`` (so
NumPy and ctypes integers of any width land on the canonical 64-bit kinds)
and anything exposing ``arena``/``index`` is deep-copied as a subtree.
"""

from __future__ import annotations

import numbers
import operator
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Set
from enum import Enum
from typing import Any
from typing import Protocol
from typing import TypeAlias
from typing import runtime_checkable

from jtree.accessors import as_value
from jtree.accessors import get_value
from jtree.arena import Arena
from jtree.arena import Kind
from jtree.arena import Member
from jtree.arena import classify_int
from jtree.arena import node_text
from jtree.targets import Target

BYTES_LIKE = (bytes, bytearray, memoryview)

Predicate: TypeAlias = Callable[[Any], bool]


class StringStorage(Enum):
    """
    How string bytes end up in the tree.

    OWNED copies the text into the arena. BORROWED keeps a reference to the
    caller's buffer and decodes it on every read, so later changes to the
    buffer show through; the caller must keep it alive and valid UTF-8.
    """

    OWNED = "owned"
    BORROWED = "borrowed"


@runtime_checkable
class NodeSource(Protocol):
    """Anything pointing at a node of some arena (ValueRef and views)."""

    @property
    def arena(self) -> Arena: ...

    @property
    def index(self) -> int: ...


def is_iterable(obj: object) -> bool:
    """
    True for ordered iterables: not text, mappings or sets.

    Sets and dict views iterate in no stable order, so they have no array
    form.
    """
    return isinstance(obj, Iterable) and not isinstance(
        obj, (str, *BYTES_LIKE, Mapping, Set)
    )


def _is_key(key: object) -> bool:
    return isinstance(key, (str, *BYTES_LIKE))


def is_string_mapping(obj: object) -> bool:
    """True for mappings whose keys are all strings."""
    return isinstance(obj, Mapping) and all(_is_key(key) for key in obj)


def _reject_keys(mapping: Mapping[Any, Any]) -> None:
    key = next(key for key in mapping if not _is_key(key))
    raise TypeError(f"keys must be strings, not {type(key).__name__}")


def store_string(
    arena: Arena, index: int, value: Any, storage: StringStorage
) -> None:
    """Stores a str or UTF-8 buffer, copying it unless borrowed."""
    if storage is StringStorage.BORROWED:
        payload = value if isinstance(value, str) else memoryview(value)
        arena.assign(index, Kind.STRING, payload, borrowed=True)
    else:
        arena.assign(index, Kind.STRING, arena.copy_string(value))


def store_int(arena: Arena, index: int, value: int) -> None:
    kind = classify_int(value)
    if kind is None:
        arena.assign(index, Kind.DOUBLE, float(value))
    else:
        arena.assign(index, kind, value)


def store_native(
    arena: Arena,
    index: int,
    value: Any,
    storage: StringStorage = StringStorage.OWNED,
) -> None:
    """Assigns any supported native value to the node at ``index``."""
    if value is None:
        arena.assign(index, Kind.NULL)
    elif isinstance(value, bool):
        arena.assign(index, Kind.BOOL, value)
    elif isinstance(value, numbers.Integral):
        store_int(arena, index, operator.index(value))
    elif isinstance(value, numbers.Real):
        arena.assign(index, Kind.DOUBLE, float(value))
    elif isinstance(value, (str, *BYTES_LIKE)):
        store_string(arena, index, value, storage)
    elif isinstance(value, NodeSource):
        source_arena, source_index = value.arena, value.index
        if source_arena is arena and source_index == index:
            return
        arena.adopt(index, arena.copy_from(source_arena, source_index))
    elif is_string_mapping(value):
        assign_mapping(arena, index, value, storage)
    elif isinstance(value, Mapping):
        _reject_keys(value)
    elif is_iterable(value):
        assign_sequence(arena, index, value, storage)
    else:
        msg = f"Object of type {type(value).__name__} is not JSON serializable"
        raise TypeError(msg)


def assign_sequence(
    arena: Arena,
    index: int,
    items: Iterable[Any],
    storage: StringStorage = StringStorage.OWNED,
) -> None:
    """
    Replaces the node with an array of converted ``items``.

    The array is built aside and swapped in at the end, so items may refer
    to the node being replaced and a failing item leaves it untouched.
    """
    staging = arena.allocate(Kind.ARRAY, [])
    elements: list[int] = arena.at(staging).payload
    try:
        for item in items:
            child = arena.allocate()
            elements.append(child)
            store_native(arena, child, item, storage)
    except Exception:
        arena.release(staging)
        raise

    arena.at(staging).capacity = len(elements)
    arena.adopt(index, staging)


def assign_mapping(
    arena: Arena,
    index: int,
    mapping: Mapping[Any, Any],
    storage: StringStorage = StringStorage.OWNED,
) -> None:
    """Replaces the node with an object built in ``mapping`` order."""
    staging = arena.allocate(Kind.OBJECT, [])
    members: list[Member] = arena.at(staging).payload
    try:
        for key, value in mapping.items():
            if not _is_key(key):
                msg = f"keys must be strings, not {type(key).__name__}"
                raise TypeError(msg)
            member = Member(arena.allocate(), arena.allocate())
            members.append(member)
            store_string(arena, member.name, key, storage)
            store_native(arena, member.value, value, storage)
    except Exception:
        arena.release(staging)
        raise

    arena.adopt(index, staging)


def store_container(
    arena: Arena,
    index: int,
    container: Any,
    storage: StringStorage = StringStorage.OWNED,
) -> None:
    """Assigns a mapping or an iterable; rejects scalars."""
    if is_string_mapping(container):
        assign_mapping(arena, index, container, storage)
    elif isinstance(container, Mapping):
        _reject_keys(container)
    elif is_iterable(container):
        assign_sequence(arena, index, container, storage)
    else:
        msg = (
            f"expected a mapping or an iterable, "
            f"got {type(container).__name__}"
        )
        raise TypeError(msg)


def to_list(arena: Arena, index: int, target: Target) -> list[Any] | None:
    """Strict, all-or-nothing conversion of an array's elements."""
    result = []
    for child in arena.at(index).payload:
        value = get_value(arena.at(child), target)
        if value is None:
            return None
        result.append(value)
    return result


def as_list(
    arena: Arena,
    index: int,
    target: Target,
    predicate: Predicate | None = None,
) -> list[Any]:
    """Lenient conversion keeping the elements accepted by ``predicate``."""
    result = []
    for child in arena.at(index).payload:
        value = as_value(arena.at(child), target)
        if predicate is None or predicate(value):
            result.append(value)
    return result


def _members(arena: Arena, index: int) -> Iterable[tuple[str, int]]:
    for member in arena.at(index).payload:
        yield node_text(arena.at(member.name)), member.value


def to_dict(
    arena: Arena, index: int, target: Target
) -> dict[str, Any] | None:
    """Strict conversion of an object's values; first duplicate key wins."""
    result: dict[str, Any] = {}
    for key, child in _members(arena, index):
        value = get_value(arena.at(child), target)
        if value is None:
            return None
        result.setdefault(key, value)
    return result


def as_dict(
    arena: Arena,
    index: int,
    target: Target,
    predicate: Predicate | None = None,
) -> dict[str, Any]:
    """Lenient conversion of an object's values."""
    result: dict[str, Any] = {}
    seen: set[str] = set()
    for key, child in _members(arena, index):
        if key in seen:
            continue
        seen.add(key)
        value = as_value(arena.at(child), target)
        if predicate is None or predicate(value):
            result[key] = value
    return result


def to_python(arena: Arena, index: int) -> Any:
    """Native snapshot of a subtree: dicts, lists and scalars."""
    snapshot: list[Any] = [None]
    # (node, container to fill, slot in it); walked without recursion
    pending: list[tuple[int, Any, Any]] = [(index, snapshot, 0)]
    while pending:
        current, parent, slot = pending.pop()
        node = arena.at(current)
        value: Any
        match node.kind:
            case Kind.ARRAY:
                value = [None] * len(node.payload)
                pending.extend(
                    (child, value, position)
                    for position, child in enumerate(node.payload)
                )
            case Kind.OBJECT:
                value = {}
                for key, child in _members(arena, current):
                    if key not in value:
                        value[key] = None
                        pending.append((child, value, key))
            case Kind.STRING:
                value = node_text(node)
            case _:
                value = node.payload
        parent[slot] = value
    return snapshot[0]


__all__ = [
    "NodeSource",
    "StringStorage",
    "as_dict",
    "as_list",
    "assign_mapping",
    "assign_sequence",
    "is_iterable",
    "is_string_mapping",
    "store_container",
    "store_native",
    "to_dict",
    "to_list",
    "to_python",
]
