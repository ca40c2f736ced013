"""
Handles onto nodes of an arena.

A ValueRef is an ``(arena, index, generation)`` triple: it owns nothing,
many refs may alias one node, and equality is identity of the node. Every
access validates the generation, so touching a node that was erased raises
StaleReferenceError instead of reading a recycled slot.

ArrayRef and ObjectRef are transient views over a ValueRef. Building one
over a null node turns it into an empty array/object in place; building one
over any other kind raises KindError.
"""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from jtree.accessors import as_value
from jtree.accessors import get_value
from jtree.accessors import render_number
from jtree.arena import INTEGRAL_KINDS
from jtree.arena import NUMBER_KINDS
from jtree.arena import Arena
from jtree.arena import Kind
from jtree.arena import Member
from jtree.arena import Node
from jtree.arena import node_byte_length
from jtree.arena import node_text
from jtree.errors import EmptyContainerError
from jtree.errors import KindError
from jtree.errors import OutOfRangeError
from jtree.interop import BYTES_LIKE
from jtree.interop import Predicate
from jtree.interop import StringStorage
from jtree.interop import as_dict
from jtree.interop import as_list
from jtree.interop import assign_mapping
from jtree.interop import assign_sequence
from jtree.interop import is_iterable
from jtree.interop import store_container
from jtree.interop import store_native
from jtree.interop import store_string
from jtree.interop import to_dict
from jtree.interop import to_list
from jtree.interop import to_python
from jtree.targets import resolve_target
from jtree.writer import WriteConfig
from jtree.writer import write_to_string

# Length of the value excerpt quoted in KindError messages
STRING_MAX_SIZE = 15

_DIAGNOSTIC_CONFIG = WriteConfig(allow_nan_and_inf=True)


class _NoValue:
    def __repr__(self) -> str:
        return "<no value>"


NO_VALUE: Any = _NoValue()


def _check_key(key: object) -> str:
    if not isinstance(key, str):
        raise TypeError(f"keys must be strings, not {type(key).__name__}")
    return key


def _check_position(position: object) -> int:
    if isinstance(position, bool) or not isinstance(position, int):
        raise TypeError(
            f"indices must be integers, not {type(position).__name__}"
        )
    return position


def _member_position(
    arena: Arena, members: list[Member], key: str
) -> int | None:
    for position, member in enumerate(members):
        if node_text(arena.at(member.name)) == key:
            return position
    return None


class ValueRef:
    """
    Borrowed handle to one node of an arena.

    Reads and writes go straight to the shared tree. Assignment is
    permissive (any JSON kind may replace any other); indexing coerces a
    null node into the container it needs.

    Example::
        doc = Document()
        root = doc.get_root()
        root["name"] = "jtree"
        root["tags"].push_back("json")
        root["tags"].get(str)            # None, it is an array
        root["tags"][0].get(str)         # "json"
    """

    def __init__(self, arena: Arena, index: int) -> None:
        self._arena = arena
        self._index = index
        self._generation = arena.generation_of(index)

    @property
    def _node(self) -> Node:
        return self._arena.node(self._index, self._generation)

    @property
    def arena(self) -> Arena:
        return self._arena

    @property
    def index(self) -> int:
        """Index of the referenced node; raises if the handle is stale."""
        self._node
        return self._index

    def is_valid(self) -> bool:
        """False once the referenced node has been erased."""
        return self._arena.is_live(self._index, self._generation)

    @property
    def kind(self) -> Kind:
        return self._node.kind

    def is_null(self) -> bool:
        return self._node.kind is Kind.NULL

    def is_bool(self) -> bool:
        return self._node.kind is Kind.BOOL

    def is_number(self) -> bool:
        return self._node.kind in NUMBER_KINDS

    def is_integral(self) -> bool:
        return self._node.kind in INTEGRAL_KINDS

    def is_double(self) -> bool:
        return self._node.kind is Kind.DOUBLE

    def is_string(self) -> bool:
        return self._node.kind is Kind.STRING

    def is_array(self) -> bool:
        return self._node.kind is Kind.ARRAY

    def is_object(self) -> bool:
        return self._node.kind is Kind.OBJECT

    def is_borrowed(self) -> bool:
        """True for strings that view a caller-owned buffer."""
        node = self._node
        return node.kind is Kind.STRING and node.borrowed

    def set(
        self, value: Any, storage: StringStorage = StringStorage.OWNED
    ) -> ValueRef:
        """
        Replaces the node with ``value``.

        Scalars set kind and payload, refs are deep-copied, mappings and
        iterables are converted recursively. ``storage`` decides whether
        strings are copied or borrowed.
        """
        self._node
        store_native(self._arena, self._index, value, storage)
        return self

    def set_string(self, value: str | bytes) -> ValueRef:
        """Stores an owned copy of ``value``."""
        if not isinstance(value, (str, *BYTES_LIKE)):
            raise TypeError(f"expected a string, got {type(value).__name__}")
        self._node
        store_string(self._arena, self._index, value, StringStorage.OWNED)
        return self

    def set_string_view(self, buffer: Any) -> ValueRef:
        """
        Stores a view of ``buffer`` without copying it.

        The buffer must outlive the tree; changes to it show through.
        """
        if not isinstance(buffer, (str, *BYTES_LIKE)):
            raise TypeError(f"expected a buffer, got {type(buffer).__name__}")
        self._node
        store_string(self._arena, self._index, buffer, StringStorage.BORROWED)
        return self

    def set_null(self) -> ValueRef:
        self._node
        self._arena.assign(self._index, Kind.NULL)
        return self

    def set_array(
        self,
        items: Iterable[Any] | None = None,
        storage: StringStorage = StringStorage.OWNED,
    ) -> ArrayRef:
        """Replaces the node with an array (empty or built from ``items``)."""
        self._node
        if items is None:
            self._arena.assign(self._index, Kind.ARRAY, [])
        elif is_iterable(items):
            assign_sequence(self._arena, self._index, items, storage)
        else:
            raise TypeError(f"expected an iterable, got {type(items).__name__}")
        return ArrayRef(self)

    def set_object(
        self,
        mapping: Mapping[str, Any] | None = None,
        storage: StringStorage = StringStorage.OWNED,
    ) -> ObjectRef:
        """Replaces the node with an object, empty or built from ``mapping``."""
        self._node
        if mapping is None:
            self._arena.assign(self._index, Kind.OBJECT, [])
        elif isinstance(mapping, Mapping):
            assign_mapping(self._arena, self._index, mapping, storage)
        else:
            raise TypeError(f"expected a mapping, got {type(mapping).__name__}")
        return ObjectRef(self)

    def set_container(
        self, container: Any, storage: StringStorage = StringStorage.OWNED
    ) -> ValueRef:
        """Replaces the node with a converted mapping or iterable."""
        self._node
        store_container(self._arena, self._index, container, storage)
        return self

    def __getitem__(self, key: int | str) -> ValueRef:
        if isinstance(key, str):
            node = self._node
            if node.kind is Kind.NULL:
                self._arena.assign(self._index, Kind.OBJECT, [])
            elif node.kind is not Kind.OBJECT:
                raise KindError("ValueRef[key] requires an object or null")
            return ObjectRef(self)[key]

        position = _check_position(key)
        if self._node.kind is not Kind.ARRAY:
            raise KindError("ValueRef is not array type")
        return ArrayRef(self)[position]

    def __setitem__(self, key: int | str, value: Any) -> None:
        self[key].set(value)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def has(self, key: str) -> bool:
        if self._node.kind is Kind.OBJECT:
            return ObjectRef(self).has(key)
        return False

    def find(self, key: str) -> ValueRef | None:
        """Looks ``key`` up without inserting; None if absent or no object."""
        if self._node.kind is Kind.OBJECT:
            return ObjectRef(self).find(key)
        return None

    def push_back(self, value: Any = NO_VALUE) -> ValueRef:
        """Appends to an array, turning a null node into one first."""
        node = self._node
        if node.kind is Kind.NULL:
            self._arena.assign(self._index, Kind.ARRAY, [])
        elif node.kind is not Kind.ARRAY:
            raise KindError("ValueRef.push_back requires an array or null")
        return ArrayRef(self).push_back(value)

    def empty(self) -> bool:
        """
        Emptiness of containers and strings.

        Scalars report False even though their size() is 0.
        """
        node = self._node
        if node.kind in (Kind.OBJECT, Kind.ARRAY):
            return not node.payload
        if node.kind is Kind.STRING:
            return node_byte_length(node) == 0
        return False

    def size(self) -> int:
        """Member count, element count or UTF-8 byte length; else 0."""
        node = self._node
        if node.kind in (Kind.OBJECT, Kind.ARRAY):
            return len(node.payload)
        if node.kind is Kind.STRING:
            return node_byte_length(node)
        return 0

    def as_(self, target: Any) -> Any:
        """Permissive typed read; always returns a value of ``target``."""
        return as_value(self._node, resolve_target(target))

    def get(self, target: Any) -> Any | None:
        """Strict typed read; None unless the node really holds ``target``."""
        return get_value(self._node, resolve_target(target))

    def to_string(self, max_len: int | None = None) -> str:
        """
        Diagnostic rendering.

        Null is ``Null``, numbers and booleans use their natural text,
        anything else is compact JSON cut at ``max_len`` characters with a
        trailing ``...``.
        """
        node = self._node
        if node.kind is Kind.NULL:
            return "Null"
        if node.kind in NUMBER_KINDS:
            return render_number(node)
        if node.kind is Kind.BOOL:
            return "true" if node.payload else "false"

        text = write_to_string(self._arena, self._index, _DIAGNOSTIC_CONFIG)
        if max_len is not None and len(text) > max_len:
            text = text[:max_len] + "..."
        return text

    def to_python(self) -> Any:
        """Native snapshot of the subtree (dicts, lists, scalars)."""
        self._node
        return to_python(self._arena, self._index)

    def get_array(self) -> ArrayRef:
        return ArrayRef(self)

    def get_object(self) -> ObjectRef:
        return ObjectRef(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueRef):
            return NotImplemented
        return (
            self._arena is other._arena
            and self._index == other._index
            and self._generation == other._generation
        )

    def __hash__(self) -> int:
        return hash((id(self._arena), self._index, self._generation))

    def __str__(self) -> str:
        self._node
        return write_to_string(self._arena, self._index, _DIAGNOSTIC_CONFIG)

    def __repr__(self) -> str:
        if not self.is_valid():
            return f"<stale {type(self).__name__}>"
        return f"{type(self).__name__}({self.to_string(32)})"


class ArrayRef:
    """
    Sequence view over an array node.

    Element refs stay valid while other elements are added or removed; only
    the refs of erased elements go stale.
    """

    def __init__(self, value: ValueRef) -> None:
        node = value._node
        if node.kind is Kind.NULL:
            value.arena.assign(value._index, Kind.ARRAY, [])
        elif node.kind is not Kind.ARRAY:
            raise KindError(
                f"Value({value.to_string(STRING_MAX_SIZE)}) is not array "
                f"type, ArrayRef must be built over an array"
            )
        self._ref = ValueRef(value.arena, value._index)

    @property
    def arena(self) -> Arena:
        return self._ref.arena

    @property
    def index(self) -> int:
        return self._ref.index

    def _array_node(self) -> Node:
        node = self._ref._node
        if node.kind is not Kind.ARRAY:
            raise KindError("ArrayRef target is no longer an array")
        return node

    def _elements(self) -> list[int]:
        return self._array_node().payload

    def _at(self, child: int) -> ValueRef:
        return ValueRef(self._ref.arena, child)

    def size(self) -> int:
        return len(self._elements())

    def __len__(self) -> int:
        return self.size()

    def empty(self) -> bool:
        return not self._elements()

    def capacity(self) -> int:
        node = self._array_node()
        return max(node.capacity, len(node.payload))

    def reserve(self, n: int) -> None:
        node = self._array_node()
        node.capacity = max(node.capacity, n)

    def resize(self, n: int, fill: Any = NO_VALUE) -> None:
        """Grows with copies of ``fill`` (null by default) or pops the back."""
        if n < 0:
            raise ValueError("size must be non-negative")
        self.reserve(n)
        while self.size() < n:
            self.push_back(fill)
        while self.size() > n:
            self.pop_back()

    def clear(self) -> None:
        elements = self._elements()
        arena = self._ref.arena
        for child in elements:
            arena.release(child)
        elements.clear()

    def __iter__(self) -> Iterator[ValueRef]:
        for child in list(self._elements()):
            yield self._at(child)

    def __getitem__(self, position: int) -> ValueRef:
        position = _check_position(position)
        elements = self._elements()
        if not 0 <= position < len(elements):
            raise OutOfRangeError(
                f"Array index {position} out of range (size {len(elements)})"
            )
        return self._at(elements[position])

    def __setitem__(self, position: int, value: Any) -> None:
        self[position].set(value)

    def front(self) -> ValueRef:
        elements = self._elements()
        if not elements:
            raise EmptyContainerError("front() called on an empty array")
        return self._at(elements[0])

    def back(self) -> ValueRef:
        elements = self._elements()
        if not elements:
            raise EmptyContainerError("back() called on an empty array")
        return self._at(elements[-1])

    def get_vector(self, target: Any) -> list[Any] | None:
        """Strict conversion of every element; None if any one fails."""
        self._array_node()
        ref = self._ref
        return to_list(ref.arena, ref._index, resolve_target(target))

    def as_vector(
        self, target: Any, predicate: Predicate | None = None
    ) -> list[Any]:
        """Permissive conversion, keeping values accepted by ``predicate``."""
        self._array_node()
        return as_list(
            self._ref.arena,
            self._ref._index,
            resolve_target(target),
            predicate,
        )

    def push_back(self, value: Any = NO_VALUE) -> ValueRef:
        """
        Appends a converted copy of ``value``, or null when omitted.

        Returns a ref to the new element for in-place construction.
        """
        elements = self._elements()
        arena = self._ref.arena
        child = arena.allocate()
        if value is not NO_VALUE:
            try:
                store_native(arena, child, value)
            except Exception:
                arena.release(child)
                raise
        elements.append(child)
        return self._at(child)

    def pop_back(self) -> None:
        elements = self._elements()
        if elements:
            self._ref.arena.release(elements.pop())

    def erase(self, position: int, last: int | None = None) -> int:
        """
        Removes one element, or the range ``[position, last)``.

        Returns the position of the element that followed the removed ones.
        """
        elements = self._elements()
        position = _check_position(position)
        if last is None:
            if not 0 <= position < len(elements):
                raise OutOfRangeError(f"cannot erase position {position}")
            last = position + 1
        else:
            last = _check_position(last)
            if not 0 <= position <= last <= len(elements):
                raise OutOfRangeError(
                    f"cannot erase range [{position}, {last})"
                )

        removed = elements[position:last]
        del elements[position:last]
        for child in removed:
            self._ref.arena.release(child)
        return position

    def set_container(
        self, items: Iterable[Any], storage: StringStorage = StringStorage.OWNED
    ) -> None:
        if not is_iterable(items):
            raise TypeError(f"expected an iterable, got {type(items).__name__}")
        self._array_node()
        assign_sequence(self._ref.arena, self._ref._index, items, storage)

    def to_string(self, max_len: int | None = None) -> str:
        return self._ref.to_string(max_len)

    def get_valueref(self) -> ValueRef:
        return self._ref

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArrayRef):
            return NotImplemented
        return self._ref == other._ref

    def __hash__(self) -> int:
        return hash(self._ref)

    def __str__(self) -> str:
        return str(self._ref)

    def __repr__(self) -> str:
        return f"ArrayRef({self._ref.to_string(32)})"


@dataclass(frozen=True)
class MemberRef:
    """One object member as a pair of refs."""

    name: ValueRef
    value: ValueRef

    @property
    def key(self) -> str:
        return self.name.as_(str)


class ObjectRef:
    """
    Mapping view over an object node.

    Members keep insertion order. Keys are matched exactly and need not be
    unique: ``insert`` always appends, lookups see the first match and
    iteration sees every member.
    """

    def __init__(self, value: ValueRef) -> None:
        node = value._node
        if node.kind is Kind.NULL:
            value.arena.assign(value._index, Kind.OBJECT, [])
        elif node.kind is not Kind.OBJECT:
            raise KindError(
                f"Value({value.to_string(STRING_MAX_SIZE)}) is not object "
                f"type, ObjectRef must be built over an object"
            )
        self._ref = ValueRef(value.arena, value._index)

    @property
    def arena(self) -> Arena:
        return self._ref.arena

    @property
    def index(self) -> int:
        return self._ref.index

    def _members(self) -> list[Member]:
        node = self._ref._node
        if node.kind is not Kind.OBJECT:
            raise KindError("ObjectRef target is no longer an object")
        return node.payload

    def _position(self, key: str) -> int | None:
        return _member_position(self._ref.arena, self._members(), key)

    def _member(self, member: Member) -> MemberRef:
        arena = self._ref.arena
        return MemberRef(
            ValueRef(arena, member.name), ValueRef(arena, member.value)
        )

    def _append(self, key: Any, value: Any, storage: StringStorage) -> ValueRef:
        if not isinstance(key, (str, *BYTES_LIKE)):
            raise TypeError(f"keys must be strings, not {type(key).__name__}")
        members = self._members()
        arena = self._ref.arena
        member = Member(arena.allocate(), arena.allocate())
        try:
            store_string(arena, member.name, key, storage)
            if value is not NO_VALUE:
                store_native(arena, member.value, value)
        except Exception:
            arena.release(member.name)
            arena.release(member.value)
            raise
        members.append(member)
        return ValueRef(arena, member.value)

    def __getitem__(self, key: str) -> ValueRef:
        """Returns the first member named ``key``, inserting null if absent."""
        key = _check_key(key)
        position = self._position(key)
        if position is None:
            return self._append(key, NO_VALUE, StringStorage.OWNED)
        return ValueRef(self._ref.arena, self._members()[position].value)

    def __setitem__(self, key: str, value: Any) -> None:
        self[key].set(value)

    def find(self, key: str) -> ValueRef | None:
        position = self._position(_check_key(key))
        if position is None:
            return None
        return ValueRef(self._ref.arena, self._members()[position].value)

    def has(self, key: str) -> bool:
        return self._position(_check_key(key)) is not None

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def count(self, key: str) -> int:
        return 1 if self.has(key) else 0

    def get_value(
        self, key: str, target: Any, default: Any = NO_VALUE
    ) -> Any | None:
        """
        Strict typed read of a member.

        Falls back to ``default`` (None when omitted) if the key is absent
        or the value does not hold ``target``.
        """
        found = self.find(key)
        value = None if found is None else found.get(target)
        if value is None and default is not NO_VALUE:
            return default
        return value

    def find_any(self, keys: Iterable[str]) -> MemberRef | None:
        """Returns the member of the first key in ``keys`` that is present."""
        members = self._members()
        for key in keys:
            position = self._position(_check_key(key))
            if position is not None:
                return self._member(members[position])
        return None

    def find_all(self, keys: Iterable[str]) -> bool:
        return all(self.has(key) for key in keys)

    def size(self) -> int:
        return len(self._members())

    def __len__(self) -> int:
        return self.size()

    def empty(self) -> bool:
        return not self._members()

    def clear(self) -> None:
        members = self._members()
        arena = self._ref.arena
        for member in members:
            arena.release(member.name)
            arena.release(member.value)
        members.clear()

    def __iter__(self) -> Iterator[MemberRef]:
        for member in list(self._members()):
            yield self._member(member)

    def insert(self, key: str | bytes, value: Any = NO_VALUE) -> ValueRef:
        """Appends a member with an owned key, even if ``key`` exists."""
        return self._append(key, value, StringStorage.OWNED)

    def insert_view(self, key: Any, value: Any = NO_VALUE) -> ValueRef:
        """Appends a member whose key borrows the caller's buffer."""
        return self._append(key, value, StringStorage.BORROWED)

    def erase(self, key: str) -> bool:
        """Removes the first member named ``key``; False if there is none."""
        position = self._position(_check_key(key))
        if position is None:
            return False
        self.erase_at(position)
        return True

    def erase_at(self, position: int) -> int:
        position = _check_position(position)
        if not 0 <= position < self.size():
            raise OutOfRangeError(f"cannot erase member {position}")
        return self.erase_range(position, position + 1)

    def erase_range(self, first: int, last: int) -> int:
        """Removes members ``[first, last)``; returns ``first``."""
        members = self._members()
        first = _check_position(first)
        last = _check_position(last)
        if not 0 <= first <= last <= len(members):
            raise OutOfRangeError(f"cannot erase members [{first}, {last})")

        removed = members[first:last]
        del members[first:last]
        arena = self._ref.arena
        for member in removed:
            arena.release(member.name)
            arena.release(member.value)
        return first

    def get_map(self, target: Any) -> dict[str, Any] | None:
        """Strict conversion of every value; None if any one fails."""
        self._members()
        ref = self._ref
        return to_dict(ref.arena, ref._index, resolve_target(target))

    def as_map(
        self, target: Any, predicate: Predicate | None = None
    ) -> dict[str, Any]:
        self._members()
        return as_dict(
            self._ref.arena,
            self._ref._index,
            resolve_target(target),
            predicate,
        )

    def set_container(
        self,
        mapping: Mapping[str, Any],
        storage: StringStorage = StringStorage.OWNED,
    ) -> None:
        if not isinstance(mapping, Mapping):
            raise TypeError(f"expected a mapping, got {type(mapping).__name__}")
        self._members()
        assign_mapping(self._ref.arena, self._ref._index, mapping, storage)

    def to_string(self, max_len: int | None = None) -> str:
        return self._ref.to_string(max_len)

    def get_valueref(self) -> ValueRef:
        return self._ref

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectRef):
            return NotImplemented
        return self._ref == other._ref

    def __hash__(self) -> int:
        return hash(self._ref)

    def __str__(self) -> str:
        return str(self._ref)

    def __repr__(self) -> str:
        return f"ObjectRef({self._ref.to_string(32)})"


__all__ = ["NO_VALUE", "ArrayRef", "MemberRef", "ObjectRef", "ValueRef"]
