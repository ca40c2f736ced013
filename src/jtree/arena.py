"""
Node storage for one JSON tree.

Nodes live in a flat slot list and are addressed by stable integer indices.
A slot carries a generation counter that is bumped whenever the slot is
released, so a handle holding ``(index, generation)`` can tell that its node
is gone instead of silently reading whatever reused the slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from jtree.errors import StaleReferenceError

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
UINT32_MAX = 2**32 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1


class Kind(Enum):
    """Kind of value stored in a node."""

    NULL = "null"
    BOOL = "bool"
    INT32 = "int32"
    UINT32 = "uint32"
    INT64 = "int64"
    UINT64 = "uint64"
    DOUBLE = "double"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


INTEGRAL_KINDS = frozenset({Kind.INT32, Kind.UINT32, Kind.INT64, Kind.UINT64})
NUMBER_KINDS = INTEGRAL_KINDS | {Kind.DOUBLE}


def classify_int(value: int) -> Kind | None:
    """
    Returns the narrowest integral kind holding ``value``.

    None means the value does not fit in 64 bits and must be stored as a
    double.
    """
    if value < 0:
        if value >= INT32_MIN:
            return Kind.INT32
        if value >= INT64_MIN:
            return Kind.INT64
        return None
    if value <= INT32_MAX:
        return Kind.INT32
    if value <= UINT32_MAX:
        return Kind.UINT32
    if value <= INT64_MAX:
        return Kind.INT64
    if value <= UINT64_MAX:
        return Kind.UINT64
    return None


@dataclass(slots=True)
class Member:
    """One object member: indices of its name node and value node."""

    name: int
    value: int


@dataclass(slots=True)
class Node:
    """
    One typed value slot in the tree.

    ARRAY payloads are lists of child indices, OBJECT payloads are lists of
    ``Member``. STRING payloads are an owned ``str`` or, when ``borrowed`` is
    set, a caller-owned buffer decoded as UTF-8 on every read.
    """

    kind: Kind = Kind.NULL
    payload: Any = None
    generation: int = 0
    live: bool = True
    capacity: int = 0
    borrowed: bool = False


def node_text(node: Node) -> str:
    """Returns the text of a STRING node, decoding borrowed buffers."""
    payload = node.payload
    if isinstance(payload, str):
        return payload
    return bytes(payload).decode("utf-8")


def node_byte_length(node: Node) -> int:
    """Returns the UTF-8 length of a STRING node without copying buffers."""
    payload = node.payload
    if isinstance(payload, str):
        return len(payload.encode("utf-8"))
    return memoryview(payload).nbytes


class Arena:
    """
    Owns every node of one tree.

    The root slot is allocated on construction and never released, so a
    handle to the root stays valid for the lifetime of the arena.
    """

    def __init__(self) -> None:
        self._nodes: list[Node] = []
        self._free: list[int] = []
        self.root = self.allocate()

    def allocate(self, kind: Kind = Kind.NULL, payload: Any = None) -> int:
        """Returns the index of a fresh node, reusing released slots."""
        if self._free:
            index = self._free.pop()
            node = self._nodes[index]
            node.kind = kind
            node.payload = payload
            node.live = True
            node.capacity = 0
            node.borrowed = False
            return index

        self._nodes.append(Node(kind, payload))
        return len(self._nodes) - 1

    def node(self, index: int, generation: int) -> Node:
        """Returns the node at ``index`` if it still has ``generation``."""
        node = self._nodes[index]
        if not node.live or node.generation != generation:
            raise StaleReferenceError(
                f"node {index} was released (generation {generation}, "
                f"now {node.generation})"
            )
        return node

    def at(self, index: int) -> Node:
        """Returns the node at ``index`` without a generation check."""
        return self._nodes[index]

    def generation_of(self, index: int) -> int:
        return self._nodes[index].generation

    def is_live(self, index: int, generation: int) -> bool:
        if index >= len(self._nodes):
            return False
        node = self._nodes[index]
        return node.live and node.generation == generation

    @property
    def live_count(self) -> int:
        """Number of nodes currently in use."""
        return len(self._nodes) - len(self._free)

    def children(self, index: int) -> list[int]:
        """Returns the direct child indices of a container node."""
        node = self._nodes[index]
        if node.kind is Kind.ARRAY:
            return list(node.payload)
        if node.kind is Kind.OBJECT:
            result: list[int] = []
            for member in node.payload:
                result.append(member.name)
                result.append(member.value)
            return result
        return []

    def release_children(self, index: int) -> None:
        """Releases every node below ``index`` and resets it to NULL."""
        for child in self.children(index):
            self.release(child)
        node = self._nodes[index]
        node.kind = Kind.NULL
        node.payload = None
        node.capacity = 0
        node.borrowed = False

    def release(self, index: int) -> None:
        """Releases ``index`` and its whole subtree."""
        if index == self.root:
            self.release_children(index)
            return

        stack = [index]
        while stack:
            current = stack.pop()
            stack.extend(self.children(current))
            node = self._nodes[current]
            node.kind = Kind.NULL
            node.payload = None
            node.live = False
            node.borrowed = False
            node.generation += 1
            self._free.append(current)

    def assign(
        self,
        index: int,
        kind: Kind,
        payload: Any = None,
        *,
        borrowed: bool = False,
    ) -> None:
        """Replaces the value at ``index``, releasing its old subtree."""
        self.release_children(index)
        node = self._nodes[index]
        node.kind = kind
        node.payload = payload
        node.borrowed = borrowed

    def adopt(self, target: int, source: int) -> None:
        """
        Moves the value of ``source`` into ``target``.

        The children of ``source`` are re-parented, the ``source`` slot itself
        is released.
        """
        self.release_children(target)
        src = self._nodes[source]
        dst = self._nodes[target]
        dst.kind = src.kind
        dst.payload = src.payload
        dst.capacity = src.capacity
        dst.borrowed = src.borrowed

        src.kind = Kind.NULL
        src.payload = None
        src.borrowed = False
        if source != self.root:
            self.release(source)

    def copy_string(self, data: Any) -> str:
        """Returns an owned copy of a str or UTF-8 byte buffer."""
        if isinstance(data, str):
            return data
        return bytes(data).decode("utf-8")

    def copy_from(self, src_arena: Arena, src_index: int) -> int:
        """
        Deep copies a subtree of ``src_arena`` into a new node here.

        Works through an explicit queue of (source, target) pairs so the
        depth of the subtree is not bounded by the interpreter stack.
        """
        root = self.allocate()
        pending = [(src_index, root)]
        try:
            while pending:
                source, target = pending.pop()
                src = src_arena.at(source)
                node = self._nodes[target]
                match src.kind:
                    case Kind.ARRAY:
                        elements = [self.allocate() for _ in src.payload]
                        pending.extend(zip(src.payload, elements))
                        node.payload = elements
                        node.capacity = len(elements)
                    case Kind.OBJECT:
                        members = [
                            Member(self.allocate(), self.allocate())
                            for _ in src.payload
                        ]
                        for original, member in zip(src.payload, members):
                            pending.append((original.name, member.name))
                            pending.append((original.value, member.value))
                        node.payload = members
                    case Kind.STRING:
                        node.payload = self.copy_string(src.payload)
                    case _:
                        node.payload = src.payload
                node.kind = src.kind
        except Exception:
            self.release(root)
            raise
        return root


__all__ = [
    "INTEGRAL_KINDS",
    "NUMBER_KINDS",
    "Arena",
    "Kind",
    "Member",
    "Node",
    "classify_int",
    "node_byte_length",
    "node_text",
]
