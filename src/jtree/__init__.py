"""
Typed, ergonomic access to mutable JSON document trees.

Load JSON text into a Document, then read and edit it through lightweight
refs: index objects and arrays, iterate them, pull typed values out with a
permissive ``as_`` or a strict ``get``, and convert whole subtrees to and
from native Python containers before saving the tree back as JSON.
"""

from jtree._profile import clear_hot_path_stats
from jtree._profile import get_hot_path_stats
from jtree.arena import Arena
from jtree.arena import Kind
from jtree.document import Document
from jtree.document import Value
from jtree.errors import EmptyContainerError
from jtree.errors import JSONDecodeError
from jtree.errors import JsonTreeError
from jtree.errors import JsonWriteError
from jtree.errors import KindError
from jtree.errors import OutOfRangeError
from jtree.errors import StaleReferenceError
from jtree.interop import StringStorage
from jtree.reader import ParseConfig
from jtree.reader import ParseResult
from jtree.refs import ArrayRef
from jtree.refs import MemberRef
from jtree.refs import ObjectRef
from jtree.refs import ValueRef
from jtree.streams import ReadCursor
from jtree.streams import StreamCursor
from jtree.streams import StreamSink
from jtree.streams import StringCursor
from jtree.streams import StringSink
from jtree.streams import WriteSink
from jtree.targets import boolean
from jtree.targets import char
from jtree.targets import float32
from jtree.targets import float64
from jtree.targets import int8
from jtree.targets import int16
from jtree.targets import int32
from jtree.targets import int64
from jtree.targets import integer
from jtree.targets import string
from jtree.targets import uint8
from jtree.targets import uint16
from jtree.targets import uint32
from jtree.targets import uint64
from jtree.writer import WriteConfig

__version__ = "0.1.0"

__all__ = [
    "Arena",
    "ArrayRef",
    "Document",
    "EmptyContainerError",
    "JSONDecodeError",
    "JsonTreeError",
    "JsonWriteError",
    "Kind",
    "KindError",
    "MemberRef",
    "ObjectRef",
    "OutOfRangeError",
    "ParseConfig",
    "ParseResult",
    "ReadCursor",
    "StaleReferenceError",
    "StreamCursor",
    "StreamSink",
    "StringCursor",
    "StringSink",
    "StringStorage",
    "Value",
    "ValueRef",
    "WriteConfig",
    "WriteSink",
    "boolean",
    "char",
    "clear_hot_path_stats",
    "float32",
    "float64",
    "get_hot_path_stats",
    "int8",
    "int16",
    "int32",
    "int64",
    "integer",
    "string",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
]
