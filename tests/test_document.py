"""
Document and Value tests.

Validates loading from buffers, streams and files, load error reporting,
saving, and the standalone Value with its copy semantics.
"""

import copy
import logging
from io import BytesIO
from io import StringIO
from pathlib import Path

import pytest

from jtree import Document
from jtree import JSONDecodeError
from jtree import ParseConfig
from jtree import StringCursor
from jtree import Value
from jtree import ValueRef

from .conftest import SAMPLE_JSON


def test_new_document_is_null() -> None:
    """
    Validates a fresh document holds null and reports no error.
    """
    doc = Document()
    assert doc.get_root().is_null()
    assert doc.load_result.success
    assert doc.get_load_error() == "Error offset[0]: No error."
    assert str(doc) == "null"


def test_loading_twice_overwrites(document: Document) -> None:
    """
    Validates each successful load replaces the whole tree.
    """
    assert document.load_from_buffer('{"first": 1}')
    assert document.load_from_buffer('["second"]')
    assert document.get_root().to_python() == ["second"]
    assert document.arena.live_count == 2


def test_load_from_stream_and_cursor(document: Document) -> None:
    """
    Validates loading from text streams and from any ReadCursor.
    """
    assert document.load_from_stream(StringIO(SAMPLE_JSON))
    assert document.get_root()["tags"][2].get(str) == "typed"

    assert document.load_from_stream(StringCursor("[1, 2]"))
    assert document.get_root().to_python() == [1, 2]


def test_load_from_small_buffered_stream() -> None:
    """
    Validates stream loading across many small reads.
    """
    doc = Document()
    doc.BUFFER_SIZE = 3
    assert doc.load_from_stream(StringIO(SAMPLE_JSON))
    assert doc.get_root()["limits"]["depth"].get(int) == 256


def test_load_from_binary_stream_rejected(document: Document) -> None:
    """
    Validates binary streams are refused with TypeError.
    """
    with pytest.raises(TypeError, match="text mode"):
        document.load_from_stream(BytesIO(b"[1]"))  # type: ignore[arg-type]
    assert document.get_root().is_null()


def test_load_from_file(tmp_path: Path, document: Document) -> None:
    """
    Validates file loading, including malformed and invalid UTF-8 files.
    """
    good = tmp_path / "good.json"
    good.write_text(SAMPLE_JSON, encoding="utf-8")
    assert document.load_from_file(good)
    assert document.get_root()["name"].get(str) == "jtree"

    bad = tmp_path / "bad.json"
    bad.write_text('{"name": }', encoding="utf-8")
    assert not document.load_from_file(str(bad))
    assert document.get_load_error() == "Error offset[9]: Expecting value"
    assert document.get_root()["name"].get(str) == "jtree"

    binary = tmp_path / "binary.json"
    binary.write_bytes(b'["\xff"]')
    assert not document.load_from_file(binary)
    assert document.load_result.message == "Invalid UTF-8 encoding"


def test_load_from_file_reports_byte_offsets_across_crlf(
    tmp_path: Path,
) -> None:
    """
    Validates CRLF line endings count toward file error offsets.
    """
    data = b'{\r\n"a": 1,\r\n"b": x}'
    path = tmp_path / "crlf.json"
    path.write_bytes(data)

    from_file = Document()
    assert not from_file.load_from_file(path)
    from_buffer = Document()
    assert not from_buffer.load_from_buffer(data)

    assert from_file.load_result.offset == data.index(b"x")
    assert from_file.load_result == from_buffer.load_result

    path.write_bytes(b'{\r\n"a": "x\r\n"}')
    assert not from_file.load_from_file(path)
    assert from_file.load_result.message == (
        "Invalid control character in string"
    )


def test_load_missing_file_logs_warning(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """
    Validates a missing file fails the load and logs a warning.
    """
    doc = Document()
    with caplog.at_level(logging.WARNING, logger="jtree.document"):
        assert not doc.load_from_file(tmp_path / "absent.json")

    assert "absent.json" in caplog.text
    assert not doc.load_result.success
    assert doc.get_load_error().startswith("Error offset[0]: Cannot open file")


def test_parse_failure_logged_at_debug(
    caplog: pytest.LogCaptureFixture,
) -> None:
    """
    Validates parse failures produce a debug record, not an exception.
    """
    with caplog.at_level(logging.DEBUG, logger="jtree.reader"):
        assert not Document().load_from_buffer("[1,")
    assert "JSON parse failed" in caplog.text


def test_document_config_is_used() -> None:
    """
    Validates the parse configuration given to the document applies.
    """
    doc = Document(ParseConfig(allow_nan_and_inf=True))
    assert doc.config.allow_nan_and_inf
    assert doc.load_from_buffer("[Infinity]")


def test_save_round_trip(sample_document: Document) -> None:
    """
    Validates saved text reloads to an equal tree, compact or pretty.
    """
    for pretty in (False, True):
        text = sample_document.save_to_buffer(pretty=pretty)
        again = Document()
        assert again.load_from_buffer(text)
        assert (
            again.get_root().to_python()
            == sample_document.get_root().to_python()
        )


def test_value_parses_text_and_assigns_the_rest() -> None:
    """
    Validates a str source is JSON text and other sources are assigned.
    """
    assert Value('{"a": [1, 2]}').to_python() == {"a": [1, 2]}
    assert Value('"quoted"').get(str) == "quoted"
    assert Value(b"bytes").get(str) == "bytes"
    assert Value(12).get(int) == 12
    assert Value().is_null()

    with pytest.raises(JSONDecodeError) as exc_info:
        Value('{"a" 1}')
    assert exc_info.value.msg == "Expecting ':' delimiter"
    assert exc_info.value.pos == 5


def test_value_is_document_and_ref() -> None:
    """
    Validates a Value can be used wherever a Document or ValueRef is.
    """
    value = Value([1])
    assert isinstance(value, Document)
    assert isinstance(value, ValueRef)
    assert value.get_root() == value
    assert value.save_to_buffer() == "[1]"
    assert str(value) == "[1]"
    assert repr(value) == "Value([1])"


def test_value_copies_are_independent() -> None:
    """
    Validates copy(), copy.copy and copy.deepcopy produce separate trees.
    """
    original = Value({"list": [1, 2]})
    duplicates = [original.copy(), copy.copy(original), copy.deepcopy(original)]
    for duplicate in duplicates:
        assert isinstance(duplicate, Value)
        assert duplicate.to_python() == original.to_python()
        assert duplicate.arena is not original.arena
        duplicate["list"].push_back(3)
        assert original.to_python() == {"list": [1, 2]}


def test_value_from_ref_copies_subtree(sample_document: Document) -> None:
    """
    Validates building a Value from a ref takes a detached copy.
    """
    limits = Value(sample_document.get_root()["limits"])
    sample_document.get_root()["limits"] = None
    assert limits.to_python() == {"depth": 256, "size": 4294967296}
