"""
Unit Tests - Test individual components in isolation.
"""

import io
from pathlib import Path

import pytest

from ltsv.spec import (
    EOF, TAB, LF, CR, COLON,
    LABEL_BYTES, VALUE_BYTES, WHITESPACE_BYTES,
    is_label_byte, is_value_byte, is_valid_label, is_valid_value,
)
from ltsv.document import LTSVDocument
from ltsv.errors import (
    LTSVError,
    EmptyLabel,
    InvalidLabelByte,
    UnterminatedLabel,
    InvalidValueByte,
    DanglingCarriageReturn,
)
from ltsv.parser import LTSVParser, ParseOk, ParseError, ParseType, Delimiter
from ltsv.streams import as_source, read_byte


# =============================================================================
# Spec constants
# =============================================================================

class TestSpec:

    def test_structural_bytes(self):
        assert TAB == 0x09
        assert LF == 0x0A
        assert CR == 0x0D
        assert COLON == 0x3A

    def test_eof_is_not_a_byte(self):
        assert EOF not in range(256)

    def test_label_charset(self):
        allowed = b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_.-"
        assert LABEL_BYTES == frozenset(allowed)
        assert len(LABEL_BYTES) == 65

    def test_label_charset_excludes(self):
        for b in b": \t/@\x00\x80\xff":
            assert not is_label_byte(b)

    def test_value_charset(self):
        assert len(VALUE_BYTES) == 256 - 4
        for b in (0x00, TAB, LF, CR):
            assert not is_value_byte(b)
        for b in (0x01, 0x08, 0x0B, 0x0C, 0x0E, ord(":"), 0x7F, 0xFF):
            assert is_value_byte(b)

    def test_whitespace_is_ascii_only(self):
        assert WHITESPACE_BYTES == frozenset(b" \t\n\x0b\x0c\r")
        # NBSP / NEL are payload bytes, not whitespace
        assert 0xA0 not in WHITESPACE_BYTES
        assert 0x85 not in WHITESPACE_BYTES

    def test_is_valid_label(self):
        assert is_valid_label(b"host")
        assert is_valid_label(b"x-forwarded.for_1")
        assert not is_valid_label(b"")
        assert not is_valid_label(b"a b")
        assert not is_valid_label(b"a:b")

    def test_is_valid_value(self):
        assert is_valid_value(b"")
        assert is_valid_value("豆".encode("utf-8"))
        assert not is_valid_value(b"a\tb")
        assert not is_valid_value(b"a\r")
        assert not is_valid_value(b"a\nb")
        assert not is_valid_value(b"\x00")


# =============================================================================
# Errors
# =============================================================================

class TestErrors:

    def test_all_are_value_errors(self):
        for cls in (EmptyLabel, InvalidLabelByte, UnterminatedLabel, InvalidValueByte, DanglingCarriageReturn):
            assert issubclass(cls, LTSVError)
            assert issubclass(cls, ValueError)

    def test_default_reason(self):
        assert str(EmptyLabel()) == "label is empty"
        assert str(UnterminatedLabel()) == "EOF while parsing field label"

    def test_position_in_message(self):
        err = EmptyLabel(line=3, offset=17)
        assert str(err) == "label is empty at line 3, offset 17"
        assert err.line == 3
        assert err.offset == 17

    def test_byte_in_message(self):
        err = InvalidLabelByte(line=1, offset=1, byte=0x20)
        assert str(err) == "invalid byte in field label (byte 0x20) at line 1, offset 1"
        assert err.byte == 0x20

    def test_custom_reason(self):
        err = DanglingCarriageReturn("CR without LF", line=2, offset=9)
        assert err.reason == "CR without LF"
        assert "CR without LF" in str(err)


# =============================================================================
# Byte source helpers
# =============================================================================

class TestStreams:

    def test_read_byte(self):
        src = io.BytesIO(b"ab")
        assert read_byte(src) == ord("a")
        assert read_byte(src) == ord("b")
        assert read_byte(src) == EOF
        assert read_byte(src) == EOF

    def test_as_source_wraps_bytes(self):
        for data in (b"a:1", bytearray(b"a:1"), memoryview(b"a:1")):
            src = as_source(data)
            assert src.read() == b"a:1"

    def test_as_source_passes_streams_through(self):
        src = io.BytesIO(b"a:1")
        assert as_source(src) is src

    def test_as_source_rejects_text(self):
        with pytest.raises(TypeError, match="encode"):
            as_source("a:1")

    def test_as_source_rejects_non_readers(self):
        with pytest.raises(TypeError):
            as_source(42)


# =============================================================================
# Parser state machine
# =============================================================================

class TestParser:

    def _parser(self, data: bytes) -> LTSVParser:
        return LTSVParser(io.BytesIO(data))

    def test_reads_one_byte_on_construction(self):
        src = io.BytesIO(b"a:1\n")
        parser = LTSVParser(src)
        assert parser.cur == ord("a")
        assert src.tell() == 1

    def test_eof_is_pure(self):
        src = io.BytesIO(b"a:1")
        parser = LTSVParser(src)
        for _ in range(3):
            assert not parser.eof()
        assert src.tell() == 1
        assert parser.cur == ord("a")

    def test_empty_source_is_eof(self):
        parser = self._parser(b"")
        assert parser.eof()
        assert parser.at_end()

    def test_field_delimiter_tags(self):
        parser = self._parser(b"a:1\tb:2\nc:3")
        r1 = parser.parse_field()
        r2 = parser.parse_field()
        r3 = parser.parse_field()
        assert r1 == ParseOk(ParseType.FIELD, Delimiter.TAB, (b"a", b"1"))
        assert r2 == ParseOk(ParseType.FIELD, Delimiter.NL, (b"b", b"2"))
        assert r3 == ParseOk(ParseType.FIELD, Delimiter.EOF, (b"c", b"3"))
        assert parser.eof()

    def test_trailing_newline_reclassified_as_eof(self):
        parser = self._parser(b"a:1\n\n  \n")
        result = parser.parse_field()
        assert result.delimiter is Delimiter.EOF

    def test_crlf_reported_as_newline(self):
        parser = self._parser(b"a:1\r\nb:2")
        assert parser.parse_field().delimiter is Delimiter.NL
        assert parser.parse_field().value == (b"b", b"2")

    def test_record_result(self):
        parser = self._parser(b"a:1\tb:2\nc:3\n")
        r1 = parser.parse_record()
        assert r1.kind is ParseType.RECORD
        assert r1.delimiter is Delimiter.NL
        assert r1.value == {b"a": b"1", b"b": b"2"}
        r2 = parser.parse_record()
        assert r2.delimiter is Delimiter.EOF
        assert r2.value == {b"c": b"3"}

    def test_document_result(self):
        result = self._parser(b"a:1\nb:2\n").parse_document()
        assert result.kind is ParseType.DOCUMENT
        assert result.value == [{b"a": b"1"}, {b"b": b"2"}]

    def test_empty_document(self):
        result = self._parser(b"").parse_document()
        assert isinstance(result, ParseOk)
        assert result.value == []

    def test_errors_are_returned_not_raised(self):
        result = self._parser(b":1").parse_field()
        assert isinstance(result, ParseError)
        assert result.error is EmptyLabel
        assert isinstance(result.exception(), EmptyLabel)

    def test_error_inside_record_discards_partial_record(self):
        result = self._parser(b"a:1\tb:2\t:3\n").parse_record()
        assert isinstance(result, ParseError)
        assert result.error is EmptyLabel

    def test_error_inside_document_returns_no_records(self):
        result = self._parser(b"a:1\nb:2\nc\n").parse_document()
        assert isinstance(result, ParseError)
        assert result.line == 3

    def test_dangling_cr_error(self):
        result = self._parser(b"a:1\rX").parse_field()
        assert isinstance(result, ParseError)
        assert result.error is DanglingCarriageReturn

    def test_invalid_value_byte_records_byte(self):
        result = self._parser(b"a:x\x00y").parse_field()
        assert result.error is InvalidValueByte
        assert result.byte == 0x00
        assert result.offset == 3

    def test_no_whitespace_skip_after_tab(self):
        result = self._parser(b"a:1\t  b:2").parse_record()
        assert isinstance(result, ParseError)
        assert result.error is InvalidLabelByte
        assert result.byte == ord(" ")

    def test_line_counting(self):
        parser = self._parser(b"a:1\nb:2\r\nc:3\n")
        parser.parse_record()
        assert parser.line == 2
        parser.parse_record()
        assert parser.line == 3

    def test_skip_line_recovers(self):
        parser = self._parser(b"a b:1\nc:2\n")
        assert isinstance(parser.parse_record(), ParseError)
        parser.skip_line()
        result = parser.parse_record()
        assert result.value == {b"c": b"2"}

    def test_skip_line_mid_record(self):
        parser = self._parser(b"a:1\tb c:2\nd:3")
        assert isinstance(parser.parse_record(), ParseError)
        parser.skip_line()
        assert parser.parse_record().value == {b"d": b"3"}

    def test_skip_line_at_eof(self):
        parser = self._parser(b"abc")
        assert isinstance(parser.parse_record(), ParseError)
        parser.skip_line()
        assert parser.at_end()


# =============================================================================
# LTSVDocument
# =============================================================================

class TestLTSVDocument:

    def test_create_empty(self):
        doc = LTSVDocument()
        assert doc.records == []
        assert len(doc) == 0

    def test_add_record_from_kwargs(self):
        doc = LTSVDocument()
        rec = doc.add_record(host="127.0.0.1", status="200")
        assert rec == {b"host": b"127.0.0.1", b"status": b"200"}
        assert doc[0] is rec

    def test_add_record_from_mapping(self):
        doc = LTSVDocument()
        doc.add_record({b"a": b"1", "b": "豆"})
        assert doc.records == [{b"a": b"1", b"b": "豆".encode("utf-8")}]

    def test_add_record_kwargs_override_mapping(self):
        doc = LTSVDocument()
        rec = doc.add_record({"a": "1"}, a="2")
        assert rec == {b"a": b"2"}

    def test_labels_first_seen_order(self):
        doc = LTSVDocument()
        doc.add_record(b="1", a="2")
        doc.add_record(c="3", a="4")
        assert doc.labels() == [b"b", b"a", b"c"]

    def test_column(self):
        doc = LTSVDocument()
        doc.add_record(status="200")
        doc.add_record(host="x")
        doc.add_record(status="404")
        assert doc.column("status") == [b"200", None, b"404"]
        assert doc.column(b"host") == [None, b"x", None]

    def test_iteration(self):
        doc = LTSVDocument()
        doc.add_record(a="1")
        doc.add_record(a="2")
        assert [r[b"a"] for r in doc] == [b"1", b"2"]

    def test_equality_ignores_field_order(self):
        d1 = LTSVDocument(records=[{b"a": b"1", b"b": b"2"}])
        d2 = LTSVDocument(records=[{b"b": b"2", b"a": b"1"}])
        assert d1 == d2

    def test_equality_respects_record_order(self):
        d1 = LTSVDocument(records=[{b"a": b"1"}, {b"a": b"2"}])
        d2 = LTSVDocument(records=[{b"a": b"2"}, {b"a": b"1"}])
        assert d1 != d2

    def test_to_bytes(self):
        doc = LTSVDocument()
        doc.add_record(a="1", b="2")
        assert doc.to_bytes() == b"a:1\tb:2\n"

    def test_write_rejects_traversal(self):
        doc = LTSVDocument()
        with pytest.raises(ValueError, match="traversal"):
            doc.write("../escape.ltsv")

    def test_repr(self):
        doc = LTSVDocument()
        doc.add_record(host="x")
        r = repr(doc)
        assert "LTSVDocument" in r
        assert "records=1" in r
        assert "host" in r


# =============================================================================
# Packaging
# =============================================================================

class TestPackaging:

    def test_tui_extra_declares_direct_imports(self):
        pyproject = Path(__file__).parent.parent / "pyproject.toml"
        tui_line = next(
            line for line in pyproject.read_text(encoding="utf-8").splitlines()
            if line.startswith("tui = ")
        )
        # ltsv.tui imports both textual and rich.text directly
        assert '"textual' in tui_line
        assert '"rich' in tui_line
