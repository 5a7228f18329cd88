"""
LTSV Parser - Single-byte-lookahead state machine over a byte source.

The parser holds exactly one pending byte (``cur``) read ahead of every
grammar decision. ``_bump()`` commits to that byte and reads the next one,
or parks on the EOF sentinel. Nothing else is buffered, so a caller that
stops early leaves the rest of the source unread (minus the one lookahead
byte).

Parse steps never raise on bad input. They return a tagged result:

    ParseOk(kind, delimiter, value)   - value plus what ended it
    ParseError(error, reason, ...)    - which LTSVError to raise, and where

so callers can tell "more fields in this record" (TAB) from "record done"
(NL) from "stream done" (EOF) without poking at parser state. The reader
(ltsv.reader) is the only place these become exceptions.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from ltsv.document import Label, Value, Field, Record
from ltsv.errors import (
    LTSVError,
    EmptyLabel,
    InvalidLabelByte,
    UnterminatedLabel,
    InvalidValueByte,
    DanglingCarriageReturn,
)
from ltsv.spec import (
    EOF, TAB, LF, CR, COLON,
    LABEL_BYTES, VALUE_BYTES, WHITESPACE_BYTES,
)
from ltsv.streams import ByteSource, read_byte

T = TypeVar("T")


class ParseType(enum.Enum):
    FIELD_LABEL = "field_label"
    FIELD_VALUE = "field_value"
    FIELD = "field"
    RECORD = "record"
    DOCUMENT = "document"


class Delimiter(enum.Enum):
    """What terminated the value just parsed."""
    EOF = "eof"
    TAB = "tab"
    NL = "nl"
    MISC = "misc"  # label terminator (':')


@dataclass(frozen=True)
class ParseOk(Generic[T]):
    kind: ParseType
    delimiter: Delimiter
    value: T


@dataclass(frozen=True)
class ParseError:
    error: type[LTSVError]
    reason: str
    line: int
    offset: int
    byte: int | None = None

    def exception(self) -> LTSVError:
        return self.error(self.reason, line=self.line, offset=self.offset, byte=self.byte)


ParseResult = Union[ParseOk[T], ParseError]


class LTSVParser:
    """
    Recursive-descent LTSV parser.

    Usage:
        parser = LTSVParser(open("access.ltsv", "rb"))
        result = parser.parse_document()
        if isinstance(result, ParseError):
            raise result.exception()
        records = result.value

    Most callers want ltsv.reader.LTSVReader instead, which raises.
    """

    def __init__(self, source: ByteSource) -> None:
        self._source = source
        self.offset = 0   # bytes consumed before cur
        self.line = 1     # 1-based line of cur
        self._at_record_start = True
        self.cur = read_byte(source)

    def eof(self) -> bool:
        return self.cur == EOF

    def at_end(self) -> bool:
        """True when no further record can start.

        Skips inter-record whitespace first, which parse_field would do
        anyway. Mid-record (after a TAB) nothing is skipped.
        """
        if self._at_record_start:
            self._skip_whitespace()
        return self.eof()

    def _bump(self) -> None:
        if self.eof():
            return
        if self.cur == LF:
            self.line += 1
        self.offset += 1
        self.cur = read_byte(self._source)

    def _skip_whitespace(self) -> None:
        while self.cur in WHITESPACE_BYTES:
            self._bump()

    def _error(self, error: type[LTSVError], reason: str | None = None, byte: int | None = None) -> ParseError:
        return ParseError(
            error=error,
            reason=reason or error.reason,
            line=self.line,
            offset=self.offset,
            byte=byte,
        )

    # --- Grammar ---

    def parse_document(self) -> ParseResult[list[Record]]:
        records: list[Record] = []
        while not self.at_end():
            result = self.parse_record()
            if isinstance(result, ParseError):
                return result
            records.append(result.value)
            if result.delimiter is Delimiter.EOF:
                break
        return ParseOk(ParseType.DOCUMENT, Delimiter.EOF, records)

    def parse_record(self) -> ParseResult[Record]:
        record: Record = {}
        while True:
            result = self.parse_field()
            if isinstance(result, ParseError):
                return result
            label, value = result.value
            record[label] = value
            if result.delimiter is not Delimiter.TAB:
                return ParseOk(ParseType.RECORD, result.delimiter, record)

    def parse_field(self) -> ParseResult[Field]:
        if self._at_record_start:
            self._skip_whitespace()

        label_result = self._parse_field_label()
        if isinstance(label_result, ParseError):
            return label_result
        self._bump()  # past ':'

        value_result = self._parse_field_value()
        if isinstance(value_result, ParseError):
            return value_result
        self._bump()  # past TAB / LF

        delim = value_result.delimiter
        # Whitespace after a TAB belongs to the next label.
        if delim is not Delimiter.TAB:
            self._skip_whitespace()
        if self.eof():
            delim = Delimiter.EOF
        self._at_record_start = delim is not Delimiter.TAB

        return ParseOk(ParseType.FIELD, delim, (label_result.value, value_result.value))

    def _parse_field_label(self) -> ParseResult[Label]:
        buf = bytearray()
        while True:
            b = self.cur
            if b in LABEL_BYTES:
                buf.append(b)
            elif b == COLON:
                if not buf:
                    return self._error(EmptyLabel)
                return ParseOk(ParseType.FIELD_LABEL, Delimiter.MISC, bytes(buf))
            elif b == EOF:
                return self._error(UnterminatedLabel)
            else:
                return self._error(InvalidLabelByte, byte=b)
            self._bump()

    def _parse_field_value(self) -> ParseResult[Value]:
        buf = bytearray()
        while True:
            b = self.cur
            if b in VALUE_BYTES:
                buf.append(b)
            elif b == TAB:
                return ParseOk(ParseType.FIELD_VALUE, Delimiter.TAB, bytes(buf))
            elif b == LF:
                return ParseOk(ParseType.FIELD_VALUE, Delimiter.NL, bytes(buf))
            elif b == CR:
                return self._consume_lf(bytes(buf))
            elif b == EOF:
                return ParseOk(ParseType.FIELD_VALUE, Delimiter.EOF, bytes(buf))
            else:
                return self._error(InvalidValueByte, byte=b)
            self._bump()

    def _consume_lf(self, value: Value) -> ParseResult[Value]:
        """cur is CR: step over it and require LF."""
        self._bump()
        if self.cur != LF:
            return self._error(DanglingCarriageReturn)
        return ParseOk(ParseType.FIELD_VALUE, Delimiter.NL, value)

    # --- Recovery ---

    def skip_line(self) -> None:
        """Discard input up to and including the next LF (or to EOF).

        Used to resume after an error; the next parse starts a fresh record.
        """
        while not self.eof() and self.cur != LF:
            self._bump()
        self._bump()
        self._at_record_start = True
