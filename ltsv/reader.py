"""
LTSV Reader - Public entry point for parsing.

Three access modes over one parser (and so one lookahead byte):

  - read_all()           eager, whole document, fails without a partial result
  - for_each_record(fn)  lazy, one record per call, fn returns False to stop
  - for_each_field(fn)   lazy, one field per call across line boundaries

plus the generator forms iter_records() / iter_fields(). Stopping early
leaves the source unread past the lookahead byte; calling any mode again
on the same reader picks up where the last one stopped.
"""

from __future__ import annotations

import builtins
from pathlib import Path
from typing import Callable, Iterator

from ltsv.document import LTSVDocument, Field, Record
from ltsv.errors import LTSVError
from ltsv.parser import LTSVParser, ParseError, Delimiter
from ltsv.spec import MAX_FILE_SIZE, MAX_IDENTIFY_SCAN_BYTES, is_valid_label
from ltsv.streams import ByteSource, BytesLike, as_source


class LTSVReader:
    """
    Usage:
        # Whole document
        doc = LTSVReader.read("access.ltsv")
        records = LTSVReader.parse(b"a:1\\tb:2\\n")

        # Lazy, from any byte source
        with open("access.ltsv", "rb") as f:
            for record in LTSVReader(f).iter_records():
                print(record[b"status"])
    """

    def __init__(self, source: ByteSource | BytesLike) -> None:
        self._parser = LTSVParser(as_source(source))
        self.errors: list[LTSVError] = []

    @property
    def parser(self) -> LTSVParser:
        return self._parser

    def eof(self) -> bool:
        return self._parser.eof()

    # --- Eager ---

    def read_all(self) -> list[Record]:
        """Parse every remaining record. Raises on the first violation."""
        result = self._parser.parse_document()
        if isinstance(result, ParseError):
            raise result.exception()
        return result.value

    parse_all = read_all

    # --- Lazy ---

    def iter_records(self, skip_invalid: bool = False) -> Iterator[Record]:
        """Yield one record per line.

        With skip_invalid=True a malformed line is dropped (its error is kept
        on self.errors) and parsing resumes on the next line.
        """
        parser = self._parser
        while not parser.at_end():
            result = parser.parse_record()
            if isinstance(result, ParseError):
                if not skip_invalid:
                    raise result.exception()
                self.errors.append(result.exception())
                parser.skip_line()
                continue
            yield result.value
            if result.delimiter is Delimiter.EOF:
                return

    def iter_fields(self) -> Iterator[Field]:
        """Yield (label, value) pairs across the whole stream."""
        parser = self._parser
        while not parser.at_end():
            result = parser.parse_field()
            if isinstance(result, ParseError):
                raise result.exception()
            yield result.value
            if result.delimiter is Delimiter.EOF:
                return

    def for_each_record(self, visitor: Callable[[Record], bool | None]) -> None:
        """Call visitor with each record. Returning False stops; None continues."""
        for record in self.iter_records():
            if visitor(record) is False:
                break

    def for_each_field(self, visitor: Callable[[Field], bool | None]) -> None:
        """Call visitor with each field. Returning False stops; None continues."""
        for field in self.iter_fields():
            if visitor(field) is False:
                break

    def __iter__(self) -> Iterator[Record]:
        return self.iter_records()

    # --- Convenience constructors ---

    @classmethod
    def parse(cls, data: BytesLike) -> list[Record]:
        """Parse in-memory bytes into a list of records."""
        return cls(data).read_all()

    @classmethod
    def parse_document(cls, data: BytesLike) -> LTSVDocument:
        return LTSVDocument(records=cls.parse(data))

    @classmethod
    def read(cls, path: str | Path, max_size: int = MAX_FILE_SIZE) -> LTSVDocument:
        """Fully parse an .ltsv file into an LTSVDocument."""
        path = Path(path)
        file_size = path.stat().st_size
        if file_size > max_size:
            raise ValueError(
                f"File size {file_size} exceeds maximum {max_size} bytes. "
                f"Pass max_size= to override."
            )
        with builtins.open(path, "rb") as f:
            return LTSVDocument(records=cls(f).read_all())

    @classmethod
    def open(cls, path: str | Path) -> LTSVReaderHandle:
        """Open an .ltsv file for lazy reading. Use as a context manager."""
        return LTSVReaderHandle(builtins.open(Path(path), "rb"))

    @staticmethod
    def is_ltsv(path: str | Path) -> bool:
        """Heuristic check: does the first line parse as a record?

        Reads at most MAX_IDENTIFY_SCAN_BYTES. A first line longer than that
        is judged on the prefix only.
        """
        with builtins.open(path, "rb") as f:
            head = f.read(MAX_IDENTIFY_SCAN_BYTES)
        return LTSVReader.is_ltsv_bytes(head)

    @staticmethod
    def is_ltsv_bytes(data: bytes) -> bool:
        head = data.lstrip()
        raw_line = head.split(b"\n", 1)[0]
        line = raw_line.rstrip(b"\r")
        if not line:
            return False
        fields = line.split(b"\t")
        # TAB right before EOF ends the record, as in the parser
        if raw_line.endswith(b"\t") and b"\n" not in head:
            fields = fields[:-1]
        # Truncated scan: the last field may be cut mid-label
        elif b"\n" not in head and len(data) >= MAX_IDENTIFY_SCAN_BYTES and len(fields) > 1:
            fields = fields[:-1]
        for field in fields:
            label, sep, _ = field.partition(b":")
            if not sep or not is_valid_label(label):
                return False
        return True


class LTSVReaderHandle(LTSVReader):
    """LTSVReader that owns its file and closes it on exit."""

    def __init__(self, handle) -> None:
        self._handle = handle
        super().__init__(handle)

    def close(self) -> None:
        self._handle.close()

    def __enter__(self) -> LTSVReaderHandle:
        return self

    def __exit__(self, *args) -> None:
        self.close()
