"""
LTSV Document - In-memory representation of an .ltsv file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

Label = bytes   # non-empty, [A-Za-z0-9_.-]
Value = bytes   # anything but NUL, TAB, LF, CR
Field = tuple[bytes, bytes]
Record = dict[bytes, bytes]


def _to_bytes(s: str | bytes) -> bytes:
    return s.encode("utf-8") if isinstance(s, str) else bytes(s)


@dataclass
class LTSVDocument:
    """
    Ordered list of records, one per line.

    Usage:
        doc = LTSVDocument()
        doc.add_record(host="127.0.0.1", status="200")
        doc.add_record({b"host": b"10.0.0.1", b"status": b"404"})
        doc.write("access.ltsv")

    Equality compares records as mappings, so field order never matters.
    """

    records: list[Record] = field(default_factory=list)

    def add_record(self, record: dict | None = None, **fields: str | bytes) -> Record:
        """Append a record. str keys/values are stored as UTF-8 bytes."""
        stored: Record = {}
        for label, value in (record or {}).items():
            stored[_to_bytes(label)] = _to_bytes(value)
        for label, value in fields.items():
            stored[_to_bytes(label)] = _to_bytes(value)
        self.records.append(stored)
        return stored

    def labels(self) -> list[bytes]:
        """Union of labels across all records, in first-seen order."""
        seen: dict[bytes, None] = {}
        for record in self.records:
            for label in record:
                seen.setdefault(label, None)
        return list(seen)

    def column(self, label: str | bytes) -> list[bytes | None]:
        """Values for one label across records (None where a record lacks it)."""
        key = _to_bytes(label)
        return [record.get(key) for record in self.records]

    def to_bytes(self) -> bytes:
        """Serialize this document to LTSV bytes."""
        from ltsv.writer import LTSVWriter
        return LTSVWriter.write_document(self.records)

    def write(self, path: str) -> int:
        """Write this document to an .ltsv file. Returns bytes written.

        Raises ValueError if path contains '..' (path traversal prevention).
        """
        from pathlib import Path as _Path
        if ".." in _Path(path).parts:
            raise ValueError("Output path must not contain '..' (path traversal)")
        from ltsv.writer import LTSVWriter
        return LTSVWriter.write(self.records, path)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __getitem__(self, index: int) -> Record:
        return self.records[index]

    def __repr__(self) -> str:
        labels = [label.decode("utf-8", "replace") for label in self.labels()]
        return f"LTSVDocument(records={len(self.records)}, labels={labels})"
