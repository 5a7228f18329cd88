"""
LTSV Streaming Writer - Write records the moment they exist.

Long-running producers (log shippers, crawlers) should not hold every
record in memory and should not lose everything if they die. Each
write_record() call emits one full line and flushes it, so a crash loses
at most the record being written.

Usage:
    with LTSVStreamWriter("access.ltsv") as w:
        w.write_record({"host": "127.0.0.1", "status": "200"})
        ...

    # Resume after a crash
    with LTSVStreamWriter("access.ltsv", append=True) as w:
        w.write_record({"host": "10.0.0.1", "status": "500"})

    # Any byte sink works; the caller keeps ownership of it
    w = LTSVStreamWriter(sink=sys.stdout.buffer)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from ltsv.spec import RECORD_SEPARATOR
from ltsv.streams import ByteSink
from ltsv.writer import LTSVWriter


class LTSVStreamWriter:
    """
    Streaming .ltsv writer. Records are flushed as they are written.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        append: bool = False,
        sink: ByteSink | None = None,
    ) -> None:
        if (path is None) == (sink is None):
            raise ValueError("Pass exactly one of path= or sink=")

        self.path = Path(path) if path is not None else None
        self._records = 0
        self._bytes = 0
        self._closed = False
        self._owns_handle = sink is None

        if sink is not None:
            self._handle = sink
        elif append and self.path.exists():
            self._handle = _open_for_append(self.path)
        else:
            self._handle = open(self.path, "wb")

    def write_record(self, record: Mapping) -> int:
        """Write one record and flush. Returns bytes written."""
        if self._closed:
            raise RuntimeError("Cannot write to a closed LTSVStreamWriter")

        n = LTSVWriter.dump_record(record, self._handle)
        self._records += 1
        self._bytes += n
        self._flush()
        return n

    def write_records(self, records) -> int:
        return sum(self.write_record(r) for r in records)

    def _flush(self) -> None:
        flush = getattr(self._handle, "flush", None)
        if flush is not None:
            flush()
        if self._owns_handle:
            os.fsync(self._handle.fileno())

    def close(self) -> None:
        """Flush and, for files this writer opened, close the handle."""
        if self._closed:
            return
        self._flush()
        if self._owns_handle:
            self._handle.close()
        self._closed = True

    def __enter__(self) -> LTSVStreamWriter:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def records_written(self) -> int:
        return self._records

    @property
    def bytes_written(self) -> int:
        """Bytes written by this writer (excludes pre-existing appended-to content)."""
        return self._bytes


def _open_for_append(path: Path):
    """Open an existing file for appending.

    A crash can leave the last line without its LF. That line is still a
    valid EOF-terminated record, so keep it and terminate it before
    appending, otherwise the next record would be glued onto it.
    """
    handle = open(path, "r+b")
    handle.seek(0, os.SEEK_END)
    if handle.tell() > 0:
        handle.seek(-1, os.SEEK_END)
        last = handle.read(1)
        handle.seek(0, os.SEEK_END)
        if last != RECORD_SEPARATOR:
            handle.write(RECORD_SEPARATOR)
    return handle
