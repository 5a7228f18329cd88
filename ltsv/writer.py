"""
LTSV Writer - Serializes records to LTSV bytes.

Trusting: labels and values are written as given.
Anything the parser produced is already valid; callers building records by
hand own the charset rules (see ltsv.spec.is_valid_label / is_valid_value).
"""

from __future__ import annotations

import io
from typing import Iterable, Mapping, TYPE_CHECKING

from ltsv.spec import FIELD_SEPARATOR, LABEL_SEPARATOR, RECORD_SEPARATOR
from ltsv.streams import ByteSink

if TYPE_CHECKING:
    from ltsv.document import LTSVDocument


def _to_bytes(s: str | bytes) -> bytes:
    if isinstance(s, str):
        return s.encode("utf-8")
    return bytes(s)


class LTSVWriter:

    @staticmethod
    def write_record(record: Mapping) -> bytes:
        """One record as ``label:value`` fields joined by TAB. No terminator."""
        return FIELD_SEPARATOR.join(
            _to_bytes(label) + LABEL_SEPARATOR + _to_bytes(value)
            for label, value in record.items()
        )

    @staticmethod
    def write_document(records: Iterable[Mapping]) -> bytes:
        """Every record followed by LF, including the last."""
        out = io.BytesIO()
        LTSVWriter.dump(records, out)
        return out.getvalue()

    serialize = write_document

    @staticmethod
    def dump_record(record: Mapping, sink: ByteSink) -> int:
        """Write one LF-terminated record to sink. Returns bytes written."""
        line = LTSVWriter.write_record(record) + RECORD_SEPARATOR
        sink.write(line)
        return len(line)

    @staticmethod
    def dump(records: Iterable[Mapping], sink: ByteSink) -> int:
        """Write records to sink. Returns bytes written."""
        total = 0
        for record in records:
            total += LTSVWriter.dump_record(record, sink)
        return total

    @staticmethod
    def write(records: LTSVDocument | Iterable[Mapping], path: str, mode: int = 0o644) -> int:
        """Write records to a file atomically. Returns bytes written.

        Records are streamed into a temp file next to path, which is renamed
        over path only once every record has been written. If records is a
        lazy iterator that raises (e.g. a reader hitting a bad line), the
        temp file is removed and path is left untouched. path may be the
        file records are being read from.
        """
        import os
        import tempfile
        dir_name = os.path.dirname(os.path.abspath(path)) or "."
        fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix=".ltsv.tmp")
        try:
            with os.fdopen(fd, "wb") as f:
                total = LTSVWriter.dump(records, f)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return total
