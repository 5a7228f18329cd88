"""
LTSV Converters - Convert to/from JSON Lines, JSON, CSV.

Every format goes both ways:
  - to_jsonl / from_jsonl   (one object per line, the natural log pairing)
  - to_json / from_json     (array of objects)
  - to_csv / from_csv       (header = union of labels)

LTSV is bytes, these formats are text. Values are decoded as UTF-8 on the
way out (undecodable bytes become U+FFFD) and encoded as UTF-8 on the way in.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from ltsv.document import LTSVDocument, Record
from ltsv.spec import MAX_FILE_SIZE, is_valid_label, is_valid_value


def _decode(b: bytes) -> str:
    return b.decode("utf-8", errors="replace")


def _record_to_dict(record: Record) -> dict[str, str]:
    return {_decode(label): _decode(value) for label, value in record.items()}


def _dict_to_record(obj: Any) -> Record:
    """Validate one imported object and turn it into a record.

    Imported data did not come through the parser, so labels and values are
    checked here; a label that LTSV cannot represent is an error rather than
    something to silently drop.
    """
    if not isinstance(obj, dict):
        raise ValueError("Invalid LTSV JSON: each record must be a JSON object")
    record: Record = {}
    for key, val in obj.items():
        if val is None:
            continue
        if not isinstance(val, str):
            # Numbers and booleans are written the way JSON spells them
            val = json.dumps(val, ensure_ascii=False)
        label = key.encode("utf-8")
        value = val.encode("utf-8")
        if not is_valid_label(label):
            raise ValueError(f"Invalid label for LTSV: {key!r}")
        if not is_valid_value(value):
            raise ValueError(f"Invalid value for LTSV label {key!r}: contains TAB, CR, LF or NUL")
        record[label] = value
    return record


# =============================================================================
# JSON Lines
# =============================================================================

def to_jsonl(doc: LTSVDocument) -> str:
    """Convert an LTSV document to JSON Lines."""
    return "".join(
        json.dumps(_record_to_dict(record), ensure_ascii=False) + "\n"
        for record in doc.records
    )


def from_jsonl(jsonl_str: str) -> LTSVDocument:
    """Create an LTSV document from JSON Lines. Blank lines are skipped."""
    doc = LTSVDocument()
    for line_no, line in enumerate(jsonl_str.split("\n"), start=1):
        if not line.strip():
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON on line {line_no}: {e.msg}") from e
        doc.records.append(_dict_to_record(obj))
    return doc


# =============================================================================
# JSON
# =============================================================================

def to_json(doc: LTSVDocument, indent: int = 2) -> str:
    """Convert an LTSV document to a JSON array of objects."""
    data = [_record_to_dict(record) for record in doc.records]
    return json.dumps(data, indent=indent, ensure_ascii=False)


def from_json(json_str: str) -> LTSVDocument:
    """Create an LTSV document from a JSON array of objects.

    A single top-level object is accepted as a one-record document.
    """
    data = json.loads(json_str)
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError("Invalid LTSV JSON: expected an array of objects at top level")
    return LTSVDocument(records=[_dict_to_record(obj) for obj in data])


# =============================================================================
# CSV
# =============================================================================

# A leading quote is escaped too, so unescaping is exact
_CSV_FORMULA_CHARS = ("=", "+", "-", "@", "\t", "\r", ";", "'")


def _escape_csv_formula(value: str) -> str:
    """Escape CSV formula injection characters (=, +, -, @, tab, CR, ;).

    Checks the first non-whitespace character to prevent spreadsheet
    applications from interpreting cell content as formulas.
    """
    stripped = value.lstrip()
    if stripped and stripped[0] in _CSV_FORMULA_CHARS:
        return "'" + value
    return value


def _unescape_csv_formula(cell: str) -> str:
    """Reverse _escape_csv_formula."""
    if cell.startswith("'"):
        stripped = cell[1:].lstrip()
        if stripped and stripped[0] in _CSV_FORMULA_CHARS:
            return cell[1:]
    return cell


def to_csv(doc: LTSVDocument, escape_formulas: bool = True) -> str:
    """
    Convert an LTSV document to CSV.
    Header row is the union of labels in first-seen order; a record
    missing a label gets an empty cell.
    """
    labels = doc.labels()
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow([_decode(label) for label in labels])
    for record in doc.records:
        row = []
        for label in labels:
            value = record.get(label)
            cell = _decode(value) if value is not None else ""
            row.append(_escape_csv_formula(cell) if escape_formulas else cell)
        writer.writerow(row)
    return buf.getvalue()


def from_csv(csv_str: str, unescape_formulas: bool = True) -> LTSVDocument:
    """Create an LTSV document from CSV with a header row.

    Empty cells are omitted from the record (CSV cannot tell "missing"
    from "empty", and missing is the common case for sparse logs).
    With unescape_formulas, the quote that to_csv puts in front of
    formula-like cells is removed again, so from_csv(to_csv(doc)) == doc.
    """
    old_limit = csv.field_size_limit()
    csv.field_size_limit(MAX_FILE_SIZE)
    try:
        reader = csv.reader(io.StringIO(csv_str))
        header = next(reader, None)
        if header is None:
            return LTSVDocument()

        doc = LTSVDocument()
        for row in reader:
            if not row:
                continue
            if unescape_formulas:
                row = [_unescape_csv_formula(cell) for cell in row]
            obj = {key: cell for key, cell in zip(header, row) if cell != ""}
            doc.records.append(_dict_to_record(obj))
        return doc
    finally:
        csv.field_size_limit(old_limit)


# =============================================================================
# Auto-detect and convert
# =============================================================================

CONVERTERS_TO = {
    "jsonl": to_jsonl,
    "ndjson": to_jsonl,
    "json": to_json,
    "csv": to_csv,
}

CONVERTERS_FROM = {
    "jsonl": from_jsonl,
    "ndjson": from_jsonl,
    "json": from_json,
    "csv": from_csv,
}


def convert_to(doc: LTSVDocument, fmt: str) -> str:
    """Convert an LTSV document to the specified format."""
    converter = CONVERTERS_TO.get(fmt.lower())
    if converter is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {list(CONVERTERS_TO.keys())}")
    return converter(doc)


def convert_from(data: str, fmt: str) -> LTSVDocument:
    """Create an LTSV document from data in the specified format."""
    converter = CONVERTERS_FROM.get(fmt.lower())
    if converter is None:
        raise ValueError(f"Unknown format: {fmt}. Supported: {list(CONVERTERS_FROM.keys())}")
    return converter(data)
