"""
LTSV Format - Byte classes, separators and limits
=================================================

Layout:
    host:127.0.0.1<TAB>ident:-<TAB>status:200<LF>     <- one record per line
    host:127.0.0.1<TAB>ident:-<TAB>status:404<CR><LF> <- CRLF is accepted too
    host:10.0.0.1<TAB>status:500                      <- last terminator optional

Grammar:
    record   := field (TAB field)* (LF | CRLF)
    field    := label ':' value
    label    := [A-Za-z0-9_.-]+
    value    := byte*      ; excludes 0x00, 0x09, 0x0A; 0x0D only as part of CRLF
    document := record*    ; last record's terminator may be omitted

Design Decisions:
    - Everything is bytes. Values are opaque payload, UTF-8 passes through
    - Labels are strict, values are permissive
    - Whitespace before a record is skipped (blank lines are ignored)
    - Whitespace after a TAB is never skipped: the TAB already delimits
      the next field, so " b:2" after a TAB is a bad label, not "b:2"
    - Reading is strict, writing is trusting (the writer does not re-validate)
    - Empty input is an empty document, not one empty record
"""

# Structural bytes
TAB = 0x09
LF = 0x0A
CR = 0x0D
COLON = 0x3A
NUL = 0x00

# Lookahead sentinel for end-of-stream (never a valid byte value)
EOF = -1

# Serialized separators
FIELD_SEPARATOR = b"\t"
LABEL_SEPARATOR = b":"
RECORD_SEPARATOR = b"\n"

# Label charset: digits, letters, '_', '.', '-'
LABEL_BYTES = frozenset(
    list(range(0x30, 0x3A))
    + list(range(0x41, 0x5B))
    + list(range(0x61, 0x7B))
    + [0x5F, 0x2E, 0x2D]
)

# Value charset: everything but NUL, TAB, LF, CR
VALUE_BYTES = frozenset(range(0x01, 0x100)) - {TAB, LF, CR}

# ASCII whitespace skipped between records
WHITESPACE_BYTES = frozenset(b" \t\n\x0b\x0c\r")

# Safety limits
MAX_FILE_SIZE = 100 * 1024 * 1024  # 100MB max for whole-file reads

# File extension
EXTENSION = ".ltsv"

# Max bytes scanned by is_ltsv() for identification
MAX_IDENTIFY_SCAN_BYTES = 4096


def is_label_byte(b: int) -> bool:
    return b in LABEL_BYTES


def is_value_byte(b: int) -> bool:
    return b in VALUE_BYTES


def is_whitespace_byte(b: int) -> bool:
    return b in WHITESPACE_BYTES


def is_valid_label(label: bytes) -> bool:
    """Check a whole label against the label charset. Empty labels are invalid."""
    return len(label) > 0 and all(b in LABEL_BYTES for b in label)


def is_valid_value(value: bytes) -> bool:
    """Check a whole value. CR is never legal inside a value."""
    return all(b in VALUE_BYTES for b in value)
