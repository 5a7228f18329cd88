"""
LTSV Streams - The byte source/sink capabilities the core is written against.

Anything with ``read(size) -> bytes`` is a source (files opened "rb",
sockets via ``makefile("rb")``, ``io.BytesIO``, ``sys.stdin.buffer``).
Anything with ``write(data)`` is a sink. An empty read means end-of-stream.
"""

from __future__ import annotations

import io
from typing import Protocol, Union, runtime_checkable

from ltsv.spec import EOF


@runtime_checkable
class ByteSource(Protocol):
    def read(self, size: int = -1) -> bytes: ...


@runtime_checkable
class ByteSink(Protocol):
    def write(self, data: bytes) -> object: ...


BytesLike = Union[bytes, bytearray, memoryview]


def as_source(source: ByteSource | BytesLike) -> ByteSource:
    """Wrap in-memory bytes in a BytesIO; pass real sources through untouched."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(source))
    if isinstance(source, str):
        raise TypeError(
            "LTSV sources are byte streams; encode text before parsing "
            "(e.g. data.encode('utf-8'))"
        )
    if not isinstance(source, ByteSource):
        raise TypeError(f"Expected a readable byte source, got {type(source).__name__}")
    return source


def read_byte(source: ByteSource) -> int:
    """Read one byte as an int, or EOF (-1) at end of stream."""
    b = source.read(1)
    if not b:
        return EOF
    return b[0]
