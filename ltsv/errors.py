"""
LTSV Errors - Parse-time error taxonomy.

Every grammar violation is fatal for the current parse call: the reader
surfaces the first one and stops. The stream is left positioned at the
offending byte, the partial record is discarded.

All errors subclass ValueError so callers that already catch ValueError
from the rest of the package keep working.
"""

from __future__ import annotations


class LTSVError(ValueError):
    """Base class for LTSV grammar violations."""

    reason = "invalid LTSV"

    def __init__(
        self,
        reason: str | None = None,
        *,
        line: int = 0,
        offset: int = 0,
        byte: int | None = None,
    ) -> None:
        self.reason = reason or self.reason
        self.line = line
        self.offset = offset
        self.byte = byte
        super().__init__(self._format())

    def _format(self) -> str:
        msg = self.reason
        if self.byte is not None:
            msg += f" (byte 0x{self.byte:02x})"
        if self.line:
            msg += f" at line {self.line}, offset {self.offset}"
        return msg


class EmptyLabel(LTSVError):
    reason = "label is empty"


class InvalidLabelByte(LTSVError):
    reason = "invalid byte in field label"


class UnterminatedLabel(LTSVError):
    reason = "EOF while parsing field label"


class InvalidValueByte(LTSVError):
    reason = "invalid byte in field value"


class DanglingCarriageReturn(LTSVError):
    reason = "CR detected, but not followed by LF"
