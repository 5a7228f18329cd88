"""
LTSV - Labeled Tab-Separated Values
Streaming byte-level reader/writer.

Strict on read, trusting on write.
"""

__version__ = "0.2.0"

from ltsv.spec import EXTENSION, LABEL_BYTES, VALUE_BYTES
from ltsv.errors import (
    LTSVError,
    EmptyLabel,
    InvalidLabelByte,
    UnterminatedLabel,
    InvalidValueByte,
    DanglingCarriageReturn,
)
from ltsv.document import LTSVDocument
from ltsv.parser import LTSVParser
from ltsv.reader import LTSVReader
from ltsv.writer import LTSVWriter
from ltsv.stream import LTSVStreamWriter
