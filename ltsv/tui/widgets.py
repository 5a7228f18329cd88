"""LTSV TUI Widgets - Custom panels for the LTSV viewer."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.message import Message
from textual.widgets import DataTable, Label, ListItem, ListView, Static

from ltsv.document import Record


def _text(b: bytes | None) -> str:
    return b.decode("utf-8", errors="replace") if b is not None else ""


class SummaryPanel(Static):
    """Sidebar panel showing file stats and parse status."""

    DEFAULT_CSS = """
    SummaryPanel {
        width: 32;
        height: auto;
        border: solid $accent;
        padding: 1;
    }
    SummaryPanel .summary-title {
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }
    SummaryPanel .summary-key {
        color: $text-muted;
    }
    SummaryPanel .status-ok {
        color: $success;
        text-style: bold;
    }
    SummaryPanel .status-error {
        color: $error;
        text-style: bold;
    }
    """

    def __init__(
        self,
        filename: str,
        record_count: int,
        label_count: int,
        errors: list[str],
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._filename = filename
        self._record_count = record_count
        self._label_count = label_count
        self._errors = errors

    def compose(self) -> ComposeResult:
        yield Label(self._filename, classes="summary-title")
        yield Label(f"records: {self._record_count}", classes="summary-key")
        yield Label(f"labels:  {self._label_count}", classes="summary-key")
        yield Label("")  # spacer
        if self._errors:
            yield Label(f"Skipped {len(self._errors)} bad line(s)", classes="status-error")
            for err in self._errors[:5]:
                display = err if len(err) <= 28 else err[:25] + "..."
                yield Label(f"  {display}")
        else:
            yield Label("Parse: OK", classes="status-ok")


class LabelList(ListView):
    """List of labels found in the file. Selecting one jumps to its column."""

    DEFAULT_CSS = """
    LabelList {
        width: 32;
        border: solid $accent;
    }
    LabelList > ListItem {
        padding: 0 1;
    }
    """

    class LabelSelected(Message):
        """Fired when a label is selected."""

        def __init__(self, label: str, column_index: int) -> None:
            self.label = label
            self.column_index = column_index
            super().__init__()

    def __init__(self, labels: list[str], **kwargs) -> None:
        self._labels = labels
        super().__init__(**kwargs)

    def compose(self) -> ComposeResult:
        for name in self._labels:
            yield ListItem(Label(name))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        idx = self.index or 0
        if 0 <= idx < len(self._labels):
            self.post_message(self.LabelSelected(self._labels[idx], idx))


class RecordTable(DataTable):
    """Records as rows, labels as columns. Missing fields render empty."""

    DEFAULT_CSS = """
    RecordTable {
        border: solid $accent;
        height: 1fr;
    }
    """

    def __init__(self, labels: list[bytes], **kwargs) -> None:
        super().__init__(zebra_stripes=True, cursor_type="row", **kwargs)
        self._labels = labels

    def show_records(self, records: list[tuple[int, Record]]) -> None:
        """Replace table rows with (record_number, record) pairs."""
        if not self.columns:
            self.add_columns("#", *(_text(label) for label in self._labels))
        self.clear()
        for number, record in records:
            cells = [str(number)]
            for label in self._labels:
                value = _text(record.get(label))
                cells.append(Text(value if len(value) <= 60 else value[:57] + "..."))
            self.add_row(*cells, key=str(number))


class RecordDetail(Static):
    """Full, untruncated view of the highlighted record."""

    DEFAULT_CSS = """
    RecordDetail {
        height: 10;
        border: solid $accent;
        padding: 0 1;
        overflow-y: auto;
    }
    """

    def show_record(self, number: int, record: Record) -> None:
        lines = [f"--- record {number} ---"]
        for label, value in record.items():
            lines.append(f"{_text(label)}: {_text(value)}")
        self.update(Text("\n".join(lines)))
