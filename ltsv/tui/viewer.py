"""LTSV TUI Viewer - Main Textual app: summary + labels sidebar, record table."""

from __future__ import annotations

import sys
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import DataTable, Footer, Header, Input

from ltsv.document import LTSVDocument, Record
from ltsv.reader import LTSVReader
from ltsv.tui.widgets import LabelList, RecordDetail, RecordTable, SummaryPanel


class LTSVViewerApp(App):
    """TUI viewer for .ltsv files. Malformed lines are skipped and reported."""

    TITLE = "LTSV Viewer"
    CSS = """
    Screen {
        layout: vertical;
    }
    #main-area {
        height: 1fr;
    }
    #sidebar {
        width: 32;
    }
    #search-bar {
        dock: bottom;
        display: none;
        height: 3;
        padding: 0 1;
    }
    #search-bar.visible {
        display: block;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", show=True),
        Binding("slash", "toggle_search", "Filter", show=True),
        Binding("escape", "close_search", "Close filter", show=False),
    ]

    def __init__(self, ltsv_path: str | Path, **kwargs) -> None:
        super().__init__(**kwargs)
        self._ltsv_path = Path(ltsv_path)
        self._doc = LTSVDocument()
        self._errors: list[str] = []
        self._rows: list[tuple[int, Record]] = []

    def compose(self) -> ComposeResult:
        with LTSVReader.open(self._ltsv_path) as reader:
            for record in reader.iter_records(skip_invalid=True):
                self._doc.records.append(record)
            self._errors = [str(e) for e in reader.errors]
        self._rows = list(enumerate(self._doc.records, start=1))
        labels = self._doc.labels()

        self.title = f"LTSV Viewer - {self._ltsv_path.name}"

        yield Header()
        with Horizontal(id="main-area"):
            with Vertical(id="sidebar"):
                yield SummaryPanel(
                    filename=self._ltsv_path.name,
                    record_count=len(self._doc),
                    label_count=len(labels),
                    errors=self._errors,
                    id="summary",
                )
                yield LabelList(
                    labels=[label.decode("utf-8", errors="replace") for label in labels],
                    id="labels",
                )
            with Vertical():
                yield RecordTable(labels=labels, id="records")
                yield RecordDetail(id="detail")

        yield Input(placeholder="Filter records... (Escape to close)", id="search-bar")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#records", RecordTable)
        table.show_records(self._rows)
        table.focus()
        if self._rows:
            self.query_one("#detail", RecordDetail).show_record(*self._rows[0])

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self._show_detail(event.row_key)

    def on_data_table_cell_highlighted(self, event: DataTable.CellHighlighted) -> None:
        self._show_detail(event.cell_key.row_key)

    def _show_detail(self, row_key) -> None:
        if row_key is None or row_key.value is None:
            return
        number = int(row_key.value)
        record = self._doc.records[number - 1]
        self.query_one("#detail", RecordDetail).show_record(number, record)

    def on_label_list_label_selected(self, event: LabelList.LabelSelected) -> None:
        table = self.query_one("#records", RecordTable)
        # Column 0 is the record number
        table.cursor_type = "cell"
        table.move_cursor(column=event.column_index + 1)
        table.focus()

    def action_toggle_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.toggle_class("visible")
        if search.has_class("visible"):
            search.focus()
        else:
            self.action_close_search()

    def action_close_search(self) -> None:
        search = self.query_one("#search-bar", Input)
        search.remove_class("visible")
        search.value = ""
        self.query_one("#records", RecordTable).show_records(self._rows)
        self.query_one("#records", RecordTable).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter rows as user types: any label or value containing the query."""
        if event.input.id != "search-bar":
            return
        table = self.query_one("#records", RecordTable)
        table.show_records(filter_rows(self._rows, event.value))


def filter_rows(rows: list[tuple[int, Record]], query: str) -> list[tuple[int, Record]]:
    """Rows whose labels or values contain query (case-insensitive, UTF-8)."""
    needle = query.lower().strip().encode("utf-8")
    if not needle:
        return rows
    return [
        (number, record) for number, record in rows
        if any(needle in label.lower() or needle in value.lower() for label, value in record.items())
    ]


def run_viewer(path: str | Path) -> None:
    """Launch the LTSV TUI viewer."""
    path = Path(path)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)

    app = LTSVViewerApp(path)
    app.run()
