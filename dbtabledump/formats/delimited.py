import csv
from typing import IO

from ..codec import render_plain
from ..dbtypes import ExportSettings
from .base import FormatWriter


class DelimitedWriter(FormatWriter):
    """CSV/TSV output; one optional header line per table."""

    def __init__(
        self,
        sink: IO[str],
        settings: ExportSettings | None = None,
        delimiter: str = ",",
        header: bool = False,
    ):
        super().__init__(settings)
        if len(delimiter) != 1:
            raise ValueError(f"delimiter must be a single character, got {delimiter!r}")
        self.sink = sink
        self.header = header
        self.writer = csv.writer(sink, delimiter=delimiter, lineterminator="\n")

    def _on_table_header(self, table, columns):
        if self.header:
            self.writer.writerow(columns)

    def _on_row(self, row_index, cells):
        self.writer.writerow([render_plain(cell) for cell in cells])

    def _on_flush_table(self):
        self.sink.flush()
