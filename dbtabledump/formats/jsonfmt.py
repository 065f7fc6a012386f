"""JSON destinations: newline-delimited objects, or one array for the whole session."""

import json
from typing import IO

from ..codec import to_json
from ..dbtypes import ExportSettings
from .base import FormatWriter


def _row_object(columns, cells) -> dict:
    return {col: to_json(cell) for col, cell in zip(columns, cells)}


class JSONLinesWriter(FormatWriter):
    def __init__(self, sink: IO[str], settings: ExportSettings | None = None):
        super().__init__(settings)
        self.sink = sink

    def _on_row(self, row_index, cells):
        self.sink.write(json.dumps(_row_object(self.columns, cells), ensure_ascii=False))
        self.sink.write("\n")

    def _on_flush_table(self):
        self.sink.flush()


class JSONArrayWriter(FormatWriter):
    def __init__(self, sink: IO[str], settings: ExportSettings | None = None):
        super().__init__(settings)
        self.sink = sink
        self._written = 0

    def _on_file_header(self):
        self.sink.write("[")

    def _on_row(self, row_index, cells):
        self.sink.write(",\n" if self._written else "\n")
        self.sink.write(json.dumps(_row_object(self.columns, cells), ensure_ascii=False))
        self._written += 1

    def _on_flush_table(self):
        self.sink.flush()

    def _on_file_footer(self):
        self.sink.write("\n]\n" if self._written else "]\n")
        self.sink.flush()
