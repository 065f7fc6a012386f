import math
from datetime import datetime
from logging import getLogger
from typing import IO

from openpyxl import Workbook
from openpyxl.utils.exceptions import IllegalCharacterError

from ..codec import format_float, render_plain
from ..dbtypes import CellKind, ExportSettings
from ..exceptions import EncodingError
from .base import FormatWriter

logger = getLogger(__name__)

# Excel's limit on sheet title length
MAX_SHEET_TITLE = 31


def _sheet_title(name: str) -> str:
    for ch in "[]:*?/\\":
        name = name.replace(ch, "_")
    return name[:MAX_SHEET_TITLE] or "data"


def _excel_value(cell):
    kind, value = cell
    if kind is CellKind.NULL:
        return None
    if kind in (CellKind.INT64, CellKind.BOOL):
        return value
    if kind is CellKind.FLOAT64:
        return value if math.isfinite(value) else format_float(value)
    if kind is CellKind.TIMESTAMP:
        # Excel has no notion of offsets; store wall-clock time
        return value.replace(tzinfo=None) if isinstance(value, datetime) else value
    return render_plain(cell)


class XlsxWriter(FormatWriter):
    """One worksheet per table; the first one is named after `sheet`."""

    def __init__(
        self,
        target: str | IO[bytes],
        settings: ExportSettings | None = None,
        sheet: str = "data",
    ):
        super().__init__(settings)
        self.target = target
        self.sheet = sheet
        self.workbook = Workbook(write_only=True)
        self.worksheet = None

    def _on_table_header(self, table, columns):
        title = self.sheet if not self.workbook.worksheets else table
        self.worksheet = self.workbook.create_sheet(_sheet_title(title))
        self.worksheet.append(columns)

    def _on_row(self, row_index, cells):
        try:
            self.worksheet.append([_excel_value(cell) for cell in cells])
        except IllegalCharacterError as ouch:
            raise EncodingError(f"row {row_index} holds characters a worksheet cannot store: {ouch}", self.table)

    def _on_file_footer(self):
        if not self.workbook.worksheets:
            self.workbook.create_sheet(_sheet_title(self.sheet))
        logger.debug("saving workbook with %d sheets", len(self.workbook.worksheets))
        self.workbook.save(self.target)
