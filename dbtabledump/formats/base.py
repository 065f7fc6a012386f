"""
The writer lifecycle every destination format follows.

    CREATED -> FILE_HEADER -> (TABLE_HEADER -> ROW* -> TABLE_FLUSHED)* -> FILE_FOOTER -> CLOSED

Subclasses implement the `_on_*` hooks; the public methods police the order
of calls and turn sink failures into `SinkWriteError`.
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from functools import wraps
from logging import getLogger

from ..dbtypes import Cell, ExportSettings
from ..exceptions import SinkWriteError, WriterStateError

logger = getLogger(__name__)


class WriterState(Enum):
    CREATED = "created"
    FILE_HEADER = "file header written"
    TABLE_HEADER = "table header written"
    ROW = "row written"
    TABLE_FLUSHED = "table flushed"
    FILE_FOOTER = "file footer written"
    CLOSED = "closed"


_IN_TABLE = {WriterState.TABLE_HEADER, WriterState.ROW}
_BETWEEN_TABLES = {WriterState.FILE_HEADER, WriterState.TABLE_FLUSHED}


def _transition(allowed: set[WriterState], target: WriterState | None):
    """Check the current state before running the step, move to `target` after it."""

    def decorator(method):
        @wraps(method)
        def wrapper(self, *args, **kwargs):
            if self.state not in allowed:
                raise WriterStateError(
                    f"{method.__name__}() not allowed when {self.state.value}",
                    self.table,
                )
            try:
                result = method(self, *args, **kwargs)
            except OSError as ouch:
                raise SinkWriteError(f"writing to the destination failed: {ouch}", self.table) from ouch
            if target is not None:
                self.state = target
            return result

        return wrapper

    return decorator


class FormatWriter:
    """Base class for destination formats."""

    def __init__(self, settings: ExportSettings | None = None):
        self.settings = settings or ExportSettings()
        self.state = WriterState.CREATED
        self.table: str | None = None
        self.columns: list[str] = []

    @_transition({WriterState.CREATED}, WriterState.FILE_HEADER)
    def write_file_header(self):
        self._on_file_header()

    @_transition(_BETWEEN_TABLES, WriterState.TABLE_HEADER)
    def write_table_header(self, table: str, columns: Sequence[str]):
        self.table = table
        self.columns = list(columns)
        self._on_table_header(table, self.columns)

    @_transition(_IN_TABLE, WriterState.ROW)
    def write_row(self, row_index: int, values: Mapping[str, Cell]):
        self._on_row(row_index, [values[col] for col in self.columns])

    @_transition(_IN_TABLE, WriterState.TABLE_FLUSHED)
    def flush_table(self):
        self._on_flush_table()

    @_transition(_IN_TABLE, WriterState.TABLE_FLUSHED)
    def abort_table(self, reason: str):
        """Close a table block left unfinished by a failure."""
        logger.warning("%s: closing incomplete table block (%s)", self.table, reason)
        self._on_abort_table(reason)

    @_transition({WriterState.TABLE_FLUSHED}, None)
    def add_sequence_fix(self, sequence: str, value: int):
        self._on_sequence_fix(sequence, value)

    @_transition(_BETWEEN_TABLES, WriterState.FILE_FOOTER)
    def write_file_footer(self):
        self._on_file_footer()

    def close(self):
        if self.state is WriterState.CLOSED:
            return
        try:
            self._on_close()
        except OSError as ouch:
            raise SinkWriteError(f"closing the destination failed: {ouch}", self.table) from ouch
        finally:
            self.state = WriterState.CLOSED

    # format hooks

    def _on_file_header(self):
        pass

    def _on_table_header(self, table: str, columns: list[str]):
        pass

    def _on_row(self, row_index: int, cells: list[Cell]):
        raise NotImplementedError

    def _on_flush_table(self):
        pass

    def _on_abort_table(self, reason: str):
        self._on_flush_table()

    def _on_sequence_fix(self, sequence: str, value: int):
        pass

    def _on_file_footer(self):
        pass

    def _on_close(self):
        pass
