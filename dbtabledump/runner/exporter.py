"""
Export of a single table: run its query, stream the rows into the writer.
"""

from contextlib import closing
from dataclasses import dataclass
from itertools import count
from logging import getLogger

from ..dbtypes import Cell, Connection, ExportSettings, TableExportSpec
from ..exceptions import EncodingError, ExportException, QueryError, SinkWriteError
from ..formats import FormatWriter
from .helpers import timer, vprint
from .types import ArgType

logger = getLogger(__name__)


@dataclass
class TableResult:
    table: str
    rows: int = 0
    seconds: float = 0.0
    sequence_value: int | None = None
    sequence_error: Exception | None = None


def open_cursor(connection: Connection, table_ix: int):
    """A server-side cursor where the driver offers one, so rows are streamed."""
    try:
        return connection.cursor(name=f"dbtabledump_{table_ix}")
    except TypeError:
        return connection.cursor()


def fetch_batches(cursor, spec: TableExportSpec, size: int):
    while True:
        try:
            batch = cursor.fetchmany(size)
        except ExportException:
            raise
        except Exception as dberr:
            raise QueryError("fetching rows failed", dberr, spec.table, spec.sql) from dberr
        if not batch:
            return
        yield batch


def export_table(
    connection: Connection,
    writer: FormatWriter,
    spec: TableExportSpec,
    args: ArgType,
    settings: ExportSettings | None = None,
    table_ix: int = 0,
) -> TableResult:
    """
    Export one table through `writer`.

    Either every row reaches `writer.write_row` (indices 0..N-1, in cursor
    order) followed by exactly one `flush_table`, or an exception is raised.
    When the failure comes after the table header, the writer's block is
    closed with `abort_table` before the error propagates, unless the sink
    itself is what failed.

    Raises:
        QueryError: the query or a fetch failed
        EncodingError: a value could not be represented by the format
        SinkWriteError: the destination could not be written
    """
    settings = settings or writer.settings
    table_timer = timer()
    next(table_timer)
    vprint(args, f"{spec.table} ({spec.sql})")

    with closing(open_cursor(connection, table_ix)) as cursor:
        try:
            cursor.execute(spec.sql)
            columns = [desc[0] for desc in cursor.description]
        except Exception as dberr:
            raise QueryError("query failed", dberr, spec.table, spec.sql) from dberr

        writer.write_table_header(spec.table, columns)
        row_ix = count()
        rows = 0
        try:
            for batch in fetch_batches(cursor, spec, settings.fetch_size):
                for native in batch:
                    ix = next(row_ix)
                    writer.write_row(ix, {col: Cell.from_native(val) for col, val in zip(columns, native)})
                    rows = ix + 1
                    if rows % settings.progress_every == 0:
                        vprint(args, ".", end="")
                        logger.debug("%s: %d rows", spec.table, rows)
        except SinkWriteError:
            raise
        except (QueryError, EncodingError) as ouch:
            if ouch.table is None:
                ouch.table = spec.table
            writer.abort_table(f"failed after {rows} rows: {ouch.message}")
            raise

    writer.flush_table()
    seconds = next(table_timer)
    vprint(args, f" OK, {rows} rows, time: {seconds:.2f}s")
    logger.debug("%s exported: %d rows in %.3fs", spec.table, rows, seconds)
    return TableResult(spec.table, rows, seconds)
