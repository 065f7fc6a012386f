"""
Multi-table export session.

One writer, one snapshot transaction, tables strictly in declared order.
A table that fails is reported and skipped; only a destination failure ends
the session early.
"""

from collections.abc import Iterable
from contextlib import closing, contextmanager
from dataclasses import dataclass, field
from logging import getLogger

from ..dbtypes import Connection, ExportSettings, TableExportSpec
from ..exceptions import EncodingError, QueryError
from ..formats import FormatWriter
from .exporter import TableResult, export_table
from .helpers import vprint
from .types import ArgType

logger = getLogger(__name__)


@dataclass
class TableFailure:
    table: str
    error: Exception


@dataclass
class SessionReport:
    results: list[TableResult] = field(default_factory=list)
    failures: list[TableFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def rows(self) -> int:
        return sum(result.rows for result in self.results)


def execute(connection: Connection, sql: str):
    with closing(connection.cursor()) as cursor:
        cursor.execute(sql)


@contextmanager
def savepoint(connection: Connection, name: str):
    """
    Run the block under a savepoint; a failure rolls back to it so the
    surrounding transaction stays usable for the next table.
    """
    execute(connection, f"SAVEPOINT {name};")
    try:
        yield
    except Exception:
        execute(connection, f"ROLLBACK TO SAVEPOINT {name};")
        raise
    execute(connection, f"RELEASE SAVEPOINT {name};")


def probe_max_id(connection: Connection, spec: TableExportSpec) -> int:
    with closing(connection.cursor()) as cursor:
        cursor.execute(spec.max_id_sql())
        row = cursor.fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def fix_sequence(connection: Connection, writer: FormatWriter, spec: TableExportSpec, result: TableResult, args: ArgType):
    """
    Advance the table's sequence past the exported ids.

    A failing max-id probe only costs the setval: it is logged and recorded on
    `result`, the table itself stays exported.
    """
    try:
        with savepoint(connection, "sequence_probe"):
            max_id = probe_max_id(connection, spec)
    except Exception as ouch:
        result.sequence_error = ouch
        logger.warning("Sequence probe for %r failed, %s left unchanged: %s", spec.table, spec.sequence, ouch)
        return
    if max_id > 0:
        writer.add_sequence_fix(spec.sequence, max_id)
        result.sequence_value = max_id
        vprint(args, f"Sequence {spec.sequence} switched to {max_id}")


def export_session(
    specs: Iterable[TableExportSpec],
    connection: Connection,
    writer: FormatWriter,
    args: ArgType,
    settings: ExportSettings | None = None,
) -> SessionReport:
    """
    Export every table in `specs` through `writer`, in order.

    `connection` must already be inside the session's snapshot transaction
    (see `get_connection`). The file header and footer are written exactly
    once; per-table `QueryError`/`EncodingError` are logged and collected in
    the report. `SinkWriteError` propagates at once and no footer is written.
    The writer is closed on every exit path.

    Returns:
        SessionReport: per-table results and failures
    """
    settings = settings or writer.settings
    report = SessionReport()
    try:
        writer.write_file_header()
        for table_ix, spec in enumerate(specs):
            try:
                with savepoint(connection, "table_export"):
                    result = export_table(connection, writer, spec, args, settings, table_ix)
            except (QueryError, EncodingError) as ouch:
                logger.error("Error export for %r: %s", spec.table, ouch)
                report.failures.append(TableFailure(spec.table, ouch))
                continue
            if spec.wants_sequence_fix:
                fix_sequence(connection, writer, spec, result, args)
            report.results.append(result)
        writer.write_file_footer()
    finally:
        writer.close()

    vprint(
        args,
        f"{len(report.results)} tables, {report.rows} rows exported; {len(report.failures)} failed",
    )
    return report
