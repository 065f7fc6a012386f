"""
PostgreSQL bulk-load dump.

The output is a psql script: one transaction wrapping a `copy ... from stdin`
block per table, optionally preceded by a truncate and followed by a
`setval` that moves the table's sequence past the imported ids.

Table names are written as configured (they may be schema-qualified or
already quoted); column names come from the source cursor and are quoted
whenever the server would otherwise fold or reject them.
"""

import re
from logging import getLogger
from typing import IO

from psycopg import sql

from ..codec import encode
from ..dbtypes import Cell, ExportSettings
from .base import FormatWriter

logger = getLogger(__name__)

COPY_TERMINATOR = "\\."

_PLAIN_IDENTIFIER = re.compile(r"[a-z_][a-z0-9_$]*\Z")

# reserved and type/function-name keywords; a bare column name cannot be one of these
RESERVED_WORDS = frozenset(
    """
    all analyse analyze and any array as asc asymmetric authorization binary both case cast
    check collate collation column concurrently constraint create cross current_catalog
    current_date current_role current_schema current_time current_timestamp current_user
    default deferrable desc distinct do else end except false fetch for foreign freeze from
    full grant group having ilike in initially inner intersect into is isnull join lateral
    leading left like limit localtime localtimestamp natural not notnull null offset on only
    or order outer overlaps placing primary references returning right select session_user
    similar some symmetric system_user table tablesample then to trailing true union unique
    user using variadic verbose when where window with
    """.split()
)


def column_ident(name: str) -> str:
    if _PLAIN_IDENTIFIER.match(name) and name not in RESERVED_WORDS:
        return name
    return sql.Identifier(name).as_string(None)


class PsqlDumpWriter(FormatWriter):
    def __init__(self, sink: IO[str], settings: ExportSettings | None = None):
        super().__init__(settings)
        self.sink = sink
        self._pending: list[str] = []

    def _emit(self, *lines: str):
        self.sink.write("".join(line + "\n" for line in lines))

    def _drain(self):
        if self._pending:
            self.sink.write("".join(self._pending))
            self._pending.clear()

    def _on_file_header(self):
        self._emit("begin transaction;")
        if self.settings.replica:
            self._emit(
                "set constraints all deferred;",
                "set session_replication_role to replica;",
            )
        self._emit("")

    def _on_table_header(self, table, columns):
        self._pending.clear()
        self._emit(f"-- {table}", "")
        if self.settings.truncate:
            self._emit(f"truncate table {table} cascade;")
        self._emit(f"copy {table} ({','.join(column_ident(col) for col in columns)}) from stdin;")

    def _on_row(self, row_index: int, cells: list[Cell]):
        # encode the whole record before buffering it so a bad cell never leaves half a line
        self._pending.append("\t".join(encode(cell) for cell in cells) + "\n")
        if len(self._pending) >= self.settings.flush_every:
            self._drain()

    def _on_flush_table(self):
        self._drain()
        self._emit(COPY_TERMINATOR, "")
        self.sink.flush()

    def _on_abort_table(self, reason):
        # every row accepted by write_row is kept, whatever the buffer size
        self._drain()
        self._emit(COPY_TERMINATOR, "")
        self._emit(f"-- {self.table}: export aborted: {' '.join(reason.split())}", "")
        self.sink.flush()

    def _on_sequence_fix(self, sequence, value):
        self._emit(f"select setval({sql.Literal(sequence).as_string(None)}, {int(value)});", "")

    def _on_file_footer(self):
        if self.settings.replica:
            self._emit("set session_replication_role to default;")
        self._emit("commit;")
        self.sink.flush()
