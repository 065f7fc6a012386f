"""
Value and source types shared by the codec, the writers and the runner.

A cell coming out of the source database is classified once into one of a
closed set of kinds (`CellKind`); everything downstream dispatches on that
kind only.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, NamedTuple, Protocol

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


class CellKind(Enum):
    NULL = "null"
    BYTES = "bytes"
    INT64 = "int64"
    FLOAT64 = "float64"
    TIMESTAMP = "timestamp"
    BOOL = "bool"
    TEXT = "text"


class Cell(NamedTuple):
    kind: CellKind
    value: Any = None

    @classmethod
    def from_native(cls, value) -> "Cell":
        """
        Classify a driver value.

        Never raises: anything that is not one of the first six kinds is
        rendered with str() and carried as TEXT.
        """
        if value is None:
            return NULL
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(CellKind.BYTES, bytes(value))
        # bool before int, bool is an int subclass
        if isinstance(value, bool):
            return cls(CellKind.BOOL, value)
        if isinstance(value, int):
            if INT64_MIN <= value <= INT64_MAX:
                return cls(CellKind.INT64, value)
            return cls(CellKind.TEXT, str(value))
        if isinstance(value, float):
            return cls(CellKind.FLOAT64, value)
        if isinstance(value, datetime):
            return cls(CellKind.TIMESTAMP, value)
        if isinstance(value, str):
            return cls(CellKind.TEXT, value)
        return cls(CellKind.TEXT, str(value))


NULL = Cell(CellKind.NULL)

Row = dict[str, Cell]


@dataclass(frozen=True)
class TableExportSpec:
    table: str
    sql: str = ""
    id_column: str | None = None
    sequence: str | None = None

    def __post_init__(self):
        if not self.sql:
            object.__setattr__(self, "sql", f"select * from {self.table}")

    @property
    def wants_sequence_fix(self) -> bool:
        return bool(self.id_column and self.sequence)

    def max_id_sql(self) -> str:
        return f"select coalesce(max({self.id_column}), 0) as max_id from {self.table}"


@dataclass(frozen=True)
class ExportSettings:
    """Options handed to writers and the exporter; never mutated during a session."""

    truncate: bool = False
    replica: bool = False
    flush_every: int = 100
    progress_every: int = 10_000
    fetch_size: int = 2_000


class Cursor(Protocol):
    description: Sequence[Sequence[Any]] | None

    def execute(self, query, params=None): ...

    def fetchone(self) -> Sequence[Any] | None: ...

    def fetchmany(self, size: int = ...) -> Sequence[Sequence[Any]]: ...

    def close(self) -> None: ...


class Connection(Protocol):
    def cursor(self, *args, **kwargs) -> Cursor: ...
