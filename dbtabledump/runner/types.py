from dataclasses import dataclass, field

from ..dbtypes import ExportSettings


@dataclass
class ArgType:
    """
    Options of one export run, as collected by the command line.

    Tests and library callers can build one directly; only the fields they
    care about need to be given.
    """

    format: str = "psql"
    dburl: str | None = None
    ini: str | None = None
    query: str | None = None
    table: str = "query"
    output: str | None = None
    verbosity: int = 1
    log_rather_than_print: bool = True
    truncate: bool = False
    replica: bool = False
    delimiter: str = ","
    header: bool = False
    sheet: str = "data"
    writer_options: dict = field(default_factory=dict)

    def settings(self) -> ExportSettings:
        return ExportSettings(truncate=self.truncate, replica=self.replica)
