from .dbtypes import Cell, CellKind, ExportSettings, TableExportSpec  # noqa: F401
from .formats import FormatWriter, PsqlDumpWriter, get_writer  # noqa: F401
from .loader import load_table_specs  # noqa: F401
