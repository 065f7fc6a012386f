"""
Runner package: everything between the command line and the writers.

Structure:
    helpers.py - vprint, timer
    types.py - ArgType
    context.py - connection string, snapshot transaction (get_connection)
    exporter.py - single table export (export_table)
    orchestrator.py - multi-table session (export_session)
    cli.py - argument parsing (augment_argument_parser, main)
"""

from .context import build_dburl, get_connection
from .exporter import TableResult, export_table
from .helpers import timer, vprint
from .orchestrator import SessionReport, TableFailure, export_session
from .types import ArgType

__all__ = [
    "vprint",
    "timer",
    "ArgType",
    "build_dburl",
    "get_connection",
    "TableResult",
    "export_table",
    "SessionReport",
    "TableFailure",
    "export_session",
]
