"""
Command line front end.

    dbtabledump [global options] <format> [format options]

Tables come from an INI list (--ini); without one, a single query is taken
from -c, -f or standard input and exported as one table.
"""

import argparse
import sys
from contextlib import ExitStack
from logging import getLogger

from dotenv import load_dotenv

from ..dbtypes import TableExportSpec
from ..exceptions import ConfigError, ExportException
from ..formats import BINARY_FORMATS, get_writer
from ..loader import load_table_specs
from .context import build_dburl, get_connection
from .orchestrator import export_session
from .types import ArgType

logger = getLogger(__name__)

EXIT_FAILED_TABLES = 2


def read_query(args) -> str:
    if args.query:
        return args.query
    if args.file:
        try:
            with open(args.file, encoding="utf-8") as fh:
                return fh.read()
        except OSError as ouch:
            raise ConfigError(f"could not read query file {args.file}: {ouch}") from ouch
    if not sys.stdin.isatty():
        return sys.stdin.read()
    raise ConfigError("You need to specify a SQL query (-c, -f, stdin) or a table list (--ini).")


def table_specs(args) -> list[TableExportSpec]:
    if args.ini:
        return load_table_specs(args.ini)
    query = read_query(args).strip().rstrip(";")
    if not query:
        raise ConfigError("the SQL query is empty")
    return [TableExportSpec(table=args.table, sql=query)]


def to_argtype(args) -> ArgType:
    dburl = build_dburl(
        args.dburl,
        host=args.host,
        port=args.port,
        dbname=args.dbname,
        user=args.username,
        password=args.password,
    )
    options = {}
    if args.format in ("csv", "tsv"):
        options["header"] = args.header
    if args.format == "csv":
        options["delimiter"] = args.delimiter
    if args.format == "xlsx":
        options["sheet"] = args.sheet
    return ArgType(
        format=args.format,
        dburl=dburl,
        ini=args.ini,
        query=args.query,
        table=args.table,
        output=args.output,
        verbosity=args.verbosity,
        log_rather_than_print=args.log_rather_than_print,
        truncate=getattr(args, "truncate", False),
        replica=getattr(args, "replica", False),
        writer_options=options,
    )


def cmd_export(args) -> int:
    specs = table_specs(args)
    run = to_argtype(args)
    if run.format in BINARY_FORMATS and not run.output:
        raise ConfigError(f"{run.format} output needs a file name (-o)")

    with ExitStack() as stack:
        if run.format in BINARY_FORMATS:
            sink = run.output
        elif run.output:
            try:
                sink = stack.enter_context(open(run.output, "w", encoding="utf-8", newline=""))
            except OSError as ouch:
                raise ConfigError(f"could not open {run.output}: {ouch}") from ouch
        else:
            sink = sys.stdout
        writer = get_writer(run.format, sink, run.settings(), **run.writer_options)
        connection = stack.enter_context(get_connection(run))
        report = export_session(specs, connection, writer, run)

    for failure in report.failures:
        print(f"Error export for {failure.table!r}: {failure.error}", file=sys.stderr)
    return 0 if report.ok else EXIT_FAILED_TABLES


def augment_argument_parser(p: argparse.ArgumentParser, log_rather_than_print=False):
    def add_subcommand(name, help):
        sp = subparsers.add_parser(name, help=help)
        sp.set_defaults(func=cmd_export, format=name)
        return sp

    p.set_defaults(func=lambda _args: p.print_help() or 1, log_rather_than_print=log_rather_than_print)
    p.add_argument("-q", "--quiet", help="Be quiet (minimal output)", action="store_const", const=0, dest="verbosity", default=1)
    p.add_argument("-v", "--verbose", help="Be verbose (on stderr).", action="store_const", const=2, dest="verbosity")
    p.add_argument("--dburl", help="PostgreSQL URL or conninfo (default: DB_URL from the environment)")
    p.add_argument("--host", help="host name (DB_HOST)")
    p.add_argument("-p", "--port", help="port (DB_PORT)")
    p.add_argument("-d", "--dbname", help="database (DB_NAME)")
    p.add_argument("-U", "--username", help="user name (DB_USER)")
    p.add_argument("--password", "--pass", help="password (DB_PASS)")
    p.add_argument("-c", "--command", "--query", dest="query", help="SQL query to export")
    p.add_argument("-f", "--file", help="file holding the SQL query")
    p.add_argument("--ini", help="INI file listing the tables to export, in order")
    p.add_argument("--table", default="query", help="table name for a single query (default: %(default)s)")
    p.add_argument("-o", "--output", help="output file name (default: standard output)")

    subparsers = p.add_subparsers(
        title="formats",
        description="Free-form template output is not provided; use json or jsonlines and transform that.",
    )

    psql = add_subcommand("psql", "PostgreSQL dump: copy blocks in one transaction")
    psql.add_argument("--truncate", action="store_true", help="truncate (cascade) each table before loading it")
    psql.add_argument(
        "--replica",
        action="store_true",
        help="defer constraints and load with session_replication_role = replica",
    )

    csv = add_subcommand("csv", "Comma separated values")
    csv.add_argument("--delimiter", default=",", help="column delimiter (default: %(default)r)")
    csv.add_argument("--header", action="store_true", help="output header row")

    tsv = add_subcommand("tsv", "Tab separated values")
    tsv.add_argument("--header", action="store_true", help="output header row")

    add_subcommand("jsonlines", "Newline-delimited JSON objects")
    add_subcommand("json", "One JSON array")
    add_subcommand("xml", "XML document")

    xlsx = add_subcommand("xlsx", "XLSX spreadsheet (needs -o)")
    xlsx.add_argument("--sheet", default="data", help="name of the first sheet (default: %(default)s)")

    return p


def main():
    load_dotenv()
    p = argparse.ArgumentParser(
        description="Export tables from a database in one consistent snapshot, "
        "as a PostgreSQL dump or one of several text formats.",
    )
    augment_argument_parser(p)
    args = p.parse_args()
    try:
        status = args.func(args)
    except ExportException as argh:
        sys.exit(f"\n\n\nFATAL: {argh}")
    except KeyboardInterrupt:
        sys.exit("\nInterrupted.")
    sys.exit(status or 0)


if __name__ == "__main__":
    main()
