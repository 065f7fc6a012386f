from typing import IO

from ..dbtypes import ExportSettings
from .base import FormatWriter, WriterState  # noqa: F401
from .delimited import DelimitedWriter
from .jsonfmt import JSONArrayWriter, JSONLinesWriter
from .markup import XMLWriter
from .psql import PsqlDumpWriter
from .spreadsheet import XlsxWriter

WRITERS: dict[str, type[FormatWriter]] = {
    "psql": PsqlDumpWriter,
    "csv": DelimitedWriter,
    "tsv": DelimitedWriter,
    "jsonlines": JSONLinesWriter,
    "json": JSONArrayWriter,
    "xml": XMLWriter,
    "xlsx": XlsxWriter,
}

BINARY_FORMATS = {"xlsx"}


def get_writer(name: str, sink: IO, settings: ExportSettings | None = None, **options) -> FormatWriter:
    """
    Build the writer for a format name as used on the command line.

    `options` are passed to the writer's constructor; "tsv" forces a tab delimiter.
    """
    try:
        writer_cls = WRITERS[name]
    except KeyError:
        raise ValueError(f"unknown format {name!r}, expected one of {', '.join(WRITERS)}") from None
    if name == "tsv":
        options["delimiter"] = "\t"
    return writer_cls(sink, settings, **options)


__all__ = [
    "BINARY_FORMATS",
    "WRITERS",
    "DelimitedWriter",
    "FormatWriter",
    "JSONArrayWriter",
    "JSONLinesWriter",
    "PsqlDumpWriter",
    "XMLWriter",
    "XlsxWriter",
    "get_writer",
]
