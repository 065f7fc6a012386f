import re
from typing import IO
from xml.sax.saxutils import XMLGenerator

from ..codec import render_plain
from ..dbtypes import CellKind, ExportSettings
from ..exceptions import EncodingError
from .base import FormatWriter

# characters XML 1.0 cannot carry, even escaped
_XML_ILLEGAL = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


class XMLWriter(FormatWriter):
    """
    XML output:

        <export>
          <table name="t">
            <row><col name="id">1</col><col name="name" null="true"/></row>
          </table>
        </export>
    """

    def __init__(self, sink: IO[str], settings: ExportSettings | None = None):
        super().__init__(settings)
        self.sink = sink
        self.xml = XMLGenerator(sink, encoding="utf-8", short_empty_elements=True)

    def _newline(self, indent=0):
        self.xml.ignorableWhitespace("\n" + "  " * indent)

    def _on_file_header(self):
        self.xml.startDocument()
        self.xml.startElement("export", {})

    def _on_table_header(self, table, columns):
        self._newline(1)
        self.xml.startElement("table", {"name": table})

    def _on_row(self, row_index, cells):
        texts = []
        for col, cell in zip(self.columns, cells):
            text = None if cell.kind is CellKind.NULL else render_plain(cell)
            if text and _XML_ILLEGAL.search(text):
                raise EncodingError(f"column {col} holds characters XML cannot represent", self.table)
            texts.append(text)

        self._newline(2)
        self.xml.startElement("row", {})
        for col, text in zip(self.columns, texts):
            if text is None:
                self.xml.startElement("col", {"name": col, "null": "true"})
            else:
                self.xml.startElement("col", {"name": col})
                self.xml.characters(text)
            self.xml.endElement("col")
        self.xml.endElement("row")

    def _on_flush_table(self):
        self._newline(1)
        self.xml.endElement("table")
        self.sink.flush()

    def _on_file_footer(self):
        self._newline()
        self.xml.endElement("export")
        self.xml.endDocument()
        self.sink.write("\n")
        self.sink.flush()
