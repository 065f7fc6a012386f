"""
Cell encoders.

`encode` produces a field of PostgreSQL's COPY text format. The other
renderers serve the formats that do not need COPY escaping.
"""

import base64
import math
from datetime import datetime, timezone
from decimal import Decimal

from .dbtypes import Cell, CellKind
from .exceptions import EncodingError

NULL_TOKEN = r"\N"

# backslash first, otherwise the escapes added later would be escaped again
_ESCAPES = (
    ("\\", "\\\\"),
    ("\t", "\\t"),
    ("\r", "\\r"),
    ("\n", "\\n"),
    ("\b", "\\b"),
    ("\v", "\\v"),
)
_UNESCAPES = {esc[1]: raw for raw, esc in _ESCAPES}


def escape_text(text: str) -> str:
    if "\x00" in text:
        raise EncodingError(f"NUL character cannot be represented in COPY text: {text[:40]!r}")
    for raw, escaped in _ESCAPES:
        text = text.replace(raw, escaped)
    return text


def unescape_text(text: str) -> str:
    out = []
    ix = 0
    while ix < len(text):
        ch = text[ix]
        if ch == "\\" and ix + 1 < len(text):
            out.append(_UNESCAPES.get(text[ix + 1], text[ix + 1]))
            ix += 2
        else:
            out.append(ch)
            ix += 1
    return "".join(out)


def bytes_to_bytea(data: bytes) -> str:
    return "\\x" + data.hex().upper()


def format_float(value: float) -> str:
    """Shortest digits that round-trip, never in exponent notation."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    text = repr(value)
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    elif text.endswith(".0"):
        text = text[:-2]
    return text


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def encode(cell: Cell) -> str:
    """Render one cell as a COPY text field."""
    kind, value = cell
    if kind is CellKind.NULL:
        return NULL_TOKEN
    if kind is CellKind.BYTES:
        # the bytea literal's own backslash has to survive COPY unescaping
        return escape_text(bytes_to_bytea(value))
    if kind is CellKind.INT64:
        return str(value)
    if kind is CellKind.FLOAT64:
        return format_float(value)
    if kind is CellKind.TIMESTAMP:
        return format_timestamp(value)
    if kind is CellKind.BOOL:
        return "true" if value else "false"
    return escape_text(str(value))


def render_plain(cell: Cell) -> str:
    kind, value = cell
    if kind is CellKind.NULL:
        return ""
    if kind is CellKind.BYTES:
        return value.hex()
    if kind is CellKind.FLOAT64:
        return format_float(value)
    if kind is CellKind.TIMESTAMP:
        return format_timestamp(value)
    if kind is CellKind.BOOL:
        return "true" if value else "false"
    return str(value)


def to_json(cell: Cell):
    kind, value = cell
    if kind is CellKind.NULL:
        return None
    if kind is CellKind.BYTES:
        return base64.b64encode(value).decode("ascii")
    if kind is CellKind.FLOAT64 and not math.isfinite(value):
        return format_float(value)
    if kind is CellKind.TIMESTAMP:
        return format_timestamp(value)
    if kind is CellKind.TEXT:
        return str(value)
    return value
