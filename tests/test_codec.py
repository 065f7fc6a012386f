"""Tests for the cell encoders in dbtabledump.codec"""

import base64
import struct
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from dbtabledump.codec import (
    NULL_TOKEN,
    encode,
    escape_text,
    format_float,
    render_plain,
    to_json,
    unescape_text,
)
from dbtabledump.dbtypes import NULL, Cell, CellKind
from dbtabledump.exceptions import EncodingError


@pytest.mark.unit
def test_encode_null():
    assert encode(NULL) == r"\N"
    assert NULL_TOKEN == "\\N"


@pytest.mark.unit
def test_encode_bytes_is_copy_escaped_bytea_hex():
    """The bytea literal \\xDEAD has its backslash doubled for COPY text"""
    field = encode(Cell(CellKind.BYTES, b"\xde\xad\x00\x01"))
    assert field == "\\\\xDEAD0001"
    # what a COPY reader hands to bytea input
    assert unescape_text(field) == "\\xDEAD0001"
    assert bytes.fromhex(unescape_text(field)[2:]) == b"\xde\xad\x00\x01"


@pytest.mark.unit
def test_encode_empty_bytes():
    assert unescape_text(encode(Cell.from_native(b""))) == "\\x"


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [(0, "0"), (42, "42"), (-17, "-17"), (2**63 - 1, "9223372036854775807"), (-(2**63), "-9223372036854775808")],
)
def test_encode_int64(value, expected):
    assert encode(Cell.from_native(value)) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "value,expected",
    [
        (1.5, "1.5"),
        (2.0, "2"),
        (-0.25, "-0.25"),
        (0.1, "0.1"),
        (1e16, "10000000000000000"),
        (1.5e-7, "0.00000015"),
        (123456789.125, "123456789.125"),
    ],
)
def test_encode_float64_positional_shortest(value, expected):
    assert encode(Cell.from_native(value)) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "value",
    [0.1, 1 / 3, 2.0**-1074, 1.7976931348623157e308, -123.456e-20, 5e-324, 9007199254740993.0],
)
def test_float_round_trips_bit_exact(value):
    text = format_float(value)
    assert "e" not in text.lower()
    assert struct.pack("<d", float(text)) == struct.pack("<d", value)


@pytest.mark.unit
def test_float_special_values():
    assert format_float(float("nan")) == "NaN"
    assert format_float(float("inf")) == "Infinity"
    assert format_float(float("-inf")) == "-Infinity"


@pytest.mark.unit
def test_encode_timestamp_keeps_offset_and_instant():
    tz = timezone(timedelta(hours=5, minutes=30))
    value = datetime(2024, 2, 29, 13, 45, 7, 123456, tzinfo=tz)
    text = encode(Cell.from_native(value))
    assert text == "2024-02-29T13:45:07.123456+05:30"
    parsed = datetime.fromisoformat(text)
    assert parsed == value
    assert parsed.utcoffset() == value.utcoffset()


@pytest.mark.unit
def test_encode_naive_timestamp_is_utc():
    assert encode(Cell.from_native(datetime(2020, 1, 1, 0, 0))) == "2020-01-01T00:00:00+00:00"


@pytest.mark.unit
def test_encode_bool_lowercase():
    assert encode(Cell.from_native(True)) == "true"
    assert encode(Cell.from_native(False)) == "false"


@pytest.mark.unit
def test_encode_text_plain():
    assert encode(Cell.from_native("hello world")) == "hello world"


@pytest.mark.unit
def test_escape_each_special_character_exactly_once():
    raw = "a\\b\tc\rd\ne\bf\vg"
    escaped = encode(Cell.from_native(raw))
    assert escaped == "a\\\\b\\tc\\rd\\ne\\bf\\vg"
    for ch in "\t\r\n\b\v":
        assert ch not in escaped
    assert unescape_text(escaped) == raw


@pytest.mark.unit
def test_escape_backslash_first_no_double_escaping():
    # a literal backslash followed by "t" must not turn into a tab escape
    assert escape_text("\\t") == "\\\\t"
    assert unescape_text(escape_text("\\t")) == "\\t"
    assert escape_text("\\\t") == "\\\\\\t"


@pytest.mark.unit
def test_escape_rejects_nul():
    with pytest.raises(EncodingError):
        encode(Cell.from_native("bad\x00value"))


@pytest.mark.unit
def test_fallback_values_are_escaped_text():
    assert encode(Cell.from_native(Decimal("10.50"))) == "10.50"
    assert encode(Cell.from_native({"k": "a\tb"})) == "{'k': 'a\\\\tb'}"


@pytest.mark.unit
def test_encode_is_deterministic():
    cells = [Cell.from_native(v) for v in (None, b"x", 1, 1.5, datetime(2020, 1, 1), True, "t\n")]
    assert [encode(c) for c in cells] == [encode(c) for c in cells]


@pytest.mark.unit
def test_render_plain():
    assert render_plain(NULL) == ""
    assert render_plain(Cell.from_native(b"\x0f\xa0")) == "0fa0"
    assert render_plain(Cell.from_native("a\tb")) == "a\tb"
    assert render_plain(Cell.from_native(3.0)) == "3"
    assert render_plain(Cell.from_native(False)) == "false"


@pytest.mark.unit
def test_to_json():
    assert to_json(NULL) is None
    assert to_json(Cell.from_native(b"hi")) == base64.b64encode(b"hi").decode()
    assert to_json(Cell.from_native(7)) == 7
    assert to_json(Cell.from_native(True)) is True
    assert to_json(Cell.from_native(float("nan"))) == "NaN"
    assert to_json(Cell.from_native(datetime(2020, 1, 1, tzinfo=timezone.utc))) == "2020-01-01T00:00:00+00:00"
    assert to_json(Cell.from_native(Decimal("1.10"))) == "1.10"
