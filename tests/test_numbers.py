"""
Numeric parsing tests.

Validates overflow-checked integer accumulation for every width and float
runs delegated to float().
"""

import math

import pytest

from jzcore import DeserializeError
from jzcore import Deserializer
from jzcore import ErrorKind
from jzcore import IntWidth
from jzcore._numbers import parse_float
from jzcore._numbers import parse_signed
from jzcore._numbers import parse_unsigned


def cursor(text: str) -> Deserializer:
    return Deserializer(bytearray(text.encode("utf-8")))


def parse_int(text: str, width: IntWidth) -> int:
    de = cursor(text)
    if width.signed:
        return parse_signed(de, width)
    return parse_unsigned(de, width)


@pytest.mark.parametrize(
    "width,low,high",
    [
        (IntWidth.I8, -128, 127),
        (IntWidth.U8, 0, 255),
        (IntWidth.I16, -32768, 32767),
        (IntWidth.U32, 0, 4294967295),
        (IntWidth.I64, -(2**63), 2**63 - 1),
        (IntWidth.U64, 0, 2**64 - 1),
    ],
)
def test_int_width_bounds(width: IntWidth, low: int, high: int) -> None:
    assert (width.min_value, width.max_value) == (low, high)


@pytest.mark.parametrize(
    "text,width,expected",
    [
        ("0", IntWidth.U8, 0),
        ("255", IntWidth.U8, 255),
        ("  42", IntWidth.U16, 42),
        ("127", IntWidth.I8, 127),
        ("-128", IntWidth.I8, -128),
        ("-0", IntWidth.I32, 0),
        ("18446744073709551615", IntWidth.U64, 2**64 - 1),
        ("-9223372036854775808", IntWidth.I64, -(2**63)),
    ],
)
def test_integers_in_range(text: str, width: IntWidth, expected: int) -> None:
    """
    Validates parsing up to and including both bounds of each width.
    """
    assert parse_int(text, width) == expected


@pytest.mark.parametrize(
    "text,width",
    [
        ("256", IntWidth.U8),
        ("128", IntWidth.I8),
        ("-129", IntWidth.I8),
        ("65536", IntWidth.U16),
        ("18446744073709551616", IntWidth.U64),
        ("9223372036854775808", IntWidth.I64),
    ],
)
def test_integer_overflow(text: str, width: IntWidth) -> None:
    """
    Validates that out-of-range literals are rejected, never truncated.
    """
    with pytest.raises(DeserializeError) as exc_info:
        parse_int(text, width)

    assert exc_info.value.kind is ErrorKind.INVALID_NUMBER


def test_leading_zero_is_complete_number() -> None:
    """
    Validates that a leading zero ends the literal and the rest is unread.
    """
    de = cursor("01")
    assert parse_unsigned(de, IntWidth.U8) == 0
    assert de.index == 1


def test_integer_stops_at_non_digit() -> None:
    de = cursor("12,")
    assert parse_signed(de, IntWidth.I32) == 12
    assert de.peek() == ord(",")


@pytest.mark.parametrize(
    "text,width,kind",
    [
        ("", IntWidth.U8, ErrorKind.EOF_WHILE_PARSING_VALUE),
        ("   ", IntWidth.I8, ErrorKind.EOF_WHILE_PARSING_VALUE),
        ("-", IntWidth.I8, ErrorKind.EOF_WHILE_PARSING_NUMBER),
        ("-5", IntWidth.U8, ErrorKind.INVALID_NUMBER),
        ("x", IntWidth.U8, ErrorKind.INVALID_TYPE),
        ("-x", IntWidth.I8, ErrorKind.INVALID_TYPE),
        ('"1"', IntWidth.I32, ErrorKind.INVALID_TYPE),
    ],
)
def test_integer_errors(text: str, width: IntWidth, kind: ErrorKind) -> None:
    with pytest.raises(DeserializeError) as exc_info:
        parse_int(text, width)

    assert exc_info.value.kind is kind


@pytest.mark.parametrize(
    "text,expected",
    [
        ("0", 0.0),
        ("-17.2", -17.2),
        ("1e3", 1000.0),
        ("2.5E-1", 0.25),
        ("12", 12.0),
    ],
)
def test_double_precision(text: str, expected: float) -> None:
    assert parse_float(cursor(text)) == expected


def test_single_precision_rounding() -> None:
    """
    Validates that f32 results are rounded to single precision.
    """
    value = parse_float(cursor("-17.2"), 32)
    assert value != -17.2
    assert value == pytest.approx(-17.2, rel=1e-6)


def test_float_overflow_saturates() -> None:
    assert parse_float(cursor("1e39"), 32) == math.inf
    assert parse_float(cursor("-1e500"), 32) == -math.inf
    assert parse_float(cursor("-1e500")) == -math.inf


def test_float_run_ends_at_delimiter() -> None:
    de = cursor("1.5]")
    assert parse_float(de) == 1.5
    assert de.peek() == ord("]")


@pytest.mark.parametrize(
    "text",
    [
        "1e1e1",
        "-2-2",
        "0.0.",
        "\N{LATIN SMALL LETTER A WITH DIAERESIS}",
        ".",
    ],
)
def test_malformed_floats(text: str) -> None:
    """
    Validates that malformed runs fail in conversion as INVALID_NUMBER.
    """
    with pytest.raises(DeserializeError) as exc_info:
        parse_float(cursor(text))

    assert exc_info.value.kind is ErrorKind.INVALID_NUMBER


def test_float_at_end_of_input() -> None:
    with pytest.raises(DeserializeError) as exc_info:
        parse_float(cursor(" "))

    assert exc_info.value.kind is ErrorKind.EOF_WHILE_PARSING_VALUE
