"""
Overflow-checked numeric parsing on the deserializer cursor.

Integers are accumulated digit by digit and range-checked after every
multiply and every add, so an out-of-range literal is rejected rather than
truncated. Floats collect a run of number-looking bytes and delegate to
float(); malformed runs are rejected by the conversion itself.
"""

import math
import struct
from enum import Enum
from typing import TYPE_CHECKING

from ._errors import ErrorKind
from ._profiling import ProfileContext

if TYPE_CHECKING:
    from ._deserializer import Deserializer

_MINUS = 0x2D
_ZERO = 0x30
_ONE = 0x31
_NINE = 0x39
_FLOAT_BYTES = frozenset(b"0123456789+-.eE")


class IntWidth(Enum):
    """Fixed-width integer targets, as (bits, signed)."""

    I8 = (8, True)
    I16 = (16, True)
    I32 = (32, True)
    I64 = (64, True)
    U8 = (8, False)
    U16 = (16, False)
    U32 = (32, False)
    U64 = (64, False)

    @property
    def bits(self) -> int:
        return self.value[0]

    @property
    def signed(self) -> bool:
        return self.value[1]

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        if self.signed:
            return (1 << (self.bits - 1)) - 1
        return (1 << self.bits) - 1


def _checked(de: "Deserializer", number: int, width: IntWidth) -> int:
    if not width.min_value <= number <= width.max_value:
        raise de.error(ErrorKind.INVALID_NUMBER)
    return number


def _accumulate(
    de: "Deserializer", number: int, width: IntWidth, sign: int
) -> int:
    """Consumes the remaining digits, stopping at the first non-digit."""
    while True:
        byte = de.peek()
        if byte is None or not _ZERO <= byte <= _NINE:
            return number
        de.eat_char()
        number = _checked(de, number * 10, width)
        number = _checked(de, number + sign * (byte - _ZERO), width)


def parse_unsigned(de: "Deserializer", width: IntWidth) -> int:
    """
    Parses an unsigned integer literal.

    A leading 0 is a complete number: "01" yields 0 and leaves "1" for the
    caller's terminator check.
    """
    with ProfileContext("parse_unsigned", de):
        peek = de.parse_whitespace()
        if peek is None:
            raise de.error(ErrorKind.EOF_WHILE_PARSING_VALUE)
        if peek == _MINUS:
            raise de.error(ErrorKind.INVALID_NUMBER)
        if peek == _ZERO:
            de.eat_char()
            return 0
        if not _ONE <= peek <= _NINE:
            raise de.error(ErrorKind.INVALID_TYPE)

        de.eat_char()
        return _accumulate(de, peek - _ZERO, width, 1)


def parse_signed(de: "Deserializer", width: IntWidth) -> int:
    """
    Parses a signed integer literal with an optional leading minus.

    Digits accumulate towards the sign, so the most negative value of the
    width is reachable. "-0" is accepted and yields 0.
    """
    with ProfileContext("parse_signed", de):
        peek = de.parse_whitespace()
        if peek is None:
            raise de.error(ErrorKind.EOF_WHILE_PARSING_VALUE)

        sign = 1
        if peek == _MINUS:
            de.eat_char()
            sign = -1

        first = de.peek()
        if first is None:
            raise de.error(ErrorKind.EOF_WHILE_PARSING_NUMBER)
        if first == _ZERO:
            de.eat_char()
            return 0
        if not _ONE <= first <= _NINE:
            raise de.error(ErrorKind.INVALID_TYPE)

        de.eat_char()
        return _accumulate(de, sign * (first - _ZERO), width, sign)


def _to_single(value: float) -> float:
    """Rounds a double to IEEE single precision, saturating to infinity."""
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def parse_float(de: "Deserializer", bits: int = 64) -> float:
    """
    Parses a floating point literal of the given width.

    No digit placement is validated here: "1e1e1" or "-2-2" are collected
    whole and fail in float().
    """
    with ProfileContext("parse_float", de):
        if de.parse_whitespace() is None:
            raise de.error(ErrorKind.EOF_WHILE_PARSING_VALUE)

        start = de.index
        while True:
            byte = de.peek()
            if byte is None or byte not in _FLOAT_BYTES:
                break
            de.eat_char()

        text = bytes(de.buffer[start : de.index]).decode("ascii")
        try:
            value = float(text)
        except ValueError as e:
            raise de.error(ErrorKind.INVALID_NUMBER) from e

        return _to_single(value) if bits == 32 else value
