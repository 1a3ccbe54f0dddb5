"""
In-place JSON string unescaping.

The unescaped bytes are written over the escaped source bytes of the same
buffer. Escapes never grow when resolved, so the write cursor can never pass
the read cursor and no scratch allocation is needed.

Scanning is byte-wise rather than per code point: the backslash and quote
bytes (0x5C, 0x22) never occur inside a multi-byte UTF-8 sequence.
"""

from collections.abc import Callable
from typing import TypeAlias

from ._errors import DeserializeError
from ._errors import ErrorKind
from ._profiling import ProfileContext

Buffer: TypeAlias = bytearray | memoryview

_BACKSLASH = 0x5C
_QUOTE = 0x22
_NEWLINE = 0x0A
_LOWER_U = 0x75
_LITERAL_ESCAPES = frozenset(b'\\/"')
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

_HIGH_SURROGATES = range(0xD800, 0xDC00)
_LOW_SURROGATES = range(0xDC00, 0xE000)

# Length of one \uXXXX escape in bytes
_UNICODE_ESCAPE_LEN = 6


def _read_code_unit(buffer: Buffer, pos: int, end: int) -> int:
    """Reads the four hex digits of a \\u escape starting at pos."""
    if end - pos < 4:
        raise DeserializeError(
            ErrorKind.EOF_WHILE_PARSING_STRING, bytes(buffer[:end]), end
        )
    digits = bytes(buffer[pos : pos + 4])
    if not all(digit in _HEX_DIGITS for digit in digits):
        raise DeserializeError(
            ErrorKind.INVALID_ESCAPE, bytes(buffer[:pos]), pos
        )
    return int(digits, 16)


def _combine_surrogates(
    buffer: Buffer, pos: int, end: int, high: int
) -> tuple[int, int]:
    """
    Pairs a high surrogate with the low surrogate escape at pos.

    Returns the supplementary code point and the read position after the
    low surrogate escape.
    """
    escape_start = pos - _UNICODE_ESCAPE_LEN
    if (
        end - pos >= 2
        and buffer[pos] == _BACKSLASH
        and buffer[pos + 1] == _LOWER_U
    ):
        low = _read_code_unit(buffer, pos + 2, end)
        if low in _LOW_SURROGATES:
            code_point = 0x10000 + ((high - 0xD800) << 10) + (low - 0xDC00)
            return code_point, pos + _UNICODE_ESCAPE_LEN

    raise DeserializeError(
        ErrorKind.INVALID_UNICODE_CODE_POINT,
        bytes(buffer[:escape_start]),
        escape_start,
    )


def unescape_in_place(
    buffer: Buffer,
    start: int = 0,
    on_newline: Callable[[int], None] | None = None,
) -> tuple[int, int]:
    """
    Unescapes a JSON string body in place up to its terminating quote.

    start is the offset of the first byte after the opening quote. The
    unescaped text is written from start onwards. Returns the unescaped
    length and the number of bytes consumed, terminating quote included.

    on_newline is called with the offset of every raw line feed read from
    the source, before that offset can be overwritten.

    Raises DeserializeError with:
        INVALID_ESCAPE for a backslash followed by anything other than
            backslash, slash, quote or u, a trailing backslash, or a \\u
            escape whose four bytes are not all hex digits.
        INVALID_UNICODE_CODE_POINT for an unpaired surrogate escape.
        EOF_WHILE_PARSING_STRING when the buffer ends before the closing
            quote or inside a \\u escape.
    """
    end = len(buffer)
    read = write = start

    with ProfileContext("unescape_string"):
        while True:
            if read >= end:
                raise DeserializeError(
                    ErrorKind.EOF_WHILE_PARSING_STRING, bytes(buffer), end
                )
            byte = buffer[read]
            read += 1

            if byte == _QUOTE:
                break
            if byte != _BACKSLASH:
                if byte == _NEWLINE and on_newline is not None:
                    on_newline(read - 1)
                buffer[write] = byte
                write += 1
                continue

            escape_start = read - 1
            if read >= end:
                raise DeserializeError(
                    ErrorKind.INVALID_ESCAPE,
                    bytes(buffer[:escape_start]),
                    escape_start,
                )
            escaped = buffer[read]
            read += 1

            if escaped in _LITERAL_ESCAPES:
                buffer[write] = escaped
                write += 1
            elif escaped == _LOWER_U:
                code_point = _read_code_unit(buffer, read, end)
                read += 4
                if code_point in _HIGH_SURROGATES:
                    code_point, read = _combine_surrogates(
                        buffer, read, end, code_point
                    )
                elif code_point in _LOW_SURROGATES:
                    raise DeserializeError(
                        ErrorKind.INVALID_UNICODE_CODE_POINT,
                        bytes(buffer[:escape_start]),
                        escape_start,
                    )
                encoded = chr(code_point).encode("utf-8")
                buffer[write : write + len(encoded)] = encoded
                write += len(encoded)
            else:
                raise DeserializeError(
                    ErrorKind.INVALID_ESCAPE,
                    bytes(buffer[:escape_start]),
                    escape_start,
                )

    return write - start, read - start
