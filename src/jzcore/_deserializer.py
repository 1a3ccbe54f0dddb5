"""
Recursive-descent deserializer over a mutable byte buffer.

The Deserializer is the cursor: it owns the buffer and an index, interprets
JSON value syntax and forwards primitive facts to a Visitor supplied by the
binding layer. Containers are driven through SeqAccess, MapAccess and
UnitVariantAccess, which know the comma, colon and terminator grammar of
their container. Nesting is represented by the Python call stack.
"""

import logging
from typing import Any
from typing import Protocol

from ._config import ParseConfig
from ._config import clamp_depth
from ._errors import DeserializeError
from ._errors import ErrorKind
from ._numbers import IntWidth
from ._numbers import parse_float
from ._numbers import parse_signed
from ._numbers import parse_unsigned
from ._profiling import ProfileContext
from ._unescape import unescape_in_place

logger = logging.getLogger(__name__)

_WHITESPACE = frozenset(b" \t\n\r")
_DELIMITERS = frozenset(b",}]")
_QUOTE = 0x22
_COMMA = 0x2C
_COLON = 0x3A
_LBRACKET = 0x5B
_RBRACKET = 0x5D
_LBRACE = 0x7B
_RBRACE = 0x7D
_LOWER_F = 0x66
_LOWER_N = 0x6E
_LOWER_T = 0x74


class _End:
    """Marks that a container has no more elements."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "END"


END = _End()


class Deserializable(Protocol):
    """Anything the Deserializer can parse: it picks its own dispatch."""

    def deserialize(self, de: "Deserializer") -> Any: ...


class Visitor:
    """
    Receives primitive facts from the Deserializer.

    Shapes override the visit methods for the JSON forms they accept. The
    defaults reject the value, which only happens when a shape asks for one
    dispatch but cannot handle what that dispatch reports.
    """

    expecting = "a JSON value"

    def _reject(self, what: str) -> Any:
        raise TypeError(
            f"{type(self).__name__} expecting {self.expecting} "
            f"cannot accept {what}"
        )

    def visit_bool(self, value: bool) -> Any:
        return self._reject("a boolean")

    def visit_int(self, value: int) -> Any:
        return self._reject("an integer")

    def visit_float(self, value: float) -> Any:
        return self._reject("a float")

    def visit_borrowed_str(self, value: memoryview) -> Any:
        return self._reject("a string")

    def visit_none(self) -> Any:
        return self._reject("null")

    def visit_some(self, de: "Deserializer") -> Any:
        return self._reject("an optional value")

    def visit_unit(self) -> Any:
        return self._reject("an ignored value")

    def visit_seq(self, access: "SeqAccess") -> Any:
        return self._reject("a sequence")

    def visit_map(self, access: "MapAccess") -> Any:
        return self._reject("a map")

    def visit_enum(self, access: "UnitVariantAccess") -> Any:
        return self._reject("an enum")


class _DepthGuard:
    """Counts container nesting and enforces the configured limit."""

    def __init__(self, de: "Deserializer", max_depth: int | None) -> None:
        self.de = de
        self.max_depth = max_depth
        self.current_depth = 0

    def __enter__(self) -> "_DepthGuard":
        if self.max_depth is not None and self.current_depth >= self.max_depth:
            logger.debug(
                "Nesting depth %d reached at byte %d",
                self.max_depth,
                self.de.index,
            )
            raise self.de.error(ErrorKind.RECURSION_LIMIT_EXCEEDED)
        self.current_depth += 1
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.current_depth -= 1


class Deserializer:
    """
    Cursor over a mutable JSON buffer.

    Bytes before index are consumed; string parsing may overwrite them with
    unescaped output but never reads them again. Line feeds are counted in
    the source bytes before a string overwrites them, so error lines and
    columns describe the input as it was handed in.
    """

    def __init__(
        self, buffer: bytearray | memoryview, config: ParseConfig | None = None
    ) -> None:
        self.buffer = buffer
        self.index = 0
        self.length = len(buffer)
        self.config = config if config is not None else ParseConfig()
        max_depth = self.config.max_depth
        self._depth = _DepthGuard(
            self, clamp_depth(max_depth) if max_depth is not None else None
        )
        # Line feeds seen before offset _counted, and where the line starts
        self._line = 1
        self._line_start = 0
        self._counted = 0

    # Errors

    def _count_lines(self, upto: int) -> None:
        if upto <= self._counted:
            return
        segment = bytes(self.buffer[self._counted : upto])
        newlines = segment.count(b"\n")
        if newlines:
            self._line += newlines
            self._line_start = self._counted + segment.rfind(b"\n") + 1
        self._counted = upto

    def _line_feed(self, pos: int) -> None:
        self._line += 1
        self._line_start = pos + 1

    def _line_and_column(self, pos: int) -> tuple[int, int]:
        self._count_lines(pos)
        return self._line, pos - self._line_start + 1

    def error_at(self, kind: ErrorKind, pos: int) -> DeserializeError:
        """Builds an error positioned at byte offset pos."""
        lineno, colno = self._line_and_column(pos)
        return DeserializeError(
            kind, bytes(self.buffer[:pos]), pos, lineno=lineno, colno=colno
        )

    def error(self, kind: ErrorKind) -> DeserializeError:
        """Builds an error positioned at the cursor."""
        return self.error_at(kind, self.index)

    def custom_error(self, msg: object) -> DeserializeError:
        """Builds a CUSTOM error for the binding layer."""
        lineno, colno = self._line_and_column(self.index)
        return DeserializeError.custom(
            msg,
            bytes(self.buffer[: self.index]),
            self.index,
            preserve=self.config.custom_error_messages,
            lineno=lineno,
            colno=colno,
        )

    # Navigation

    def peek(self) -> int | None:
        """Returns the next byte without consuming it, None at the end."""
        if self.index < self.length:
            return self.buffer[self.index]
        return None

    def eat_char(self) -> None:
        self.index += 1

    def next_char(self) -> int | None:
        """Consumes and returns the next byte, None at the end."""
        if self.index < self.length:
            byte = self.buffer[self.index]
            self.index += 1
            return byte
        return None

    def parse_whitespace(self) -> int | None:
        """Consumes whitespace and peeks at the next significant byte."""
        buffer = self.buffer
        while self.index < self.length and buffer[self.index] in _WHITESPACE:
            self.index += 1
        return self.peek()

    def parse_ident(self, ident: bytes) -> None:
        for expected in ident:
            if self.next_char() != expected:
                raise self.error(ErrorKind.EXPECTED_SOME_IDENT)

    def parse_object_colon(self) -> None:
        peek = self.parse_whitespace()
        if peek is None:
            raise self.error(ErrorKind.EOF_WHILE_PARSING_OBJECT)
        if peek != _COLON:
            raise self.error(ErrorKind.EXPECTED_COLON)
        self.eat_char()

    def parse_str(self) -> memoryview:
        """
        Unescapes the string body at the cursor and borrows the result.

        The cursor must sit just after the opening quote. The returned view
        covers the unescaped bytes inside the caller's buffer.

        Invalid UTF-8 is found only after unescaping has moved the bytes,
        so it is reported at the string's closing quote.
        """
        start = self.index
        self._count_lines(start)
        with ProfileContext("parse_str", self):
            try:
                length, consumed = unescape_in_place(
                    self.buffer, start, self._line_feed
                )
            except DeserializeError as e:
                self._counted = e.pos
                raise self.error_at(e.kind, e.pos) from None
            self.index = start + consumed
        self._counted = self.index

        view = memoryview(self.buffer)[start : start + length]
        try:
            str(view, "utf-8")
        except UnicodeDecodeError as e:
            view.release()
            raise self.error_at(
                ErrorKind.INVALID_UNICODE_CODE_POINT, self.index - 1
            ) from e
        return view

    # Terminator checks

    def end(self) -> None:
        """Requires that only whitespace remains."""
        if self.parse_whitespace() is not None:
            raise self.error(ErrorKind.TRAILING_CHARACTERS)

    def end_seq(self) -> None:
        peek = self.parse_whitespace()
        if peek is None:
            raise self.error(ErrorKind.EOF_WHILE_PARSING_LIST)
        if peek == _RBRACKET:
            self.eat_char()
            return
        if peek == _COMMA:
            self.eat_char()
            if self.parse_whitespace() == _RBRACKET:
                raise self.error(ErrorKind.TRAILING_COMMA)
        raise self.error(ErrorKind.TRAILING_CHARACTERS)

    def end_map(self) -> None:
        peek = self.parse_whitespace()
        if peek is None:
            raise self.error(ErrorKind.EOF_WHILE_PARSING_OBJECT)
        if peek == _RBRACE:
            self.eat_char()
            return
        if peek == _COMMA:
            raise self.error(ErrorKind.TRAILING_COMMA)
        raise self.error(ErrorKind.TRAILING_CHARACTERS)

    def _significant(self) -> int:
        peek = self.parse_whitespace()
        if peek is None:
            raise self.error(ErrorKind.EOF_WHILE_PARSING_VALUE)
        return peek

    # Dispatch

    def parse(self, shape: Deserializable) -> Any:
        """Parses one value of the given shape at the cursor."""
        return shape.deserialize(self)

    def deserialize_bool(self, visitor: Visitor) -> Any:
        peek = self._significant()
        if peek == _LOWER_T:
            self.eat_char()
            self.parse_ident(b"rue")
            return visitor.visit_bool(True)
        if peek == _LOWER_F:
            self.eat_char()
            self.parse_ident(b"alse")
            return visitor.visit_bool(False)
        raise self.error(ErrorKind.INVALID_TYPE)

    def deserialize_int(self, width: IntWidth, visitor: Visitor) -> Any:
        if width.signed:
            return visitor.visit_int(parse_signed(self, width))
        return visitor.visit_int(parse_unsigned(self, width))

    def deserialize_float(self, bits: int, visitor: Visitor) -> Any:
        return visitor.visit_float(parse_float(self, bits))

    def deserialize_str(self, visitor: Visitor) -> Any:
        if self._significant() != _QUOTE:
            raise self.error(ErrorKind.INVALID_TYPE)
        self.eat_char()
        return visitor.visit_borrowed_str(self.parse_str())

    def deserialize_identifier(self, visitor: Visitor) -> Any:
        return self.deserialize_str(visitor)

    def deserialize_option(self, visitor: Visitor) -> Any:
        if self._significant() == _LOWER_N:
            self.eat_char()
            self.parse_ident(b"ull")
            return visitor.visit_none()
        return visitor.visit_some(self)

    def deserialize_seq(self, visitor: Visitor) -> Any:
        if self._significant() != _LBRACKET:
            raise self.error(ErrorKind.INVALID_TYPE)
        self.eat_char()

        with self._depth, ProfileContext("deserialize_seq", self):
            value = visitor.visit_seq(SeqAccess(self))
            self.end_seq()
        return value

    def deserialize_tuple(self, length: int, visitor: Visitor) -> Any:
        return self.deserialize_seq(visitor)

    def deserialize_map(self, visitor: Visitor) -> Any:
        if self._significant() != _LBRACE:
            raise self.error(ErrorKind.INVALID_TYPE)
        self.eat_char()

        with self._depth, ProfileContext("deserialize_map", self):
            value = visitor.visit_map(MapAccess(self))
            self.end_map()
        return value

    def deserialize_struct(
        self, name: str, fields: tuple[str, ...], visitor: Visitor
    ) -> Any:
        return self.deserialize_map(visitor)

    def deserialize_enum(
        self, name: str, variants: tuple[str, ...], visitor: Visitor
    ) -> Any:
        if self._significant() != _QUOTE:
            raise self.error(ErrorKind.EXPECTED_SOME_VALUE)
        return visitor.visit_enum(UnitVariantAccess(self))

    def deserialize_ignored_any(self, visitor: Visitor) -> Any:
        """
        Discards the next value.

        Strings and containers go through the normal path. Bare tokens are
        skipped up to the next delimiter without validating their content,
        so a malformed token such as this-is-ignored is accepted here.
        """
        peek = self._significant()
        if peek == _QUOTE:
            return self.deserialize_str(visitor)
        if peek == _LBRACKET:
            return self.deserialize_seq(visitor)
        if peek == _LBRACE:
            return self.deserialize_struct("ignored", (), visitor)
        if peek in _DELIMITERS:
            raise self.error(ErrorKind.EXPECTED_SOME_VALUE)

        while True:
            byte = self.peek()
            if byte is None:
                raise self.error(ErrorKind.EOF_WHILE_PARSING_VALUE)
            if byte in _DELIMITERS:
                return visitor.visit_unit()
            self.eat_char()

    def _unsupported(self, what: str) -> Any:
        raise TypeError(
            f"cannot deserialize {what}: describe the expected value "
            "with a concrete shape"
        )

    def deserialize_any(self, visitor: Visitor) -> Any:
        return self._unsupported("a self-describing value")

    def deserialize_char(self, visitor: Visitor) -> Any:
        return self._unsupported("a single character")

    def deserialize_bytes(self, visitor: Visitor) -> Any:
        return self._unsupported("raw bytes")

    def deserialize_unit(self, visitor: Visitor) -> Any:
        return self._unsupported("a unit value")

    def deserialize_newtype_struct(self, name: str, visitor: Visitor) -> Any:
        return self._unsupported(f"newtype {name}")


class SeqAccess:
    """Drives the elements of a JSON array."""

    def __init__(self, de: Deserializer) -> None:
        self.de = de
        self.first = True

    def next_element(self, shape: Deserializable) -> Any:
        """
        Parses the next element, or returns END when the array is done.

        A closing bracket is left for the terminator check. After the first
        element a missing comma also ends iteration, so the stray byte is
        reported as trailing characters by the terminator check.
        """
        de = self.de
        peek = de.parse_whitespace()
        if peek is None:
            raise de.error(ErrorKind.EOF_WHILE_PARSING_LIST)
        if peek == _RBRACKET:
            return END

        if self.first:
            self.first = False
        elif peek == _COMMA:
            de.eat_char()
            if de.parse_whitespace() == _RBRACKET:
                raise de.error(ErrorKind.TRAILING_COMMA)
        else:
            return END

        return de.parse(shape)


class MapAccess:
    """Drives the key/value pairs of a JSON object."""

    def __init__(self, de: Deserializer) -> None:
        self.de = de
        self.first = True

    def next_key(self, shape: Deserializable) -> Any:
        """Parses the next key, or returns END when the object is done."""
        de = self.de
        peek = de.parse_whitespace()
        if peek is None:
            raise de.error(ErrorKind.EOF_WHILE_PARSING_OBJECT)
        if peek == _RBRACE:
            return END

        if self.first:
            self.first = False
        elif peek == _COMMA:
            de.eat_char()
            peek = de.parse_whitespace()
            if peek is None:
                raise de.error(ErrorKind.EOF_WHILE_PARSING_OBJECT)
            if peek == _RBRACE:
                raise de.error(ErrorKind.TRAILING_COMMA)
        else:
            return END

        if peek != _QUOTE:
            raise de.error(ErrorKind.KEY_MUST_BE_A_STRING)
        return de.parse(shape)

    def next_value(self, shape: Deserializable) -> Any:
        self.de.parse_object_colon()
        return self.de.parse(shape)


class UnitVariantAccess:
    """Resolves a unit enum variant from its quoted tag."""

    def __init__(self, de: Deserializer) -> None:
        self.de = de

    def variant(self, shape: Deserializable) -> Any:
        """Parses the variant tag with the given shape."""
        return self.de.parse(shape)

    def unit_variant(self) -> None:
        return None

    def newtype_variant(self, shape: Deserializable) -> Any:
        raise self.de.error(ErrorKind.INVALID_TYPE)

    def tuple_variant(self, length: int, visitor: Visitor) -> Any:
        raise self.de.error(ErrorKind.INVALID_TYPE)

    def struct_variant(self, fields: tuple[str, ...], visitor: Visitor) -> Any:
        raise self.de.error(ErrorKind.INVALID_TYPE)
