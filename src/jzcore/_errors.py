"""
Closed error taxonomy for the in-place JSON deserializer.

Every fallible operation raises a DeserializeError carrying one ErrorKind and
the byte offset at which the failure was detected. Nothing is recovered
internally: the first failure propagates straight to the entry function.
"""

from enum import Enum
from typing import TypeAlias

Position: TypeAlias = int

# Custom messages are cut at this many characters
MAX_CUSTOM_MESSAGE_LENGTH = 64


class ErrorKind(Enum):
    """
    All possible failure kinds of a deserialization.

    Values are the human-readable descriptions used in error messages.
    """

    EOF_WHILE_PARSING_LIST = "EOF while parsing a list."
    EOF_WHILE_PARSING_OBJECT = "EOF while parsing an object."
    EOF_WHILE_PARSING_STRING = "EOF while parsing a string."
    EOF_WHILE_PARSING_NUMBER = "EOF while parsing a JSON number."
    EOF_WHILE_PARSING_VALUE = "EOF while parsing a JSON value."
    EXPECTED_COLON = "Expected this character to be a `':'`."
    EXPECTED_LIST_COMMA_OR_END = (
        "Expected this character to be either a `','` or a `']'`."
    )
    EXPECTED_OBJECT_COMMA_OR_END = (
        "Expected this character to be either a `','` or a `'}'`."
    )
    EXPECTED_SOME_IDENT = (
        "Expected to parse either a `true`, `false`, or a `null`."
    )
    EXPECTED_SOME_VALUE = "Expected this character to start a JSON value."
    INVALID_NUMBER = "Invalid number."
    INVALID_TYPE = "Invalid type"
    INVALID_UNICODE_CODE_POINT = "Invalid unicode code point."
    KEY_MUST_BE_A_STRING = "Object key is not a string."
    TRAILING_CHARACTERS = (
        "JSON has non-whitespace trailing characters after the value."
    )
    TRAILING_COMMA = (
        "JSON has a comma after the last value in an array or map."
    )
    INVALID_ESCAPE = "Attempted to decode an invalid escape within a string."
    RECURSION_LIMIT_EXCEEDED = "JSON nesting exceeds the configured depth."
    CUSTOM = "JSON does not match deserializer's expected format."


def truncate_message(msg: str) -> str:
    """Cuts a custom message at MAX_CUSTOM_MESSAGE_LENGTH characters."""
    return msg[:MAX_CUSTOM_MESSAGE_LENGTH]


class DeserializeError(ValueError):
    """
    Reports a deserialization failure with its kind and position.

    The position is a byte offset into the parsed buffer, or a character
    offset when the error was raised for text input. Line and column numbers
    are taken from lineno and colno when given, and otherwise counted in the
    document prefix the raiser supplies. A raiser whose buffer has already
    been rewritten passes them explicitly.
    """

    def __init__(
        self,
        kind: ErrorKind,
        doc: str | bytes = "",
        pos: Position = 0,
        custom_message: str | None = None,
        lineno: int | None = None,
        colno: int | None = None,
    ) -> None:
        if not isinstance(kind, ErrorKind):
            raise TypeError("kind must be an ErrorKind")
        if not isinstance(pos, int) or pos < 0:
            raise ValueError("pos must be a non-negative integer")
        if custom_message is not None and kind is not ErrorKind.CUSTOM:
            raise ValueError("only CUSTOM errors carry a message")

        self.kind = kind
        self.doc = doc
        self.pos = pos
        self.custom_message = custom_message

        newline = "\n" if isinstance(doc, str) else b"\n"
        if lineno is None:
            lineno = doc.count(newline, 0, pos) + 1 if doc else 1
        if colno is None:
            colno = pos - doc.rfind(newline, 0, pos) if doc else pos + 1
        self.lineno = lineno
        self.colno = colno

        super().__init__(
            f"{self.description} at line {self.lineno}, column {self.colno}"
        )

    @property
    def description(self) -> str:
        """Preserved custom message, or the kind's fixed description."""
        if self.custom_message is not None:
            return self.custom_message
        return self.kind.value

    @classmethod
    def custom(
        cls,
        msg: object,
        doc: str | bytes = "",
        pos: Position = 0,
        *,
        preserve: bool = True,
        lineno: int | None = None,
        colno: int | None = None,
    ) -> "DeserializeError":
        """
        Builds a CUSTOM error raised by the binding layer.

        The message is truncated deterministically to the first
        MAX_CUSTOM_MESSAGE_LENGTH characters, or dropped when preserve
        is False.
        """
        message = truncate_message(str(msg)) if preserve else None
        return cls(ErrorKind.CUSTOM, doc, pos, message, lineno, colno)

    def relocated(self, doc: str, pos: Position) -> "DeserializeError":
        """Returns the same failure positioned inside another document."""
        return DeserializeError(self.kind, doc, pos, self.custom_message)

    def __reduce__(self) -> tuple[type, tuple[object, ...]]:
        return (
            self.__class__,
            (
                self.kind,
                self.doc,
                self.pos,
                self.custom_message,
                self.lineno,
                self.colno,
            ),
        )
