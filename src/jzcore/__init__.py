"""
In-place JSON deserializer for caller-owned mutable buffers.

Parses JSON text straight into schema-shaped Python values without building
an intermediate tree. String values are unescaped inside the caller's buffer
and can be borrowed from it as memoryviews, so the buffer doubles as the
parser's scratch space.
"""

import logging
from typing import Any

from . import shapes
from ._config import ParseConfig
from ._deserializer import END
from ._deserializer import Deserializable
from ._deserializer import Deserializer
from ._deserializer import MapAccess
from ._deserializer import SeqAccess
from ._deserializer import UnitVariantAccess
from ._deserializer import Visitor
from ._errors import MAX_CUSTOM_MESSAGE_LENGTH
from ._errors import DeserializeError
from ._errors import ErrorKind
from ._numbers import IntWidth
from ._profiling import HotPathStats
from ._profiling import ProfileContext
from ._profiling import clear_hot_path_stats
from ._profiling import get_hot_path_stats
from ._unescape import unescape_in_place
from ._utf8_mapper import UTF8PositionMapper

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def _writable_bytes(buffer: Any) -> bytearray | memoryview:
    """Validates the input buffer and returns it as a flat byte buffer."""
    if isinstance(buffer, bytearray):
        return buffer
    if isinstance(buffer, memoryview):
        if buffer.readonly:
            raise TypeError("the JSON buffer must be writable")
        if not buffer.c_contiguous:
            raise TypeError("the JSON buffer must be contiguous")
        return buffer.cast("B")
    raise TypeError(
        "the JSON buffer must be bytearray or memoryview, "
        f"not {type(buffer).__name__}"
    )


def _parse_document(de: Deserializer, shape: Deserializable) -> Any:
    """
    Parses one value and requires that only whitespace follows it.

    Nesting that outruns the interpreter stack before any max_depth is
    reached surfaces as RECURSION_LIMIT_EXCEEDED at the cursor.
    """
    try:
        value = de.parse(shape)
    except RecursionError:
        raise de.error(ErrorKind.RECURSION_LIMIT_EXCEEDED) from None
    de.end()
    return value


def from_slice(
    buffer: bytearray | memoryview, shape: Deserializable, **kwargs: Any
) -> Any:
    """
    Deserializes a value of the given shape from a mutable JSON buffer.

    The buffer is used as scratch space: string values are unescaped in
    place, so its contents are unspecified afterwards. Only whitespace may
    follow the value.
    """
    buffer = _writable_bytes(buffer)
    config = ParseConfig(**kwargs)
    logger.debug(
        "Deserializing %d bytes as %s", len(buffer), type(shape).__name__
    )

    de = Deserializer(buffer, config)
    with ProfileContext("from_slice", de):
        try:
            value = _parse_document(de, shape)
        except DeserializeError as e:
            logger.debug(
                "Deserialization failed at byte %d: %s", e.pos, e.kind.name
            )
            raise
    return value


def from_str(s: str, shape: Deserializable, **kwargs: Any) -> Any:
    """
    Deserializes a value of the given shape from JSON text.

    Python strings are immutable, so the text is encoded into a fresh
    buffer that borrowed strings then point into. Error positions are
    reported in characters of s.
    """
    if not isinstance(s, str):
        raise TypeError(
            f"the JSON object must be str, not {type(s).__name__}"
        )

    buffer = bytearray(s.encode("utf-8"))
    try:
        return from_slice(buffer, shape, **kwargs)
    except DeserializeError as e:
        pos = UTF8PositionMapper(s).byte_to_char(e.pos)
        raise e.relocated(s, pos) from None


__all__ = [
    "END",
    "MAX_CUSTOM_MESSAGE_LENGTH",
    "Deserializable",
    "DeserializeError",
    "Deserializer",
    "ErrorKind",
    "HotPathStats",
    "IntWidth",
    "MapAccess",
    "ParseConfig",
    "SeqAccess",
    "UnitVariantAccess",
    "Visitor",
    "clear_hot_path_stats",
    "from_slice",
    "from_str",
    "get_hot_path_stats",
    "shapes",
    "unescape_in_place",
]
