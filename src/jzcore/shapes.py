"""
Shape descriptors: the schema-driven binding layer.

A shape describes the value expected at one position of the document. It
chooses the Deserializer dispatch to call and, as a Visitor, turns the
primitive facts reported back into a Python value. Shapes nest to describe
whole documents:

    Led = Struct("Led", {"led": Bool()})
    from_str('{ "led": true }', Led)  # {'led': True}
"""

import enum
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from ._deserializer import END
from ._deserializer import Deserializer
from ._deserializer import MapAccess
from ._deserializer import SeqAccess
from ._deserializer import UnitVariantAccess
from ._deserializer import Visitor
from ._numbers import IntWidth

__all__ = [
    "F32",
    "F64",
    "I8",
    "I16",
    "I32",
    "I64",
    "U8",
    "U16",
    "U32",
    "U64",
    "Array",
    "Bool",
    "Enum",
    "Float",
    "Ignored",
    "Int",
    "List",
    "Map",
    "Optional",
    "Shape",
    "Str",
    "Struct",
    "Tuple",
]


class Shape(Visitor):
    """Base class of all shape descriptors."""

    def deserialize(self, de: Deserializer) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class Bool(Shape):
    expecting = "a boolean"

    def deserialize(self, de: Deserializer) -> bool:
        return de.deserialize_bool(self)

    def visit_bool(self, value: bool) -> bool:
        return value


@dataclass(frozen=True)
class Int(Shape):
    """Fixed-width integer; out-of-range literals fail as INVALID_NUMBER."""

    width: IntWidth = IntWidth.I64

    @property
    def expecting(self) -> str:  # type: ignore[override]
        return f"an integer of type {self.width.name.lower()}"

    def deserialize(self, de: Deserializer) -> int:
        return de.deserialize_int(self.width, self)

    def visit_int(self, value: int) -> int:
        return value


@dataclass(frozen=True)
class Float(Shape):
    """IEEE float of 32 or 64 bits."""

    bits: int = 64

    def __post_init__(self) -> None:
        if self.bits not in (32, 64):
            raise ValueError("bits must be 32 or 64")

    @property
    def expecting(self) -> str:  # type: ignore[override]
        return f"an f{self.bits} float"

    def deserialize(self, de: Deserializer) -> float:
        return de.deserialize_float(self.bits, self)

    def visit_float(self, value: float) -> float:
        return value


@dataclass(frozen=True)
class Str(Shape):
    """
    JSON string.

    With borrow=True the value is the memoryview over the unescaped bytes in
    the caller's buffer; the buffer cannot be resized while it is held.
    Otherwise the bytes are decoded into a str and the view is released.
    """

    borrow: bool = False
    expecting = "a string"

    def deserialize(self, de: Deserializer) -> str | memoryview:
        return de.deserialize_str(self)

    def visit_borrowed_str(self, value: memoryview) -> str | memoryview:
        if self.borrow:
            return value
        text = str(value, "utf-8")
        value.release()
        return text


@dataclass(frozen=True)
class Optional(Shape):
    """null, or a value of the inner shape."""

    inner: Shape

    @property
    def expecting(self) -> str:  # type: ignore[override]
        return f"null or {self.inner.expecting}"

    def deserialize(self, de: Deserializer) -> Any:
        return de.deserialize_option(self)

    def visit_none(self) -> None:
        return None

    def visit_some(self, de: Deserializer) -> Any:
        return de.parse(self.inner)


@dataclass(frozen=True)
class List(Shape):
    """Variable-length JSON array."""

    item: Shape
    expecting = "a sequence"

    def deserialize(self, de: Deserializer) -> list[Any]:
        return de.deserialize_seq(self)

    def visit_seq(self, access: SeqAccess) -> list[Any]:
        values = []
        while True:
            value = access.next_element(self.item)
            if value is END:
                return values
            values.append(value)


@dataclass(frozen=True)
class Tuple(Shape):
    """
    Fixed-arity JSON array with one shape per position.

    Too few elements is a CUSTOM error; surplus elements are left in place
    and rejected as trailing characters.
    """

    items: Sequence[Shape]
    name: str | None = None

    @property
    def expecting(self) -> str:  # type: ignore[override]
        if self.name is not None:
            return f"tuple struct {self.name} with {len(self.items)} elements"
        return f"a tuple of size {len(self.items)}"

    def deserialize(self, de: Deserializer) -> tuple[Any, ...]:
        return de.deserialize_tuple(len(self.items), self)

    def visit_seq(self, access: SeqAccess) -> tuple[Any, ...]:
        values = []
        for index, item in enumerate(self.items):
            value = access.next_element(item)
            if value is END:
                raise access.de.custom_error(
                    f"invalid length {index}, expected {self.expecting}"
                )
            values.append(value)
        return tuple(values)


@dataclass(frozen=True)
class Array(Shape):
    """Fixed-length JSON array of a single element shape."""

    item: Shape
    length: int

    def __post_init__(self) -> None:
        if self.length < 0:
            raise ValueError("length must be non-negative")

    @property
    def expecting(self) -> str:  # type: ignore[override]
        return f"an array of length {self.length}"

    def deserialize(self, de: Deserializer) -> list[Any]:
        return de.deserialize_tuple(self.length, self)

    def visit_seq(self, access: SeqAccess) -> list[Any]:
        values = []
        for index in range(self.length):
            value = access.next_element(self.item)
            if value is END:
                raise access.de.custom_error(
                    f"invalid length {index}, expected {self.expecting}"
                )
            values.append(value)
        return values


@dataclass(frozen=True)
class Map(Shape):
    """
    JSON object with arbitrary keys, decoded into a dict.

    The key shape must produce hashable values; a borrowing Str is refused.
    """

    value: Shape
    key: Shape = field(default_factory=Str)
    expecting = "a map"

    def __post_init__(self) -> None:
        if isinstance(self.key, Str) and self.key.borrow:
            raise ValueError("map keys must be owned strings, not borrowed")

    def deserialize(self, de: Deserializer) -> dict[Any, Any]:
        return de.deserialize_map(self)

    def visit_map(self, access: MapAccess) -> dict[Any, Any]:
        values = {}
        while True:
            key = access.next_key(self.key)
            if key is END:
                return values
            values[key] = access.next_value(self.value)


@dataclass(frozen=True)
class Ignored(Shape):
    """Discards whatever value is at the cursor."""

    expecting = "anything at all"

    def deserialize(self, de: Deserializer) -> None:
        return de.deserialize_ignored_any(self)

    def visit_borrowed_str(self, value: memoryview) -> None:
        value.release()

    def visit_unit(self) -> None:
        return None

    def visit_seq(self, access: SeqAccess) -> None:
        while access.next_element(self) is not END:
            pass

    def visit_map(self, access: MapAccess) -> None:
        while access.next_key(self) is not END:
            access.next_value(self)


_KEY = Str()
_IGNORED = Ignored()


@dataclass(frozen=True)
class Struct(Shape):
    """
    JSON object with a known set of fields.

    fields maps each JSON key to its shape. Unknown keys are skipped; missing
    fields default to None when their shape is Optional and are an error
    otherwise. The collected fields are passed to factory as keyword
    arguments, or returned as a dict when no factory is given.
    """

    name: str
    fields: Mapping[str, Shape]
    factory: Callable[..., Any] | None = None

    @property
    def expecting(self) -> str:  # type: ignore[override]
        return f"struct {self.name}"

    def deserialize(self, de: Deserializer) -> Any:
        return de.deserialize_struct(self.name, tuple(self.fields), self)

    def visit_map(self, access: MapAccess) -> Any:
        values: dict[str, Any] = {}
        while True:
            key = access.next_key(_KEY)
            if key is END:
                break
            shape = self.fields.get(key)
            if shape is None:
                access.next_value(_IGNORED)
                continue
            if key in values:
                raise access.de.custom_error(f"duplicate field `{key}`")
            values[key] = access.next_value(shape)

        for name, shape in self.fields.items():
            if name in values:
                continue
            if not isinstance(shape, Optional):
                raise access.de.custom_error(f"missing field `{name}`")
            values[name] = None

        if self.factory is None:
            return values
        return self.factory(**values)


@dataclass(frozen=True)
class Enum(Shape):
    """
    Unit-only enum encoded as its quoted tag.

    variants is a mapping from tag to value, an iterable of tags (each tag
    maps to itself), or an enum.Enum subclass whose string member values
    are the tags.
    """

    name: str
    variants: Mapping[str, Any] | Iterable[str] | type[enum.Enum]
    _tags: dict[str, Any] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        variants = self.variants
        if isinstance(variants, type) and issubclass(variants, enum.Enum):
            tags = {str(member.value): member for member in variants}
        elif isinstance(variants, Mapping):
            tags = dict(variants)
        elif isinstance(variants, str):
            raise TypeError("variants must be a collection of tags, not str")
        else:
            tags = {tag: tag for tag in variants}
        object.__setattr__(self, "_tags", tags)

    @property
    def expecting(self) -> str:  # type: ignore[override]
        return f"enum {self.name}"

    def deserialize(self, de: Deserializer) -> Any:
        return de.deserialize_enum(self.name, tuple(self._tags), self)

    def visit_enum(self, access: UnitVariantAccess) -> Any:
        tag = access.variant(_KEY)
        access.unit_variant()
        if tag not in self._tags:
            expected = ", ".join(f"`{name}`" for name in self._tags)
            raise access.de.custom_error(
                f"unknown variant `{tag}`, expected one of {expected}"
            )
        return self._tags[tag]


I8 = Int(IntWidth.I8)
I16 = Int(IntWidth.I16)
I32 = Int(IntWidth.I32)
I64 = Int(IntWidth.I64)
U8 = Int(IntWidth.U8)
U16 = Int(IntWidth.U16)
U32 = Int(IntWidth.U32)
U64 = Int(IntWidth.U64)
F32 = Float(32)
F64 = Float(64)
