"""
Shape descriptor and visitor protocol tests.

Validates shape construction, the expectation strings used in messages, and
decoding through hand-written visitors that drive the Deserializer directly.
"""

import dataclasses
from typing import Any

import pytest

import jzcore
from jzcore import END
from jzcore import Deserializer
from jzcore import ErrorKind
from jzcore import IntWidth
from jzcore import MapAccess
from jzcore import SeqAccess
from jzcore import UnitVariantAccess
from jzcore import Visitor
from jzcore import shapes


@pytest.mark.parametrize(
    "shape,expecting",
    [
        (shapes.Bool(), "a boolean"),
        (shapes.I8, "an integer of type i8"),
        (shapes.U64, "an integer of type u64"),
        (shapes.F32, "an f32 float"),
        (shapes.Optional(shapes.Str()), "null or a string"),
        (shapes.Tuple((shapes.I8, shapes.I8)), "a tuple of size 2"),
        (
            shapes.Tuple((shapes.I8,), name="Meters"),
            "tuple struct Meters with 1 elements",
        ),
        (shapes.Array(shapes.U8, 4), "an array of length 4"),
        (shapes.Struct("Led", {}), "struct Led"),
        (shapes.Enum("Unit", ["lux"]), "enum Unit"),
    ],
)
def test_expecting(shape: Visitor, expecting: str) -> None:
    assert shape.expecting == expecting


def test_int_default_width() -> None:
    assert shapes.Int().width is IntWidth.I64


@pytest.mark.parametrize(
    "factory",
    [
        lambda: shapes.Float(16),
        lambda: shapes.Array(shapes.U8, -1),
    ],
)
def test_invalid_construction(factory: Any) -> None:
    with pytest.raises(ValueError):
        factory()


def test_shapes_are_frozen() -> None:
    shape = shapes.Str()
    with pytest.raises(dataclasses.FrozenInstanceError):
        shape.borrow = True  # type: ignore[misc]


def test_map_with_enum_keys() -> None:
    """
    Validates that map keys can be decoded with a non-string shape.
    """
    unit = shapes.Enum("Unit", {"celsius": "C", "percent": "%"})
    shape = shapes.Map(shapes.F64, key=unit)
    result = jzcore.from_str('{"celsius": 21.5, "percent": 40}', shape)
    assert result == {"C": 21.5, "%": 40.0}


def test_map_rejects_borrowed_keys() -> None:
    """
    Validates that a borrowing key shape is refused when the Map is built,
    before any buffer is parsed.
    """
    with pytest.raises(ValueError, match="borrowed"):
        shapes.Map(shapes.I8, key=shapes.Str(borrow=True))

    shape = shapes.Map(shapes.Str(borrow=True), key=shapes.Str())
    result = jzcore.from_slice(bytearray(b'{"a": "b"}'), shape)
    assert bytes(result["a"]) == b"b"
    result["a"].release()


def test_end_marker() -> None:
    assert repr(END) == "END"
    assert END is not None


class SumVisitor(Visitor):
    """Adds up a JSON array of integers without building a list."""

    expecting = "an array of integers"

    def visit_seq(self, access: SeqAccess) -> int:
        total = 0
        while True:
            value = access.next_element(shapes.I64)
            if value is END:
                return total
            total += value


class Sum:
    def deserialize(self, de: Deserializer) -> int:
        return de.deserialize_seq(SumVisitor())


class KeyCounter(Visitor):
    """Counts the keys of an object, skipping every value."""

    def visit_map(self, access: MapAccess) -> int:
        count = 0
        while access.next_key(shapes.Str()) is not END:
            access.next_value(shapes.Ignored())
            count += 1
        return count


class CountKeys:
    def deserialize(self, de: Deserializer) -> int:
        return de.deserialize_map(KeyCounter())


def test_custom_seq_visitor() -> None:
    assert jzcore.from_str("[1, 2, 3, -4]", Sum()) == 2
    assert jzcore.from_str("[]", Sum()) == 0


def test_custom_map_visitor() -> None:
    input_data = '{"a": [1, 2], "b": {"c": null}, "d": "e"}'
    assert jzcore.from_str(input_data, CountKeys()) == 3


def test_custom_visitor_keeps_terminator_checks() -> None:
    with pytest.raises(jzcore.DeserializeError) as exc_info:
        jzcore.from_str("[1, 2,]", Sum())

    assert exc_info.value.kind is ErrorKind.TRAILING_COMMA


class Identifier(Visitor):
    def visit_borrowed_str(self, value: memoryview) -> str:
        text = bytes(value).decode("utf-8").upper()
        value.release()
        return text


class UpperIdent:
    def deserialize(self, de: Deserializer) -> str:
        return de.deserialize_identifier(Identifier())


def test_identifier_dispatch() -> None:
    assert jzcore.from_str('"temperature"', UpperIdent()) == "TEMPERATURE"


class NewtypeVariant(Visitor):
    """Asks the variant access for a payload, which unit enums lack."""

    def visit_enum(self, access: UnitVariantAccess) -> Any:
        access.variant(shapes.Str())
        return access.newtype_variant(shapes.I8)


class Payload:
    def deserialize(self, de: Deserializer) -> Any:
        return de.deserialize_enum("Payload", ("value",), NewtypeVariant())


def test_variant_payloads_rejected() -> None:
    with pytest.raises(jzcore.DeserializeError) as exc_info:
        jzcore.from_str('"value"', Payload())

    assert exc_info.value.kind is ErrorKind.INVALID_TYPE


def test_deserializer_parse_leaves_cursor_after_value() -> None:
    """
    Validates driving the Deserializer directly, one value at a time.
    """
    de = Deserializer(bytearray(b' "a\\"b" , 12'))
    assert de.parse(shapes.Str()) == 'a"b'
    assert de.parse_whitespace() == ord(",")

    de.eat_char()
    assert de.parse(shapes.U8) == 12
    de.end()
