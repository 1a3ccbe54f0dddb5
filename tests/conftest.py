"""
Pytest configuration and shared fixtures for jzcore tests.

Provides immutable test case containers and the shapes reused across test
modules, modelled on small device-facing documents.
"""

import enum
from dataclasses import dataclass
from typing import Any

import pytest

from jzcore import ErrorKind
from jzcore import shapes


@dataclass(frozen=True)
class JsonTestCase:
    """
    Immutable container for JSON test case data.

    Holds the input document, the shape it is decoded with, and either the
    expected value or the expected error kind.
    """

    description: str
    input_data: str
    shape: Any
    expected_output: Any = None
    expected_error: ErrorKind | None = None

    @property
    def should_fail(self) -> bool:
        return self.expected_error is not None


class ThingType(enum.Enum):
    BOOLEAN = "boolean"
    NUMBER = "number"
    THING = "thing"


@dataclass(frozen=True)
class Property:
    ty: ThingType
    unit: str | None
    description: str | None
    href: str


@pytest.fixture
def led_shape() -> shapes.Struct:
    """Struct with a single boolean field `led`."""
    return shapes.Struct("Led", {"led": shapes.Bool()})


@pytest.fixture
def temperature_u8() -> shapes.Struct:
    """Struct with a single u8 field `temperature`."""
    return shapes.Struct("Temperature", {"temperature": shapes.U8})


@pytest.fixture
def thing_shape() -> shapes.Struct:
    """
    Shape of a Web Thing description with three properties.

    See https://iot.mozilla.org/wot/#thing-resource
    """
    thing_type = shapes.Enum("Type", ThingType)
    prop = shapes.Struct(
        "Property",
        {
            "type": thing_type,
            "unit": shapes.Optional(shapes.Str()),
            "description": shapes.Optional(shapes.Str()),
            "href": shapes.Str(),
        },
        factory=lambda **f: Property(
            ty=f["type"],
            unit=f["unit"],
            description=f["description"],
            href=f["href"],
        ),
    )
    properties = shapes.Struct(
        "Properties",
        {"temperature": prop, "humidity": prop, "led": prop},
    )
    return shapes.Struct(
        "Thing", {"type": thing_type, "properties": properties}
    )


@pytest.fixture
def structural_cases() -> list[JsonTestCase]:
    """
    Container termination cases: clean ends, trailing commas, stray bytes.
    """
    ints = shapes.List(shapes.I32)
    int_map = shapes.Map(shapes.I32)
    return [
        JsonTestCase("empty list", "[]", ints, []),
        JsonTestCase("three elements", "[0, 1, 2]", ints, [0, 1, 2]),
        JsonTestCase(
            "spaced elements", " [ 0 ,1 , 2 ] ", ints, [0, 1, 2]
        ),
        JsonTestCase(
            "trailing comma",
            "[0, 1,]",
            ints,
            expected_error=ErrorKind.TRAILING_COMMA,
        ),
        JsonTestCase(
            "trailing comma before whitespace",
            "[0, 1, \n ]",
            ints,
            expected_error=ErrorKind.TRAILING_COMMA,
        ),
        JsonTestCase(
            "missing comma",
            "[0 1]",
            ints,
            expected_error=ErrorKind.TRAILING_CHARACTERS,
        ),
        JsonTestCase(
            "leading zero",
            "[01]",
            ints,
            expected_error=ErrorKind.TRAILING_CHARACTERS,
        ),
        JsonTestCase(
            "unclosed list",
            "[",
            ints,
            expected_error=ErrorKind.EOF_WHILE_PARSING_LIST,
        ),
        JsonTestCase(
            "unclosed list after element",
            "[0, 1",
            ints,
            expected_error=ErrorKind.EOF_WHILE_PARSING_LIST,
        ),
        JsonTestCase(
            "mismatched terminator",
            "[0}",
            ints,
            expected_error=ErrorKind.TRAILING_CHARACTERS,
        ),
        JsonTestCase("empty map", "{}", int_map, {}),
        JsonTestCase(
            "two entries", '{"a": 1, "b": 2}', int_map, {"a": 1, "b": 2}
        ),
        JsonTestCase(
            "map trailing comma",
            '{"a": 1,}',
            int_map,
            expected_error=ErrorKind.TRAILING_COMMA,
        ),
        JsonTestCase(
            "missing colon",
            '{"a" 1}',
            int_map,
            expected_error=ErrorKind.EXPECTED_COLON,
        ),
        JsonTestCase(
            "comma instead of colon",
            '{"a", 1}',
            int_map,
            expected_error=ErrorKind.EXPECTED_COLON,
        ),
        JsonTestCase(
            "unquoted key",
            "{a: 1}",
            int_map,
            expected_error=ErrorKind.KEY_MUST_BE_A_STRING,
        ),
        JsonTestCase(
            "numeric key",
            "{1: 2}",
            int_map,
            expected_error=ErrorKind.KEY_MUST_BE_A_STRING,
        ),
        JsonTestCase(
            "missing map comma",
            '{"a": 1 "b": 2}',
            int_map,
            expected_error=ErrorKind.TRAILING_CHARACTERS,
        ),
        JsonTestCase(
            "unclosed map",
            '{"a": 1',
            int_map,
            expected_error=ErrorKind.EOF_WHILE_PARSING_OBJECT,
        ),
        JsonTestCase(
            "unclosed map after colon",
            '{"a"',
            int_map,
            expected_error=ErrorKind.EOF_WHILE_PARSING_OBJECT,
        ),
        JsonTestCase(
            "value after close",
            '{"a": 1} "misplaced"',
            int_map,
            expected_error=ErrorKind.TRAILING_CHARACTERS,
        ),
    ]
