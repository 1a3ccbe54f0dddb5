"""
Test data generators for deserialization benchmarks.

Each document comes with the shape that decodes it, so jzcore can be
measured against schemaless parsers on identical input:
- Different sizes (single reading / reading batch)
- Different nesting depths
- String-heavy content with escape sequences
- Large objects of which only a few fields are wanted
"""

import json
import random
import string
from typing import Any

from jzcore import shapes

# Constants for random data generation
_ESCAPE_PROBABILITY = 0.3
_NESTING_DEPTH = 6
_BATCH_SIZE = 200

_READING = shapes.Struct(
    "Reading",
    {
        "sensor": shapes.Str(),
        "temperature": shapes.F32,
        "humidity": shapes.U8,
        "battery": shapes.Optional(shapes.U16),
        "active": shapes.Bool(),
        "position": shapes.Tuple((shapes.F64, shapes.F64), name="Position"),
    },
)

_UNIT = shapes.Enum("Unit", ["celsius", "percent", "lux"])


def generate_test_data(data_type: str) -> tuple[str, Any]:
    """Generates a JSON document and its shape for the given data type."""
    generators = {
        "sensor_reading": _generate_sensor_reading,
        "reading_batch": _generate_reading_batch,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
        "sparse_fields": _generate_sparse_fields,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type]()


def _reading() -> dict[str, Any]:
    return {
        "sensor": f"sensor-{_random_string(6)}",
        "temperature": round(random.uniform(-30.0, 45.0), 2),
        "humidity": random.randint(0, 100),
        "battery": random.choice([None, random.randint(0, 4095)]),
        "active": random.choice([True, False]),
        "position": [
            round(random.uniform(-90.0, 90.0), 6),
            round(random.uniform(-180.0, 180.0), 6),
        ],
    }


def _generate_sensor_reading() -> tuple[str, Any]:
    """Generates a single small reading object (< 1KB)."""
    return json.dumps(_reading()), _READING


def _generate_reading_batch() -> tuple[str, Any]:
    """Generates a large array of reading objects."""
    data = {
        "gateway": _random_string(12),
        "unit": random.choice(["celsius", "percent", "lux"]),
        "readings": [_reading() for _ in range(_BATCH_SIZE)],
    }
    shape = shapes.Struct(
        "Batch",
        {
            "gateway": shapes.Str(),
            "unit": _UNIT,
            "readings": shapes.List(_READING),
        },
    )
    return json.dumps(data), shape


def _generate_nested_structure() -> tuple[str, Any]:
    """Generates a deeply nested structure and its matching shape."""

    def create_nested_dict(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(10)}

        return {
            "level": depth,
            "data": _random_string(15),
            "items": [create_nested_dict(depth - 1) for _ in range(3)],
        }

    def create_nested_shape(depth: int) -> Any:
        if depth <= 0:
            return shapes.Struct("Leaf", {"value": shapes.Str()})

        return shapes.Struct(
            f"Level{depth}",
            {
                "level": shapes.U8,
                "data": shapes.Str(),
                "items": shapes.List(create_nested_shape(depth - 1)),
            },
        )

    data = create_nested_dict(_NESTING_DEPTH)
    return json.dumps(data), create_nested_shape(_NESTING_DEPTH)


def _generate_string_heavy() -> tuple[str, Any]:
    """Generates strings full of the escape sequences jzcore resolves."""

    def create_escaped_string() -> str:
        """Creates a JSON string body with escape sequences."""
        chars = []
        for _ in range(50):
            if random.random() < _ESCAPE_PROBABILITY:
                chars.append(
                    random.choice(
                        [
                            '\\"',
                            "\\\\",
                            "\\/",
                            f"\\u{random.randint(0x00A0, 0x07FF):04x}",
                        ]
                    )
                )
            else:
                chars.append(
                    random.choice(string.ascii_letters + string.digits + " ")
                )
        return "".join(chars)

    strings = ", ".join(f'"{create_escaped_string()}"' for _ in range(100))
    labels = ", ".join(
        f'"{_random_string(6)}": "{create_escaped_string()}"'
        for _ in range(20)
    )
    document = f'{{"strings": [{strings}], "labels": {{{labels}}}}}'
    shape = shapes.Struct(
        "Strings",
        {
            "strings": shapes.List(shapes.Str()),
            "labels": shapes.Map(shapes.Str()),
        },
    )
    return document, shape


def _generate_sparse_fields() -> tuple[str, Any]:
    """Generates a large object of which only two fields are decoded."""
    data = {
        "id": random.randint(1000000, 9999999),
        "history": [_reading() for _ in range(50)],
        "metadata": {
            _random_string(8): [_random_string(20) for _ in range(5)]
            for _ in range(30)
        },
        "name": _random_string(16),
    }
    shape = shapes.Struct("Summary", {"id": shapes.U32, "name": shapes.Str()})
    return json.dumps(data), shape


def _random_string(length: int) -> str:
    """Generates a random string of specified length."""
    return "".join(random.choices(string.ascii_letters, k=length))
