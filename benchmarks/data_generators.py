"""
Test data generators for jtree benchmarks.

Creates JSON structures of different shapes for performance testing:
- Different sizes (small/large objects, long mixed arrays)
- Different complexity levels (flat/nested/mixed)
- String-heavy content with escape sequences

Every generator draws from a seeded ``random.Random`` so repeated runs
benchmark identical documents.
"""

import random
import string
from collections.abc import Callable
from typing import Any

import orjson

SEED = 20240115
DATA_TYPES = (
    "small_object",
    "large_object",
    "mixed_array",
    "nested_structure",
    "string_heavy",
)

_ESCAPE_PROBABILITY = 0.3
_ESCAPES = ['"', "\\", "/", "\b", "\f", "\n", "\r", "\t"]


def generate_native_data(data_type: str) -> Any:
    """Builds the native Python value for ``data_type``."""
    generators: dict[str, Callable[[random.Random], Any]] = {
        "small_object": _small_object,
        "large_object": _large_object,
        "mixed_array": _mixed_array,
        "nested_structure": _nested_structure,
        "string_heavy": _string_heavy,
    }
    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type](random.Random(SEED))


def generate_test_data(data_type: str) -> str:
    """Serializes the data for ``data_type`` as JSON text."""
    return orjson.dumps(generate_native_data(data_type)).decode("utf-8")


def _word(rng: random.Random, length: int) -> str:
    return "".join(rng.choices(string.ascii_letters, k=length))


def _timestamp(rng: random.Random) -> str:
    return (
        f"2024-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}"
        f"T{rng.randint(0, 23):02d}:{rng.randint(0, 59):02d}:00Z"
    )


def _small_object(rng: random.Random) -> dict[str, Any]:
    """A small object (< 1KB) with basic key-value pairs."""
    return {
        "id": 12345,
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "active": True,
        "balance": 1234.56,
        "metadata": {"created": "2024-01-15T10:30:00Z", "source": "api"},
    }


def _large_object(rng: random.Random) -> dict[str, Any]:
    """A user profile (> 10KB) with transaction and activity history."""
    return {
        "user_id": rng.randint(1000000, 9999999),
        "profile": {
            "first_name": _word(rng, 10),
            "last_name": _word(rng, 12),
            "email": f"{_word(rng, 8)}@{_word(rng, 6)}.com",
            "address": {
                "street": f"{rng.randint(1, 9999)} {_word(rng, 8)} St",
                "city": _word(rng, 12),
                "zip": f"{rng.randint(10000, 99999)}",
                "country": "US",
            },
            "notifications": {
                "email": rng.choice([True, False]),
                "sms": rng.choice([True, False]),
            },
        },
        "transactions": [
            {
                "id": f"txn_{i:06d}",
                "amount": round(rng.uniform(1.0, 1000.0), 2),
                "currency": rng.choice(["USD", "EUR", "GBP", "JPY"]),
                "timestamp": _timestamp(rng),
                "status": rng.choice(["completed", "pending", "failed"]),
            }
            for i in range(50)
        ],
        "activity_log": [
            {
                "timestamp": _timestamp(rng),
                "action": rng.choice(["login", "logout", "purchase", "view"]),
                "ip_address": ".".join(
                    str(rng.randint(1, 255)) for _ in range(4)
                ),
            }
            for _ in range(30)
        ],
    }


def _mixed_array(rng: random.Random) -> list[Any]:
    """A long array mixing every value kind."""
    makers: list[Callable[[int], Any]] = [
        lambda i: rng.randint(-1000, 1000),
        lambda i: round(rng.uniform(-100.0, 100.0), 3),
        lambda i: _word(rng, rng.randint(5, 30)),
        lambda i: rng.choice([True, False]),
        lambda i: None,
        lambda i: {
            "index": i,
            "value": _word(rng, 10),
            "score": round(rng.uniform(0, 100), 2),
        },
    ]
    return [rng.choice(makers)(i) for i in range(200)]


def _nested_structure(rng: random.Random) -> dict[str, Any]:
    """A tree of objects 6 levels deep with fan-out 3."""

    def build(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _word(rng, 10)}
        return {
            "level": depth,
            "data": _word(rng, 15),
            "items": [build(depth - 1) for _ in range(3)],
        }

    return build(6)


def _string_heavy(rng: random.Random) -> dict[str, Any]:
    """Strings full of characters that must be escaped."""

    def escaped_text() -> str:
        alphabet = string.ascii_letters + string.digits + " "
        return "".join(
            rng.choice(_ESCAPES)
            if rng.random() < _ESCAPE_PROBABILITY
            else rng.choice(alphabet)
            for _ in range(50)
        )

    return {
        "strings": [escaped_text() for _ in range(100)],
        "unicode": [
            f"Unicode: {chr(rng.randint(0xA0, 0x2FFF))}" for _ in range(50)
        ],
        "paths": {
            f"key_{i}": f"C:\\Users\\{_word(rng, 8)}\\file_{i}.txt"
            for i in range(20)
        },
    }
