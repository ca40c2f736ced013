"""
Memory usage benchmarks for loaded JSON trees.

Measures peak memory of loading each data shape into a jtree Document
against decoding it into native objects with other libraries.
"""

import json
import tracemalloc
from typing import Any

import orjson
import pytest
import ujson  # type: ignore[import-untyped]

from benchmarks.data_generators import DATA_TYPES
from benchmarks.data_generators import generate_test_data
from jtree import Document


def measure_memory_usage(func: Any, *args: Any) -> tuple[Any, int]:
    """
    Measures peak memory usage during function execution.

    Returns:
        Tuple of (function_result, peak_memory_bytes)
    """
    tracemalloc.start()
    try:
        result = func(*args)
        _, peak = tracemalloc.get_traced_memory()
        return result, peak
    finally:
        tracemalloc.stop()


def _jtree_load(text: str) -> Document:
    doc = Document()
    assert doc.load_from_buffer(text)
    return doc


LOADERS = {
    "stdlib_json": json.loads,
    "orjson": lambda text: orjson.loads(text.encode("utf-8")),
    "ujson": ujson.loads,
    "jtree": _jtree_load,
}


class TestMemoryUsage:
    """Memory usage benchmarks for loading JSON."""

    @pytest.mark.parametrize("data_type", DATA_TYPES)
    @pytest.mark.parametrize("library", sorted(LOADERS))
    def test_peak_memory(self, library: str, data_type: str) -> None:
        """Measures peak memory of one library on one data shape."""
        test_data = generate_test_data(data_type)
        result, peak_memory = measure_memory_usage(LOADERS[library], test_data)

        # Reported with pytest -s
        print(f"\n{library} {data_type}: {peak_memory:,} bytes")
        assert result is not None

    def test_memory_comparison_summary(self) -> None:
        """Prints peak memory of every library relative to stdlib json."""
        results: dict[str, dict[str, int]] = {}
        for data_type in DATA_TYPES:
            test_data = generate_test_data(data_type)
            results[data_type] = {
                library: measure_memory_usage(loader, test_data)[1]
                for library, loader in LOADERS.items()
            }

        print("\nMEMORY EFFICIENCY vs stdlib_json")
        print("-" * 60)
        for data_type, measurements in results.items():
            baseline = measurements["stdlib_json"]
            ratios = " ".join(
                f"{library}={peak / baseline:.2f}x"
                for library, peak in measurements.items()
                if library != "stdlib_json"
            )
            print(f"{data_type:<20} {ratios}")

        assert len(results) == len(DATA_TYPES)
