"""
Benchmark suite for jtree document performance.

Compares loading and saving a jtree Document against plain decoding and
encoding with:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Also measures typed access through refs and peak memory of loaded trees.
"""
