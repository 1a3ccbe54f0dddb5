"""
Benchmark suite for jzcore deserialization performance.

Compares schema-driven in-place decoding against general JSON libraries:
- Python standard library json
- orjson (C-optimized)
- ujson (ultra-fast JSON)

Measures parsing speed and memory usage across different document types.
"""
