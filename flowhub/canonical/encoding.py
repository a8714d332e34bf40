# flowhub/canonical/encoding.py
"""
Deterministic JSON encoding used for canonical sort keys and fingerprints.

The output depends only on the value, never on dict insertion order:
  - object keys sorted by code point
  - compact separators, no whitespace, UTF-8 text (no \\u escapes for non-ASCII)
  - integral floats written as integers (1.0 -> 1), other floats in shortest
    round-trip form; NaN and infinities are rejected
  - tuples are written as arrays
"""
from __future__ import annotations

import json
import math
from typing import Any


def normalize(value: Any) -> Any:
    """Return a copy of `value` with scalars in their single canonical form."""
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"non-finite number cannot be encoded: {value!r}")
        return int(value) if value.is_integer() else value
    if isinstance(value, dict):
        out = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError(f"object keys must be strings, got {type(k).__name__}")
            out[k] = normalize(v)
        return out
    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]
    raise TypeError(f"value of type {type(value).__name__} cannot be encoded")


def encode(value: Any) -> str:
    return json.dumps(
        normalize(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def encode_bytes(value: Any) -> bytes:
    return encode(value).encode("utf-8")
