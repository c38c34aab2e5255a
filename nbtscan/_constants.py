"""NBT constants — tag type ids, gzip magic, safety limits, yield schedule.

The tag ids and their wire layout are fixed by the format; the limits and
intervals below are defaults that DecodeOptions can override per call.
"""

from __future__ import annotations

from typing import Dict

# Two-byte gzip member header.  Anything else is treated as raw NBT.
GZIP_MAGIC = b"\x1f\x8b"

# ── Tag type ids (single byte each) ──────────────────────────
# TAG_END is never a payload: it only terminates a compound, or marks the
# element type of an empty list.
TAG_END: int = 0
TAG_BYTE: int = 1
TAG_SHORT: int = 2
TAG_INT: int = 3
TAG_LONG: int = 4
TAG_FLOAT: int = 5
TAG_DOUBLE: int = 6
TAG_BYTE_ARRAY: int = 7
TAG_STRING: int = 8
TAG_LIST: int = 9
TAG_COMPOUND: int = 10
TAG_INT_ARRAY: int = 11
TAG_LONG_ARRAY: int = 12

# Smallest possible encoded payload per type.  A list of N elements needs at
# least N * MIN_PAYLOAD_SIZE[type] bytes, which lets us reject absurd list
# lengths before allocating anything.
MIN_PAYLOAD_SIZE: Dict[int, int] = {
    TAG_END: 0,
    TAG_BYTE: 1,
    TAG_SHORT: 2,
    TAG_INT: 4,
    TAG_LONG: 8,
    TAG_FLOAT: 4,
    TAG_DOUBLE: 8,
    TAG_BYTE_ARRAY: 4,    # int32 length, zero elements
    TAG_STRING: 2,        # uint16 length, empty string
    TAG_LIST: 5,          # element type byte + int32 length
    TAG_COMPOUND: 1,      # lone TAG_END
    TAG_INT_ARRAY: 4,
    TAG_LONG_ARRAY: 4,
}

# ── Signed integer ranges ────────────────────────────────────
INT8_MIN, INT8_MAX = -(2**7), 2**7 - 1
INT16_MIN, INT16_MAX = -(2**15), 2**15 - 1
INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

# ── Safety limits ────────────────────────────────────────────
DEFAULT_MAX_DEPTH: int = 100
# Each nesting level costs one generator frame; keep well clear of the
# interpreter's default recursion limit (1000).
MAX_DEPTH_CEILING: int = 512

MAX_BYTE_ARRAY_LENGTH: int = 50 * 1024 * 1024      # hard limit
LARGE_INPUT_BYTES: int = 100 * 1024 * 1024          # warn, don't reject

# Warn-only thresholds.  Exceeding these is logged, never fatal, unless the
# caller opts into a hard cap through DecodeOptions.
LARGE_LIST_LENGTH: int = 1_000_000
LARGE_COMPOUND_ENTRIES: int = 10_000
LARGE_INT_ARRAY_LENGTH: int = 10 * 1024 * 1024
LARGE_LONG_ARRAY_LENGTH: int = 1024 * 1024
LONG_STRING_BYTES: int = 1024

# ── Cooperative yield schedule ───────────────────────────────
YIELD_EVERY_OPS: int = 1000
COMPOUND_YIELD_EVERY: int = 50
LIST_YIELD_EVERY: int = 500
INT_ARRAY_YIELD_EVERY: int = 10_000
LONG_ARRAY_YIELD_EVERY: int = 5_000
BYTE_ARRAY_YIELD_THRESHOLD: int = 1024 * 1024

# ── Progress phases (percent) ────────────────────────────────
PROGRESS_INIT: float = 0
PROGRESS_ANALYZE: float = 5
PROGRESS_DECOMPRESS_START: float = 10
PROGRESS_RAW_VERIFIED: float = 15
PROGRESS_DECOMPRESS_DONE: float = 25
PROGRESS_STRUCTURE_START: float = 30
PROGRESS_STRUCTURE_SPAN: float = 40
PROGRESS_DONE: float = 100

# Schematic pipeline: the decoder's 0-100 is squeezed into 0-70.
SCHEMATIC_DECODE_SHARE: float = 0.7

# Palette namespace that never counts as an extension.
BASE_NAMESPACE: str = "minecraft"
NAMESPACE_SEPARATOR: str = ":"
