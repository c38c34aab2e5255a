"""nbtscan — NBT decoder and schematic summarizer.

Decode Named Binary Tag documents (optionally gzip-compressed) into an
immutable tag tree, and summarize structure/schematic files: which mod
namespaces the palette uses and how many of each block are placed.

Quick start:
    >>> from nbtscan import parse_schematic
    >>> with open("bridge.nbt", "rb") as f:
    ...     result = parse_schematic(f.read())
    >>> result.summary.dimensions
    (12, 7, 30)
    >>> result.summary.mods
    ('Create',)

Large files can be decoded without stalling an asyncio event loop:
    >>> tree = await decode_async(data)
"""

from __future__ import annotations

from ._compression import decompress, is_compressed
from ._decoder import DecodeOptions, TagDecoder, decode, decode_async
from ._errors import (
    ERR_CORRUPT,
    ERR_EMPTY_INPUT,
    ERR_INVALID_LENGTH,
    ERR_INVALID_STRUCTURE,
    ERR_INVALID_UTF8,
    ERR_MAX_DEPTH,
    ERR_UNEXPECTED_END,
    ERR_UNKNOWN_TAG_TYPE,
    ERR_UNSUPPORTED_ENVIRONMENT,
    LargeInputWarning,
    NbtError,
    describe_error,
)
from ._names import NamespaceResolver, version_label
from ._progress import ProgressReporter
from ._schematic import (
    BlockCount,
    Schematic,
    SchematicSummary,
    extract_summary,
    parse_schematic,
    parse_schematic_async,
)
from ._tags import (
    ByteArrayTag,
    ByteTag,
    CompoundTag,
    DoubleTag,
    FloatTag,
    IntArrayTag,
    IntTag,
    ListTag,
    LongArrayTag,
    LongTag,
    NamedTag,
    ShortTag,
    StringTag,
    Tag,
    TagType,
)

__version__ = "0.3.0"

__all__ = [
    # Decoding
    "decode",
    "decode_async",
    "DecodeOptions",
    "TagDecoder",
    "is_compressed",
    "decompress",
    "ProgressReporter",
    # Schematics
    "parse_schematic",
    "parse_schematic_async",
    "extract_summary",
    "Schematic",
    "SchematicSummary",
    "BlockCount",
    "NamespaceResolver",
    "version_label",
    # Tags
    "Tag",
    "TagType",
    "NamedTag",
    "ByteTag",
    "ShortTag",
    "IntTag",
    "LongTag",
    "FloatTag",
    "DoubleTag",
    "ByteArrayTag",
    "StringTag",
    "ListTag",
    "CompoundTag",
    "IntArrayTag",
    "LongArrayTag",
    # Errors
    "NbtError",
    "LargeInputWarning",
    "describe_error",
    "ERR_UNSUPPORTED_ENVIRONMENT",
    "ERR_EMPTY_INPUT",
    "ERR_CORRUPT",
    "ERR_UNEXPECTED_END",
    "ERR_MAX_DEPTH",
    "ERR_INVALID_LENGTH",
    "ERR_UNKNOWN_TAG_TYPE",
    "ERR_INVALID_UTF8",
    "ERR_INVALID_STRUCTURE",
]
