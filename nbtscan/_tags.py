"""NBT tag model — the twelve payload kinds as a closed set of classes.

    BYTE (1)          int8          BYTE_ARRAY (7)    bytes
    SHORT (2)         int16         STRING (8)        str (UTF-8 on the wire)
    INT (3)           int32         LIST (9)          homogeneous, typed
    LONG (4)          int64         COMPOUND (10)     ordered name -> tag
    FLOAT (5)         float32       INT_ARRAY (11)    tuple of int32
    DOUBLE (6)        float64       LONG_ARRAY (12)   tuple of int64

Every tag is an immutable dataclass.  A ListTag refuses elements whose
class doesn't match its declared element type, so a mixed list can't be
built even by hand.  Compound payloads are read-only mappings over a
private dict: insertion order is the on-disk order, and a duplicate name
keeps its first position while taking the last value.  Float tags compare
by bit pattern, so a NaN payload equals itself.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import Any, ClassVar, Dict, Iterator, Mapping, Optional, Tuple, Type

from ._constants import (
    INT8_MAX,
    INT8_MIN,
    INT16_MAX,
    INT16_MIN,
    INT32_MAX,
    INT32_MIN,
    INT64_MAX,
    INT64_MIN,
    TAG_BYTE,
    TAG_BYTE_ARRAY,
    TAG_COMPOUND,
    TAG_DOUBLE,
    TAG_END,
    TAG_FLOAT,
    TAG_INT,
    TAG_INT_ARRAY,
    TAG_LIST,
    TAG_LONG,
    TAG_LONG_ARRAY,
    TAG_SHORT,
    TAG_STRING,
)


class TagType(IntEnum):
    END = TAG_END
    BYTE = TAG_BYTE
    SHORT = TAG_SHORT
    INT = TAG_INT
    LONG = TAG_LONG
    FLOAT = TAG_FLOAT
    DOUBLE = TAG_DOUBLE
    BYTE_ARRAY = TAG_BYTE_ARRAY
    STRING = TAG_STRING
    LIST = TAG_LIST
    COMPOUND = TAG_COMPOUND
    INT_ARRAY = TAG_INT_ARRAY
    LONG_ARRAY = TAG_LONG_ARRAY


def _check_int(value: Any, lo: int, hi: int, kind: str) -> None:
    # bool is an int subclass; True is not a valid TAG_Byte.
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError("{} value must be int, got {}".format(
            kind, type(value).__name__))
    if value < lo or value > hi:
        raise ValueError("{} value {} outside [{}, {}]".format(kind, value, lo, hi))


class Tag:
    """Base class for all payload kinds."""

    type_id: ClassVar[TagType]
    value: Any

    def to_obj(self) -> Any:
        """Convert to plain Python values (dict, list, int, float, str, bytes)."""
        return self.value


# ── Scalars ──────────────────────────────────────────────────

@dataclass(frozen=True)
class ByteTag(Tag):
    value: int
    type_id: ClassVar[TagType] = TagType.BYTE

    def __post_init__(self) -> None:
        _check_int(self.value, INT8_MIN, INT8_MAX, "TAG_Byte")


@dataclass(frozen=True)
class ShortTag(Tag):
    value: int
    type_id: ClassVar[TagType] = TagType.SHORT

    def __post_init__(self) -> None:
        _check_int(self.value, INT16_MIN, INT16_MAX, "TAG_Short")


@dataclass(frozen=True)
class IntTag(Tag):
    value: int
    type_id: ClassVar[TagType] = TagType.INT

    def __post_init__(self) -> None:
        _check_int(self.value, INT32_MIN, INT32_MAX, "TAG_Int")


@dataclass(frozen=True)
class LongTag(Tag):
    value: int
    type_id: ClassVar[TagType] = TagType.LONG

    def __post_init__(self) -> None:
        _check_int(self.value, INT64_MIN, INT64_MAX, "TAG_Long")


_FLOAT_BITS = struct.Struct(">d")


class _FloatPayload(Tag):
    """Equality and hashing on the IEEE-754 bits, not on float ==."""

    value: float

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return _FLOAT_BITS.pack(self.value) == _FLOAT_BITS.pack(other.value)

    def __hash__(self) -> int:
        return hash((type(self), _FLOAT_BITS.pack(self.value)))


@dataclass(frozen=True, eq=False)
class FloatTag(_FloatPayload):
    value: float
    type_id: ClassVar[TagType] = TagType.FLOAT


@dataclass(frozen=True, eq=False)
class DoubleTag(_FloatPayload):
    value: float
    type_id: ClassVar[TagType] = TagType.DOUBLE


@dataclass(frozen=True)
class StringTag(Tag):
    value: str
    type_id: ClassVar[TagType] = TagType.STRING


# ── Arrays ───────────────────────────────────────────────────

@dataclass(frozen=True)
class ByteArrayTag(Tag):
    value: bytes
    type_id: ClassVar[TagType] = TagType.BYTE_ARRAY

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", bytes(self.value))


@dataclass(frozen=True)
class IntArrayTag(Tag):
    value: Tuple[int, ...]
    type_id: ClassVar[TagType] = TagType.INT_ARRAY

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", tuple(self.value))

    def __len__(self) -> int:
        return len(self.value)

    def __getitem__(self, index: int) -> int:
        return self.value[index]

    def to_obj(self) -> Any:
        return list(self.value)


@dataclass(frozen=True)
class LongArrayTag(Tag):
    value: Tuple[int, ...]
    type_id: ClassVar[TagType] = TagType.LONG_ARRAY

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", tuple(self.value))

    def __len__(self) -> int:
        return len(self.value)

    def __getitem__(self, index: int) -> int:
        return self.value[index]

    def to_obj(self) -> Any:
        return list(self.value)


# ── Containers ───────────────────────────────────────────────

@dataclass(frozen=True)
class ListTag(Tag):
    """Homogeneous list.  Empty lists usually carry element type END."""

    element_type: TagType
    items: Tuple[Tag, ...] = ()
    type_id: ClassVar[TagType] = TagType.LIST

    def __post_init__(self) -> None:
        etype = TagType(self.element_type)
        items = tuple(self.items)
        object.__setattr__(self, "element_type", etype)
        object.__setattr__(self, "items", items)
        if etype == TagType.END:
            if items:
                raise ValueError("list of TAG_End must be empty")
            return
        cls = TAG_CLASSES[etype]
        for item in items:
            if type(item) is not cls:
                raise TypeError("list of {} cannot hold {}".format(
                    etype.name, type(item).__name__))

    @property
    def value(self) -> Tuple[Tag, ...]:
        return self.items

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Tag]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Tag:
        return self.items[index]

    def to_obj(self) -> Any:
        return [item.to_obj() for item in self.items]


@dataclass(frozen=True)
class CompoundTag(Tag):
    value: Mapping[str, Tag] = field(default_factory=dict)
    type_id: ClassVar[TagType] = TagType.COMPOUND

    # The payload is a mapping, so compounds are unhashable like dicts.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", MappingProxyType(dict(self.value)))

    def __len__(self) -> int:
        return len(self.value)

    def __iter__(self) -> Iterator[str]:
        return iter(self.value)

    def __contains__(self, name: object) -> bool:
        return name in self.value

    def __getitem__(self, name: str) -> Tag:
        return self.value[name]

    def get(self, name: str, default: Optional[Tag] = None) -> Optional[Tag]:
        return self.value.get(name, default)

    def items(self):
        return self.value.items()

    def to_obj(self) -> Any:
        return {k: v.to_obj() for k, v in self.value.items()}


@dataclass(frozen=True)
class NamedTag:
    """A tag with its name, as found at the document root."""

    name: str
    tag: Tag

    @property
    def value(self) -> Tag:
        return self.tag

    def to_obj(self) -> Any:
        return {self.name: self.tag.to_obj()}


TAG_CLASSES: Dict[TagType, Type[Tag]] = {
    TagType.BYTE: ByteTag,
    TagType.SHORT: ShortTag,
    TagType.INT: IntTag,
    TagType.LONG: LongTag,
    TagType.FLOAT: FloatTag,
    TagType.DOUBLE: DoubleTag,
    TagType.BYTE_ARRAY: ByteArrayTag,
    TagType.STRING: StringTag,
    TagType.LIST: ListTag,
    TagType.COMPOUND: CompoundTag,
    TagType.INT_ARRAY: IntArrayTag,
    TagType.LONG_ARRAY: LongArrayTag,
}
