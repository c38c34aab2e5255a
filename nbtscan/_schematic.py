"""Schematic summary extraction.

A structure/schematic document is a root compound shaped like:

    palette:     List[Compound{Name: String, Properties?: Compound}]
    blocks:      List[Compound{state: Int, pos: List[Int]}]
    size:        Int array (or List of Int): width, height, length
    DataVersion: Int

The summary answers "what does this build need?": which extension
namespaces its palette references and how many of each block it places.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from ._constants import BASE_NAMESPACE, NAMESPACE_SEPARATOR, SCHEMATIC_DECODE_SHARE
from ._decoder import BytesLike, DecodeOptions, TagDecoder, _admit, _drive, _drive_async
from ._compression import Inflate
from ._errors import ERR_INVALID_STRUCTURE, NbtError
from ._names import NamespaceResolver, version_label
from ._progress import ProgressReporter, ProgressSink
from ._tags import (
    ByteTag,
    CompoundTag,
    IntArrayTag,
    IntTag,
    ListTag,
    LongTag,
    NamedTag,
    ShortTag,
    StringTag,
    TagType,
)

log = logging.getLogger(__name__)

NamespaceLookup = Callable[[str], str]
VersionLookup = Callable[[Optional[int]], str]

# A root key written by the Steam 'n' Rails addon.  Its presence means the
# schematic was saved with the addon loaded, not that it's required.
RAILWAYS_KEY = "Railways_DataVersion"
RAILWAYS_NAME = "Create: Steam 'n' Rails"
RAILWAYS_NOTE = (
    "Create: Steam 'n' Rails (may not be needed, it means that the "
    "schematic was created with it)"
)

_INTEGER_TAGS = (ByteTag, ShortTag, IntTag, LongTag)


@dataclass(frozen=True)
class BlockCount:
    name: str
    count: int


@dataclass(frozen=True)
class SchematicSummary:
    version: str
    total_blocks: int
    width: int
    height: int
    length: int
    mods: Tuple[str, ...]
    blocks: Tuple[BlockCount, ...]

    @property
    def dimensions(self) -> Tuple[int, int, int]:
        return (self.width, self.height, self.length)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "totalBlocks": self.total_blocks,
            "width": self.width,
            "height": self.height,
            "length": self.length,
            "mods": list(self.mods),
            "blocks": [{"name": b.name, "count": b.count} for b in self.blocks],
        }


@dataclass(frozen=True)
class Schematic:
    """A decoded document together with its summary."""

    tree: NamedTag
    summary: SchematicSummary


# ── Shape checks ─────────────────────────────────────────────

def _invalid(msg: str) -> NbtError:
    return NbtError(ERR_INVALID_STRUCTURE, msg)


def _compound_list(root: CompoundTag, key: str) -> Sequence[CompoundTag]:
    tag = root.get(key)
    if tag is None:
        raise _invalid("schematic has no '{}'".format(key))
    if not isinstance(tag, ListTag):
        raise _invalid("'{}' must be a list, got {}".format(key, type(tag).__name__))
    if tag.element_type not in (TagType.COMPOUND, TagType.END):
        raise _invalid("'{}' must be a list of compounds, got list of {}".format(
            key, tag.element_type.name))
    return tag.items


def _size(root: CompoundTag) -> Tuple[int, int, int]:
    tag = root.get("size")
    if tag is None:
        raise _invalid("schematic has no 'size'")
    if isinstance(tag, IntArrayTag):
        dims = list(tag.value)
    elif isinstance(tag, ListTag) and tag.element_type == TagType.INT:
        dims = [t.value for t in tag.items]
    else:
        raise _invalid("'size' must be an int array, got {}".format(type(tag).__name__))
    if len(dims) < 3:
        raise _invalid("'size' needs 3 entries, got {}".format(len(dims)))
    return dims[0], dims[1], dims[2]


# ── Extraction ───────────────────────────────────────────────

def extract_summary(root: Union[NamedTag, CompoundTag, None],
                    namespace_resolver: Optional[NamespaceLookup] = None,
                    version_resolver: Optional[VersionLookup] = None
                    ) -> SchematicSummary:
    """Build a SchematicSummary from a decoded document root.

    Raises NbtError(ERR_INVALID_STRUCTURE) if the root is missing, isn't a
    compound, or lacks a well-formed palette, blocks or size.
    """
    if root is None:
        raise _invalid("no root tag")
    compound = root.tag if isinstance(root, NamedTag) else root
    if not isinstance(compound, CompoundTag):
        raise _invalid("root must be a compound, got {}".format(type(compound).__name__))

    palette = _compound_list(compound, "palette")
    blocks = _compound_list(compound, "blocks")
    width, height, length = _size(compound)

    resolve = namespace_resolver or NamespaceResolver()
    to_label = version_resolver or version_label

    # 1. Palette: block names by index, zeroed counters, namespaces.
    # Entries with a missing or empty Name keep their index but are never counted.
    names: List[Optional[str]] = []
    counts: Dict[str, int] = {}
    mods: List[str] = []
    for entry in palette:
        name_tag = entry.get("Name")
        if not isinstance(name_tag, StringTag) or not name_tag.value:
            names.append(None)
            continue
        block = name_tag.value
        names.append(block)
        counts[block] = 0

        namespace = block.split(NAMESPACE_SEPARATOR, 1)[0]
        if namespace == BASE_NAMESPACE:
            continue
        display = resolve(namespace)
        if display not in mods:
            mods.append(display)

    if RAILWAYS_KEY in compound and RAILWAYS_NAME not in mods:
        mods.append(RAILWAYS_NOTE)

    # 2. Blocks: tally palette references that land on a named entry.
    skipped = 0
    for block in blocks:
        state = block.get("state")
        if not isinstance(state, _INTEGER_TAGS):
            skipped += 1
            continue
        idx = state.value
        if 0 <= idx < len(names) and names[idx] is not None:
            counts[names[idx]] += 1
        else:
            skipped += 1
    if skipped:
        log.debug("%d block entries had no usable palette state", skipped)

    # 3. Summary.
    dv = compound.get("DataVersion")
    data_version = dv.value if isinstance(dv, _INTEGER_TAGS) else None

    return SchematicSummary(
        version=to_label(data_version),
        total_blocks=len(blocks),
        width=width,
        height=height,
        length=length,
        mods=tuple(mods),
        blocks=tuple(BlockCount(n, c) for n, c in counts.items() if c > 0),
    )


# ── Pipeline ─────────────────────────────────────────────────

def _finish(tree: NamedTag, reporter: ProgressReporter,
            namespace_resolver: Optional[NamespaceLookup],
            version_resolver: Optional[VersionLookup]) -> Schematic:
    reporter.report("Processing schematic data...", 75)
    reporter.report("Extracting block information...", 85)
    summary = extract_summary(tree, namespace_resolver, version_resolver)
    reporter.report("Finalizing schematic data...", 95)
    log.debug("schematic: %d blocks, %d kinds, mods=%s",
              summary.total_blocks, len(summary.blocks), list(summary.mods))
    reporter.report("Schematic parsing complete", 100)
    return Schematic(tree, summary)


def parse_schematic(data: BytesLike,
                    progress: Optional[ProgressSink] = None,
                    options: Optional[DecodeOptions] = None,
                    namespace_resolver: Optional[NamespaceLookup] = None,
                    version_resolver: Optional[VersionLookup] = None,
                    inflate: Optional[Inflate] = None) -> Schematic:
    """Decode a schematic file and summarize it.

    Decoding takes the first 70% of the progress range; extraction reports
    the rest.
    """
    reporter = ProgressReporter(progress)
    decoder = TagDecoder(options, inflate)
    tree = _drive(decoder._steps(
        _admit(data), reporter.scaled(SCHEMATIC_DECODE_SHARE)))
    return _finish(tree, reporter, namespace_resolver, version_resolver)


async def parse_schematic_async(data: BytesLike,
                                progress: Optional[ProgressSink] = None,
                                options: Optional[DecodeOptions] = None,
                                namespace_resolver: Optional[NamespaceLookup] = None,
                                version_resolver: Optional[VersionLookup] = None,
                                inflate: Optional[Inflate] = None) -> Schematic:
    """Async variant of parse_schematic()."""
    reporter = ProgressReporter(progress)
    decoder = TagDecoder(options, inflate)
    tree = await _drive_async(decoder._steps(
        _admit(data), reporter.scaled(SCHEMATIC_DECODE_SHARE)))
    return _finish(tree, reporter, namespace_resolver, version_resolver)
