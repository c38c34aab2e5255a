"""NBT decode engine — recursive descent over the tag grammar.

Grammar (big-endian throughout):

    document  := named_tag                 (root must be TAG_Compound)
    named_tag := type:u8  name:string  payload(type)
    compound  := named_tag* TAG_End
    list      := elem_type:u8  length:i32  payload(elem_type){length}
    array     := length:i32  element{length}
    string    := length:u16  utf8-bytes

Cooperative scheduling: the engine is a generator.  It yields (always
None) at its suspension points and delivers the decoded tree as the
generator's return value.  decode() drives it to completion on the calling
thread; decode_async() awaits asyncio.sleep(0) at every yield so a shared
event loop keeps servicing other tasks during a large decode.  Yield points
never change what gets decoded.

Suspension points:
  - every `yield_every_ops` named-tag reads (default 1000)
  - every `compound_yield_every` entries of one compound (50)
  - every `list_yield_every` elements of one list (500)
  - every `int_array_yield_every` / `long_array_yield_every` elements of
    an int / long array (10,000 / 5,000)
  - before copying a byte array larger than `byte_array_yield_threshold`

Each nesting level costs exactly one generator frame (scalars are read
inline), so the depth limit bounds Python stack use directly.
"""

from __future__ import annotations

import asyncio
import logging
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generator, List, Optional, Tuple, Union

from ._compression import Inflate, decompress, is_compressed
from ._constants import (
    BYTE_ARRAY_YIELD_THRESHOLD,
    COMPOUND_YIELD_EVERY,
    DEFAULT_MAX_DEPTH,
    INT_ARRAY_YIELD_EVERY,
    LARGE_COMPOUND_ENTRIES,
    LARGE_INPUT_BYTES,
    LARGE_INT_ARRAY_LENGTH,
    LARGE_LIST_LENGTH,
    LARGE_LONG_ARRAY_LENGTH,
    LIST_YIELD_EVERY,
    LONG_ARRAY_YIELD_EVERY,
    MAX_BYTE_ARRAY_LENGTH,
    MAX_DEPTH_CEILING,
    MIN_PAYLOAD_SIZE,
    PROGRESS_ANALYZE,
    PROGRESS_DECOMPRESS_DONE,
    PROGRESS_DECOMPRESS_START,
    PROGRESS_DONE,
    PROGRESS_INIT,
    PROGRESS_RAW_VERIFIED,
    PROGRESS_STRUCTURE_SPAN,
    PROGRESS_STRUCTURE_START,
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
    YIELD_EVERY_OPS,
)
from ._cursor import Cursor
from ._errors import (
    ERR_EMPTY_INPUT,
    ERR_INVALID_LENGTH,
    ERR_INVALID_STRUCTURE,
    ERR_MAX_DEPTH,
    ERR_UNEXPECTED_END,
    ERR_UNKNOWN_TAG_TYPE,
    LargeInputWarning,
    NbtError,
)
from ._progress import ProgressReporter, ProgressSink
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

log = logging.getLogger(__name__)

# What the engine generators look like: yield None, return the value.
Step = Generator[None, None, Any]

BytesLike = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class DecodeOptions:
    """Per-decoder configuration.  All fields have safe defaults."""

    max_depth: int = DEFAULT_MAX_DEPTH
    yield_every_ops: int = YIELD_EVERY_OPS
    compound_yield_every: int = COMPOUND_YIELD_EVERY
    list_yield_every: int = LIST_YIELD_EVERY
    int_array_yield_every: int = INT_ARRAY_YIELD_EVERY
    long_array_yield_every: int = LONG_ARRAY_YIELD_EVERY
    byte_array_yield_threshold: int = BYTE_ARRAY_YIELD_THRESHOLD
    max_byte_array_length: int = MAX_BYTE_ARRAY_LENGTH
    # None means warn-only: large lists/arrays are logged, not rejected.
    max_list_length: Optional[int] = None
    max_array_length: Optional[int] = None

    def __post_init__(self) -> None:
        if not 1 <= self.max_depth <= MAX_DEPTH_CEILING:
            raise ValueError("max_depth must be in [1, {}], got {}".format(
                MAX_DEPTH_CEILING, self.max_depth))
        for name in ("yield_every_ops", "compound_yield_every",
                     "list_yield_every", "int_array_yield_every",
                     "long_array_yield_every"):
            if getattr(self, name) < 1:
                raise ValueError("{} must be >= 1".format(name))
        if self.max_byte_array_length < 0:
            raise ValueError("max_byte_array_length must be >= 0")
        for name in ("max_list_length", "max_array_length"):
            cap = getattr(self, name)
            if cap is not None and cap < 0:
                raise ValueError("{} must be >= 0 or None".format(name))


class _DecodeContext:
    """Mutable state for exactly one decode call.  Never shared or reused."""

    def __init__(self, data: bytes, options: DecodeOptions,
                 progress: ProgressReporter) -> None:
        self.cursor = Cursor(data)
        self.options = options
        self.progress = progress
        self.total = len(data)
        self.depth = 0
        self.ops = 0
        self.checkpoints = 0

        cur = self.cursor
        self._scalars: Dict[int, Tuple[Callable[[Any], Tag], Callable[[], Any]]] = {
            TAG_BYTE: (ByteTag, cur.read_byte),
            TAG_SHORT: (ShortTag, cur.read_short),
            TAG_INT: (IntTag, cur.read_int),
            TAG_LONG: (LongTag, cur.read_long),
            TAG_FLOAT: (FloatTag, cur.read_float),
            TAG_DOUBLE: (DoubleTag, cur.read_double),
            TAG_STRING: (StringTag, cur.read_string),
        }
        self._containers: Dict[int, Callable[[], Step]] = {
            TAG_BYTE_ARRAY: self._byte_array,
            TAG_LIST: self._list,
            TAG_COMPOUND: self._compound,
            TAG_INT_ARRAY: self._int_array,
            TAG_LONG_ARRAY: self._long_array,
        }

    # ── Bookkeeping ──────────────────────────────────────────

    def _pause(self, status: Optional[str] = None) -> None:
        """Account for one suspension; the caller does the actual yield."""
        self.checkpoints += 1
        if status is not None and self.progress.enabled:
            frac = self.cursor.offset / self.total if self.total else 1.0
            self.progress.report(
                status,
                PROGRESS_STRUCTURE_START
                + min(PROGRESS_STRUCTURE_SPAN, frac * PROGRESS_STRUCTURE_SPAN),
            )

    def _enter(self, at: int) -> None:
        self.depth += 1
        if self.depth > self.options.max_depth:
            raise NbtError(
                ERR_MAX_DEPTH,
                "maximum nesting depth exceeded ({})".format(self.options.max_depth),
                offset=at,
            )

    def _read_length(self, what: str) -> Tuple[int, int]:
        """Read an int32 length prefix; returns (length, offset_of_prefix)."""
        at = self.cursor.offset
        n = self.cursor.read_int()
        if n < 0:
            raise NbtError(ERR_INVALID_LENGTH,
                           "negative {} length: {}".format(what, n), offset=at)
        return n, at

    def _check_cap(self, n: int, cap: Optional[int], what: str, at: int) -> None:
        if cap is not None and n > cap:
            raise NbtError(ERR_INVALID_LENGTH,
                           "{} length {} exceeds limit {}".format(what, n, cap),
                           offset=at)

    def _check_fits(self, n: int, width: int, what: str, at: int) -> None:
        need = n * width
        if need > self.cursor.remaining:
            raise NbtError(
                ERR_UNEXPECTED_END,
                "{} of length {} needs at least {} bytes, have {}".format(
                    what, n, need, self.cursor.remaining),
                offset=at,
            )

    # ── Document root ────────────────────────────────────────

    def read_root(self) -> Step:
        cur = self.cursor
        tid = cur.read_ubyte()
        if tid == TAG_END:
            raise NbtError(ERR_INVALID_STRUCTURE,
                           "root is TAG_End, expected TAG_Compound", offset=0)
        if tid != TAG_COMPOUND:
            raise NbtError(ERR_INVALID_STRUCTURE,
                           "root must be TAG_Compound, got type {}".format(tid),
                           offset=0)
        name = cur.read_string()
        self.ops += 1
        value = yield from self._compound()
        if cur.remaining:
            log.debug("ignoring %d trailing bytes after root compound",
                      cur.remaining)
        return NamedTag(name, value)

    # ── Containers ───────────────────────────────────────────

    def _compound(self) -> Step:
        cur = self.cursor
        opts = self.options
        self._enter(cur.offset)

        entries: Dict[str, Tag] = {}
        count = 0
        while True:
            at = cur.offset
            tid = cur.read_ubyte()
            if tid == TAG_END:
                break
            scalar = self._scalars.get(tid)
            reader = None if scalar is not None else self._containers.get(tid)
            if scalar is None and reader is None:
                raise NbtError(ERR_UNKNOWN_TAG_TYPE,
                               "unknown tag type {}".format(tid), offset=at)

            name = cur.read_string()
            self.ops += 1
            if self.ops % opts.yield_every_ops == 0:
                self._pause()
                yield

            if scalar is not None:
                value = scalar[0](scalar[1]())
            else:
                value = yield from reader()

            # Duplicate names: last value wins, first position is kept.
            if name in entries:
                log.debug("duplicate compound key %r at offset %d", name, at)
            entries[name] = value

            count += 1
            if count % opts.compound_yield_every == 0:
                self._pause("Processing compound data... ({} tags)".format(count))
                yield
            if count == LARGE_COMPOUND_ENTRIES + 1:
                log.warning("very large compound: more than %d tags",
                            LARGE_COMPOUND_ENTRIES)

        self.depth -= 1
        return CompoundTag(entries)

    def _list(self) -> Step:
        cur = self.cursor
        opts = self.options
        self._enter(cur.offset)

        type_at = cur.offset
        etype = cur.read_ubyte()
        if etype > TAG_LONG_ARRAY:
            raise NbtError(ERR_UNKNOWN_TAG_TYPE,
                           "unknown list element type {}".format(etype),
                           offset=type_at)
        n, at = self._read_length("list")
        if etype == TAG_END and n:
            raise NbtError(ERR_INVALID_LENGTH,
                           "list of TAG_End with length {}".format(n), offset=at)
        self._check_fits(n, MIN_PAYLOAD_SIZE[etype], "list", at)
        self._check_cap(n, opts.max_list_length, "list", at)
        if n > LARGE_LIST_LENGTH:
            log.warning("very large list: %d items at offset %d", n, at)

        items: List[Tag] = []
        every = opts.list_yield_every
        scalar = self._scalars.get(etype)
        if scalar is not None:
            cls, read = scalar
            for i in range(1, n + 1):
                items.append(cls(read()))
                if i % every == 0 and i < n:
                    self._pause("Processing list data... ({}/{} items)".format(i, n))
                    yield
        elif n:
            reader = self._containers[etype]
            for i in range(1, n + 1):
                items.append((yield from reader()))
                if i % every == 0 and i < n:
                    self._pause("Processing list data... ({}/{} items)".format(i, n))
                    yield

        self.depth -= 1
        return ListTag(TagType(etype), items)

    # ── Arrays ───────────────────────────────────────────────

    def _byte_array(self) -> Step:
        opts = self.options
        n, at = self._read_length("byte array")
        if n > opts.max_byte_array_length:
            raise NbtError(ERR_INVALID_LENGTH,
                           "byte array too large: {} bytes".format(n), offset=at)
        self._check_fits(n, 1, "byte array", at)
        self._check_cap(n, opts.max_array_length, "byte array", at)
        if n > opts.byte_array_yield_threshold:
            self._pause("Processing byte array... ({} bytes)".format(n))
            yield
        return ByteArrayTag(self.cursor.read_bytes(n, at))

    def _int_array(self) -> Step:
        values = yield from self._wide_array(
            "i", "int array", self.options.int_array_yield_every,
            LARGE_INT_ARRAY_LENGTH)
        return IntArrayTag(values)

    def _long_array(self) -> Step:
        values = yield from self._wide_array(
            "q", "long array", self.options.long_array_yield_every,
            LARGE_LONG_ARRAY_LENGTH)
        return LongArrayTag(values)

    def _wide_array(self, fmt: str, what: str, every: int, large: int) -> Step:
        cur = self.cursor
        n, at = self._read_length(what)
        self._check_fits(n, 4 if fmt == "i" else 8, what, at)
        self._check_cap(n, self.options.max_array_length, what, at)
        if n > large:
            log.warning("very large %s: %d elements at offset %d", what, n, at)

        # Read in chunks so the yield schedule holds for big arrays.
        values: List[int] = []
        done = 0
        while done < n:
            k = min(every, n - done)
            values.extend(cur.read_array(fmt, k, at))
            done += k
            if done < n:
                self._pause("Processing {}... ({}/{} elements)".format(what, done, n))
                yield
        return values


# ── Drivers ──────────────────────────────────────────────────

def _coerce(data: BytesLike) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)
    raise TypeError("expected bytes-like input, got {}".format(type(data).__name__))


def _admit(data: BytesLike) -> bytes:
    """Coerce the input and flag oversized buffers.

    Must be called directly by a public entry point so the warning
    points at that entry point's caller.
    """
    data = _coerce(data)
    if len(data) > LARGE_INPUT_BYTES:
        log.warning("very large input: %d bytes", len(data))
        warnings.warn(
            "very large NBT input ({} bytes); decoding may be slow".format(len(data)),
            LargeInputWarning, stacklevel=3)
    return data


def _drive(steps: Step) -> Any:
    while True:
        try:
            next(steps)
        except StopIteration as stop:
            return stop.value


async def _drive_async(steps: Step) -> Any:
    while True:
        try:
            next(steps)
        except StopIteration as stop:
            return stop.value
        await asyncio.sleep(0)


class TagDecoder:
    """Decode NBT documents.

    A decoder only holds its options and inflate function; every call builds
    its own context, so one instance can serve any number of calls,
    including concurrent ones.
    """

    def __init__(self, options: Optional[DecodeOptions] = None,
                 inflate: Optional[Inflate] = None) -> None:
        self.options = options or DecodeOptions()
        self.inflate = inflate

    def decode(self, data: BytesLike,
               progress: Union[ProgressSink, ProgressReporter, None] = None
               ) -> NamedTag:
        """Decode a (possibly gzipped) NBT document, blocking until done."""
        return _drive(self._steps(_admit(data), progress))

    async def decode_async(self, data: BytesLike,
                           progress: Union[ProgressSink, ProgressReporter, None] = None
                           ) -> NamedTag:
        """Decode on the running event loop, yielding at suspension points."""
        return await _drive_async(self._steps(_admit(data), progress))

    def iter_decode(self, data: BytesLike,
                    progress: Union[ProgressSink, ProgressReporter, None] = None
                    ) -> Step:
        """The raw engine: a generator that yields at each suspension point.

        Hosts with their own scheduler (an idle callback, a custom loop) can
        step it manually.  The decoded NamedTag is the generator's return
        value.  Input type and size are checked before the generator is
        returned.
        """
        return self._steps(_admit(data), progress)

    def _steps(self, data: bytes,
               progress: Union[ProgressSink, ProgressReporter, None]) -> Step:
        if isinstance(progress, ProgressReporter):
            reporter = progress
        else:
            reporter = ProgressReporter(progress)

        reporter.report("Initializing parser...", PROGRESS_INIT)
        if not data:
            raise NbtError(ERR_EMPTY_INPUT, "empty input")

        reporter.report("Analyzing file format...", PROGRESS_ANALYZE)
        log.debug("first bytes: %s", data[:10].hex())
        if is_compressed(data):
            reporter.report("Decompressing file...", PROGRESS_DECOMPRESS_START)
            data = decompress(data, self.inflate)
            reporter.report("Decompression complete", PROGRESS_DECOMPRESS_DONE)
            if not data:
                raise NbtError(ERR_EMPTY_INPUT, "gzip stream decompressed to nothing")
        else:
            reporter.report("File format verified", PROGRESS_RAW_VERIFIED)

        reporter.report("Parsing NBT structure...", PROGRESS_STRUCTURE_START)
        ctx = _DecodeContext(data, self.options, reporter)
        try:
            root = yield from ctx.read_root()
        except NbtError as e:
            log.error("NBT decode failed [%s] at offset %s; bytes around: %s",
                      e.code, ctx.cursor.offset, ctx.cursor.window())
            raise
        log.debug("decoded %d named tags with %d checkpoints",
                  ctx.ops, ctx.checkpoints)
        reporter.report("Parse completed successfully", PROGRESS_DONE)
        return root


def decode(data: BytesLike, progress: Optional[ProgressSink] = None,
           options: Optional[DecodeOptions] = None) -> NamedTag:
    """Decode an NBT document with a fresh TagDecoder."""
    return _drive(TagDecoder(options)._steps(_admit(data), progress))


async def decode_async(data: BytesLike, progress: Optional[ProgressSink] = None,
                       options: Optional[DecodeOptions] = None) -> NamedTag:
    """Async variant of decode()."""
    return await _drive_async(TagDecoder(options)._steps(_admit(data), progress))
