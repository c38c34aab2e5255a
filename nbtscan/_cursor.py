"""Bounds-checked big-endian primitive readers over an immutable buffer.

The cursor is the only thing that touches raw bytes.  Every read checks
the remaining length first, so a malformed length field can never make us
slice past the end of the buffer or allocate for data that isn't there.
"""

from __future__ import annotations

import logging
import struct
from typing import Tuple

from ._constants import LONG_STRING_BYTES
from ._errors import ERR_INVALID_UTF8, ERR_UNEXPECTED_END, NbtError

log = logging.getLogger(__name__)

_I8 = struct.Struct(">b")
_U8 = struct.Struct(">B")
_I16 = struct.Struct(">h")
_U16 = struct.Struct(">H")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")
_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")

# struct format character -> element width, for read_array()
_ARRAY_WIDTHS = {"i": 4, "q": 8}


class Cursor:
    """Read-only byte buffer plus a mutable offset."""

    __slots__ = ("data", "offset")

    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = data
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _need(self, n: int, what: str, at: int) -> None:
        if n > len(self.data) - self.offset:
            raise NbtError(
                ERR_UNEXPECTED_END,
                "truncated {}: need {} bytes, have {}".format(
                    what, n, len(self.data) - self.offset),
                offset=at,
            )

    def _unpack(self, st: struct.Struct, what: str):
        off = self.offset
        self._need(st.size, what, off)
        self.offset = off + st.size
        return st.unpack_from(self.data, off)[0]

    # ── Fixed width ──────────────────────────────────────────

    def read_byte(self) -> int:
        return self._unpack(_I8, "byte")

    def read_ubyte(self) -> int:
        return self._unpack(_U8, "byte")

    def read_short(self) -> int:
        return self._unpack(_I16, "short")

    def read_ushort(self) -> int:
        return self._unpack(_U16, "ushort")

    def read_int(self) -> int:
        return self._unpack(_I32, "int")

    def read_long(self) -> int:
        return self._unpack(_I64, "long")

    def read_float(self) -> float:
        return self._unpack(_F32, "float")

    def read_double(self) -> float:
        return self._unpack(_F64, "double")

    # ── Length prefixed ──────────────────────────────────────
    # `length_at` is the offset of the length field that produced `n`; a
    # short buffer is reported there rather than at the payload start.

    def read_bytes(self, n: int, length_at: int) -> bytes:
        self._need(n, "byte payload", length_at)
        off = self.offset
        self.offset = off + n
        return self.data[off:off + n]

    def read_array(self, fmt: str, count: int, length_at: int) -> Tuple[int, ...]:
        """Read `count` big-endian elements of struct type `fmt` ('i' or 'q')."""
        width = _ARRAY_WIDTHS[fmt]
        self._need(count * width, "array payload", length_at)
        off = self.offset
        self.offset = off + count * width
        return struct.unpack_from(">{}{}".format(count, fmt), self.data, off)

    def read_string(self) -> str:
        """Read a uint16-prefixed string and decode it as strict UTF-8."""
        at = self.offset
        n = self.read_ushort()
        if n > LONG_STRING_BYTES:
            log.debug("long string: %d bytes at offset %d", n, at)
        raw = self.read_bytes(n, at)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise NbtError(ERR_INVALID_UTF8,
                           "invalid utf-8 in string: {}".format(e.reason),
                           offset=at) from e

    def window(self, radius: int = 5) -> str:
        """Hex dump of the bytes around the current offset, for error logs."""
        lo = max(0, self.offset - radius)
        return " ".join("0x{:02x}".format(b)
                        for b in self.data[lo:self.offset + radius])
