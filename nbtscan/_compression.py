"""Gzip detection and decompression gate.

Detection is purely on the two-byte magic: anything starting with 1F 8B is
treated as gzip, no matter what follows.  Inflating is delegated to a
callable (gzip.decompress by default) and any failure it reports becomes
ERR_CORRUPT.  We never try a second strategy on failure.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, Type

from ._constants import GZIP_MAGIC
from ._errors import ERR_CORRUPT, ERR_UNSUPPORTED_ENVIRONMENT, NbtError

# zlib is an optional extension module; CPython can be built without it.
try:
    import zlib
except ImportError:
    zlib = None

log = logging.getLogger(__name__)

Inflate = Callable[[bytes], bytes]

_INFLATE_ERRORS: Tuple[Type[BaseException], ...] = (OSError, EOFError, ValueError)
if zlib is not None:
    _INFLATE_ERRORS += (zlib.error,)


def is_compressed(data: bytes) -> bool:
    """True when the buffer starts with the gzip magic bytes."""
    return data[:2] == GZIP_MAGIC


def _default_inflate() -> Inflate:
    if zlib is None:
        raise NbtError(ERR_UNSUPPORTED_ENVIRONMENT,
                       "gzip input needs zlib, which this Python lacks")
    import gzip
    return gzip.decompress


def decompress(data: bytes, inflate: Optional[Inflate] = None) -> bytes:
    """Return `data` unchanged if raw, else its inflated contents."""
    if not is_compressed(data):
        return data

    fn = inflate if inflate is not None else _default_inflate()
    try:
        out = fn(data)
    except _INFLATE_ERRORS as e:
        raise NbtError(ERR_CORRUPT,
                       "failed to decompress gzip data: {}".format(e)) from e
    log.debug("decompressed %d -> %d bytes", len(data), len(out))
    return bytes(out)
