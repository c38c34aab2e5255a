"""nbtscan error codes, exception class, and user-facing messages.

Every decode-time failure aborts the whole parse: there is no partial tree.
Errors carry the byte offset that was active when the failure was detected
so a hex dump around that position usually explains the problem.
"""

from __future__ import annotations

from typing import Dict, Optional

# ── Error codes ──────────────────────────────────────────────
# Grep-friendly string constants; callers compare against `.code`.

ERR_UNSUPPORTED_ENVIRONMENT: str = "ERR_UNSUPPORTED_ENVIRONMENT"  # no inflate
ERR_EMPTY_INPUT: str = "ERR_EMPTY_INPUT"            # zero-length buffer
ERR_CORRUPT: str = "ERR_CORRUPT"                    # gzip stream rejected
ERR_UNEXPECTED_END: str = "ERR_UNEXPECTED_END"      # read past end of buffer
ERR_MAX_DEPTH: str = "ERR_MAX_DEPTH"                # nesting too deep
ERR_INVALID_LENGTH: str = "ERR_INVALID_LENGTH"      # negative / over ceiling
ERR_UNKNOWN_TAG_TYPE: str = "ERR_UNKNOWN_TAG_TYPE"  # type id outside 0..12
ERR_INVALID_UTF8: str = "ERR_INVALID_UTF8"          # string payload not UTF-8
ERR_INVALID_STRUCTURE: str = "ERR_INVALID_STRUCTURE"  # wrong document shape


class NbtError(Exception):
    """Exception for NBT decoding and schematic extraction errors.

    `.code` is one of the ERR_* strings above.  `.offset` is the byte
    position in the (decompressed) buffer where the failure was detected,
    or None when the failure isn't tied to a position.
    """

    def __init__(self, code: str, msg: str = "",
                 offset: Optional[int] = None) -> None:
        text = msg or code
        if offset is not None:
            text = "{} (at offset {})".format(text, offset)
        super().__init__(text)
        self.code = code
        self.offset = offset


class LargeInputWarning(UserWarning):
    """Input is big enough that decoding may take a while."""


_MESSAGES: Dict[str, str] = {
    ERR_UNSUPPORTED_ENVIRONMENT:
        "This Python build cannot decompress gzip data (zlib is missing).",
    ERR_EMPTY_INPUT: "The file is empty.",
    ERR_CORRUPT: "The file looks compressed but could not be decompressed.",
    ERR_UNEXPECTED_END: "The NBT file appears to be corrupted or incomplete.",
    ERR_MAX_DEPTH: "The file nests tags too deeply; it is probably corrupted.",
    ERR_INVALID_LENGTH: "The file declares an impossible length field.",
    ERR_UNKNOWN_TAG_TYPE: "The file contains an unknown tag type.",
    ERR_INVALID_UTF8: "The file contains text that is not valid UTF-8.",
    ERR_INVALID_STRUCTURE:
        "The file doesn't appear to be a valid NBT schematic file.",
}


def describe_error(err: NbtError) -> str:
    """Return a short, user-facing explanation for an NbtError."""
    return _MESSAGES.get(err.code, str(err))
