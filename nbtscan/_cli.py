"""nbtscan command-line interface.

Usage:
    nbtscan summary build.nbt [--json] [--names names.json]
    nbtscan dump build.nbt
    nbtscan version
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import sys
from typing import Any, List, Optional

from . import (
    DecodeOptions,
    NamespaceResolver,
    NbtError,
    __version__,
    decode,
    describe_error,
    parse_schematic,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nbtscan",
        description="nbtscan — decode NBT files and summarize schematics",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log decoding details to stderr")
    sub = parser.add_subparsers(dest="command")

    def add_decode_flags(p: argparse.ArgumentParser) -> None:
        p.add_argument("file", help="NBT file (raw or gzip-compressed)")
        p.add_argument("--max-depth", type=int, default=None, metavar="N",
                       help="Maximum compound/list nesting depth")
        p.add_argument("--max-list-length", type=int, default=None, metavar="N",
                       help="Reject lists longer than N (default: warn only)")
        p.add_argument("--max-array-length", type=int, default=None, metavar="N",
                       help="Reject arrays longer than N (default: warn only)")

    # ── summary ──
    sum_p = sub.add_parser("summary", help="Summarize a schematic file")
    add_decode_flags(sum_p)
    sum_p.add_argument("--json", action="store_true",
                       help="Print the summary as JSON")
    sum_p.add_argument("--names", metavar="FILE",
                       help="JSON object of extra namespace display names")

    # ── dump ──
    dump_p = sub.add_parser("dump", help="Print the decoded tag tree as JSON")
    add_decode_flags(dump_p)

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _options(args: argparse.Namespace) -> DecodeOptions:
    kw = {}
    if args.max_depth is not None:
        kw["max_depth"] = args.max_depth
    if args.max_list_length is not None:
        kw["max_list_length"] = args.max_list_length
    if args.max_array_length is not None:
        kw["max_array_length"] = args.max_array_length
    return DecodeOptions(**kw)


def _read_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def _jsonable(obj: Any) -> Any:
    # Byte arrays go out as base64 for safe terminal display.
    if isinstance(obj, bytes):
        return base64.b64encode(obj).decode("ascii")
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_jsonable(v) for v in obj]
    return obj


def _cmd_summary(args: argparse.Namespace) -> None:
    resolver = (NamespaceResolver.from_json_file(args.names)
                if args.names else NamespaceResolver())
    result = parse_schematic(_read_file(args.file), options=_options(args),
                             namespace_resolver=resolver)
    summary = result.summary

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False))
        return

    print("Version:    {}".format(summary.version))
    print("Blocks:     {}".format(summary.total_blocks))
    print("Size:       {} x {} x {}".format(*summary.dimensions))
    print("Mods:")
    if summary.mods:
        for mod in summary.mods:
            print("  - {}".format(mod))
    else:
        print("  (no mods detected)")
    print("Block counts:")
    for block in summary.blocks:
        print("  {:>7}  {}".format(block.count, block.name))


def _cmd_dump(args: argparse.Namespace) -> None:
    tree = decode(_read_file(args.file), options=_options(args))
    print(json.dumps(_jsonable(tree.to_obj()), indent=2, ensure_ascii=False))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"nbtscan {__version__}")
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "summary":
            _cmd_summary(args)
        elif args.command == "dump":
            _cmd_dump(args)
    except NbtError as e:
        print(f"nbtscan: error [{e.code}]: {describe_error(e)} ({e})",
              file=sys.stderr)
        sys.exit(2)
    except ValueError as e:
        # bad option values or a malformed --names file
        print(f"nbtscan: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"nbtscan: cannot read {e.filename}: {e.strerror}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
