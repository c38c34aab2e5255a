"""Tests for schematic summary extraction and the parse_schematic pipeline."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nbtscan import (
    BlockCount,
    ByteTag,
    CompoundTag,
    ERR_INVALID_STRUCTURE,
    ERR_UNEXPECTED_END,
    IntArrayTag,
    IntTag,
    ListTag,
    LongTag,
    NamedTag,
    NamespaceResolver,
    NbtError,
    ShortTag,
    StringTag,
    TagDecoder,
    TagType,
    extract_summary,
    parse_schematic,
    parse_schematic_async,
    version_label,
)
from nbtscan._schematic import RAILWAYS_NOTE

from nbt_writer import document, schematic


def _brass() -> NamedTag:
    return schematic(["minecraft:stone", "create:brass_block"], [0, 1, 1],
                     size=(1, 1, 3), data_version=3465)


# ── The worked example ────────────────────────────────────────

class TestWorkedExample(unittest.TestCase):
    def setUp(self):
        self.summary = extract_summary(_brass())

    def test_total_blocks(self):
        self.assertEqual(self.summary.total_blocks, 3)

    def test_dimensions(self):
        self.assertEqual(self.summary.dimensions, (1, 1, 3))
        self.assertEqual((self.summary.width, self.summary.height,
                          self.summary.length), (1, 1, 3))

    def test_mods_exclude_base_namespace(self):
        self.assertEqual(self.summary.mods, (NamespaceResolver()("create"),))

    def test_counts_include_base_namespace(self):
        self.assertEqual(self.summary.blocks, (
            BlockCount("minecraft:stone", 1),
            BlockCount("create:brass_block", 2),
        ))

    def test_version_label(self):
        self.assertEqual(self.summary.version, "1.20.1")

    def test_to_dict(self):
        self.assertEqual(self.summary.to_dict(), {
            "version": "1.20.1",
            "totalBlocks": 3,
            "width": 1,
            "height": 1,
            "length": 3,
            "mods": ["Create"],
            "blocks": [
                {"name": "minecraft:stone", "count": 1},
                {"name": "create:brass_block", "count": 2},
            ],
        })

    def test_summary_is_frozen(self):
        with self.assertRaises(dataclasses.FrozenInstanceError):
            self.summary.total_blocks = 4


# ── Palette and block tallies ─────────────────────────────────

class TestTallies(unittest.TestCase):
    def test_unused_palette_entries_dropped(self):
        s = extract_summary(schematic(["a:x", "a:y"], [0, 0]))
        self.assertEqual(s.blocks, (BlockCount("a:x", 2),))
        # the namespace still counts: it's in the palette
        self.assertEqual(s.mods, ("a",))

    def test_namespaces_deduplicated_in_first_seen_order(self):
        s = extract_summary(schematic(
            ["b:one", "create:shaft", "b:two", "create:cogwheel"], []))
        self.assertEqual(s.mods, ("b", "Create"))

    def test_resolved_names_deduplicated(self):
        same = lambda ns: "Same Mod"
        s = extract_summary(schematic(["a:x", "b:y"], []), namespace_resolver=same)
        self.assertEqual(s.mods, ("Same Mod",))

    def test_palette_entries_without_name(self):
        s = extract_summary(schematic([None, "create:shaft"], [0, 1, 0]))
        self.assertEqual(s.blocks, (BlockCount("create:shaft", 1),))
        self.assertEqual(s.total_blocks, 3)

    def test_out_of_range_states_ignored(self):
        s = extract_summary(schematic(["a:x"], [0, 1, 5, -1]))
        self.assertEqual(s.blocks, (BlockCount("a:x", 1),))
        self.assertEqual(s.total_blocks, 4)

    def test_block_without_state_ignored(self):
        root = schematic(["a:x"], [0])
        blocks = ListTag(TagType.COMPOUND, [CompoundTag({}), CompoundTag({"state": IntTag(0)})])
        body = dict(root.tag.value, blocks=blocks)
        s = extract_summary(CompoundTag(body))
        self.assertEqual(s.blocks, (BlockCount("a:x", 1),))
        self.assertEqual(s.total_blocks, 2)

    def test_narrow_integer_states_count(self):
        root = schematic(["create:shaft"], [])
        blocks = ListTag(TagType.COMPOUND, [
            CompoundTag({"state": ShortTag(0)}),
            CompoundTag({"state": ByteTag(0)}),
            CompoundTag({"state": LongTag(0)}),
        ])
        s = extract_summary(CompoundTag(dict(root.tag.value, blocks=blocks)))
        self.assertEqual(s.blocks, (BlockCount("create:shaft", 3),))

    def test_empty_name_is_skipped(self):
        s = extract_summary(schematic(["", "create:shaft"], [0, 1]))
        self.assertEqual(s.mods, ("Create",))
        self.assertEqual(s.blocks, (BlockCount("create:shaft", 1),))
        self.assertEqual(s.total_blocks, 2)

    def test_duplicate_palette_names_share_a_counter(self):
        s = extract_summary(schematic(["a:door", "a:door"], [0, 1, 1]))
        self.assertEqual(s.blocks, (BlockCount("a:door", 3),))

    def test_name_without_namespace(self):
        """A bare name is its own namespace."""
        s = extract_summary(schematic(["stone"], [0]))
        self.assertEqual(s.mods, ("stone",))

    def test_empty_schematic(self):
        root = NamedTag("", CompoundTag({
            "size": IntArrayTag([0, 0, 0]),
            "palette": ListTag(TagType.END),
            "blocks": ListTag(TagType.END),
        }))
        s = extract_summary(root)
        self.assertEqual((s.total_blocks, s.mods, s.blocks), (0, (), ()))
        self.assertEqual(s.version, "Unknown")

    def test_size_as_int_list(self):
        root = schematic(["a:x"], [0])
        body = dict(root.tag.value, size=ListTag(TagType.INT, [IntTag(4), IntTag(5), IntTag(6)]))
        self.assertEqual(extract_summary(CompoundTag(body)).dimensions, (4, 5, 6))


# ── Railways marker ──────────────────────────────────────────

class TestRailways(unittest.TestCase):
    def test_marker_adds_note(self):
        root = schematic(["create:shaft"], [0], Railways_DataVersion=IntTag(1))
        self.assertEqual(extract_summary(root).mods, ("Create", RAILWAYS_NOTE))

    def test_marker_without_railways_blocks_only(self):
        root = schematic(["minecraft:stone"], [0], Railways_DataVersion=IntTag(1))
        self.assertEqual(extract_summary(root).mods, (RAILWAYS_NOTE,))

    def test_no_note_when_already_detected(self):
        root = schematic(["railways:track"], [0], Railways_DataVersion=IntTag(1))
        self.assertEqual(extract_summary(root).mods, ("Create: Steam 'n' Rails",))


# ── Structure errors ─────────────────────────────────────────

class TestInvalidStructure(unittest.TestCase):
    def assertInvalid(self, root) -> None:
        with self.assertRaises(NbtError) as ctx:
            extract_summary(root)
        self.assertEqual(ctx.exception.code, ERR_INVALID_STRUCTURE)

    def _without(self, key: str) -> CompoundTag:
        body = dict(_brass().tag.value)
        del body[key]
        return CompoundTag(body)

    def test_missing_root(self):
        self.assertInvalid(None)

    def test_root_not_compound(self):
        self.assertInvalid(NamedTag("", IntTag(1)))

    def test_missing_required_fields(self):
        for key in ("palette", "blocks", "size"):
            with self.subTest(key=key):
                self.assertInvalid(self._without(key))

    def test_missing_data_version_is_fine(self):
        self.assertEqual(extract_summary(self._without("DataVersion")).version, "Unknown")

    def test_palette_wrong_type(self):
        body = dict(_brass().tag.value, palette=StringTag("nope"))
        self.assertInvalid(CompoundTag(body))

    def test_palette_of_strings(self):
        body = dict(_brass().tag.value,
                    palette=ListTag(TagType.STRING, [StringTag("minecraft:stone")]))
        self.assertInvalid(CompoundTag(body))

    def test_short_size(self):
        body = dict(_brass().tag.value, size=IntArrayTag([1, 2]))
        self.assertInvalid(CompoundTag(body))


# ── Resolvers ────────────────────────────────────────────────

class TestResolvers(unittest.TestCase):
    def test_unknown_namespace_falls_back(self):
        self.assertEqual(NamespaceResolver()("somemod"), "somemod")

    def test_extend(self):
        r = NamespaceResolver()
        r.extend({"somemod": "Some Mod", "create": "Create (custom)"})
        self.assertEqual(r("somemod"), "Some Mod")
        self.assertEqual(r("create"), "Create (custom)")

    def test_from_json_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "names.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"tfmg": "Create: The Factory Must Grow"}, f)
            r = NamespaceResolver.from_json_file(path)
        self.assertEqual(r("tfmg"), "Create: The Factory Must Grow")
        self.assertEqual(r("create"), "Create")

    def test_from_json_file_rejects_non_object(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "names.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(["create"], f)
            with self.assertRaises(ValueError):
                NamespaceResolver.from_json_file(path)

    def test_version_label(self):
        self.assertEqual(version_label(3465), "1.20.1")
        self.assertEqual(version_label(1), "Unknown")
        self.assertEqual(version_label(None), "Unknown")

    def test_custom_version_resolver(self):
        s = extract_summary(_brass(), version_resolver=lambda v: "dv{}".format(v))
        self.assertEqual(s.version, "dv3465")


# ── Full pipeline ────────────────────────────────────────────

class TestParseSchematic(unittest.TestCase):
    def test_raw_and_gzip_agree(self):
        raw = parse_schematic(document(_brass()))
        gz = parse_schematic(document(_brass(), compress=True))
        self.assertEqual(raw.summary, gz.summary)
        self.assertEqual(raw.tree, _brass())

    def test_idempotent(self):
        data = document(_brass(), compress=True)
        self.assertEqual(parse_schematic(data), parse_schematic(data))

    def test_end_only_document(self):
        with self.assertRaises(NbtError) as ctx:
            parse_schematic(b"\x00")
        self.assertEqual(ctx.exception.code, ERR_INVALID_STRUCTURE)

    def test_truncated_document(self):
        data = document(_brass())
        with self.assertRaises(NbtError) as ctx:
            parse_schematic(data[:-5])
        self.assertEqual(ctx.exception.code, ERR_UNEXPECTED_END)

    def test_not_a_schematic(self):
        data = document(NamedTag("", CompoundTag({"hello": StringTag("world")})))
        with self.assertRaises(NbtError) as ctx:
            parse_schematic(data)
        self.assertEqual(ctx.exception.code, ERR_INVALID_STRUCTURE)

    def test_progress(self):
        events = []
        parse_schematic(document(_brass(), compress=True),
                        progress=lambda s, p: events.append((s, p)))
        pcts = [p for _, p in events]
        self.assertEqual(pcts, sorted(pcts))
        self.assertEqual(pcts[-1], 100)
        statuses = [s for s, _ in events]
        split = statuses.index("Processing schematic data...")
        self.assertTrue(all(p <= 70 for p in pcts[:split]))
        self.assertIn("Extracting block information...", statuses)

    def test_async(self):
        data = document(_brass(), compress=True)
        result = asyncio.run(parse_schematic_async(data))
        self.assertEqual(result, parse_schematic(data))

    def test_summary_matches_decoder_tree(self):
        data = document(_brass())
        tree = TagDecoder().decode(data)
        self.assertEqual(extract_summary(tree), parse_schematic(data).summary)


if __name__ == "__main__":
    unittest.main()
