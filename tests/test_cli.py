"""Tests for the nbtscan command-line interface."""

from __future__ import annotations

import contextlib
import io
import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from nbtscan import ByteArrayTag, CompoundTag, IntTag, NamedTag, __version__
from nbtscan._cli import main

from nbt_writer import document, schematic


class CliTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def write(self, name: str, data: bytes) -> str:
        path = os.path.join(self._tmp.name, name)
        with open(path, "wb") as f:
            f.write(data)
        return path

    def run_cli(self, *argv: str):
        out, err = io.StringIO(), io.StringIO()
        code = 0
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            try:
                main(list(argv))
            except SystemExit as e:
                code = e.code
        return code, out.getvalue(), err.getvalue()


class TestSummary(CliTestCase):
    def setUp(self):
        super().setUp()
        root = schematic(["minecraft:stone", "create:brass_block"], [0, 1, 1],
                         size=(1, 1, 3))
        self.path = self.write("brass.nbt", document(root, compress=True))

    def test_json(self):
        code, out, _ = self.run_cli("summary", self.path, "--json")
        self.assertEqual(code, 0)
        obj = json.loads(out)
        self.assertEqual(obj["totalBlocks"], 3)
        self.assertEqual(obj["mods"], ["Create"])
        self.assertEqual(obj["version"], "1.20.1")

    def test_text(self):
        code, out, _ = self.run_cli("summary", self.path)
        self.assertEqual(code, 0)
        self.assertIn("Size:       1 x 1 x 3", out)
        self.assertIn("  - Create", out)
        self.assertIn("create:brass_block", out)

    def test_names_file(self):
        root = schematic(["tfmg:steel_block"], [0])
        path = self.write("steel.nbt", document(root))
        names = self.write("names.json", json.dumps(
            {"tfmg": "Create: The Factory Must Grow"}).encode("utf-8"))
        code, out, _ = self.run_cli("summary", path, "--json", "--names", names)
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["mods"], ["Create: The Factory Must Grow"])

    def test_bad_names_file(self):
        names = self.write("names.json", b"[1, 2]")
        code, _, err = self.run_cli("summary", self.path, "--names", names)
        self.assertEqual(code, 2)
        self.assertIn("expected a JSON object", err)


class TestDump(CliTestCase):
    def test_dump_encodes_bytes_as_base64(self):
        root = NamedTag("r", CompoundTag({"n": IntTag(5), "b": ByteArrayTag(b"\x00\xff")}))
        path = self.write("r.nbt", document(root))
        code, out, _ = self.run_cli("dump", path)
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out), {"r": {"n": 5, "b": "AP8="}})


class TestErrors(CliTestCase):
    def test_missing_file(self):
        missing = os.path.join(self._tmp.name, "nope.nbt")
        code, _, err = self.run_cli("dump", missing)
        self.assertEqual(code, 2)
        self.assertIn("cannot read", err)

    def test_corrupt_file(self):
        path = self.write("bad.nbt", b"\x0a\x00\x00\x01")
        code, _, err = self.run_cli("dump", path)
        self.assertEqual(code, 2)
        self.assertIn("ERR_UNEXPECTED_END", err)

    def test_not_a_schematic(self):
        path = self.write("plain.nbt", document(NamedTag("", CompoundTag({}))))
        code, _, err = self.run_cli("summary", path)
        self.assertEqual(code, 2)
        self.assertIn("ERR_INVALID_STRUCTURE", err)

    def test_bad_max_depth(self):
        path = self.write("plain.nbt", document(NamedTag("", CompoundTag({}))))
        code, _, _ = self.run_cli("dump", path, "--max-depth", "0")
        self.assertEqual(code, 2)

    def test_no_command(self):
        code, out, _ = self.run_cli()
        self.assertEqual(code, 1)
        self.assertIn("usage", out)


class TestVersion(CliTestCase):
    def test_version(self):
        code, out, _ = self.run_cli("version")
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), "nbtscan {}".format(__version__))


if __name__ == "__main__":
    unittest.main()
