#!/usr/bin/env python3
# tools/invariants_runner.py
#
# Decoder invariants (property tests) over random tag trees.
#
# This runner:
# - generates random tag trees covering all twelve tag kinds within limits
# - encodes them with the independent test writer (tests/nbt_writer.py)
# - checks that decode() returns the same tree, raw and gzip-compressed
# - checks that decoding is idempotent and that the async path agrees
#
# Exit code:
#   0 -> all checks passed
#   1 -> invariant violation

import os, sys, json, random, asyncio
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "tests"))

import nbtscan
from nbtscan import (
    ByteArrayTag, ByteTag, CompoundTag, DoubleTag, FloatTag, IntArrayTag,
    IntTag, ListTag, LongArrayTag, LongTag, NamedTag, ShortTag, StringTag,
    TagType,
)
from nbt_writer import document

SEED = int(os.environ.get("NBT_SEED", "1337"))
TRIALS = int(os.environ.get("NBT_TRIALS", "1000"))
MAX_GEN_DEPTH = int(os.environ.get("NBT_GEN_MAX_DEPTH", "6"))

random.seed(SEED)

def rand_string() -> str:
    # Mix ASCII with multi-byte code points, never lone surrogates.
    pool = "abcxyz_:/ " + "éß中✓" + "\U0001F600"
    return "".join(random.choice(pool) for _ in range(random.randint(0, 12)))

def rand_int(bits: int) -> int:
    lo, hi = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    return random.choice([lo, hi, 0, -1, random.randint(lo, hi)])

def rand_float32() -> float:
    # Values exactly representable as float32, NaN included.
    return random.choice([0.0, -0.0, 1.5, -2.25, 1024.0, 0.1171875, float("nan")])

def rand_scalar(kind: TagType):
    if kind == TagType.BYTE:
        return ByteTag(rand_int(8))
    if kind == TagType.SHORT:
        return ShortTag(rand_int(16))
    if kind == TagType.INT:
        return IntTag(rand_int(32))
    if kind == TagType.LONG:
        return LongTag(rand_int(64))
    if kind == TagType.FLOAT:
        return FloatTag(rand_float32())
    if kind == TagType.DOUBLE:
        if random.random() < 0.05:
            return DoubleTag(float("nan"))
        return DoubleTag(random.uniform(-1e9, 1e9))
    if kind == TagType.STRING:
        return StringTag(rand_string())
    if kind == TagType.BYTE_ARRAY:
        return ByteArrayTag(bytes(random.getrandbits(8) for _ in range(random.randint(0, 24))))
    if kind == TagType.INT_ARRAY:
        return IntArrayTag([rand_int(32) for _ in range(random.randint(0, 8))])
    if kind == TagType.LONG_ARRAY:
        return LongArrayTag([rand_int(64) for _ in range(random.randint(0, 8))])
    raise ValueError(kind)

SCALARS = [k for k in TagType if k not in (TagType.END, TagType.LIST, TagType.COMPOUND)]

def gen_tag(depth: int, kind: TagType = None):
    if kind is None:
        if depth >= MAX_GEN_DEPTH or random.random() < 0.5:
            kind = random.choice(SCALARS)
        else:
            kind = random.choice([TagType.LIST, TagType.COMPOUND])
    if kind == TagType.COMPOUND:
        return gen_compound(depth + 1)
    if kind == TagType.LIST:
        if depth >= MAX_GEN_DEPTH or random.random() < 0.15:
            return ListTag(TagType.END)
        elem = random.choice(SCALARS + [TagType.LIST, TagType.COMPOUND])
        return ListTag(elem, [gen_tag(depth + 1, elem) for _ in range(random.randint(0, 5))])
    return rand_scalar(kind)

def gen_compound(depth: int) -> CompoundTag:
    body: Dict[str, Any] = {}
    for _ in range(random.randint(0, 6)):
        body[rand_string()] = gen_tag(depth)
    return CompoundTag(body)

def fail(label: str, ctx: Dict[str, Any]) -> None:
    print("INVARIANT FAIL:", label)
    print("CTX:", json.dumps(ctx, ensure_ascii=False, default=repr)[:2000])
    raise SystemExit(1)

def main() -> int:
    for t in range(TRIALS):
        root = NamedTag(rand_string(), gen_compound(0))
        raw = document(root)
        gz = document(root, compress=True)

        # 1) round trip through the raw and gzip paths
        a = nbtscan.decode(raw)
        if a != root:
            fail("raw round trip", {"trial": t, "root": root.to_obj()})
        if nbtscan.decode(gz) != root:
            fail("gzip round trip", {"trial": t, "root": root.to_obj()})

        # 2) compound key order survives
        if list(a.tag.value) != list(root.tag.value):
            fail("key order", {"trial": t, "keys": list(root.tag.value)})

        # 3) idempotence and input not mutated
        before = bytes(raw)
        if nbtscan.decode(raw) != a or raw != before:
            fail("idempotence", {"trial": t})

        # 4) async agrees with sync
        if t % 25 == 0:
            if asyncio.run(nbtscan.decode_async(gz)) != a:
                fail("async parity", {"trial": t})

        # 5) progress never goes backwards and ends at 100
        seen = []
        nbtscan.decode(gz, progress=lambda s, p: seen.append(p))
        if seen != sorted(seen) or not seen or seen[-1] != 100:
            fail("progress monotonic", {"trial": t, "seen": seen})

    print(f"OK: invariants passed for TRIALS={TRIALS} seed={SEED}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
