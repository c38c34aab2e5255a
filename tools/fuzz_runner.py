#!/usr/bin/env python3
# tools/fuzz_runner.py
#
# Mutation fuzzing of the decoder and schematic extractor.
#
# Generates three fuzz categories:
#   A) valid schematic documents with random byte flips
#   B) valid documents truncated at a random offset
#   C) fully random byte strings (some with a gzip header)
#
# Every input must either decode or raise NbtError.  Any other exception
# prints a minimal repro payload and exits non-zero.

import os, sys, base64, gzip, logging, random
from typing import Any, Dict

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "tests"))

import nbtscan
from nbtscan import DecodeOptions, NbtError
from nbt_writer import document, schematic

SEED = int(os.environ.get("NBT_SEED", "4242"))
ROUNDS = int(os.environ.get("NBT_FUZZ_ROUNDS", "5000"))

random.seed(SEED)

# Decode failures are expected here; keep the error log quiet.
logging.getLogger("nbtscan").setLevel(logging.CRITICAL)

# Tight depth keeps pathological nesting cheap.
OPTIONS = DecodeOptions(max_depth=32)

def b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")

def crash(label: str, data: bytes, exc: BaseException, ctx: Dict[str, Any]) -> None:
    print("CRASH:", label)
    print("EXC :", type(exc).__name__, exc)
    print("CTX :", ctx)
    print("INPUT_B64:", b64(data)[:4000])
    raise SystemExit(1)

def seed_document() -> bytes:
    names = ["minecraft:stone", "create:shaft", "railways:track", "x"]
    palette = random.sample(names, random.randint(1, len(names)))
    states = [random.randint(-1, len(palette)) for _ in range(random.randint(0, 20))]
    size = tuple(random.randint(0, 64) for _ in range(3))
    return document(schematic(palette, states, size=size))

def flip(data: bytes) -> bytes:
    buf = bytearray(data)
    for _ in range(random.randint(1, 4)):
        i = random.randrange(len(buf))
        buf[i] = random.getrandbits(8)
    return bytes(buf)

def run_one(label: str, data: bytes, ctx: Dict[str, Any]) -> str:
    try:
        nbtscan.parse_schematic(data, options=OPTIONS)
        return "ok"
    except NbtError as e:
        return e.code
    except Exception as e:  # noqa: BLE001 - anything else is a finding
        crash(label, data, e, ctx)
        return "crash"

def main() -> int:
    outcomes: Dict[str, int] = {}
    for i in range(ROUNDS):
        r = random.random()

        # A) byte flips
        if r < 0.45:
            data = flip(seed_document())
            if random.random() < 0.3:
                data = gzip.compress(data)
            label = "A flip"

        # B) truncation
        elif r < 0.80:
            doc = seed_document()
            data = doc[:random.randrange(len(doc))]
            label = "B truncate"

        # C) random bytes
        else:
            data = bytes(random.getrandbits(8) for _ in range(random.randint(0, 64)))
            if random.random() < 0.3:
                data = b"\x1f\x8b" + data
            label = "C random"

        code = run_one(label, data, {"round": i})
        outcomes[code] = outcomes.get(code, 0) + 1

    summary = ", ".join(f"{k}={v}" for k, v in sorted(outcomes.items()))
    print(f"OK: fuzz passed for ROUNDS={ROUNDS} seed={SEED} ({summary})")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
