"""
Command-line interfaces:

- markov-generate: train a character-level chain on a text file (one sample
  per line) with the forward algorithm and print generated strings.

- markov-demo: run the deterministic "MARKOVVV" chain of order 1 or 2, a quick
  check that tables, sampling and history handling fit together.
"""

from __future__ import annotations
import argparse
import csv
import json
import logging
import os
import sys
from typing import List
import numpy as np

from .chain import StateChain
from .table import build_table_2d, build_table_3d
from .training import train_forward

logger = logging.getLogger(__name__)

TERMINAL = "\n"

DEMO_STATES = ["0", "M", "K", "A", "O", "R", "V"]
DEMO_MATRIX = [
    # 0  M  K  A  O  R  V
    [0, 1, 0, 0, 0, 0, 0],  # 0 -> M
    [0, 0, 0, 1, 0, 0, 0],  # M -> A
    [0, 0, 0, 0, 1, 0, 0],  # K -> O
    [0, 0, 0, 0, 0, 1, 0],  # A -> R
    [0, 0, 0, 0, 0, 0, 1],  # O -> V
    [0, 0, 1, 0, 0, 0, 0],  # R -> K
    [0, 0, 0, 0, 0, 0, 1],  # V -> V
]


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_samples(path: str) -> List[str]:
    """Non-empty lines of a text file, without line endings."""
    with open(path, "r", encoding="utf-8") as f:
        return [line.rstrip("\r\n") for line in f if line.strip()]


def alphabet_from_samples(samples: List[str]) -> List[str]:
    """Terminal symbol first, then every character of the samples in sorted order."""
    chars = sorted({c for s in samples for c in s})
    return [TERMINAL] + chars


def generate_string(chain: StateChain[str], max_length: int) -> str:
    """Produce one string from a freshly reset chain, up to the terminal symbol."""
    chain.reset_history()
    out = []
    while len(out) < max_length:
        c = chain.next()
        if c == TERMINAL:
            break
        out.append(c)
    return "".join(out)


def run_generate(argv: list[str] | None = None) -> None:
    """Train on the lines of a text file and print generated strings."""
    p = argparse.ArgumentParser(prog="markov-generate", description="Generate strings from a trained Markov chain")
    p.add_argument("input", type=str, help="Text file with one training sample per line")
    p.add_argument("--order", type=int, default=2)
    p.add_argument("--count", type=int, default=10, help="Number of strings to generate")
    p.add_argument("--max_length", type=int, default=64, help="Stop a string after this many symbols")
    p.add_argument("--seed", type=int, help="RNG seed for reproducible output")
    p.add_argument("--out_csv", type=str, help="Append generated strings to this CSV file")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)
    _setup_logging(args.verbose)

    samples = load_samples(args.input)
    if not samples:
        print(f"No training samples in {args.input}")
        return
    states = alphabet_from_samples(samples)
    logger.info("training order-%d chain on %d samples over %d states", args.order, len(samples), len(states))
    rng = np.random.default_rng(args.seed)
    chain = train_forward(args.order, states, samples, end_state=TERMINAL, rng=rng)

    rows = []
    for i in range(args.count):
        text = generate_string(chain, args.max_length)
        rows.append({"index": i, "text": text, "length": len(text)})
        print(text)

    if args.out_csv:
        file_exists = os.path.isfile(args.out_csv)
        with open(args.out_csv, "a", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=["index", "text", "length"])
            if not file_exists:
                writer.writeheader()
            writer.writerows(rows)

    print(json.dumps({
        "file": args.input,
        "order": args.order,
        "states": len(states),
        "samples": len(samples),
        "generated": [r["text"] for r in rows],
        "seed": args.seed,
    }))


def run_demo(argv: list[str] | None = None) -> None:
    """Print the output of the deterministic MARKOVVV chain."""
    p = argparse.ArgumentParser(prog="markov-demo", description="Deterministic Markov chain demo")
    p.add_argument("--order", type=int, choices=[1, 2], default=1)
    p.add_argument("--steps", type=int, default=8)
    p.add_argument("--seed", type=int)
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)
    _setup_logging(args.verbose)

    if args.order == 1:
        table = build_table_2d(DEMO_MATRIX)
    else:
        table = build_table_3d([DEMO_MATRIX] * len(DEMO_STATES))
    chain = StateChain(DEMO_STATES, table.normalize(), rng=np.random.default_rng(args.seed))
    produced = "".join(chain.next() for _ in range(args.steps))
    print(f"[Demo] order={args.order}  produced={produced}")


if __name__ == "__main__":
    run_generate(sys.argv[1:])
