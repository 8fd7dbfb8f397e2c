#!/usr/bin/env python3
"""
Measure search throughput and append the results to tests/results.json.

Runs a listing-mode search (never short-circuits, so every candidate is
hashed) over a fixed range for each digest, encoding and thread count,
repeating each case and keeping the median rate.
"""

from __future__ import annotations

import argparse
import json
import os
import platform
import sys
import time
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from hash_search import (  # noqa: E402
    CandidateEncoder,
    SearchMode,
    TargetPrefix,
    lookup_algorithm,
    run_search,
)

RESULTS_PATH = Path(__file__).resolve().parent.parent / "tests" / "results.json"

# Never matches in practice; keeps listing output empty
UNREACHABLE = "0123456789abcdef01"


def bench_case(digest: str, encoding: str, threads: int, bits: int, repeats: int) -> dict:
    algorithm = lookup_algorithm(digest)
    encoder = CandidateEncoder.from_name(encoding)
    prefix = TargetPrefix.from_hex(UNREACHABLE)
    total = (1 << bits) - 1
    data = os.urandom(4096)

    rates = []
    for _ in range(repeats):
        outcome = run_search(data, algorithm, prefix, encoder, total, SearchMode.LIST, threads)
        rates.append(outcome.checked / outcome.elapsed if outcome.elapsed > 0 else 0.0)

    samples = np.array(rates, dtype=np.float64)
    return {
        "name": f"{digest} {encoding} {threads}t",
        "digest": digest,
        "encoding": encoding,
        "threads": threads,
        "candidates": total,
        "rate": float(np.median(samples)),
        "rate_std": float(samples.std()),
    }


def main():
    parser = argparse.ArgumentParser(
        prog="bench",
        description="Benchmark hash-search throughput.",
    )
    parser.add_argument("-b", "--bits", type=int, default=16)
    parser.add_argument("-r", "--repeats", type=int, default=3)
    parser.add_argument("-d", "--digest", action="append", default=None)
    parser.add_argument(
        "-j", "--threads", type=int, action="append", default=None,
        help="Thread counts to try (repeatable)",
    )
    args = parser.parse_args()

    digests = args.digest or ["md5", "sha1", "sha256"]
    cpu = os.cpu_count() or 1
    thread_counts = args.threads or sorted({1, 2, max(1, cpu // 2), cpu})

    cases = []
    for digest in digests:
        for encoding in ("bytes", "decimal"):
            for threads in thread_counts:
                case = bench_case(digest, encoding, threads, args.bits, args.repeats)
                print(f"{case['name']:<24} {case['rate'] / 1e3:>10.1f}k hashes/s", flush=True)
                cases.append(case)

    machine = f"{platform.processor() or platform.machine()} ({cpu} cpus)"
    raw = json.loads(RESULTS_PATH.read_text()) if RESULTS_PATH.exists() else {}
    raw.setdefault(machine, []).append(
        {
            "title": "hash-search",
            "python": platform.python_version(),
            "timestamp": time.time(),
            "cases": cases,
        }
    )
    RESULTS_PATH.write_text(json.dumps(raw, indent=2) + "\n")
    print(f"Results saved to {RESULTS_PATH}")


if __name__ == "__main__":
    main()
