"""
Result and diagnostic output.

Primary output carries data only: the tee'd input plus the winning
candidate in matching mode, or one line per match in listing mode.
Everything human-readable goes to the diagnostic stream.
"""

from __future__ import annotations

import sys
import time
from typing import BinaryIO, Optional, TextIO

from .config import PRINT_INTERVAL, PROGRESS_BLOCKS
from .encoding import CandidateEncoder
from .search import MatchResult, SearchContext


def hex_digest(digest: bytes) -> str:
    return digest.hex()


def reliable_write(stream: BinaryIO, data: bytes) -> int:
    """
    Write all of data, redriving short writes. Raw file objects may accept
    only part of a buffer (or None on a would-block pipe); buffered ones
    return the full length. Returns len(data).
    """
    view = memoryview(data)
    while view:
        n = stream.write(view)
        if n is None:
            n = 0
        view = view[n:]
    stream.flush()
    return len(data)


def fmt_rate(hps: float) -> str:
    units = [
        (1e12, "T"),
        (1e9, "B"),
        (1e6, "M"),
        (1e3, "k"),
    ]
    for factor, label in units:
        if hps >= factor:
            return f"{hps / factor:.2f}{label}"
    return f"{hps:.2f}"


class Reporter:
    def __init__(self, out: BinaryIO, err: Optional[TextIO] = None):
        self.out = out
        self.err = err if err is not None else sys.stderr
        self._blocks = 0
        self._interactive = False

    def diag(self, msg: str, end: str = "\n"):
        print(msg, end=end, file=self.err, flush=True)

    # Reading phase

    def reading_started(self, interactive: bool):
        self._interactive = interactive
        self._blocks = 0
        self.diag("reading file to hash from stdin...", end="\n" if interactive else "")

    def reading_progress(self):
        if not self._interactive and self._blocks % PROGRESS_BLOCKS == 0:
            self.diag(".", end="")
        self._blocks += 1

    def reading_finished(self):
        if not self._interactive:
            self.diag("")

    def tee(self, block: bytes):
        reliable_write(self.out, block)

    # Searching phase

    def search_started(self, base_digest: bytes, max_search: int):
        self.diag(f"beginning search (original hash = {hex_digest(base_digest)})")
        self.diag(f"searching 0 to {max_search:#x} ... ", end="")

    def found(self, result: MatchResult):
        self.diag("found match!")
        self.diag(f"new hash is {result.hex_digest}")
        reliable_write(self.out, result.candidate)

    def exhausted(self):
        self.diag("no match found.")

    def listing(self, result: MatchResult, encoder: CandidateEncoder):
        line = f"{result.hex_digest} {encoder.tag} {encoder.format_counter(result.counter)}\n"
        reliable_write(self.out, line.encode("ascii"))


def progress_thread(ctx: SearchContext, total: int, err: Optional[TextIO] = None):
    """Print checked-count and hash rate every PRINT_INTERVAL until stop."""
    err = err if err is not None else sys.stderr
    history = []  # (timestamp, checked)

    def add_history(ts: float, checked: int):
        history.append((ts, checked))
        cutoff = ts - 10.0
        while len(history) > 2 and history[0][0] < cutoff:
            history.pop(0)

    def avg_rate() -> float:
        if len(history) < 2:
            return 0.0
        t0, c0 = history[0]
        t1, c1 = history[-1]
        return (c1 - c0) / max(1e-6, t1 - t0)

    while not ctx.stop_flag:
        with ctx.status_lock:
            checked = ctx.checked
        add_history(time.time(), checked)
        pct = 100.0 * checked / total if total else 100.0
        print(
            f"Checked {checked:,} ({pct:.1f}%), {fmt_rate(avg_rate())} hashes/s",
            file=err,
            flush=True,
        )
        time.sleep(PRINT_INTERVAL)
