"""
Counter-space search: partition planning, the scan loop and the coordinator.

The coordinator moves through READING -> SEARCHING -> FOUND | EXHAUSTED.
The base digest context is only written while READING; afterwards every
worker shares it read-only and derives a private copy per candidate.

Matching mode stops at the first candidate that wins the claim on the
shared result slot. Listing mode never short-circuits and returns every
match in ascending counter order regardless of how many threads ran.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from enum import Enum
from threading import Lock, Thread
from typing import BinaryIO, Callable, List, Optional

from .config import BLOCK_SIZE, ENCODE_BATCH
from .digest import DigestAlgorithm, DigestContext
from .encoding import CandidateEncoder
from .prefix import TargetPrefix, matches

# -----------------------------------------------------------------------------
# Shared dataclasses
# -----------------------------------------------------------------------------


class SearchMode(str, Enum):
    MATCH = "match"
    LIST = "list"


class SearchState(str, Enum):
    READING = "reading"
    SEARCHING = "searching"
    FOUND = "found"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class SearchRange:
    start: int
    stop: int  # exclusive

    @property
    def size(self) -> int:
        # len() is capped at sys.maxsize, ranges here reach 2**64 - 1
        return max(0, self.stop - self.start)


@dataclass(frozen=True)
class MatchResult:
    counter: int
    candidate: bytes
    digest: bytes

    @property
    def hex_digest(self) -> str:
        return self.digest.hex()


@dataclass
class SearchOutcome:
    state: SearchState
    mode: SearchMode
    winner: Optional[MatchResult] = None
    matches: List[MatchResult] = field(default_factory=list)
    match_count: int = 0
    checked: int = 0
    elapsed: float = 0.0

    @property
    def found(self) -> bool:
        return self.state is SearchState.FOUND


# -----------------------------------------------------------------------------
# Partition planning
# -----------------------------------------------------------------------------


def plan_partitions(max_search: int, workers: int) -> List[SearchRange]:
    """Split [0, max_search) into at most `workers` contiguous, non-empty chunks."""
    if max_search < 0:
        raise ValueError("max_search must be non-negative")
    if workers < 1:
        raise ValueError("workers must be at least 1")
    if max_search == 0:
        return []

    n = min(workers, max_search)
    base, extra = divmod(max_search, n)

    ranges = []
    start = 0
    for i in range(n):
        size = base + (1 if i < extra else 0)
        ranges.append(SearchRange(start, start + size))
        start += size
    return ranges


def default_workers() -> int:
    return os.cpu_count() or 1


# -----------------------------------------------------------------------------
# Shared search state
# -----------------------------------------------------------------------------


class SearchContext:
    def __init__(
        self,
        base: DigestContext,
        prefix: TargetPrefix,
        encoder: CandidateEncoder,
        mode: SearchMode,
    ):
        self.base = base
        self.prefix = prefix
        self.encoder = encoder
        self.mode = mode
        self.stop_flag = False
        self.winner: Optional[MatchResult] = None
        self.checked = 0
        self.errors: List[BaseException] = []
        self.claim_lock = Lock()
        self.status_lock = Lock()

    def claim(self, result: MatchResult) -> bool:
        """Record result as the winner. Only the first caller succeeds."""
        with self.claim_lock:
            if self.winner is not None:
                return False
            self.winner = result
            self.stop_flag = True
            return True

    def add_checked(self, n: int):
        with self.status_lock:
            self.checked += n

    def fail(self, exc: BaseException):
        with self.status_lock:
            self.errors.append(exc)
        self.stop_flag = True


def scan_range(
    ctx: SearchContext,
    rng: SearchRange,
    emit: Optional[Callable[[MatchResult], None]] = None,
) -> List[MatchResult]:
    """
    Enumerate one partition. In listing mode every match is passed to
    `emit` as it is found, or collected and returned in counter order when
    no `emit` is given. Matching mode returns an empty list once a claim
    was attempted. `ctx.stop_flag` is polled before every candidate.
    """
    found: List[MatchResult] = []
    listing = ctx.mode is SearchMode.LIST
    trial = ctx.base.trial
    prefix = ctx.prefix

    counter = rng.start
    while counter < rng.stop and not ctx.stop_flag:
        batch_stop = min(counter + ENCODE_BATCH, rng.stop)
        done = 0
        for candidate in ctx.encoder.encode_block(counter, batch_stop):
            if ctx.stop_flag:
                break
            digest = trial(candidate)
            if matches(digest, prefix):
                result = MatchResult(counter + done, candidate, digest)
                if not listing:
                    ctx.claim(result)
                    ctx.add_checked(done + 1)
                    return found
                if emit is not None:
                    emit(result)
                else:
                    found.append(result)
            done += 1
        ctx.add_checked(done)
        counter += done

    return found


def _worker(ctx: SearchContext, rng: SearchRange, results: List, idx: int):
    try:
        results[idx] = scan_range(ctx, rng)
    except Exception as e:
        ctx.fail(e)


# -----------------------------------------------------------------------------
# Coordinator
# -----------------------------------------------------------------------------


class SearchCoordinator:
    def __init__(
        self,
        algorithm: DigestAlgorithm,
        prefix: TargetPrefix,
        encoder: CandidateEncoder,
        max_search: int,
        mode: SearchMode = SearchMode.MATCH,
        workers: Optional[int] = None,
    ):
        prefix.check_fits(algorithm)
        self.algorithm = algorithm
        self.max_search = max_search
        self.workers = workers if workers is not None else default_workers()
        self.partitions = plan_partitions(max_search, self.workers)
        self.state = SearchState.READING
        self.ctx = SearchContext(DigestContext(algorithm), prefix, encoder, mode)

    @property
    def base(self) -> DigestContext:
        return self.ctx.base

    def feed(self, data: bytes):
        if self.state is not SearchState.READING:
            raise RuntimeError(f"cannot feed input while {self.state.value}")
        self.ctx.base.update(data)

    def consume(
        self,
        stream: BinaryIO,
        on_block: Optional[Callable[[bytes], None]] = None,
        block_size: int = BLOCK_SIZE,
    ) -> int:
        """Read stream to EOF into the base context. Returns bytes read."""
        total = 0
        while True:
            block = stream.read(block_size)
            if not block:
                break
            self.feed(block)
            total += len(block)
            if on_block is not None:
                on_block(block)
        return total

    def run(
        self, on_match: Optional[Callable[[MatchResult], None]] = None
    ) -> SearchOutcome:
        """
        Search the planned partitions. In listing mode each match goes to
        `on_match` as soon as it is final in counter order: immediately when
        sequential, or partition by partition as workers finish. Without a
        callback the matches are collected on the outcome instead.
        """
        if self.state is not SearchState.READING:
            raise RuntimeError("search already ran")
        self.state = SearchState.SEARCHING
        ctx = self.ctx
        started = time.time()

        kept: List[MatchResult] = []
        count = 0

        def deliver(result: MatchResult):
            nonlocal count
            count += 1
            if on_match is not None:
                on_match(result)
            else:
                kept.append(result)

        listing = ctx.mode is SearchMode.LIST
        emit = deliver if listing else None

        if len(self.partitions) <= 1:
            for rng in self.partitions:
                scan_range(ctx, rng, emit)
        else:
            self._run_threads(emit)

        if ctx.errors:
            raise ctx.errors[0]

        if listing:
            self.state = SearchState.EXHAUSTED
        else:
            self.state = SearchState.FOUND if ctx.winner else SearchState.EXHAUSTED
            if ctx.winner:
                deliver(ctx.winner)

        return SearchOutcome(
            state=self.state,
            mode=ctx.mode,
            winner=ctx.winner,
            matches=kept,
            match_count=count,
            checked=ctx.checked,
            elapsed=time.time() - started,
        )

    def _run_threads(self, emit: Optional[Callable[[MatchResult], None]]):
        """One thread per partition; partition i is emitted once threads 0..i joined."""
        ctx = self.ctx
        results: List[Optional[List[MatchResult]]] = [None] * len(self.partitions)
        threads = []
        for idx, rng in enumerate(self.partitions):
            t = Thread(
                target=_worker,
                args=(ctx, rng, results, idx),
                name=f"search-{idx}",
                daemon=True,
            )
            t.start()
            threads.append(t)

        try:
            for idx, t in enumerate(threads):
                while t.is_alive():
                    t.join(0.5)
                chunk, results[idx] = results[idx], None
                if emit is not None and chunk and not ctx.errors:
                    for result in chunk:
                        emit(result)
        except BaseException:
            # Ctrl-C or a failing on_match: stop the remaining workers
            ctx.stop_flag = True
            raise
        finally:
            for t in threads:
                t.join()


def run_search(
    data: bytes,
    algorithm: DigestAlgorithm,
    prefix: TargetPrefix,
    encoder: CandidateEncoder,
    max_search: int,
    mode: SearchMode = SearchMode.MATCH,
    workers: Optional[int] = None,
) -> SearchOutcome:
    """One-shot search over in-memory input."""
    coord = SearchCoordinator(algorithm, prefix, encoder, max_search, mode, workers)
    coord.feed(data)
    return coord.run()
