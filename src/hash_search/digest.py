"""
Digest algorithm registry and cloneable running digest state.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import List

from .config import ConfigurationError


@dataclass(frozen=True)
class DigestAlgorithm:
    name: str
    digest_size: int  # bytes

    @property
    def bits(self) -> int:
        return self.digest_size * 8


def available_algorithms() -> List[str]:
    """Fixed-length algorithms hashlib can construct on this interpreter."""
    names = set()
    for name in hashlib.algorithms_available:
        name = name.lower()
        if name.startswith("shake"):
            continue  # variable-length output
        try:
            hashlib.new(name)
        except ValueError:
            continue
        names.add(name)
    return sorted(names)


def lookup_algorithm(name: str) -> DigestAlgorithm:
    key = (name or "").strip().lower()
    if key not in available_algorithms():
        raise ConfigurationError(f"unknown digest algorithm: {name}")
    return DigestAlgorithm(name=key, digest_size=hashlib.new(key).digest_size)


class DigestContext:
    """
    Running digest state plus the number of bytes fed into it.

    Clones never share state with their source: finalizing or updating a
    clone leaves the source untouched. A finalized context is consumed
    and rejects any further use.
    """

    __slots__ = ("algorithm", "byte_count", "_state", "_finalized")

    def __init__(self, algorithm: DigestAlgorithm, _state=None, byte_count: int = 0):
        self.algorithm = algorithm
        self.byte_count = byte_count
        self._state = _state if _state is not None else hashlib.new(algorithm.name)
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def _check_live(self):
        if self._finalized:
            raise RuntimeError("digest context already finalized")

    def update(self, data: bytes) -> None:
        self._check_live()
        self._state.update(data)
        self.byte_count += len(data)

    def clone(self) -> "DigestContext":
        self._check_live()
        return DigestContext(self.algorithm, self._state.copy(), self.byte_count)

    def finalize(self) -> bytes:
        self._check_live()
        self._finalized = True
        digest = self._state.digest()
        self._state = None
        return digest

    def peek(self) -> bytes:
        """Digest of everything fed so far, leaving this context usable."""
        return self.clone().finalize()

    def trial(self, suffix: bytes) -> bytes:
        """Digest of the current data followed by suffix. Read-only on self."""
        self._check_live()
        h = self._state.copy()
        h.update(suffix)
        return h.digest()
