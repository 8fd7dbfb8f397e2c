"""
Candidate encodings: how a 64-bit counter turns into suffix bytes.

Two layouts exist:

- ``bytes``: low 32 bits of the counter as 4 little-endian bytes. Counters
  at or above 2**32 alias onto smaller ones; with ``-b`` above 32 the
  search revisits the same suffixes.
- ``decimal``: canonical base-10 ASCII text, no leading zeros.

The layout is picked once per run and never changes mid-search.
"""

from __future__ import annotations

import struct
from enum import Enum
from typing import List

import numpy as np

from .config import ConfigurationError

U32_MASK = 0xFFFFFFFF
U64_MAX = (1 << 64) - 1


class CandidateEncoding(str, Enum):
    BINARY_LE = "bytes"
    ASCII_DECIMAL = "decimal"

    @property
    def tag(self) -> str:
        return self.value


class CandidateEncoder:
    def __init__(self, encoding: CandidateEncoding = CandidateEncoding.BINARY_LE):
        self.encoding = CandidateEncoding(encoding)

    @classmethod
    def from_name(cls, name: str) -> "CandidateEncoder":
        try:
            return cls(CandidateEncoding(name))
        except ValueError:
            choices = ", ".join(e.value for e in CandidateEncoding)
            raise ConfigurationError(
                f"unknown encoding: {name} (choose from {choices})"
            ) from None

    @property
    def tag(self) -> str:
        return self.encoding.tag

    def encode(self, counter: int) -> bytes:
        if not 0 <= counter <= U64_MAX:
            raise ValueError(f"counter out of range: {counter}")
        if self.encoding is CandidateEncoding.BINARY_LE:
            return struct.pack("<I", counter & U32_MASK)
        return b"%d" % counter

    def encode_block(self, start: int, stop: int) -> List[bytes]:
        """Encode every counter in [start, stop)."""
        if stop <= start:
            return []
        if start < 0 or stop - 1 > U64_MAX:
            raise ValueError(f"counter range out of bounds: {start}..{stop}")

        if self.encoding is CandidateEncoding.ASCII_DECIMAL:
            return [b"%d" % c for c in range(start, stop)]

        # Only the low 32 bits matter; offsetting in uint64 keeps values above
        # 2**63 away from numpy's signed conversion path.
        counters = np.arange(stop - start, dtype=np.uint64) + np.uint64(start)
        raw = (counters & np.uint64(U32_MASK)).astype("<u4").tobytes()
        return [raw[i : i + 4] for i in range(0, len(raw), 4)]

    def decode(self, data: bytes) -> int:
        if self.encoding is CandidateEncoding.BINARY_LE:
            if len(data) != 4:
                raise ValueError(f"expected 4 bytes, got {len(data)}")
            (value,) = struct.unpack("<I", data)
            return value

        text = bytes(data).decode("ascii")
        if not text.isdigit() or (len(text) > 1 and text[0] == "0"):
            raise ValueError(f"not a canonical decimal counter: {text!r}")
        value = int(text)
        if value > U64_MAX:
            raise ValueError(f"counter out of range: {text}")
        return value

    def format_counter(self, counter: int) -> str:
        if self.encoding is CandidateEncoding.BINARY_LE:
            return f"{counter:#x}"
        return str(counter)
