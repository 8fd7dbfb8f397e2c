"""
Target prefixes and the bit-granular digest comparison.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Optional

from .config import ConfigurationError
from .digest import DigestAlgorithm

HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class TargetPrefix:
    data: bytes  # whole bytes that must match exactly
    nibble: Optional[int]  # high-nibble value (0x00..0xF0) of the next byte, if any
    bit_length: int

    @classmethod
    def from_hex(cls, text: str) -> "TargetPrefix":
        """Parse a hex string; an odd trailing digit becomes a high nibble."""
        if not text:
            raise ConfigurationError("missing hex prefix")
        if not all(c in HEX_DIGITS for c in text):
            raise ConfigurationError(f"hex prefix must contain only 0-9a-f: {text}")

        text = text.lower()
        whole = len(text) - (len(text) % 2)
        data = bytes.fromhex(text[:whole])
        nibble = int(text[whole:], 16) << 4 if whole != len(text) else None
        return cls(data=data, nibble=nibble, bit_length=4 * len(text))

    @property
    def hex(self) -> str:
        out = self.data.hex()
        if self.nibble is not None:
            out += f"{self.nibble >> 4:x}"
        return out

    def check_fits(self, algorithm: DigestAlgorithm) -> None:
        if self.bit_length > algorithm.bits:
            raise ConfigurationError(
                f"prefix is {self.bit_length} bits but {algorithm.name} "
                f"digests are only {algorithm.bits} bits"
            )


def matches(digest: bytes, prefix: TargetPrefix) -> bool:
    n = len(prefix.data)
    if digest[:n] != prefix.data:
        return False
    if prefix.nibble is None:
        return True
    return len(digest) > n and (digest[n] & 0xF0) == prefix.nibble
