"""
Run configuration, constants and the configuration error type.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

BLOCK_SIZE = 16384  # bytes per stdin read
PROGRESS_BLOCKS = 256  # print a progress dot every N blocks when piped
PRINT_INTERVAL = 1.0  # seconds between status lines (--stats)
ENCODE_BATCH = 4096  # counters encoded per worker batch

DEFAULT_BITS = 24
DEFAULT_DIGEST = "md5"
MIN_BITS = 1
MAX_BITS = 64


class ConfigurationError(ValueError):
    """Bad digest name, bit count or hex prefix. Raised before input is read."""


@dataclass
class CliConfig:
    hexprefix: str
    bits: int
    digest: str
    encoding: str
    threads: Optional[int]
    listing: bool
    stats: bool


def max_search_for_bits(bits: int) -> int:
    """Upper bound (exclusive) of the counter range for a -b value."""
    if not MIN_BITS <= bits <= MAX_BITS:
        raise ConfigurationError(f"invalid number of bits: {bits}")
    return (1 << bits) - 1


def parse_bits(value: str) -> int:
    try:
        bits = int(value, 10)
    except (TypeError, ValueError):
        raise ConfigurationError(f"invalid number of bits: {value}") from None
    max_search_for_bits(bits)
    return bits


def parse_threads(value: str) -> int:
    try:
        threads = int(value, 10)
    except (TypeError, ValueError):
        raise ConfigurationError(f"invalid number of threads: {value}") from None
    if threads < 1:
        raise ConfigurationError(f"invalid number of threads: {value}")
    return threads
