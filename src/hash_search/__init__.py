"""
Partial digest preimage search: find bytes to append to a stream so that
its digest starts with a chosen hex prefix.
"""

from .config import ConfigurationError
from .digest import DigestAlgorithm, DigestContext, available_algorithms, lookup_algorithm
from .encoding import CandidateEncoder, CandidateEncoding
from .prefix import TargetPrefix, matches
from .search import (
    MatchResult,
    SearchCoordinator,
    SearchMode,
    SearchOutcome,
    SearchRange,
    SearchState,
    plan_partitions,
    run_search,
)

__version__ = "1.0.0"

__all__ = [
    "CandidateEncoder",
    "CandidateEncoding",
    "ConfigurationError",
    "DigestAlgorithm",
    "DigestContext",
    "MatchResult",
    "SearchCoordinator",
    "SearchMode",
    "SearchOutcome",
    "SearchRange",
    "SearchState",
    "TargetPrefix",
    "available_algorithms",
    "lookup_algorithm",
    "matches",
    "plan_partitions",
    "run_search",
]
