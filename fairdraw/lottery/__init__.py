"""Commit-reveal draw engine."""

from .commitment import hash_secret, make_commitment, verify_commitment
from .engine import DrawEngine, FinalizationResult
from .queries import DrawSummary, ReplayResult
from .registry import DEFAULT_REGISTRY, DrawRegistry
from .selection import WinnerSelection, aggregate_secrets, select_winner

__all__ = [
    "DEFAULT_REGISTRY",
    "DrawEngine",
    "DrawRegistry",
    "DrawSummary",
    "FinalizationResult",
    "ReplayResult",
    "WinnerSelection",
    "aggregate_secrets",
    "hash_secret",
    "make_commitment",
    "select_winner",
    "verify_commitment",
]
