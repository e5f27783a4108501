"""
Failure classification for simulated and submitted transactions.

The pattern sets are configuration (config.protocol defaults, overridable via
FEE_PATTERNS / LIMIT_PATTERNS / MISMATCH_PATTERNS) because they are tied to a
specific protocol's abort vocabulary.
"""

from __future__ import annotations

from typing import Iterable

from creek_bot.config.protocol import (
    DEFAULT_FEE_PATTERNS,
    DEFAULT_LIMIT_PATTERNS,
    DEFAULT_MISMATCH_PATTERNS,
)
from creek_bot.helpers.models import FailureKind


class FailureClassifier:
    """Case-insensitive substring matching; fee patterns take priority."""

    def __init__(
        self,
        fee_patterns: Iterable[str] = DEFAULT_FEE_PATTERNS,
        limit_patterns: Iterable[str] = DEFAULT_LIMIT_PATTERNS,
        mismatch_patterns: Iterable[str] = DEFAULT_MISMATCH_PATTERNS,
    ):
        self.fee_patterns = tuple(p.lower() for p in fee_patterns)
        self.limit_patterns = tuple(p.lower() for p in limit_patterns)
        self.mismatch_patterns = tuple(p.lower() for p in mismatch_patterns)

    @classmethod
    def from_settings(cls, settings) -> "FailureClassifier":
        return cls(settings.fee_patterns, settings.limit_patterns, settings.mismatch_patterns)

    def classify(self, message: str | None) -> FailureKind:
        text = (message or "").lower()
        if any(p in text for p in self.fee_patterns):
            return FailureKind.FEE_SHORTFALL
        if any(p in text for p in self.limit_patterns):
            return FailureKind.RESOURCE_LIMIT
        return FailureKind.OTHER

    def is_signature_mismatch(self, message: str | None) -> bool:
        text = (message or "").lower()
        return any(p in text for p in self.mismatch_patterns)
