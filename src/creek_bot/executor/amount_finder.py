"""
Adaptive amount finder.

Exploration doubles the trial amount until the first rejection or the
ceiling; exploitation binary-searches the gap between the last accepted
amount and the first rejected one. Every value returned has itself been
accepted by a probe.
"""

from __future__ import annotations

import logging

from creek_bot.helpers.models import EntryPoint, RoleBindings

logger = logging.getLogger(__name__)


class AmountFinder:
    def __init__(self, probe_engine):
        self.probe_engine = probe_engine
        self.probe_count = 0

    def _probe(self, entry: EntryPoint, amount: int, bindings: RoleBindings):
        self.probe_count += 1
        return self.probe_engine.probe(entry, amount, bindings)

    def find_max(self, entry: EntryPoint, bindings: RoleBindings, start_guess: int, ceiling: int) -> int:
        """Largest amount that simulates cleanly, or 0 when none does."""
        self.probe_count = 0
        if start_guess < 1:
            raise ValueError("start_guess must be >= 1")

        # Phase 1: grow
        lo, hi = 0, start_guess
        while hi <= ceiling:
            result = self._probe(entry, hi, bindings)
            if result.accepted:
                lo, hi = hi, hi * 2
            elif result.resource_limited:
                break
            else:
                logger.info("Probe at %d failed outside the limit patterns: %s", hi, result.error_message)
                return 0
        if lo == 0:
            return 0

        # Phase 2: any rejection narrows the upper bound
        best, left, right = lo, lo + 1, min(hi - 1, ceiling)
        while left <= right:
            mid = (left + right) // 2
            if self._probe(entry, mid, bindings).accepted:
                best, left = mid, mid + 1
            else:
                right = mid - 1

        logger.debug("find_max: %d after %d probes", best, self.probe_count)
        return best


def resolve_desired_amount(settings, available: int | None) -> int | None:
    """Amount to attempt first; None means "ask the finder".

    ``amount`` uses the configured raw amount, ``percent`` a share of the known
    available amount (position collateral for withdraw, wallet balance for
    repay), ``all`` always defers to the finder. Known availability clamps the
    result.
    """
    if settings.mode == "all":
        return None

    if settings.mode == "percent":
        if available is None:
            logger.warning("Available amount unknown; percent mode falls back to the adaptive finder")
            return None
        pct = max(1, min(100, settings.percent))
        desired = max(1, available * pct // 100)
    else:
        desired = settings.amount

    if available is not None and desired > available:
        logger.warning("Desired %d > available %d; clamped", desired, available)
        desired = available
    return desired or None
