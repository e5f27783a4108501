"""
Probe engine and entry selection.

A probe simulates the full transaction (price refresh preamble + call) at a
trial amount and classifies the outcome. It never submits.
"""

from __future__ import annotations

import logging
from typing import Sequence

from creek_bot.errors import ConfigurationError, DiscoveryError, SuiRPCError
from creek_bot.helpers.failures import FailureClassifier
from creek_bot.helpers.models import (
    EntryPoint,
    EntrySelection,
    ProbeResult,
    RankedEntry,
    RegistrySelection,
    RoleBindings,
)

logger = logging.getLogger(__name__)

# Errors that only mean "this candidate is broken"; fee problems propagate.
CANDIDATE_ERRORS = (ConfigurationError, SuiRPCError)


class ProbeEngine:
    def __init__(self, runner, classifier: FailureClassifier):
        self.runner = runner
        self.classifier = classifier

    def probe(self, entry: EntryPoint, amount: int, bindings: RoleBindings) -> ProbeResult:
        try:
            ok, err, _ = self.runner.simulate(entry, bindings.with_amount(amount))
        except SuiRPCError as e:
            # the node refused to simulate at all (bad inputs, arity ...)
            ok, err = False, str(e)

        if ok:
            logger.debug("probe %s amount=%d: accepted", entry.qualified_name, amount)
            return ProbeResult(accepted=True, amount=amount)

        kind = self.classifier.classify(err)
        logger.debug("probe %s amount=%d: %s | %s", entry.qualified_name, amount, kind.value, err)
        if self.classifier.is_signature_mismatch(err):
            logger.warning("Signature mismatch for %s: %s", entry.target, err)
        return ProbeResult(accepted=False, error_message=err, classification=kind, amount=amount)


def select_entry(
    candidates: Sequence[RankedEntry],
    bindings: RoleBindings,
    probe_engine: ProbeEngine,
    registry_picker,
) -> EntrySelection:
    """Pick the entry to use for this run.

    The best entry that takes a price registry is tried first, with a registry
    chosen by the picker. Otherwise registry-free entries are probed at amount
    1 in rank order; the first one that is accepted or only size-limited wins.
    """
    with_registry = [c for c in candidates if c.needs_registry]
    without_registry = [c for c in candidates if not c.needs_registry]

    if with_registry:
        top = with_registry[0]
        selection = registry_picker.select(top, bindings)
        if selection.registry_id:
            logger.info("DecimalsRegistry: %s%s", selection.registry_id, "" if selection.verified else " (unverified)")
            return EntrySelection(top, selection)
        logger.warning("No usable registry for %s", top.entry.target)

    for ranked in without_registry:
        try:
            result = probe_engine.probe(ranked.entry, 1, bindings)
        except CANDIDATE_ERRORS as e:
            logger.debug("Skipping %s: %s", ranked.entry.target, e)
            continue
        if result.usable:
            logger.info("Using entry without registry: %s", ranked.entry.target)
            return EntrySelection(ranked, RegistrySelection(None))
        logger.debug("Entry %s rejected: %s", ranked.entry.target, result.error_message)

    raise DiscoveryError(
        "No usable entry (with or without registry). "
        "Hint: set DECIMALS_REGISTRY_ID=<shared/immutable id> or ALLOW_REGISTRY_BEST_EFFORT=1"
    )
