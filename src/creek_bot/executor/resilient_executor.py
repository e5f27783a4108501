"""
Resilient executor.

Submits at the current amount; a resource-limit rejection halves the amount
and retries after a fixed backoff, a fee shortfall aborts at once (a smaller
principal does not make gas cheaper), and any other failure aborts without
retry. Drain mode repeats find-max + execute until only dust is left.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from creek_bot.errors import AmountExhaustedError, ExecutionError, FeeShortfallError
from creek_bot.helpers.failures import FailureClassifier
from creek_bot.helpers.models import EntryPoint, ExecutionOutcome, FailureKind, RoleBindings

logger = logging.getLogger(__name__)

DRAIN_PAUSE_SECONDS = 0.5


class ResilientExecutor:
    def __init__(
        self,
        runner,
        classifier: FailureClassifier,
        max_attempts: int = 4,
        retry_wait_ms: int = 1500,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.runner = runner
        self.classifier = classifier
        self.max_attempts = max(1, max_attempts)
        self.retry_wait_ms = retry_wait_ms
        self.sleep = sleep

    @classmethod
    def from_settings(cls, runner, classifier: FailureClassifier, settings, sleep: Callable[[float], None] = time.sleep):
        return cls(runner, classifier, settings.retry_max, settings.retry_wait_ms, sleep)

    def execute(
        self,
        entry: EntryPoint,
        bindings: RoleBindings,
        desired_amount: int,
        max_attempts: int | None = None,
    ) -> ExecutionOutcome:
        attempts = max(1, max_attempts or self.max_attempts)
        amount = desired_amount
        last_message: str | None = None

        for attempt in range(1, attempts + 1):
            logger.info("-- attempt %d/%d want=%d", attempt, attempts, amount)
            try:
                result = self.runner.submit(entry, bindings.with_amount(amount))
            except FeeShortfallError:
                raise
            except ExecutionError as e:
                last_message = e.last_message or str(e)
                logger.warning("execute error: %s", last_message)
                kind = self.classifier.classify(last_message)

                if kind is FailureKind.FEE_SHORTFALL:
                    logger.warning("Gas low: check GAS_BUDGET against the SUI balance or top up SUI")
                    raise FeeShortfallError(
                        f"Fee shortfall at amount {amount}: {last_message}", last_message=last_message, amount=amount
                    ) from e

                if kind is FailureKind.RESOURCE_LIMIT:
                    next_amount = amount // 2
                    if next_amount == 0:
                        raise AmountExhaustedError(
                            f"Amount shrank to 0: {last_message}", last_message=last_message, amount=amount
                        ) from e
                    amount = next_amount
                    if attempt < attempts:
                        self.sleep(self.retry_wait_ms / 1000)
                    continue

                if self.classifier.is_signature_mismatch(last_message):
                    logger.warning("Looks like a signature mismatch; check the selected entry point")
                raise ExecutionError(
                    f"Aborted on unclassified failure: {last_message}", last_message=last_message, amount=amount
                ) from e

            return ExecutionOutcome(
                success=True,
                final_amount=amount,
                digest=result.get("digest"),
                attempts=attempt,
                events=list(result.get("events") or []),
            )

        raise ExecutionError(
            f"Gave up after {attempts} attempts: {last_message}", last_message=last_message, amount=amount
        )

    def drain(
        self,
        entry: EntryPoint,
        bindings: RoleBindings,
        finder,
        start_guess: int,
        ceiling: int,
        dust: int = 0,
    ) -> list[ExecutionOutcome]:
        """Repeat find-max + execute until the discovered maximum is at or below ``dust``.

        Other execution failures end the drain with what landed so far; a fee
        shortfall propagates.
        """
        outcomes: list[ExecutionOutcome] = []
        while True:
            next_max = finder.find_max(entry, bindings, start_guess, ceiling)
            if next_max == 0 or next_max <= dust:
                logger.info("Drain done; remaining max %d <= dust %d", next_max, dust)
                return outcomes
            try:
                outcomes.append(self.execute(entry, bindings, next_max))
            except FeeShortfallError:
                logger.error("Drain stopped on fee shortfall after %d transaction(s)", len(outcomes))
                raise
            except ExecutionError as e:
                logger.warning("Drain stopped: %s", e)
                return outcomes
            self.sleep(DRAIN_PAUSE_SECONDS)
