"""
Repay debt on the wallet's Creek position from the wallet's coins.

The repay entry takes a ``Coin<T>`` rather than a u64, so each attempt splits
a coin of the wanted size from the wallet inside the same transaction.
Amounts are capped by the wallet balance of the debt asset.

Usage:
  creek-bot repay --amount 1000000000          # 1 GUSD
  creek-bot repay --mode all --dry-run         # whole wallet balance
  creek-bot repay --list-only                  # resolve the target and stop

Env:
  REPAY_TYPE (or TYPE_GUSD), REPAY_MODE (amount|percent|all|max),
  REPAY_AMOUNT, REPAY_PERCENT, REPAY_TARGET, EXTRA_PACKAGES, LIST_ONLY
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from creek_bot.commands.common import log_banner, open_session, run_action
from creek_bot.helpers.models import ExecutionOutcome
from creek_bot.helpers.sui_rpc import SuiClient


def run(
    settings,
    logger: logging.Logger,
    client: SuiClient | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[ExecutionOutcome]:
    session = open_session(settings, sleep=sleep, client=client)
    log_banner(logger, "CREEK REPAY", session)
    # the position is only an argument here; no collateral lookup needed
    outcomes = run_action(session, "repay", None, logger, allow_drain=False)
    if outcomes:
        logger.info("Repaid %d (raw)", outcomes[-1].final_amount)
    return outcomes
