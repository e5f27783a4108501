"""
Borrow against the wallet's Creek position.

Prices for the collateral and the debt asset are refreshed in the same
transaction, each with its own TTL (COLLATERAL_TTL, DEBT_TTL).

Usage:
  creek-bot borrow --amount 10000000000       # 10 GUSD
  creek-bot borrow --mode all --dry-run       # largest amount that simulates

Env:
  COLLATERAL_TYPE, DEBT_TYPE, BORROW_MODE, BORROW_AMOUNT, BORROW_TARGET
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
    log_banner(logger, "CREEK BORROW", session)
    for asset in settings.refresh_assets:
        logger.info("Refresh  : %s (ttl=%d)", asset.asset_type, asset.ttl)

    collateral_type = settings.refresh_assets[0].asset_type
    # repeated max borrows would walk the position to its liquidation edge
    outcomes = run_action(session, "borrow", collateral_type, logger, allow_drain=False)
    if outcomes:
        logger.info("Borrowed %d (raw)", outcomes[-1].final_amount)
    return outcomes
