"""
Withdraw collateral from the wallet's Creek position.

Usage:
  creek-bot withdraw --env .env.testnet --mode all            # drain
  creek-bot withdraw --amount 10000000 --dry-run              # 0.01 SUI, simulate only

Env:
  ASSET_TYPE, WITHDRAW_MODE (amount|percent|all), WITHDRAW_AMOUNT,
  WITHDRAW_PERCENT, WITHDRAW_TARGET, DRAIN, DRAIN_MIN_DUST
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
    log_banner(logger, "WITHDRAW COLLATERAL", session)
    outcomes = run_action(session, "withdraw", settings.asset_type, logger, allow_drain=True)
    total = sum(o.final_amount for o in outcomes)
    logger.info("Withdrawn %d (raw) in %d transaction(s)", total, len(outcomes))
    return outcomes
