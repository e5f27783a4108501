"""
Transaction runner: build -> simulate -> (sign, submit).

Every call builds a brand-new transaction from the entry point and role
bindings; nothing is cached between attempts except the reference gas price
and shared-object versions, which do not change within a run.
"""

from __future__ import annotations

import logging
from typing import Any

from creek_bot.config.network import get_explorer_tx_url
from creek_bot.config.logging_config import log_tx
from creek_bot.config.protocol import SUI_TYPE
from creek_bot.errors import ConfigurationError, ExecutionError, FeeShortfallError, SuiRPCError
from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.models import EntryPoint, RoleBindings, normalize_sui_address
from creek_bot.helpers.signature_matcher import add_price_refresh, emit_arguments, plan_arguments
from creek_bot.helpers.signer import Ed25519Signer
from creek_bot.helpers.sui_rpc import SuiClient, effects_status
from creek_bot.helpers.transaction import ObjectRef, TransactionBuilder

logger = logging.getLogger(__name__)

MAX_GAS_OBJECTS = 255


class TxRunner:
    def __init__(
        self,
        client: SuiClient,
        catalog: ResourceCatalog,
        settings,
        signer: Ed25519Signer | None = None,
        tx_logger: logging.Logger | None = None,
    ):
        self.client = client
        self.catalog = catalog
        self.settings = settings
        self.signer = signer
        self.tx_logger = tx_logger
        if settings.sender_override:
            self.sender = normalize_sui_address(settings.sender_override)
        elif signer is not None:
            self.sender = signer.address
        else:
            raise ConfigurationError("Set SUI_PRIVATE_KEY (or SUI_ADDRESS for simulation only)")
        self._gas_price: int | None = None

    # ---------- gas ----------

    def gas_price(self) -> int:
        if self._gas_price is None:
            self._gas_price = self.client.get_reference_gas_price()
        return self._gas_price

    def gas_payment(self) -> list[ObjectRef]:
        """Largest SUI coins until they cover the budget."""
        coins = self.catalog.coins(self.sender, SUI_TYPE)
        if not coins:
            raise FeeShortfallError(f"No SUI coins to pay gas for {self.sender}")
        picked, total = [], 0
        for balance, ref in coins[:MAX_GAS_OBJECTS]:
            picked.append(ref)
            total += balance
            if total >= self.settings.gas_budget:
                break
        return picked

    def check_gas_budget(self) -> None:
        """Warn when the budget would not fit in the largest SUI coin."""
        coins = self.catalog.coins(self.sender, SUI_TYPE)
        largest = coins[0][0] if coins else 0
        if largest > 0 and self.settings.gas_budget >= largest:
            clamped = largest - self.settings.min_gas_fallback if largest > self.settings.min_gas_fallback else 0
            if clamped > 0:
                logger.warning(
                    "GAS_BUDGET %d exceeds the largest SUI coin (%d); consider %d",
                    self.settings.gas_budget, largest, clamped,
                )

    # ---------- build ----------

    def build(self, entry: EntryPoint, bindings: RoleBindings) -> bytes:
        # bind first so a missing role fails before any lookup
        plan = plan_arguments(entry.call_parameters, bindings)

        tb = TransactionBuilder(self.sender)
        add_price_refresh(tb, self.catalog, self.settings)
        args = emit_arguments(tb, plan, self.catalog, coin_owner=self.sender, coin_type=self.settings.asset_type)
        type_args = [self.settings.asset_type] if entry.needs_type_argument else []
        tb.move_call(entry.target, args, type_args)
        return tb.build(self.gas_payment(), self.gas_price(), self.settings.gas_budget)

    # ---------- run ----------

    def simulate(self, entry: EntryPoint, bindings: RoleBindings) -> tuple[bool, str | None, dict[str, Any]]:
        result = self.client.dry_run(self.build(entry, bindings))
        ok, err = effects_status(result)
        return ok, err, result

    def submit(self, entry: EntryPoint, bindings: RoleBindings) -> dict[str, Any]:
        """Land the transaction (or only simulate it in dry-run mode).

        Raises ExecutionError carrying the raw chain message when it fails.
        """
        amount = bindings.amount or 0
        if self.settings.dry_run:
            try:
                ok, err, result = self.simulate(entry, bindings)
            except SuiRPCError as e:
                logger.info("dryRun status: rejected by node | %s", e)
                raise ExecutionError(str(e), last_message=str(e), amount=amount) from e
            logger.info("dryRun status: %s%s", "success" if ok else "failure", f" | {err}" if err else "")
            self._log_events(result)
            if not ok:
                raise ExecutionError(err, last_message=err, amount=amount)
            return result

        if self.signer is None:
            raise ConfigurationError("Submitting needs SUI_PRIVATE_KEY")

        tx_bytes = self.build(entry, bindings)
        try:
            result = self.client.execute(tx_bytes, [self.signer.sign_transaction(tx_bytes)])
        except SuiRPCError as e:
            self._audit(amount, None, str(e))
            raise ExecutionError(str(e), last_message=str(e), amount=amount) from e

        digest = result.get("digest") or (result.get("effects") or {}).get("transactionDigest")
        ok, err = effects_status(result)
        logger.info("digest: %s", digest)
        logger.info("status: %s", "success" if ok else "failure")
        self._audit(amount, digest, err)
        if not ok:
            raise ExecutionError(err, last_message=err, amount=amount)
        logger.info("Explorer: %s", get_explorer_tx_url(digest))
        self._log_events(result)
        return result

    def _audit(self, amount: int, digest: str | None, error: str | None) -> None:
        if self.tx_logger is not None:
            log_tx(self.tx_logger, self.settings.action, amount, digest, success=error is None, error=error)

    @staticmethod
    def _log_events(result: dict[str, Any]) -> None:
        events = result.get("events") or []
        if events:
            logger.info("events:")
            for event in events:
                logger.info("  - %s %s", event.get("type"), event.get("parsedJson") or "")
