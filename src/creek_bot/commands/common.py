"""
Wiring shared by the withdraw, borrow and repay commands.

``Session.open`` builds the collaborator graph once per run; ``run_action``
is the full flow: locate position -> choose entry (+ registry) -> decide the
amount -> execute with shrink-on-limit retry -> optional drain.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from creek_bot.config.logging_config import setup_tx_logger
from creek_bot.config.protocol import SUI_TYPE
from creek_bot.config.settings import Settings
from creek_bot.errors import ConfigurationError, DiscoveryError, ExecutionError
from creek_bot.executor.amount_finder import AmountFinder, resolve_desired_amount
from creek_bot.executor.probe import ProbeEngine, select_entry
from creek_bot.executor.resilient_executor import ResilientExecutor
from creek_bot.executor.tx_runner import TxRunner
from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.entry_discovery import fallback_entry, resolve_entries
from creek_bot.helpers.failures import FailureClassifier
from creek_bot.helpers.models import EntrySelection, ExecutionOutcome, PositionPick, RoleBindings
from creek_bot.helpers.positions import PositionLocator
from creek_bot.helpers.registry_picker import RegistryPicker
from creek_bot.helpers.signer import Ed25519Signer
from creek_bot.helpers.sui_rpc import SuiClient


def load_signer(settings) -> Ed25519Signer | None:
    if settings.private_key:
        return Ed25519Signer.from_private_key(settings.private_key)
    if settings.sender_override and settings.dry_run:
        return None
    raise ConfigurationError("SUI_PRIVATE_KEY / PRIVATE_KEY is not set")


@dataclass
class Session:
    settings: Settings
    client: SuiClient
    catalog: ResourceCatalog
    classifier: FailureClassifier
    runner: TxRunner
    probe_engine: ProbeEngine
    finder: AmountFinder
    executor: ResilientExecutor
    registry_picker: RegistryPicker

    @classmethod
    def open(
        cls,
        settings,
        signer: Ed25519Signer | None = None,
        client: SuiClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
        tx_logger: logging.Logger | None = None,
    ) -> "Session":
        client = client or SuiClient(settings.fullnode_url)
        catalog = ResourceCatalog(client)
        classifier = FailureClassifier.from_settings(settings)
        runner = TxRunner(client, catalog, settings, signer=signer, tx_logger=tx_logger)
        probe_engine = ProbeEngine(runner, classifier)
        return cls(
            settings=settings,
            client=client,
            catalog=catalog,
            classifier=classifier,
            runner=runner,
            probe_engine=probe_engine,
            finder=AmountFinder(probe_engine),
            executor=ResilientExecutor.from_settings(runner, classifier, settings, sleep=sleep),
            registry_picker=RegistryPicker.from_settings(catalog, probe_engine, settings),
        )

    @property
    def sender(self) -> str:
        return self.runner.sender


def base_bindings(settings, pick: PositionPick) -> RoleBindings:
    return RoleBindings(
        version_id=settings.version_id,
        position_id=pick.position_id,
        capability_id=pick.capability_id,
        market_id=settings.market_id,
        registry_id=None,
        oracle_id=settings.x_oracle_id,
        clock_id=settings.clock_id,
    )


def choose_entry(session: Session, action: str, bindings: RoleBindings, logger: logging.Logger) -> EntrySelection:
    """Discovered (or overridden) entries first; the protocol's known target once if none works."""
    settings = session.settings
    candidates = resolve_entries(action, settings, session.catalog)
    try:
        return select_entry(candidates, bindings, session.probe_engine, session.registry_picker)
    except DiscoveryError:
        if settings.target_override:
            raise
        fallback = fallback_entry(action, settings.protocol_pkg, session.catalog)
        if fallback is None or fallback.entry.target in {c.entry.target for c in candidates}:
            raise
        logger.warning("No discovered entry works; retrying with %s", fallback.entry.target)
        return select_entry([fallback], bindings, session.probe_engine, session.registry_picker)


def log_banner(logger: logging.Logger, title: str, session: Session) -> None:
    settings = session.settings
    logger.info("== %s ==", title)
    logger.info("Fullnode : %s", settings.fullnode_url)
    logger.info("Address  : %s", session.sender)
    sui = session.catalog.balance(session.sender, SUI_TYPE)
    logger.info("SUI bal  : %s", "unknown" if sui is None else sui)
    logger.info("Version  : %s", settings.version_id)
    logger.info("Market   : %s", settings.market_id)
    logger.info("Oracle   : %s", settings.x_oracle_id)
    logger.info("Rule     : %s", settings.rule_pkg)
    logger.info("Clock    : %s", settings.clock_id)
    logger.info("Asset    : %s", settings.asset_type)
    if settings.mode == "amount":
        logger.info("Mode     : amount (raw=%d)", settings.amount)
    elif settings.mode == "percent":
        logger.info("Mode     : percent (%d%%)", settings.percent)
    else:
        logger.info("Mode     : all (drain=%s)", "yes" if settings.wants_drain else "no")
    if settings.dry_run:
        logger.info("DRYRUN   : simulate only")


def wallet_available(session: Session, coin_type: str) -> int:
    """Wallet balance of ``coin_type``; a coin-funded action needs some."""
    balance = session.catalog.balance(session.sender, coin_type)
    if not balance:
        raise ConfigurationError(f"No {coin_type} balance in {session.sender}")
    return balance


def run_action(
    session: Session,
    action: str,
    collateral_type: str | None,
    logger: logging.Logger,
    allow_drain: bool = True,
) -> list[ExecutionOutcome]:
    """Run one action end to end; raises a CreekBotError subclass on terminal failure."""
    settings = session.settings

    pick = PositionLocator.from_settings(session.catalog, settings).locate(session.sender, collateral_type)
    logger.info(
        "Picked key=%s obligation=%s available=%s",
        pick.capability_id, pick.position_id, "unknown" if pick.available is None else pick.available,
    )
    if action == "withdraw":
        available = pick.available
    elif action == "repay":
        available = wallet_available(session, settings.asset_type)
        logger.info("Wallet   : %d (raw) of %s", available, settings.asset_type)
    else:
        available = None
    desired = resolve_desired_amount(settings, available)
    ceiling = settings.probe_ceiling if available is None else max(1, min(settings.probe_ceiling, available))
    start = min(settings.probe_start, ceiling)

    bindings = base_bindings(settings, pick)
    selection = choose_entry(session, action, bindings, logger)
    bindings = bindings.with_registry(selection.registry.registry_id)
    entry = selection.entry
    logger.info("Target   : %s (score %d)", entry.target, selection.ranked.score)
    if settings.list_only:
        logger.info("LIST_ONLY: target verified, nothing submitted")
        return []

    session.runner.check_gas_budget()

    if desired is None:
        desired = session.finder.find_max(entry, bindings, start, ceiling)
        if desired == 0:
            raise ExecutionError(
                f"No valid amount found via probing; set {action.upper()}_AMOUNT manually", amount=0
            )
        logger.info("Max %s (via probe): %d", action, desired)

    try:
        outcomes = [session.executor.execute(entry, bindings, desired)]
    except ExecutionError:
        registry = selection.registry.registry_id
        logger.warning("Note: entry %s", f"needs registry {registry}" if registry else "without registry")
        raise

    if allow_drain and settings.wants_drain:
        if settings.dry_run:
            logger.info("Drain skipped in dry-run mode (chain state does not change)")
        else:
            logger.info("Drain mode: repeating until dust")
            outcomes += session.executor.drain(
                entry, bindings, session.finder, start, ceiling, settings.drain_min_dust
            )
    return outcomes


def open_session(settings, sleep: Callable[[float], None] = time.sleep, client: SuiClient | None = None) -> Session:
    """Session with the signer from settings and the per-action audit log."""
    signer = load_signer(settings)
    return Session.open(settings, signer=signer, client=client, sleep=sleep, tx_logger=setup_tx_logger(settings.action))
