#!/usr/bin/env python3
"""
creek-bot command line.

  creek-bot withdraw [--env FILE] [--mode amount|percent|all] [--amount RAW] [--dry-run]
  creek-bot borrow   [--env FILE] [--amount RAW] [--dry-run]
  creek-bot repay    [--env FILE] [--mode amount|percent|all] [--amount RAW] [--list-only]
  creek-bot discover withdraw|borrow|repay [--env FILE]
"""

from __future__ import annotations

import argparse

from creek_bot.config.logging_config import configure_library_logging, get_command_logger
from creek_bot.config.settings import AMOUNT_MODES, Settings, load_env
from creek_bot.errors import CreekBotError, ExecutionError


def _settings_for(args: argparse.Namespace, action: str) -> Settings:
    load_env(args.env_file)
    settings = Settings.from_env(action)
    return settings.with_overrides(
        mode=getattr(args, "mode", None),
        amount=getattr(args, "amount", None),
        percent=getattr(args, "percent", None),
        dry_run=True if getattr(args, "dry_run", False) else None,
        list_only=True if getattr(args, "list_only", False) else None,
        target_override=getattr(args, "target", None),
    )


def _run_command(args: argparse.Namespace, action: str, runner) -> int:
    logger = get_command_logger(action, debug=args.verbose)
    configure_library_logging(debug=args.verbose)
    try:
        settings = _settings_for(args, action)
        runner(settings, logger)
    except ExecutionError as e:
        logger.error("FATAL: %s", e)
        if e.last_message and e.last_message not in str(e):
            logger.error("Last chain message: %s", e.last_message)
        return 1
    except CreekBotError as e:
        logger.error("FATAL: %s", e)
        return 1
    return 0


def cmd_withdraw(args: argparse.Namespace) -> int:
    from creek_bot.commands import withdraw

    return _run_command(args, "withdraw", withdraw.run)


def cmd_borrow(args: argparse.Namespace) -> int:
    from creek_bot.commands import borrow

    return _run_command(args, "borrow", borrow.run)


def cmd_repay(args: argparse.Namespace) -> int:
    from creek_bot.commands import repay

    return _run_command(args, "repay", repay.run)


def cmd_discover(args: argparse.Namespace) -> int:
    from creek_bot.commands import discover

    return _run_command(
        args,
        args.action,
        lambda settings, logger: discover.run(settings, args.action, logger, limit=args.limit),
    )


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--env", dest="env_file", help="Path to .env file loaded over ./.env")
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")


def _add_execution(p: argparse.ArgumentParser) -> None:
    _add_common(p)
    p.add_argument("--mode", choices=AMOUNT_MODES, help="Amount mode (overrides <ACTION>_MODE)")
    p.add_argument("--amount", type=int, help="Raw amount in the asset's smallest unit")
    p.add_argument("--percent", type=int, help="Percent of the available amount (percent mode)")
    p.add_argument("--dry-run", dest="dry_run", action="store_true", help="Simulate only, never submit")
    p.add_argument("--target", help="Explicit <package>::<module>::<function>, bypasses discovery")
    p.add_argument("--list-only", dest="list_only", action="store_true", help="Resolve and verify the target, then stop")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Creek lending bot for Sui")
    sub = parser.add_subparsers(dest="cmd")

    p_withdraw = sub.add_parser("withdraw", help="Withdraw collateral (amount, percent, or drain everything)")
    _add_execution(p_withdraw)
    p_withdraw.set_defaults(func=cmd_withdraw)

    p_borrow = sub.add_parser("borrow", help="Borrow the debt asset against the position")
    _add_execution(p_borrow)
    p_borrow.set_defaults(func=cmd_borrow)

    p_repay = sub.add_parser("repay", help="Repay debt with coins from the wallet")
    _add_execution(p_repay)
    p_repay.set_defaults(func=cmd_repay)

    p_discover = sub.add_parser("discover", help="List ranked entry points for an action (no transactions)")
    p_discover.add_argument("action", help="Action keyword, e.g. withdraw, borrow or repay")
    p_discover.add_argument("--limit", type=int, default=20, help="How many entries to print")
    _add_common(p_discover)
    p_discover.set_defaults(func=cmd_discover)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
