"""
Environment-driven runtime settings.

Settings are read once per run with ``Settings.from_env(action)`` after
``load_env`` has pulled in ``.env`` files. CLI flags are applied on top with
``Settings.with_overrides``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

from creek_bot.config.network import get_fullnode_url
from creek_bot.config.protocol import (
    DEFAULT_DEBT_TTL,
    DEFAULT_FEE_PATTERNS,
    DEFAULT_LIMIT_PATTERNS,
    DEFAULT_MISMATCH_PATTERNS,
    DEFAULT_ORACLE_TTL,
    PROTOCOL_ADDRESSES,
    TOKEN_TYPES,
)
from creek_bot.errors import ConfigurationError

TRUTHY = ("1", "true", "yes", "y", "on")
AMOUNT_MODES = ("amount", "percent", "all")

DEFAULT_AMOUNTS = {
    "withdraw": 10_000_000,  # 0.01 SUI (dec=9)
    "borrow": 10_000_000_000,  # 10 GUSD
    "repay": 1_000_000_000,  # 1 GUSD
}


def load_env(env_file: str | None) -> None:
    # Load base .env first if present, then the provided env file with
    # override=True so it takes precedence.
    base_env = Path(".env")
    if base_env.exists():
        load_dotenv(base_env, override=False)
    if env_file:
        if not Path(env_file).exists():
            raise ConfigurationError(f"Env file not found: {env_file}")
        load_dotenv(env_file, override=True)


def is_truthy(value: str | None) -> bool:
    return str(value or "").strip().lower() in TRUTHY


def env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw.strip().replace("_", ""))
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def env_id(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip().lower()


@dataclass(frozen=True)
class RefreshAsset:
    """One asset whose oracle price must be refreshed before the call."""
    asset_type: str
    ttl: int


@dataclass(frozen=True)
class Settings:
    action: str
    fullnode_url: str
    private_key: str = ""
    sender_override: str = ""

    protocol_pkg: str = PROTOCOL_ADDRESSES["protocolPackage"]
    version_id: str = PROTOCOL_ADDRESSES["version"]
    market_id: str = PROTOCOL_ADDRESSES["market"]
    clock_id: str = PROTOCOL_ADDRESSES["clock"]
    x_oracle_id: str = PROTOCOL_ADDRESSES["xOracle"]
    x_oracle_pkg: str = PROTOCOL_ADDRESSES["xOraclePackage"]
    rule_pkg: str = PROTOCOL_ADDRESSES["rulePackage"]

    # type argument passed to the target call
    asset_type: str = TOKEN_TYPES["SUI"]
    refresh_assets: tuple[RefreshAsset, ...] = ()

    mode: str = "amount"
    amount: int = DEFAULT_AMOUNTS["withdraw"]
    percent: int = 50
    drain: bool = False
    drain_min_dust: int = 0
    probe_start: int = 1_000_000
    probe_ceiling: int = 100_000_000_000

    gas_budget: int = 100_000_000
    min_gas_fallback: int = 1_000_000
    retry_max: int = 4
    retry_wait_ms: int = 1500

    dry_run: bool = False
    list_only: bool = False
    target_override: str = ""
    extra_packages: tuple[str, ...] = ()
    registry_id: str = ""
    default_registry_id: str = PROTOCOL_ADDRESSES["decimalsRegistry"]
    allow_registry_best_effort: bool = True
    obligation_id: str = ""
    obligation_key_id: str = ""

    fee_patterns: tuple[str, ...] = DEFAULT_FEE_PATTERNS
    limit_patterns: tuple[str, ...] = DEFAULT_LIMIT_PATTERNS
    mismatch_patterns: tuple[str, ...] = DEFAULT_MISMATCH_PATTERNS

    @classmethod
    def from_env(cls, action: str) -> "Settings":
        """Build settings for ``action`` ('withdraw', 'borrow', 'discover'...)."""
        action = action.lower()
        prefix = action.upper()

        oracle_ttl = env_int("ORACLE_TTL", DEFAULT_ORACLE_TTL)
        if action == "borrow":
            collateral_type = (os.getenv("COLLATERAL_TYPE") or os.getenv("TYPE_GR") or TOKEN_TYPES["GR"]).strip()
            debt_type = (os.getenv("DEBT_TYPE") or os.getenv("TYPE_GUSD") or TOKEN_TYPES["GUSD"]).strip()
            asset_type = debt_type
            refresh = (
                RefreshAsset(collateral_type, env_int("COLLATERAL_TTL", oracle_ttl)),
                RefreshAsset(debt_type, env_int("DEBT_TTL", DEFAULT_DEBT_TTL)),
            )
        elif action == "repay":
            asset_type = (os.getenv("REPAY_TYPE") or os.getenv("TYPE_GUSD") or TOKEN_TYPES["GUSD"]).strip()
            # repaying only lowers debt; no price is consulted
            refresh = ()
        else:
            asset_type = (os.getenv("ASSET_TYPE") or TOKEN_TYPES["SUI"]).strip()
            refresh = (RefreshAsset(asset_type, oracle_ttl),)

        mode = (os.getenv(f"{prefix}_MODE") or "amount").strip().lower()
        if mode == "max":
            mode = "all"
        if mode not in AMOUNT_MODES:
            raise ConfigurationError(f"{prefix}_MODE must be one of {AMOUNT_MODES}, got {mode!r}")

        percent = env_int(f"{prefix}_PERCENT", 50)
        percent = max(1, min(100, percent))

        probe_start = env_int("PROBE_START", 1_000_000, minimum=1)
        probe_ceiling = env_int("PROBE_CEILING", 100_000_000_000, minimum=1)

        extra_packages = tuple(
            p.strip().lower() for p in (os.getenv("EXTRA_PACKAGES") or "").split(",") if p.strip()
        )

        return cls(
            action=action,
            fullnode_url=get_fullnode_url(),
            private_key=(os.getenv("SUI_PRIVATE_KEY") or os.getenv("PRIVATE_KEY") or os.getenv("PRIVATE_KEY_HEX") or "").strip(),
            sender_override=env_id("SUI_ADDRESS"),
            protocol_pkg=env_id("PROTOCOL_PKG", PROTOCOL_ADDRESSES["protocolPackage"]),
            version_id=env_id("VERSION_ID", PROTOCOL_ADDRESSES["version"]),
            market_id=env_id("MARKET_ID", PROTOCOL_ADDRESSES["market"]),
            clock_id=env_id("CLOCK_ID", PROTOCOL_ADDRESSES["clock"]),
            x_oracle_id=env_id("X_ORACLE_ID", PROTOCOL_ADDRESSES["xOracle"]),
            x_oracle_pkg=env_id("X_ORACLE_PKG", PROTOCOL_ADDRESSES["xOraclePackage"]),
            rule_pkg=env_id("RULE_PKG", PROTOCOL_ADDRESSES["rulePackage"]),
            asset_type=asset_type,
            refresh_assets=refresh,
            mode=mode,
            amount=env_int(f"{prefix}_AMOUNT", DEFAULT_AMOUNTS.get(action, DEFAULT_AMOUNTS["withdraw"])),
            percent=percent,
            drain=is_truthy(os.getenv("DRAIN")),
            drain_min_dust=env_int("DRAIN_MIN_DUST", 0),
            probe_start=probe_start,
            probe_ceiling=probe_ceiling,
            gas_budget=env_int("GAS_BUDGET", 100_000_000, minimum=1),
            min_gas_fallback=env_int("MIN_GAS_FALLBACK", 1_000_000),
            retry_max=max(1, env_int("RETRY_MAX", 4)),
            retry_wait_ms=env_int("RETRY_WAIT_MS", 1500),
            dry_run=is_truthy(os.getenv("DRYRUN")),
            list_only=is_truthy(os.getenv("LIST_ONLY")),
            target_override=(os.getenv(f"{prefix}_TARGET") or "").strip(),
            extra_packages=extra_packages,
            registry_id=env_id("DECIMALS_REGISTRY_ID") or env_id("SUI_DECIMALS_REGISTRY_ID") or env_id("DECIMALS_REG"),
            allow_registry_best_effort=str(os.getenv("ALLOW_REGISTRY_BEST_EFFORT", "1")).strip().lower() in ("",) + TRUTHY,
            obligation_id=env_id("OBLIGATION_ID"),
            obligation_key_id=env_id("OBLIGATION_KEY_ID"),
            fee_patterns=env_list("FEE_PATTERNS", DEFAULT_FEE_PATTERNS),
            limit_patterns=env_list("LIMIT_PATTERNS", DEFAULT_LIMIT_PATTERNS),
            mismatch_patterns=env_list("MISMATCH_PATTERNS", DEFAULT_MISMATCH_PATTERNS),
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with CLI-provided values applied (None values are ignored)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "mode" in changes and changes["mode"] not in AMOUNT_MODES:
            raise ConfigurationError(f"mode must be one of {AMOUNT_MODES}, got {changes['mode']!r}")
        if "amount" in changes and int(changes["amount"]) < 0:
            raise ConfigurationError("amount must be >= 0")
        if "percent" in changes and not 1 <= int(changes["percent"]) <= 100:
            raise ConfigurationError("percent must be between 1 and 100")
        return replace(self, **changes)

    @property
    def wants_drain(self) -> bool:
        return self.drain or self.mode == "all" or (self.mode == "percent" and self.percent == 100)

    def candidate_packages(self) -> list[str]:
        """Packages searched by discovery when no target override is set."""
        out: list[str] = []
        for pkg in (self.protocol_pkg, self.rule_pkg, *self.extra_packages):
            if pkg and pkg not in out:
                out.append(pkg)
        return out
