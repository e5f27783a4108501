"""
Shared fixtures: a clean environment, a populated fake fullnode and settings
pointing at it.
"""

import pytest

from creek_bot.config.settings import RefreshAsset, Settings

from fakes import (
    CLOCK_ID,
    KEY_ID,
    MARKET_ID,
    OBLIGATION_ID,
    ORACLE_ID,
    ORACLE_PKG,
    PKG,
    REGISTRY_ID,
    RULE_PKG,
    SENDER,
    VERSION_ID,
    WITHDRAW_PARAMS,
    FakeSuiClient,
    fn,
)

ENV_PREFIXES = (
    "SUI_", "PRIVATE_KEY", "FULLNODE_URL", "VERSION_ID", "MARKET_ID", "CLOCK_ID", "X_ORACLE",
    "RULE_PKG", "PROTOCOL_PKG", "ASSET_TYPE", "COLLATERAL_", "DEBT_", "ORACLE_TTL",
    "WITHDRAW_", "BORROW_", "REPAY_", "LIST_ONLY", "DRAIN", "PROBE_", "GAS_BUDGET", "MIN_GAS", "RETRY_", "DRYRUN",
    "EXTRA_PACKAGES", "DECIMALS_REG", "ALLOW_REGISTRY", "OBLIGATION_", "LIMIT_PATTERNS",
    "FEE_PATTERNS", "MISMATCH_PATTERNS", "TYPE_GR", "TYPE_GUSD", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """No stray configuration leaks in from the developer's shell or ./.env."""
    import os

    for name in list(os.environ):
        if name.startswith(ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOG_TO_FILE", "0")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def client():
    """Fake fullnode holding one withdraw-ready Creek deployment."""
    c = FakeSuiClient()
    c.add_package(PKG, {
        "withdraw_collateral": {
            "exposedFunctions": {
                "withdraw_collateral_entry": fn(WITHDRAW_PARAMS, type_params=1),
            },
        },
    })
    c.add_shared(VERSION_ID, f"{PKG}::version::Version")
    c.add_shared(
        MARKET_ID,
        f"{PKG}::market::Market",
        content={"fields": {"id": {"id": MARKET_ID}, "decimals_registry_id": REGISTRY_ID}},
    )
    c.add_shared(CLOCK_ID, "0x2::clock::Clock")
    c.add_shared(ORACLE_ID, f"{ORACLE_PKG}::x_oracle::XOracle")
    c.add_shared(REGISTRY_ID, f"{PKG}::coin_decimals_registry::CoinDecimalsRegistry")
    c.add_shared(OBLIGATION_ID, f"{PKG}::obligation::Obligation", content={"fields": {"id": {"id": OBLIGATION_ID}}})
    c.add_object(
        KEY_ID,
        f"{PKG}::obligation::ObligationKey",
        {"AddressOwner": SENDER},
        content={"fields": {"id": {"id": KEY_ID}, "ownership": {"fields": {"of": OBLIGATION_ID}}}},
        version=7,
    )
    c.add_coin("0x9a", 5_000_000_000)
    return c


@pytest.fixture
def settings():
    return Settings(
        action="withdraw",
        fullnode_url="http://fullnode.invalid",
        sender_override=SENDER,
        protocol_pkg=PKG,
        version_id=VERSION_ID,
        market_id=MARKET_ID,
        clock_id=CLOCK_ID,
        x_oracle_id=ORACLE_ID,
        x_oracle_pkg=ORACLE_PKG,
        rule_pkg=RULE_PKG,
        asset_type="0x2::sui::SUI",
        refresh_assets=(RefreshAsset("0x2::sui::SUI", 150_500_000_000),),
        amount=1000,
        retry_wait_ms=0,
    )
