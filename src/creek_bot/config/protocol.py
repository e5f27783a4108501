"""
Protocol object ids, type shapes and failure vocabulary for Creek on Sui.

Every id can be overridden through the environment (see config.settings);
the values here are the testnet deployment the bot was built against.
"""

from typing import Any, NamedTuple


# =============================================================================
# OBJECT / PACKAGE IDS
# =============================================================================

PROTOCOL_ADDRESSES: dict[str, str] = {
    # Core protocol package (obligation, market, withdraw_collateral, borrow, repay ...)
    "protocolPackage": "0x8cee41afab63e559bc236338bfd7c6b2af07c9f28f285fc8246666a7ce9ae97a",
    # Shared objects
    "version": "0x13f4679d0ebd6fc721875af14ee380f45cde02f81d690809ac543901d66f6758",
    "market": "0x166dd68901d2cb47b55c7cfbb7182316f84114f9e12da9251fd4c4f338e37f5d",
    "clock": "0x0000000000000000000000000000000000000000000000000000000000000006",
    "decimalsRegistry": "0x3a865c5bc0e47efc505781598396d75b647e4f1218359e89b08682519c3ac060",
    # Oracle
    "xOracle": "0x9052b77605c1e2796582e996e0ce60e2780c9a440d8878a319fa37c50ca32530",
    "xOraclePackage": "0xca9b2f66c5ab734939e048d0732e2a09f486402bb009d88f95c27abe8a4872ee",
    "rulePackage": "0xbd6d8bb7f40ca9921d0c61404cba6dcfa132f184cf8c0f273008a103889eb0e8",
}

TOKEN_TYPES: dict[str, str] = {
    "SUI": "0x2::sui::SUI",
    "GR": "0x5504354cf3dcbaf64201989bc734e97c1d89bba5c7f01ff2704c43192cc2717c::coin_gr::COIN_GR",
    "GUSD": "0x5434351f2dcae30c0c4b97420475c5edc966b02fd7d0bbe19ea2220d2f623586::coin_gusd::COIN_GUSD",
}

SUI_TYPE = TOKEN_TYPES["SUI"]

# Oracle price TTL passed to rule::set_price_as_primary
DEFAULT_ORACLE_TTL = 150_500_000_000
DEFAULT_DEBT_TTL = 1_050_000_000


# =============================================================================
# TYPE SHAPES
# =============================================================================

class StructShape(NamedTuple):
    """(address, module, name) a struct parameter must have; None matches anything."""
    module: str
    name: str | None = None
    address: str | None = None


VERSION_SHAPE = StructShape("version", "Version")
OBLIGATION_SHAPE = StructShape("obligation", "Obligation")
OBLIGATION_KEY_SHAPE = StructShape("obligation", "ObligationKey")
MARKET_SHAPE = StructShape("market", "Market")
DECIMALS_REGISTRY_SHAPE = StructShape("coin_decimals_registry", "CoinDecimalsRegistry")
X_ORACLE_SHAPE = StructShape("x_oracle", "XOracle")
CLOCK_SHAPE = StructShape("clock", "Clock", "0x2")
COIN_SHAPE = StructShape("coin", "Coin", "0x2")

REGISTRY_TYPE_SUFFIX = "::coin_decimals_registry::CoinDecimalsRegistry"
COLLATERAL_TYPE_MARKER = "obligation_collaterals::Collateral"
DYNAMIC_FIELD_MARKER = "::dynamic_field::Field<"


# =============================================================================
# ACTIONS
# =============================================================================

# phrase: fully qualified module::function fragment worth the big bonus
# suffixes: canonical endings of module::function
# fallback: module::function used when discovery finds nothing
ACTION_PROFILES: dict[str, dict[str, Any]] = {
    "withdraw": {
        "phrase": "withdraw_collateral",
        "suffixes": ("withdraw", "withdraw_collateral", "withdraw_collateral_entry"),
        "fallback": "withdraw_collateral::withdraw_collateral_entry",
    },
    "borrow": {
        "phrase": "borrow::borrow",
        "suffixes": ("borrow", "borrow_entry"),
        "fallback": "borrow::borrow_entry",
    },
    "repay": {
        "phrase": "repay::repay",
        "suffixes": ("repay", "repay_entry"),
        "fallback": "repay::repay",
    },
}


def get_action_profile(action: str) -> dict[str, Any]:
    """Scoring profile for an action keyword; unknown actions get a generic profile."""
    action = action.lower()
    if action in ACTION_PROFILES:
        return ACTION_PROFILES[action]
    return {"phrase": action, "suffixes": (action, f"{action}_entry"), "fallback": None}


# =============================================================================
# FAILURE VOCABULARY
# =============================================================================

# Matched case-insensitively as substrings of the chain/RPC message.
DEFAULT_FEE_PATTERNS: tuple[str, ...] = (
    "Balance of gas object",
    "gas",
)

DEFAULT_LIMIT_PATTERNS: tuple[str, ...] = (
    "health",
    "limit",
    "exceed",
    "insufficient",
    "cannot",
    "over",
    "abort",
    "MoveAbort",
    "EINSUFFICIENT",
    "ELTV",
    "ELVR",
    "not enough",
)

DEFAULT_MISMATCH_PATTERNS: tuple[str, ...] = (
    "Incorrect number of arguments",
    "No function was found",
    "Invalid type argument",
    "Entry functions cannot be called without required object",
)
