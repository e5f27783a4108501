"""
Signature matcher: map declared Move parameters to roles and emit arguments.

Roles are decided structurally on the parameter's (address, module, name)
tag, tested in a fixed priority order; the first match wins. Building an
argument list is split in two so that every binding problem surfaces before
the network is touched:

    plan = plan_arguments(entry.call_parameters, bindings)   # pure
    args = emit_arguments(tb, plan, catalog, sender, coin_type)  # resolves objects, splits coins
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from creek_bot.config.protocol import (
    CLOCK_SHAPE,
    COIN_SHAPE,
    DECIMALS_REGISTRY_SHAPE,
    MARKET_SHAPE,
    OBLIGATION_KEY_SHAPE,
    OBLIGATION_SHAPE,
    SUI_TYPE,
    VERSION_SHAPE,
    X_ORACLE_SHAPE,
    StructShape,
)
from creek_bot.errors import ConfigurationError
from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.models import (
    OwnershipKind,
    ParameterDescriptor,
    ParameterRole,
    RoleBindings,
    StructTag,
    normalize_sui_address,
)
from creek_bot.helpers.transaction import GAS_COIN, Argument, TransactionBuilder, same_type

logger = logging.getLogger(__name__)

NUMERIC_PRIMITIVES = ("U64",)

# First match wins: protocol shapes, then numeric primitives, then oracle/clock.
ROLE_SHAPES: tuple[tuple[ParameterRole, StructShape], ...] = (
    (ParameterRole.VERSION_STAMP, VERSION_SHAPE),
    (ParameterRole.BORROWER_POSITION, OBLIGATION_SHAPE),
    (ParameterRole.POSITION_CAPABILITY, OBLIGATION_KEY_SHAPE),
    (ParameterRole.MARKET, MARKET_SHAPE),
    (ParameterRole.PRICE_REGISTRY, DECIMALS_REGISTRY_SHAPE),
    (ParameterRole.COIN_INPUT, COIN_SHAPE),
)
TRAILING_SHAPES: tuple[tuple[ParameterRole, StructShape], ...] = (
    (ParameterRole.PRICE_ORACLE, X_ORACLE_SHAPE),
    (ParameterRole.CLOCK_REF, CLOCK_SHAPE),
)

# Roles many callers touch at once; their objects must be Shared or Immutable.
CONCURRENT_ROLES = frozenset({
    ParameterRole.VERSION_STAMP,
    ParameterRole.BORROWER_POSITION,
    ParameterRole.MARKET,
    ParameterRole.PRICE_REGISTRY,
    ParameterRole.PRICE_ORACLE,
    ParameterRole.CLOCK_REF,
})

MISSING_HINTS = {
    ParameterRole.POSITION_CAPABILITY: "missing capability: the function needs an ObligationKey; set OBLIGATION_KEY_ID or deposit first",
    ParameterRole.PRICE_REGISTRY: "missing price registry: the function needs a CoinDecimalsRegistry; set DECIMALS_REGISTRY_ID",
    ParameterRole.NUMERIC_AMOUNT: "missing amount: the function needs a u64 amount",
    ParameterRole.COIN_INPUT: "missing amount: the function takes a coin split from the wallet by amount",
}


def _shape_matches(tag: StructTag, shape: StructShape) -> bool:
    if tag.module != shape.module:
        return False
    if shape.name is not None and tag.name != shape.name:
        return False
    if shape.address is not None and tag.address != normalize_sui_address(shape.address):
        return False
    return True


def classify(descriptor: ParameterDescriptor) -> ParameterRole:
    """Role of one declared parameter; UNRECOGNIZED when nothing matches."""
    tag = descriptor.struct
    if tag is not None:
        for role, shape in ROLE_SHAPES:
            if _shape_matches(tag, shape):
                return role
    if descriptor.primitive in NUMERIC_PRIMITIVES:
        return ParameterRole.NUMERIC_AMOUNT
    if tag is not None:
        for role, shape in TRAILING_SHAPES:
            if _shape_matches(tag, shape):
                return role
    return ParameterRole.UNRECOGNIZED


def roles_of(parameters: Sequence[ParameterDescriptor]) -> tuple[ParameterRole, ...]:
    return tuple(classify(p) for p in parameters)


@dataclass(frozen=True)
class PlannedArgument:
    role: ParameterRole
    descriptor: ParameterDescriptor
    value: str | int


def plan_arguments(parameters: Sequence[ParameterDescriptor], bindings: RoleBindings) -> list[PlannedArgument]:
    """Bind every parameter to a concrete value, or raise naming the missing role.

    Pure: no network access, so binding errors always come first.
    """
    numeric = [p for p in parameters if classify(p) is ParameterRole.NUMERIC_AMOUNT]
    if len(numeric) > 1:
        raise ConfigurationError(
            f"Function takes {len(numeric)} numeric parameters; only a single amount can be bound"
        )

    plan = []
    for position, param in enumerate(parameters):
        role = classify(param)
        if role is ParameterRole.UNRECOGNIZED:
            raise ConfigurationError(f"Parameter #{position} ({param.describe()}) has no known role")
        value = bindings.value_for(role)
        if value is None or value == "":
            hint = MISSING_HINTS.get(role, f"missing {role.value}")
            raise ConfigurationError(f"Parameter #{position} ({param.describe()}): {hint}")
        plan.append(PlannedArgument(role, param, value))
    return plan


def coin_portion(tb: TransactionBuilder, catalog: ResourceCatalog, owner: str, coin_type: str, amount: int) -> Argument:
    """A coin of exactly ``amount`` split off the wallet's ``coin_type`` coins.

    SUI is split from the gas coin. Other types merge just enough coins
    (largest first) into the largest before splitting; when the wallet holds
    less than ``amount`` the split fails on chain with an insufficient-balance
    abort, which the caller treats like any other size limit.
    """
    if same_type(coin_type, SUI_TYPE):
        return tb.split_coins(GAS_COIN, [tb.pure_u64(amount)])[0]

    coins = catalog.coins(owner, coin_type)
    if not coins:
        raise ConfigurationError(f"No {coin_type} coins owned by {owner}")
    picked, total = [], 0
    for balance, ref in coins:
        picked.append(ref)
        total += balance
        if total >= amount:
            break

    base = tb.object(picked[0].as_resource())
    if len(picked) > 1:
        tb.merge_coins(base, [tb.object(ref.as_resource()) for ref in picked[1:]])
    return tb.split_coins(base, [tb.pure_u64(amount)])[0]


def emit_arguments(
    tb: TransactionBuilder,
    plan: Sequence[PlannedArgument],
    catalog: ResourceCatalog,
    coin_owner: str | None = None,
    coin_type: str | None = None,
) -> list[Argument]:
    """One transaction argument per planned parameter, in order."""
    args = []
    for item in plan:
        if item.role is ParameterRole.NUMERIC_AMOUNT:
            args.append(tb.pure_u64(int(item.value)))
            continue
        if item.role is ParameterRole.COIN_INPUT:
            if not coin_owner or not coin_type:
                raise ConfigurationError(f"Coin parameter ({item.descriptor.describe()}) needs an owner and a coin type")
            args.append(coin_portion(tb, catalog, coin_owner, coin_type, int(item.value)))
            continue
        ref = catalog.resolve_ref(str(item.value))
        if ref is None:
            raise ConfigurationError(f"Object {item.value} ({item.role.value}) not found on chain")
        if item.role in CONCURRENT_ROLES and not ref.owner_kind.concurrent_safe:
            raise ConfigurationError(
                f"Object {ref.object_id} ({item.role.value}) is {ref.owner_kind.value}; expected Shared or Immutable"
            )
        if item.role is ParameterRole.POSITION_CAPABILITY and ref.owner_kind is not OwnershipKind.ADDRESS_OWNED:
            logger.warning("Capability %s is %s, not address-owned", ref.object_id, ref.owner_kind.value)
        args.append(tb.object(ref, mutable=item.descriptor.is_mutable))
    return args


def add_price_refresh(tb: TransactionBuilder, catalog: ResourceCatalog, settings) -> None:
    """Request, assert and confirm a fresh oracle price for every refresh asset."""
    if not settings.refresh_assets:
        return
    oracle = catalog.resolve_ref(settings.x_oracle_id)
    clock = catalog.resolve_ref(settings.clock_id)
    if oracle is None:
        raise ConfigurationError(f"Price oracle {settings.x_oracle_id} not found on chain")
    if clock is None:
        raise ConfigurationError(f"Clock {settings.clock_id} not found on chain")

    for asset in settings.refresh_assets:
        request = tb.move_call(
            f"{settings.x_oracle_pkg}::x_oracle::price_update_request",
            [tb.object(oracle, mutable=True)],
            [asset.asset_type],
        )
        tb.move_call(
            f"{settings.rule_pkg}::rule::set_price_as_primary",
            [request, tb.pure_u64(asset.ttl), tb.object(clock, mutable=False)],
            [asset.asset_type],
        )
        tb.move_call(
            f"{settings.x_oracle_pkg}::x_oracle::confirm_price_update_request",
            [tb.object(oracle, mutable=True), request, tb.object(clock, mutable=False)],
            [asset.asset_type],
        )
