"""
Role classification and argument building.
"""

import pytest

from creek_bot.config.settings import RefreshAsset
from creek_bot.errors import ConfigurationError
from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.models import ParameterDescriptor, ParameterRole, RoleBindings
from creek_bot.helpers.signature_matcher import (
    add_price_refresh,
    classify,
    emit_arguments,
    plan_arguments,
)
from creek_bot.helpers.transaction import GAS_COIN, MergeCoins, SplitCoins, TransactionBuilder

from fakes import (
    CLOCK_ID,
    CLOCK_PARAM,
    COIN_PARAM,
    GUSD_TYPE,
    KEY_ID,
    KEY_PARAM,
    MARKET_ID,
    MARKET_PARAM,
    OBLIGATION_ID,
    OBLIGATION_PARAM,
    ORACLE_ID,
    ORACLE_PARAM,
    ORACLE_PKG,
    PKG,
    REGISTRY_ID,
    REGISTRY_PARAM,
    SENDER,
    TX_CONTEXT,
    VERSION_ID,
    VERSION_PARAM,
    WITHDRAW_PARAMS,
    FakeSuiClient,
    mut,
    ref,
    struct,
)


def descriptors(raw_params):
    return [ParameterDescriptor(p) for p in raw_params]


FULL_BINDINGS = RoleBindings(
    version_id=VERSION_ID,
    position_id=OBLIGATION_ID,
    capability_id=KEY_ID,
    market_id=MARKET_ID,
    registry_id=REGISTRY_ID,
    oracle_id=ORACLE_ID,
    clock_id=CLOCK_ID,
    amount=1000,
)


# ============================================================================
# classify
# ============================================================================


class TestClassify:

    @pytest.mark.parametrize("raw, role", [
        (VERSION_PARAM, ParameterRole.VERSION_STAMP),
        (OBLIGATION_PARAM, ParameterRole.BORROWER_POSITION),
        (KEY_PARAM, ParameterRole.POSITION_CAPABILITY),
        (MARKET_PARAM, ParameterRole.MARKET),
        (REGISTRY_PARAM, ParameterRole.PRICE_REGISTRY),
        ("U64", ParameterRole.NUMERIC_AMOUNT),
        (ORACLE_PARAM, ParameterRole.PRICE_ORACLE),
        (CLOCK_PARAM, ParameterRole.CLOCK_REF),
        (COIN_PARAM, ParameterRole.COIN_INPUT),
    ])
    def test_known_roles(self, raw, role):
        assert classify(ParameterDescriptor(raw)) is role

    def test_obligation_and_key_are_distinct(self):
        """Same module, different struct names."""
        assert classify(ParameterDescriptor(ref(struct("obligation", "Obligation")))) is ParameterRole.BORROWER_POSITION
        assert classify(ParameterDescriptor(ref(struct("obligation", "ObligationKey")))) is ParameterRole.POSITION_CAPABILITY

    def test_clock_requires_framework_address(self):
        fake_clock = ref(struct("clock", "Clock", PKG))
        assert classify(ParameterDescriptor(fake_clock)) is ParameterRole.UNRECOGNIZED

    def test_oracle_needs_the_oracle_struct(self):
        """Other structs of the x_oracle module are not the oracle."""
        request = mut(struct("x_oracle", "XOraclePriceUpdateRequest", ORACLE_PKG))
        assert classify(ParameterDescriptor(request)) is ParameterRole.UNRECOGNIZED

    def test_coin_requires_framework_address(self):
        assert classify(ParameterDescriptor(struct("coin", "Coin", PKG))) is ParameterRole.UNRECOGNIZED

    def test_unrecognized(self):
        assert classify(ParameterDescriptor("Bool")) is ParameterRole.UNRECOGNIZED
        assert classify(ParameterDescriptor(ref(struct("pool", "Pool")))) is ParameterRole.UNRECOGNIZED
        assert classify(ParameterDescriptor({"TypeParameter": 0})) is ParameterRole.UNRECOGNIZED

    def test_tx_context_is_not_a_call_parameter(self):
        assert ParameterDescriptor(TX_CONTEXT).is_tx_context
        assert not ParameterDescriptor(VERSION_PARAM).is_tx_context


# ============================================================================
# plan_arguments / emit_arguments
# ============================================================================


class TestPlanArguments:

    @pytest.mark.parametrize("count", range(0, 9))
    def test_one_argument_per_parameter(self, count):
        """Every prefix of a real parameter list plans to exactly that many arguments."""
        params = descriptors(WITHDRAW_PARAMS[:-1][:count])
        plan = plan_arguments(params, FULL_BINDINGS)
        assert len(plan) == len(params)
        assert [item.descriptor for item in plan] == params

    def test_values_follow_roles(self):
        plan = plan_arguments(descriptors(WITHDRAW_PARAMS[:-1]), FULL_BINDINGS)
        assert [item.value for item in plan] == [
            VERSION_ID, OBLIGATION_ID, KEY_ID, MARKET_ID, REGISTRY_ID, 1000, ORACLE_ID, CLOCK_ID,
        ]

    def test_missing_capability_fails_before_any_network_call(self):
        client = FakeSuiClient()
        catalog = ResourceCatalog(client)
        bindings = RoleBindings(
            version_id=VERSION_ID, position_id=OBLIGATION_ID, market_id=MARKET_ID,
            oracle_id=ORACLE_ID, clock_id=CLOCK_ID, amount=5,
        )
        tb = TransactionBuilder(SENDER)
        with pytest.raises(ConfigurationError, match="missing capability"):
            emit_arguments(tb, plan_arguments(descriptors([VERSION_PARAM, OBLIGATION_PARAM, KEY_PARAM, "U64"]), bindings), catalog)
        assert client.calls == []

    def test_missing_registry_names_the_role(self):
        bindings = RoleBindings(registry_id=None, amount=1)
        with pytest.raises(ConfigurationError, match="price registry"):
            plan_arguments(descriptors([REGISTRY_PARAM]), bindings)

    def test_zero_amount_is_a_value(self):
        plan = plan_arguments(descriptors(["U64"]), RoleBindings(amount=0))
        assert plan[0].value == 0

    def test_unset_amount_fails(self):
        with pytest.raises(ConfigurationError, match="missing amount"):
            plan_arguments(descriptors(["U64"]), RoleBindings())

    def test_multiple_numeric_parameters_fail_fast(self):
        with pytest.raises(ConfigurationError, match="2 numeric parameters"):
            plan_arguments(descriptors(["U64", "U64"]), FULL_BINDINGS)

    def test_unrecognized_parameter_fails(self):
        with pytest.raises(ConfigurationError, match="no known role"):
            plan_arguments(descriptors([VERSION_PARAM, "Bool"]), FULL_BINDINGS)


class TestBuildArguments:

    def test_emits_inputs(self, client):
        catalog = ResourceCatalog(client)
        tb = TransactionBuilder(SENDER)
        args = emit_arguments(tb, plan_arguments(descriptors(WITHDRAW_PARAMS[:-1]), FULL_BINDINGS), catalog)
        assert len(args) == 8
        # 7 objects + 1 pure amount
        assert len(tb.inputs) == 8

    def test_owned_object_for_shared_role_is_rejected(self, client):
        client.add_object("0x42", f"{PKG}::version::Version", {"AddressOwner": SENDER})
        catalog = ResourceCatalog(client)
        bindings = RoleBindings(version_id="0x42")
        with pytest.raises(ConfigurationError, match="expected Shared or Immutable"):
            emit_arguments(TransactionBuilder(SENDER), plan_arguments(descriptors([VERSION_PARAM]), bindings), catalog)

    def test_unknown_object_is_reported(self, client):
        catalog = ResourceCatalog(client)
        bindings = RoleBindings(market_id="0x4343")
        with pytest.raises(ConfigurationError, match="not found"):
            emit_arguments(TransactionBuilder(SENDER), plan_arguments(descriptors([MARKET_PARAM]), bindings), catalog)


class TestPriceRefresh:

    def test_three_calls_per_asset(self, client, settings):
        settings = settings.with_overrides(refresh_assets=(
            RefreshAsset("0x2::sui::SUI", 100),
            RefreshAsset(f"{PKG}::coin_gusd::COIN_GUSD", 200),
        ))
        tb = TransactionBuilder(SENDER)
        add_price_refresh(tb, ResourceCatalog(client), settings)

        assert [c.function for c in tb.commands] == [
            "price_update_request", "set_price_as_primary", "confirm_price_update_request",
        ] * 2
        # oracle, clock and two TTLs; oracle and clock are shared inputs reused
        assert len(tb.inputs) == 4

    def test_missing_oracle(self, settings):
        with pytest.raises(ConfigurationError, match="Price oracle"):
            add_price_refresh(TransactionBuilder(SENDER), ResourceCatalog(FakeSuiClient()), settings)


# ============================================================================
# coin inputs
# ============================================================================


class TestCoinInput:

    def plan(self, amount):
        return plan_arguments(descriptors([COIN_PARAM]), RoleBindings(amount=amount))

    def test_sui_splits_from_gas(self, client):
        tb = TransactionBuilder(SENDER)
        args = emit_arguments(tb, self.plan(700), ResourceCatalog(client), coin_owner=SENDER, coin_type="0x2::sui::SUI")
        assert tb.commands == [SplitCoins(GAS_COIN, tb.commands[0].amounts)]
        assert len(tb.inputs) == 1
        assert args[0].index == 0 and args[0].sub_index == 0

    def test_single_coin_covers_amount(self, client):
        client.add_coin("0xa1", 900, coin_type=GUSD_TYPE)
        client.add_coin("0xa2", 300, coin_type=GUSD_TYPE)
        tb = TransactionBuilder(SENDER)
        emit_arguments(tb, self.plan(800), ResourceCatalog(client), coin_owner=SENDER, coin_type=GUSD_TYPE)
        assert [type(c) for c in tb.commands] == [SplitCoins]
        # the 900 coin and the amount
        assert len(tb.inputs) == 2

    def test_merges_until_amount_is_covered(self, client):
        client.add_coin("0xa1", 500, coin_type=GUSD_TYPE)
        client.add_coin("0xa2", 400, coin_type=GUSD_TYPE)
        client.add_coin("0xa3", 100, coin_type=GUSD_TYPE)
        tb = TransactionBuilder(SENDER)
        emit_arguments(tb, self.plan(850), ResourceCatalog(client), coin_owner=SENDER, coin_type=GUSD_TYPE)
        assert [type(c) for c in tb.commands] == [MergeCoins, SplitCoins]
        assert len(tb.commands[0].sources) == 1
        assert tb.commands[1].coin == tb.commands[0].destination

    def test_no_coins_of_type(self, client):
        with pytest.raises(ConfigurationError, match="No .*GUSD coins"):
            emit_arguments(
                TransactionBuilder(SENDER), self.plan(1), ResourceCatalog(client),
                coin_owner=SENDER, coin_type=GUSD_TYPE,
            )

    def test_needs_owner_and_type(self, client):
        with pytest.raises(ConfigurationError, match="needs an owner and a coin type"):
            emit_arguments(TransactionBuilder(SENDER), self.plan(1), ResourceCatalog(client))
