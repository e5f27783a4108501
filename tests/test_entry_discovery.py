"""
Entry ranking, overrides and the fallback target.
"""

import pytest

from creek_bot.errors import DiscoveryError
from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.entry_discovery import (
    OVERRIDE_SCORE,
    candidate_packages,
    discover,
    fallback_entry,
    resolve_entries,
    score_entry,
)
from creek_bot.helpers.models import EntryPoint, ParameterDescriptor, ParameterRole

from fakes import MARKET_ID, OTHER_PKG, PKG, WITHDRAW_PARAMS, FakeSuiClient, fn

WITHDRAW_TARGET = f"{PKG}::withdraw_collateral::withdraw_collateral_entry"


def entry(module, function, params=(), package=PKG):
    return EntryPoint(package, module, function, tuple(ParameterDescriptor(p) for p in params))


# ============================================================================
# score_entry
# ============================================================================


class TestScoreEntry:

    def test_full_withdraw_entry(self):
        """keyword 3 + phrase 5 + suffix 2 + roles 9."""
        ranked = score_entry(entry("withdraw_collateral", "withdraw_collateral_entry", WITHDRAW_PARAMS), "withdraw")
        assert ranked.score == 19
        assert ranked.needs_registry

    def test_bare_name(self):
        ranked = score_entry(entry("pool", "withdraw", ["U64"]), "withdraw")
        assert ranked.score == 3 + 2 + 1
        assert ranked.roles == (ParameterRole.NUMERIC_AMOUNT,)
        assert not ranked.needs_registry

    def test_roles_count_once(self):
        twice = entry("pool", "withdraw_pair", [WITHDRAW_PARAMS[0], WITHDRAW_PARAMS[0]])
        once = entry("pool", "withdraw_pair", [WITHDRAW_PARAMS[0]])
        assert score_entry(twice, "withdraw").score == score_entry(once, "withdraw").score

    def test_unknown_action_gets_generic_profile(self):
        ranked = score_entry(entry("vault", "liquidate_entry"), "liquidate")
        assert ranked.score == 3 + 5 + 2

    def test_repay_profile(self):
        coin = {"Struct": {"address": "0x2", "module": "coin", "name": "Coin", "typeArguments": []}}
        assert score_entry(entry("repay", "repay", [coin]), "repay").score == 3 + 5 + 2 + 1
        assert score_entry(entry("vault", "repay_entry"), "repay").score == 3 + 2


# ============================================================================
# discover
# ============================================================================


@pytest.fixture
def two_packages(client):
    client.add_package(OTHER_PKG, {
        "pool": {"exposedFunctions": {
            "withdraw": fn(["U64"]),
            "deposit": fn(["U64"]),
        }},
    })
    return client


class TestDiscover:

    def test_ranks_protocol_entry_first(self, two_packages):
        ranked = discover("withdraw", [OTHER_PKG, PKG], ResourceCatalog(two_packages))
        assert [r.entry.target for r in ranked] == [WITHDRAW_TARGET, f"{OTHER_PKG}::pool::withdraw"]

    def test_only_matching_names(self, two_packages):
        ranked = discover("deposit", [OTHER_PKG, PKG], ResourceCatalog(two_packages))
        assert [r.entry.function for r in ranked] == ["deposit"]

    def test_ties_keep_discovery_order(self):
        client = FakeSuiClient()
        client.add_package(OTHER_PKG, {
            "a": {"exposedFunctions": {"withdraw_x": fn(["U64"])}},
            "b": {"exposedFunctions": {"withdraw_y": fn(["U64"])}},
        })
        ranked = discover("withdraw", [OTHER_PKG], ResourceCatalog(client))
        assert ranked[0].score == ranked[1].score
        assert [r.entry.module for r in ranked] == ["a", "b"]

    def test_non_entry_functions_are_ignored(self):
        client = FakeSuiClient()
        client.add_package(OTHER_PKG, {"pool": {"exposedFunctions": {"withdraw": fn(["U64"], is_entry=False)}}})
        with pytest.raises(DiscoveryError, match="No withdraw entry found"):
            discover("withdraw", [OTHER_PKG], ResourceCatalog(client))

    def test_entry_suffix_counts_without_flag(self):
        client = FakeSuiClient()
        client.add_package(OTHER_PKG, {"pool": {"exposedFunctions": {"withdraw_entry": fn(["U64"], is_entry=False)}}})
        ranked = discover("withdraw", [OTHER_PKG], ResourceCatalog(client))
        assert ranked[0].entry.function == "withdraw_entry"

    def test_non_package_candidates_are_skipped(self, client):
        ranked = discover("withdraw", [MARKET_ID, "0x" + "ee" * 32, PKG], ResourceCatalog(client))
        assert [r.entry.target for r in ranked] == [WITHDRAW_TARGET]


# ============================================================================
# candidate packages / resolve_entries
# ============================================================================


class TestResolveEntries:

    def test_candidates_start_with_type_packages(self, client, settings):
        settings = settings.with_overrides(protocol_pkg=OTHER_PKG, extra_packages=(PKG,))
        packages = candidate_packages(settings, ResourceCatalog(client))
        assert packages[0] == PKG
        assert packages.count(PKG) == 1
        assert OTHER_PKG in packages

    def test_override_bypasses_scoring(self, client, settings):
        settings = settings.with_overrides(target_override=WITHDRAW_TARGET)
        ranked = resolve_entries("withdraw", settings, ResourceCatalog(client))
        assert len(ranked) == 1
        assert ranked[0].score == OVERRIDE_SCORE

    def test_override_must_exist(self, client, settings):
        settings = settings.with_overrides(target_override=f"{PKG}::withdraw_collateral::nope")
        with pytest.raises(DiscoveryError, match="not found"):
            resolve_entries("withdraw", settings, ResourceCatalog(client))

    def test_override_must_be_a_package(self, client, settings):
        settings = settings.with_overrides(target_override=f"{MARKET_ID}::m::f")
        with pytest.raises(DiscoveryError, match="not a package"):
            resolve_entries("withdraw", settings, ResourceCatalog(client))

    def test_fallback_when_discovery_finds_nothing(self, settings):
        """Package metadata is readable but the package object itself is not recognised."""
        client = FakeSuiClient()
        client.add_package(PKG, {
            "withdraw_collateral": {"exposedFunctions": {"withdraw_collateral_entry": fn(WITHDRAW_PARAMS)}},
        }, with_bcs=False)
        ranked = resolve_entries("withdraw", settings, ResourceCatalog(client))
        assert [r.entry.target for r in ranked] == [WITHDRAW_TARGET]
        assert ranked[0].score == 0

    def test_no_fallback_reraises(self, settings):
        with pytest.raises(DiscoveryError):
            resolve_entries("withdraw", settings, ResourceCatalog(FakeSuiClient()))

    def test_fallback_entry_unknown_action(self, client):
        assert fallback_entry("liquidate", PKG, ResourceCatalog(client)) is None
