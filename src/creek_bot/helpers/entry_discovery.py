"""
Entry discovery: rank the entry functions of candidate packages for an action.

Package metadata never says which function is "the" withdraw or borrow, so
candidates are scored on their name and on which protocol resources their
parameters ask for.
"""

from __future__ import annotations

import logging
from typing import Iterable

from creek_bot.config.protocol import get_action_profile
from creek_bot.errors import DiscoveryError
from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.models import EntryPoint, ParameterRole, RankedEntry, normalize_sui_address
from creek_bot.helpers.signature_matcher import roles_of
from creek_bot.helpers.transaction import split_target

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 3
PHRASE_WEIGHT = 5
SUFFIX_WEIGHT = 2
OVERRIDE_SCORE = 999

ROLE_WEIGHTS = {
    ParameterRole.VERSION_STAMP: 1,
    ParameterRole.BORROWER_POSITION: 2,
    ParameterRole.POSITION_CAPABILITY: 2,
    ParameterRole.MARKET: 1,
    ParameterRole.NUMERIC_AMOUNT: 1,
    ParameterRole.PRICE_REGISTRY: 2,
    ParameterRole.COIN_INPUT: 1,
}


def score_entry(entry: EntryPoint, action: str) -> RankedEntry:
    profile = get_action_profile(action)
    name = entry.qualified_name
    roles = roles_of(entry.call_parameters)

    score = 0
    if action.lower() in name:
        score += KEYWORD_WEIGHT
    if profile["phrase"] and profile["phrase"] in name:
        score += PHRASE_WEIGHT
    if any(name.endswith(suffix) for suffix in profile["suffixes"]):
        score += SUFFIX_WEIGHT
    for role in set(roles):
        score += ROLE_WEIGHTS.get(role, 0)
    return RankedEntry(entry=entry, score=score, roles=roles)


def ensure_package(catalog: ResourceCatalog, package_id: str) -> None:
    if not catalog.is_package(package_id):
        raise DiscoveryError(f"{package_id} is not a package")


def discover(action: str, packages: Iterable[str], catalog: ResourceCatalog) -> list[RankedEntry]:
    """Entries whose name contains ``action``, best score first (stable on ties)."""
    keyword = action.lower()
    found: list[RankedEntry] = []
    for package_id in packages:
        try:
            ensure_package(catalog, package_id)
        except DiscoveryError as e:
            logger.warning("Skipping candidate: %s", e)
            continue
        for entry in catalog.list_entries(package_id):
            if keyword in entry.qualified_name:
                found.append(score_entry(entry, action))

    if not found:
        raise DiscoveryError(f"No {action} entry found in candidate packages")

    found.sort(key=lambda ranked: ranked.score, reverse=True)
    logger.info("%s entries (auto):", action.capitalize())
    for ranked in found[:12]:
        logger.info(
            "  - %s  score=%d  params=%d  type_params=%d  roles=%s",
            ranked.entry.target,
            ranked.score,
            len(ranked.entry.call_parameters),
            ranked.entry.type_parameter_count,
            ",".join(role.value for role in ranked.roles),
        )
    return found


def override_entry(target: str, catalog: ResourceCatalog) -> RankedEntry:
    """Resolve an explicit ``pkg::module::function`` target; bypasses scoring."""
    package_id, _, _ = split_target(target)
    ensure_package(catalog, package_id)
    entry = catalog.get_function(target)
    if entry is None:
        raise DiscoveryError(f"Target {target} not found in package metadata")
    return RankedEntry(entry=entry, score=OVERRIDE_SCORE, roles=roles_of(entry.call_parameters))


def fallback_entry(action: str, protocol_pkg: str, catalog: ResourceCatalog) -> RankedEntry | None:
    """The protocol's known entry for ``action``, when it exists."""
    fallback = get_action_profile(action)["fallback"]
    if not fallback:
        return None
    entry = catalog.get_function(f"{protocol_pkg}::{fallback}")
    if entry is None:
        return None
    return RankedEntry(entry=entry, score=0, roles=roles_of(entry.call_parameters))


def candidate_packages(settings, catalog: ResourceCatalog) -> list[str]:
    """Packages defining the market and version types, then the configured ones."""
    out: list[str] = []
    for object_id in (settings.market_id, settings.version_id):
        pkg = catalog.package_of_type(object_id)
        if pkg and pkg not in out:
            out.append(pkg)
    for pkg in settings.candidate_packages():
        pkg = normalize_sui_address(pkg)
        if pkg not in out:
            out.append(pkg)
    return out


def resolve_entries(action: str, settings, catalog: ResourceCatalog) -> list[RankedEntry]:
    """Override, else discovery, else the protocol's fallback target (once)."""
    if settings.target_override:
        ranked = override_entry(settings.target_override, catalog)
        logger.info("Using target override %s", ranked.entry.target)
        return [ranked]

    try:
        return discover(action, candidate_packages(settings, catalog), catalog)
    except DiscoveryError as e:
        logger.warning("%s; trying the known fallback target", e)
        fallback = fallback_entry(action, settings.protocol_pkg, catalog)
        if fallback is None:
            raise
        logger.info("Fallback target %s", fallback.entry.target)
        return [fallback]
