"""
Price registry (CoinDecimalsRegistry) selection.

The registry id differs between deployments, so candidates are gathered
in order from the configured id, the known deployment default and the
version and market objects (their dynamic children and any registry-looking
ids in their content), then verified by simulation.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from creek_bot.config.protocol import REGISTRY_TYPE_SUFFIX
from creek_bot.errors import ConfigurationError, SuiRPCError
from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.models import RankedEntry, RegistrySelection, RoleBindings, is_object_id
from creek_bot.helpers.positions import walk_content

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 64
REGISTRY_KEY_RE = re.compile(r"decimal|registry", re.IGNORECASE)


def likely_ids(content: dict[str, Any] | None) -> list[str]:
    """Object ids in ``content``: uid fields plus anything under a decimal/registry key."""
    ids: list[str] = []

    def add(value: Any) -> None:
        if isinstance(value, dict):
            value = value.get("id")
        if isinstance(value, dict):
            value = value.get("id")
        if is_object_id(value) and value.lower() not in ids:
            ids.append(value.lower())

    for key, value in walk_content(content or {}):
        if key == "id":
            add(value)
        elif key and REGISTRY_KEY_RE.search(key):
            add(value)
    return ids


class RegistryPicker:
    def __init__(self, catalog: ResourceCatalog, probe_engine, roots: tuple[str, ...], explicit_id: str = "", default_id: str = "", allow_best_effort: bool = True):
        self.catalog = catalog
        self.probe_engine = probe_engine
        self.roots = tuple(r.lower() for r in roots if r)
        self.explicit_id = explicit_id.lower()
        self.default_id = default_id.lower()
        self.allow_best_effort = allow_best_effort

    @classmethod
    def from_settings(cls, catalog: ResourceCatalog, probe_engine, settings) -> "RegistryPicker":
        return cls(
            catalog,
            probe_engine,
            roots=(settings.version_id, settings.market_id),
            explicit_id=settings.registry_id,
            default_id=settings.default_registry_id,
            allow_best_effort=settings.allow_registry_best_effort,
        )

    def _is_usable_registry(self, object_id: str) -> bool:
        type_str = self.catalog.type_of(object_id) or ""
        owner = self.catalog.owner_kind_of(object_id)
        return REGISTRY_TYPE_SUFFIX in type_str and owner is not None and owner.concurrent_safe

    def _dynamic_child_ids(self, parent_id: str) -> list[str]:
        out = []
        for child in self.catalog.dynamic_children(parent_id):
            child_id = (child.get("objectId") or "").lower()
            if not child_id:
                continue
            out.append(child_id)
            content = self.catalog.content_of(child_id) or {}
            value = ((content.get("fields") or {}).get("value") or {}).get("fields") or {}
            inner = (value.get("id") or {}).get("id") if isinstance(value.get("id"), dict) else None
            if is_object_id(inner):
                out.append(inner.lower())
        return out

    def candidates(self) -> list[str]:
        """Shared/immutable objects of the registry type: explicit id, else default then discovered."""
        if self.explicit_id:
            owner = self.catalog.owner_kind_of(self.explicit_id)
            if owner is not None and owner.concurrent_safe:
                return [self.explicit_id]
            logger.warning(
                "DECIMALS_REGISTRY_ID %s is %s, not Shared/Immutable; ignored",
                self.explicit_id, owner.value if owner else "unknown",
            )

        raw = [self.default_id] if self.default_id else []
        raw.extend(self.roots)
        for root in self.roots:
            raw.extend(self._dynamic_child_ids(root))
        for root in self.roots:
            raw.extend(likely_ids(self.catalog.content_of(root)))

        seen: set[str] = set()
        out = []
        for object_id in raw:
            if object_id in seen:
                continue
            seen.add(object_id)
            if self._is_usable_registry(object_id):
                out.append(object_id)
            if len(out) >= MAX_CANDIDATES:
                break
        if out:
            logger.info("Registry candidates: %s", ", ".join(out))
        return out

    def select(self, ranked: RankedEntry, bindings: RoleBindings) -> RegistrySelection:
        """First candidate whose probe at amount 1 is accepted or only size-limited."""
        candidates = self.candidates()
        if not candidates:
            return RegistrySelection(None)

        for candidate in candidates:
            try:
                result = self.probe_engine.probe(ranked.entry, 1, bindings.with_registry(candidate))
            except (ConfigurationError, SuiRPCError) as e:
                logger.debug("Registry candidate %s errored: %s", candidate, e)
                continue
            if result.usable:
                logger.info("Registry %s works (%s)", candidate, "accepted" if result.accepted else result.error_message)
                return RegistrySelection(candidate, verified=True)
            logger.debug("Registry candidate %s rejected: %s", candidate, result.error_message)

        if self.allow_best_effort:
            logger.warning("No registry candidate simulated cleanly; best-effort use of %s", candidates[0])
            return RegistrySelection(candidates[0], verified=False)
        return RegistrySelection(None)
