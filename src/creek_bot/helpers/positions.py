"""
Position discovery.

A position (Obligation) is shared; the wallet holds the capability
(ObligationKey) whose content points back at it via ``ownership.of``.
Collateral lives in dynamic fields hung off the position or one of its
nested bags/tables. The collateral scan is a heuristic: it walks a bounded
depth of the position's content collecting container ids, and may miss
entries stored under containers with other naming conventions.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from creek_bot.config.protocol import COLLATERAL_TYPE_MARKER, DYNAMIC_FIELD_MARKER
from creek_bot.errors import ConfigurationError
from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.models import CollateralLookup, PositionPick, is_object_id

logger = logging.getLogger(__name__)

MAX_WALK_DEPTH = 8
CONTAINER_KEY_HINTS = ("bag", "table", "collateral")


def walk_content(value: Any, depth: int = 0, max_depth: int = MAX_WALK_DEPTH) -> Iterator[tuple[str | None, Any]]:
    """Yield (key, value) pairs of nested JSON content, depth-first, up to ``max_depth``."""
    if depth > max_depth:
        return
    if isinstance(value, dict):
        for key, inner in value.items():
            yield key, inner
            yield from walk_content(inner, depth + 1, max_depth)
    elif isinstance(value, list):
        for inner in value:
            yield None, inner
            yield from walk_content(inner, depth + 1, max_depth)


def _nested_uid(value: Any) -> str | None:
    """``{"id": "0x.."}`` or ``{"fields": {"id": {"id": "0x.."}}}`` -> id."""
    if not isinstance(value, dict):
        return None
    inner = value.get("id")
    if isinstance(inner, dict):
        inner = inner.get("id")
    if inner is None and isinstance(value.get("fields"), dict):
        uid = value["fields"].get("id")
        inner = uid.get("id") if isinstance(uid, dict) else None
    return inner.lower() if is_object_id(inner) else None


def container_ids(content: dict[str, Any] | None, max_depth: int = MAX_WALK_DEPTH) -> list[str]:
    """Ids of objects nested in ``content`` that may hold dynamic fields."""
    found: list[str] = []

    def add(object_id: str | None) -> None:
        if object_id and object_id not in found:
            found.append(object_id)

    for key, value in walk_content(content or {}, max_depth=max_depth):
        if key == "id" and isinstance(value, str) and is_object_id(value):
            add(value.lower())
        if isinstance(value, dict):
            add(_nested_uid(value) if "fields" in value else None)
        if key and any(hint in key.lower() for hint in CONTAINER_KEY_HINTS):
            add(_nested_uid(value))
    return found


def asset_type_key(type_str: str) -> str:
    """Type string with its address stripped of 0x and leading zeros, for comparison."""
    head, sep, rest = type_str.partition("::")
    address = head.lower().removeprefix("0x").lstrip("0") or "0"
    return f"{address}{sep}{rest}"


class PositionLocator:
    def __init__(self, catalog: ResourceCatalog, protocol_pkg: str, key_override: str = "", position_override: str = ""):
        self.catalog = catalog
        self.protocol_pkg = protocol_pkg
        self.key_override = key_override.lower()
        self.position_override = position_override.lower()

    @classmethod
    def from_settings(cls, catalog: ResourceCatalog, settings) -> "PositionLocator":
        return cls(catalog, settings.protocol_pkg, settings.obligation_key_id, settings.obligation_id)

    def capabilities(self, owner: str) -> list[tuple[str, str, int]]:
        """(capability id, position id, version) of every owned key, newest first."""
        struct_type = f"{self.protocol_pkg}::obligation::ObligationKey"
        keys = []
        for data in self.catalog.owned_objects(owner, struct_type):
            key_id = data.get("objectId")
            fields = (data.get("content") or {}).get("fields") or {}
            ownership = (fields.get("ownership") or {}).get("fields") or {}
            position_id = ownership.get("of")
            if key_id and position_id:
                keys.append((key_id.lower(), str(position_id).lower(), int(data.get("version") or 0)))
        keys.sort(key=lambda k: k[2], reverse=True)
        return keys

    def collateral_under(self, parent_id: str, asset_type: str) -> CollateralLookup:
        for child in self.catalog.dynamic_children(parent_id):
            child_id = child.get("objectId")
            if not child_id:
                continue
            data = self.catalog.object_with_content(child_id) or {}
            type_str = data.get("type") or ""
            if DYNAMIC_FIELD_MARKER not in type_str or COLLATERAL_TYPE_MARKER not in type_str:
                continue
            fields = (data.get("content") or {}).get("fields") or {}
            name = fields.get("name") or {}
            name_str = (name.get("fields") or {}).get("name") or name.get("name") or ""
            if not isinstance(name_str, str) or asset_type_key(asset_type) not in asset_type_key(name_str):
                continue
            value = (fields.get("value") or {}).get("fields") or {}
            raw = value.get("amount", value.get("balance", value.get("total", 0)))
            try:
                return CollateralLookup(found=True, available=int(str(raw)))
            except ValueError:
                return CollateralLookup(found=True, available=None)
        return CollateralLookup(found=False)

    def collateral_of(self, position_id: str, asset_type: str) -> CollateralLookup:
        """Available collateral of ``asset_type`` in a position; NotFound is not proof of absence."""
        content = self.catalog.content_of(position_id)
        if not content or not content.get("fields"):
            return CollateralLookup(found=False)
        parents = [position_id.lower()] + [p for p in container_ids(content) if p != position_id.lower()]
        for parent_id in parents:
            lookup = self.collateral_under(parent_id, asset_type)
            if lookup.found:
                return lookup
        return CollateralLookup(found=False)

    def locate(self, owner: str, asset_type: str | None) -> PositionPick:
        """Key and position to act on; ``asset_type=None`` skips the collateral scan."""
        if self.key_override and self.position_override:
            return PositionPick(self.key_override, self.position_override)

        keys = self.capabilities(owner)
        if not keys:
            raise ConfigurationError("No ObligationKey in wallet; deposit collateral first")

        if self.key_override:
            for key_id, position_id, _ in keys:
                if key_id == self.key_override:
                    return PositionPick(key_id, position_id)
            raise ConfigurationError(f"OBLIGATION_KEY_ID {self.key_override} is not owned by {owner}")

        if self.position_override:
            for key_id, position_id, _ in keys:
                if position_id == self.position_override:
                    return PositionPick(key_id, position_id)
            logger.warning("OBLIGATION_ID %s matches no owned key; scanning", self.position_override)

        if asset_type is None:
            key_id, position_id, _ = keys[0]
            return PositionPick(key_id, position_id)

        best: PositionPick | None = None
        for key_id, position_id, _ in keys:
            lookup = self.collateral_of(position_id, asset_type)
            if not lookup.found:
                continue
            available = lookup.available or 0
            if best is None or available > (best.available or 0):
                best = PositionPick(key_id, position_id, available)
        if best is not None:
            return best

        logger.warning("No %s collateral found via container scan; using the newest key", asset_type)
        key_id, position_id, _ = keys[0]
        return PositionPick(key_id, position_id)
