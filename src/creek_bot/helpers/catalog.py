"""
Resource catalog: best-effort answers about on-chain objects and packages.

Every lookup swallows ``SuiRPCError`` and returns None / empty results, so
stale or wrong optional hints degrade discovery instead of aborting it.
Callers that *require* an answer (transaction building) check for None and
raise their own error.
"""

from __future__ import annotations

import logging
from typing import Any

from creek_bot.errors import SuiRPCError
from creek_bot.helpers.models import (
    EntryPoint,
    OwnershipKind,
    ParameterDescriptor,
    ResourceRef,
    normalize_sui_address,
)
from creek_bot.helpers.sui_rpc import SuiClient
from creek_bot.helpers.transaction import ObjectRef, split_target

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = "_entry"


def _entry_from_metadata(package_id: str, module: str, name: str, fn: dict[str, Any]) -> EntryPoint:
    return EntryPoint(
        package_id=normalize_sui_address(package_id),
        module=module,
        function=name,
        parameters=tuple(ParameterDescriptor(p) for p in fn.get("parameters") or []),
        type_parameter_count=len(fn.get("typeParameters") or []),
        is_entry=bool(fn.get("isEntry")) or name.endswith(ENTRY_SUFFIX),
    )


class ResourceCatalog:
    def __init__(self, client: SuiClient):
        self.client = client
        self._modules: dict[str, dict[str, Any]] = {}
        self._shared_refs: dict[str, ResourceRef] = {}

    # ---------- objects ----------

    def _object_data(self, object_id: str, **options) -> dict[str, Any] | None:
        try:
            result = self.client.get_object(object_id, **options)
        except SuiRPCError as e:
            logger.debug("get_object %s failed: %s", object_id, e)
            return None
        return result.get("data") or None

    def type_of(self, object_id: str) -> str | None:
        data = self._object_data(object_id, show_type=True)
        return data.get("type") if data else None

    def owner_kind_of(self, object_id: str) -> OwnershipKind | None:
        data = self._object_data(object_id, show_type=True, show_owner=True)
        if not data or "owner" not in data:
            return None
        return OwnershipKind.from_owner(data["owner"])

    def content_of(self, object_id: str) -> dict[str, Any] | None:
        data = self._object_data(object_id, show_type=True, show_content=True)
        return data.get("content") if data else None

    def object_with_content(self, object_id: str) -> dict[str, Any] | None:
        """type + owner + content in one call."""
        return self._object_data(object_id, show_type=True, show_owner=True, show_content=True)

    def package_of_type(self, object_id: str) -> str | None:
        """Package address that defines the object's type."""
        type_str = self.type_of(object_id)
        if not type_str or "::" not in type_str:
            return None
        return normalize_sui_address(type_str.split("::", 1)[0])

    def resolve_ref(self, object_id: str) -> ResourceRef | None:
        """Reference data a transaction input needs (shared version or owned version/digest)."""
        object_id = normalize_sui_address(object_id)
        if object_id in self._shared_refs:
            return self._shared_refs[object_id]
        data = self._object_data(object_id, show_type=True, show_owner=True)
        if not data:
            return None
        owner = data.get("owner")
        kind = OwnershipKind.from_owner(owner)
        initial = None
        if kind is OwnershipKind.SHARED:
            initial = int(owner["Shared"]["initial_shared_version"])
        ref = ResourceRef(
            object_id=object_id,
            owner_kind=kind,
            version=int(data["version"]) if data.get("version") is not None else None,
            digest=data.get("digest"),
            initial_shared_version=initial,
            type=data.get("type"),
        )
        # initial_shared_version never changes; owned versions do
        if kind is OwnershipKind.SHARED:
            self._shared_refs[object_id] = ref
        return ref

    def owned_objects(self, owner: str, struct_type: str) -> list[dict[str, Any]]:
        try:
            return [item.get("data") or {} for item in self.client.iter_owned_objects(owner, struct_type)]
        except SuiRPCError as e:
            logger.debug("owned objects of %s failed: %s", owner, e)
            return []

    def dynamic_children(self, parent_id: str) -> list[dict[str, Any]]:
        try:
            return list(self.client.iter_dynamic_fields(parent_id))
        except SuiRPCError as e:
            logger.debug("dynamic fields of %s failed: %s", parent_id, e)
            return []

    # ---------- packages ----------

    def is_package(self, object_id: str) -> bool:
        data = self._object_data(object_id, show_type=False, show_bcs=True)
        return bool(data) and (data.get("bcs") or {}).get("dataType") == "package"

    def modules_of(self, package_id: str) -> dict[str, Any]:
        package_id = normalize_sui_address(package_id)
        if package_id not in self._modules:
            try:
                self._modules[package_id] = self.client.get_normalized_modules(package_id)
            except SuiRPCError as e:
                logger.debug("normalized modules of %s failed: %s", package_id, e)
                return {}
        return self._modules[package_id]

    def list_entries(self, package_id: str) -> list[EntryPoint]:
        """Entry functions of a package; ``*_entry`` names count even without the isEntry flag."""
        out = []
        for module_name, module in self.modules_of(package_id).items():
            functions = module.get("exposedFunctions") or module.get("functions") or {}
            for fn_name, fn in functions.items():
                entry = _entry_from_metadata(package_id, module_name, fn_name, fn)
                if entry.is_entry:
                    out.append(entry)
        return out

    def get_function(self, target: str) -> EntryPoint | None:
        """Resolve ``pkg::module::function`` to its metadata, entry or not."""
        package_id, module_name, fn_name = split_target(target)
        module = self.modules_of(package_id).get(module_name) or {}
        functions = module.get("exposedFunctions") or module.get("functions") or {}
        fn = functions.get(fn_name)
        if fn is None:
            return None
        return _entry_from_metadata(package_id, module_name, fn_name, fn)

    # ---------- coins ----------

    def balance(self, owner: str, coin_type: str) -> int | None:
        try:
            return self.client.get_balance(owner, coin_type)
        except SuiRPCError as e:
            logger.debug("balance of %s failed: %s", coin_type, e)
            return None

    def coins(self, owner: str, coin_type: str) -> list[tuple[int, ObjectRef]]:
        """(balance, coin ref) pairs, largest balance first."""
        coins: list[tuple[int, ObjectRef]] = []
        cursor = None
        try:
            while True:
                page = self.client.get_coins(owner, coin_type, cursor)
                for c in page.get("data") or []:
                    ref = ObjectRef(c["coinObjectId"], int(c["version"]), c["digest"])
                    coins.append((int(c.get("balance") or 0), ref))
                if not page.get("hasNextPage"):
                    break
                cursor = page.get("nextCursor")
        except SuiRPCError as e:
            logger.debug("coins of %s failed: %s", coin_type, e)
        coins.sort(key=lambda item: item[0], reverse=True)
        return coins
