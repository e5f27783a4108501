"""
Sui fullnode JSON-RPC client.

Thin wrapper over ``requests``: one method per RPC the bot uses, returning
the raw ``result`` payload. Transport failures and JSON-RPC errors raise
``SuiRPCError`` with the node's message preserved.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Iterator

import requests

from creek_bot.errors import SuiRPCError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
PAGE_LIMIT = 50


class SuiClient:
    def __init__(self, url: str, timeout: float = DEFAULT_TIMEOUT, session: requests.Session | None = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._request_id = 0

    # ---------- core ----------

    def call(self, method: str, params: list[Any]) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }
        logger.debug("--> %s %s", method, params)

        try:
            response = self.session.post(self.url, json=payload, headers=self.headers, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.JSONDecodeError as e:
            raise SuiRPCError(f"{method}: invalid JSON from fullnode") from e
        except requests.exceptions.RequestException as e:
            raise SuiRPCError(f"{method}: {e}") from e

        if body.get("error"):
            err = body["error"]
            raise SuiRPCError(f"{method}: {err.get('message', err)}", code=err.get("code"))

        logger.debug("<-- %s ok", method)
        return body.get("result")

    # ---------- objects ----------

    def get_object(
        self,
        object_id: str,
        show_type: bool = True,
        show_owner: bool = False,
        show_content: bool = False,
        show_bcs: bool = False,
    ) -> dict[str, Any]:
        """Raw sui_getObject result: {"data": {...}} or {"error": {...}}."""
        options = {
            "showType": show_type,
            "showOwner": show_owner,
            "showContent": show_content,
            "showBcs": show_bcs,
        }
        return self.call("sui_getObject", [object_id, options]) or {}

    def get_owned_objects(
        self,
        owner: str,
        struct_type: str | None = None,
        cursor: str | None = None,
        limit: int = PAGE_LIMIT,
    ) -> dict[str, Any]:
        query: dict[str, Any] = {
            "options": {"showType": True, "showOwner": True, "showContent": True},
        }
        if struct_type:
            query["filter"] = {"StructType": struct_type}
        return self.call("suix_getOwnedObjects", [owner, query, cursor, limit]) or {}

    def iter_owned_objects(self, owner: str, struct_type: str | None = None) -> Iterator[dict[str, Any]]:
        """Every owned object across all pages."""
        cursor = None
        while True:
            page = self.get_owned_objects(owner, struct_type, cursor)
            yield from page.get("data") or []
            if not page.get("hasNextPage"):
                return
            cursor = page.get("nextCursor")

    def get_dynamic_fields(self, parent_id: str, cursor: str | None = None, limit: int = PAGE_LIMIT) -> dict[str, Any]:
        return self.call("suix_getDynamicFields", [parent_id, cursor, limit]) or {}

    def iter_dynamic_fields(self, parent_id: str) -> Iterator[dict[str, Any]]:
        cursor = None
        while True:
            page = self.get_dynamic_fields(parent_id, cursor)
            yield from page.get("data") or []
            if not page.get("hasNextPage"):
                return
            cursor = page.get("nextCursor")

    # ---------- packages ----------

    def get_normalized_modules(self, package_id: str) -> dict[str, Any]:
        """module name -> normalized module (exposedFunctions, structs...)."""
        return self.call("sui_getNormalizedMoveModulesByPackage", [package_id]) or {}

    # ---------- coins ----------

    def get_balance(self, owner: str, coin_type: str) -> int:
        result = self.call("suix_getBalance", [owner, coin_type]) or {}
        return int(result.get("totalBalance") or 0)

    def get_coins(self, owner: str, coin_type: str, cursor: str | None = None, limit: int = PAGE_LIMIT) -> dict[str, Any]:
        return self.call("suix_getCoins", [owner, coin_type, cursor, limit]) or {}

    def get_reference_gas_price(self) -> int:
        return int(self.call("suix_getReferenceGasPrice", []))

    # ---------- transactions ----------

    def dry_run(self, tx_bytes: bytes) -> dict[str, Any]:
        encoded = base64.b64encode(tx_bytes).decode()
        return self.call("sui_dryRunTransactionBlock", [encoded]) or {}

    def execute(self, tx_bytes: bytes, signatures: list[str]) -> dict[str, Any]:
        encoded = base64.b64encode(tx_bytes).decode()
        options = {"showEffects": True, "showEvents": True, "showBalanceChanges": True}
        return self.call(
            "sui_executeTransactionBlock",
            [encoded, signatures, options, "WaitForLocalExecution"],
        ) or {}


def effects_status(result: dict[str, Any]) -> tuple[bool, str | None]:
    """(success, error message) from a dry-run or execute result."""
    status = (result.get("effects") or {}).get("status") or {}
    ok = status.get("status") == "success"
    return ok, None if ok else (status.get("error") or "transaction failed")
