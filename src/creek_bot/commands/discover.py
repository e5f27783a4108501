"""
List the entry points discovery would consider for an action, best first.

Read-only: no signer is needed and nothing is simulated.
"""

from __future__ import annotations

import logging

from creek_bot.helpers.catalog import ResourceCatalog
from creek_bot.helpers.entry_discovery import resolve_entries
from creek_bot.helpers.models import RankedEntry
from creek_bot.helpers.sui_rpc import SuiClient


def format_entry(ranked: RankedEntry) -> str:
    entry = ranked.entry
    params = ", ".join(p.describe() for p in entry.call_parameters)
    roles = ",".join(role.value for role in ranked.roles) or "-"
    return f"{ranked.score:>4}  {entry.target}({params})  type_params={entry.type_parameter_count}  roles={roles}"


def run(settings, action: str, logger: logging.Logger, client: SuiClient | None = None, limit: int = 20) -> list[RankedEntry]:
    catalog = ResourceCatalog(client or SuiClient(settings.fullnode_url))
    ranked = resolve_entries(action, settings, catalog)
    logger.info("%d candidate(s) for %r", len(ranked), action)
    for item in ranked[:limit]:
        print(format_entry(item))
    return ranked
