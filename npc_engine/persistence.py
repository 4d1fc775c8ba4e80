"""
npc_engine/persistence.py -- Persistence Service boundary.

The engine never owns durable storage.  A :class:`PersistenceService` is
supplied by the caller and stores whole records per scope (zone).  All
calls are coroutines; failures are reported by raising
:class:`~npc_engine.errors.PersistenceFailure`.

Two reference implementations are provided:

    InMemoryPersistence   Dict of scope -> records.  Used by tests and by
                          headless tools; can be told to fail on demand.
    JsonFilePersistence   One JSON document per scope under a root
                          directory, ``<root>/<scope>.json``, in the zone
                          document format ``{zone, version, lastUpdated,
                          description, npcs}``.  Blocking file I/O runs in
                          a worker thread via ``asyncio.to_thread``.

Records cross this boundary as deep copies in both directions.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from npc_engine.errors import PersistenceFailure
from npc_engine.models.documents import ZoneDocument
from npc_engine.utils import clone, read_json_strict, safe_write_json, utc_now_iso

logger = logging.getLogger(__name__)

CATALOG_FILENAME = "catalog.json"
_SCOPE_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class PersistenceService(Protocol):
    """What the collection manager needs from durable storage."""

    async def list_variant_catalog(self) -> Optional[dict]:
        """Optional catalog document overriding the built-in variant catalog."""
        ...

    async def list_entities(self, scope_id: str) -> list[dict]:
        ...

    async def save_entity(self, scope_id: str, record: dict) -> dict:
        """Store *record* (insert or replace by id) and return the stored copy."""
        ...

    async def delete_entity(self, scope_id: str, entity_id: Any) -> bool:
        ...


def _replace_or_append(records: list[dict], record: dict) -> list[dict]:
    for index, existing in enumerate(records):
        if existing.get("id") == record.get("id"):
            records[index] = record
            return records
    records.append(record)
    return records


# ------------------------------------------------------------------
# In-memory
# ------------------------------------------------------------------

class InMemoryPersistence:
    """Persistence Service kept in a dict.

    Parameters
    ----------
    scopes : dict, optional
        Initial ``scope_id -> list of records``.  Copied.
    catalog : dict, optional
        Catalog document returned by :meth:`list_variant_catalog`.
    """

    def __init__(self, scopes: Optional[dict[str, list[dict]]] = None,
                 catalog: Optional[dict] = None):
        self._scopes: dict[str, list[dict]] = clone(scopes or {})
        self._catalog = clone(catalog)
        self.fail_on: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def _check(self, operation: str, scope_id: str) -> None:
        self.calls.append((operation, scope_id))
        if operation in self.fail_on:
            raise PersistenceFailure(operation, f"simulated failure for scope {scope_id!r}")

    async def list_variant_catalog(self) -> Optional[dict]:
        self._check("catalog", "")
        return clone(self._catalog)

    async def list_entities(self, scope_id: str) -> list[dict]:
        self._check("list", scope_id)
        return clone(self._scopes.get(scope_id, []))

    async def save_entity(self, scope_id: str, record: dict) -> dict:
        self._check("save", scope_id)
        stored = clone(record)
        _replace_or_append(self._scopes.setdefault(scope_id, []), stored)
        return clone(stored)

    async def delete_entity(self, scope_id: str, entity_id: Any) -> bool:
        self._check("delete", scope_id)
        records = self._scopes.get(scope_id, [])
        remaining = [r for r in records if r.get("id") != entity_id]
        self._scopes[scope_id] = remaining
        return len(remaining) != len(records)


# ------------------------------------------------------------------
# JSON files
# ------------------------------------------------------------------

class JsonFilePersistence:
    """Persistence Service storing one zone document per scope.

    Parameters
    ----------
    root : str or Path
        Directory holding ``<scope>.json`` files and an optional
        ``catalog.json``.
    """

    def __init__(self, root):
        self.root = Path(root)
        self._lock = asyncio.Lock()

    def path_for(self, scope_id: str) -> Path:
        if not isinstance(scope_id, str) or not _SCOPE_RE.match(scope_id) or scope_id in (".", ".."):
            raise PersistenceFailure("resolve", f"invalid scope id {scope_id!r}")
        return self.root / f"{scope_id}.json"

    # -- blocking helpers (run in a worker thread) -------------------------

    def _read_document(self, scope_id: str) -> ZoneDocument:
        path = self.path_for(scope_id)
        try:
            raw = read_json_strict(path)
        except (json.JSONDecodeError, OSError) as exc:
            raise PersistenceFailure("list", f"cannot read {path.name}: {exc}") from exc
        if raw is None:
            return ZoneDocument(zone=scope_id)
        try:
            return ZoneDocument.model_validate(raw)
        except ValidationError as exc:
            raise PersistenceFailure("list", f"{path.name} is not a zone document: {exc}") from exc

    def _write_document(self, doc: ZoneDocument) -> None:
        path = self.path_for(doc.zone)
        doc.last_updated = utc_now_iso()
        try:
            safe_write_json(path, doc.to_json())
        except OSError as exc:
            raise PersistenceFailure("save", f"cannot write {path.name}: {exc}") from exc
        logger.debug("Wrote %d NPCs to %s", len(doc.npcs), path)

    def _save_sync(self, scope_id: str, record: dict) -> dict:
        doc = self._read_document(scope_id)
        stored = clone(record)
        _replace_or_append(doc.npcs, stored)
        self._write_document(doc)
        return clone(stored)

    def _delete_sync(self, scope_id: str, entity_id: Any) -> bool:
        doc = self._read_document(scope_id)
        before = len(doc.npcs)
        doc.npcs = [r for r in doc.npcs if r.get("id") != entity_id]
        if len(doc.npcs) == before:
            return False
        self._write_document(doc)
        return True

    def _read_catalog(self) -> Optional[dict]:
        path = self.root / CATALOG_FILENAME
        try:
            data = read_json_strict(path)
        except (json.JSONDecodeError, OSError) as exc:
            raise PersistenceFailure("catalog", f"cannot read {path.name}: {exc}") from exc
        if data is not None and not isinstance(data, dict):
            raise PersistenceFailure("catalog", f"{path.name} must contain a mapping")
        return data

    # -- service API -------------------------------------------------------

    async def list_variant_catalog(self) -> Optional[dict]:
        return await asyncio.to_thread(self._read_catalog)

    async def list_entities(self, scope_id: str) -> list[dict]:
        doc = await asyncio.to_thread(self._read_document, scope_id)
        return clone(doc.npcs)

    async def save_entity(self, scope_id: str, record: dict) -> dict:
        async with self._lock:
            return await asyncio.to_thread(self._save_sync, scope_id, record)

    async def delete_entity(self, scope_id: str, entity_id: Any) -> bool:
        async with self._lock:
            return await asyncio.to_thread(self._delete_sync, scope_id, entity_id)
