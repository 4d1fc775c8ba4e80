"""
npc_engine/collection.py -- The entity list of the active scope.

:class:`CollectionManager` owns the in-memory list of NPC records for one
scope (zone) and is the only component that talks to the Persistence
Service.  It opens wizard sessions for new, edited and duplicated records
and reconciles the list after a save or delete.

Every persistence call is guarded by a generation token.  Switching scope
or calling :meth:`close` bumps the token; a response that arrives for an
older generation is logged and discarded instead of overwriting newer
state.

Persistence failures never escape: they are logged, reported to the
notifier and turned into an empty list or a ``False`` return.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from npc_engine.factory import EntityFactory
from npc_engine.notifications import LoggingNotifier, NotificationLevel, Notifier
from npc_engine.persistence import PersistenceService
from npc_engine.registry import EntityVariant, TypeRegistry
from npc_engine.utils import clone
from npc_engine.wizard import WizardSession, WizardStep

logger = logging.getLogger(__name__)


class CollectionManager:
    """Entity list of one scope plus its persistence.

    Parameters
    ----------
    persistence : PersistenceService
        Durable storage.
    factory : EntityFactory, optional
        Used for new drafts and duplicates.
    notifier : Notifier, optional
        Receives user-facing messages (default: :class:`LoggingNotifier`).
    """

    def __init__(self, persistence: PersistenceService,
                 factory: Optional[EntityFactory] = None,
                 notifier: Optional[Notifier] = None):
        self.persistence = persistence
        self.factory = factory or EntityFactory()
        self.notifier = notifier or LoggingNotifier()
        self._scope_id: Optional[str] = None
        self._entities: list[dict[str, Any]] = []
        self._generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def scope_id(self) -> Optional[str]:
        return self._scope_id

    @property
    def entities(self) -> list[dict[str, Any]]:
        """Copies of the loaded records, in list order."""
        return clone(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def _index_of(self, entity_id: Any) -> Optional[int]:
        for index, record in enumerate(self._entities):
            if record.get("id") == entity_id:
                return index
        return None

    def find(self, entity_id: Any) -> Optional[dict[str, Any]]:
        index = self._index_of(entity_id)
        return clone(self._entities[index]) if index is not None else None

    def search(self, text: str = "", variant: Any = None) -> list[dict[str, Any]]:
        """Records whose name or id contains *text*, optionally of one variant."""
        needle = (text or "").strip().lower()
        wanted = EntityVariant.parse(variant) if variant else None
        matches = []
        for record in self._entities:
            if wanted is not None and record.get("type") != wanted.value:
                continue
            if needle and needle not in str(record.get("name", "")).lower() \
                    and needle not in str(record.get("id", "")):
                continue
            matches.append(clone(record))
        return matches

    def close(self) -> None:
        """Drop the list and invalidate every in-flight response."""
        self._generation += 1
        self._scope_id = None
        self._entities = []

    def _is_current(self, token: int, what: str) -> bool:
        if token != self._generation:
            logger.info("Discarding stale %s response (generation %d, now %d)",
                        what, token, self._generation)
            return False
        return True

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_for_scope(self, scope_id: str) -> list[dict[str, Any]]:
        """Replace the list with *scope_id*'s records.

        Returns copies of the loaded records, or an empty list on failure or
        when a newer load superseded this one.
        """
        self._generation += 1
        token = self._generation
        self._scope_id = scope_id
        self._entities = []

        try:
            records = await self.persistence.list_entities(scope_id)
        except Exception as exc:
            if not self._is_current(token, "load"):
                return []
            logger.exception("Failed to load NPCs for scope %s", scope_id)
            self.notifier.notify(f"Failed to load NPCs: {exc}", NotificationLevel.ERROR)
            return []

        if not self._is_current(token, "load"):
            return []

        self._entities = [clone(r) for r in records or [] if isinstance(r, dict)]
        for record in self._entities:
            self.factory.ids.observe(record.get("id"))
        logger.info("Loaded %d NPCs for scope %s", len(self._entities), scope_id)
        return clone(self._entities)

    async def load_catalog(self) -> Optional[TypeRegistry]:
        """Registry built from the persistence catalog, or ``None`` if it has none."""
        try:
            data = await self.persistence.list_variant_catalog()
        except Exception as exc:
            logger.exception("Failed to load the variant catalog")
            self.notifier.notify(f"Failed to load NPC types: {exc}", NotificationLevel.WARNING)
            return None
        if not data:
            return None
        return TypeRegistry.from_catalog(data)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_from(self, variant: Any) -> WizardSession:
        """Session for a new record of *variant*, at the basic-info step.

        Raises
        ------
        UnknownVariantError
            If *variant* is not a known variant.
        """
        return WizardSession(draft=self.factory.create_draft(variant),
                             step=WizardStep.BASIC_INFO, scope_id=self._scope_id)

    def edit_existing(self, entity_id: Any) -> Optional[WizardSession]:
        record = self.find(entity_id)
        if record is None:
            self.notifier.notify(f"NPC {entity_id} not found", NotificationLevel.WARNING)
            return None
        return WizardSession(draft=record, step=WizardStep.BASIC_INFO,
                             is_editing_existing=True, scope_id=self._scope_id)

    def duplicate(self, entity_id: Any) -> Optional[WizardSession]:
        index = self._index_of(entity_id)
        if index is None:
            self.notifier.notify(f"NPC {entity_id} not found", NotificationLevel.WARNING)
            return None
        copy = self.factory.duplicate(self._entities[index])
        return WizardSession(draft=copy, step=WizardStep.BASIC_INFO, scope_id=self._scope_id)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def save(self, record: dict[str, Any], scope_id: Optional[str] = None) -> bool:
        """Persist *record*, then replace it by id in the list or append it.

        When *scope_id* is given the save is refused unless it is still
        the active scope.  On failure the list is left unchanged.  Not
        retried.
        """
        if self._scope_id is None:
            self.notifier.notify("No zone selected; cannot save", NotificationLevel.ERROR)
            return False
        if scope_id is not None and scope_id != self._scope_id:
            logger.warning("Refusing to save NPC %s from zone %s into zone %s",
                           record.get("id"), scope_id, self._scope_id)
            self.notifier.notify(
                f"NPC belongs to zone {scope_id!r}, but {self._scope_id!r} is open; not saved",
                NotificationLevel.ERROR,
            )
            return False
        token = self._generation
        scope_id = self._scope_id
        payload = clone(record)

        try:
            stored = await self.persistence.save_entity(scope_id, payload)
        except Exception as exc:
            if not self._is_current(token, "save"):
                return False
            logger.exception("Failed to save NPC %s", record.get("id"))
            self.notifier.notify(f"Failed to save NPC: {exc}", NotificationLevel.ERROR)
            return False

        if not self._is_current(token, "save"):
            return False

        stored = clone(stored) if isinstance(stored, dict) else payload
        index = self._index_of(stored.get("id"))
        if index is None:
            self._entities.append(stored)
        else:
            self._entities[index] = stored
        self.notifier.notify(f"NPC '{stored.get('name', '')}' saved", NotificationLevel.SUCCESS)
        return True

    async def delete(self, entity_id: Any, confirmed: bool = False) -> bool:
        """Delete a record.  Does nothing unless *confirmed* is true."""
        if not confirmed:
            logger.debug("Delete of %s not confirmed; ignored", entity_id)
            return False
        if self._scope_id is None or self._index_of(entity_id) is None:
            return False
        token = self._generation

        try:
            deleted = await self.persistence.delete_entity(self._scope_id, entity_id)
        except Exception as exc:
            if not self._is_current(token, "delete"):
                return False
            logger.exception("Failed to delete NPC %s", entity_id)
            self.notifier.notify(f"Failed to delete NPC: {exc}", NotificationLevel.ERROR)
            return False

        if not self._is_current(token, "delete"):
            return False

        if not deleted:
            logger.warning("Storage had no NPC %s to delete", entity_id)
            self.notifier.notify(f"NPC {entity_id} could not be deleted", NotificationLevel.WARNING)
            return False

        index = self._index_of(entity_id)
        if index is not None:
            del self._entities[index]
        self.notifier.notify(f"NPC {entity_id} deleted", NotificationLevel.SUCCESS)
        return True
