"""
npc_engine/factory.py -- Draft creation, duplication and id allocation.

Every record the factory returns is a fresh value: templates and source
records are deep-copied, so a draft never shares a nested mapping or list
with anything stored elsewhere.

Ids are positive integers allocated from the wall clock in milliseconds,
bumped so they are strictly increasing within the process even when two
drafts are created in the same millisecond.

Usage::

    from npc_engine.factory import EntityFactory

    factory = EntityFactory()
    draft = factory.create_draft("merchant")
    copy = factory.duplicate(draft)       # new id, "(Copy)", +32/+32
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional

from npc_engine.errors import UnknownVariantError
from npc_engine.registry import COMMON_FIELDS, EntityVariant, TypeRegistry
from npc_engine.templates import DEFAULT_POSITION, template_for
from npc_engine.utils import clone, is_number, is_populated

logger = logging.getLogger(__name__)

DUPLICATE_OFFSET = 32
COPY_SUFFIX = " (Copy)"

# Fields a variant switch keeps from the current draft.
_PRESERVED_ON_TEMPLATE = ("id", "name", "sprite")


class IdAllocator:
    """Strictly increasing millisecond-based ids.

    Parameters
    ----------
    clock : callable, optional
        Returns the current time in seconds (default ``time.time``).
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last = 0
        self._lock = threading.Lock()

    def next_id(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate

    def observe(self, existing_id: Any) -> None:
        """Make sure future ids sort after *existing_id* (loaded records)."""
        if is_number(existing_id):
            with self._lock:
                self._last = max(self._last, int(existing_id))


class EntityFactory:
    """Produces new draft records.

    Parameters
    ----------
    registry : TypeRegistry, optional
        Variant registry (default: the compiled-in catalog).
    ids : IdAllocator, optional
        Id source.  Share one allocator between factories that feed the
        same collection.
    """

    def __init__(self, registry: Optional[TypeRegistry] = None,
                 ids: Optional[IdAllocator] = None):
        self.registry = registry or TypeRegistry.default()
        self.ids = ids or IdAllocator()

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _variant(self, variant: Any) -> EntityVariant:
        parsed = EntityVariant.parse(variant)
        if parsed is None:
            raise UnknownVariantError(variant)
        return parsed

    def create_draft(self, variant: Any) -> dict[str, Any]:
        """New record of *variant* filled from the variant template.

        Raises
        ------
        UnknownVariantError
            If *variant* is not one of the twelve variants.
        """
        parsed = self._variant(variant)
        record = {"id": self.ids.next_id()}
        record.update(template_for(parsed))
        self._fill_sequences(record, parsed)
        logger.debug("Created %s draft %s", parsed.value, record["id"])
        return record

    def create_blank(self) -> dict[str, Any]:
        """Draft for the variant-selection step: no variant yet."""
        return {
            "id": self.ids.next_id(),
            "position": dict(DEFAULT_POSITION),
            "direction": COMMON_FIELDS["direction"]["default"],
        }

    def create_empty(self, variant: Any) -> dict[str, Any]:
        """Minimal record of *variant*: common defaults, no template content."""
        parsed = self._variant(variant)
        record: dict[str, Any] = {
            "id": self.ids.next_id(),
            "name": f"New {parsed.value}",
            "type": parsed.value,
            "position": {"x": 0, "y": 0},
            "sprite": "default.png",
        }
        for name, meta in COMMON_FIELDS.items():
            if "default" in meta:
                record.setdefault(name, meta["default"])
        self._fill_sequences(record, parsed)
        return record

    def apply_template(self, draft: dict[str, Any], variant: Any) -> dict[str, Any]:
        """Replace *draft*'s content with *variant*'s template in place.

        ``id`` is kept, and so are a name or sprite the user already
        entered.  Everything else comes from the template.
        """
        parsed = self._variant(variant)
        kept = {k: draft[k] for k in _PRESERVED_ON_TEMPLATE if is_populated(draft.get(k))}
        draft.clear()
        draft.update(template_for(parsed))
        draft.update(clone(kept))
        if "id" not in draft:
            draft["id"] = self.ids.next_id()
        self._fill_sequences(draft, parsed)
        return draft

    def duplicate(self, record: dict[str, Any]) -> dict[str, Any]:
        """Deep copy of *record* with a new id, a copy marker and an offset position."""
        copy = clone(record)
        copy["id"] = self.ids.next_id()
        copy["name"] = f"{record.get('name') or ''}{COPY_SUFFIX}"
        position = copy.get("position")
        if not isinstance(position, dict):
            position = {}
        x = position.get("x", 0)
        y = position.get("y", 0)
        position["x"] = (x if is_number(x) else 0) + DUPLICATE_OFFSET
        position["y"] = (y if is_number(y) else 0) + DUPLICATE_OFFSET
        copy["position"] = position
        logger.debug("Duplicated %s as %s", record.get("id"), copy["id"])
        return copy

    # ------------------------------------------------------------------

    def _fill_sequences(self, record: dict[str, Any], variant: EntityVariant) -> None:
        for name in self.registry.sequence_fields(variant):
            if record.get(name) is None:
                record[name] = []
