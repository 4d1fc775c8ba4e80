"""
npc_app/main.py -- Composition root and command-line entry point.

Wires the engine components together around one explicit event bus and
one persistence backend.  Running the module loads a zone and prints the
validation report of every NPC in it.

Usage::

    python -m npc_app.main [zone]
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Any, Optional

from npc_app.services.event_bus import EditorEventBus
from npc_app.settings import EditorSettings, load_settings
from npc_engine.collection import CollectionManager
from npc_engine.factory import EntityFactory, IdAllocator
from npc_engine.form_builder import FormBuilder
from npc_engine.persistence import JsonFilePersistence, PersistenceService
from npc_engine.registry import TypeRegistry
from npc_engine.wizard import SaveOutcome, WizardController

logger = logging.getLogger(__name__)


def _setup_logging(level: str = "INFO") -> None:
    """Configure logging for the editor."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@dataclass
class Editor:
    """All components of one editor instance."""
    registry: TypeRegistry
    factory: EntityFactory
    form: FormBuilder
    collection: CollectionManager
    wizard: WizardController
    bus: EditorEventBus

    async def open_scope(self, scope_id: str) -> list[dict[str, Any]]:
        records = await self.collection.load_for_scope(scope_id)
        if self.collection.scope_id == scope_id:
            self.bus.entities_loaded.emit(scope_id, len(records))
        return records

    async def save_wizard(self) -> SaveOutcome:
        draft_id = self.wizard.draft.get("id") if self.wizard.draft else None
        outcome = await self.wizard.save()
        if outcome.ok:
            self.bus.entity_saved.emit(str(draft_id))
        return outcome

    async def delete(self, entity_id: Any, confirmed: bool = False) -> bool:
        deleted = await self.collection.delete(entity_id, confirmed=confirmed)
        if deleted:
            self.bus.entity_deleted.emit(str(entity_id))
        return deleted


def build_editor(persistence: PersistenceService,
                 bus: Optional[EditorEventBus] = None,
                 registry: Optional[TypeRegistry] = None) -> Editor:
    """Create and connect every component around *persistence*."""
    bus = bus or EditorEventBus()
    registry = registry or TypeRegistry.default()
    factory = EntityFactory(registry, IdAllocator())
    form = FormBuilder(registry)
    form.subscribe(bus.on_field_changed)
    collection = CollectionManager(persistence, factory, notifier=bus)
    wizard = WizardController(collection, form, notifier=bus)
    wizard.on_step_changed(bus.on_step_changed)
    return Editor(registry, factory, form, collection, wizard, bus)


async def build_editor_for_settings(settings: EditorSettings,
                                    bus: Optional[EditorEventBus] = None) -> Editor:
    """Editor over the JSON zone files of *settings*, using their catalog if any."""
    persistence = JsonFilePersistence(settings.zones_dir)
    editor = build_editor(persistence, bus)
    registry = await editor.collection.load_catalog()
    if registry is not None:
        logger.info("Using the variant catalog from %s", settings.zones_dir)
        editor = build_editor(persistence, editor.bus, registry)
    return editor


async def _report(settings: EditorSettings, scope_id: str) -> int:
    editor = await build_editor_for_settings(settings)
    records = await editor.open_scope(scope_id)
    summary = editor.form.validator.validate_batch(records)
    print(f"Zone {scope_id}: {summary.total} NPCs, {summary.invalid} invalid, "
          f"{summary.total_errors} errors, {summary.total_warnings} warnings")
    for entry in summary.entries:
        if entry.result.valid and not entry.result.warnings:
            continue
        print(f"\nNPC {entry.record_id}:")
        print(entry.result.format_human())
    return 1 if summary.invalid else 0


def main(argv: Optional[list[str]] = None) -> int:
    """Validate every NPC of a zone and print the report."""
    argv = sys.argv[1:] if argv is None else argv
    settings = load_settings()
    _setup_logging(settings.log_level)
    scope_id = argv[0] if argv else settings.default_scope
    logger.info("Validating zone %s in %s", scope_id, settings.zones_dir)
    return asyncio.run(_report(settings, scope_id))


if __name__ == "__main__":
    sys.exit(main())
