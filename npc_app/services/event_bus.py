"""
npc_app/services/event_bus.py -- Editor event bus using Qt signals.

Provides typed signals for the editor's panels.  The bus is constructed
once by the composition root (``npc_app.main.build_editor``) and passed to
whoever needs it; there is no global instance.

It also implements the engine's notifier interface, so it can be handed
straight to the collection manager and the wizard, and it has adapters for
the form-builder and wizard listener callbacks.

Usage::

    from npc_app.services.event_bus import EditorEventBus

    bus = EditorEventBus()
    bus.notification.connect(show_toast)
    collection = CollectionManager(persistence, notifier=bus)
"""

from __future__ import annotations

from typing import Any

from PySide6.QtCore import QObject, Signal

from npc_engine.notifications import NotificationLevel


class EditorEventBus(QObject):
    """Signal bus for the NPC editor.

    Signals
    -------
    notification(str, str)
        User-facing message and its level (info, success, warning, error).
    field_changed(str, bool)
        A draft field was edited.  Payload is the path and whether the
        draft is still valid.
    step_changed(int)
        The wizard moved to another step.
    entities_loaded(str, int)
        A scope was loaded.  Payload is the scope id and the record count.
    entity_saved(str)
        A record was saved.  Payload is the record id.
    entity_deleted(str)
        A record was deleted.  Payload is the record id.
    """

    notification = Signal(str, str)
    field_changed = Signal(str, bool)
    step_changed = Signal(int)
    entities_loaded = Signal(str, int)
    entity_saved = Signal(str)
    entity_deleted = Signal(str)

    # -- Notifier ----------------------------------------------------------

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self.notification.emit(message, NotificationLevel(level).value)

    # -- listener adapters ---------------------------------------------------

    def on_field_changed(self, path: str, value: Any, result: Any) -> None:
        """Form-builder change listener."""
        self.field_changed.emit(path, bool(result.valid))

    def on_step_changed(self, step: int) -> None:
        """Wizard step listener."""
        self.step_changed.emit(int(step))
