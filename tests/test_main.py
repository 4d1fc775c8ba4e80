"""
Tests for npc_app/main.py -- composition root and the zone report.
"""

import asyncio
import json
from unittest.mock import MagicMock

import pytest
from PySide6.QtCore import QCoreApplication

from npc_app.main import build_editor, build_editor_for_settings, main
from npc_app.settings import EditorSettings
from npc_engine.form_builder import EditCommand
from npc_engine.persistence import InMemoryPersistence
from npc_engine.wizard import WizardStep


@pytest.fixture()
def _ensure_qapp():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    yield app


@pytest.fixture()
def editor(_ensure_qapp, stored_npcs):
    return build_editor(InMemoryPersistence({"route_1": stored_npcs}))


class TestBuildEditor:
    def test_components_share_registry_and_bus(self, editor):
        assert editor.wizard.collection is editor.collection
        assert editor.wizard.form is editor.form
        assert editor.collection.notifier is editor.bus
        assert editor.factory.registry is editor.registry

    def test_open_scope_emits(self, editor):
        handler = MagicMock()
        editor.bus.entities_loaded.connect(handler)
        asyncio.run(editor.open_scope("route_1"))
        handler.assert_called_once_with("route_1", 2)

    def test_edits_and_steps_reach_the_bus(self, editor):
        fields, steps = MagicMock(), MagicMock()
        editor.bus.field_changed.connect(fields)
        editor.bus.step_changed.connect(steps)
        editor.wizard.start_new()
        editor.wizard.select_variant("healer")
        editor.wizard.edit(EditCommand("name", "Nurse Joy"))
        fields.assert_called_once_with("name", True)
        assert [c.args[0] for c in steps.call_args_list] == [1, 2]

    def test_save_and_delete_emit(self, editor):
        saved, deleted = MagicMock(), MagicMock()
        editor.bus.entity_saved.connect(saved)
        editor.bus.entity_deleted.connect(deleted)
        asyncio.run(editor.open_scope("route_1"))
        editor.wizard.start_new()
        editor.wizard.select_variant("healer")
        draft_id = editor.wizard.draft["id"]
        assert editor.wizard.go_to_step(WizardStep.PREVIEW_VALIDATE)
        assert asyncio.run(editor.save_wizard()).ok
        saved.assert_called_once_with(str(draft_id))
        assert asyncio.run(editor.delete(draft_id, confirmed=True))
        deleted.assert_called_once_with(str(draft_id))

    def test_failed_load_notifies(self, editor):
        messages = MagicMock()
        editor.bus.notification.connect(messages)
        editor.collection.persistence.fail_on.add("list")
        asyncio.run(editor.open_scope("route_1"))
        assert messages.call_args.args[1] == "error"


class TestSettingsAndMain:
    def test_catalog_from_zone_dir(self, _ensure_qapp, tmp_path):
        zones = tmp_path / "zones"
        zones.mkdir()
        (zones / "catalog.json").write_text(
            json.dumps({"guild": {"name": "Faction Hall"}}), encoding="utf-8")
        settings = EditorSettings(data_dir=str(tmp_path))
        editor = asyncio.run(build_editor_for_settings(settings))
        assert editor.registry.describe("guild").display_name == "Faction Hall"

    def test_main_reports_zone(self, _ensure_qapp, tmp_path, monkeypatch, capsys, stored_npcs):
        zones = tmp_path / "zones"
        zones.mkdir()
        broken = dict(stored_npcs[0], id=103, interactionRadius=500)
        (zones / "route_1.json").write_text(
            json.dumps({"zone": "route_1", "npcs": stored_npcs + [broken]}), encoding="utf-8")
        monkeypatch.setenv("NPC_EDITOR_DATA_DIR", str(tmp_path))
        monkeypatch.setattr("npc_app.settings.get_settings_path",
                            lambda: str(tmp_path / "settings.json"))

        assert main(["route_1"]) == 1
        out = capsys.readouterr().out
        assert "Zone route_1: 3 NPCs, 1 invalid" in out
        assert "[interactionRadius]" in out
