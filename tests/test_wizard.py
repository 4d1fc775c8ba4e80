"""
Tests for npc_engine/wizard.py -- step gating, edits and the save flow.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from npc_engine.form_builder import EditCommand
from npc_engine.notifications import NotificationLevel
from npc_engine.wizard import WizardSession, WizardStep


@pytest.fixture
def loaded(collection):
    """Collection with zone route_1 loaded."""
    asyncio.run(collection.load_for_scope("route_1"))
    return collection


def _merchant_at_preview(wizard):
    wizard.start_new()
    assert wizard.select_variant("merchant")
    assert wizard.go_to_step(WizardStep.PREVIEW_VALIDATE)
    return wizard.session


class TestNavigation:
    def test_start_new(self, wizard):
        session = wizard.start_new()
        assert wizard.step == WizardStep.VARIANT_SELECT
        assert "type" not in session.draft
        assert session.draft["position"] == {"x": 100, "y": 100}

    def test_skip_ahead_without_variant_is_refused(self, wizard, notifier):
        wizard.start_new()
        assert wizard.go_to_step(3) is False
        assert wizard.step == WizardStep.VARIANT_SELECT
        assert notifier.levels() == [NotificationLevel.WARNING]

    def test_select_variant_applies_template(self, wizard):
        session = wizard.start_new()
        draft_id = session.draft["id"]
        assert wizard.select_variant("merchant") is True
        assert wizard.step == WizardStep.BASIC_INFO
        assert wizard.draft["type"] == "merchant"
        assert wizard.draft["id"] == draft_id
        assert wizard.draft["shopType"] == "pokemart"

    def test_select_unknown_variant(self, wizard, notifier):
        wizard.start_new()
        assert wizard.select_variant("pirate") is False
        assert wizard.step == WizardStep.VARIANT_SELECT
        assert notifier.levels() == [NotificationLevel.ERROR]

    def test_select_variant_only_from_first_step(self, wizard):
        wizard.start_new()
        wizard.select_variant("merchant")
        assert wizard.select_variant("healer") is False
        assert wizard.draft["type"] == "merchant"

    def test_select_variant_starts_session(self, wizard):
        assert wizard.select_variant("healer")
        assert wizard.draft["type"] == "healer"

    def test_forward_through_all_steps(self, wizard):
        wizard.start_new()
        wizard.select_variant("merchant")
        assert wizard.next_step()
        assert wizard.step == WizardStep.VARIANT_CONFIG
        assert wizard.next_step()
        assert wizard.step == WizardStep.PREVIEW_VALIDATE
        assert wizard.next_step() is False

    def test_config_step_blocks_without_shop_id(self, wizard, notifier):
        wizard.start_new()
        wizard.select_variant("merchant")
        del wizard.draft["shopId"]
        assert wizard.go_to_step(WizardStep.PREVIEW_VALIDATE) is False
        assert wizard.step == WizardStep.BASIC_INFO
        assert "shopId" in notifier.messages[-1][0]

    def test_going_back_is_free(self, wizard):
        _merchant_at_preview(wizard)
        wizard.draft["name"] = ""
        assert wizard.go_to_step(WizardStep.BASIC_INFO)
        assert wizard.previous_step()
        assert wizard.step == WizardStep.VARIANT_SELECT
        assert wizard.previous_step() is False

    @pytest.mark.parametrize("step", [0, 5, "three"])
    def test_invalid_step(self, wizard, step):
        wizard.start_new()
        assert wizard.go_to_step(step) is False

    def test_step_listeners(self, wizard):
        listener = MagicMock()
        wizard.on_step_changed(listener)
        wizard.start_new()
        wizard.select_variant("healer")
        assert [c.args[0] for c in listener.call_args_list] == [
            WizardStep.VARIANT_SELECT, WizardStep.BASIC_INFO]

    def test_navigation_without_session_raises(self, wizard):
        with pytest.raises(RuntimeError):
            wizard.go_to_step(2)


class TestStepChecks:
    def test_basic_info_requires_name_and_sprite(self, wizard):
        wizard.start_new()
        wizard.select_variant("healer")
        wizard.draft["name"] = "  "
        wizard.draft["sprite"] = ""
        check = wizard.validate_step(WizardStep.BASIC_INFO)
        assert not check.ok
        assert check.missing == ["name", "sprite"]

    def test_config_paths_for_trainer(self, wizard):
        wizard.start_new()
        wizard.select_variant("trainer")
        wizard.draft["battleConfig"]["teamId"] = ""
        check = wizard.validate_step(WizardStep.VARIANT_CONFIG)
        assert check.missing == ["battleConfig.teamId"]

    def test_preview_step_reports_error_fields(self, wizard):
        wizard.start_new()
        wizard.select_variant("dialogue")
        wizard.draft["interactionRadius"] = 500
        check = wizard.validate_step(WizardStep.PREVIEW_VALIDATE)
        assert not check.ok
        assert check.missing == ["interactionRadius"]

    def test_validate_current_step(self, wizard):
        wizard.start_new()
        assert not wizard.validate_current_step().ok


class TestEditing:
    def test_edit_goes_through_form(self, wizard):
        wizard.start_new()
        wizard.select_variant("merchant")
        outcome = wizard.edit(EditCommand("shopConfig.discountPercent", "20"))
        assert wizard.draft["shopConfig"]["discountPercent"] == 20
        assert outcome.result.valid

    def test_existing_record_keeps_its_variant(self, wizard, loaded, notifier):
        wizard.open(loaded.edit_existing(102))
        assert wizard.session.is_editing_existing
        wizard.go_to_step(WizardStep.VARIANT_SELECT)
        assert wizard.select_variant("healer") is False
        assert wizard.draft["type"] == "merchant"
        assert notifier.levels()[-1] == NotificationLevel.WARNING

    def test_cancel(self, wizard):
        wizard.start_new()
        wizard.cancel()
        assert wizard.session is None
        assert wizard.step is None
        assert wizard.draft is None


class TestSave:
    def test_save_new_record(self, wizard, loaded, persistence):
        session = _merchant_at_preview(wizard)
        outcome = asyncio.run(wizard.save())
        assert outcome.ok
        assert wizard.session is None
        assert loaded.find(session.draft["id"])["type"] == "merchant"
        stored = asyncio.run(persistence.list_entities("route_1"))
        assert session.draft["id"] in [r["id"] for r in stored]

    def test_save_edited_record_replaces(self, wizard, loaded):
        wizard.open(loaded.edit_existing(101))
        wizard.edit(EditCommand("name", "Guide Paul"))
        assert wizard.go_to_step(WizardStep.PREVIEW_VALIDATE)
        assert asyncio.run(wizard.save()).ok
        assert len(loaded) == 2
        assert loaded.find(101)["name"] == "Guide Paul"

    def test_save_requires_preview_step(self, wizard, loaded, notifier):
        wizard.start_new()
        wizard.select_variant("merchant")
        outcome = asyncio.run(wizard.save())
        assert not outcome.ok
        assert wizard.session is not None
        assert notifier.levels()[-1] == NotificationLevel.WARNING

    def test_save_refuses_invalid_draft(self, wizard, loaded):
        _merchant_at_preview(wizard)
        wizard.draft["interactionRadius"] = 500
        outcome = asyncio.run(wizard.save())
        assert not outcome.ok
        assert "interactionRadius" in outcome.result.error_fields
        assert len(loaded) == 2

    def test_failed_save_keeps_draft(self, wizard, loaded, persistence, notifier):
        session = _merchant_at_preview(wizard)
        persistence.fail_on.add("save")
        outcome = asyncio.run(wizard.save())
        assert not outcome.ok
        assert wizard.session is session
        assert wizard.step == WizardStep.PREVIEW_VALIDATE
        assert len(loaded) == 2
        assert notifier.levels()[-1] == NotificationLevel.ERROR

    def test_session_replaced_during_save_is_kept(self, wizard, loaded, monkeypatch):
        _merchant_at_preview(wizard)

        async def save_and_restart(record, scope_id=None):
            wizard.start_new()
            return True

        monkeypatch.setattr(loaded, "save", save_and_restart)
        assert asyncio.run(wizard.save()).ok
        assert wizard.session is not None
        assert wizard.step == WizardStep.VARIANT_SELECT

    def test_edit_saved_after_zone_change_is_refused(self, wizard, loaded, persistence, notifier):
        wizard.open(loaded.edit_existing(101))
        asyncio.run(loaded.load_for_scope("route_2"))
        assert wizard.go_to_step(WizardStep.PREVIEW_VALIDATE)
        outcome = asyncio.run(wizard.save())
        assert not outcome.ok
        assert wizard.session is not None
        assert asyncio.run(persistence.list_entities("route_2")) == []
        assert notifier.levels()[-1] == NotificationLevel.ERROR

    def test_new_session_takes_current_zone(self, wizard, loaded):
        assert wizard.start_new().scope_id == "route_1"

    def test_save_without_session(self, wizard):
        assert not asyncio.run(wizard.save()).ok

    def test_saved_record_is_a_copy(self, wizard, loaded):
        session = _merchant_at_preview(wizard)
        asyncio.run(wizard.save())
        session.draft["name"] = "Changed later"
        assert loaded.find(session.draft["id"])["name"] == "Merchant Julie"

    def test_open_session(self, wizard):
        session = WizardSession(draft={"id": 7}, step=WizardStep.BASIC_INFO)
        assert wizard.open(session) is session
        assert wizard.step == WizardStep.BASIC_INFO
