"""
Tests for npc_engine/factory.py and npc_engine/templates.py.
"""

import pytest

from npc_engine.errors import UnknownVariantError
from npc_engine.factory import COPY_SUFFIX, DUPLICATE_OFFSET, EntityFactory, IdAllocator
from npc_engine.registry import EntityVariant
from npc_engine.templates import (
    POSITION_PRESETS,
    TEMPLATES,
    position_preset,
    suggested_sprites,
    template_fields,
    template_for,
)


ALL_VARIANTS = list(EntityVariant)


class TestCreateDraft:
    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_type_and_template_fields(self, factory, variant):
        draft = factory.create_draft(variant.value)
        assert draft["type"] == variant.value
        for name in template_fields(variant):
            assert name in draft

    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_sequence_fields_present(self, factory, registry, variant):
        draft = factory.create_draft(variant)
        for name in registry.sequence_fields(variant):
            assert isinstance(draft[name], list)

    def test_unknown_variant_raises(self, factory):
        with pytest.raises(UnknownVariantError) as info:
            factory.create_draft("pirate")
        assert info.value.variant == "pirate"
        assert "pirate" in str(info.value)

    def test_unknown_variant_is_a_key_error(self, factory):
        with pytest.raises(KeyError):
            factory.create_draft(None)

    def test_drafts_do_not_share_nested_values(self, factory):
        first = factory.create_draft("merchant")
        first["shopConfig"]["discountPercent"] = 50
        first["questsToGive"].append("q1")
        second = factory.create_draft("merchant")
        assert second["shopConfig"]["discountPercent"] == 0
        assert second["questsToGive"] == []
        assert TEMPLATES[EntityVariant.MERCHANT]["shopConfig"]["discountPercent"] == 0

    def test_ids_unique(self, factory):
        ids = {factory.create_draft("healer")["id"] for _ in range(5)}
        assert len(ids) == 5


class TestOtherConstructors:
    def test_create_blank(self, factory):
        blank = factory.create_blank()
        assert set(blank) == {"id", "position", "direction"}
        assert blank["position"] == {"x": 100, "y": 100}
        assert blank["direction"] == "south"

    def test_create_empty(self, factory):
        record = factory.create_empty("transport")
        assert record["type"] == "transport"
        assert record["interactionRadius"] == 32
        assert record["destinations"] == []
        assert "transportConfig" not in record

    def test_apply_template_keeps_id_and_user_input(self, factory):
        draft = factory.create_blank()
        draft["name"] = "Old Rod Guy"
        draft_id = draft["id"]
        factory.apply_template(draft, "trainer")
        assert draft["id"] == draft_id
        assert draft["name"] == "Old Rod Guy"
        assert draft["type"] == "trainer"
        assert draft["trainerClass"] == "youngster"

    def test_apply_template_ignores_blank_name(self, factory):
        draft = factory.create_blank()
        draft["name"] = "   "
        factory.apply_template(draft, "healer")
        assert draft["name"] == "Nurse Joy"


class TestDuplicate:
    def test_duplicate_offsets_and_renames(self, factory):
        source = factory.create_draft("dialogue")
        source["position"] = {"x": 100, "y": 100}
        copy = factory.duplicate(source)
        assert copy["id"] != source["id"]
        assert copy["name"].endswith("(Copy)")
        assert copy["position"] == {"x": 132, "y": 132}

    def test_duplicate_is_deep(self, factory, dialogue_draft):
        copy = factory.duplicate(dialogue_draft)
        copy["dialogueIds"].append("npc.extra.line.one.1")
        copy["conditionalDialogueIds"]["firstVisit"].clear()
        assert "npc.extra.line.one.1" not in dialogue_draft["dialogueIds"]
        assert dialogue_draft["conditionalDialogueIds"]["firstVisit"]

    def test_duplicate_without_position(self, factory):
        copy = factory.duplicate({"id": 1, "name": "Ghost"})
        assert copy["position"] == {"x": DUPLICATE_OFFSET, "y": DUPLICATE_OFFSET}
        assert copy["name"] == "Ghost" + COPY_SUFFIX

    def test_duplicate_with_partial_position(self, factory):
        copy = factory.duplicate({"id": 1, "name": "Ghost", "position": {"x": "left", "y": 10}})
        assert copy["position"] == {"x": 32, "y": 42}


class TestIdAllocator:
    def test_strictly_increasing_with_frozen_clock(self):
        ids = IdAllocator(clock=lambda: 5.0)
        assert [ids.next_id() for _ in range(3)] == [5000, 5001, 5002]

    def test_follows_clock(self):
        ticks = iter([1.0, 2.0])
        ids = IdAllocator(clock=lambda: next(ticks))
        assert ids.next_id() == 1000
        assert ids.next_id() == 2000

    def test_observe_existing_ids(self):
        ids = IdAllocator(clock=lambda: 1.0)
        ids.observe(9_999)
        ids.observe("not-a-number")
        assert ids.next_id() == 10_000

    def test_shared_allocator(self, registry):
        ids = IdAllocator(clock=lambda: 1.0)
        a = EntityFactory(registry, ids)
        b = EntityFactory(registry, ids)
        assert a.create_blank()["id"] != b.create_blank()["id"]


class TestTemplates:
    def test_template_for_sets_type_and_copies(self):
        first = template_for(EntityVariant.GUILD)
        first["guildConfig"]["guildId"] = "changed"
        assert first["type"] == "guild"
        assert template_for(EntityVariant.GUILD)["guildConfig"]["guildId"] == "basic_guild"

    def test_templates_have_no_id(self):
        for template in TEMPLATES.values():
            assert "id" not in template

    def test_position_preset(self):
        preset = position_preset("center")
        preset["x"] = 0
        assert POSITION_PRESETS["center"] == {"x": 400, "y": 300}

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            position_preset("moon")

    def test_suggested_sprites(self):
        sprites = suggested_sprites(EntityVariant.HEALER)
        assert "nurse_joy.png" in sprites
        sprites.clear()
        assert suggested_sprites(EntityVariant.HEALER)
