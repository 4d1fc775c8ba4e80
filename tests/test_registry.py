"""
Tests for npc_engine/registry.py -- variants, descriptors and catalog loading.
"""

import pytest

from npc_engine.models.schema import CatalogEntry, ValueTag, parse_value_tag
from npc_engine.registry import (
    BUILTIN_CATALOG,
    COMMON_FIELDS,
    EntityVariant,
    TypeRegistry,
    ensure_exhaustive,
    humanize_field_name,
    section_title,
)


ALL_VARIANTS = [v.value for v in EntityVariant]


class TestEntityVariant:
    def test_twelve_variants(self):
        assert len(EntityVariant) == 12

    def test_parse_known(self):
        assert EntityVariant.parse("gym_leader") is EntityVariant.GYM_LEADER
        assert EntityVariant.parse(EntityVariant.GUILD) is EntityVariant.GUILD

    @pytest.mark.parametrize("value", ["wizard", "", None, 3, "Merchant"])
    def test_parse_unknown_returns_none(self, value):
        assert EntityVariant.parse(value) is None

    def test_ensure_exhaustive_accepts_full_table(self):
        ensure_exhaustive({v: None for v in EntityVariant}, "table")

    def test_ensure_exhaustive_rejects_missing_variant(self):
        table = {v: None for v in EntityVariant if v is not EntityVariant.EVENT}
        with pytest.raises(RuntimeError, match="event"):
            ensure_exhaustive(table, "table")

    def test_ensure_exhaustive_rejects_extra_key(self):
        table = {v: None for v in EntityVariant}
        table["pirate"] = None
        with pytest.raises(RuntimeError, match="pirate"):
            ensure_exhaustive(table, "table")


class TestDescribe:
    @pytest.mark.parametrize("variant", ALL_VARIANTS)
    def test_every_variant_has_descriptor(self, registry, variant):
        desc = registry.describe(variant)
        assert desc is not None
        assert desc.variant == variant
        assert desc.sections[0] == "basic"
        assert desc.sections[-1] == "interaction"

    @pytest.mark.parametrize("variant", ["unknown", None, 42])
    def test_unknown_variant_is_none(self, registry, variant):
        assert registry.describe(variant) is None

    def test_common_fields_present_for_every_variant(self, registry):
        for desc in registry:
            for name in COMMON_FIELDS:
                assert name in desc.fields

    def test_merchant_shop_type_is_selection(self, registry):
        schema = registry.field_schema("merchant", "shopType")
        assert schema.tag is ValueTag.SELECTION
        assert "pokemart" in schema.options
        assert schema.required

    def test_merchant_config_checklist(self, registry):
        assert registry.describe("merchant").config_required == ("shopId", "shopType")

    def test_config_roots_are_flagged_required(self, registry):
        assert registry.field_schema("trainer", "battleConfig").required
        assert registry.field_schema("merchant", "shopId").required

    def test_sequence_fields(self, registry):
        fields = registry.sequence_fields("dialogue")
        assert "dialogueIds" in fields
        assert "questsToGive" in fields
        assert "position" not in fields

    def test_common_field_for_unknown_variant(self, registry):
        schema = registry.field_schema(None, "name")
        assert schema is not None
        assert schema.tag is ValueTag.STRING

    def test_unknown_field(self, registry):
        assert registry.field_schema("merchant", "warpDrive") is None

    def test_section_fields(self, registry):
        assert registry.section_fields("merchant", "shop") == ("shopId", "shopType", "shopConfig")
        assert registry.section_fields("merchant", "nope") == ()
        assert registry.section_fields("nope", "shop") == ()

    def test_direction_options(self, registry):
        assert registry.options_for("healer", "direction") == ("north", "south", "east", "west")

    def test_display_names_cover_all_variants(self, registry):
        names = registry.display_names()
        assert list(names) == ALL_VARIANTS
        assert names["merchant"] == "Merchant / Shop"


class TestJsonSchema:
    def test_schema_shape(self, registry):
        schema = registry.json_schema("transport")
        assert schema["type"] == "object"
        assert schema["properties"]["destinations"]["type"] == ["array", "null"]
        assert schema["properties"]["transportConfig"]["type"] == ["object", "null"]

    def test_schema_is_cached(self, registry):
        assert registry.json_schema("guild") is registry.json_schema("guild")

    def test_unknown_variant(self, registry):
        assert registry.json_schema("ghost") is None


class TestCatalogLoading:
    def test_override_one_variant(self, registry):
        raw = dict(BUILTIN_CATALOG[EntityVariant.HEALER])
        raw["name"] = "Pokemon Center"
        custom = TypeRegistry.from_catalog({"healer": raw})
        assert custom.describe("healer").display_name == "Pokemon Center"
        assert custom.describe("merchant") is registry.describe("merchant")

    def test_unknown_variant_key_ignored(self, registry):
        custom = TypeRegistry.from_catalog({"pirate": {"name": "Pirate"}})
        assert custom.variants() == list(EntityVariant)

    def test_invalid_entry_keeps_builtin(self, registry):
        custom = TypeRegistry.from_catalog({"event": {"sections": "oops"}})
        assert custom.describe("event") is registry.describe("event")

    def test_nested_fields_shape(self):
        entry = CatalogEntry.model_validate({
            "name": "Guide",
            "fields": {"required": ["name", "dialogueIds"], "optional": ["zoneInfo"]},
        })
        assert entry.required == ["name", "dialogueIds"]
        assert entry.optional == ["zoneInfo"]

    def test_camel_case_keys(self):
        entry = CatalogEntry.model_validate({
            "name": "Shop",
            "fieldTypes": {"shopConfig": "object"},
            "selectOptions": {"shopType": ["pokemart"]},
        })
        assert entry.field_types == {"shopConfig": "object"}
        assert entry.select_options == {"shopType": ["pokemart"]}


class TestHelpers:
    def test_parse_value_tag_aliases(self):
        assert parse_value_tag("array") is ValueTag.SEQUENCE
        assert parse_value_tag("object") is ValueTag.MAPPING
        assert parse_value_tag("select") is ValueTag.SELECTION

    def test_parse_value_tag_unknown(self):
        with pytest.raises(ValueError):
            parse_value_tag("blob")

    def test_humanize_field_name(self):
        assert humanize_field_name("shopDialogueIds") == "Shop Dialogue Ids"
        assert humanize_field_name("gym_leader") == "Gym Leader"

    def test_section_title(self):
        assert section_title("business") == "Business Hours"
        assert section_title("customThing") == "Custom Thing"
