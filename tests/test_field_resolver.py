"""
Tests for npc_engine/field_resolver.py -- dotted path reads and writes.
"""

import pytest

from npc_engine.errors import PathResolutionError
from npc_engine.field_resolver import delete_path, get_path, has_path, parse_path, set_path


class TestParsePath:
    def test_segments(self):
        assert parse_path("battleConfig.teamId") == ["battleConfig", "teamId"]

    @pytest.mark.parametrize("path", ["", "a..b", ".a", "a.", None, 3])
    def test_malformed(self, path):
        with pytest.raises(PathResolutionError):
            parse_path(path)

    def test_malformed_is_value_error(self):
        with pytest.raises(ValueError):
            get_path({}, "a..b")


class TestGet:
    def test_nested(self):
        record = {"shopConfig": {"bulkDiscounts": {"threshold": 10}}}
        assert get_path(record, "shopConfig.bulkDiscounts.threshold") == 10

    def test_missing_returns_default(self):
        assert get_path({"a": {}}, "a.b.c") is None
        assert get_path({"a": {}}, "a.b.c", "fallback") == "fallback"

    def test_through_scalar_returns_default(self):
        assert get_path({"a": 5}, "a.b", 0) == 0

    def test_list_index(self):
        record = {"destinations": [{"mapId": "route_2"}]}
        assert get_path(record, "destinations.0.mapId") == "route_2"
        assert get_path(record, "destinations.3.mapId") is None

    def test_present_none_is_returned(self):
        assert get_path({"a": None}, "a", "x") is None

    def test_has_path(self):
        record = {"shop": {"items": []}}
        assert has_path(record, "shop.items")
        assert not has_path(record, "shop.owner")


class TestSet:
    def test_creates_intermediate_mappings(self):
        record = {}
        set_path(record, "a.b.c", 1)
        assert record == {"a": {"b": {"c": 1}}}

    def test_position_x_on_record_without_position(self):
        record = {"id": 1}
        set_path(record, "position.x", 10)
        assert record["position"] == {"x": 10}

    def test_position_x_keeps_y(self):
        record = {"position": {"x": 1, "y": 7}}
        set_path(record, "position.x", 10)
        assert record["position"] == {"x": 10, "y": 7}

    def test_scalar_intermediate_replaced(self):
        record = {"battleConfig": "none"}
        set_path(record, "battleConfig.teamId", "t1")
        assert record["battleConfig"] == {"teamId": "t1"}

    def test_list_item(self):
        record = {"questsToGive": ["q1", "q2"]}
        set_path(record, "questsToGive.1", "q9")
        assert record["questsToGive"] == ["q1", "q9"]

    def test_list_append_at_end(self):
        record = {"questsToGive": ["q1"]}
        set_path(record, "questsToGive.1", "q2")
        assert record["questsToGive"] == ["q1", "q2"]

    def test_nested_in_list_item(self):
        record = {"destinations": [{"mapId": "a"}]}
        set_path(record, "destinations.0.mapName", "Route A")
        assert record["destinations"][0] == {"mapId": "a", "mapName": "Route A"}

    def test_list_index_past_end_pads(self):
        record = {"items": []}
        set_path(record, "items.2", "x")
        assert record["items"] == [None, None, "x"]

    def test_nested_past_end_creates_item(self):
        record = {"destinations": []}
        set_path(record, "destinations.0.mapId", "route_2")
        assert record["destinations"] == [{"mapId": "route_2"}]

    def test_non_digit_segment_on_list_replaces_it(self):
        record = {"dialogueIds": ["npc.dialogue.guide.welcome.1"]}
        set_path(record, "dialogueIds.label", "x")
        assert record["dialogueIds"] == {"label": "x"}

    def test_digit_segment_on_mapping_is_a_key(self):
        record = {"ranks": {}}
        set_path(record, "ranks.1", "Recruit")
        assert record["ranks"] == {"1": "Recruit"}

    def test_malformed_path_still_raises(self):
        with pytest.raises(PathResolutionError):
            set_path({}, "a..b", 1)


class TestDelete:
    def test_delete_key(self):
        record = {"shopConfig": {"items": [], "currency": "gold"}}
        assert delete_path(record, "shopConfig.items") is True
        assert record == {"shopConfig": {"currency": "gold"}}

    def test_delete_missing(self):
        assert delete_path({}, "a.b") is False

    def test_delete_list_item(self):
        record = {"questsToGive": ["a", "b"]}
        assert delete_path(record, "questsToGive.0") is True
        assert record["questsToGive"] == ["b"]


class TestFieldResolver:
    def test_missing_sequence_reads_as_empty_list(self, resolver):
        record = {"type": "dialogue"}
        value = resolver.resolve(record, "questsToGive")
        assert value == []
        value.append("q1")
        assert resolver.resolve(record, "questsToGive") == []

    def test_none_sequence_reads_as_empty_list(self, resolver):
        assert resolver.resolve({"type": "transport", "destinations": None}, "destinations") == []

    def test_missing_non_sequence_uses_default(self, resolver):
        assert resolver.resolve({"type": "dialogue"}, "zoneInfo", {}) == {}
        assert resolver.resolve({"type": "dialogue"}, "zoneInfo") is None

    def test_unknown_variant_has_no_sequences(self, resolver):
        assert resolver.resolve({"type": "ghost"}, "questsToGive") is None

    def test_with_sequences_copies(self, resolver):
        record = {"type": "service", "name": "Bob", "serviceConfig": {"cost": 1}}
        filled = resolver.with_sequences(record)
        assert filled["availableServices"] == []
        assert "availableServices" not in record
        filled["serviceConfig"]["cost"] = 2
        assert record["serviceConfig"]["cost"] == 1

    def test_ensure_sequences_in_place(self, resolver):
        record = {"type": "guild"}
        assert resolver.ensure_sequences(record) is record
        assert record["guildServices"] == []

    def test_is_sequence_field(self, resolver):
        record = {"type": "transport"}
        assert resolver.is_sequence_field(record, "destinations")
        assert not resolver.is_sequence_field(record, "transportConfig")
        assert not resolver.is_sequence_field(record, "destinations.0")
