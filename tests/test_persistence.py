"""
Tests for npc_engine/persistence.py -- in-memory and JSON zone-file backends.
"""

import asyncio
import json

import pytest

from npc_engine.errors import PersistenceFailure
from npc_engine.models.documents import ZONE_DOCUMENT_VERSION
from npc_engine.persistence import InMemoryPersistence, JsonFilePersistence, PersistenceService


def _run(coro):
    return asyncio.run(coro)


@pytest.fixture
def store(tmp_path):
    return JsonFilePersistence(tmp_path / "zones")


class TestJsonFilePersistence:
    def test_missing_zone_is_empty(self, store):
        assert _run(store.list_entities("route_1")) == []

    def test_round_trip(self, store, merchant_draft):
        _run(store.save_entity("route_1", merchant_draft))
        assert _run(store.list_entities("route_1")) == [merchant_draft]

    def test_document_format(self, store, tmp_path, dialogue_draft):
        _run(store.save_entity("route_1", dialogue_draft))
        with open(tmp_path / "zones" / "route_1.json", encoding="utf-8") as fh:
            doc = json.load(fh)
        assert doc["zone"] == "route_1"
        assert doc["version"] == ZONE_DOCUMENT_VERSION
        assert doc["lastUpdated"]
        assert doc["npcs"][0]["id"] == dialogue_draft["id"]

    def test_save_replaces_by_id(self, store, dialogue_draft):
        _run(store.save_entity("route_1", dialogue_draft))
        changed = dict(dialogue_draft, name="Guide Paul")
        _run(store.save_entity("route_1", changed))
        records = _run(store.list_entities("route_1"))
        assert len(records) == 1
        assert records[0]["name"] == "Guide Paul"

    def test_extra_document_fields_survive(self, store, tmp_path, dialogue_draft):
        path = tmp_path / "zones" / "route_1.json"
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"zone": "route_1", "description": "Start", "music": "a.ogg",
                                    "npcs": []}), encoding="utf-8")
        _run(store.save_entity("route_1", dialogue_draft))
        doc = json.loads(path.read_text(encoding="utf-8"))
        assert doc["description"] == "Start"
        assert doc["music"] == "a.ogg"

    def test_delete(self, store, dialogue_draft):
        _run(store.save_entity("route_1", dialogue_draft))
        assert _run(store.delete_entity("route_1", dialogue_draft["id"])) is True
        assert _run(store.delete_entity("route_1", dialogue_draft["id"])) is False
        assert _run(store.list_entities("route_1")) == []

    def test_corrupt_file(self, store, tmp_path):
        path = tmp_path / "zones" / "route_1.json"
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceFailure):
            _run(store.list_entities("route_1"))

    def test_wrong_document_shape(self, store, tmp_path):
        path = tmp_path / "zones" / "route_1.json"
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps({"zone": "route_1", "npcs": "none"}), encoding="utf-8")
        with pytest.raises(PersistenceFailure) as info:
            _run(store.list_entities("route_1"))
        assert info.value.operation == "list"

    @pytest.mark.parametrize("scope", ["../etc", "", "a/b", ".."])
    def test_invalid_scope(self, store, scope):
        with pytest.raises(PersistenceFailure):
            _run(store.list_entities(scope))

    def test_catalog(self, store, tmp_path):
        assert _run(store.list_variant_catalog()) is None
        (tmp_path / "zones").mkdir()
        (tmp_path / "zones" / "catalog.json").write_text(
            json.dumps({"healer": {"name": "Pokemon Center"}}), encoding="utf-8")
        assert _run(store.list_variant_catalog()) == {"healer": {"name": "Pokemon Center"}}

    def test_catalog_must_be_mapping(self, store, tmp_path):
        (tmp_path / "zones").mkdir()
        (tmp_path / "zones" / "catalog.json").write_text("[]", encoding="utf-8")
        with pytest.raises(PersistenceFailure):
            _run(store.list_variant_catalog())

    def test_is_a_persistence_service(self, store):
        assert isinstance(store, PersistenceService)


class TestInMemoryPersistence:
    def test_copies_in_and_out(self, dialogue_draft):
        store = InMemoryPersistence()
        _run(store.save_entity("z", dialogue_draft))
        dialogue_draft["name"] = "Changed"
        listed = _run(store.list_entities("z"))
        listed[0]["dialogueIds"].clear()
        again = _run(store.list_entities("z"))
        assert again[0]["name"] != "Changed"
        assert again[0]["dialogueIds"]

    def test_failure_injection(self):
        store = InMemoryPersistence()
        store.fail_on.add("list")
        with pytest.raises(PersistenceFailure, match="list failed"):
            _run(store.list_entities("z"))

    def test_is_a_persistence_service(self):
        assert isinstance(InMemoryPersistence(), PersistenceService)
