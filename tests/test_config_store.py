"""Tests for the file-backed config store."""

import json
import os

import pytest

from config_store import ConfigStore
from errors import InvalidInput, NotFound


@pytest.fixture
def store(configs_path):
    return ConfigStore(configs_path)


class TestConfigStoreDocument:
    def test_creates_empty_document_on_first_run(self, configs_path):
        assert not os.path.exists(configs_path)
        ConfigStore(configs_path)
        with open(configs_path, encoding="utf-8") as f:
            assert json.load(f) == {}

    def test_keeps_existing_document(self, configs_path):
        os.makedirs(os.path.dirname(configs_path))
        with open(configs_path, "w", encoding="utf-8") as f:
            json.dump({"existing": [{"match": "a"}]}, f)

        store = ConfigStore(configs_path)
        assert store.get("existing") == [{"match": "a"}]

    def test_save_persists_whole_mapping(self, store, configs_path):
        store.save("a", [1])
        store.save("b", [{"x": True}])
        with open(configs_path, encoding="utf-8") as f:
            assert json.load(f) == {"a": [1], "b": [{"x": True}]}
        assert not os.path.exists(configs_path + ".tmp")

    def test_second_instance_sees_writes(self, store, configs_path):
        store.save("shared", ["r"])
        assert ConfigStore(configs_path).get("shared") == ["r"]


class TestConfigStoreOperations:
    def test_list_names_empty(self, store):
        assert store.list_names() == []

    def test_list_names(self, store):
        store.save("one", [])
        store.save("two", [])
        assert sorted(store.list_names()) == ["one", "two"]

    def test_save_trims_name(self, store):
        assert store.save("  foo  ", []) == "foo"
        assert store.get("foo") == []
        assert store.list_names() == ["foo"]

    def test_save_replaces_rules(self, store):
        store.save("x", [1, 2])
        store.save("x", [3])
        assert store.get("x") == [3]

    def test_rules_are_opaque(self, store):
        rules = [{"path": "/a", "status": 200}, "literal", 7, None, [1, 2]]
        store.save("mixed", rules)
        assert store.get("mixed") == rules

    @pytest.mark.parametrize("name", ["", "   ", None, 12])
    def test_save_rejects_bad_name(self, store, name):
        with pytest.raises(InvalidInput, match="Name is required"):
            store.save(name, [])
        assert store.list_names() == []

    @pytest.mark.parametrize("rules", [None, {"a": 1}, "rules", 3])
    def test_save_rejects_non_list_rules(self, store, rules):
        with pytest.raises(InvalidInput, match="Rules array is required"):
            store.save("x", rules)

    def test_get_missing(self, store):
        with pytest.raises(NotFound):
            store.get("nope")

    def test_delete(self, store):
        store.save("gone", [1])
        store.delete("gone")
        assert store.list_names() == []
        with pytest.raises(NotFound):
            store.get("gone")

    def test_delete_missing(self, store):
        with pytest.raises(NotFound, match="Config not found"):
            store.delete("nope")

    def test_empty_rule_list_is_found(self, store):
        store.save("empty", [])
        assert store.get("empty") == []
        store.delete("empty")
