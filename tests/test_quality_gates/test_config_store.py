"""Tests for GlobalConfigStore: snapshots, replacement and persistence."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from src.quality_gates.exceptions import StoreError
from src.quality_gates.services.config_store import GlobalConfigStore, duplicate_names
from src.shared.models.quality_gates import InstanceConfig


class TestSnapshots:

    def test_empty_by_default(self):
        store = GlobalConfigStore()
        assert len(store) == 0
        assert store.default_instance is None

    def test_snapshot_survives_replacement(self):
        old = InstanceConfig(name="old")
        store = GlobalConfigStore([old])
        snapshot = store.snapshot()

        store.replace([InstanceConfig(name="new")], persist=False)

        assert snapshot == (old,)
        assert [i.name for i in store] == ["new"]

    def test_instances_keep_order(self):
        names = ["c", "a", "b"]
        store = GlobalConfigStore(InstanceConfig(name=n) for n in names)
        assert [i.name for i in store.snapshot()] == names

    def test_instances_are_immutable(self):
        instance = InstanceConfig(name="x")
        with pytest.raises(Exception):
            instance.name = "y"


class TestDuplicates:

    def test_duplicate_names_lists_repeated_names(self):
        instances = [InstanceConfig(name=n) for n in ["a", "b", "a", "", ""]]
        assert duplicate_names(instances) == ["a"]

    def test_duplicates_are_tolerated_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            store = GlobalConfigStore([InstanceConfig(name="a"), InstanceConfig(name="a")])
        assert len(store) == 2
        assert "Duplicate SonarQube instance names" in caplog.text


class TestPersistence:

    def test_load_missing_file_gives_empty_store(self, store_path: Path):
        store = GlobalConfigStore.load(store_path)
        assert len(store) == 0
        assert store.path == store_path

    def test_replace_persists_and_reloads(self, store_path: Path):
        store = GlobalConfigStore(path=store_path)
        store.replace([
            InstanceConfig(name="main", server_url="http://sonar", auth_token="t", is_default=True),
            InstanceConfig(name="", username="u", password="p"),
        ])

        reloaded = GlobalConfigStore.load(store_path)
        assert reloaded.snapshot() == store.snapshot()
        assert reloaded.default_instance.name == "main"

    def test_replace_without_persist_leaves_file_alone(self, store_path: Path):
        store = GlobalConfigStore(path=store_path)
        store.replace([InstanceConfig(name="a")], persist=False)
        assert not store_path.exists()

    def test_save_without_path_raises(self):
        with pytest.raises(StoreError):
            GlobalConfigStore().save()

    def test_load_accepts_bare_list(self, store_path: Path):
        store_path.write_text(json.dumps([{"name": "a"}, {"name": "b"}]), encoding="utf-8")
        assert [i.name for i in GlobalConfigStore.load(store_path)] == ["a", "b"]

    def test_load_ignores_unknown_keys(self, store_path: Path):
        store_path.write_text(
            json.dumps({"instances": [{"name": "a", "legacy_field": 1}]}), encoding="utf-8"
        )
        assert [i.name for i in GlobalConfigStore.load(store_path)] == ["a"]

    def test_load_rejects_invalid_json(self, store_path: Path):
        store_path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StoreError):
            GlobalConfigStore.load(store_path)

    def test_load_rejects_non_list_instances(self, store_path: Path):
        store_path.write_text(json.dumps({"instances": "main"}), encoding="utf-8")
        with pytest.raises(StoreError):
            GlobalConfigStore.load(store_path)

    def test_load_rejects_invalid_entry(self, store_path: Path):
        store_path.write_text(
            json.dumps({"instances": [{"name": "a", "time_to_wait": -5}]}), encoding="utf-8"
        )
        with pytest.raises(StoreError):
            GlobalConfigStore.load(store_path)
