"""Tests for shared utility functions."""
from __future__ import annotations

from pathlib import Path

import pytest

from src.shared.utils import atomic_write_json, load_json


class TestAtomicWriteJson:

    def test_writes_and_creates_parents(self, tmp_path: Path):
        target = tmp_path / "nested" / "data.json"
        atomic_write_json(target, {"instances": []})
        assert load_json(target) == {"instances": []}
        assert not target.with_suffix(".tmp").exists()

    def test_overwrites(self, tmp_path: Path):
        target = tmp_path / "data.json"
        atomic_write_json(target, {"v": 1})
        atomic_write_json(target, {"v": 2})
        assert load_json(target) == {"v": 2}

    def test_unserialisable_leaves_no_temp_file(self, tmp_path: Path):
        target = tmp_path / "data.json"

        class Boom:
            def __str__(self) -> str:
                raise RuntimeError("cannot render")

        with pytest.raises(RuntimeError):
            atomic_write_json(target, {"x": Boom()})
        assert not target.with_suffix(".tmp").exists()
        assert not target.exists()


class TestLoadJson:

    def test_missing_returns_none(self, tmp_path: Path):
        assert load_json(tmp_path / "missing.json") is None

    def test_invalid_returns_none(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{", encoding="utf-8")
        assert load_json(path) is None
