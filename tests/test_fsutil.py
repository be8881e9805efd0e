"""Tests for atomic file writes."""

from __future__ import annotations

import json
import os
from pathlib import Path

import pytest

from seedbox.store.fsutil import atomic_write, write_json


class TestAtomicWrite:
    def test_creates_parents_and_replaces(self, tmp_path: Path):
        path = tmp_path / "a" / "b" / "record.json"
        atomic_write(path, "one")
        atomic_write(path, "two")
        assert path.read_text(encoding="utf-8") == "two"
        assert os.listdir(path.parent) == ["record.json"]

    def test_failed_write_leaves_no_temp_file(self, tmp_path: Path):
        path = tmp_path / "record.json"
        path.write_text("old", encoding="utf-8")
        # A lone surrogate cannot be encoded as UTF-8.
        with pytest.raises(UnicodeEncodeError):
            atomic_write(path, "bad \ud800 text")
        assert os.listdir(tmp_path) == ["record.json"]
        assert path.read_text(encoding="utf-8") == "old"

    def test_failed_replace_leaves_no_temp_file(self, tmp_path: Path, monkeypatch):
        def fail(src, dst):
            raise OSError("replace failed")

        monkeypatch.setattr("seedbox.store.fsutil.os.replace", fail)
        with pytest.raises(OSError):
            atomic_write(tmp_path / "record.json", "text")
        assert os.listdir(tmp_path) == []

    def test_write_json(self, tmp_path: Path):
        path = tmp_path / "x.json"
        write_json(path, {"title": "ünïcode"})
        text = path.read_text(encoding="utf-8")
        assert text.endswith("\n")
        assert json.loads(text) == {"title": "ünïcode"}
