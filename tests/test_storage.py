"""Tests for the key-value stores: quota, atomic file writes, corrupt files."""

from __future__ import annotations

import errno
import json
import os
from pathlib import Path

import pytest

from studio.errors import QuotaExceededError
from studio.storage import FileStore, MemoryStore


class TestMemoryStore:
    def test_set_get_remove(self, memory_store: MemoryStore):
        assert memory_store.get_item("k") is None
        memory_store.set_item("k", "v")
        assert memory_store.get_item("k") == "v"
        memory_store.remove_item("k")
        assert memory_store.get_item("k") is None

    def test_remove_missing_is_noop(self, memory_store: MemoryStore):
        memory_store.remove_item("missing")
        assert memory_store.used_bytes() == 0

    def test_used_bytes_counts_utf8(self, memory_store: MemoryStore):
        memory_store.set_item("k", "é")
        assert memory_store.used_bytes() == 3

    def test_quota_rejects_write_unchanged(self):
        store = MemoryStore(quota_bytes=20)
        store.set_item("a", "small")
        with pytest.raises(QuotaExceededError):
            store.set_item("a", "x" * 50)
        assert store.get_item("a") == "small"

    def test_quota_error_message(self):
        store = MemoryStore(quota_bytes=1)
        with pytest.raises(QuotaExceededError, match="delete some old projects"):
            store.set_item("key", "value")


class TestFileStore:
    def test_persists_across_instances(self, tmp_path: Path):
        path = tmp_path / "nested" / "storage.json"
        FileStore(path).set_item("k", "v")
        assert FileStore(path).get_item("k") == "v"
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}

    def test_missing_file_is_empty(self, tmp_path: Path):
        assert FileStore(tmp_path / "none.json").get_item("k") is None

    def test_no_temp_files_left(self, tmp_path: Path):
        store = FileStore(tmp_path / "storage.json")
        store.set_item("a", "1")
        store.set_item("b", "2")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["storage.json"]

    def test_quota_leaves_file_unchanged(self, tmp_path: Path):
        path = tmp_path / "storage.json"
        store = FileStore(path, quota_bytes=30)
        store.set_item("a", "small")
        before = path.read_bytes()

        with pytest.raises(QuotaExceededError):
            store.set_item("b", "x" * 100)

        assert path.read_bytes() == before

    def test_disk_full_maps_to_quota_error(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        path = tmp_path / "storage.json"
        store = FileStore(path)
        store.set_item("a", "1")

        def _full(src, dst):
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr(os, "replace", _full)
        with pytest.raises(QuotaExceededError):
            store.set_item("b", "2")

        assert json.loads(path.read_text(encoding="utf-8")) == {"a": "1"}
        assert sorted(p.name for p in tmp_path.iterdir()) == ["storage.json"]

    def test_other_os_errors_propagate(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        store = FileStore(tmp_path / "storage.json")

        def _denied(src, dst):
            raise PermissionError(errno.EACCES, "Permission denied")

        monkeypatch.setattr(os, "replace", _denied)
        with pytest.raises(PermissionError):
            store.set_item("a", "1")

    def test_corrupt_file_reads_as_empty(self, tmp_path: Path):
        path = tmp_path / "storage.json"
        path.write_text("{not json", encoding="utf-8")
        store = FileStore(path)
        assert store.get_item("k") is None
        store.set_item("k", "v")
        assert FileStore(path).get_item("k") == "v"

    def test_non_object_file_reads_as_empty(self, tmp_path: Path):
        path = tmp_path / "storage.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        assert FileStore(path).used_bytes() == 0

    def test_non_string_values_read_as_empty(self, tmp_path: Path):
        path = tmp_path / "storage.json"
        path.write_text(json.dumps({"other": 1}), encoding="utf-8")
        store = FileStore(path)
        assert store.get_item("other") is None
        store.set_item("k", "v")
        assert json.loads(path.read_text(encoding="utf-8")) == {"k": "v"}
