"""Tests for ProjectStore: save validation, quota atomicity, recovery."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from studio.errors import NotFoundError, QuotaExceededError, ValidationError
from studio.models import Artifact, ProjectState
from studio.persistence import PROJECTS_STORAGE_KEY, ProjectStore
from studio.storage import MemoryStore


def state_with_big_history(size: int = 100_000) -> ProjectState:
    state = ProjectState()
    state.image_studio.history.append(Artifact.from_bytes(b"x" * size, "image/png"))
    return state


class TestSave:
    @pytest.mark.parametrize("name", ["", "   ", "\t\n"])
    def test_blank_name_rejected(self, project_store: ProjectStore, memory_store: MemoryStore, name: str):
        with pytest.raises(ValidationError, match="project name"):
            project_store.save(name, ProjectState())
        assert project_store.list() == []
        assert memory_store.get_item(PROJECTS_STORAGE_KEY) is None

    def test_save_builds_record(self, project_store: ProjectStore):
        record = project_store.save("  My project  ", ProjectState(active_tab="image"))
        assert record.name == "My project"
        assert record.id == f"proj-{record.timestamp}"
        assert record.state.active_tab == "image"
        assert project_store.list() == [record]

    def test_ids_unique_within_same_millisecond(self, memory_store: MemoryStore):
        store = ProjectStore(memory_store, clock=lambda: 42)
        ids = {store.save(f"p{i}", ProjectState()).id for i in range(3)}
        assert ids == {"proj-42", "proj-43", "proj-44"}

    def test_resave_creates_new_record(self, project_store: ProjectStore):
        first = project_store.save("same", ProjectState())
        second = project_store.save("same", ProjectState())
        assert first.id != second.id
        assert len(project_store.list()) == 2

    def test_transient_video_cleared(self, project_store: ProjectStore, memory_store: MemoryStore, make_handle):
        handle = make_handle()
        video = ProjectState().video_studio.model_copy(update={"generated_video": handle})
        record = project_store.save("with video", ProjectState(video_studio=video))

        assert record.state.video_studio.generated_video is None
        assert not handle.released
        stored = json.loads(memory_store.get_item(PROJECTS_STORAGE_KEY))
        assert "generated_video" not in stored[0]["state"]["video_studio"]

    def test_layout(self, project_store: ProjectStore, memory_store: MemoryStore):
        record = project_store.save("layout", ProjectState())
        stored = json.loads(memory_store.get_item(PROJECTS_STORAGE_KEY))
        assert stored[0]["id"] == record.id
        assert set(stored[0]) == {"id", "name", "timestamp", "state"}

    def test_quota_exceeded_changes_nothing(self, clock):
        storage = MemoryStore(quota_bytes=20_000)
        store = ProjectStore(storage, clock=clock)
        store.save("small", ProjectState())
        raw_before = storage.get_item(PROJECTS_STORAGE_KEY)
        list_before = store.list()

        with pytest.raises(QuotaExceededError):
            store.save("large", state_with_big_history())

        assert store.list() == list_before
        assert storage.get_item(PROJECTS_STORAGE_KEY) == raw_before


class TestListLoadDelete:
    def test_newest_first(self, project_store: ProjectStore):
        older = project_store.save("older", ProjectState())
        newer = project_store.save("newer", ProjectState())
        assert [r.id for r in project_store.list_newest_first()] == [newer.id, older.id]
        assert [r.id for r in project_store.list()] == [older.id, newer.id]

    def test_load(self, project_store: ProjectStore):
        record = project_store.save("one", ProjectState())
        assert project_store.load(record.id) == record

    def test_saved_record_independent_of_caller_state(self, project_store: ProjectStore):
        state = ProjectState()
        record = project_store.save("Trip", state)

        state.image_studio.history.append(Artifact.from_bytes(b"x", "image/png"))
        record.state.image_studio.history.append(Artifact.from_bytes(b"y", "image/png"))

        assert len(project_store.load(record.id).state.image_studio.history) == 0

    def test_loaded_record_is_a_copy(self, project_store: ProjectStore, memory_store: MemoryStore):
        record = project_store.save("Trip", ProjectState())
        raw_before = memory_store.get_item(PROJECTS_STORAGE_KEY)

        project_store.load(record.id).state.image_studio.history.append(Artifact.from_bytes(b"x", "image/png"))
        project_store.list()[0].state.image_studio.history.append(Artifact.from_bytes(b"y", "image/png"))
        project_store.save("Other", ProjectState())

        assert len(project_store.load(record.id).state.image_studio.history) == 0
        stored = json.loads(memory_store.get_item(PROJECTS_STORAGE_KEY))
        assert stored[0] == json.loads(raw_before)[0]

    def test_load_missing(self, project_store: ProjectStore):
        with pytest.raises(NotFoundError) as exc_info:
            project_store.load("proj-0")
        assert isinstance(exc_info.value, KeyError)
        assert "proj-0" in str(exc_info.value)

    def test_delete(self, project_store: ProjectStore, memory_store: MemoryStore):
        keep = project_store.save("keep", ProjectState())
        drop = project_store.save("drop", ProjectState())
        project_store.delete(drop.id)
        assert project_store.list() == [keep]
        assert [r["id"] for r in json.loads(memory_store.get_item(PROJECTS_STORAGE_KEY))] == [keep.id]

    def test_delete_unknown_does_not_write(self, project_store: ProjectStore, memory_store: MemoryStore):
        project_store.save("keep", ProjectState())
        with patch.object(memory_store, "set_item", wraps=memory_store.set_item) as set_item:
            project_store.delete("proj-missing")
            project_store.delete("proj-missing")
        set_item.assert_not_called()
        assert len(project_store.list()) == 1

    def test_storage_bytes(self, project_store: ProjectStore, memory_store: MemoryStore):
        assert project_store.storage_bytes() == 0
        project_store.save("one", ProjectState())
        assert project_store.storage_bytes() == memory_store.used_bytes() > 0


class TestLoadFromStorage:
    def test_records_reloaded(self, memory_store: MemoryStore, clock):
        first = ProjectStore(memory_store, clock=clock)
        record = first.save("persisted", state_with_big_history(10))
        second = ProjectStore(memory_store, clock=clock)
        assert second.list() == [record]
        assert len(second.load(record.id).state.image_studio.history) == 1

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            '{"id": "proj-1"}',
            '[{"id": "proj-1", "name": "x"}]',
            '[{"id": "proj-1", "name": "x", "timestamp": 1, "state": {"active_tab": "nope"}}]',
        ],
    )
    def test_invalid_data_discarded(self, memory_store: MemoryStore, raw: str):
        memory_store.set_item(PROJECTS_STORAGE_KEY, raw)
        store = ProjectStore(memory_store)
        assert store.list() == []
        assert memory_store.get_item(PROJECTS_STORAGE_KEY) is None

    def test_custom_key(self, memory_store: MemoryStore, clock):
        store = ProjectStore(memory_store, key="other", clock=clock)
        store.save("x", ProjectState())
        assert memory_store.get_item("other") is not None
        assert memory_store.get_item(PROJECTS_STORAGE_KEY) is None
