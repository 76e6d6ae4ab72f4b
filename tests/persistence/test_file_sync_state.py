from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from beanup.contracts.exceptions import SyncStateError
from beanup.persistence.sync_state import SYNC_FILE_NAME, FileSyncStateStore

SYNCED = datetime(2025, 6, 2, 9, 30, tzinfo=UTC)


def test_missing_file_is_empty_state(tmp_path: Path) -> None:
    store = FileSyncStateStore.load(tmp_path)

    assert store.all_links() == {}
    assert store.get_link("b-1") is None
    assert store.path == tmp_path / SYNC_FILE_NAME


def test_mutations_are_written_immediately(tmp_path: Path) -> None:
    store = FileSyncStateStore.load(tmp_path)

    store.set_task_id("b-1", "task-1")
    store.set_synced_at("b-1", SYNCED)

    document = json.loads((tmp_path / SYNC_FILE_NAME).read_text(encoding="utf-8"))
    assert document == {
        "version": 1,
        "beans": {"b-1": {"clickup": {"task_id": "task-1", "synced_at": "2025-06-02T09:30:00Z"}}},
    }
    assert not list(tmp_path.glob("*.tmp"))


def test_state_round_trips_through_disk(tmp_path: Path) -> None:
    store = FileSyncStateStore.load(tmp_path)
    store.set_task_id("b-1", "task-1")
    store.set_synced_at("b-1", SYNCED)
    store.set_task_id("b-2", "task-2")

    reloaded = FileSyncStateStore.load(tmp_path)

    links = reloaded.all_links()
    assert set(links) == {"b-1", "b-2"}
    assert links["b-1"].synced_at == SYNCED
    assert links["b-2"].synced_at is None


def test_clear_removes_link(tmp_path: Path) -> None:
    store = FileSyncStateStore.load(tmp_path)
    store.set_task_id("b-1", "task-1")

    store.clear("b-1")
    store.clear("never-linked")

    assert FileSyncStateStore.load(tmp_path).get_link("b-1") is None


def test_synced_at_for_unlinked_bean_is_ignored(tmp_path: Path) -> None:
    store = FileSyncStateStore.load(tmp_path)

    store.set_synced_at("b-1", SYNCED)

    assert store.get_link("b-1") is None
    assert not (tmp_path / SYNC_FILE_NAME).exists()


def test_returned_links_are_copies(tmp_path: Path) -> None:
    store = FileSyncStateStore.load(tmp_path)
    store.set_task_id("b-1", "task-1")

    link = store.get_link("b-1")
    assert link is not None
    link.task_id = "mutated"

    assert store.get_link("b-1").task_id == "task-1"  # type: ignore[union-attr]


def test_invalid_file_raises(tmp_path: Path) -> None:
    (tmp_path / SYNC_FILE_NAME).write_text("{not json", encoding="utf-8")

    with pytest.raises(SyncStateError, match="invalid sync state file"):
        FileSyncStateStore.load(tmp_path)


@pytest.mark.asyncio
async def test_failed_write_is_retried_on_flush(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    store = FileSyncStateStore.load(tmp_path)
    original = FileSyncStateStore._write

    def broken(self: FileSyncStateStore) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(FileSyncStateStore, "_write", broken)
    store.set_task_id("b-1", "task-1")
    assert not (tmp_path / SYNC_FILE_NAME).exists()

    with pytest.raises(SyncStateError, match="failed to persist"):
        await store.flush()

    monkeypatch.setattr(FileSyncStateStore, "_write", original)
    await store.flush()

    assert FileSyncStateStore.load(tmp_path).get_link("b-1") is not None


@pytest.mark.asyncio
async def test_flush_without_pending_writes_is_noop(tmp_path: Path) -> None:
    store = FileSyncStateStore.load(tmp_path)

    await store.flush()

    assert not (tmp_path / SYNC_FILE_NAME).exists()
