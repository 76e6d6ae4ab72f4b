from __future__ import annotations

from datetime import UTC, datetime

import pytest

from beanup.beans.client import ExtensionDataOp
from beanup.contracts.exceptions import SyncStateError
from beanup.persistence.extension_state import ExtensionSyncStateStore
from tests.fakes.beans import FakeBeansClient
from tests.fakes.builders import make_bean

SYNCED = datetime(2025, 6, 2, 9, 30, 0, 123456, tzinfo=UTC)


def test_links_are_seeded_from_bean_extensions() -> None:
    beans = [
        make_bean("b-1", extensions={"clickup": {"task_id": "task-1", "synced_at": "2025-06-02T09:30:00Z"}}),
        make_bean("b-2", extensions={"clickup": {"task_id": "task-2", "synced_at": "garbage"}}),
        make_bean("b-3", extensions={"other": {"task_id": "x"}}),
    ]

    store = ExtensionSyncStateStore(FakeBeansClient(beans), beans)

    links = store.all_links()
    assert set(links) == {"b-1", "b-2"}
    assert links["b-1"].synced_at == datetime(2025, 6, 2, 9, 30, tzinfo=UTC)
    assert links["b-2"].synced_at is None


@pytest.mark.asyncio
async def test_mutations_are_batched_until_flush() -> None:
    client = FakeBeansClient()
    store = ExtensionSyncStateStore(client)

    store.set_task_id("b-1", "task-1")
    store.set_synced_at("b-1", SYNCED)
    store.set_task_id("b-2", "task-2")

    assert client.batches == []

    await store.flush()

    assert client.batches == [
        [
            ExtensionDataOp(
                bean_id="b-1",
                name="clickup",
                data={"task_id": "task-1", "synced_at": "2025-06-02T09:30:00.123456Z"},
            ),
            ExtensionDataOp(bean_id="b-2", name="clickup", data={"task_id": "task-2"}),
        ]
    ]

    await store.flush()
    assert len(client.batches) == 1


@pytest.mark.asyncio
async def test_last_operation_per_bean_wins() -> None:
    beans = [make_bean("b-1", extensions={"clickup": {"task_id": "task-1"}})]
    client = FakeBeansClient(beans)
    store = ExtensionSyncStateStore(client, beans)

    store.set_task_id("b-2", "task-2")
    store.clear("b-2")
    store.clear("b-1")
    store.set_task_id("b-1", "task-9")

    await store.flush()

    assert client.batches == [[ExtensionDataOp(bean_id="b-1", name="clickup", data={"task_id": "task-9"})]]
    assert client.removed == [("b-2", "clickup")]


@pytest.mark.asyncio
async def test_flush_without_changes_does_nothing() -> None:
    client = FakeBeansClient()

    await ExtensionSyncStateStore(client).flush()

    assert client.batches == []
    assert client.removed == []


@pytest.mark.asyncio
async def test_failed_flush_keeps_operations_for_retry() -> None:
    client = FakeBeansClient()
    client.fail_writes = True
    store = ExtensionSyncStateStore(client)
    store.set_task_id("b-1", "task-1")

    with pytest.raises(SyncStateError, match="failed to write sync state"):
        await store.flush()

    client.fail_writes = False
    await store.flush()
    assert client.batches == [[ExtensionDataOp(bean_id="b-1", name="clickup", data={"task_id": "task-1"})]]


@pytest.mark.asyncio
async def test_synced_at_for_unlinked_bean_is_ignored() -> None:
    client = FakeBeansClient()
    store = ExtensionSyncStateStore(client)

    store.set_synced_at("b-1", SYNCED)
    await store.flush()

    assert client.batches == []
    assert store.get_link("b-1") is None
