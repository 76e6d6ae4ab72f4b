from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from beanup import BeanUp, CheckStatus, SyncAction
from beanup.contracts.config import BeanUpConfig
from beanup.contracts.exceptions import BeanNotFoundError, RemoteNotFoundError
from beanup.contracts.task import ListField, RemoteTask, TaskStatus, WorkspaceMember
from beanup.persistence.sync_state import FileSyncStateStore
from beanup.sdk import filter_beans
from tests.fakes.beans import FakeBeansClient
from tests.fakes.builders import make_bean, make_config
from tests.fakes.clickup import FakeTaskService


def make_sdk(config: BeanUpConfig, beans: FakeBeansClient, service: FakeTaskService) -> BeanUp:
    return BeanUp(config=config, beans=beans, service=service)


def stored_links(config: BeanUpConfig) -> dict[str, str]:
    return {bean_id: link.task_id for bean_id, link in FileSyncStateStore.load(config.beans_path).all_links().items()}


def test_filter_beans_drops_excluded_statuses() -> None:
    beans = [make_bean("a"), make_bean("b", status="scrapped"), make_bean("c", status="draft")]

    assert [bean.id for bean in filter_beans(beans, ["scrapped", "draft"])] == ["a"]


@pytest.mark.asyncio
async def test_sync_applies_filter_and_persists_links(tmp_path: Path, service: FakeTaskService) -> None:
    config = make_config(tmp_path, sync_filter={"exclude_status": ["completed"]})
    beans = FakeBeansClient([make_bean("a"), make_bean("done", status="completed")])

    result = await make_sdk(config, beans, service).sync()

    assert [entry.bean_id for entry in result.results] == ["a"]
    assert service.entered == 1
    assert stored_links(config) == {"a": "task-1"}


@pytest.mark.asyncio
async def test_explicit_ids_bypass_filter(tmp_path: Path, service: FakeTaskService) -> None:
    config = make_config(tmp_path, sync_filter={"exclude_status": ["completed"]})
    beans = FakeBeansClient([make_bean("a"), make_bean("done", status="completed")])

    result = await make_sdk(config, beans, service).sync(["done"])

    assert [(entry.bean_id, entry.action) for entry in result.results] == [("done", SyncAction.CREATED)]


@pytest.mark.asyncio
async def test_sync_with_no_beans_skips_remote(config: BeanUpConfig, service: FakeTaskService) -> None:
    result = await make_sdk(config, FakeBeansClient(), service).sync(dry_run=True)

    assert result.results == []
    assert result.dry_run is True
    assert service.entered == 0


@pytest.mark.asyncio
async def test_sync_unknown_bean_id_raises(config: BeanUpConfig, service: FakeTaskService) -> None:
    with pytest.raises(BeanNotFoundError):
        await make_sdk(config, FakeBeansClient([make_bean("a")]), service).sync(["missing"])


@pytest.mark.asyncio
async def test_sync_with_extension_state_flushes_once(tmp_path: Path, service: FakeTaskService) -> None:
    config = make_config(tmp_path, sync_state="extension")
    beans = FakeBeansClient([make_bean("a"), make_bean("b")])

    await make_sdk(config, beans, service).sync()

    assert len(beans.batches) == 1
    assert sorted(op.bean_id for op in beans.batches[0]) == ["a", "b"]
    assert not (config.beans_path / ".sync.json").exists()


@pytest.mark.asyncio
async def test_status_lists_linked_beans_with_remote_state(config: BeanUpConfig, service: FakeTaskService) -> None:
    service.seed(RemoteTask(id="task-1", name="A", status=TaskStatus(status="in progress"), url="https://x/t/1"))
    store = FileSyncStateStore.load(config.beans_path)
    store.set_task_id("a", "task-1")
    store.set_synced_at("a", datetime(2025, 6, 3, tzinfo=UTC))
    store.set_task_id("closed", "task-2")
    beans = FakeBeansClient([make_bean("a"), make_bean("closed", status="completed"), make_bean("unlinked")])

    rows = await make_sdk(config, beans, service).status()

    assert [row.bean_id for row in rows] == ["a", "closed"]
    first, closed = rows
    assert (first.task_status, first.task_url, first.needs_sync) == ("in progress", "https://x/t/1", False)
    assert closed.task_status is None
    assert closed.needs_sync is True
    assert service.calls_named("get_task") == [("get_task", "task-1")]


@pytest.mark.asyncio
async def test_status_for_explicit_ids_includes_unlinked(config: BeanUpConfig, service: FakeTaskService) -> None:
    beans = FakeBeansClient([make_bean("a")])

    [row] = await make_sdk(config, beans, service).status(["a"], remote=False)

    assert row.linked is False
    assert row.task_id is None
    assert service.calls == []


@pytest.mark.asyncio
async def test_link_verifies_task_and_resets_sync_time(config: BeanUpConfig, service: FakeTaskService) -> None:
    service.seed(RemoteTask(id="task-new", name="A"))
    store = FileSyncStateStore.load(config.beans_path)
    store.set_task_id("a", "task-old")
    store.set_synced_at("a", datetime(2025, 6, 3, tzinfo=UTC))
    sdk = make_sdk(config, FakeBeansClient([make_bean("a")]), service)

    link = await sdk.link("a", "task-new")

    assert link.task_id == "task-new"
    assert link.synced_at is None
    assert stored_links(config) == {"a": "task-new"}


@pytest.mark.asyncio
async def test_link_rejects_missing_task(config: BeanUpConfig, service: FakeTaskService) -> None:
    sdk = make_sdk(config, FakeBeansClient([make_bean("a")]), service)

    with pytest.raises(RemoteNotFoundError):
        await sdk.link("a", "nope")

    assert stored_links(config) == {}
    assert (await sdk.link("a", "nope", verify=False)).task_id == "nope"


@pytest.mark.asyncio
async def test_unlink(config: BeanUpConfig, service: FakeTaskService) -> None:
    FileSyncStateStore.load(config.beans_path).set_task_id("a", "task-1")
    sdk = make_sdk(config, FakeBeansClient([make_bean("a")]), service)

    removed = await sdk.unlink("a")

    assert removed is not None
    assert removed.task_id == "task-1"
    assert await sdk.unlink("a") is None
    assert stored_links(config) == {}


@pytest.mark.asyncio
async def test_check_reports_healthy_setup(tmp_path: Path, service: FakeTaskService) -> None:
    config = make_config(tmp_path, custom_fields={"bean_id": "cf-1"}, type_mapping={"bug": 1001})
    service.fields = [ListField(id="cf-1", name="Bean ID")]

    report = await make_sdk(config, FakeBeansClient([make_bean("a")]), service).check()

    assert [section.name for section in report.sections] == ["Configuration", "ClickUp Integration", "Sync State"]
    assert report.failed == 0
    assert report.warnings == 0
    checks = {check.name: check for section in report.sections for check in section.checks}
    assert checks["Authenticated"].message == "owner"
    assert checks["List accessible"].message == "Backlog"
    assert checks["Custom field bean_id"].status == CheckStatus.PASS


@pytest.mark.asyncio
async def test_check_flags_problems(tmp_path: Path, service: FakeTaskService) -> None:
    config = make_config(
        tmp_path,
        status_mapping={"todo": "open"},
        priority_mapping={"high": 9},
        custom_fields={"bean_id": "cf-missing"},
    )
    beans = FakeBeansClient()
    beans.fail_reads = True

    report = await make_sdk(config, beans, service).check()

    statuses = {check.name: check.status for section in report.sections for check in section.checks}
    assert statuses["Priority mapping valid"] == CheckStatus.WARN
    assert statuses["Type mapping configured"] == CheckStatus.WARN
    assert statuses["Status mapping valid"] == CheckStatus.WARN
    assert statuses["Custom field bean_id"] == CheckStatus.FAIL
    assert statuses["Beans CLI available"] == CheckStatus.FAIL
    assert report.failed == 2


@pytest.mark.asyncio
async def test_check_without_token(config: BeanUpConfig, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLICKUP_TOKEN", raising=False)

    report = await BeanUp(config=config, beans=FakeBeansClient()).check()

    integration = report.sections[1]
    assert [(check.name, check.status) for check in integration.checks] == [
        ("API token available", CheckStatus.FAIL)
    ]


@pytest.mark.asyncio
async def test_check_can_skip_api(config: BeanUpConfig, service: FakeTaskService) -> None:
    report = await make_sdk(config, FakeBeansClient(), service).check(skip_api=True)

    assert service.calls == []
    assert report.sections[1].checks[0].status == CheckStatus.WARN


@pytest.mark.asyncio
async def test_workspace_lookups_use_configured_list(config: BeanUpConfig, service: FakeTaskService) -> None:
    service.members = [WorkspaceMember(id=11, username="alice", email="alice@example.com")]
    service.fields = [ListField(id="cf-1", name="Bean ID", type="short_text")]
    sdk = make_sdk(config, FakeBeansClient(), service)

    members = await sdk.users()
    task_list = await sdk.statuses()
    fields = await sdk.fields()

    assert [member.id for member in members] == [11]
    assert [status.status for status in task_list.statuses][:2] == ["backlog", "to do"]
    assert [field.id for field in fields] == ["cf-1"]
    assert service.calls == [("get_workspace_members",), ("get_list", "list-1"), ("get_list_fields", "list-1")]
    assert service.entered == 3
