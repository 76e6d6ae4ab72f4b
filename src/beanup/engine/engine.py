"""Core sync pipeline engine."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from beanup.contracts.bean import Bean
from beanup.contracts.config import BeanUpConfig
from beanup.contracts.exceptions import DeadlineExceededError, ProviderError, RemoteNotFoundError, SyncStateError
from beanup.contracts.provider import TaskService
from beanup.contracts.store import SyncStateStore
from beanup.contracts.sync import SyncAction, SyncResult, SyncRunResult
from beanup.contracts.task import RemoteTask
from beanup.engine.mapping import (
    FieldMapper,
    build_create_input,
    build_custom_fields,
    build_desired,
    build_mention_comment,
    build_update,
    diff_custom_fields,
    diff_labels,
    extract_mentions,
)
from beanup.engine.progress import NullSyncProgress, SyncProgress
from beanup.engine.utils import RemoteIdIndex, blocking_pairs, partition_layers

_LOG = logging.getLogger(__name__)

T = TypeVar("T")

# Run deadline when none is configured: a fixed allowance plus a per-bean share.
BASE_RUN_TIMEOUT = 60.0
PER_BEAN_TIMEOUT = 30.0

PHASE_SYNC = "Sync"
PHASE_RELATIONSHIPS = "Relationships"


@dataclass(frozen=True, slots=True)
class _RunContext:
    assignee: int | None
    space_id: str | None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SyncEngine:
    """Reconcile beans against one ClickUp list.

    Beans are processed layer by layer (parents before their children), each
    layer concurrently, followed by a best-effort relationship pass. Per-bean
    failures become ``error`` results; only a failed state flush is fatal.
    """

    def __init__(
        self,
        service: TaskService,
        store: SyncStateStore,
        config: BeanUpConfig,
        *,
        dry_run: bool = False,
        force: bool = False,
        relationships: bool = True,
        progress: SyncProgress | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._service = service
        self._store = store
        self._config = config
        self._dry_run = dry_run
        self._force = force
        self._relationships = relationships
        self._progress: SyncProgress = progress or NullSyncProgress()
        self._clock = clock
        self._mapper = FieldMapper.from_config(config)
        self._semaphore = asyncio.Semaphore(config.max_concurrent)

        self._deadline: float | None = None
        self._context: _RunContext | None = None
        self._context_lock = asyncio.Lock()

    async def sync(self, beans: Sequence[Bean]) -> SyncRunResult:
        """Reconcile *beans* and return one result per bean, in input order.

        Raises:
            SyncStateError: If the sync state could not be flushed. The
                exception carries the run result.
        """
        beans = _unique(beans)
        self._deadline = asyncio.get_running_loop().time() + self._run_timeout(len(beans))

        index = self._preload(beans)
        results: dict[str, SyncResult] = {}

        self._progress.phase_start(PHASE_SYNC, total=len(beans))
        try:
            for layer in partition_layers(beans):
                async with asyncio.TaskGroup() as tg:
                    for bean in layer:
                        tg.create_task(self._run_bean(bean, index, results))
            self._progress.phase_done(PHASE_SYNC)
        except BaseException as exc:
            self._progress.phase_error(PHASE_SYNC, exc)
            raise

        if self._relationships and not self._dry_run:
            await self._sync_relationships(beans, index)

        run = SyncRunResult(results=[results[bean.id] for bean in beans], dry_run=self._dry_run)
        if not self._dry_run:
            try:
                await self._store.flush()
            except SyncStateError as exc:
                raise SyncStateError(f"sync finished but state could not be saved: {exc}", result=run) from exc
        return run

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _run_timeout(self, bean_count: int) -> float:
        if self._config.run_timeout is not None:
            return self._config.run_timeout
        return BASE_RUN_TIMEOUT + PER_BEAN_TIMEOUT * bean_count

    def _preload(self, beans: Iterable[Bean]) -> RemoteIdIndex:
        index = RemoteIdIndex()
        for bean in beans:
            link = self._store.get_link(bean.id)
            if link is not None and link.task_id:
                index.set(bean.id, link.task_id)
        return index

    async def _run_context(self) -> _RunContext:
        """Resolve the default assignee and the list's space once per run.

        Fetched on first use so runs where every bean is skipped stay silent
        remotely. Failures are logged and degrade to unassigned tasks and no
        space-tag registration.
        """
        async with self._context_lock:
            if self._context is None:
                assignee = await self._resolve_assignee()
                self._context = _RunContext(assignee=assignee, space_id=await self._resolve_space())
            return self._context

    async def _resolve_assignee(self) -> int | None:
        configured = self._config.assignee
        if configured is not None:
            return configured or None
        try:
            user = await self._guarded(self._service.get_authorized_user)
        except ProviderError as exc:
            _LOG.warning("Could not resolve the token owner, creating unassigned tasks: %s", exc)
            return None
        return user.id

    async def _resolve_space(self) -> str | None:
        try:
            task_list = await self._guarded(self._service.get_list, self._config.list_id)
        except ProviderError as exc:
            _LOG.warning("Could not load list %s, skipping space tag registration: %s", self._config.list_id, exc)
            return None
        return task_list.space_id

    # ------------------------------------------------------------------
    # Per-bean reconciliation
    # ------------------------------------------------------------------

    async def _run_bean(self, bean: Bean, index: RemoteIdIndex, results: dict[str, SyncResult]) -> None:
        result = await self._sync_bean(bean, index)
        results[bean.id] = result
        if result.action == SyncAction.ERROR:
            _LOG.warning("Failed to sync %s: %s", bean.id, result.error)
        else:
            _LOG.debug("%s %s", result.action, bean.id)
        self._progress.item_done(PHASE_SYNC, result)

    async def _sync_bean(self, bean: Bean, index: RemoteIdIndex) -> SyncResult:
        link = self._store.get_link(bean.id)
        try:
            if link is not None:
                if not self._force and not link.is_stale(bean.updated_at):
                    return self._result(bean, SyncAction.SKIPPED, task_id=link.task_id)
                try:
                    task = await self._guarded(self._service.get_task, link.task_id)
                except RemoteNotFoundError:
                    _LOG.info("Task %s for %s no longer exists, recreating", link.task_id, bean.id)
                    index.discard(bean.id)
                    if not self._dry_run:
                        self._store.clear(bean.id)
                    link = None
                else:
                    return await self._update(bean, task)
            return await self._create(bean, index)
        except (ProviderError, SyncStateError) as exc:
            return self._result(
                bean,
                SyncAction.ERROR,
                task_id=link.task_id if link is not None else None,
                error=str(exc),
            )

    async def _update(self, bean: Bean, task: RemoteTask) -> SyncResult:
        if self._dry_run:
            return self._result(bean, SyncAction.WOULD_UPDATE, task=task)

        update = build_update(task, build_desired(bean, self._mapper))
        to_add, to_remove = diff_labels(bean.tags, task.tag_names)
        desired_fields = build_custom_fields(bean, self._config.custom_fields)
        changed_keys = diff_custom_fields(task.custom_field_values, desired_fields)

        changed = False
        if not update.is_empty():
            _LOG.debug("Updating %s fields on %s: %s", bean.id, task.id, ", ".join(update.changed_fields()))
            task = await self._guarded(self._service.update_task, task.id, update)
            changed = True

        if await self._sync_tags(task.id, to_add, to_remove):
            changed = True
        if await self._sync_custom_fields(task.id, {key: desired_fields[key] for key in changed_keys}):
            changed = True

        self._store.set_synced_at(bean.id, self._clock())
        return self._result(bean, SyncAction.UPDATED if changed else SyncAction.UNCHANGED, task=task)

    async def _create(self, bean: Bean, index: RemoteIdIndex) -> SyncResult:
        if self._dry_run:
            return self._result(bean, SyncAction.WOULD_CREATE)

        context = await self._run_context()
        parent_task_id = index.get(bean.parent) if bean.parent else None
        payload = build_create_input(
            build_desired(bean, self._mapper),
            assignee=context.assignee,
            parent_task_id=parent_task_id,
            custom_fields=build_custom_fields(bean, self._config.custom_fields),
        )
        task = await self._guarded(self._service.create_task, self._config.list_id, payload)

        index.set(bean.id, task.id)
        self._store.set_task_id(bean.id, task.id)
        self._store.set_synced_at(bean.id, self._clock())

        to_add, _ = diff_labels(bean.tags, ())
        await self._sync_tags(task.id, to_add, ())
        await self._post_mentions(task.id, bean.body)
        return self._result(bean, SyncAction.CREATED, task=task)

    # ------------------------------------------------------------------
    # Best-effort sub-operations
    # ------------------------------------------------------------------

    async def _sync_tags(self, task_id: str, to_add: Sequence[str], to_remove: Sequence[str]) -> bool:
        """Apply a tag diff; return whether any tag actually changed."""
        if not to_add and not to_remove:
            return False
        space_id = (await self._run_context()).space_id if to_add else None
        changed = False
        for tag in to_add:
            if space_id is not None:
                try:
                    await self._guarded(self._service.ensure_space_tag, space_id, tag)
                except ProviderError as exc:
                    _LOG.warning("Could not register tag %r in space %s: %s", tag, space_id, exc)
            try:
                await self._guarded(self._service.add_tag, task_id, tag)
                changed = True
            except ProviderError as exc:
                _LOG.warning("Could not add tag %r to task %s: %s", tag, task_id, exc)
        for tag in to_remove:
            try:
                await self._guarded(self._service.remove_tag, task_id, tag)
                changed = True
            except ProviderError as exc:
                _LOG.warning("Could not remove tag %r from task %s: %s", tag, task_id, exc)
        return changed

    async def _sync_custom_fields(self, task_id: str, values: dict[str, Any]) -> bool:
        changed = False
        for field_id, value in values.items():
            try:
                await self._guarded(self._service.set_custom_field, task_id, field_id, value)
                changed = True
            except ProviderError as exc:
                _LOG.warning("Could not set custom field %s on task %s: %s", field_id, task_id, exc)
        return changed

    async def _post_mentions(self, task_id: str, body: str) -> None:
        items = build_mention_comment(extract_mentions(body), self._config.users)
        if not items:
            return
        try:
            await self._guarded(self._service.create_comment, task_id, items)
        except ProviderError as exc:
            _LOG.warning("Could not post mention comment on task %s: %s", task_id, exc)

    async def _sync_relationships(self, beans: Sequence[Bean], index: RemoteIdIndex) -> None:
        # beans: A blocks B.  ClickUp: B waits on A.
        edges: list[tuple[str, str]] = []
        for blocker_id, blocked_id in blocking_pairs(beans):
            blocker_task = index.get(blocker_id)
            blocked_task = index.get(blocked_id)
            if blocker_task and blocked_task and blocker_task != blocked_task:
                edges.append((blocked_task, blocker_task))

        self._progress.phase_start(PHASE_RELATIONSHIPS, total=len(edges))
        try:
            async with asyncio.TaskGroup() as tg:
                for task_id, depends_on in edges:
                    tg.create_task(self._add_dependency(task_id, depends_on))
            self._progress.phase_done(PHASE_RELATIONSHIPS)
        except BaseException as exc:
            self._progress.phase_error(PHASE_RELATIONSHIPS, exc)
            raise

    async def _add_dependency(self, task_id: str, depends_on: str) -> None:
        try:
            await self._guarded(self._service.add_dependency, task_id, depends_on=depends_on)
        except ProviderError as exc:
            _LOG.warning("Could not make task %s wait on %s: %s", task_id, depends_on, exc)
        self._progress.item_done(PHASE_RELATIONSHIPS)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _result(
        bean: Bean,
        action: SyncAction,
        *,
        task: RemoteTask | None = None,
        task_id: str | None = None,
        error: str | None = None,
    ) -> SyncResult:
        return SyncResult(
            bean_id=bean.id,
            bean_title=bean.title,
            action=action,
            task_id=task.id if task is not None else task_id,
            task_url=(task.url or None) if task is not None else None,
            error=error,
        )

    async def _guarded(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Run one remote call under the concurrency cap and the run deadline."""
        try:
            async with asyncio.timeout_at(self._deadline):
                async with self._semaphore:
                    return await fn(*args, **kwargs)
        except TimeoutError as exc:
            name = getattr(fn, "__name__", "remote call")
            raise DeadlineExceededError(f"run deadline exceeded before {name} finished") from exc


def _unique(beans: Sequence[Bean]) -> list[Bean]:
    seen: dict[str, Bean] = {}
    for bean in beans:
        seen.setdefault(bean.id, bean)
    return list(seen.values())
