"""SDK composition root for beanup."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from beanup.auth import create_token_resolver
from beanup.beans.client import BeansClient
from beanup.contracts.bean import Bean, BeanStatus
from beanup.contracts.check import CheckReport, CheckSection, CheckStatus
from beanup.contracts.config import BeanUpConfig
from beanup.contracts.exceptions import AuthenticationError, BeansError, ProviderError, SyncStateError
from beanup.contracts.provider import TaskService
from beanup.contracts.store import SyncStateStore
from beanup.contracts.sync import BeanLinkStatus, SyncLink, SyncRunResult
from beanup.contracts.task import ListField, TaskList, WorkspaceMember
from beanup.engine import SyncEngine
from beanup.engine.mapping import DEFAULT_PRIORITY_MAPPING, FieldMapper
from beanup.engine.progress import SyncProgress
from beanup.persistence import create_sync_state_store
from beanup.providers.clickup import ClickUpClient

_LOG = logging.getLogger(__name__)

# Closed beans are not worth a remote lookup in ``status``.
_TERMINAL_STATUSES = frozenset({BeanStatus.COMPLETED.value, BeanStatus.SCRAPPED.value})
_VALID_PRIORITY_RANKS = range(1, 5)


def filter_beans(beans: Iterable[Bean], exclude_status: Iterable[str]) -> list[Bean]:
    """Drop beans whose status is excluded by the sync filter."""
    excluded = set(exclude_status)
    return [bean for bean in beans if bean.status not in excluded]


class BeanUp:
    """beanup SDK public API."""

    def __init__(
        self,
        *,
        config: BeanUpConfig,
        beans: BeansClient | None = None,
        service: TaskService | None = None,
        progress: SyncProgress | None = None,
    ) -> None:
        self._config = config
        self._beans = beans or BeansClient(config.beans_path)
        self._service = service
        self._progress = progress

    @classmethod
    async def from_config(cls, config: BeanUpConfig, *, progress: SyncProgress | None = None) -> BeanUp:
        return cls(config=config, progress=progress)

    @property
    def config(self) -> BeanUpConfig:
        return self._config

    # ------------------------------------------------------------------
    # Sync
    # ------------------------------------------------------------------

    async def sync(
        self,
        bean_ids: Sequence[str] | None = None,
        *,
        dry_run: bool = False,
        force: bool = False,
        relationships: bool = True,
    ) -> SyncRunResult:
        """Sync the given beans (default: every bean passing the sync filter).

        Raises:
            SyncStateError: If reconciliation ran but its state could not be saved.
        """
        beans = await self._load_beans(bean_ids)
        if not beans:
            return SyncRunResult(dry_run=dry_run)
        store = self._open_store(beans)
        service = await self._resolve_service()
        async with service:
            engine = SyncEngine(
                service,
                store,
                self._config,
                dry_run=dry_run,
                force=force,
                relationships=relationships,
                progress=self._progress,
            )
            return await engine.sync(beans)

    async def _load_beans(self, bean_ids: Sequence[str] | None) -> list[Bean]:
        if bean_ids:
            return await self._beans.get_many(list(bean_ids))
        beans = await self._beans.list_beans()
        filtered = filter_beans(beans, self._config.sync_filter.exclude_status)
        if len(filtered) != len(beans):
            _LOG.info("Sync filter excluded %d bean(s)", len(beans) - len(filtered))
        return filtered

    # ------------------------------------------------------------------
    # Link management
    # ------------------------------------------------------------------

    async def status(self, bean_ids: Sequence[str] | None = None, *, remote: bool = True) -> list[BeanLinkStatus]:
        """Link state per bean; without ids, only linked beans are reported."""
        if bean_ids:
            beans = await self._beans.get_many(list(bean_ids))
            store = self._open_store(beans)
        else:
            all_beans = await self._beans.list_beans()
            store = self._open_store(all_beans)
            beans = [bean for bean in all_beans if store.get_link(bean.id) is not None]

        rows = [self._link_status(bean, store.get_link(bean.id)) for bean in beans]
        lookups = [
            row for row, bean in zip(rows, beans, strict=True) if row.linked and bean.status not in _TERMINAL_STATUSES
        ]
        if remote and lookups:
            await self._fill_remote_status(lookups)
        return rows

    @staticmethod
    def _link_status(bean: Bean, link: SyncLink | None) -> BeanLinkStatus:
        return BeanLinkStatus(
            bean_id=bean.id,
            bean_title=bean.title,
            bean_status=bean.status,
            task_id=link.task_id if link is not None else None,
            linked=link is not None,
            needs_sync=link is None or link.is_stale(bean.updated_at),
        )

    async def _fill_remote_status(self, rows: list[BeanLinkStatus]) -> None:
        try:
            service = await self._resolve_service()
        except AuthenticationError as exc:
            _LOG.info("Skipping remote task status: %s", exc)
            return

        async def fill(row: BeanLinkStatus) -> None:
            assert row.task_id is not None
            try:
                task = await service.get_task(row.task_id)
            except ProviderError as exc:
                _LOG.warning("Could not fetch task %s for %s: %s", row.task_id, row.bean_id, exc)
                return
            row.task_status = task.status_name
            row.task_url = task.url or None

        async with service:
            async with asyncio.TaskGroup() as tg:
                for row in rows:
                    tg.create_task(fill(row))

    async def link(self, bean_id: str, task_id: str, *, verify: bool = True) -> SyncLink:
        """Link a bean to an existing task; the next sync pushes the bean's state.

        Raises:
            BeanNotFoundError: If the bean does not exist.
            RemoteNotFoundError: If ``verify`` is set and the task does not exist.
        """
        bean = await self._beans.get(bean_id)
        if verify:
            service = await self._resolve_service()
            async with service:
                await service.get_task(task_id)

        store = self._open_store([bean])
        existing = store.get_link(bean.id)
        if existing is not None and existing.task_id != task_id:
            _LOG.info("Relinking %s from %s to %s", bean.id, existing.task_id, task_id)
            store.clear(bean.id)
        store.set_task_id(bean.id, task_id)
        await store.flush()
        link = store.get_link(bean.id)
        assert link is not None
        return link

    async def unlink(self, bean_id: str) -> SyncLink | None:
        """Remove a bean's link; returns the removed link, or ``None`` if it was not linked."""
        bean = await self._beans.get(bean_id)
        store = self._open_store([bean])
        link = store.get_link(bean.id)
        if link is None:
            return None
        store.clear(bean.id)
        await store.flush()
        return link

    # ------------------------------------------------------------------
    # Workspace lookups
    # ------------------------------------------------------------------

    async def users(self) -> list[WorkspaceMember]:
        """Members of every workspace the token can see, for the ``users`` mention table."""
        service = await self._resolve_service()
        async with service:
            return await service.get_workspace_members()

    async def statuses(self) -> TaskList:
        """The configured list, whose statuses are valid ``status_mapping`` targets."""
        service = await self._resolve_service()
        async with service:
            return await service.get_list(self._config.list_id)

    async def fields(self) -> list[ListField]:
        """Custom fields on the configured list, for the ``custom_fields`` ids."""
        service = await self._resolve_service()
        async with service:
            return await service.get_list_fields(self._config.list_id)

    # ------------------------------------------------------------------
    # Health check
    # ------------------------------------------------------------------

    async def check(self, *, skip_api: bool = False) -> CheckReport:
        configuration = self._check_configuration()
        integration = CheckSection(name="ClickUp Integration")

        if skip_api:
            integration.add("API checks", CheckStatus.WARN, "Skipped")
        else:
            try:
                service = await self._resolve_service()
            except AuthenticationError as exc:
                integration.add("API token available", CheckStatus.FAIL, str(exc))
            else:
                integration.add("API token available", CheckStatus.PASS)
                async with service:
                    await self._check_user(service, integration)
                    await self._check_list(service, configuration)

        return CheckReport(sections=[configuration, integration, await self._check_sync_state()])

    def _check_configuration(self) -> CheckSection:
        section = CheckSection(name="Configuration")
        section.add("List ID configured", CheckStatus.PASS, self._config.list_id)

        invalid = sorted(
            f"{name}={rank}"
            for name, rank in self._config.priority_mapping.items()
            if rank not in _VALID_PRIORITY_RANKS
        )
        if invalid:
            section.add(
                "Priority mapping valid",
                CheckStatus.WARN,
                f"Invalid priorities (must be 1-4): {', '.join(invalid)}",
            )
        else:
            mapped = DEFAULT_PRIORITY_MAPPING | self._config.priority_mapping
            section.add("Priority mapping valid", CheckStatus.PASS, f"{len(mapped)} mappings")

        if self._config.type_mapping:
            section.add("Type mapping configured", CheckStatus.PASS, f"{len(self._config.type_mapping)} mappings")
        else:
            section.add("Type mapping configured", CheckStatus.WARN, "Not configured")
        return section

    async def _check_user(self, service: TaskService, section: CheckSection) -> None:
        try:
            user = await service.get_authorized_user()
        except ProviderError as exc:
            section.add("Authenticated", CheckStatus.FAIL, str(exc))
            return
        section.add("Authenticated", CheckStatus.PASS, user.username or str(user.id))

    async def _check_list(self, service: TaskService, section: CheckSection) -> None:
        try:
            task_list = await service.get_list(self._config.list_id)
        except ProviderError as exc:
            section.add("List accessible", CheckStatus.FAIL, f"Cannot access list: {exc}")
            return
        section.add("List accessible", CheckStatus.PASS, task_list.name)

        available = {status.status.lower() for status in task_list.statuses}
        if available:
            mapping = FieldMapper.from_config(self._config).status_mapping
            missing = sorted({target for target in mapping.values() if target.lower() not in available})
            if missing:
                section.add("Status mapping valid", CheckStatus.WARN, f"Not in list: {', '.join(missing)}")
            else:
                section.add("Status mapping valid", CheckStatus.PASS, f"{len(mapping)} mappings")

        configured = {
            name: field_id
            for name, field_id in self._config.custom_fields.model_dump().items()
            if field_id
        }
        if not configured:
            section.add("Custom fields configured", CheckStatus.WARN, "Not configured")
            return
        try:
            fields = await service.get_list_fields(self._config.list_id)
        except ProviderError as exc:
            section.add("Custom fields exist", CheckStatus.FAIL, f"Cannot load fields: {exc}")
            return
        known = {field.id for field in fields}
        for name, field_id in configured.items():
            if field_id in known:
                section.add(f"Custom field {name}", CheckStatus.PASS, field_id)
            else:
                section.add(f"Custom field {name}", CheckStatus.FAIL, f"{field_id} not found on list")

    async def _check_sync_state(self) -> CheckSection:
        section = CheckSection(name="Sync State")
        try:
            beans = await self._beans.list_beans()
        except BeansError as exc:
            section.add("Beans CLI available", CheckStatus.FAIL, str(exc))
            return section
        section.add("Beans CLI available", CheckStatus.PASS, f"{len(beans)} beans")

        try:
            store = self._open_store(beans)
        except SyncStateError as exc:
            section.add("Sync state readable", CheckStatus.FAIL, str(exc))
            return section
        linked = store.all_links()
        section.add("Sync state readable", CheckStatus.PASS, f"{self._config.sync_state} store, {len(linked)} linked")
        return section

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def _open_store(self, beans: Iterable[Bean]) -> SyncStateStore:
        return create_sync_state_store(
            self._config.sync_state,
            beans_path=self._config.beans_path,
            client=self._beans,
            beans=beans,
        )

    async def _resolve_service(self) -> TaskService:
        if self._service is not None:
            return self._service
        token = await create_token_resolver(self._config).resolve()
        return ClickUpClient(token=token)
