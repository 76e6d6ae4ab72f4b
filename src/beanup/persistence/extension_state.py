"""Sync state kept in each bean's ``clickup`` extension metadata.

Writing extension data costs one ``beans`` subprocess per call, so mutations
are cached and queued; :meth:`ExtensionSyncStateStore.flush` collapses the
queue into one batched set plus one call per removal.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from beanup.beans.client import BeansClient, ExtensionDataOp
from beanup.contracts.bean import CLICKUP_EXTENSION, EXT_KEY_SYNCED_AT, EXT_KEY_TASK_ID, Bean
from beanup.contracts.exceptions import BeansError, SyncStateError
from beanup.contracts.store import SyncStateStore
from beanup.contracts.sync import SyncLink

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PendingOp:
    bean_id: str
    data: dict[str, Any] | None
    """``None`` removes the extension."""


class ExtensionSyncStateStore(SyncStateStore):
    def __init__(self, client: BeansClient, beans: Iterable[Bean] = ()) -> None:
        self._client = client
        self._lock = threading.RLock()
        self._cache: dict[str, SyncLink] = {}
        self._ops: list[_PendingOp] = []
        for bean in beans:
            link = _link_from_extension(bean)
            if link is not None:
                self._cache[bean.id] = link

    def get_link(self, bean_id: str) -> SyncLink | None:
        with self._lock:
            link = self._cache.get(bean_id)
            return link.model_copy() if link is not None else None

    def set_task_id(self, bean_id: str, task_id: str) -> None:
        with self._lock:
            link = self._cache.get(bean_id)
            if link is None:
                self._cache[bean_id] = SyncLink(task_id=task_id)
            else:
                link.task_id = task_id
            self._queue_set(bean_id)

    def set_synced_at(self, bean_id: str, when: datetime) -> None:
        with self._lock:
            link = self._cache.get(bean_id)
            if link is None:
                _LOG.debug("Ignoring synced_at for unlinked bean %s", bean_id)
                return
            link.synced_at = when.astimezone(UTC)
            self._queue_set(bean_id)

    def clear(self, bean_id: str) -> None:
        with self._lock:
            self._cache.pop(bean_id, None)
            self._ops.append(_PendingOp(bean_id=bean_id, data=None))

    def all_links(self) -> dict[str, SyncLink]:
        with self._lock:
            return {bean_id: link.model_copy() for bean_id, link in self._cache.items()}

    async def flush(self) -> None:
        with self._lock:
            ops, self._ops = self._ops, []
        if not ops:
            return

        # Last operation per bean wins.
        latest: dict[str, _PendingOp] = {}
        for op in ops:
            latest.pop(op.bean_id, None)
            latest[op.bean_id] = op

        set_ops = [
            ExtensionDataOp(bean_id=op.bean_id, name=CLICKUP_EXTENSION, data=op.data)
            for op in latest.values()
            if op.data is not None
        ]
        removals = [op.bean_id for op in latest.values() if op.data is None]
        _LOG.debug("Flushing %d extension updates and %d removals", len(set_ops), len(removals))

        try:
            if set_ops:
                await self._client.set_extension_data_batch(set_ops)
            for bean_id in removals:
                await self._client.remove_extension_data(bean_id, CLICKUP_EXTENSION)
        except BeansError as exc:
            with self._lock:
                self._ops[:0] = ops
            raise SyncStateError(f"failed to write sync state to beans: {exc}") from exc

    def _queue_set(self, bean_id: str) -> None:
        link = self._cache[bean_id]
        data: dict[str, Any] = {EXT_KEY_TASK_ID: link.task_id}
        if link.synced_at is not None:
            data[EXT_KEY_SYNCED_AT] = _rfc3339(link.synced_at)
        self._ops.append(_PendingOp(bean_id=bean_id, data=data))


def _rfc3339(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def _link_from_extension(bean: Bean) -> SyncLink | None:
    task_id = bean.extension_value(CLICKUP_EXTENSION, EXT_KEY_TASK_ID)
    if not task_id:
        return None
    synced_at: datetime | None = None
    raw = bean.extension_value(CLICKUP_EXTENSION, EXT_KEY_SYNCED_AT)
    if isinstance(raw, str) and raw:
        try:
            synced_at = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            _LOG.warning("Ignoring unparseable synced_at %r on bean %s", raw, bean.id)
    return SyncLink(task_id=str(task_id), synced_at=synced_at)
