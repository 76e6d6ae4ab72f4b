"""Sync state persistence."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Literal

from beanup.beans.client import BeansClient
from beanup.contracts.bean import Bean
from beanup.contracts.exceptions import ConfigError
from beanup.contracts.store import SyncStateStore
from beanup.persistence.extension_state import ExtensionSyncStateStore
from beanup.persistence.sync_state import FileSyncStateStore, sync_file_path


def create_sync_state_store(
    kind: Literal["file", "extension"],
    *,
    beans_path: Path,
    client: BeansClient | None = None,
    beans: Iterable[Bean] = (),
) -> SyncStateStore:
    """Build the store variant named by *kind*.

    ``extension`` needs the beans client and the beans of the run, whose
    extension metadata seeds the cache.
    """
    if kind == "file":
        return FileSyncStateStore.load(beans_path)
    if kind == "extension":
        if client is None:
            raise ConfigError("extension sync state requires a beans client")
        return ExtensionSyncStateStore(client, beans)
    raise ConfigError(f"Unknown sync state store: {kind}")


__all__ = [
    "ExtensionSyncStateStore",
    "FileSyncStateStore",
    "create_sync_state_store",
    "sync_file_path",
]
