"""Sync state kept in a JSON file beside the beans."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from beanup.contracts.exceptions import SyncStateError
from beanup.contracts.store import SyncStateStore
from beanup.contracts.sync import SyncLink

_LOG = logging.getLogger(__name__)

SYNC_FILE_NAME = ".sync.json"
CURRENT_VERSION = 1


class BeanSyncEntry(BaseModel):
    clickup: SyncLink | None = None


class SyncDocument(BaseModel):
    version: int = CURRENT_VERSION
    beans: dict[str, BeanSyncEntry] = Field(default_factory=dict)


def sync_file_path(beans_path: Path) -> Path:
    return beans_path / SYNC_FILE_NAME


class FileSyncStateStore(SyncStateStore):
    """Writes ``<beans_path>/.sync.json`` on every mutation.

    Each write goes to a temporary file in the same directory which is then
    renamed over the target, so readers see either the old or the new
    document. A failed write is logged and retried by :meth:`flush`.
    """

    def __init__(self, path: Path, document: SyncDocument | None = None) -> None:
        self._path = path
        self._document = document or SyncDocument()
        self._lock = threading.RLock()
        self._dirty = False

    @classmethod
    def load(cls, beans_path: Path) -> FileSyncStateStore:
        """Load the state file under *beans_path*; a missing file is an empty state.

        Raises:
            SyncStateError: If the file exists but cannot be read or parsed.
        """
        path = sync_file_path(beans_path)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls(path)
        except OSError as exc:
            raise SyncStateError(f"failed to read sync state file: {path}") from exc
        try:
            payload: Any = json.loads(raw)
            document = SyncDocument.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as exc:
            raise SyncStateError(f"invalid sync state file: {path}") from exc
        return cls(path, document)

    @property
    def path(self) -> Path:
        return self._path

    def get_link(self, bean_id: str) -> SyncLink | None:
        with self._lock:
            entry = self._document.beans.get(bean_id)
            if entry is None or entry.clickup is None or not entry.clickup.task_id:
                return None
            return entry.clickup.model_copy()

    def set_task_id(self, bean_id: str, task_id: str) -> None:
        with self._lock:
            entry = self._document.beans.setdefault(bean_id, BeanSyncEntry())
            if entry.clickup is None:
                entry.clickup = SyncLink(task_id=task_id)
            else:
                entry.clickup.task_id = task_id
            self._persist()

    def set_synced_at(self, bean_id: str, when: datetime) -> None:
        with self._lock:
            entry = self._document.beans.get(bean_id)
            if entry is None or entry.clickup is None:
                _LOG.debug("Ignoring synced_at for unlinked bean %s", bean_id)
                return
            entry.clickup.synced_at = when
            self._persist()

    def clear(self, bean_id: str) -> None:
        with self._lock:
            if self._document.beans.pop(bean_id, None) is not None:
                self._persist()

    def all_links(self) -> dict[str, SyncLink]:
        with self._lock:
            return {
                bean_id: entry.clickup.model_copy()
                for bean_id, entry in self._document.beans.items()
                if entry.clickup is not None and entry.clickup.task_id
            }

    async def flush(self) -> None:
        with self._lock:
            if not self._dirty:
                return
            try:
                self._write()
            except OSError as exc:
                raise SyncStateError(f"failed to persist sync state: {self._path}") from exc
            self._dirty = False

    def _persist(self) -> None:
        try:
            self._write()
        except OSError as exc:
            self._dirty = True
            _LOG.warning("Could not write sync state %s, will retry on flush: %s", self._path, exc)
        else:
            self._dirty = False

    def _write(self) -> None:
        payload = self._document.model_dump(mode="json", exclude_none=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f"{SYNC_FILE_NAME}.", suffix=".tmp", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
                handle.write("\n")
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
