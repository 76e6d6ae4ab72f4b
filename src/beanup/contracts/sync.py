"""Sync link and result contracts."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class SyncAction(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    WOULD_CREATE = "would create"
    WOULD_UPDATE = "would update"
    ERROR = "error"


class SyncLink(BaseModel):
    task_id: str
    synced_at: datetime | None = None

    def is_stale(self, updated_at: datetime | None) -> bool:
        """True when the bean changed after the last sync (or was never synced)."""
        if self.synced_at is None:
            return True
        if updated_at is None:
            return False
        return updated_at > self.synced_at


class SyncResult(BaseModel):
    bean_id: str
    bean_title: str = ""
    action: SyncAction
    task_id: str | None = None
    task_url: str | None = None
    error: str | None = None


class SyncRunResult(BaseModel):
    results: list[SyncResult] = Field(default_factory=list)
    dry_run: bool = False

    def count(self, action: SyncAction) -> int:
        return sum(1 for result in self.results if result.action == action)

    @property
    def has_errors(self) -> bool:
        return self.count(SyncAction.ERROR) > 0


class BeanLinkStatus(BaseModel):
    """One row of ``beanup status``."""

    bean_id: str
    bean_title: str = ""
    bean_status: str = ""
    task_id: str | None = None
    task_status: str | None = None
    task_url: str | None = None
    linked: bool = False
    needs_sync: bool = True
