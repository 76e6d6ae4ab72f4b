"""Bean contracts (the local source of truth)."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CLICKUP_EXTENSION = "clickup"
EXT_KEY_TASK_ID = "task_id"
EXT_KEY_SYNCED_AT = "synced_at"


class BeanStatus(StrEnum):
    DRAFT = "draft"
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    SCRAPPED = "scrapped"


class BeanPriority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"
    DEFERRED = "deferred"


class BeanType(StrEnum):
    MILESTONE = "milestone"
    EPIC = "epic"
    BUG = "bug"
    FEATURE = "feature"
    TASK = "task"


class Bean(BaseModel):
    """A bean as reported by ``beans list --json --full``."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    slug: str = ""
    path: str = ""
    title: str = ""
    status: str = BeanStatus.TODO.value
    type: str = BeanType.TASK.value
    priority: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    due: date | None = None
    body: str = ""
    parent: str | None = None
    blocking: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    extensions: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def extension_value(self, plugin: str, key: str) -> Any:
        return self.extensions.get(plugin, {}).get(key)
