"""ClickUp task contracts."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    status: str = ""
    color: str | None = None


class TaskPriority(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | int | None = None
    priority: str | None = None


class TaskTag(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str


class CustomFieldValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    value: Any = None


class RemoteTask(BaseModel):
    """A task as returned by ``GET /task/{id}``.

    ClickUp returns several numeric values as strings (``due_date``, the
    priority id, date custom fields); consumers normalize before comparing.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    description: str | None = ""
    markdown_description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    parent: str | None = None
    due_date: str | int | None = None
    custom_fields: list[CustomFieldValue] = Field(default_factory=list)
    tags: list[TaskTag] = Field(default_factory=list)
    custom_item_id: int | None = None
    url: str = ""

    @property
    def status_name(self) -> str | None:
        return self.status.status if self.status is not None else None

    @property
    def priority_rank(self) -> int | None:
        if self.priority is None or self.priority.id is None:
            return None
        try:
            return int(self.priority.id)
        except (TypeError, ValueError):
            return None

    @property
    def text(self) -> str:
        if self.markdown_description is not None:
            return self.markdown_description
        return self.description or ""

    @property
    def tag_names(self) -> set[str]:
        return {tag.name for tag in self.tags}

    @property
    def custom_field_values(self) -> dict[str, Any]:
        return {field.id: field.value for field in self.custom_fields}


class CreateTaskInput(BaseModel):
    """Body of ``POST /list/{list_id}/task``. ``None`` fields are omitted."""

    name: str
    markdown_description: str | None = None
    status: str | None = None
    priority: int | None = None
    assignees: list[int] | None = None
    parent: str | None = None
    due_date: int | None = None
    due_date_time: bool | None = None
    custom_item_id: int | None = None
    custom_fields: list[CustomFieldValue] | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class TaskUpdate(BaseModel):
    """Partial body of ``PUT /task/{id}``; only set fields are written."""

    name: str | None = None
    markdown_description: str | None = None
    status: str | None = None
    priority: int | None = None
    due_date: int | None = None
    due_date_time: bool | None = None
    custom_item_id: int | None = None

    def is_empty(self) -> bool:
        return not self.to_payload()

    def changed_fields(self) -> list[str]:
        return [name for name in self.to_payload() if name != "due_date_time"]

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class AuthorizedUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str = ""
    email: str | None = None


class TaskList(BaseModel):
    """List metadata from ``GET /list/{id}``; ``space_id`` scopes tag creation."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    statuses: list[TaskStatus] = Field(default_factory=list)
    space_id: str | None = None


class ListField(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str = ""
    type: str = ""
    required: bool | None = None


class WorkspaceMember(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str | None = None
    email: str | None = None
