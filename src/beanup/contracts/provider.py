"""Task service adapter contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Any

from beanup.contracts.task import (
    AuthorizedUser,
    CreateTaskInput,
    ListField,
    RemoteTask,
    TaskList,
    TaskUpdate,
    WorkspaceMember,
)


class TaskService(ABC):
    """Every remote call the sync engine and CLI make against the task tracker."""

    @abstractmethod
    async def __aenter__(self) -> TaskService: ...  # pragma: no cover

    @abstractmethod
    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None: ...  # pragma: no cover

    @abstractmethod
    async def get_authorized_user(self) -> AuthorizedUser: ...  # pragma: no cover

    @abstractmethod
    async def get_list(self, list_id: str) -> TaskList: ...  # pragma: no cover

    @abstractmethod
    async def get_list_fields(self, list_id: str) -> list[ListField]: ...  # pragma: no cover

    @abstractmethod
    async def get_workspace_members(self) -> list[WorkspaceMember]: ...  # pragma: no cover

    @abstractmethod
    async def create_task(self, list_id: str, input: CreateTaskInput) -> RemoteTask: ...  # pragma: no cover

    @abstractmethod
    async def update_task(self, task_id: str, update: TaskUpdate) -> RemoteTask: ...  # pragma: no cover

    @abstractmethod
    async def get_task(self, task_id: str) -> RemoteTask: ...  # pragma: no cover

    @abstractmethod
    async def add_tag(self, task_id: str, tag: str) -> None: ...  # pragma: no cover

    @abstractmethod
    async def remove_tag(self, task_id: str, tag: str) -> None: ...  # pragma: no cover

    @abstractmethod
    async def ensure_space_tag(self, space_id: str, tag: str) -> None: ...  # pragma: no cover

    @abstractmethod
    async def set_custom_field(self, task_id: str, field_id: str, value: Any) -> None: ...  # pragma: no cover

    @abstractmethod
    async def add_dependency(self, task_id: str, *, depends_on: str) -> None: ...  # pragma: no cover

    @abstractmethod
    async def create_comment(self, task_id: str, items: list[dict[str, Any]]) -> None: ...  # pragma: no cover
