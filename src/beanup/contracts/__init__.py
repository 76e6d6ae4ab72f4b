"""Public contracts for beanup."""

from beanup.contracts.bean import Bean, BeanPriority, BeanStatus, BeanType
from beanup.contracts.check import CheckReport, CheckResult, CheckSection, CheckStatus
from beanup.contracts.config import BeanUpConfig, CustomFieldsMap, SyncFilter
from beanup.contracts.exceptions import (
    AuthenticationError,
    BeanNotFoundError,
    BeansError,
    BeanUpError,
    ClickUpAPIError,
    ConfigError,
    DeadlineExceededError,
    ProviderError,
    RateLimitError,
    RemoteNotFoundError,
    SyncStateError,
)
from beanup.contracts.provider import TaskService
from beanup.contracts.store import SyncStateStore
from beanup.contracts.sync import BeanLinkStatus, SyncAction, SyncLink, SyncResult, SyncRunResult
from beanup.contracts.task import (
    AuthorizedUser,
    CreateTaskInput,
    CustomFieldValue,
    ListField,
    RemoteTask,
    TaskList,
    TaskUpdate,
    WorkspaceMember,
)

__all__ = [
    "AuthenticationError",
    "AuthorizedUser",
    "Bean",
    "BeanLinkStatus",
    "BeanNotFoundError",
    "BeanPriority",
    "BeanStatus",
    "BeanType",
    "BeanUpConfig",
    "BeanUpError",
    "BeansError",
    "CheckReport",
    "CheckResult",
    "CheckSection",
    "CheckStatus",
    "ClickUpAPIError",
    "ConfigError",
    "CreateTaskInput",
    "CustomFieldValue",
    "CustomFieldsMap",
    "DeadlineExceededError",
    "ListField",
    "ProviderError",
    "RateLimitError",
    "RemoteNotFoundError",
    "RemoteTask",
    "SyncAction",
    "SyncFilter",
    "SyncLink",
    "SyncResult",
    "SyncRunResult",
    "SyncStateError",
    "SyncStateStore",
    "TaskList",
    "TaskService",
    "TaskUpdate",
    "WorkspaceMember",
]
