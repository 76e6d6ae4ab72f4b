"""Public API surface for beanup."""

__version__ = "0.1.0"

from beanup.auth import create_token_resolver
from beanup.beans import BeansClient
from beanup.config import find_config, load_config
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
from beanup.contracts.task import ListField, TaskList, TaskStatus, WorkspaceMember
from beanup.engine.progress import SyncProgress
from beanup.persistence import create_sync_state_store
from beanup.sdk import BeanUp, filter_beans

__all__ = [
    "AuthenticationError",
    "Bean",
    "BeanLinkStatus",
    "BeanNotFoundError",
    "BeanPriority",
    "BeanStatus",
    "BeanType",
    "BeanUp",
    "BeanUpConfig",
    "BeanUpError",
    "BeansClient",
    "BeansError",
    "CheckReport",
    "CheckResult",
    "CheckSection",
    "CheckStatus",
    "ClickUpAPIError",
    "ConfigError",
    "CustomFieldsMap",
    "DeadlineExceededError",
    "ListField",
    "ProviderError",
    "RateLimitError",
    "RemoteNotFoundError",
    "SyncAction",
    "SyncFilter",
    "SyncLink",
    "SyncProgress",
    "SyncResult",
    "SyncRunResult",
    "SyncStateError",
    "SyncStateStore",
    "TaskList",
    "TaskService",
    "TaskStatus",
    "WorkspaceMember",
    "__version__",
    "create_sync_state_store",
    "create_token_resolver",
    "filter_beans",
    "find_config",
    "load_config",
]
