"""Exception hierarchy for beanup."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from beanup.contracts.sync import SyncRunResult


class BeanUpError(Exception):
    """Base exception for all beanup errors."""


class ConfigError(BeanUpError):
    """Configuration loading or validation failure."""


class AuthenticationError(BeanUpError):
    """Authentication token is missing or rejected."""


class BeansError(BeanUpError):
    """The beans CLI failed or returned unparseable output."""


class BeanNotFoundError(BeansError):
    """A requested bean id does not exist in the beans store."""

    def __init__(self, bean_id: str) -> None:
        super().__init__(f"bean not found: {bean_id}")
        self.bean_id = bean_id


class ProviderError(BeanUpError):
    """Base remote operation failure."""


class ClickUpAPIError(ProviderError):
    """ClickUp answered with a non-success response."""

    def __init__(self, message: str, *, status_code: int | None = None, ecode: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.ecode = ecode


class RemoteNotFoundError(ClickUpAPIError):
    """The addressed ClickUp task no longer exists."""


class RateLimitError(ClickUpAPIError):
    """ClickUp kept rate limiting after the retry budget was spent."""


class DeadlineExceededError(ProviderError):
    """The run deadline expired before the remote call completed."""


class SyncStateError(BeanUpError):
    """Sync state could not be loaded or persisted.

    When raised at the end of a run, ``result`` holds the per-bean outcomes of
    the reconciliation that already happened remotely.
    """

    def __init__(self, message: str, *, result: SyncRunResult | None = None) -> None:
        super().__init__(message)
        self.result = result

