"""Sync state store contract."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from beanup.contracts.sync import SyncLink


class SyncStateStore(ABC):
    """Maps bean ids to their ClickUp task and last sync time.

    Implementations must tolerate concurrent callers.
    """

    @abstractmethod
    def get_link(self, bean_id: str) -> SyncLink | None:
        """Return the live link for *bean_id*, or ``None`` when unlinked."""

    @abstractmethod
    def set_task_id(self, bean_id: str, task_id: str) -> None: ...  # pragma: no cover

    @abstractmethod
    def set_synced_at(self, bean_id: str, when: datetime) -> None: ...  # pragma: no cover

    @abstractmethod
    def clear(self, bean_id: str) -> None: ...  # pragma: no cover

    @abstractmethod
    def all_links(self) -> dict[str, SyncLink]: ...  # pragma: no cover

    @abstractmethod
    async def flush(self) -> None:
        """Persist pending mutations.

        Raises:
            SyncStateError: If the state could not be written.
        """
