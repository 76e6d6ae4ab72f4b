"""Engine module exports."""

from beanup.engine.engine import SyncEngine
from beanup.engine.mapping import FieldMapper
from beanup.engine.progress import NullSyncProgress, SyncProgress

__all__ = ["FieldMapper", "NullSyncProgress", "SyncEngine", "SyncProgress"]
