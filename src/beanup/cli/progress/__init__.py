"""CLI progress displays."""

from beanup.cli.progress.rich import RichSyncProgress

__all__ = ["RichSyncProgress"]
