from __future__ import annotations

import io

from rich.console import Console

from beanup.cli.progress import RichSyncProgress
from beanup.contracts.sync import SyncAction, SyncResult
from beanup.engine.progress import NullSyncProgress


def make_progress() -> tuple[RichSyncProgress, io.StringIO]:
    buffer = io.StringIO()
    console = Console(file=buffer, force_terminal=False, width=100)
    return RichSyncProgress(console=console), buffer


def test_rich_progress_counts_errors() -> None:
    progress, buffer = make_progress()

    with progress:
        progress.phase_start("Sync", total=2)
        progress.item_done("Sync", SyncResult(bean_id="a", action=SyncAction.CREATED))
        progress.item_done("Sync", SyncResult(bean_id="b", action=SyncAction.ERROR, error="boom"))
        progress.phase_done("Sync")

    assert progress.errors == 1
    assert "b: boom" in buffer.getvalue()


def test_rich_progress_ignores_unknown_phases() -> None:
    progress, _ = make_progress()

    with progress:
        progress.item_done("Relationships")
        progress.phase_done("Relationships")
        progress.phase_error("Relationships", RuntimeError("x"))

    assert progress.errors == 0


def test_rich_progress_completes_indeterminate_phase() -> None:
    progress, _ = make_progress()

    with progress:
        progress.phase_start("Relationships")
        progress.phase_done("Relationships")
        progress.phase_error("Relationships", RuntimeError("late"))


def test_null_progress_accepts_all_events() -> None:
    progress = NullSyncProgress()

    progress.phase_start("Sync", total=1)
    progress.item_done("Sync", SyncResult(bean_id="a", action=SyncAction.SKIPPED))
    progress.phase_done("Sync")
    progress.phase_error("Sync", RuntimeError("x"))
