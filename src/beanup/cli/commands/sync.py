"""Sync command."""

from __future__ import annotations

import argparse

from beanup import SyncAction, SyncRunResult
from beanup.cli.common import dump_json, load_cli_config, pluralize
from beanup.cli.progress.rich import RichSyncProgress

_ACTION_MARKS = {
    SyncAction.CREATED: "+",
    SyncAction.UPDATED: "~",
    SyncAction.WOULD_CREATE: "+",
    SyncAction.WOULD_UPDATE: "~",
    SyncAction.ERROR: "!",
}

_SUMMARY_ORDER = (
    SyncAction.CREATED,
    SyncAction.UPDATED,
    SyncAction.UNCHANGED,
    SyncAction.SKIPPED,
    SyncAction.WOULD_CREATE,
    SyncAction.WOULD_UPDATE,
    SyncAction.ERROR,
)


def format_sync_summary(result: SyncRunResult) -> str:
    mode = "dry-run" if result.dry_run else "apply"
    lines = ["", f"beanup - sync complete ({mode})", ""]

    for entry in result.results:
        mark = _ACTION_MARKS.get(entry.action)
        if mark is None:
            continue
        detail = entry.task_url or entry.task_id or ""
        if entry.action == SyncAction.ERROR:
            detail = entry.error or "unknown error"
        lines.append(f"  {mark} {entry.bean_id:<14} {entry.action:<13} {detail}".rstrip())
    if len(lines) > 3:
        lines.append("")

    counts = [f"{result.count(action)} {action}" for action in _SUMMARY_ORDER if result.count(action)]
    lines.append(f"  Beans:     {pluralize(len(result.results), 'bean')}")
    lines.append(f"  Actions:   {', '.join(counts) if counts else 'none'}")
    if not any(result.count(action) for action in _ACTION_MARKS):
        lines.append("  Status:    all beans up to date")

    if result.dry_run:
        lines.append("")
        lines.append("  [dry-run] No changes were made")

    lines.append("")
    return "\n".join(lines)


async def run_sync(args: argparse.Namespace) -> int:
    import beanup.cli as cli

    config = load_cli_config(args)
    bean_ids = list(args.bean_ids) or None

    options = {"dry_run": args.dry_run, "force": args.force, "relationships": not args.no_relationships}

    if not args.verbose and not args.json:
        with RichSyncProgress() as progress:
            app = await cli.BeanUp.from_config(config, progress=progress)
            result = await app.sync(bean_ids, **options)
    else:
        app = await cli.BeanUp.from_config(config)
        result = await app.sync(bean_ids, **options)

    if args.json:
        print(dump_json(result.model_dump(mode="json")))
    else:
        print(cli._format_summary(result))
    return 1 if result.has_errors else 0


__all__ = ["format_sync_summary", "run_sync"]
