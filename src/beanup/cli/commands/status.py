"""Status command."""

from __future__ import annotations

import argparse

from beanup import BeanLinkStatus
from beanup.cli.common import dump_json, format_table, load_cli_config

_WIDTHS = (15, 13, 15, 13, 10)


def format_status(rows: list[BeanLinkStatus]) -> str:
    if not rows:
        return "No beans are linked to ClickUp tasks"
    table = format_table(
        ("Bean ID", "Status", "Task ID", "Task Status", "Sync", "Title"),
        [
            (
                row.bean_id,
                row.bean_status,
                row.task_id or "-",
                row.task_status or "-",
                "needed" if row.needs_sync else "ok",
                row.bean_title,
            )
            for row in rows
        ],
        _WIDTHS,
    )
    return "\n".join(table)


async def run_status(args: argparse.Namespace) -> int:
    import beanup.cli as cli

    config = load_cli_config(args)
    app = await cli.BeanUp.from_config(config)
    rows = await app.status(list(args.bean_ids) or None, remote=not args.no_remote)

    if args.json:
        print(dump_json([row.model_dump(mode="json") for row in rows]))
    else:
        print(format_status(rows))
    return 0


__all__ = ["format_status", "run_status"]
