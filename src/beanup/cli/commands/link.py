"""Link and unlink commands."""

from __future__ import annotations

import argparse

from beanup.cli.common import load_cli_config


async def run_link(args: argparse.Namespace) -> int:
    import beanup.cli as cli

    config = load_cli_config(args)
    app = await cli.BeanUp.from_config(config)
    link = await app.link(args.bean_id, args.task_id, verify=not args.no_verify)
    print(f"Linked {args.bean_id} to ClickUp task {link.task_id}")
    return 0


async def run_unlink(args: argparse.Namespace) -> int:
    import beanup.cli as cli

    config = load_cli_config(args)
    app = await cli.BeanUp.from_config(config)
    removed = await app.unlink(args.bean_id)
    if removed is None:
        print(f"{args.bean_id} is not linked to a ClickUp task")
    else:
        print(f"Unlinked {args.bean_id} from ClickUp task {removed.task_id}")
    return 0


__all__ = ["run_link", "run_unlink"]
