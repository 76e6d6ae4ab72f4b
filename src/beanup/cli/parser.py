"""CLI parser construction."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version


def _package_version() -> str:
    try:
        return version("beanup")
    except PackageNotFoundError:
        return "0.0.0"


def _common_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="Path to beanup.json (default: search upwards from cwd)")
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return common


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="beanup", description="Sync beans to ClickUp tasks")
    parser.add_argument("--version", action="version", version=f"%(prog)s {_package_version()}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    common = _common_parser()

    sync_parser = subparsers.add_parser("sync", parents=[common], help="Create or update ClickUp tasks from beans")
    sync_parser.add_argument("bean_ids", nargs="*", help="Beans to sync (default: all beans passing the sync filter)")
    sync_parser.add_argument("--dry-run", action="store_true", help="Preview mode")
    sync_parser.add_argument("--force", action="store_true", help="Sync beans even when unchanged since last sync")
    sync_parser.add_argument(
        "--no-relationships",
        action="store_true",
        help="Skip syncing blocking relationships as task dependencies",
    )
    sync_parser.add_argument("--json", action="store_true", help="Print results as JSON")

    status_parser = subparsers.add_parser("status", parents=[common], help="Show ClickUp link status for beans")
    status_parser.add_argument("bean_ids", nargs="*", help="Beans to show (default: all linked beans)")
    status_parser.add_argument("--no-remote", action="store_true", help="Do not fetch task status from ClickUp")
    status_parser.add_argument("--json", action="store_true", help="Print status as JSON")

    link_parser = subparsers.add_parser("link", parents=[common], help="Link a bean to an existing ClickUp task")
    link_parser.add_argument("bean_id")
    link_parser.add_argument("task_id")
    link_parser.add_argument("--no-verify", action="store_true", help="Do not check that the task exists")

    unlink_parser = subparsers.add_parser("unlink", parents=[common], help="Remove a bean's ClickUp link")
    unlink_parser.add_argument("bean_id")

    check_parser = subparsers.add_parser("check", parents=[common], help="Validate configuration and connectivity")
    check_parser.add_argument("--skip-api", action="store_true", help="Skip checks that call the ClickUp API")
    check_parser.add_argument("--json", action="store_true", help="Print the report as JSON")

    lookups = (
        ("users", "List workspace members and their user ids"),
        ("statuses", "List the statuses of the configured ClickUp list"),
        ("fields", "List the custom fields of the configured ClickUp list"),
    )
    for name, help_text in lookups:
        lookup_parser = subparsers.add_parser(name, parents=[common], help=help_text)
        lookup_parser.add_argument("--json", action="store_true", help="Print as JSON")

    return parser


__all__ = ["build_parser"]
