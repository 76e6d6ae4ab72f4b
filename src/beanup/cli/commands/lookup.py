"""Workspace lookup commands: users, statuses, fields.

Each prints the ids and names needed to fill in ``beanup.json``.
"""

from __future__ import annotations

import argparse

from beanup import ListField, TaskList, WorkspaceMember
from beanup.cli.common import dump_json, format_table, load_cli_config

_USER_WIDTHS = (12, 20)
_FIELD_WIDTHS = (38, 14, 9)


def _shortname(member: WorkspaceMember) -> str:
    if member.email and "@" in member.email:
        return member.email.split("@", 1)[0]
    return member.username or str(member.id)


def format_users(members: list[WorkspaceMember]) -> str:
    if not members:
        return "No workspace members found"
    lines = format_table(
        ("User ID", "Username", "Email"),
        [(str(member.id), member.username or "-", member.email or "-") for member in members],
        _USER_WIDTHS,
    )
    lines += ["", 'Map @mentions in beanup.json under "users":']
    lines += [f'  "{_shortname(member)}": {member.id}' for member in members]
    return "\n".join(lines)


def format_statuses(task_list: TaskList) -> str:
    if not task_list.statuses:
        return f"No statuses found on list {task_list.name or task_list.id}"
    lines = [f"Statuses for list {task_list.name or task_list.id}:", ""]
    lines += [f"  {status.status}" for status in task_list.statuses]
    lines += ["", 'Use these names as "status_mapping" values in beanup.json']
    return "\n".join(lines)


def format_fields(fields: list[ListField]) -> str:
    if not fields:
        return "No custom fields found on this list"
    lines = format_table(
        ("Field ID", "Type", "Required", "Name"),
        [(field.id, field.type or "-", "yes" if field.required else "no", field.name) for field in fields],
        _FIELD_WIDTHS,
    )
    lines += ["", 'Set "bean_id", "created_at" and "updated_at" under "custom_fields" in beanup.json']
    return "\n".join(lines)


async def run_users(args: argparse.Namespace) -> int:
    import beanup.cli as cli

    app = await cli.BeanUp.from_config(load_cli_config(args))
    members = await app.users()
    if args.json:
        print(dump_json([member.model_dump(mode="json") for member in members]))
    else:
        print(format_users(members))
    return 0


async def run_statuses(args: argparse.Namespace) -> int:
    import beanup.cli as cli

    app = await cli.BeanUp.from_config(load_cli_config(args))
    task_list = await app.statuses()
    if args.json:
        print(dump_json([status.model_dump(mode="json") for status in task_list.statuses]))
    else:
        print(format_statuses(task_list))
    return 0


async def run_fields(args: argparse.Namespace) -> int:
    import beanup.cli as cli

    app = await cli.BeanUp.from_config(load_cli_config(args))
    fields = await app.fields()
    if args.json:
        print(dump_json([field.model_dump(mode="json") for field in fields]))
    else:
        print(format_fields(fields))
    return 0


__all__ = ["format_fields", "format_statuses", "format_users", "run_fields", "run_statuses", "run_users"]
