"""Shared CLI helpers."""

from __future__ import annotations

import argparse
import json
from collections.abc import Sequence
from typing import Any

from beanup import BeanUpConfig


def load_cli_config(args: argparse.Namespace) -> BeanUpConfig:
    import beanup.cli as cli

    path = args.config if args.config else cli.find_config()
    return cli.load_config(path)


def pluralize(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(0, width - 1)] + "…"


def dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, default=str)


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]], widths: Sequence[int]) -> list[str]:
    def line(cells: Sequence[str]) -> str:
        padded = [truncate(cell, width).ljust(width) for cell, width in zip(cells[:-1], widths, strict=False)]
        return " ".join([*padded, cells[-1]]).rstrip()

    lines = [line(headers), "─" * (sum(widths) + len(widths) + 20)]
    lines.extend(line(row) for row in rows)
    return lines
