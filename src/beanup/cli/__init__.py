"""Command-line interface for beanup."""

from __future__ import annotations

import asyncio
import logging as logging

from beanup import BeanUp as BeanUp
from beanup import find_config as find_config
from beanup import load_config as load_config
from beanup.cli.app import main as main
from beanup.cli.commands import check as check_command
from beanup.cli.commands import link as link_command
from beanup.cli.commands import lookup as lookup_command
from beanup.cli.commands import status as status_command
from beanup.cli.commands import sync as sync_command
from beanup.cli.parser import build_parser as build_parser

_format_summary = sync_command.format_sync_summary

_run_sync = sync_command.run_sync
_run_status = status_command.run_status
_run_link = link_command.run_link
_run_unlink = link_command.run_unlink
_run_check = check_command.run_check
_run_users = lookup_command.run_users
_run_statuses = lookup_command.run_statuses
_run_fields = lookup_command.run_fields

__all__ = ["asyncio", "build_parser", "main"]
