"""Check command."""

from __future__ import annotations

import argparse

from beanup import CheckReport, CheckStatus
from beanup.cli.common import dump_json, load_cli_config

_MARKS = {
    CheckStatus.PASS: "✓",
    CheckStatus.WARN: "!",
    CheckStatus.FAIL: "✗",
}


def format_check_report(report: CheckReport) -> str:
    lines: list[str] = []
    for section in report.sections:
        lines.append(section.name)
        for check in section.checks:
            suffix = f" ({check.message})" if check.message else ""
            lines.append(f"  {_MARKS[check.status]} {check.name}{suffix}")
        lines.append("")
    lines.append(f"Summary: {report.passed} passed, {report.warnings} warnings, {report.failed} failed")
    return "\n".join(lines)


async def run_check(args: argparse.Namespace) -> int:
    import beanup.cli as cli

    config = load_cli_config(args)
    app = await cli.BeanUp.from_config(config)
    report = await app.check(skip_api=args.skip_api)

    if args.json:
        payload = report.model_dump(mode="json")
        payload["summary"] = {"passed": report.passed, "warnings": report.warnings, "failed": report.failed}
        print(dump_json(payload))
    else:
        print(format_check_report(report))
    return 1 if report.failed else 0


__all__ = ["format_check_report", "run_check"]
