"""CLI app entrypoint and error mapping."""

from __future__ import annotations

import sys

from beanup import (
    AuthenticationError,
    BeansError,
    ConfigError,
    ProviderError,
    SyncStateError,
)


def main(argv: list[str] | None = None) -> int:
    import beanup.cli as cli

    parser = cli.build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        cli.logging.basicConfig(level=cli.logging.DEBUG, format="%(name)s %(message)s", stream=sys.stderr)

    runners = {
        "sync": cli._run_sync,
        "status": cli._run_status,
        "link": cli._run_link,
        "unlink": cli._run_unlink,
        "check": cli._run_check,
        "users": cli._run_users,
        "statuses": cli._run_statuses,
        "fields": cli._run_fields,
    }

    try:
        return cli.asyncio.run(runners[args.command](args))
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 3
    except (AuthenticationError, ProviderError, BeansError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 4
    except SyncStateError as exc:
        if exc.result is not None:
            print(cli._format_summary(exc.result))
        print(f"error: {exc}", file=sys.stderr)
        return 5
    except Exception as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


__all__ = ["main"]
