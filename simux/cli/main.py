# simux/cli/main.py
from __future__ import annotations

import sys
from typing import Optional

from simux.core.errors import SimuxError, UsageError

from simux.cli.args import build_config, parse_args, usage_text
from simux.cli.commands import cmd_session, configure_logging


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args = parse_args(argv)
    except UsageError as e:
        if not e.details.get("help"):
            print(f"simux: {e.message}", file=sys.stderr)
        print(usage_text(), end="")
        return e.exit_code

    try:
        cfg = build_config(args)
        configure_logging(cfg.app_log_path, verbose=args.verbose)
        return cmd_session(cfg)
    except SimuxError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        if e.hint:
            print(f"Hint: {e.hint}", file=sys.stderr)
        return e.exit_code


def run() -> None:
    sys.exit(main())
