# simux/cli/args.py
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from simux.app.config import SimuxConfig, load_config_file
from simux.core.errors import UsageError


HELP_FLAGS = ("-h", "--help")


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises UsageError instead of printing and exiting."""

    def error(self, message: str):  # type: ignore[override]
        raise UsageError(message)


# ---------------- value casters ----------------

def port_number(value: str) -> int:
    try:
        port = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port '{value}'") from None
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port {port} out of range (1-65535)")
    return port


def host_name(value: str) -> str:
    if not value.strip():
        raise argparse.ArgumentTypeError("host must not be empty")
    return value


# ---------------- argparse ----------------

def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="simux",
        usage="%(prog)s [options] <host> <port>",
        description="Send commands to a line-oriented TCP server; log everything it sends back.",
        add_help=False,
    )
    parser.add_argument("host", type=host_name, help="Server host name or address.")
    parser.add_argument("port", type=port_number, help="Server TCP port (1-65535).")

    opts = parser.add_argument_group("options")
    opts.add_argument("-h", "--help", action="store_true", help="Print out this message.")
    opts.add_argument("--config", type=Path, default=None, help="YAML config file.")
    opts.add_argument("--log-file", type=Path, default=None,
                      help="Append server output here (default: output.log).")
    opts.add_argument("--history-file", type=Path, default=None,
                      help="Command history file (default: simux.history).")
    opts.add_argument("--app-log", type=Path, default=None,
                      help="Write diagnostic logging to this file.")
    opts.add_argument("-v", "--verbose", action="store_true",
                      help="Debug-level diagnostic logging (with --app-log).")
    return parser


def usage_text() -> str:
    return build_parser().format_help()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse the command line. Raises UsageError on a help request or on
    missing/invalid arguments; nothing touches the network before this passes.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    if any(a in HELP_FLAGS for a in argv):
        raise UsageError("help requested", details={"help": True})

    args = build_parser().parse_args(argv)
    if args.help:
        raise UsageError("help requested", details={"help": True})
    return args


def build_config(args: argparse.Namespace) -> SimuxConfig:
    """Defaults < config file < command-line flags."""
    cfg = SimuxConfig(host=args.host, port=args.port)
    if args.config is not None:
        cfg = cfg.with_overrides(load_config_file(args.config))

    return cfg.with_overrides(
        {
            "log_path": args.log_file,
            "history_path": args.history_file,
            "app_log_path": args.app_log,
        }
    )
