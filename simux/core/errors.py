# simux/core/errors.py
from __future__ import annotations


EXIT_OK = 0
EXIT_USAGE = 1
EXIT_RESOLVE = 2
EXIT_CONNECT = 3
EXIT_IO = 4
EXIT_LOG = 5
EXIT_CONFIG = 6


class SimuxError(Exception):
    """
    Base class for all expected operational errors in simux.

    Every SimuxError is fatal for the process; the CLI maps it to `exit_code`.
    """

    #: Stable machine-readable identifier (used in logs).
    code: str = "unknown"
    #: Process exit status used by the CLI.
    exit_code: int = EXIT_IO

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Setup errors (no network activity yet)
# ---------------------------------------------------------------------------

class UsageError(SimuxError):
    """Missing or malformed command-line arguments, or an explicit help request."""
    code = "usage_error"
    exit_code = EXIT_USAGE


class ConfigError(SimuxError):
    """
    Config file is unreadable or inconsistent.

    Examples:
      - YAML root is not a mapping
      - unknown key
      - value of the wrong type
    """
    code = "config_error"
    exit_code = EXIT_CONFIG


# ---------------------------------------------------------------------------
# Bootstrap errors
# ---------------------------------------------------------------------------

class ResolveError(SimuxError):
    """Host name did not resolve to any stream address."""
    code = "resolve_error"
    exit_code = EXIT_RESOLVE


class ServerConnectError(SimuxError):
    """
    Connection to the server could not be established.

    Examples:
      - connection refused
      - host unreachable
      - connect timeout
    """
    code = "server_connect_error"
    exit_code = EXIT_CONNECT


# ---------------------------------------------------------------------------
# Bridge errors
# ---------------------------------------------------------------------------

class ConnectionIOError(SimuxError):
    """Read from or write to the live connection failed."""
    code = "connection_io_error"
    exit_code = EXIT_IO


class LogSinkError(SimuxError):
    """Output log could not be opened or written."""
    code = "log_sink_error"
    exit_code = EXIT_LOG

