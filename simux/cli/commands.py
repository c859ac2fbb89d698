# simux/cli/commands.py
from __future__ import annotations

import logging
import signal
import threading
from pathlib import Path
from typing import Callable, Optional

from simux.app.bootstrap import open_connection
from simux.app.config import SimuxConfig
from simux.bridge.engine import BridgeExit, CommandBridge
from simux.cli.history import CommandHistory
from simux.cli.prompt import run_prompt_loop
from simux.core.errors import EXIT_OK


# ---------------- Logging ----------------

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_file_logging(app_log_path: Path, level: int = logging.INFO) -> None:
    """
    Add a file handler to the root logger (idempotent).
    Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    app_log_path.parent.mkdir(parents=True, exist_ok=True)
    target = str(app_log_path.resolve())

    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(app_log_path, encoding="utf-8", delay=True)
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(fh)

    if root.level > level:
        root.setLevel(level)


def configure_logging(app_log_path: Optional[Path], *, verbose: bool = False) -> None:
    """
    Diagnostics go to a file or nowhere; the terminal belongs to the prompt.
    """
    if app_log_path is not None:
        configure_file_logging(app_log_path, logging.DEBUG if verbose else logging.INFO)
    else:
        logging.getLogger("simux").addHandler(logging.NullHandler())


# ---------------- Session ----------------

def _interrupt_main_thread(result: BridgeExit) -> None:
    """Wake the prompt (blocked in input()) so the main thread can shut down."""
    main = threading.main_thread()
    if threading.current_thread() is main or main.ident is None:
        return
    signal.pthread_kill(main.ident, signal.SIGINT)


class _PromptWaker:
    """on_exit callback that interrupts the main thread only while the prompt is running."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._armed = True

    def __call__(self, result: BridgeExit) -> None:
        with self._lock:
            if self._armed:
                _interrupt_main_thread(result)

    def disarm(self) -> None:
        with self._lock:
            self._armed = False


def cmd_session(cfg: SimuxConfig, *, read_line: Callable[[str], str] = input) -> int:
    """
    Connect, start the bridge, run the prompt until it ends, then stop.

    Returns the exit status; a fatal bridge error is re-raised as its
    SimuxError so the caller reports it like any other failure.
    """
    log = logging.getLogger(__name__)

    transport = open_connection(
        cfg.host,
        cfg.port,
        connect_timeout_s=cfg.connect_timeout_s,
        read_timeout_s=cfg.poll_interval_s,
    )
    print(f"Connected to: {cfg.host}:{cfg.port}", flush=True)

    waker = _PromptWaker()
    bridge = CommandBridge(transport, cfg.bridge_config(), on_exit=waker)
    history = CommandHistory(cfg.history_path)
    previous_sigint = signal.getsignal(signal.SIGINT)
    try:
        bridge.start()
        history.load()
        ended = run_prompt_loop(
            bridge.intake,
            history=history,
            prompt=cfg.prompt,
            read_line=read_line,
        )
        # a wake-up already sent is delivered here, inside the try
        waker.disarm()
    except KeyboardInterrupt:
        ended = "interrupted"
    finally:
        waker.disarm()
        # a late wake-up from the bridge must not land inside stop()
        signal.signal(signal.SIGINT, signal.SIG_IGN)
        try:
            result = bridge.stop()
        finally:
            signal.signal(signal.SIGINT, previous_sigint)

    log.info("SESSION_END prompt=%s bridge=%s", ended, result.reason)

    if result.reason == "fatal":
        assert result.error is not None
        raise result.error
    if result.reason == "remote_closed":
        print("Connection closed by remote host.")
    return EXIT_OK
