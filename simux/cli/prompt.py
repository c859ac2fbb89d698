# simux/cli/prompt.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from simux.bridge.intake import CommandIntake, IntakeClosed
from simux.cli.history import CommandHistory


def run_prompt_loop(
    intake: CommandIntake,
    *,
    history: Optional[CommandHistory] = None,
    prompt: str = "simux> ",
    read_line: Callable[[str], str] = input,
    logger: Optional[logging.Logger] = None,
) -> str:
    """
    Read operator lines and hand each one to the bridge intake, in order.

    Blocks only on the keyboard. Returns why it ended:
      'eof'         operator ended input (Ctrl-D)
      'interrupted' Ctrl-C, or the bridge asked the main thread to stop
      'closed'      the intake no longer accepts commands
    """
    log = logger or logging.getLogger(__name__)
    try:
        while True:
            try:
                command = read_line(prompt)
            except EOFError:
                print()
                return "eof"

            if history is not None:
                history.record(command)

            try:
                intake.put(command)
            except IntakeClosed:
                log.warning("PROMPT_INTAKE_CLOSED dropped_len=%d", len(command))
                return "closed"
    except KeyboardInterrupt:
        print()
        return "interrupted"
