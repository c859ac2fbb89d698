# simux/cli/history.py
from __future__ import annotations

import logging
import readline
from pathlib import Path
from typing import List, Optional


class CommandHistory:
    """
    Persistent command history shared with the readline line editor.

    The file is plain text, one command per line, and grows by exactly one
    line per submitted command (appended right after submission).
    """

    def __init__(self, path: Path, *, logger: Optional[logging.Logger] = None):
        self.path = Path(path)
        self._log = logger or logging.getLogger(__name__)

    def load(self) -> List[str]:
        """Seed readline's in-memory history from the file. Missing file = empty history."""
        if not self.path.exists():
            return []

        try:
            with open(self.path, "r", encoding="utf-8", errors="surrogateescape") as f:
                entries = [line.rstrip("\n") for line in f]
        except OSError as e:
            self._log.warning("HISTORY_READ_FAILED path=%s err=%s", self.path, e)
            return []

        for entry in entries:
            readline.add_history(entry)
        self._log.debug("HISTORY_LOADED path=%s entries=%d", self.path, len(entries))
        return entries

    def record(self, command: str) -> None:
        """Add to the editor's recall list and append one line to the file."""
        readline.add_history(command)
        try:
            with open(self.path, "a", encoding="utf-8", errors="surrogateescape") as f:
                f.write(command + "\n")
        except OSError as e:
            # history is a convenience; the command itself still goes out
            self._log.warning("HISTORY_WRITE_FAILED path=%s err=%s", self.path, e)
