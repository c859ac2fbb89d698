# simux/bridge/log_sink.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Optional

from simux.core.errors import LogSinkError
from simux.interfaces.output_sink import OutputSink


class AppendLogSink(OutputSink):
    """
    Append-only raw byte log.

    The file is opened once in binary append mode and every chunk is written
    verbatim and flushed, so the file always holds the exact concatenation of
    what was received, after whatever earlier runs left there.
    """

    def __init__(self, path: Path, *, logger: Optional[logging.Logger] = None):
        self._path = Path(path)
        self._log = logger or logging.getLogger(__name__)
        self._fh: Optional[BinaryIO] = None
        self.bytes_written = 0

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        if self._fh is not None:
            return
        try:
            self._fh = open(self._path, "ab")
        except OSError as e:
            raise LogSinkError(
                f"Unable to open output log {self._path}: {e.strerror or e}",
                details={"path": str(self._path)},
            ) from None
        self._log.info("LOG_SINK_OPENED path=%s", self._path)

    def on_data(self, data: bytes) -> None:
        if self._fh is None:
            raise LogSinkError(f"Output log {self._path} is not open")
        try:
            self._fh.write(data)
            self._fh.flush()
        except OSError as e:
            raise LogSinkError(
                f"Unable to write output log {self._path}: {e.strerror or e}",
                details={"path": str(self._path), "chunk_len": len(data)},
            ) from None
        self.bytes_written += len(data)

    def close(self) -> None:
        if self._fh is None:
            return
        try:
            self._fh.close()
        finally:
            self._fh = None
            self._log.info("LOG_SINK_CLOSED path=%s bytes=%d", self._path, self.bytes_written)
