# simux/bridge/intake.py
from __future__ import annotations

import queue
import threading
from typing import Optional


class IntakeClosed(Exception):
    """Raised by put() after close(), and by get() once a closed intake is drained."""


_CLOSED = object()


class CommandIntake:
    """
    FIFO handoff of operator commands from the prompt loop to the bridge.

    Single producer (prompt loop), single consumer (TX worker). Commands are
    delivered in insertion order, exactly once. close() lets the consumer
    drain whatever is already queued before it sees IntakeClosed.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._closed = threading.Event()
        self._lock = threading.Lock()
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, command: str) -> None:
        if not isinstance(command, str):
            raise TypeError(f"command must be str, got {type(command).__name__}")
        with self._lock:
            if self._closed.is_set():
                raise IntakeClosed("command intake is closed")
            self._queue.put(command)

    def get(self, timeout: Optional[float] = None) -> str:
        """
        Next command. Raises queue.Empty on timeout and IntakeClosed once the
        intake was closed and everything queued before close() was returned.
        """
        if self._drained:
            raise IntakeClosed("command intake is closed")
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._drained = True
            raise IntakeClosed("command intake is closed")
        return item  # type: ignore[return-value]

    def close(self) -> None:
        with self._lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._queue.put(_CLOSED)

    def qsize(self) -> int:
        """Commands still waiting for the consumer (the close marker is not counted)."""
        n = self._queue.qsize()
        if self._closed.is_set() and not self._drained:
            n -= 1
        return max(n, 0)
