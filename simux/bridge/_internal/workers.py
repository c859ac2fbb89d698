# simux/bridge/_internal/workers.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from simux.bridge.engine import CommandBridge


class _PumpWorker(threading.Thread):
    """Runs one bridge pump until it reports done, fails, or stop() is called."""

    pump_name = ""

    def __init__(self, bridge: "CommandBridge"):
        super().__init__(name=f"simux-{self.pump_name}", daemon=True)
        self.bridge = bridge
        self._stop_event = threading.Event()

    def _pump(self) -> bool:
        raise NotImplementedError

    def run(self) -> None:
        self.bridge._log.debug("%s_WORKER_STARTED", self.pump_name.upper())
        while not self._stop_event.is_set():
            try:
                if not self._pump():
                    break
            except Exception as e:
                self.bridge._worker_failed(self, e)
                break
        self.bridge._log.debug("%s_WORKER_STOPPED", self.pump_name.upper())

    def stop(self) -> None:
        self._stop_event.set()


class RxWorker(_PumpWorker):
    """Thread that reads inbound bytes from the connection into the log sink."""

    pump_name = "rx"

    def _pump(self) -> bool:
        return self.bridge._pump_rx()


class TxWorker(_PumpWorker):
    """Thread that forwards queued commands to the connection, one full line at a time."""

    pump_name = "tx"

    def _pump(self) -> bool:
        return self.bridge._pump_tx()
