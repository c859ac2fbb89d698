# simux/bridge/engine.py
from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Protocol as TypingProtocol

from simux.core.errors import EXIT_OK, ConnectionIOError, SimuxError
from simux.interfaces.output_sink import OutputSink
from simux.transport.errors import TransportClosedError, TransportIOError
from .intake import CommandIntake, IntakeClosed
from .log_sink import AppendLogSink
from ._internal.workers import RxWorker, TxWorker


class TransportIO(TypingProtocol):
    """Minimal I/O interface for CommandBridge."""
    def write(self, data: bytes) -> int: ...
    def read(self, size: int) -> bytes: ...
    def flush(self) -> None: ...
    def shutdown(self) -> None: ...
    def close(self) -> None: ...


@dataclass(frozen=True)
class BridgeConfig:
    log_path: Path = Path("output.log")
    recv_chunk_size: int = 2048
    poll_interval_s: float = 0.1
    drain_timeout_s: float = 5.0


@dataclass(frozen=True)
class BridgeExit:
    reason: str                          # "stopped" | "remote_closed" | "fatal"
    error: Optional[SimuxError] = None

    @property
    def exit_code(self) -> int:
        return self.error.exit_code if self.error is not None else EXIT_OK


class CommandBridge:
    """
    Bridges operator commands and server output over one live connection.

    Two workers, each blocking on exactly one source:
      - TX: intake queue -> connection (command + "\\n", written in full)
      - RX: connection -> log sink (raw chunks, verbatim)

    The connection and the log sink are only touched by these workers; the
    intake is the only structure shared with the prompt loop. Any I/O failure
    is fatal for the bridge. An orderly close by the server ends the session.
    Either way `on_exit` is called once, from the worker thread that saw it.
    """

    def __init__(
        self,
        transport: TransportIO,
        config: Optional[BridgeConfig] = None,
        *,
        intake: Optional[CommandIntake] = None,
        sink: Optional[OutputSink] = None,
        on_exit: Optional[Callable[[BridgeExit], None]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.transport = transport
        self.config = config or BridgeConfig()
        self.intake = intake or CommandIntake()

        self._log = logger or logging.getLogger(__name__)
        self._sink: OutputSink = sink or AppendLogSink(self.config.log_path, logger=self._log)
        self._on_exit = on_exit

        self._lock = threading.Lock()
        self._stopping = threading.Event()
        self._torn_down = threading.Event()
        self._exited = threading.Event()
        self._exit: Optional[BridgeExit] = None
        self._started = False
        self._stopped = False

        self._rx_thread: Optional[RxWorker] = None
        self._tx_thread: Optional[TxWorker] = None

        self.commands_sent = 0
        self.bytes_received = 0

    # ---------------- Lifecycle ----------------
    @property
    def exit(self) -> Optional[BridgeExit]:
        return self._exit

    @property
    def running(self) -> bool:
        return self._started and not self._exited.is_set()

    def start(self) -> None:
        """Open the log sink and start both workers. Raises LogSinkError if the log cannot be opened."""
        with self._lock:
            if self._started:
                raise RuntimeError("bridge already started")
            self._started = True

        self._sink.open()

        self._rx_thread = RxWorker(self)
        self._tx_thread = TxWorker(self)
        self._rx_thread.start()
        self._tx_thread.start()
        self._log.info(
            "BRIDGE_STARTED chunk=%d poll_s=%.3f",
            self.config.recv_chunk_size,
            self.config.poll_interval_s,
        )

    def stop(self) -> BridgeExit:
        """
        Drain commands already queued, then stop both workers and release the
        connection and the log sink. Does not call on_exit.

        The drain is bounded by `drain_timeout_s`. If the server stops
        accepting data, the connection is torn down and the undelivered
        commands are reported as a fatal ConnectionIOError.
        """
        with self._lock:
            if self._stopped:
                assert self._exit is not None
                return self._exit
            self._stopped = True

        self.intake.close()
        if self._tx_thread is not None:
            self._tx_thread.join(self.config.drain_timeout_s)
            if self._tx_thread.is_alive():
                pending = self.intake.qsize()
                self._log.error(
                    "DRAIN_TIMEOUT timeout_s=%.1f pending=%d",
                    self.config.drain_timeout_s,
                    pending,
                )
                self._finish(
                    BridgeExit(
                        "fatal",
                        ConnectionIOError(
                            f"Server did not accept queued commands within {self.config.drain_timeout_s:g}s",
                            hint="The server stopped reading; unsent commands were dropped.",
                            details={"pending": pending},
                        ),
                    ),
                    notify=False,
                )
                self._tx_thread.join()

        self._stopping.set()
        if self._rx_thread is not None:
            self._rx_thread.stop()
        self._teardown()
        if self._rx_thread is not None:
            self._rx_thread.join()

        try:
            self._sink.close()
        finally:
            self.transport.close()

        self._finish(BridgeExit("stopped"), notify=False)
        self._log.info(
            "BRIDGE_STOPPED commands=%d bytes=%d",
            self.commands_sent,
            self.bytes_received,
        )
        assert self._exit is not None
        return self._exit

    def wait(self, timeout: Optional[float] = None) -> Optional[BridgeExit]:
        """Block until the bridge has exited (or timeout). Returns the exit, if any."""
        self._exited.wait(timeout)
        return self._exit

    # ---------------- Pumps (called from workers) ----------------
    def _pump_tx(self) -> bool:
        try:
            command = self.intake.get(timeout=self.config.poll_interval_s)
        except queue.Empty:
            return True
        except IntakeClosed:
            return False

        payload = command.encode("utf-8", errors="surrogateescape") + b"\n"
        try:
            self.transport.write(payload)
            self.transport.flush()
        except TransportIOError as e:
            raise ConnectionIOError(
                f"Unable to send command to server: {e}",
                details={"payload_len": len(payload)},
            ) from None

        self.commands_sent += 1
        self._log.debug("CMD_SENT len=%d", len(payload))
        return True

    def _pump_rx(self) -> bool:
        try:
            data = self.transport.read(self.config.recv_chunk_size)
        except TransportClosedError:
            if not self._stopping.is_set():
                self._log.info("REMOTE_CLOSED bytes=%d", self.bytes_received)
                self._finish(BridgeExit("remote_closed"))
            return False
        except TransportIOError as e:
            raise ConnectionIOError(f"Error receiving from server: {e}") from None

        if data:
            self._sink.on_data(data)
            self.bytes_received += len(data)
            self._log.debug("RX_CHUNK len=%d", len(data))
        return True

    # ---------------- Termination ----------------
    def _teardown(self) -> None:
        self._torn_down.set()
        self.transport.shutdown()

    def _worker_failed(self, worker: threading.Thread, exc: Exception) -> None:
        if self._torn_down.is_set() and isinstance(exc, ConnectionIOError):
            # send/recv on a socket we shut down ourselves
            self._log.debug("WORKER_EXIT_AFTER_TEARDOWN worker=%s err=%s", worker.name, exc)
            return

        if isinstance(exc, SimuxError):
            error = exc
            self._log.error("BRIDGE_FATAL worker=%s code=%s err=%s", worker.name, error.code, error)
        else:
            error = SimuxError(f"{worker.name} crashed: {exc!r}")
            self._log.error("BRIDGE_FATAL worker=%s unexpected", worker.name, exc_info=exc)

        self._finish(BridgeExit("fatal", error))

    def _finish(self, result: BridgeExit, *, notify: bool = True) -> None:
        with self._lock:
            if self._exit is not None:
                return
            self._exit = result

        self._stopping.set()
        for w in (self._rx_thread, self._tx_thread):
            if w is not None:
                w.stop()
        if result.reason != "stopped":
            # unblock whichever worker is still inside send/recv
            self._teardown()
        self._exited.set()

        self._log.info("BRIDGE_EXIT reason=%s code=%d", result.reason, result.exit_code)
        # after stop() the owner already knows; only report exits it did not ask for
        if notify and not self._stopped and self._on_exit is not None:
            try:
                self._on_exit(result)
            except Exception:
                self._log.exception("BRIDGE_ON_EXIT_CALLBACK_FAILED reason=%s", result.reason)
