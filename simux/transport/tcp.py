# simux/transport/tcp.py
from __future__ import annotations

import socket
from typing import Optional

from .base import Transport
from .errors import (
    TransportClosedError,
    TransportIOError,
    TransportOpenError,
    TransportResolveError,
)


def _os_error_text(e: OSError) -> str:
    return e.strerror or str(e) or type(e).__name__


class TCPTransport(Transport):
    """
    TCP stream transport over a plain socket.

    open() resolves the host and tries each stream address in order.
    read(n) waits at most `read_timeout` and returns b"" if nothing arrived,
    so a reader thread can re-check its stop flag. write() loops until the
    whole buffer has been sent.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        connect_timeout: Optional[float] = None,
        read_timeout: Optional[float] = 0.1,
    ):
        self.host = host
        self.port = int(port)
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.sock: Optional[socket.socket] = None
        self.peer: Optional[tuple] = None

    def open(self) -> None:
        try:
            infos = socket.getaddrinfo(self.host, self.port, type=socket.SOCK_STREAM)
        except socket.gaierror as e:
            raise TransportResolveError(
                f'getaddrinfo("{self.host}"): {_os_error_text(e)}'
            ) from None

        last_error: Optional[OSError] = None
        for family, socktype, proto, _canonname, addr in infos:
            sock = None
            try:
                sock = socket.socket(family, socktype, proto)
                sock.settimeout(self.connect_timeout)
                sock.connect(addr)
            except OSError as e:
                last_error = e
                if sock is not None:
                    sock.close()
                continue

            sock.settimeout(self.read_timeout)
            self.sock = sock
            self.peer = addr
            return

        reason = _os_error_text(last_error) if last_error else "no stream address"
        raise TransportOpenError(f"connect({self.host}:{self.port}): {reason}")

    def close(self) -> None:
        if self.sock is not None:
            try:
                self.sock.close()
            finally:
                self.sock = None

    def is_open(self) -> bool:
        return self.sock is not None

    def read(self, n: int) -> bytes:
        if self.sock is None:
            raise TransportIOError("read while transport not open")

        try:
            data = self.sock.recv(n)
        except socket.timeout:
            return b""
        except OSError as e:
            raise TransportIOError(f"recv failed: {_os_error_text(e)}") from None

        if not data:
            raise TransportClosedError(f"connection to {self.host}:{self.port} closed by peer")
        return data

    def write(self, data: bytes) -> int:
        if self.sock is None:
            raise TransportIOError("write while transport not open")

        view = memoryview(data)
        sent = 0
        try:
            while sent < len(view):
                try:
                    sent += self.sock.send(view[sent:])
                except socket.timeout:
                    # peer not draining yet; nothing was sent, try again
                    continue
        except OSError as e:
            raise TransportIOError(
                f"send failed after {sent}/{len(view)} bytes: {_os_error_text(e)}"
            ) from None
        return sent

    def flush(self) -> None:
        if self.sock is None:
            raise TransportIOError("flush while transport not open")

    def shutdown(self) -> None:
        if self.sock is None:
            return
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # peer already gone
            pass
