from __future__ import annotations

import socket

import pytest

import simux.transport.tcp as tcp_mod
from simux.transport.errors import (
    TransportClosedError,
    TransportIOError,
    TransportOpenError,
    TransportResolveError,
)


class FakeSocket:
    def __init__(self, family=None, socktype=None, proto=None):
        self.family = family
        self.timeouts = []
        self.connected_to = None
        self.closed = False
        self.shutdown_calls = []

        self._connect_error = None
        self._recv_script = []
        self._send_script = []
        self._raise_on_shutdown = None
        self.sent = bytearray()

    def settimeout(self, t):
        self.timeouts.append(t)

    def connect(self, addr):
        if self._connect_error is not None:
            raise self._connect_error
        self.connected_to = addr

    def recv(self, n):
        item = self._recv_script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item[:n]

    def send(self, data):
        item = self._send_script.pop(0) if self._send_script else None
        if isinstance(item, BaseException):
            raise item
        k = len(data) if item is None else min(item, len(data))
        self.sent += bytes(data[:k])
        return k

    def shutdown(self, how):
        self.shutdown_calls.append(how)
        if self._raise_on_shutdown is not None:
            raise self._raise_on_shutdown

    def close(self):
        self.closed = True


def _addrinfo(*addrs):
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", a) for a in addrs]


def _open_with(monkeypatch, fake: FakeSocket) -> tcp_mod.TCPTransport:
    monkeypatch.setattr(tcp_mod.socket, "getaddrinfo", lambda *a, **k: _addrinfo(("10.0.0.1", 7000)))
    monkeypatch.setattr(tcp_mod.socket, "socket", lambda *a, **k: fake)
    t = tcp_mod.TCPTransport("sim.local", 7000, read_timeout=0.05)
    t.open()
    return t


def test_open_success_sets_read_timeout(monkeypatch):
    fake = FakeSocket()
    t = _open_with(monkeypatch, fake)

    assert t.is_open() is True
    assert t.sock is fake
    assert t.peer == ("10.0.0.1", 7000)
    assert fake.connected_to == ("10.0.0.1", 7000)
    # connect timeout first, then the read timeout
    assert fake.timeouts == [None, 0.05]


def test_open_resolve_failure_raises_resolve_error(monkeypatch):
    def fail(*a, **k):
        raise socket.gaierror(-2, "Name or service not known")

    monkeypatch.setattr(tcp_mod.socket, "getaddrinfo", fail)

    t = tcp_mod.TCPTransport("nowhere.invalid", 7000)
    with pytest.raises(TransportResolveError) as ei:
        t.open()

    assert 'getaddrinfo("nowhere.invalid")' in str(ei.value)
    assert "Name or service not known" in str(ei.value)
    assert t.sock is None


def test_open_tries_next_address_after_failure(monkeypatch):
    created = []

    def make_socket(*a, **k):
        s = FakeSocket(*a)
        if not created:
            s._connect_error = ConnectionRefusedError(111, "Connection refused")
        created.append(s)
        return s

    monkeypatch.setattr(
        tcp_mod.socket,
        "getaddrinfo",
        lambda *a, **k: _addrinfo(("10.0.0.1", 7000), ("10.0.0.2", 7000)),
    )
    monkeypatch.setattr(tcp_mod.socket, "socket", make_socket)

    t = tcp_mod.TCPTransport("sim.local", 7000)
    t.open()

    assert len(created) == 2
    assert created[0].closed is True
    assert t.sock is created[1]
    assert t.peer == ("10.0.0.2", 7000)


def test_open_all_addresses_refused_raises_open_error(monkeypatch):
    created = []

    def make_socket(*a, **k):
        s = FakeSocket(*a)
        s._connect_error = ConnectionRefusedError(111, "Connection refused")
        created.append(s)
        return s

    monkeypatch.setattr(tcp_mod.socket, "getaddrinfo", lambda *a, **k: _addrinfo(("10.0.0.1", 7000)))
    monkeypatch.setattr(tcp_mod.socket, "socket", make_socket)

    t = tcp_mod.TCPTransport("sim.local", 7000)
    with pytest.raises(TransportOpenError) as ei:
        t.open()

    assert not isinstance(ei.value, TransportResolveError)
    assert "connect(sim.local:7000)" in str(ei.value)
    assert "Connection refused" in str(ei.value)
    assert all(s.closed for s in created)
    assert t.sock is None


def test_read_not_open_raises():
    t = tcp_mod.TCPTransport("h", 1)
    with pytest.raises(TransportIOError):
        t.read(1)


def test_write_not_open_raises():
    t = tcp_mod.TCPTransport("h", 1)
    with pytest.raises(TransportIOError):
        t.write(b"x\n")


def test_flush_not_open_raises():
    t = tcp_mod.TCPTransport("h", 1)
    with pytest.raises(TransportIOError):
        t.flush()


def test_read_returns_chunk(monkeypatch):
    fake = FakeSocket()
    fake._recv_script = [b"OK\n"]
    t = _open_with(monkeypatch, fake)

    assert t.read(2048) == b"OK\n"


def test_read_timeout_returns_empty(monkeypatch):
    fake = FakeSocket()
    fake._recv_script = [socket.timeout("timed out"), b"late"]
    t = _open_with(monkeypatch, fake)

    assert t.read(16) == b""
    assert t.read(16) == b"late"


def test_read_orderly_close_raises_closed(monkeypatch):
    fake = FakeSocket()
    fake._recv_script = [b""]
    t = _open_with(monkeypatch, fake)

    with pytest.raises(TransportClosedError):
        t.read(16)


def test_read_socket_error_raises_io_error(monkeypatch):
    fake = FakeSocket()
    fake._recv_script = [ConnectionResetError(104, "Connection reset by peer")]
    t = _open_with(monkeypatch, fake)

    with pytest.raises(TransportIOError) as ei:
        t.read(16)

    assert not isinstance(ei.value, TransportClosedError)
    assert "Connection reset by peer" in str(ei.value)


def test_write_loops_over_partial_sends_and_timeouts(monkeypatch):
    fake = FakeSocket()
    fake._send_script = [3, socket.timeout("timed out"), 2, None]
    t = _open_with(monkeypatch, fake)

    n = t.write(b"status\nmore\n")

    assert n == len(b"status\nmore\n")
    assert bytes(fake.sent) == b"status\nmore\n"


def test_write_socket_error_raises_io_error(monkeypatch):
    fake = FakeSocket()
    fake._send_script = [2, BrokenPipeError(32, "Broken pipe")]
    t = _open_with(monkeypatch, fake)

    with pytest.raises(TransportIOError) as ei:
        t.write(b"status\n")

    assert "2/7" in str(ei.value)
    assert "Broken pipe" in str(ei.value)


def test_shutdown_ignores_already_disconnected(monkeypatch):
    fake = FakeSocket()
    fake._raise_on_shutdown = OSError(107, "Transport endpoint is not connected")
    t = _open_with(monkeypatch, fake)

    t.shutdown()

    assert fake.shutdown_calls == [socket.SHUT_RDWR]
    assert t.is_open() is True


def test_close_closes_and_clears(monkeypatch):
    fake = FakeSocket()
    t = _open_with(monkeypatch, fake)
    t.close()

    assert fake.closed is True
    assert t.sock is None
    t.shutdown()  # no-op once closed
