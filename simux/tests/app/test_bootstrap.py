from __future__ import annotations

import socket

import pytest

import simux.transport.tcp as tcp_mod
from simux.app.bootstrap import open_connection
from simux.core.errors import (
    EXIT_CONNECT,
    EXIT_RESOLVE,
    ResolveError,
    ServerConnectError,
)


def _closed_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def test_open_connection_returns_open_transport():
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(1)
    port = srv.getsockname()[1]

    t = open_connection("127.0.0.1", port, read_timeout_s=0.2)
    try:
        conn, _ = srv.accept()
        assert t.is_open() is True
        assert t.peer == ("127.0.0.1", port)
        assert t.sock.gettimeout() == 0.2
        conn.close()
    finally:
        t.close()
        srv.close()


def test_refused_connection_raises_server_connect_error():
    port = _closed_port()

    with pytest.raises(ServerConnectError) as ei:
        open_connection("127.0.0.1", port)

    assert ei.value.exit_code == EXIT_CONNECT
    assert f"connect(127.0.0.1:{port})" in ei.value.message
    assert ei.value.details == {"host": "127.0.0.1", "port": port}


def test_unresolvable_host_raises_resolve_error(monkeypatch):
    def fail(*a, **k):
        raise socket.gaierror(-2, "Name or service not known")

    monkeypatch.setattr(tcp_mod.socket, "getaddrinfo", fail)

    with pytest.raises(ResolveError) as ei:
        open_connection("nowhere.invalid", 7000)

    assert ei.value.exit_code == EXIT_RESOLVE
    assert 'getaddrinfo("nowhere.invalid")' in ei.value.message
