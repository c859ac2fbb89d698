# simux/app/bootstrap.py
from __future__ import annotations

import logging
from typing import Optional

from simux.core.errors import ResolveError, ServerConnectError
from simux.transport.errors import TransportOpenError, TransportResolveError
from simux.transport.tcp import TCPTransport


def open_connection(
    host: str,
    port: int,
    *,
    connect_timeout_s: Optional[float] = None,
    read_timeout_s: float = 0.1,
    logger: Optional[logging.Logger] = None,
) -> TCPTransport:
    """
    Resolve `host` and open one TCP connection to it.

    No retry: a resolution failure raises ResolveError, a connect failure
    raises ServerConnectError. Both name the failing call and carry the
    system error text.
    """
    log = logger or logging.getLogger(__name__)
    transport = TCPTransport(
        host,
        port,
        connect_timeout=connect_timeout_s,
        read_timeout=read_timeout_s,
    )

    log.info("CONNECTING host=%s port=%d timeout=%s", host, port, connect_timeout_s)
    try:
        transport.open()
    except TransportResolveError as e:
        log.error("RESOLVE_FAILED host=%s err=%s", host, e)
        raise ResolveError(str(e), details={"host": host}) from None
    except TransportOpenError as e:
        log.error("CONNECT_FAILED host=%s port=%d err=%s", host, port, e)
        raise ServerConnectError(str(e), details={"host": host, "port": port}) from None

    log.info("CONNECTED host=%s port=%d peer=%s", host, port, transport.peer)
    return transport
