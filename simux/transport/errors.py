# simux/transport/errors.py
from __future__ import annotations

class TransportError(Exception):
    """Base class for transport-layer failures."""

class TransportOpenError(TransportError):
    pass

class TransportResolveError(TransportOpenError):
    pass

class TransportIOError(TransportError):
    pass

class TransportClosedError(TransportIOError):
    """Peer closed the connection in an orderly way (zero-length receive)."""
