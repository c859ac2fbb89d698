from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Abstract byte-stream transport.

    Contract:
      - open()/close() manage the underlying connection.
      - read(n) returns 1..n bytes, or b"" when nothing arrived before the
        read timeout. An orderly close by the peer raises TransportClosedError,
        never b"".
      - write(data) writes all of data and returns len(data).
      - flush() forces pending output to be transmitted.
      - shutdown() unblocks a reader in another thread without releasing
        the handle.
    """

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    def shutdown(self) -> None:
        return None

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
