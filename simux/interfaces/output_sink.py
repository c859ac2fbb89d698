from typing import Protocol


class OutputSink(Protocol):
    def open(self) -> None: ...
    def on_data(self, data: bytes) -> None: ...
    def close(self) -> None: ...
