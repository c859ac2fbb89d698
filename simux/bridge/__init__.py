# bridge/__init__.py

from .engine import BridgeConfig, BridgeExit, CommandBridge
from .intake import CommandIntake, IntakeClosed
from .log_sink import AppendLogSink

__all__ = [
    "CommandBridge", "BridgeConfig", "BridgeExit",
    "CommandIntake", "IntakeClosed",
    "AppendLogSink"]
