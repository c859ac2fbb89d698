# simux/app/config.py
from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from simux.bridge.engine import BridgeConfig
from simux.core.errors import ConfigError


DEFAULT_LOG_PATH = Path("output.log")
DEFAULT_HISTORY_PATH = Path("simux.history")
DEFAULT_PROMPT = "simux> "
DEFAULT_RECV_CHUNK_SIZE = 2048


@dataclass(frozen=True)
class SimuxConfig:
    host: str
    port: int
    log_path: Path = DEFAULT_LOG_PATH
    history_path: Path = DEFAULT_HISTORY_PATH
    prompt: str = DEFAULT_PROMPT
    recv_chunk_size: int = DEFAULT_RECV_CHUNK_SIZE
    connect_timeout_s: Optional[float] = None
    poll_interval_s: float = 0.1
    drain_timeout_s: float = 5.0
    app_log_path: Optional[Path] = None

    def bridge_config(self) -> BridgeConfig:
        return BridgeConfig(
            log_path=self.log_path,
            recv_chunk_size=self.recv_chunk_size,
            poll_interval_s=self.poll_interval_s,
            drain_timeout_s=self.drain_timeout_s,
        )

    def with_overrides(self, overrides: Mapping[str, Any]) -> "SimuxConfig":
        """Return a copy with non-None overrides applied (keys are field names)."""
        known = {f.name for f in fields(self)}
        clean = {k: v for k, v in overrides.items() if v is not None}
        unknown = sorted(set(clean) - known)
        if unknown:
            raise ConfigError(
                f"Unknown config field(s): {', '.join(unknown)}",
                details={"unknown": unknown},
            )
        return replace(self, **clean)


# ---------------- YAML config file ----------------

# file key -> (SimuxConfig field, caster)
_FILE_KEYS: Dict[str, tuple] = {
    "log_file": ("log_path", "path"),
    "history_file": ("history_path", "path"),
    "prompt": ("prompt", "str"),
    "recv_chunk_size": ("recv_chunk_size", "positive_int"),
    "connect_timeout_s": ("connect_timeout_s", "positive_float"),
    "poll_interval_s": ("poll_interval_s", "positive_float"),
    "drain_timeout_s": ("drain_timeout_s", "positive_float"),
    "app_log": ("app_log_path", "path"),
}


def _cast(value: Any, type_name: str) -> Any:
    if type_name == "str":
        if not isinstance(value, str):
            raise TypeError(f"Expected str, got {type(value).__name__}")
        return value

    if type_name == "path":
        if not isinstance(value, str) or not value.strip():
            raise TypeError(f"Expected non-empty path string, got {value!r}")
        return Path(value)

    if type_name == "positive_int":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected int, got {type(value).__name__}")
        if value <= 0:
            raise ValueError(f"Expected a positive int, got {value}")
        return value

    if type_name == "positive_float":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"Expected number, got {type(value).__name__}")
        if value <= 0:
            raise ValueError(f"Expected a positive number, got {value}")
        return float(value)

    raise TypeError(f"Unknown config type '{type_name}'")


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """
    Read a YAML config file and return SimuxConfig field overrides.

    Missing keys are simply absent from the result; a null value means
    "use the default".
    """
    full_path = Path(path)
    try:
        with open(full_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(
            f"Unable to read config file {full_path}: {e.strerror or e}",
            details={"path": str(full_path)},
        ) from None
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Config file {full_path} is not valid YAML.",
            hint=str(e),
            details={"path": str(full_path)},
        ) from None

    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {full_path} must contain a mapping at the top level.",
            details={"path": str(full_path)},
        )

    overrides: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in _FILE_KEYS:
            raise ConfigError(
                f"Unknown config key '{key}' in {full_path}.",
                hint=f"Valid keys: {sorted(_FILE_KEYS)}",
                details={"path": str(full_path), "key": key},
            )
        if value is None:
            continue

        field_name, type_name = _FILE_KEYS[key]
        try:
            overrides[field_name] = _cast(value, type_name)
        except (TypeError, ValueError) as e:
            raise ConfigError(
                f"Invalid value for config key '{key}' in {full_path}.",
                hint=str(e),
                details={"path": str(full_path), "key": key, "value": value},
            ) from None

    return overrides
