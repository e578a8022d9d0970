from __future__ import annotations

import os
from dataclasses import dataclass

from serialgate.errors import ConfigurationError
from serialgate.policy.reload import DEFAULT_RELOAD_INTERVAL


@dataclass(slots=True)
class Settings:
    config_path: str = "serialgate.yaml"
    reload_interval: float = DEFAULT_RELOAD_INTERVAL
    ledger_dir: str = "audit"
    log_level: str = "INFO"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number of seconds, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative")
    return value


def load_settings() -> Settings:
    return Settings(
        config_path=os.environ.get("SERIALGATE_CONFIG", "serialgate.yaml"),
        reload_interval=_float_env("SERIALGATE_RELOAD_INTERVAL", DEFAULT_RELOAD_INTERVAL),
        ledger_dir=os.environ.get("SERIALGATE_LEDGER_DIR", "audit"),
        log_level=os.environ.get("SERIALGATE_LOG_LEVEL", "INFO").upper(),
    )
