# client_config.py
"""
Load client settings from an optional YAML file plus environment overrides.
"""
from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
ENV_PREFIX = "TEXTFRAME_"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class ClientConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    recv_size: int = 4096
    initial_buffer: int = 1024
    max_frame_size: int = 64 * 1024 * 1024
    connect_timeout: float = 5.0
    read_timeout: Optional[float] = None  # None blocks indefinitely
    log_level: str = "ERROR"
    send_delay_ms: int = 0

    def replace(self, **changes: Any) -> "ClientConfig":
        return dataclasses.replace(self, **{k: v for k, v in changes.items() if v is not None})


_FIELDS = {f.name: f for f in dataclasses.fields(ClientConfig)}
_INT_FIELDS = {"port", "recv_size", "initial_buffer", "max_frame_size", "send_delay_ms"}
_FLOAT_FIELDS = {"connect_timeout", "read_timeout"}


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name in _INT_FIELDS:
        return int(value)
    if name in _FLOAT_FIELDS:
        return float(value)
    if name == "log_level":
        return str(value).upper()
    return str(value)


def _validate(cfg: ClientConfig) -> ClientConfig:
    if not 0 < cfg.port < 65536:
        raise ValueError(f"port out of range: {cfg.port}")
    for name in ("recv_size", "initial_buffer", "max_frame_size"):
        if getattr(cfg, name) <= 0:
            raise ValueError(f"{name} must be positive")
    if cfg.log_level not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}: {cfg.log_level}")
    if cfg.send_delay_ms < 0:
        raise ValueError("send_delay_ms must not be negative")
    return cfg


def config_from_mapping(raw: Mapping[str, Any], base: Optional[ClientConfig] = None) -> ClientConfig:
    unknown = sorted(set(raw) - set(_FIELDS))
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    values: Dict[str, Any] = {k: _coerce(k, v) for k, v in raw.items()}
    return _validate(dataclasses.replace(base or ClientConfig(), **values))


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
    cfg = ClientConfig()
    if path:
        if not os.path.isfile(path):
            raise FileNotFoundError(f"config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"config file must hold a mapping: {path}")
        cfg = config_from_mapping(raw, cfg)

    env = os.environ if environ is None else environ
    overrides = {}
    for name in ("host", "port"):
        value = env.get(ENV_PREFIX + name.upper())
        if value:
            overrides[name] = value
    if overrides:
        cfg = config_from_mapping(overrides, cfg)
    return cfg
