# src/credgrain/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

from credgrain.loader import read_structured_file


def _as_int(v: Any, default: int) -> int:
    if v is None or (isinstance(v, str) and not v.strip()):
        return int(default)
    try:
        return int(v)
    except (TypeError, ValueError) as e:
        raise ValueError(f"expected an integer, got {v!r}") from e


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class ServiceConfig:
    mode: str  # "dev" | "prod"

    api_host: str
    api_port: int

    log_level: str

    # Upper bound on identities per allocation request.
    max_identities: int
    max_request_bytes: int


_ALLOWED_MODES = {"dev", "prod"}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_service_config(cfg: ServiceConfig) -> None:
    """Fail-fast validation for operator config."""
    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {sorted(_ALLOWED_MODES)}; got: {cfg.mode!r}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if str(cfg.log_level).strip().upper() not in _ALLOWED_LOG_LEVELS:
        raise ValueError(f"log_level must be one of {sorted(_ALLOWED_LOG_LEVELS)}; got: {cfg.log_level!r}")

    if int(cfg.max_identities) <= 0:
        raise ValueError(f"max_identities must be > 0; got: {cfg.max_identities}")

    if int(cfg.max_request_bytes) <= 0:
        raise ValueError(f"max_request_bytes must be > 0; got: {cfg.max_request_bytes}")


def default_service_config() -> ServiceConfig:
    return ServiceConfig(
        # Production-safe default: docs endpoints stay off unless asked for.
        mode="prod",
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
        max_identities=100_000,
        max_request_bytes=8_000_000,
    )


def read_service_config_file(path: str) -> ServiceConfig:
    raw = read_structured_file(path)
    if not isinstance(raw, dict):
        raise ValueError("service config must be a mapping")

    d = default_service_config()
    cfg = ServiceConfig(
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level).strip().upper(),
        max_identities=_as_int(raw.get("max_identities"), d.max_identities),
        max_request_bytes=_as_int(raw.get("max_request_bytes"), d.max_request_bytes),
    )
    validate_service_config(cfg)
    return cfg


def load_service_config(*, config_path: Optional[str] = None) -> ServiceConfig:
    """File (CREDGRAIN_CONFIG_PATH) first, then CREDGRAIN_* env overrides."""
    p = config_path or os.environ.get("CREDGRAIN_CONFIG_PATH")
    base = read_service_config_file(p) if p else default_service_config()

    env = os.environ
    cfg = ServiceConfig(
        mode=_as_str(env.get("CREDGRAIN_MODE"), base.mode).strip().lower(),
        api_host=_as_str(env.get("CREDGRAIN_API_HOST"), base.api_host),
        api_port=_as_int(env.get("CREDGRAIN_API_PORT"), base.api_port),
        log_level=_as_str(env.get("CREDGRAIN_LOG_LEVEL"), base.log_level).strip().upper(),
        max_identities=_as_int(env.get("CREDGRAIN_MAX_IDENTITIES"), base.max_identities),
        max_request_bytes=_as_int(env.get("CREDGRAIN_MAX_REQUEST_BYTES"), base.max_request_bytes),
    )
    validate_service_config(cfg)
    return cfg
