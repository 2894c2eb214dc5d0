from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import tomllib

import dotenv


BACKEND_SQLITE = "sqlite"
BACKEND_HOSTED = "hosted"


@dataclass
class HostedBackendConfig:
    base_url: str | None = None
    api_key: str | None = None
    access_token: str | None = None
    timeout_seconds: int = 20
    max_retries: int = 3


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class AppConfig:
    backend: str = BACKEND_SQLITE
    db_path: str = "futurykon.sqlite3"
    hosted: HostedBackendConfig = field(default_factory=HostedBackendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, dict):
        return {}
    return value


def _apply_env(hosted: HostedBackendConfig) -> HostedBackendConfig:
    hosted.base_url = os.getenv("FUTURYKON_BACKEND_URL", hosted.base_url)
    hosted.api_key = os.getenv("FUTURYKON_BACKEND_KEY", hosted.api_key)
    hosted.access_token = os.getenv("FUTURYKON_ACCESS_TOKEN", hosted.access_token)
    return hosted


def load_config(path: str = "futurykon.toml") -> AppConfig:
    dotenv.load_dotenv()
    cfg_path = Path(path)
    if not cfg_path.exists():
        config = AppConfig()
        _apply_env(config.hosted)
        return config

    with cfg_path.open("rb") as f:
        raw = tomllib.load(f)

    backend = str(raw.get("backend", BACKEND_SQLITE)).lower()
    if backend not in (BACKEND_SQLITE, BACKEND_HOSTED):
        raise ValueError(f"Unknown backend {backend!r} in {path}")

    return AppConfig(
        backend=backend,
        db_path=str(raw.get("db_path", "futurykon.sqlite3")),
        hosted=_apply_env(HostedBackendConfig(**_section(raw, "hosted"))),
        logging=LoggingConfig(**_section(raw, "logging")),
    )
