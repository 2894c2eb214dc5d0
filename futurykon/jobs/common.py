from __future__ import annotations

import logging

from futurykon.connectors import build_storage
from futurykon.core.config import AppConfig, load_config
from futurykon.core.schemas import UserContext
from futurykon.core.storage import Storage


def setup_logging(config: AppConfig) -> None:
    logging.basicConfig(level=config.logging.level.upper(), format=config.logging.format)


def bootstrap(config_path: str) -> tuple[AppConfig, Storage]:
    config = load_config(config_path)
    setup_logging(config)
    storage = build_storage(config)
    storage.init()
    return config, storage


def resolve_user(storage: Storage, user_id: str | None) -> UserContext | None:
    if not user_id:
        return None
    profile = storage.get_profile(user_id)
    if profile is None:
        return UserContext(user_id=user_id)
    return UserContext.from_profile(profile)
