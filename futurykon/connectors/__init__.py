from __future__ import annotations

from futurykon.connectors.hosted import HostedStorage
from futurykon.connectors.http_client import SimpleHttpClient
from futurykon.core.config import AppConfig, BACKEND_HOSTED
from futurykon.core.sqlite_storage import SQLiteStorage
from futurykon.core.storage import Storage


def build_storage(config: AppConfig) -> Storage:
    if config.backend == BACKEND_HOSTED:
        client = SimpleHttpClient(
            timeout_seconds=config.hosted.timeout_seconds,
            max_retries=config.hosted.max_retries,
        )
        return HostedStorage(
            base_url=config.hosted.base_url or "",
            api_key=config.hosted.api_key or "",
            access_token=config.hosted.access_token,
            http=client,
        )
    return SQLiteStorage(config.db_path)
