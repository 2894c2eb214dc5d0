from __future__ import annotations

import logging
import time
from typing import Any

import requests

from futurykon.core.storage import BackendError


logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


class SimpleHttpClient:
    def __init__(
        self,
        timeout_seconds: int = 20,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        headers: dict[str, str] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds
        self.headers = dict(headers or {})
        self.session = session or requests.Session()

    def request_json(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        json_body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        merged_headers = {**self.headers, **(headers or {})}
        delay = self.backoff_seconds
        last_error: Exception | None = None
        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=merged_headers,
                    timeout=self.timeout_seconds,
                )
                if response.status_code in RETRYABLE_STATUS:
                    raise requests.HTTPError(
                        f"retryable status={response.status_code}", response=response
                    )
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()
            except requests.HTTPError as exc:
                status = exc.response.status_code if exc.response is not None else None
                if status is not None and status not in RETRYABLE_STATUS:
                    raise BackendError(f"{method} {url} failed with status={status}") from exc
                last_error = exc
            except (requests.ConnectionError, requests.Timeout, ValueError) as exc:
                last_error = exc
            logger.warning(f"{method} {url} attempt {attempt}/{self.max_retries} failed: {last_error}")
            if attempt < self.max_retries:
                time.sleep(delay)
                delay *= 2
        raise BackendError(f"{method} {url} failed after {self.max_retries} attempts") from last_error

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return self.request_json("GET", url, params=params)

    def post_json(
        self, url: str, body: Any, headers: dict[str, str] | None = None, params: dict[str, Any] | None = None
    ) -> Any:
        return self.request_json("POST", url, params=params, json_body=body, headers=headers)

    def patch_json(
        self, url: str, body: Any, params: dict[str, Any] | None = None, headers: dict[str, str] | None = None
    ) -> Any:
        return self.request_json("PATCH", url, params=params, json_body=body, headers=headers)
