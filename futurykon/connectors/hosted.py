"""Storage backed by the hosted database's REST interface.

Tables are exposed under ``/rest/v1/<table>`` with PostgREST filter syntax
(``column=eq.value``). Prediction reads embed the author's profile.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from futurykon.connectors.http_client import SimpleHttpClient
from futurykon.core.schemas import Prediction, Profile, Question, RESOLUTION_STATUSES
from futurykon.core.storage import BackendError, Storage
from futurykon.core.utils import to_iso


logger = logging.getLogger(__name__)

PREDICTION_SELECT = "id,question_id,user_id,probability,reasoning,created_at,profiles(email,display_name)"
PREDICTION_ORDER = "created_at.asc,id.asc"
RETURN_REPRESENTATION = {"Prefer": "return=representation"}
MERGE_DUPLICATES = {"Prefer": "resolution=merge-duplicates,return=representation"}


class HostedStorage(Storage):
    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        http: SimpleHttpClient | None = None,
    ) -> None:
        if not base_url or not api_key:
            raise ValueError("Hosted backend needs both a base URL and an API key")
        self.base_url = base_url.rstrip("/")
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
            "Content-Type": "application/json",
        }
        self.http = http or SimpleHttpClient()
        self.http.headers.update(headers)

    def _table(self, name: str) -> str:
        return f"{self.base_url}/rest/v1/{name}"

    def _rows(self, payload: Any) -> list[dict[str, Any]]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise BackendError(f"Unexpected payload from hosted backend: {type(payload).__name__}")
        return payload

    def _question(self, row: dict[str, Any]) -> Question:
        try:
            return Question.from_record(row)
        except (KeyError, ValueError) as exc:
            raise BackendError(f"Malformed question row from hosted backend: {exc}") from exc

    def init(self) -> None:
        # Schema is owned by the hosted database.
        return None

    def close(self) -> None:
        self.http.session.close()

    def upsert_question(self, question: Question) -> None:
        record = question.to_record()
        self.http.post_json(self._table("questions"), [record], headers=MERGE_DUPLICATES)

    def get_question(self, question_id: str) -> Question | None:
        rows = self._rows(
            self.http.get_json(self._table("questions"), params={"select": "*", "id": f"eq.{question_id}"})
        )
        return self._question(rows[0]) if rows else None

    def list_questions(self) -> list[Question]:
        rows = self._rows(
            self.http.get_json(self._table("questions"), params={"select": "*", "order": "created_at.desc"})
        )
        return [self._question(row) for row in rows]

    def resolve_question(self, question_id: str, outcome: str, resolved_at: datetime) -> None:
        if outcome not in RESOLUTION_STATUSES:
            raise ValueError(f"Unknown resolution status {outcome!r}")
        self.http.patch_json(
            self._table("questions"),
            {"resolution_status": outcome, "resolution_date": to_iso(resolved_at)},
            params={"id": f"eq.{question_id}"},
        )

    def insert_prediction(self, prediction: Prediction) -> Prediction:
        body: dict[str, Any] = {
            "question_id": prediction.question_id,
            "user_id": prediction.user_id,
            "probability": prediction.probability,
            "reasoning": prediction.reasoning,
            "created_at": to_iso(prediction.created_at),
        }
        if prediction.id is not None:
            body["id"] = prediction.id
        rows = self._rows(
            self.http.post_json(self._table("predictions"), body, headers=RETURN_REPRESENTATION)
        )
        if not rows:
            logger.warning(f"Hosted backend returned no row for prediction on {prediction.question_id}")
            return prediction
        stored = Prediction.from_record(rows[0])
        return replace(
            stored,
            user_email=prediction.user_email,
            user_display_name=prediction.user_display_name,
        )

    def list_predictions(
        self, question_id: str | None = None, user_id: str | None = None
    ) -> list[Prediction]:
        # Equal timestamps fall back to id order so every read agrees on the latest entry.
        params: dict[str, Any] = {"select": PREDICTION_SELECT, "order": PREDICTION_ORDER}
        if question_id is not None:
            params["question_id"] = f"eq.{question_id}"
        if user_id is not None:
            params["user_id"] = f"eq.{user_id}"
        rows = self._rows(self.http.get_json(self._table("predictions"), params=params))
        return [Prediction.from_record(row) for row in rows]

    def upsert_profile(self, profile: Profile) -> None:
        self.http.post_json(self._table("profiles"), [profile.to_record()], headers=MERGE_DUPLICATES)

    def get_profile(self, user_id: str) -> Profile | None:
        rows = self._rows(
            self.http.get_json(
                self._table("profiles"),
                params={"select": "id,email,display_name,is_admin", "id": f"eq.{user_id}"},
            )
        )
        return Profile.from_record(rows[0]) if rows else None
