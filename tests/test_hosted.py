from __future__ import annotations

import json
import unittest
from datetime import datetime, timezone
from typing import Any

import requests

from futurykon.connectors.hosted import HostedStorage
from futurykon.connectors.http_client import SimpleHttpClient
from futurykon.core.schemas import Prediction, Profile
from futurykon.core.storage import BackendError
from futurykon.core.versioning import latest_for_user


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self.content = b"" if payload is None else json.dumps(payload).encode("utf-8")
        self._payload = payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status={self.status_code}", response=self)

    def json(self) -> Any:
        return self._payload


class FakeSession:
    def __init__(self, responses: list[Any]) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


def _client(responses: list[Any], max_retries: int = 3) -> tuple[SimpleHttpClient, FakeSession]:
    session = FakeSession(responses)
    return SimpleHttpClient(max_retries=max_retries, backoff_seconds=0, session=session), session


class HttpClientTests(unittest.TestCase):
    def test_retries_transient_failures(self) -> None:
        client, session = _client(
            [FakeResponse(503), requests.ConnectionError("reset"), FakeResponse(200, [{"ok": 1}])]
        )
        self.assertEqual(client.get_json("https://db.example/rest/v1/x"), [{"ok": 1}])
        self.assertEqual(len(session.calls), 3)

    def test_client_errors_are_not_retried(self) -> None:
        client, session = _client([FakeResponse(400, {"message": "bad"}), FakeResponse(200, [])])
        with self.assertRaises(BackendError):
            client.get_json("https://db.example/rest/v1/x")
        self.assertEqual(len(session.calls), 1)

    def test_gives_up_after_max_retries(self) -> None:
        client, session = _client([FakeResponse(502), FakeResponse(502)], max_retries=2)
        with self.assertRaises(BackendError):
            client.get_json("https://db.example/rest/v1/x")
        self.assertEqual(len(session.calls), 2)

    def test_empty_body_is_none(self) -> None:
        client, _ = _client([FakeResponse(204)])
        self.assertIsNone(client.patch_json("https://db.example/rest/v1/x", {"a": 1}))


class HostedStorageTests(unittest.TestCase):
    def make_storage(self, responses: list[Any]) -> tuple[HostedStorage, FakeSession]:
        client, session = _client(responses)
        storage = HostedStorage("https://db.example/", "anon-key", access_token="jwt", http=client)
        return storage, session

    def test_requires_url_and_key(self) -> None:
        with self.assertRaises(ValueError):
            HostedStorage("", "key")

    def test_list_predictions_query_and_parsing(self) -> None:
        rows = [
            {
                "id": "p1",
                "question_id": "q1",
                "user_id": "u1",
                "probability": 72,
                "reasoning": None,
                "created_at": "2026-03-01T12:00:00.123+00:00",
                "profiles": {"email": "ada@example.com", "display_name": None},
            }
        ]
        storage, session = self.make_storage([FakeResponse(200, rows)])
        predictions = storage.list_predictions(question_id="q1")
        call = session.calls[0]
        self.assertEqual(call["method"], "GET")
        self.assertEqual(call["url"], "https://db.example/rest/v1/predictions")
        self.assertEqual(call["params"]["question_id"], "eq.q1")
        self.assertEqual(call["params"]["order"], "created_at.asc,id.asc")
        self.assertNotIn("user_id", call["params"])
        self.assertEqual(call["headers"]["apikey"], "anon-key")
        self.assertEqual(call["headers"]["Authorization"], "Bearer jwt")
        self.assertEqual(predictions[0].probability, 72.0)
        self.assertEqual(predictions[0].user_email, "ada@example.com")

    def test_insert_prediction_posts_one_row(self) -> None:
        created_at = datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
        row = {
            "id": "p9",
            "question_id": "q1",
            "user_id": "u1",
            "probability": 35,
            "reasoning": "why",
            "created_at": "2026-03-01T12:00:00+00:00",
        }
        storage, session = self.make_storage([FakeResponse(201, [row])])
        stored = storage.insert_prediction(
            Prediction(
                question_id="q1",
                user_id="u1",
                probability=35,
                created_at=created_at,
                reasoning="why",
                user_display_name="Ada",
            )
        )
        call = session.calls[0]
        self.assertEqual(call["method"], "POST")
        self.assertEqual(call["headers"]["Prefer"], "return=representation")
        self.assertEqual(call["json"]["probability"], 35)
        self.assertNotIn("id", call["json"])
        self.assertEqual(stored.id, "p9")
        self.assertEqual(stored.user_display_name, "Ada")

    def test_backend_refusal_surfaces_as_backend_error(self) -> None:
        storage, _ = self.make_storage([FakeResponse(403, {"message": "row-level security"})])
        with self.assertRaises(BackendError):
            storage.insert_prediction(
                Prediction(question_id="q1", user_id="u1", probability=35, created_at=datetime.now(timezone.utc))
            )

    def test_get_question_and_profile(self) -> None:
        storage, session = self.make_storage(
            [
                FakeResponse(200, [{"id": "q1", "title": "T", "close_date": "2026-06-01T00:00:00Z"}]),
                FakeResponse(200, []),
            ]
        )
        question = storage.get_question("q1")
        self.assertEqual(question.title, "T")
        self.assertEqual(session.calls[0]["params"]["id"], "eq.q1")
        self.assertIsNone(storage.get_profile("u1"))

    def test_upsert_profile_merges_duplicates(self) -> None:
        storage, session = self.make_storage([FakeResponse(201, [])])
        storage.upsert_profile(Profile(id="u1", email="a@b.c"))
        call = session.calls[0]
        self.assertIn("merge-duplicates", call["headers"]["Prefer"])
        self.assertEqual(call["json"][0]["id"], "u1")

    def test_resolve_patches_question(self) -> None:
        storage, session = self.make_storage([FakeResponse(204)])
        storage.resolve_question("q1", "yes", datetime(2026, 7, 1, tzinfo=timezone.utc))
        call = session.calls[0]
        self.assertEqual(call["method"], "PATCH")
        self.assertEqual(call["params"], {"id": "eq.q1"})
        self.assertEqual(call["json"]["resolution_status"], "yes")

    def test_equal_timestamps_resolve_by_id_order(self) -> None:
        stamp = "2026-03-01T12:00:00+00:00"
        rows = [
            {"id": "a1", "question_id": "q1", "user_id": "u1", "probability": 40, "created_at": stamp},
            {"id": "b2", "question_id": "q1", "user_id": "u1", "probability": 60, "created_at": stamp},
        ]
        storage, session = self.make_storage([FakeResponse(200, rows)])
        predictions = storage.list_predictions(question_id="q1")
        self.assertTrue(session.calls[0]["params"]["order"].endswith(",id.asc"))
        self.assertEqual(latest_for_user(predictions, "u1").id, "b2")

    def test_question_without_close_date_is_a_backend_error(self) -> None:
        storage, _ = self.make_storage([FakeResponse(200, [{"id": "q1", "title": "T"}])])
        with self.assertRaises(BackendError):
            storage.get_question("q1")

    def test_unexpected_payload(self) -> None:
        storage, _ = self.make_storage([FakeResponse(200, {"error": "nope"})])
        with self.assertRaises(BackendError):
            storage.list_questions()

    def test_close_closes_session(self) -> None:
        storage, session = self.make_storage([])
        storage.close()
        self.assertTrue(session.closed)


if __name__ == "__main__":
    unittest.main()
