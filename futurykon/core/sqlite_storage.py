from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any

from futurykon.core.schemas import Prediction, Profile, Question, RESOLUTION_STATUSES
from futurykon.core.storage import BackendError, QuestionClosedError, Storage
from futurykon.core.utils import to_iso


logger = logging.getLogger(__name__)

MIGRATION_DIR = Path(__file__).with_name("migrations")


class SQLiteStorage(Storage):
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")

    def init(self) -> None:
        for sql_file in sorted(MIGRATION_DIR.glob("*.sql")):
            sql = sql_file.read_text(encoding="utf-8")
            self.conn.executescript(sql)
        self.conn.commit()

    def close(self) -> None:
        self.conn.close()

    def _execute(self, query: str, params: tuple[Any, ...] | list[Any] = ()) -> sqlite3.Cursor:
        try:
            return self.conn.execute(query, params)
        except sqlite3.OperationalError as exc:
            raise BackendError(f"sqlite error on {self.db_path}: {exc}") from exc

    def _from_row_question(self, row: sqlite3.Row) -> Question:
        return Question.from_record(dict(row))

    def _from_row_prediction(self, row: sqlite3.Row) -> Prediction:
        return Prediction.from_record(
            {
                "id": row["id"],
                "seq": row["seq"],
                "question_id": row["question_id"],
                "user_id": row["user_id"],
                "probability": row["probability"],
                "reasoning": row["reasoning"],
                "created_at": row["created_at"],
                "user_email": row["email"],
                "user_display_name": row["display_name"],
            }
        )

    def upsert_question(self, question: Question) -> None:
        self._execute(
            """
            INSERT INTO questions (
                id, title, description, resolution_criteria, category, close_date,
                resolution_status, resolution_date, author_id, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                title=excluded.title,
                description=excluded.description,
                resolution_criteria=excluded.resolution_criteria,
                category=excluded.category,
                close_date=excluded.close_date,
                resolution_status=excluded.resolution_status,
                resolution_date=excluded.resolution_date
            """,
            (
                question.id,
                question.title,
                question.description,
                question.resolution_criteria,
                question.category,
                to_iso(question.close_date),
                question.resolution_status,
                to_iso(question.resolution_date),
                question.author_id,
                to_iso(question.created_at),
            ),
        )
        self.conn.commit()

    def get_question(self, question_id: str) -> Question | None:
        row = self._execute("SELECT * FROM questions WHERE id = ?", (question_id,)).fetchone()
        return self._from_row_question(row) if row else None

    def list_questions(self) -> list[Question]:
        rows = self._execute("SELECT * FROM questions ORDER BY created_at DESC, id ASC").fetchall()
        return [self._from_row_question(row) for row in rows]

    def resolve_question(self, question_id: str, outcome: str, resolved_at: datetime) -> None:
        if outcome not in RESOLUTION_STATUSES:
            raise ValueError(f"Unknown resolution status {outcome!r}")
        self._execute(
            "UPDATE questions SET resolution_status = ?, resolution_date = ? WHERE id = ?",
            (outcome, to_iso(resolved_at), question_id),
        )
        self.conn.commit()

    def insert_prediction(self, prediction: Prediction) -> Prediction:
        prediction_id = prediction.id or str(uuid.uuid4())
        try:
            cursor = self.conn.execute(
                """
                INSERT INTO predictions (id, question_id, user_id, probability, reasoning, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    prediction_id,
                    prediction.question_id,
                    prediction.user_id,
                    prediction.probability,
                    prediction.reasoning,
                    to_iso(prediction.created_at),
                ),
            )
        except sqlite3.IntegrityError as exc:
            self.conn.rollback()
            if "question_closed" in str(exc):
                raise QuestionClosedError(f"question {prediction.question_id} is closed") from exc
            raise BackendError(f"prediction rejected by store: {exc}") from exc
        except sqlite3.OperationalError as exc:
            self.conn.rollback()
            raise BackendError(f"sqlite error on {self.db_path}: {exc}") from exc
        self.conn.commit()
        logger.debug(f"Stored prediction {prediction_id} seq={cursor.lastrowid}")
        return replace(prediction, id=prediction_id, seq=int(cursor.lastrowid))

    def list_predictions(
        self, question_id: str | None = None, user_id: str | None = None
    ) -> list[Prediction]:
        query = """
            SELECT p.*, pr.email AS email, pr.display_name AS display_name
            FROM predictions p
            LEFT JOIN profiles pr ON pr.id = p.user_id
        """
        clauses: list[str] = []
        params: list[Any] = []
        if question_id is not None:
            clauses.append("p.question_id = ?")
            params.append(question_id)
        if user_id is not None:
            clauses.append("p.user_id = ?")
            params.append(user_id)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY p.created_at ASC, p.seq ASC"
        rows = self._execute(query, params).fetchall()
        return [self._from_row_prediction(row) for row in rows]

    def upsert_profile(self, profile: Profile) -> None:
        self._execute(
            """
            INSERT INTO profiles (id, email, display_name, is_admin)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email=excluded.email,
                display_name=excluded.display_name,
                is_admin=excluded.is_admin
            """,
            (profile.id, profile.email, profile.display_name, int(profile.is_admin)),
        )
        self.conn.commit()

    def get_profile(self, user_id: str) -> Profile | None:
        row = self._execute("SELECT * FROM profiles WHERE id = ?", (user_id,)).fetchone()
        return Profile.from_record(dict(row)) if row else None
