from __future__ import annotations

from datetime import datetime, timedelta, timezone

from futurykon.core.schemas import Prediction, Question

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def make_prediction(
    user_id: str,
    probability: float,
    minutes: int = 0,
    question_id: str = "q1",
    seq: int | None = None,
    reasoning: str | None = None,
) -> Prediction:
    return Prediction(
        id=f"{question_id}-{user_id}-{minutes}-{seq}",
        question_id=question_id,
        user_id=user_id,
        probability=probability,
        created_at=at(minutes),
        reasoning=reasoning,
        seq=seq,
    )


def make_question(
    question_id: str = "q1",
    close_date: datetime | None = None,
    resolution_status: str = "pending",
) -> Question:
    return Question(
        id=question_id,
        title=f"Will question {question_id} resolve YES?",
        close_date=close_date or T0 + timedelta(days=30),
        description="Test description",
        resolution_criteria="Resolves YES when it happens.",
        category="Modele językowe",
        resolution_status=resolution_status,
        created_at=T0 - timedelta(days=1),
    )
