from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from futurykon.core.schemas import Question, UserContext
from futurykon.core.utils import is_finite_number, round_half_up, utc_now


REASON_UNAUTHENTICATED = "unauthenticated"
REASON_MISSING_PROBABILITY = "missing_probability"
REASON_UNKNOWN_QUESTION = "unknown_question"
REASON_QUESTION_CLOSED = "question_closed"

_MESSAGES = {
    REASON_UNAUTHENTICATED: "You must be signed in to submit a prediction.",
    REASON_MISSING_PROBABILITY: "A probability between 0 and 100 is required.",
    REASON_UNKNOWN_QUESTION: "This question does not exist.",
    REASON_QUESTION_CLOSED: "This question is closed for new predictions.",
}


class SubmissionRejected(ValueError):
    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(message or _MESSAGES.get(reason, reason))


@dataclass
class ValidSubmission:
    question_id: str
    user_id: str
    probability: int
    reasoning: str | None


def normalize_probability(value: Any) -> int:
    """Canonical stored precision: whole percent in [0, 100]."""
    if value is None or not is_finite_number(value):
        raise SubmissionRejected(REASON_MISSING_PROBABILITY)
    return max(0, min(100, round_half_up(float(value))))


def normalize_reasoning(reasoning: str | None) -> str | None:
    if reasoning is None:
        return None
    stripped = reasoning.strip()
    return stripped or None


def can_submit(question: Question | None, now: datetime | None = None) -> bool:
    return question is not None and not question.is_closed(now)


def validate_submission(
    user: UserContext | None,
    question: Question | None,
    probability: Any,
    reasoning: str | None = None,
    now: datetime | None = None,
) -> ValidSubmission:
    if user is None or not user.user_id:
        raise SubmissionRejected(REASON_UNAUTHENTICATED)
    if question is None:
        raise SubmissionRejected(REASON_UNKNOWN_QUESTION)
    if question.is_closed(now or utc_now()):
        raise SubmissionRejected(REASON_QUESTION_CLOSED)
    return ValidSubmission(
        question_id=question.id,
        user_id=user.user_id,
        probability=normalize_probability(probability),
        reasoning=normalize_reasoning(reasoning),
    )
