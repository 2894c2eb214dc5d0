from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable

from futurykon.core.schemas import (
    LeaderboardEntry,
    Prediction,
    Question,
    QuestionPredictionSummary,
    ScoredPrediction,
    UserSummary,
)
from futurykon.core.versioning import group_predictions_by_user, latest_per_user, predictions_as_of
from futurykon.core.utils import utc_now


FILTER_ALL = "all"
FILTER_ACTIVE = "active"
FILTER_RESOLVED = "resolved"


def brier_score(probability_pct: float, outcome: float) -> float:
    return (float(probability_pct) / 100.0 - float(outcome)) ** 2


def score_question(question: Question, predictions: Iterable[Prediction]) -> list[ScoredPrediction]:
    """Brier score of each user's last prediction made before the question closed."""
    outcome = question.outcome
    if outcome is None:
        return []
    eligible = predictions_as_of(
        (p for p in predictions if p.question_id == question.id), question.close_date
    )
    scored: list[ScoredPrediction] = []
    for user_id, latest in latest_per_user(eligible).items():
        scored.append(
            ScoredPrediction(
                question_id=question.id,
                user_id=user_id,
                probability=latest.probability,
                outcome=outcome,
                brier=brier_score(latest.probability, outcome),
            )
        )
    return scored


def _by_question(predictions: Iterable[Prediction]) -> dict[str, list[Prediction]]:
    grouped: dict[str, list[Prediction]] = defaultdict(list)
    for prediction in predictions:
        grouped[prediction.question_id].append(prediction)
    return grouped


def score_all(questions: Iterable[Question], predictions: Iterable[Prediction]) -> list[ScoredPrediction]:
    grouped = _by_question(predictions)
    scored: list[ScoredPrediction] = []
    for question in questions:
        scored.extend(score_question(question, grouped.get(question.id, [])))
    return scored


def leaderboard(questions: Iterable[Question], predictions: Iterable[Prediction]) -> list[LeaderboardEntry]:
    predictions = list(predictions)
    identities: dict[str, tuple[str | None, str | None]] = {}
    for prediction in predictions:
        if prediction.user_email or prediction.user_display_name:
            identities[prediction.user_id] = (prediction.user_email, prediction.user_display_name)

    scores: dict[str, list[float]] = defaultdict(list)
    for scored in score_all(questions, predictions):
        scores[scored.user_id].append(scored.brier)

    entries: list[LeaderboardEntry] = []
    for user_id, briers in scores.items():
        email, display_name = identities.get(user_id, (None, None))
        entries.append(
            LeaderboardEntry(
                user_id=user_id,
                avg_brier=sum(briers) / len(briers),
                scored_count=len(briers),
                email=email,
                display_name=display_name,
            )
        )
    entries.sort(key=lambda e: (e.avg_brier, e.user_id))
    return entries


def _matches_filter(question: Question, status_filter: str, now: datetime) -> bool:
    if status_filter == FILTER_ACTIVE:
        return not question.is_resolved and not question.is_closed(now)
    if status_filter == FILTER_RESOLVED:
        return question.is_resolved
    return True


def user_summary(
    user_id: str,
    questions: Iterable[Question],
    predictions: Iterable[Prediction],
    status_filter: str = FILTER_ALL,
    now: datetime | None = None,
) -> UserSummary:
    now = now or utc_now()
    questions_by_id = {q.id: q for q in questions}
    own = [p for p in predictions if p.user_id == user_id]
    own_by_question = _by_question(own)

    scored = {
        s.question_id: s.brier
        for question_id in own_by_question
        if question_id in questions_by_id
        for s in score_question(questions_by_id[question_id], own_by_question[question_id])
    }

    entries: list[QuestionPredictionSummary] = []
    for question_id, question_predictions in own_by_question.items():
        question = questions_by_id.get(question_id)
        if question is None or not _matches_filter(question, status_filter, now):
            continue
        group = group_predictions_by_user(question_predictions)[0]
        entries.append(
            QuestionPredictionSummary(
                question=question,
                latest_prediction=group.latest,
                prediction_count=group.size,
                brier=scored.get(question_id),
            )
        )
    entries.sort(key=lambda e: e.latest_prediction.created_at, reverse=True)

    briers = list(scored.values())
    return UserSummary(
        user_id=user_id,
        total_predictions=len(own),
        questions_count=len(own_by_question),
        avg_brier=(sum(briers) / len(briers)) if briers else None,
        entries=entries,
    )
