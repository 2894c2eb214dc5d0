"""Submission and refresh flow over a :class:`Storage` collaborator.

Everything runs in program order: validate -> persist -> refetch. Reads are
not linearizable across users; a view may be stale until the next refresh.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable

from futurykon.core.aggregation import community_prediction
from futurykon.core.schemas import (
    CommunityPrediction,
    LeaderboardEntry,
    Prediction,
    Question,
    RESOLUTION_NO,
    RESOLUTION_YES,
    SeriesPoint,
    UserContext,
    UserPredictionGroup,
    UserSummary,
    normalize_category,
)
from futurykon.core.scoring import FILTER_ALL, leaderboard, user_summary
from futurykon.core.series import community_history
from futurykon.core.storage import BackendError, QuestionClosedError, Storage
from futurykon.core.utils import ensure_utc, utc_now
from futurykon.core.validation import (
    REASON_QUESTION_CLOSED,
    SubmissionRejected,
    validate_submission,
)
from futurykon.core.versioning import group_predictions_by_user, latest_for_user


logger = logging.getLogger(__name__)

STALE_NOTICE = "Could not refresh predictions; showing the last loaded data."
NO_DATA_NOTICE = "Could not load predictions; try refreshing."


class PermissionDenied(PermissionError):
    pass


class ResolutionError(ValueError):
    pass


@dataclass
class QuestionView:
    question: Question | None
    groups: list[UserPredictionGroup] = field(default_factory=list)
    community: CommunityPrediction | None = None
    series: list[SeriesPoint] = field(default_factory=list)
    total_predictions: int = 0
    stale: bool = False
    notice: str | None = None
    loaded_at: datetime | None = None

    def own_prediction(self, user: UserContext | None) -> Prediction | None:
        if user is None:
            return None
        for group in self.groups:
            if group.user_id == user.user_id:
                return group.latest
        return None


@dataclass
class SubmissionResult:
    prediction: Prediction
    view: QuestionView


def build_question_view(question: Question, predictions: list[Prediction], now: datetime) -> QuestionView:
    own = [p for p in predictions if p.question_id == question.id]
    return QuestionView(
        question=question,
        groups=group_predictions_by_user(own),
        community=community_prediction(question.id, own),
        series=community_history(own),
        total_predictions=len(own),
        loaded_at=now,
    )


class ForecastBoard:
    def __init__(self, storage: Storage, clock: Callable[[], datetime] = utc_now) -> None:
        self.storage = storage
        self.clock = clock
        self._views: dict[str, QuestionView] = {}

    def question_view(self, question_id: str) -> QuestionView:
        """Fetch and derive; on backend failure fall back to the last good view."""
        try:
            question = self.storage.get_question(question_id)
            if question is None:
                self._views.pop(question_id, None)
                return QuestionView(question=None, notice="Question not found.", loaded_at=self.clock())
            predictions = self.storage.list_predictions(question_id=question_id)
        except BackendError as exc:
            logger.warning(f"Refreshing question {question_id} failed: {exc}")
            previous = self._views.get(question_id)
            if previous is None:
                return QuestionView(question=None, stale=True, notice=NO_DATA_NOTICE)
            return replace(previous, stale=True, notice=STALE_NOTICE)
        view = build_question_view(question, predictions, self.clock())
        self._views[question_id] = view
        return view

    refresh = question_view

    def list_views(self) -> list[QuestionView]:
        try:
            questions = self.storage.list_questions()
            predictions = self.storage.list_predictions()
        except BackendError as exc:
            logger.warning(f"Refreshing question list failed: {exc}")
            if not self._views:
                return [QuestionView(question=None, stale=True, notice=NO_DATA_NOTICE)]
            return [replace(view, stale=True, notice=STALE_NOTICE) for view in self._views.values()]
        now = self.clock()
        views = [build_question_view(question, predictions, now) for question in questions]
        self._views = {view.question.id: view for view in views if view.question is not None}
        return views

    def editable_prediction(self, user: UserContext | None, question_id: str) -> Prediction | None:
        """The user's current belief, used to prefill an update."""
        if user is None:
            return None
        return latest_for_user(self.storage.list_predictions(question_id=question_id, user_id=user.user_id), user.user_id)

    def submit(
        self,
        user: UserContext | None,
        question_id: str,
        probability: Any,
        reasoning: str | None = None,
    ) -> SubmissionResult:
        now = self.clock()
        question = self.storage.get_question(question_id) if user is not None else None
        valid = validate_submission(user, question, probability, reasoning, now=now)
        event = Prediction(
            id=str(uuid.uuid4()),
            question_id=valid.question_id,
            user_id=valid.user_id,
            probability=valid.probability,
            reasoning=valid.reasoning,
            created_at=now,
            user_email=user.email,
            user_display_name=user.display_name,
        )
        try:
            stored = self.storage.insert_prediction(event)
        except QuestionClosedError as exc:
            raise SubmissionRejected(REASON_QUESTION_CLOSED) from exc
        logger.info(f"User {user.user_id} predicted {stored.probability:g}% on {question_id}")
        return SubmissionResult(prediction=stored, view=self.question_view(question_id))

    def add_question(
        self,
        user: UserContext | None,
        title: str,
        close_date: datetime,
        description: str = "",
        resolution_criteria: str = "",
        category: str | None = None,
    ) -> Question:
        self._require_admin(user)
        close_date = ensure_utc(close_date)
        if not title or not title.strip():
            raise ValueError("Question title is required")
        if close_date <= self.clock():
            raise ValueError("Close date must be in the future")
        question = Question(
            id=str(uuid.uuid4()),
            title=title.strip(),
            close_date=close_date,
            description=description.strip(),
            resolution_criteria=resolution_criteria.strip(),
            category=normalize_category(category),
            author_id=user.user_id,
            created_at=self.clock(),
        )
        self.storage.upsert_question(question)
        logger.info(f"Question {question.id} added by {user.user_id}")
        return question

    def resolve(self, user: UserContext | None, question_id: str, outcome: str) -> Question:
        self._require_admin(user)
        outcome = outcome.lower()
        if outcome not in (RESOLUTION_YES, RESOLUTION_NO):
            raise ResolutionError(f"Outcome must be 'yes' or 'no', got {outcome!r}")
        question = self.storage.get_question(question_id)
        if question is None:
            raise ResolutionError(f"Unknown question {question_id}")
        now = self.clock()
        if not question.is_closed(now):
            raise ResolutionError("Only closed questions can be resolved")
        if question.is_resolved:
            raise ResolutionError(f"Question already resolved as {question.resolution_status}")
        self.storage.resolve_question(question_id, outcome, now)
        logger.info(f"Question {question_id} resolved as {outcome}")
        return replace(question, resolution_status=outcome, resolution_date=now)

    def leaderboard(self) -> list[LeaderboardEntry]:
        return leaderboard(self.storage.list_questions(), self.storage.list_predictions())

    def user_summary(self, user_id: str, status_filter: str = FILTER_ALL) -> UserSummary:
        return user_summary(
            user_id,
            self.storage.list_questions(),
            self.storage.list_predictions(user_id=user_id),
            status_filter=status_filter,
            now=self.clock(),
        )

    def _require_admin(self, user: UserContext | None) -> None:
        if user is None or not user.is_admin:
            raise PermissionDenied("Administrator rights required")
