"""Append-only prediction log reads.

Predictions are never updated in place: every submission is a new event and a
user's current belief on a question is the event with the greatest
``created_at``. Events sharing a timestamp are ordered by the store's insertion
sequence (``seq``), falling back to their position in the input.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Iterable

from futurykon.core.schemas import Prediction, UserPredictionGroup


def chronological(predictions: Iterable[Prediction]) -> list[Prediction]:
    """Oldest first, ties broken by insertion order."""
    indexed = list(enumerate(predictions))
    indexed.sort(key=lambda item: _order_key(item[1], item[0]))
    return [prediction for _, prediction in indexed]


def _order_key(prediction: Prediction, position: int) -> tuple[datetime, int]:
    return prediction.created_at, prediction.seq if prediction.seq is not None else position


def group_predictions_by_user(predictions: Iterable[Prediction]) -> list[UserPredictionGroup]:
    """One group per user: latest event plus older events newest first.

    Groups are ordered by their latest event, newest first.
    """
    by_user: dict[str, list[Prediction]] = defaultdict(list)
    for prediction in reversed(chronological(predictions)):
        by_user[prediction.user_id].append(prediction)

    groups: list[UserPredictionGroup] = []
    for user_id, newest_first in by_user.items():
        latest = newest_first[0]
        groups.append(
            UserPredictionGroup(
                user_id=user_id,
                latest=latest,
                history=newest_first[1:],
                user_email=latest.user_email,
                user_display_name=latest.user_display_name,
            )
        )
    # by_user preserves first-seen order, which already is newest latest first.
    return groups


def latest_per_user(predictions: Iterable[Prediction]) -> dict[str, Prediction]:
    return {group.user_id: group.latest for group in group_predictions_by_user(predictions)}


def latest_for_user(predictions: Iterable[Prediction], user_id: str) -> Prediction | None:
    own = [p for p in predictions if p.user_id == user_id]
    if not own:
        return None
    return chronological(own)[-1]


def predictions_as_of(predictions: Iterable[Prediction], cutoff: datetime) -> list[Prediction]:
    return [p for p in predictions if p.created_at <= cutoff]
