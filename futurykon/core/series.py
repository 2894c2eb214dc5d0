from __future__ import annotations

from typing import Iterable

from futurykon.core.aggregation import geometric_mean_of_odds
from futurykon.core.schemas import Prediction, SeriesPoint
from futurykon.core.versioning import chronological


def community_history(predictions: Iterable[Prediction]) -> list[SeriesPoint]:
    """Running community probability, one point per prediction event.

    Each point pools every user's latest-known probability at that instant.
    While a single user has contributed the point carries that user's value
    as submitted.
    """
    running: dict[str, float] = {}
    points: list[SeriesPoint] = []
    for prediction in chronological(predictions):
        running[prediction.user_id] = prediction.probability
        if len(running) == 1:
            pooled = max(0.0, min(100.0, prediction.probability))
        else:
            pooled = geometric_mean_of_odds(running.values())
        points.append(
            SeriesPoint(
                timestamp=prediction.created_at,
                pooled_probability=pooled,
                contributor_count=len(running),
            )
        )
    return points
