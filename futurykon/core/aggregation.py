from __future__ import annotations

import math
from typing import Iterable

from futurykon.core.schemas import CommunityPrediction, Prediction
from futurykon.core.versioning import group_predictions_by_user


CLAMP_MIN_PCT = 0.01
CLAMP_MAX_PCT = 99.99
# No-information prior returned for an empty contributor set; a policy value.
EMPTY_POOL_PCT = 50.0


def clamp_percentage(p: float) -> float:
    return max(CLAMP_MIN_PCT, min(CLAMP_MAX_PCT, float(p)))


def _is_number(p: object) -> bool:
    if p is None or isinstance(p, bool):
        return False
    try:
        return not math.isnan(float(p))
    except (TypeError, ValueError):
        return False


def geometric_mean_of_odds(probabilities: Iterable[float]) -> float:
    """Pool percentages by averaging log-odds; every value weighs the same.

    Inputs outside [0, 100] (including infinities) are clamped. Missing,
    NaN or non-numeric inputs are skipped.
    """
    clamped = [clamp_percentage(p) for p in probabilities if _is_number(p)]
    if not clamped:
        return EMPTY_POOL_PCT
    n = len(clamped)
    mean_ln_p = sum(math.log(p / 100.0) for p in clamped) / n
    mean_ln_1_minus_p = sum(math.log(1.0 - p / 100.0) for p in clamped) / n
    numerator = math.exp(mean_ln_p)
    denominator = numerator + math.exp(mean_ln_1_minus_p)
    return 100.0 * numerator / denominator


def community_prediction(question_id: str, predictions: Iterable[Prediction]) -> CommunityPrediction:
    groups = group_predictions_by_user(p for p in predictions if p.question_id == question_id)
    if not groups:
        return CommunityPrediction(question_id=question_id, community_probability=None, prediction_count=0)
    pooled = geometric_mean_of_odds(group.latest.probability for group in groups)
    return CommunityPrediction(
        question_id=question_id,
        community_probability=pooled,
        prediction_count=len(groups),
    )


def community_predictions(
    question_ids: Iterable[str], predictions: Iterable[Prediction]
) -> dict[str, CommunityPrediction]:
    by_question: dict[str, list[Prediction]] = {}
    for prediction in predictions:
        by_question.setdefault(prediction.question_id, []).append(prediction)
    return {
        question_id: community_prediction(question_id, by_question.get(question_id, []))
        for question_id in question_ids
    }
