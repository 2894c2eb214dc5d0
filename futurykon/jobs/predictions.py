from __future__ import annotations

import argparse
import json
from typing import Any

from futurykon.core.render import render_question_view
from futurykon.core.service import ForecastBoard
from futurykon.core.storage import BackendError
from futurykon.core.validation import SubmissionRejected
from futurykon.jobs.common import bootstrap, resolve_user


def run_submit(
    config_path: str = "futurykon.toml",
    user_id: str | None = None,
    question_id: str = "",
    probability: Any = None,
    reasoning: str | None = None,
) -> dict[str, Any]:
    _, storage = bootstrap(config_path)
    try:
        board = ForecastBoard(storage)
        user = resolve_user(storage, user_id)
        try:
            result = board.submit(user, question_id, probability, reasoning)
        except SubmissionRejected as exc:
            return {"submitted": False, "reason": exc.reason, "message": str(exc)}
        except BackendError as exc:
            return {"submitted": False, "reason": "backend_error", "message": str(exc)}
        community = result.view.community
        return {
            "submitted": True,
            "prediction_id": result.prediction.id,
            "probability": result.prediction.probability,
            "community_probability": community.community_probability if community else None,
            "prediction_count": community.prediction_count if community else 0,
        }
    finally:
        storage.close()


def run_show(config_path: str = "futurykon.toml", question_id: str = "", user_id: str | None = None) -> str:
    _, storage = bootstrap(config_path)
    try:
        view = ForecastBoard(storage).question_view(question_id)
        return render_question_view(view, current_user_id=user_id)
    finally:
        storage.close()


def run_series(config_path: str = "futurykon.toml", question_id: str = "") -> list[dict[str, Any]]:
    _, storage = bootstrap(config_path)
    try:
        view = ForecastBoard(storage).question_view(question_id)
        return [point.to_record() for point in view.series]
    finally:
        storage.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Submit a prediction.")
    parser.add_argument("--config", default="futurykon.toml")
    parser.add_argument("--user", required=True)
    parser.add_argument("--question", required=True)
    parser.add_argument("--probability", type=float, required=True)
    parser.add_argument("--reasoning", default=None)
    args = parser.parse_args()
    result = run_submit(
        config_path=args.config,
        user_id=args.user,
        question_id=args.question,
        probability=args.probability,
        reasoning=args.reasoning,
    )
    print(json.dumps(result, ensure_ascii=False))


if __name__ == "__main__":
    main()
