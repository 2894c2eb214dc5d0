from __future__ import annotations

import argparse
from typing import Any

from futurykon.core.schemas import Profile
from futurykon.core.service import ForecastBoard, PermissionDenied, ResolutionError
from futurykon.core.utils import from_iso
from futurykon.jobs.common import bootstrap, resolve_user


def run_add_question(
    config_path: str = "futurykon.toml",
    user_id: str | None = None,
    title: str = "",
    close_date: str = "",
    description: str = "",
    resolution_criteria: str = "",
    category: str | None = None,
) -> dict[str, Any]:
    _, storage = bootstrap(config_path)
    try:
        board = ForecastBoard(storage)
        user = resolve_user(storage, user_id)
        try:
            close_at = from_iso(close_date)
            if close_at is None:
                return {"created": False, "message": "Close date is required"}
            question = board.add_question(
                user,
                title=title,
                close_date=close_at,
                description=description,
                resolution_criteria=resolution_criteria,
                category=category,
            )
        except (PermissionDenied, ValueError) as exc:
            return {"created": False, "message": str(exc)}
        return {"created": True, "question_id": question.id, "category": question.category}
    finally:
        storage.close()


def run_resolve(
    config_path: str = "futurykon.toml",
    user_id: str | None = None,
    question_id: str = "",
    outcome: str = "",
) -> dict[str, Any]:
    _, storage = bootstrap(config_path)
    try:
        board = ForecastBoard(storage)
        user = resolve_user(storage, user_id)
        try:
            question = board.resolve(user, question_id, outcome)
        except (PermissionDenied, ResolutionError) as exc:
            return {"resolved": False, "message": str(exc)}
        return {"resolved": True, "question_id": question.id, "outcome": question.resolution_status}
    finally:
        storage.close()


def run_set_profile(
    config_path: str = "futurykon.toml",
    user_id: str = "",
    email: str | None = None,
    display_name: str | None = None,
    is_admin: bool = False,
) -> dict[str, Any]:
    _, storage = bootstrap(config_path)
    try:
        storage.upsert_profile(Profile(id=user_id, email=email, display_name=display_name, is_admin=is_admin))
        return {"user_id": user_id, "is_admin": is_admin}
    finally:
        storage.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Resolve a closed question (admin).")
    parser.add_argument("--config", default="futurykon.toml")
    parser.add_argument("--user", required=True)
    parser.add_argument("--question", required=True)
    parser.add_argument("--outcome", choices=["yes", "no"], required=True)
    args = parser.parse_args()
    print(run_resolve(config_path=args.config, user_id=args.user, question_id=args.question, outcome=args.outcome))


if __name__ == "__main__":
    main()
