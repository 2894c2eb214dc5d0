from __future__ import annotations

import argparse
import json

from futurykon.core.scoring import FILTER_ACTIVE, FILTER_ALL, FILTER_RESOLVED
from futurykon.jobs.common import bootstrap
from futurykon.jobs.predictions import run_series, run_show, run_submit
from futurykon.jobs.questions import run_add_question, run_resolve, run_set_profile
from futurykon.jobs.standings import run_leaderboard, run_my_predictions


def run_init_db(config_path: str = "futurykon.toml") -> dict[str, str]:
    config, storage = bootstrap(config_path)
    storage.close()
    return {"backend": config.backend, "db_path": config.db_path}


def main() -> None:
    parser = argparse.ArgumentParser(description="Futurykon forecasting community tools")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init-db")
    p_init.add_argument("--config", default="futurykon.toml")

    p_profile = sub.add_parser("set-profile")
    p_profile.add_argument("--config", default="futurykon.toml")
    p_profile.add_argument("--user", required=True)
    p_profile.add_argument("--email", default=None)
    p_profile.add_argument("--display-name", default=None)
    p_profile.add_argument("--admin", action="store_true")

    p_question = sub.add_parser("add-question")
    p_question.add_argument("--config", default="futurykon.toml")
    p_question.add_argument("--user", required=True)
    p_question.add_argument("--title", required=True)
    p_question.add_argument("--close-date", required=True, help="ISO 8601 timestamp")
    p_question.add_argument("--description", default="")
    p_question.add_argument("--resolution-criteria", default="")
    p_question.add_argument("--category", default=None)

    p_submit = sub.add_parser("submit")
    p_submit.add_argument("--config", default="futurykon.toml")
    p_submit.add_argument("--user", required=True)
    p_submit.add_argument("--question", required=True)
    p_submit.add_argument("--probability", type=float, required=True)
    p_submit.add_argument("--reasoning", default=None)

    p_show = sub.add_parser("show")
    p_show.add_argument("--config", default="futurykon.toml")
    p_show.add_argument("--question", required=True)
    p_show.add_argument("--user", default=None)

    p_series = sub.add_parser("series")
    p_series.add_argument("--config", default="futurykon.toml")
    p_series.add_argument("--question", required=True)

    p_resolve = sub.add_parser("resolve")
    p_resolve.add_argument("--config", default="futurykon.toml")
    p_resolve.add_argument("--user", required=True)
    p_resolve.add_argument("--question", required=True)
    p_resolve.add_argument("--outcome", choices=["yes", "no"], required=True)

    p_board = sub.add_parser("leaderboard")
    p_board.add_argument("--config", default="futurykon.toml")

    p_mine = sub.add_parser("my-predictions")
    p_mine.add_argument("--config", default="futurykon.toml")
    p_mine.add_argument("--user", required=True)
    p_mine.add_argument(
        "--filter", choices=[FILTER_ALL, FILTER_ACTIVE, FILTER_RESOLVED], default=FILTER_ALL
    )

    args = parser.parse_args()
    cfg = args.config
    if args.cmd == "init-db":
        print(run_init_db(config_path=cfg))
    elif args.cmd == "set-profile":
        print(
            run_set_profile(
                config_path=cfg,
                user_id=args.user,
                email=args.email,
                display_name=args.display_name,
                is_admin=args.admin,
            )
        )
    elif args.cmd == "add-question":
        print(
            run_add_question(
                config_path=cfg,
                user_id=args.user,
                title=args.title,
                close_date=args.close_date,
                description=args.description,
                resolution_criteria=args.resolution_criteria,
                category=args.category,
            )
        )
    elif args.cmd == "submit":
        result = run_submit(
            config_path=cfg,
            user_id=args.user,
            question_id=args.question,
            probability=args.probability,
            reasoning=args.reasoning,
        )
        print(json.dumps(result, ensure_ascii=False))
    elif args.cmd == "show":
        print(run_show(config_path=cfg, question_id=args.question, user_id=args.user))
    elif args.cmd == "series":
        print(json.dumps(run_series(config_path=cfg, question_id=args.question), indent=2))
    elif args.cmd == "resolve":
        print(run_resolve(config_path=cfg, user_id=args.user, question_id=args.question, outcome=args.outcome))
    elif args.cmd == "leaderboard":
        print(run_leaderboard(config_path=cfg))
    elif args.cmd == "my-predictions":
        print(run_my_predictions(config_path=cfg, user_id=args.user, status_filter=args.filter))


if __name__ == "__main__":
    main()
