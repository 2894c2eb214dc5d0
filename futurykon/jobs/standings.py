from __future__ import annotations

import argparse

from futurykon.core.render import render_leaderboard, render_user_summary
from futurykon.core.scoring import FILTER_ALL
from futurykon.core.service import ForecastBoard
from futurykon.jobs.common import bootstrap


def run_leaderboard(config_path: str = "futurykon.toml") -> str:
    _, storage = bootstrap(config_path)
    try:
        return render_leaderboard(ForecastBoard(storage).leaderboard())
    finally:
        storage.close()


def run_my_predictions(
    config_path: str = "futurykon.toml", user_id: str = "", status_filter: str = FILTER_ALL
) -> str:
    _, storage = bootstrap(config_path)
    try:
        return render_user_summary(ForecastBoard(storage).user_summary(user_id, status_filter=status_filter))
    finally:
        storage.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the Brier leaderboard.")
    parser.add_argument("--config", default="futurykon.toml")
    args = parser.parse_args()
    print(run_leaderboard(config_path=args.config))


if __name__ == "__main__":
    main()
