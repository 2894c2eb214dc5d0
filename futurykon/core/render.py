from __future__ import annotations

from futurykon.core.schemas import LeaderboardEntry, SeriesPoint, UserSummary
from futurykon.core.service import QuestionView
from futurykon.core.utils import to_iso


def _pct(value: float | None) -> str:
    return "n/a" if value is None else f"{value:.1f}%"


def render_series(series: list[SeriesPoint]) -> list[str]:
    if not series:
        return ["No data for the chart yet."]
    if len(series) == 1:
        point = series[0]
        return [f"{_pct(point.pooled_probability)} (N={point.contributor_count})"]
    return [
        f"- {to_iso(point.timestamp)}: {_pct(point.pooled_probability)} (N={point.contributor_count})"
        for point in series
    ]


def render_question_view(view: QuestionView, current_user_id: str | None = None) -> str:
    lines: list[str] = []
    if view.notice:
        lines.append(f"! {view.notice}")
    question = view.question
    if question is None:
        return "\n".join(lines or ["No question."])

    lines.append(f"# {question.title}")
    lines.append("")
    if question.description:
        lines.append(question.description)
        lines.append("")
    lines.append(f"- Closes: {to_iso(question.close_date)}")
    if question.category:
        lines.append(f"- Category: {question.category}")
    if question.resolution_criteria:
        lines.append(f"- Resolution criteria: {question.resolution_criteria}")
    if question.is_resolved:
        lines.append(f"- Resolved: {question.resolution_status.upper()} ({to_iso(question.resolution_date)})")

    community = view.community
    if community is not None and community.prediction_count > 0:
        lines.append("")
        lines.append(
            f"## Community prediction: {_pct(community.community_probability)} "
            f"(from {community.prediction_count} forecasters, geometric mean of odds)"
        )

    lines.append("")
    lines.append(f"## Predictions ({view.total_predictions} from {len(view.groups)} forecasters)")
    for group in view.groups:
        own = " (you)" if group.user_id == current_user_id else ""
        lines.append(
            f"- {group.display_name}{own}: {group.latest.probability:g}% at {to_iso(group.latest.created_at)}"
        )
        if group.latest.reasoning:
            lines.append(f"  {group.latest.reasoning}")
        for older in group.history:
            lines.append(f"    - earlier: {older.probability:g}% at {to_iso(older.created_at)}")

    lines.append("")
    lines.append("## Community history")
    lines.extend(render_series(view.series))
    return "\n".join(lines)


def render_leaderboard(entries: list[LeaderboardEntry]) -> str:
    if not entries:
        return "No scored predictions yet."
    lines = ["# Leaderboard (mean Brier score, lower is better)", ""]
    for rank, entry in enumerate(entries, start=1):
        lines.append(
            f"{rank}. {entry.label}: {entry.avg_brier:.3f} (n={entry.scored_count})"
        )
    return "\n".join(lines)


def render_user_summary(summary: UserSummary) -> str:
    avg = "n/a" if summary.avg_brier is None else f"{summary.avg_brier:.3f}"
    lines = [
        f"# Predictions of {summary.user_id}",
        "",
        f"- Total predictions: {summary.total_predictions}",
        f"- Questions: {summary.questions_count}",
        f"- Mean Brier: {avg}",
        "",
    ]
    for entry in summary.entries:
        brier = "" if entry.brier is None else f", brier={entry.brier:.3f}"
        lines.append(
            f"- {entry.question.title[:90]}: {entry.latest_prediction.probability:g}% "
            f"({entry.prediction_count} predictions{brier})"
        )
    return "\n".join(lines)
