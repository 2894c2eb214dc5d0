from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

from futurykon.core.utils import from_iso, to_iso, utc_now


JsonDict = dict[str, Any]

RESOLUTION_PENDING = "pending"
RESOLUTION_YES = "yes"
RESOLUTION_NO = "no"
RESOLUTION_STATUSES = (RESOLUTION_PENDING, RESOLUTION_YES, RESOLUTION_NO)

CATEGORIES = (
    "AGI i Superinteligencja",
    "Modele językowe",
    "Robotyka",
    "AI w medycynie",
    "Autonomiczne pojazdy",
    "AI w biznesie",
    "Regulacje AI",
    "Inne",
)


def normalize_category(category: str | None) -> str | None:
    if not category:
        return None
    cleaned = category.strip()
    return cleaned if cleaned in CATEGORIES else None


@dataclass
class Question:
    id: str
    title: str
    close_date: datetime
    description: str = ""
    resolution_criteria: str = ""
    category: str | None = None
    resolution_status: str = RESOLUTION_PENDING
    resolution_date: datetime | None = None
    author_id: str | None = None
    created_at: datetime = field(default_factory=utc_now)

    def is_closed(self, now: datetime | None = None) -> bool:
        return self.close_date <= (now or utc_now())

    @property
    def is_resolved(self) -> bool:
        return self.resolution_status != RESOLUTION_PENDING

    @property
    def outcome(self) -> float | None:
        if self.resolution_status == RESOLUTION_YES:
            return 1.0
        if self.resolution_status == RESOLUTION_NO:
            return 0.0
        return None

    def to_record(self) -> JsonDict:
        record = asdict(self)
        record["close_date"] = to_iso(self.close_date)
        record["resolution_date"] = to_iso(self.resolution_date)
        record["created_at"] = to_iso(self.created_at)
        return record

    @staticmethod
    def from_record(record: JsonDict) -> "Question":
        status = str(record.get("resolution_status") or RESOLUTION_PENDING).lower()
        if status not in RESOLUTION_STATUSES:
            status = RESOLUTION_PENDING
        close_date = from_iso(record.get("close_date"))
        if close_date is None:
            raise ValueError(f"Question {record.get('id')} has no close_date")
        return Question(
            id=str(record["id"]),
            title=record["title"],
            close_date=close_date,
            description=record.get("description") or "",
            resolution_criteria=record.get("resolution_criteria") or "",
            category=record.get("category"),
            resolution_status=status,
            resolution_date=from_iso(record.get("resolution_date")),
            author_id=record.get("author_id"),
            created_at=from_iso(record.get("created_at")) or utc_now(),
        )


@dataclass
class Prediction:
    question_id: str
    user_id: str
    probability: float
    created_at: datetime
    reasoning: str | None = None
    id: str | None = None
    seq: int | None = None
    user_email: str | None = None
    user_display_name: str | None = None

    def to_record(self) -> JsonDict:
        record = asdict(self)
        record["created_at"] = to_iso(self.created_at)
        return record

    @staticmethod
    def from_record(record: JsonDict) -> "Prediction":
        # Hosted reads embed the author's profile as a nested object.
        profile = record.get("profiles") or {}
        seq = record.get("seq")
        return Prediction(
            id=str(record["id"]) if record.get("id") is not None else None,
            question_id=str(record["question_id"]),
            user_id=str(record["user_id"]),
            probability=float(record["probability"]),
            created_at=from_iso(record["created_at"]) or utc_now(),
            reasoning=record.get("reasoning") or None,
            seq=int(seq) if seq is not None else None,
            user_email=profile.get("email") or record.get("user_email"),
            user_display_name=profile.get("display_name") or record.get("user_display_name"),
        )


@dataclass
class UserPredictionGroup:
    user_id: str
    latest: Prediction
    history: list[Prediction]
    user_email: str | None = None
    user_display_name: str | None = None

    @property
    def display_name(self) -> str:
        return self.user_display_name or self.user_email or "Anonim"

    @property
    def size(self) -> int:
        return 1 + len(self.history)


@dataclass
class CommunityPrediction:
    question_id: str
    community_probability: float | None
    prediction_count: int

    def to_record(self) -> JsonDict:
        return asdict(self)


@dataclass
class SeriesPoint:
    timestamp: datetime
    pooled_probability: float
    contributor_count: int

    def to_record(self) -> JsonDict:
        return {
            "timestamp": to_iso(self.timestamp),
            "pooled_probability": self.pooled_probability,
            "contributor_count": self.contributor_count,
        }


@dataclass
class Profile:
    id: str
    email: str | None = None
    display_name: str | None = None
    is_admin: bool = False

    def to_record(self) -> JsonDict:
        return asdict(self)

    @staticmethod
    def from_record(record: JsonDict) -> "Profile":
        return Profile(
            id=str(record["id"]),
            email=record.get("email"),
            display_name=record.get("display_name"),
            is_admin=bool(record.get("is_admin", False)),
        )


@dataclass(frozen=True)
class UserContext:
    user_id: str
    is_admin: bool = False
    email: str | None = None
    display_name: str | None = None

    @staticmethod
    def from_profile(profile: Profile) -> "UserContext":
        return UserContext(
            user_id=profile.id,
            is_admin=profile.is_admin,
            email=profile.email,
            display_name=profile.display_name,
        )


@dataclass
class ScoredPrediction:
    question_id: str
    user_id: str
    probability: float
    outcome: float
    brier: float


@dataclass
class LeaderboardEntry:
    user_id: str
    avg_brier: float
    scored_count: int
    email: str | None = None
    display_name: str | None = None

    @property
    def label(self) -> str:
        return self.display_name or self.email or "Nieznany"


@dataclass
class QuestionPredictionSummary:
    question: Question
    latest_prediction: Prediction
    prediction_count: int
    brier: float | None = None


@dataclass
class UserSummary:
    user_id: str
    total_predictions: int
    questions_count: int
    avg_brier: float | None
    entries: list[QuestionPredictionSummary] = field(default_factory=list)
