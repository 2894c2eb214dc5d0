from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from futurykon.core.schemas import Prediction, Profile, Question


class BackendError(RuntimeError):
    """The data collaborator could not be reached or refused the call."""


class QuestionClosedError(BackendError):
    """The store refused a prediction for a question past its close date."""


class Storage(ABC):
    """Contract of the data collaborator.

    Predictions form an append-only log: ``insert_prediction`` always adds a
    new event and no operation updates or deletes one.
    """

    @abstractmethod
    def init(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def upsert_question(self, question: Question) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_question(self, question_id: str) -> Question | None:
        raise NotImplementedError

    @abstractmethod
    def list_questions(self) -> list[Question]:
        raise NotImplementedError

    @abstractmethod
    def resolve_question(self, question_id: str, outcome: str, resolved_at: datetime) -> None:
        raise NotImplementedError

    @abstractmethod
    def insert_prediction(self, prediction: Prediction) -> Prediction:
        raise NotImplementedError

    @abstractmethod
    def list_predictions(
        self, question_id: str | None = None, user_id: str | None = None
    ) -> list[Prediction]:
        raise NotImplementedError

    @abstractmethod
    def upsert_profile(self, profile: Profile) -> None:
        raise NotImplementedError

    @abstractmethod
    def get_profile(self, user_id: str) -> Profile | None:
        raise NotImplementedError
