"""Immutable records shared by the parser, sampler and grading engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

AnswerRecord = Mapping[str, Iterable[str]]


@dataclass(frozen=True)
class Option:
    """One answer choice of a question."""

    id: str
    label: str
    text: str
    is_correct: bool


@dataclass(frozen=True)
class Question:
    """A parsed quiz item with its options in document order."""

    id: str
    number: int
    text: str
    options: tuple[Option, ...]

    def correct_option_ids(self) -> frozenset[str]:
        return frozenset(opt.id for opt in self.options if opt.is_correct)

    @property
    def correct_count(self) -> int:
        return sum(1 for opt in self.options if opt.is_correct)

    @property
    def is_multi_select(self) -> bool:
        return self.correct_count > 1

    def option_by_label(self, label: Optional[str]) -> Optional[Option]:
        if not label:
            return None
        normalized = str(label).strip().lower()[:1]
        for opt in self.options:
            if opt.label == normalized:
                return opt
        return None


QuestionBank = list[Question]


@dataclass(frozen=True)
class QuestionOutcome:
    """Grading verdict for a single question of a session."""

    question: Question
    selected: frozenset[str]
    is_correct: bool


@dataclass(frozen=True)
class ResultSummary:
    """Scored outcome of one completed or expired session."""

    total_questions: int
    correct_answers: int
    score_percentage: int
    passed: bool
    date: str
    time_spent: Optional[str] = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "date": self.date,
            "totalQuestions": self.total_questions,
            "correctAnswers": self.correct_answers,
            "scorePercentage": self.score_percentage,
            "passed": self.passed,
        }
        if self.time_spent is not None:
            payload["timeSpent"] = self.time_spent
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "ResultSummary":
        """Rebuild a summary from its serialized history form.

        Raises ``KeyError``/``ValueError``/``TypeError`` when required fields
        are missing or malformed.
        """
        time_spent = data.get("timeSpent")
        return cls(
            total_questions=int(data["totalQuestions"]),  # type: ignore[arg-type]
            correct_answers=int(data["correctAnswers"]),  # type: ignore[arg-type]
            score_percentage=int(data["scorePercentage"]),  # type: ignore[arg-type]
            passed=bool(data["passed"]),
            date=str(data["date"]),
            time_spent=str(time_spent) if time_spent is not None else None,
        )


__all__ = [
    "AnswerRecord",
    "Option",
    "Question",
    "QuestionBank",
    "QuestionOutcome",
    "ResultSummary",
]
