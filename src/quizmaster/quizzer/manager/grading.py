"""Strict set-equality grading for completed quiz sessions."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence

from ..config import PASS_THRESHOLD
from ..models import AnswerRecord, Question, QuestionOutcome, ResultSummary


def grade_question(question: Question, selected: Iterable[str]) -> bool:
    """Return True when ``selected`` equals the question's correct option set."""

    return frozenset(selected) == question.correct_option_ids()


def question_outcomes(
    session: Sequence[Question], answers: AnswerRecord
) -> List[QuestionOutcome]:
    outcomes: List[QuestionOutcome] = []
    for question in session:
        selected = frozenset(answers.get(question.id, ()))
        outcomes.append(
            QuestionOutcome(
                question=question,
                selected=selected,
                is_correct=grade_question(question, selected),
            )
        )
    return outcomes


def score_percentage(correct: int, total: int) -> int:
    """Percentage rounded half up; 0 for an empty session."""

    if total <= 0:
        return 0
    return int(math.floor(100 * correct / total + 0.5))


def grade_session(
    session: Sequence[Question],
    answers: AnswerRecord,
    *,
    pass_threshold: int = PASS_THRESHOLD,
    now: Optional[datetime] = None,
    time_spent: Optional[str] = None,
) -> ResultSummary:
    """Score ``session`` against ``answers`` without partial credit.

    A question absent from ``answers`` counts as an empty selection and is
    therefore incorrect unless it has no correct options.
    """
    total = len(session)
    correct = sum(
        1 for outcome in question_outcomes(session, answers) if outcome.is_correct
    )
    percentage = score_percentage(correct, total)
    stamp = now or datetime.now(timezone.utc)
    return ResultSummary(
        total_questions=total,
        correct_answers=correct,
        score_percentage=percentage,
        passed=percentage >= pass_threshold,
        date=stamp.isoformat(),
        time_spent=time_spent,
    )


__all__ = [
    "grade_question",
    "grade_session",
    "question_outcomes",
    "score_percentage",
]
