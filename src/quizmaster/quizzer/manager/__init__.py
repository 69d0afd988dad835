"""Pure question-bank pipeline: parse, sample, grade."""

from .parser import is_whole_line_bold, parse_bank, scan_lines, finish
from .sampler import sample_session
from .grading import (
    grade_question,
    grade_session,
    question_outcomes,
    score_percentage,
)

__all__ = [
    "is_whole_line_bold",
    "parse_bank",
    "scan_lines",
    "finish",
    "sample_session",
    "grade_question",
    "grade_session",
    "question_outcomes",
    "score_percentage",
]
