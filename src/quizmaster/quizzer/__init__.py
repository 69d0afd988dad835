from ._main import build_arg_parser
from .history import HistoryError, HistoryStore
from .manager import (
    finish,
    grade_question,
    grade_session,
    parse_bank,
    question_outcomes,
    sample_session,
    scan_lines,
    score_percentage,
)
from .models import Option, Question, QuestionOutcome, ResultSummary
from .session import (
    QuizSessionResult,
    QuizSessionState,
    render_history,
    render_review,
    render_summary,
    run_quiz_session,
)
from .timer import SessionTimer
from .utils import append_jsonl, iter_jsonl
from .view.quiz import QuestionView, QuizApp

__all__ = [
    "build_arg_parser",
    "HistoryError",
    "HistoryStore",
    "parse_bank",
    "scan_lines",
    "finish",
    "sample_session",
    "grade_question",
    "grade_session",
    "question_outcomes",
    "score_percentage",
    "Option",
    "Question",
    "QuestionOutcome",
    "ResultSummary",
    "QuizSessionResult",
    "QuizSessionState",
    "render_history",
    "render_review",
    "render_summary",
    "run_quiz_session",
    "SessionTimer",
    "append_jsonl",
    "iter_jsonl",
    "QuizApp",
    "QuestionView",
]
