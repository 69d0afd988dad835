"""Rich-powered quiz session controller and supporting data structures.

This module runs a synchronous session loop over parsed :class:`Question`
objects, renders them with Rich, captures user commands and returns a
:class:`QuizSessionResult`. Grading is delegated to the pure grading engine
and happens exactly once, either on submission or when the session timer
runs out. State handling lives in :class:`QuizSessionState` so it can be
tested without a console.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Literal, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import PASS_THRESHOLD
from .manager.grading import grade_question, grade_session, question_outcomes
from .models import Question, QuestionOutcome, ResultSummary
from .timer import SessionTimer

InputProvider = Callable[[], str]
ExitAction = Literal["submitted", "expired", "quit", "empty"]

_TOKEN_SPLIT = re.compile(r"[\s,]+")


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["next", "prev", "check", "submit", "quit", "select"]
    labels: tuple[str, ...] = ()


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from ``run_quiz_session``.

    ``summary`` is ``None`` when the user quit without submitting.
    """

    answers: dict[str, tuple[str, ...]]
    outcomes: list[QuestionOutcome]
    summary: Optional[ResultSummary]
    exit_action: ExitAction


@dataclass
class QuizSessionState:
    """Mutable session state shared by the Rich and Textual front ends."""

    questions: list[Question]
    index: int = 0
    selections: dict[str, list[str]] = field(default_factory=dict)
    checked: set[str] = field(default_factory=set)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> Question:
        return self.questions[self.index]

    @property
    def is_last(self) -> bool:
        return self.index + 1 >= self.total_questions

    def answered_count(self) -> int:
        return sum(1 for ids in self.selections.values() if ids)

    def is_checked(self, question: Optional[Question] = None) -> bool:
        target = question or self.current
        return target.id in self.checked

    def select(self, label: str) -> bool:
        """Apply a label to the current question.

        Multi-select questions toggle the option; single-answer questions
        replace the previous choice. Checked questions are locked.
        """
        question = self.current
        if self.is_checked(question):
            return False
        option = question.option_by_label(label)
        if option is None:
            return False
        chosen = self.selections.setdefault(question.id, [])
        if question.is_multi_select:
            if option.id in chosen:
                chosen.remove(option.id)
            else:
                chosen.append(option.id)
        else:
            chosen[:] = [option.id]
        return True

    def check(self) -> bool:
        """Lock the current question and return whether it is correct."""
        question = self.current
        self.checked.add(question.id)
        return grade_question(question, self.selected_for(question))

    def next(self) -> None:
        if not self.is_last:
            self.index += 1

    def previous(self) -> None:
        if self.index > 0:
            self.index -= 1

    def selected_for(self, question: Optional[Question] = None) -> list[str]:
        target = question or self.current
        return list(self.selections.get(target.id, ()))

    def available_labels(self) -> list[str]:
        return [opt.label for opt in self.current.options]

    def answer_record(self) -> dict[str, tuple[str, ...]]:
        return {
            qid: tuple(ids) for qid, ids in self.selections.items() if ids
        }


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip().lower()
    if not text:
        return None
    if text in {"n", "next"}:
        return SessionCommand("next")
    if text in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if text == "check":
        return SessionCommand("check")
    if text in {"s", "submit"}:
        return SessionCommand("submit")
    if text in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    tokens = [token for token in _TOKEN_SPLIT.split(text) if token]
    if tokens and all(token.isascii() and token.isalpha() for token in tokens):
        return SessionCommand("select", tuple("".join(tokens)))
    return None


def run_quiz_session(
    questions: Sequence[Question],
    console: Console,
    input_provider: InputProvider,
    *,
    timer: Optional[SessionTimer] = None,
    pass_threshold: int = PASS_THRESHOLD,
    logger: Optional[logging.Logger] = None,
    now: Optional[Callable[[], datetime]] = None,
) -> QuizSessionResult:
    """Run an interactive session and grade it on submit or expiry.

    The loop is synchronous, so expiry is only checked before prompting and
    after ``input_provider`` returns. An idle user is auto-submitted on their
    next entry, not at the moment the budget runs out; the Textual
    ``QuizApp`` polls with ``set_interval`` and submits on time.
    """

    log = logger or logging.getLogger(__name__)
    state = QuizSessionState(list(questions))

    if not state.questions:
        console.print(
            Panel(
                "Question bank is empty.",
                title="Quiz Session",
                border_style="yellow",
            )
        )
        summary = grade_session([], {}, pass_threshold=pass_threshold)
        return QuizSessionResult({}, [], summary, "empty")

    exit_action: ExitAction = "quit"
    while True:
        if timer is not None and timer.expired:
            exit_action = _announce_expiry(console)
            break
        _render_question(console, state, timer)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            exit_action = "quit"
            break
        if timer is not None and timer.expired:
            exit_action = _announce_expiry(console)
            break
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        exit_candidate = _apply_command(command, state, console)
        if exit_candidate:
            exit_action = exit_candidate
            break

    answers = state.answer_record()
    outcomes = question_outcomes(state.questions, answers)
    summary: Optional[ResultSummary] = None
    if exit_action in ("submitted", "expired"):
        summary = grade_session(
            state.questions,
            answers,
            pass_threshold=pass_threshold,
            now=now() if now else None,
            time_spent=timer.elapsed_text() if timer else None,
        )

    log.info(
        "Quiz session finished",
        extra={
            "exit_action": exit_action,
            "total_questions": state.total_questions,
            "answered_questions": state.answered_count(),
        },
    )
    return QuizSessionResult(answers, outcomes, summary, exit_action)


def _announce_expiry(console: Console) -> ExitAction:
    console.print(
        "\n[bold red]Time's up![/] Submitting your answers.",
    )
    return "expired"


def _apply_command(
    command: SessionCommand,
    state: QuizSessionState,
    console: Console,
) -> Optional[ExitAction]:
    if command.type == "select":
        _apply_selection(command.labels, state, console)
        return None
    if command.type == "check":
        if state.check():
            console.print("[bold green]Correct![/]")
        else:
            console.print(
                "[bold red]Incorrect.[/] Correct answers are marked ✓."
            )
        return None
    if command.type == "next":
        if state.is_last:
            return "submitted"
        state.next()
        return None
    if command.type == "prev":
        state.previous()
        return None
    if command.type == "quit":
        console.print("\n[bold yellow]Ending session without submission.[/]")
        return "quit"
    if command.type == "submit":
        return "submitted"
    return None


def _apply_selection(
    labels: Sequence[str], state: QuizSessionState, console: Console
) -> None:
    question = state.current
    if state.is_checked(question):
        console.print("[red]This question is already checked.[/]")
        return
    if len(labels) > 1 and not question.is_multi_select:
        console.print("[red]Select 1 correct answer.[/]")
        return
    for label in labels:
        if not state.select(label):
            console.print(
                "[red]'%s' is not a valid choice for this question.[/red]"
                % label.upper(),
            )


def selection_hint(question: Question) -> str:
    if question.is_multi_select:
        return f"Select {question.correct_count} correct answers"
    return "Select 1 correct answer"


def _render_question(
    console: Console,
    state: QuizSessionState,
    timer: Optional[SessionTimer],
) -> None:
    question = state.current
    checked = state.is_checked(question)
    selected = set(state.selected_for(question))

    header = Text.assemble(
        (f"Question {state.index + 1}", "bold cyan"),
        (f" of {state.total_questions}", "dim"),
    )
    if timer is not None and timer.limit_seconds is not None:
        style = "bold red" if timer.is_low else "bold blue"
        header.append(f"  ⏱ {timer.remaining_text()}", style=style)
    console.print()
    console.rule(header)
    console.print(Text(question.text, style="bold"))
    console.print(Text(selection_hint(question), style="cyan"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")
    for option in question.options:
        is_selected = option.id in selected
        indicator, style = _option_marker(option.is_correct, is_selected, checked)
        row_text = Text(indicator + " ")
        row_text.append(option.text, style=style)
        table.add_row(option.label.upper(), row_text)
    console.print(table)

    choice_hint = ", ".join(label.upper() for label in state.available_labels())
    command_hint = (
        f"Commands: choices [{choice_hint}], n (next), p (prev), check, "
        "submit, quit"
    )
    console.print(
        Text(
            f"Answered {state.answered_count()}/{state.total_questions} | "
            f"{command_hint}",
            style="dim",
        )
    )


def _option_marker(
    is_correct: bool, is_selected: bool, revealed: bool
) -> tuple[str, str]:
    if revealed:
        if is_correct:
            return "✓", "bold green"
        if is_selected:
            return "✗", "red"
        return " ", "dim"
    if is_selected:
        return "•", "bold green"
    return " ", ""


def render_summary(
    console: Console,
    summary: ResultSummary,
    *,
    pass_threshold: int = PASS_THRESHOLD,
) -> None:
    console.print()
    console.rule(Text("Quiz Summary", style="bold magenta"))
    verdict = (
        Text("Passed!", style="bold green")
        if summary.passed
        else Text("Failed", style="bold red")
    )
    console.print(verdict)
    console.print(
        f"You scored [bold]{summary.score_percentage}%[/]. "
        f"Required: {pass_threshold}%"
    )

    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Questions", str(summary.total_questions))
    overview.add_row("Correct", str(summary.correct_answers))
    if summary.time_spent:
        overview.add_row("Time spent", summary.time_spent)
    console.print(overview)


def render_review(
    console: Console, outcomes: Sequence[QuestionOutcome]
) -> None:
    """Show every question with correct options and wrong selections."""

    console.print()
    console.rule(Text("Review Quiz", style="bold magenta"))
    for idx, outcome in enumerate(outcomes, start=1):
        question = outcome.question
        body = Text(question.text + "\n", style="bold")
        for option in question.options:
            is_selected = option.id in outcome.selected
            indicator, style = _option_marker(
                option.is_correct, is_selected, True
            )
            body.append(f"\n{indicator} {option.label.upper()}. ")
            body.append(option.text, style=style)
        verdict = "Correct" if outcome.is_correct else "Incorrect"
        console.print(
            Panel(
                body,
                title=f"Question {idx}",
                subtitle=verdict,
                border_style="green" if outcome.is_correct else "red",
            )
        )


def render_history(
    console: Console, results: Sequence[ResultSummary]
) -> None:
    if not results:
        console.print("[dim]No quiz history yet.[/]")
        return
    table = Table(title="History", box=box.SIMPLE, expand=False)
    table.add_column("Date")
    table.add_column("Correct", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Result", justify="center")
    table.add_column("Time", justify="right")
    for result in results:
        table.add_row(
            _display_date(result.date),
            f"{result.correct_answers}/{result.total_questions}",
            f"{result.score_percentage}%",
            "✅" if result.passed else "❌",
            result.time_spent or "",
        )
    console.print(table)


def _display_date(raw: str) -> str:
    try:
        stamp = datetime.fromisoformat(raw)
    except ValueError:
        return raw
    return stamp.astimezone().strftime("%Y-%m-%d %H:%M")
