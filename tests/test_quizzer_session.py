from __future__ import annotations

from datetime import datetime, timezone

import pytest
from rich.console import Console

from fixtures import banks
from quizmaster.quizzer.manager import parse_bank
from quizmaster.quizzer.session import (
    QuizSessionResult,
    QuizSessionState,
    SessionCommand,
    _apply_command,
    parse_session_command,
    render_history,
    render_review,
    render_summary,
    run_quiz_session,
    selection_hint,
)
from quizmaster.quizzer.timer import SessionTimer

FIXED_NOW = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def make_provider(commands: list[str]):
    iterator = iter(commands)

    def _provider() -> str:
        return next(iterator)

    return _provider


def make_console() -> Console:
    return Console(record=True, width=100, force_terminal=True)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def bank():
    return parse_bank(banks.FIVE_QUESTIONS)


@pytest.fixture
def multi_bank():
    return parse_bank(banks.MULTI_SELECT + "\n" + banks.SINGLE_QUESTION)


def test_parse_session_command_variants() -> None:
    assert parse_session_command("a") == SessionCommand("select", ("a",))
    assert parse_session_command("A C") == SessionCommand("select", ("a", "c"))
    assert parse_session_command("a,c") == SessionCommand("select", ("a", "c"))
    assert parse_session_command("ac") == SessionCommand("select", ("a", "c"))
    assert parse_session_command("  Next ") == SessionCommand("next")
    assert parse_session_command("p") == SessionCommand("prev")
    assert parse_session_command("check") == SessionCommand("check")
    assert parse_session_command("s") == SessionCommand("submit")
    assert parse_session_command("quit") == SessionCommand("quit")
    assert parse_session_command(None) is None
    assert parse_session_command("") is None
    assert parse_session_command("?unknown") is None
    assert parse_session_command("a1") is None


def test_state_single_answer_replaces_selection(bank) -> None:
    state = QuizSessionState(bank)

    assert state.select("a")
    assert state.select("b")

    assert state.selected_for() == ["opt-0-1"]
    assert state.answer_record() == {"q-0": ("opt-0-1",)}


def test_state_multi_select_toggles(multi_bank) -> None:
    state = QuizSessionState(multi_bank)

    state.select("a")
    state.select("c")
    state.select("b")
    state.select("b")

    assert state.selected_for() == ["opt-0-0", "opt-0-2"]
    assert state.check() is True


def test_state_rejects_unknown_label(bank) -> None:
    state = QuizSessionState(bank)

    assert state.select("z") is False
    assert state.answered_count() == 0


def test_check_locks_question(bank) -> None:
    state = QuizSessionState(bank)
    state.select("a")

    assert state.check() is False
    assert state.select("b") is False
    assert state.selected_for() == ["opt-0-0"]
    assert state.is_checked()


def test_navigation_is_bounded(bank) -> None:
    state = QuizSessionState(bank)

    state.previous()
    assert state.index == 0
    for _ in range(10):
        state.next()
    assert state.index == 4
    assert state.is_last


def test_run_quiz_session_submit_flow(bank) -> None:
    console = make_console()
    provider = make_provider(["b", "n", "a", "n", "c", "submit"])

    result = run_quiz_session(
        bank, console, provider, now=lambda: FIXED_NOW
    )

    assert isinstance(result, QuizSessionResult)
    assert result.exit_action == "submitted"
    assert result.summary is not None
    assert result.summary.total_questions == 5
    assert result.summary.correct_answers == 2
    assert result.summary.score_percentage == 40
    assert result.summary.passed is False
    assert result.summary.date == FIXED_NOW.isoformat()
    assert result.answers == {
        "q-0": ("opt-0-1",),
        "q-1": ("opt-1-0",),
        "q-2": ("opt-2-2",),
    }
    assert [outcome.is_correct for outcome in result.outcomes] == [
        True,
        True,
        False,
        False,
        False,
    ]
    rendered = console.export_text()
    assert "Question 1 of 5" in rendered
    assert "Select 1 correct answer" in rendered


def test_next_on_last_question_submits(bank) -> None:
    provider = make_provider(["n"] * 5)

    result = run_quiz_session(bank, make_console(), provider)

    assert result.exit_action == "submitted"
    assert result.summary is not None
    assert result.summary.correct_answers == 0


def test_quit_returns_no_summary(bank) -> None:
    console = make_console()
    provider = make_provider(["a", "quit"])

    result = run_quiz_session(bank, console, provider)

    assert result.exit_action == "quit"
    assert result.summary is None
    assert result.answers == {"q-0": ("opt-0-0",)}
    assert "Ending session without submission" in console.export_text()


def test_exhausted_input_is_treated_as_quit(bank) -> None:
    console = make_console()

    result = run_quiz_session(bank, console, make_provider([]))

    assert result.exit_action == "quit"
    assert "Session interrupted" in console.export_text()


def test_empty_session_grades_to_zero() -> None:
    console = make_console()

    result = run_quiz_session([], console, make_provider([]))

    assert result.exit_action == "empty"
    assert result.summary is not None
    assert result.summary.total_questions == 0
    assert result.summary.score_percentage == 0
    assert result.summary.passed is False
    assert "Question bank is empty." in console.export_text()


def test_expiry_after_input_grades_collected_answers(bank) -> None:
    clock = FakeClock()
    timer = SessionTimer(60, clock=clock)
    console = make_console()

    def provider() -> str:
        clock.now += 61
        return "b"

    result = run_quiz_session(bank, console, provider, timer=timer)

    assert result.exit_action == "expired"
    assert result.summary is not None
    assert result.summary.total_questions == 5
    assert result.summary.time_spent == "01:00"
    assert result.answers == {}
    assert "Time's up!" in console.export_text()


def test_expiry_between_questions(bank) -> None:
    clock = FakeClock()
    timer = SessionTimer(60, clock=clock)
    calls = {"count": 0}

    def provider() -> str:
        calls["count"] += 1
        if calls["count"] == 2:
            clock.now += 60
            return "n"
        return ["b", "n"][calls["count"] - 1]

    result = run_quiz_session(
        bank, make_console(), provider, timer=timer, pass_threshold=10
    )

    assert result.exit_action == "expired"
    assert result.answers == {"q-0": ("opt-0-1",)}
    assert result.summary.correct_answers == 1
    assert result.summary.score_percentage == 20
    assert result.summary.passed is True


def test_low_time_header_shows_remaining(bank) -> None:
    clock = FakeClock()
    timer = SessionTimer(600, clock=clock, low_time_seconds=300)
    clock.now = 400
    console = make_console()

    run_quiz_session(bank, console, make_provider(["q"]), timer=timer)

    assert "03:20" in console.export_text()


def test_multi_select_commands_and_feedback(multi_bank) -> None:
    console = make_console()
    provider = make_provider(
        ["a c", "check", "n", "a c", "a", "check", "b", "s"]
    )

    result = run_quiz_session(multi_bank, console, provider)

    rendered = console.export_text()
    assert "Select 2 correct answers" in rendered
    assert "Select 1 correct answer." in rendered
    assert "already checked" in rendered
    assert "Correct!" in rendered
    assert "Incorrect." in rendered
    assert result.summary.correct_answers == 1
    assert result.answers["q-1"] == ("opt-1-0",)


def test_apply_command_reports_invalid_choice(bank) -> None:
    console = make_console()
    state = QuizSessionState(bank)

    outcome = _apply_command(SessionCommand("select", ("z",)), state, console)

    assert outcome is None
    assert "'Z' is not a valid choice" in console.export_text()


def test_apply_command_refuses_changes_after_check(bank) -> None:
    console = make_console()
    state = QuizSessionState(bank)
    state.check()

    _apply_command(SessionCommand("select", ("a",)), state, console)

    assert "already checked" in console.export_text()
    assert state.answer_record() == {}


def test_unrecognized_command_prompts_again(bank) -> None:
    console = make_console()

    run_quiz_session(bank, console, make_provider(["???", "q"]))

    assert "Unrecognized command" in console.export_text()


def test_selection_hint(bank, multi_bank) -> None:
    assert selection_hint(bank[0]) == "Select 1 correct answer"
    assert selection_hint(multi_bank[0]) == "Select 2 correct answers"


def test_render_summary_and_review(bank) -> None:
    console = make_console()
    provider = make_provider(["b", "n", "c", "s"])
    result = run_quiz_session(bank, console, provider, timer=None)
    console = make_console()

    render_summary(console, result.summary, pass_threshold=80)
    render_review(console, result.outcomes)

    rendered = console.export_text()
    assert "Failed" in rendered
    assert "You scored 20%. Required: 80%" in rendered
    assert "Review Quiz" in rendered
    assert "Question 2" in rendered
    assert "✓ A. 443" in rendered
    assert "✗ C. 22" in rendered
    assert "Incorrect" in rendered


def test_render_history(bank) -> None:
    console = make_console()
    render_history(console, [])
    assert "No quiz history yet." in console.export_text()

    provider = make_provider(["b", "s"])
    result = run_quiz_session(bank, make_console(), provider)
    console = make_console()
    render_history(console, [result.summary])

    rendered = console.export_text()
    assert "1/5" in rendered
    assert "20%" in rendered
