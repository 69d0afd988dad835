from typing import List, Optional, Sequence

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.css.query import NoMatches
from textual.widget import Widget
from textual.widgets import Button, Static

from ..config import PASS_THRESHOLD
from ..manager.grading import grade_session, question_outcomes
from ..models import Question
from ..session import (
    ExitAction,
    QuizSessionResult,
    QuizSessionState,
    selection_hint,
)
from ..timer import SessionTimer


class QuizApp(App):
    """Full-screen session front end sharing state rules with the Rich loop.

    ``run()`` returns the :class:`QuizSessionResult`, or ``None`` when the
    user closes the app without submitting.
    """

    CSS_PATH = None
    CSS = """
#choices Button.selected { background: $accent; color: black; }
#choices Button.correct { background: $success; color: black; }
#choices Button.wrong { background: $error; }
#timer.low { color: $error; text-style: bold; }
"""
    BINDINGS = [
        ("n", "next", "Next"),
        ("p", "prev", "Prev"),
        ("k", "check", "Check"),
        ("s", "submit", "Submit"),
        ("1", "select_index(0)", "Option 1"),
        ("2", "select_index(1)", "Option 2"),
        ("3", "select_index(2)", "Option 3"),
        ("4", "select_index(3)", "Option 4"),
        ("5", "select_index(4)", "Option 5"),
        ("6", "select_index(5)", "Option 6"),
    ]

    def __init__(
        self,
        questions: Sequence[Question],
        *,
        pass_threshold: int = PASS_THRESHOLD,
        timer: Optional[SessionTimer] = None,
    ):
        super().__init__()
        self.state = QuizSessionState(list(questions))
        self.pass_threshold = pass_threshold
        self.session_timer = timer
        self.result: Optional[QuizSessionResult] = None

    def compose(self) -> ComposeResult:
        if not self.state.questions:
            yield Static("No questions.", id="empty")
            return
        with Container(id="stage"):
            yield self._question_view()
        with Horizontal(id="footer"):
            yield Button("Prev", id="prev")
            yield Button("Next", id="next")
            yield Button("Check", id="check")
            yield Button("Submit", id="submit")
            yield Static(self._answered_text(), id="answered")
            yield Static(self._timer_text(), id="timer")

    def on_mount(self) -> None:
        timer = self.session_timer
        if timer is not None and timer.limit_seconds is not None:
            self.set_interval(1.0, self.tick)

    # Pure helpers for navigation and selection (testable without running App)
    def select_option(self, label: str) -> bool:
        if not self.state.questions:
            return False
        changed = self.state.select(label)
        if changed:
            self._update_stage()
        return changed

    def next_question(self) -> int:
        if self.state.questions:
            self.state.next()
            self._update_stage()
        return self.state.index

    def prev_question(self) -> int:
        if self.state.questions:
            self.state.previous()
            self._update_stage()
        return self.state.index

    def check_current(self) -> bool:
        correct = self.state.check()
        self._update_stage()
        return correct

    def tick(self) -> None:
        if self.session_timer is None:
            return
        if self.session_timer.expired:
            self.submit("expired")
            return
        if not self.is_running:
            return
        try:
            label = self.query_one("#timer", Static)
        except NoMatches:
            return
        label.update(self._timer_text())
        label.set_class(self.session_timer.is_low, "low")

    def submit(self, exit_action: ExitAction = "submitted") -> QuizSessionResult:
        """Grade the session once; later calls return the first result."""
        if self.result is not None:
            return self.result
        answers = self.state.answer_record()
        timer = self.session_timer
        summary = grade_session(
            self.state.questions,
            answers,
            pass_threshold=self.pass_threshold,
            time_spent=timer.elapsed_text() if timer else None,
        )
        self.result = QuizSessionResult(
            answers,
            question_outcomes(self.state.questions, answers),
            summary,
            exit_action,
        )
        if self.is_running:
            self.exit(self.result)
        return self.result

    def action_next(self) -> None:
        if self.state.questions and self.state.is_last:
            self.submit()
            return
        self.next_question()

    def action_prev(self) -> None:
        self.prev_question()

    def action_check(self) -> None:
        if self.state.questions:
            self.check_current()

    def action_submit(self) -> None:
        if self.state.questions:
            self.submit()

    def action_select_index(self, index: int) -> None:
        if not self.state.questions:
            return
        options = self.state.current.options
        if 0 <= index < len(options):
            self.select_option(options[index].label)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("choice-"):
            self.action_select_index(int(bid.split("-", 1)[1]))
        elif bid == "submit":
            self.action_submit()
        elif bid == "next":
            self.action_next()
        elif bid == "prev":
            self.action_prev()
        elif bid == "check":
            self.action_check()

    def _question_view(self) -> "QuestionView":
        question = self.state.current
        return QuestionView(
            question,
            index=self.state.index + 1,
            total=self.state.total_questions,
            selected=self.state.selected_for(question),
            revealed=self.state.is_checked(question),
        )

    def _update_stage(self) -> None:
        if not self.is_running:
            return
        try:
            stage = self.query_one("#stage", Container)
            answered = self.query_one("#answered", Static)
        except NoMatches:
            return
        stage.remove_children()
        stage.mount(self._question_view())
        answered.update(self._answered_text())

    def _answered_text(self) -> str:
        return (
            f"Answered: {self.state.answered_count()}/"
            f"{self.state.total_questions}"
        )

    def _timer_text(self) -> str:
        timer = self.session_timer
        if timer is None or timer.limit_seconds is None:
            return ""
        return f"Time left: {timer.remaining_text()}"


class QuestionView(Widget):
    """Renders a single question with option buttons and feedback."""

    def __init__(
        self,
        question: Question,
        index: int,
        total: int,
        *,
        selected: Optional[List[str]] = None,
        revealed: bool = False,
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.selected = set(selected or ())
        self.revealed = revealed

    def compose(self) -> ComposeResult:
        yield Static(self.question.text, id="stem")
        yield Static(selection_hint(self.question), id="hint")
        with Vertical(id="choices"):
            for idx, option in enumerate(self.question.options):
                btn = Button(
                    f"{option.label.upper()}) {option.text}",
                    id=f"choice-{idx}",
                )
                css_class = self.option_class(option.id)
                if css_class:
                    btn.add_class(css_class)
                yield btn
        yield Static(f"{self.index}/{self.total}", id="progress")
        yield Static(self.feedback_text(), id="feedback")

    def option_class(self, option_id: str) -> str:
        is_selected = option_id in self.selected
        if not self.revealed:
            return "selected" if is_selected else ""
        if option_id in self.question.correct_option_ids():
            return "correct"
        return "wrong" if is_selected else ""

    def feedback_text(self) -> str:
        if not self.revealed:
            return ""
        if frozenset(self.selected) == self.question.correct_option_ids():
            return "Correct!"
        return "Incorrect. Review the correct answers highlighted above."
