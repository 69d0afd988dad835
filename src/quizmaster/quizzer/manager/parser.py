"""Line-oriented parser turning bold-marked Markdown into a question bank.

The accepted dialect is deliberately narrow::

    **Question 7:** Which protocol ...
    a. TCP
    **b. UDP**
    c. ICMP

A question header is a bold ``Question <N>`` marker followed by the prompt.
Option lines start with a single letter and a period. An option is correct
only when the whole trimmed line is wrapped in ``**``.

Parsing is best-effort: lines that match nothing are folded into the prompt
(before the first option) or ignored, and questions that collect no options
are dropped. ``parse_bank`` never raises; an empty list means the document
contained no usable questions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from functools import reduce
from typing import Iterable, Optional

from ..models import Option, Question, QuestionBank

BOLD_MARKER = "**"

_QUESTION_RE = re.compile(
    r"^\*\*Question\s+(\d+)\s*:?:?\*\*\s*:?\s*(.*)", re.IGNORECASE
)
_OPTION_RE = re.compile(r"^(\*\*)?\s*([a-zA-Z])\.\s+(.*?)(\*\*)?$")
_OPTION_PREFIX_RE = re.compile(r"^([a-zA-Z])\.\s+(.*)")


def is_whole_line_bold(line: str) -> bool:
    """Return True when the trimmed ``line`` is wrapped in bold markers.

    This is the only correctness signal for option lines; a bold letter or a
    bold prefix on its own does not count.
    """
    trimmed = line.strip()
    return trimmed.startswith(BOLD_MARKER) and trimmed.endswith(BOLD_MARKER)


@dataclass(frozen=True)
class _QuestionDraft:
    index: int
    number: int
    text: str
    options: tuple[Option, ...] = ()
    counter: int = 0

    def to_question(self) -> Question:
        return Question(
            id=f"q-{self.index}",
            number=self.number,
            text=self.text,
            options=self.options,
        )


@dataclass(frozen=True)
class ScanState:
    """Scanner state threaded through the fold over document lines.

    ``current`` is ``None`` while no question is open, otherwise it holds
    the accumulator for the open question.
    """

    questions: tuple[Question, ...] = ()
    current: Optional[_QuestionDraft] = None


def parse_bank(document_text: str) -> QuestionBank:
    """Parse ``document_text`` into questions in document order."""

    if not document_text:
        return []
    return finish(scan_lines(document_text.split("\n")))


def scan_lines(
    lines: Iterable[str], state: Optional[ScanState] = None
) -> ScanState:
    """Feed ``lines`` through the scanner starting from ``state``."""

    return reduce(_step, lines, state or ScanState())


def finish(state: ScanState) -> QuestionBank:
    """Close the open question (if it has options) and return the bank."""

    return list(_finalize(state).questions)


def _step(state: ScanState, line: str) -> ScanState:
    trimmed = line.strip()
    if not trimmed:
        return state

    header = _QUESTION_RE.match(trimmed)
    if header:
        closed = _finalize(state)
        draft = _QuestionDraft(
            index=len(closed.questions),
            number=int(header.group(1)),
            text=header.group(2).strip(),
        )
        return replace(closed, current=draft)

    draft = state.current
    if draft is None:
        return state

    if _OPTION_RE.match(trimmed):
        grown = replace(
            draft,
            options=draft.options + (_build_option(trimmed, draft),),
            counter=draft.counter + 1,
        )
        return replace(state, current=grown)

    if not draft.options:
        prompt = f"{draft.text} {trimmed}"
        return replace(state, current=replace(draft, text=prompt))
    return state


def _finalize(state: ScanState) -> ScanState:
    draft = state.current
    if draft is None:
        return state
    if not draft.options:
        return ScanState(questions=state.questions)
    return ScanState(questions=state.questions + (draft.to_question(),))


def _build_option(trimmed: str, draft: _QuestionDraft) -> Option:
    is_correct = is_whole_line_bold(trimmed)
    cleaned = trimmed[2:-2].strip() if is_correct else trimmed

    prefix = _OPTION_PREFIX_RE.match(cleaned)
    if prefix:
        label = prefix.group(1).lower()
        text = prefix.group(2).strip()
    else:
        label = chr(ord("a") + draft.counter)
        text = cleaned

    return Option(
        id=f"opt-{draft.index}-{draft.counter}",
        label=label,
        text=text,
        is_correct=is_correct,
    )


__all__ = [
    "BOLD_MARKER",
    "ScanState",
    "finish",
    "is_whole_line_bold",
    "parse_bank",
    "scan_lines",
]
