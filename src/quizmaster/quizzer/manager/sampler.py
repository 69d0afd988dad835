"""Random session sampling from a parsed question bank."""

from __future__ import annotations

import random
from typing import List, Optional

from ..config import SESSION_SIZE
from ..models import Question, QuestionBank


def sample_session(
    bank: QuestionBank,
    *,
    size: int = SESSION_SIZE,
    rng: Optional[random.Random] = None,
) -> List[Question]:
    """Draw a randomly ordered session of at most ``size`` questions.

    The bank is copied, shuffled (Fisher-Yates via ``Random.shuffle``) and
    truncated, so every question appears at most once and the caller's
    sequence is left untouched. Pass ``rng`` for reproducible draws; the
    default is a fresh unseeded generator per call.
    """
    if size <= 0 or not bank:
        return []
    generator = rng if rng is not None else random.Random()
    pool = list(bank)
    generator.shuffle(pool)
    return pool[: min(len(pool), size)]
