from __future__ import annotations

import random

import pytest

from fixtures import banks
from quizmaster.quizzer.config import SESSION_SIZE
from quizmaster.quizzer.manager import parse_bank, sample_session


@pytest.fixture
def large_bank():
    return parse_bank(banks.numbered_bank(55))


@pytest.mark.parametrize("count", [1, 5, 39, 40, 41, 55])
def test_sample_size_is_min_of_bank_and_session_size(count) -> None:
    bank = parse_bank(banks.numbered_bank(count))

    for seed in range(5):
        session = sample_session(bank, rng=random.Random(seed))

        assert len(session) == min(count, SESSION_SIZE)
        ids = [question.id for question in session]
        assert len(set(ids)) == len(ids)
        assert all(question in bank for question in session)


def test_sample_does_not_mutate_bank(large_bank) -> None:
    snapshot = list(large_bank)

    sample_session(large_bank, rng=random.Random(1))

    assert large_bank == snapshot


def test_sample_accepts_tuple_bank(large_bank) -> None:
    session = sample_session(tuple(large_bank), rng=random.Random(2))

    assert len(session) == SESSION_SIZE


def test_seeded_rng_is_reproducible(large_bank) -> None:
    first = sample_session(large_bank, rng=random.Random(42))
    second = sample_session(large_bank, rng=random.Random(42))

    assert first == second


def test_shared_rng_draws_fresh_permutations(large_bank) -> None:
    rng = random.Random(7)

    first = sample_session(large_bank, rng=rng)
    second = sample_session(large_bank, rng=rng)

    assert [q.id for q in first] != [q.id for q in second]


def test_option_order_is_preserved(large_bank) -> None:
    session = sample_session(large_bank, rng=random.Random(3))

    by_id = {question.id: question for question in large_bank}
    for question in session:
        assert question.options == by_id[question.id].options


def test_custom_size(large_bank) -> None:
    assert len(sample_session(large_bank, size=10, rng=random.Random(0))) == 10
    assert sample_session(large_bank, size=0) == []


def test_empty_bank_yields_empty_session() -> None:
    assert sample_session([]) == []


def test_every_question_can_lead_a_session() -> None:
    bank = parse_bank(banks.numbered_bank(3))
    rng = random.Random(11)

    leaders = {sample_session(bank, rng=rng)[0].id for _ in range(200)}

    assert leaders == {"q-0", "q-1", "q-2"}
