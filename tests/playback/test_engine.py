from __future__ import annotations

import asyncio
import itertools
import logging

import pytest

from pic2quiz.playback import engine
from pic2quiz.playback.engine import (
    Advance,
    InvalidQuestion,
    InvalidSelection,
    Outcome,
    Phase,
    PlaybackSession,
    PlaybackState,
    Question,
    QuizFailed,
    QuizLoaded,
    QuizRequested,
    Restart,
    SelectAnswer,
    classify_outcome,
    initial_state,
    make_quiz,
    transition,
)


def _quiz(size: int) -> tuple[Question, ...]:
    return tuple(
        Question(f"Q{i}?", ("a", "b", "c", "d"), i % 4) for i in range(size)
    )


def _ready(quiz, token: int = 1) -> PlaybackState:
    state = transition(initial_state(), QuizRequested(token))
    return transition(state, QuizLoaded(token, quiz))


def _play(state: PlaybackState, choices) -> PlaybackState:
    for choice in choices:
        state = transition(state, SelectAnswer(choice))
        state = transition(state, Advance())
    return state


def test_question_validates_fields() -> None:
    with pytest.raises(InvalidQuestion):
        Question("", ("a",), 0)
    with pytest.raises(InvalidQuestion):
        Question("Q", (), 0)
    with pytest.raises(InvalidQuestion):
        Question("Q", ("a", "b"), 2)
    with pytest.raises(InvalidQuestion):
        Question("Q", ("a", "b"), -1)
    with pytest.raises(InvalidQuestion):
        Question("Q", ("a", 3), 0)  # type: ignore[arg-type]
    with pytest.raises(InvalidQuestion):
        Question("Q", ("a", "b"), True)


def test_question_from_dict_accepts_wire_shape_and_aliases() -> None:
    wire = Question.from_dict(
        {"question": " Capital? ", "options": ["Paris", "Rome"], "correctAnswer": 0}
    )
    alias = Question.from_dict(
        {"prompt": "Capital?", "options": ("Paris", "Rome"), "correct_option_index": 0}
    )
    assert wire == alias
    assert wire.options == ("Paris", "Rome")
    assert wire.to_dict() == {
        "question": "Capital?",
        "options": ["Paris", "Rome"],
        "correctAnswer": 0,
    }


@pytest.mark.parametrize(
    "record",
    [
        "not a mapping",
        {"question": "Q", "options": "abc", "correctAnswer": 0},
        {"options": ["a"], "correctAnswer": 0},
        {"question": "Q", "options": ["a", "b"]},
        {"question": "Q", "options": ["a", "b"], "correctAnswer": "1"},
    ],
)
def test_question_from_dict_rejects_bad_records(record) -> None:
    with pytest.raises(InvalidQuestion):
        Question.from_dict(record)


def test_make_quiz_mixes_questions_and_records(records) -> None:
    existing = Question("Q?", ("x", "y"), 1)
    quiz = make_quiz([existing, records[0]])
    assert quiz[0] is existing
    assert quiz[1].prompt == records[0]["question"]


def test_initial_state_is_loading() -> None:
    state = initial_state()
    assert state.phase is Phase.LOADING
    assert state.quiz == ()
    assert state.current_question is None
    assert not state.in_progress


def test_loaded_non_empty_quiz_enters_ready() -> None:
    state = _ready(_quiz(3))
    assert state.phase is Phase.READY
    assert state.current_index == 0
    assert state.selected_option_index is None
    assert state.score == 0
    assert state.completed is False
    assert state.current_question == _quiz(3)[0]


def test_empty_quiz_is_no_questions_not_completed() -> None:
    state = _ready(())
    assert state.phase is Phase.NO_QUESTIONS
    assert state.completed is False
    assert state.total == 0
    with pytest.raises(ValueError):
        classify_outcome(state.score, state.total)


def test_failure_enters_error_with_message_and_no_playback_fields() -> None:
    state = transition(initial_state(), QuizRequested(1))
    state = transition(state, QuizFailed(1, "Network down"))
    assert state.phase is Phase.ERROR
    assert state.error == "Network down"
    assert state.quiz == ()
    assert state.score == 0
    assert state.current_question is None


def test_failure_with_blank_message_uses_default() -> None:
    state = transition(initial_state(), QuizFailed(0, "   "))
    assert state.phase is Phase.ERROR
    assert state.error == engine.DEFAULT_ERROR_MESSAGE


def test_select_reveals_and_scores_correct_answer() -> None:
    state = _ready(_quiz(2))
    revealed = transition(state, SelectAnswer(0))
    assert revealed.phase is Phase.ANSWER_REVEALED
    assert revealed.selected_option_index == 0
    assert revealed.score == 1


def test_select_wrong_answer_keeps_score() -> None:
    state = _ready(_quiz(2))
    revealed = transition(state, SelectAnswer(3))
    assert revealed.phase is Phase.ANSWER_REVEALED
    assert revealed.score == 0


def test_second_select_before_advance_is_noop() -> None:
    state = transition(_ready(_quiz(2)), SelectAnswer(0))
    again = transition(state, SelectAnswer(2))
    assert again is state
    # Out-of-range indexes are ignored too once an answer is revealed.
    assert transition(state, SelectAnswer(99)) is state


@pytest.mark.parametrize("index", [-1, 4, 10])
def test_out_of_range_selection_raises_and_leaves_state(index: int) -> None:
    state = _ready(_quiz(1))
    with pytest.raises(InvalidSelection):
        transition(state, SelectAnswer(index))
    assert state.phase is Phase.READY
    assert state.score == 0


def test_advance_without_selection_is_noop() -> None:
    state = _ready(_quiz(2))
    assert transition(state, Advance()) is state


def test_advance_moves_to_next_then_completes() -> None:
    state = transition(_ready(_quiz(2)), SelectAnswer(0))
    state = transition(state, Advance())
    assert state.phase is Phase.READY
    assert state.current_index == 1
    assert state.selected_option_index is None
    state = transition(state, SelectAnswer(1))
    assert state.is_last_question
    state = transition(state, Advance())
    assert state.phase is Phase.COMPLETED
    assert state.completed is True
    assert state.current_index == 1


def test_actions_in_completed_are_noops() -> None:
    state = _play(_ready(_quiz(1)), [0])
    assert transition(state, SelectAnswer(0)) is state
    assert transition(state, Advance()) is state


@pytest.mark.parametrize("size", [1, 2, 5, 10])
def test_all_correct_answers_give_perfect(size: int) -> None:
    quiz = _quiz(size)
    state = _play(_ready(quiz), [q.correct_option_index for q in quiz])
    assert state.completed
    assert state.score == size
    assert classify_outcome(state.score, state.total) is Outcome.PERFECT


@pytest.mark.parametrize("seed", range(6))
def test_score_counts_correct_selections(seed: int) -> None:
    quiz = _quiz(7)
    choices = [(seed * 3 + i * seed) % 4 for i in range(len(quiz))]
    state = _play(_ready(quiz), choices)
    expected = sum(
        1 for q, choice in zip(quiz, choices) if choice == q.correct_option_index
    )
    assert state.score == expected
    assert 0 <= state.score <= len(quiz)


def test_score_never_decreases_during_attempt() -> None:
    quiz = _quiz(4)
    state = _ready(quiz)
    previous = 0
    for choice in (0, 0, 2, 1):
        state = transition(state, SelectAnswer(choice))
        assert state.score >= previous
        previous = state.score
        state = transition(state, Advance())


@pytest.mark.parametrize(
    "choices",
    [[], [0], [0, 1]],
)
def test_restart_resets_progress_and_keeps_quiz(choices) -> None:
    quiz = _quiz(2)
    state = _ready(quiz)
    for choice in choices:
        state = transition(state, SelectAnswer(choice))
        state = transition(state, Advance())
    state = transition(state, SelectAnswer(0))
    restarted = transition(state, Restart())
    assert restarted.phase is Phase.READY
    assert restarted.quiz == quiz
    assert restarted.current_index == 0
    assert restarted.score == 0
    assert restarted.selected_option_index is None
    assert restarted.completed is False


@pytest.mark.parametrize(
    "state",
    [
        initial_state(3),
        PlaybackState(phase=Phase.ERROR, error="boom", request_token=3),
        PlaybackState(phase=Phase.NO_QUESTIONS, request_token=3),
    ],
)
def test_restart_without_quiz_restarts_whole_flow(state) -> None:
    restarted = transition(state, Restart())
    assert restarted == initial_state(3)
    assert restarted.current_index == 0
    assert restarted.score == 0
    assert restarted.selected_option_index is None
    assert restarted.completed is False


def test_two_question_scenario_passes_at_exact_half() -> None:
    quiz = make_quiz(
        [
            {
                "question": "Capital of France?",
                "options": ["Paris", "Rome", "Berlin", "Madrid"],
                "correctAnswer": 0,
            },
            {"question": "2+2?", "options": ["3", "4", "5", "6"], "correctAnswer": 1},
        ]
    )
    session = PlaybackSession()
    session.load_quiz(quiz)

    assert session.select_answer(0).score == 1
    assert session.advance().current_index == 1
    assert session.select_answer(2).score == 1
    final = session.advance()
    assert final.completed is True
    assert final.score == 1
    assert session.outcome() is Outcome.PASS


@pytest.mark.parametrize(
    ("score", "total", "expected"),
    [
        (5, 5, Outcome.PERFECT),
        (1, 1, Outcome.PERFECT),
        (4, 5, Outcome.PASS),
        (3, 6, Outcome.PASS),
        (2, 5, Outcome.FAIL),
        (0, 1, Outcome.FAIL),
    ],
)
def test_classify_outcome_tiers(score: int, total: int, expected: Outcome) -> None:
    assert classify_outcome(score, total) is expected


@pytest.mark.parametrize(("score", "total"), [(0, 0), (1, 0), (-1, 3), (4, 3)])
def test_classify_outcome_rejects_impossible_scores(score: int, total: int) -> None:
    with pytest.raises(ValueError):
        classify_outcome(score, total)


def test_transition_rejects_unknown_action() -> None:
    with pytest.raises(TypeError):
        transition(initial_state(), object())  # type: ignore[arg-type]


def test_stale_load_results_are_ignored_by_reducer() -> None:
    state = transition(initial_state(), QuizRequested(2))
    assert transition(state, QuizLoaded(1, _quiz(1))) is state
    assert transition(state, QuizFailed(1, "late")) is state


def test_load_results_outside_loading_are_ignored() -> None:
    state = _ready(_quiz(1), token=4)
    assert transition(state, QuizLoaded(4, _quiz(2))) is state
    assert transition(state, QuizFailed(4, "late")) is state


def test_session_tokens_are_monotonic_and_guard_stale_results() -> None:
    session = PlaybackSession()
    first = session.begin_load()
    second = session.begin_load()
    assert second > first

    assert session.resolve(first, _quiz(3)) is False
    assert session.fail(first, "stale") is False
    assert session.state.phase is Phase.LOADING

    assert session.resolve(second, _quiz(2)) is True
    assert session.state.phase is Phase.READY
    assert session.state.total == 2


def test_session_outcome_only_after_completion() -> None:
    session = PlaybackSession()
    session.load_quiz(_quiz(1))
    assert session.outcome() is None
    session.select_answer(3)
    session.advance()
    assert session.outcome() is Outcome.FAIL


def test_async_load_with_coroutine_generator() -> None:
    session = PlaybackSession()

    async def generate(source: str):
        assert source == "notes"
        return [
            {"question": "Q?", "options": ["a", "b"], "correctAnswer": 1},
        ]

    state = asyncio.run(session.load(generate, "notes"))
    assert state.phase is Phase.READY
    assert state.quiz[0].correct_option_index == 1


def test_async_load_runs_blocking_generator_in_thread() -> None:
    session = PlaybackSession()
    state = asyncio.run(session.load(lambda source: (), "notes"))
    assert state.phase is Phase.NO_QUESTIONS


def test_async_load_failure_enters_error_state() -> None:
    session = PlaybackSession()

    def generate(_source: str):
        raise ConnectionError("network unreachable")

    state = asyncio.run(session.load(generate, "notes"))
    assert state.phase is Phase.ERROR
    assert state.error
    assert state.quiz == ()


def test_async_load_invalid_records_enter_error_state() -> None:
    session = PlaybackSession()
    state = asyncio.run(
        session.load(lambda _s: [{"question": "Q", "options": []}], "x")
    )
    assert state.phase is Phase.ERROR


def test_superseded_async_load_does_not_overwrite_newer_result() -> None:
    session = PlaybackSession()
    order = itertools.count()

    async def slow(_source: str):
        await asyncio.sleep(0.05)
        next(order)
        return _quiz(5)

    async def fast(_source: str):
        return _quiz(2)

    async def scenario() -> None:
        stale = asyncio.create_task(session.load(slow, "old"))
        await asyncio.sleep(0)
        await session.load(fast, "new")
        await stale

    asyncio.run(scenario())
    assert next(order) == 1
    assert session.state.phase is Phase.READY
    assert session.state.total == 2


class _AsyncCallable:
    def __init__(self, records) -> None:
        self.records = records
        self.sources: list[str] = []

    async def __call__(self, source: str):
        self.sources.append(source)
        await asyncio.sleep(0)
        return self.records


def test_async_load_awaits_async_callable_objects(records) -> None:
    session = PlaybackSession()
    generate = _AsyncCallable(records[:2])

    state = asyncio.run(session.load(generate, "notes"))

    assert generate.sources == ["notes"]
    assert state.phase is Phase.READY
    assert state.total == 2


def test_async_load_awaits_coroutine_returned_by_plain_callable(records) -> None:
    session = PlaybackSession()

    async def fetch(source: str):
        return records[:3]

    state = asyncio.run(session.load(lambda source: fetch(source), "notes"))

    assert state.phase is Phase.READY
    assert state.total == 3


def test_superseded_failure_is_not_logged_as_error(caplog) -> None:
    session = PlaybackSession(logger=logging.getLogger("pic2quiz.test_stale"))

    async def broken(_source: str):
        await asyncio.sleep(0.05)
        raise ConnectionError("late failure")

    async def fast(_source: str):
        return _quiz(2)

    async def scenario() -> None:
        stale = asyncio.create_task(session.load(broken, "old"))
        await asyncio.sleep(0)
        await session.load(fast, "new")
        await stale

    with caplog.at_level(logging.INFO, logger="pic2quiz.test_stale"):
        asyncio.run(scenario())

    assert session.state.phase is Phase.READY
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert "Ignoring superseded quiz failure" in caplog.messages
