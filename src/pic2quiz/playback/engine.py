"""Quiz playback state machine.

The engine is a pure reducer: :func:`transition` takes a
:class:`PlaybackState` plus an action and returns the next state without
touching I/O. :class:`PlaybackSession` wraps the reducer for callers that
want a mutable handle, and owns the request epoch used to drop results from
superseded generation requests.

States and transitions::

    LOADING --QuizLoaded(non-empty)--> READY(0)
    LOADING --QuizLoaded(empty)------> NO_QUESTIONS
    LOADING --QuizFailed-------------> ERROR
    READY(i) --SelectAnswer----------> ANSWER_REVEALED(i)
    ANSWER_REVEALED(i) --Advance-----> READY(i + 1) | COMPLETED
    READY/ANSWER_REVEALED/COMPLETED --Restart--> READY(0)
    any --QuizRequested(token)-------> LOADING
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    Mapping,
    Optional,
    Tuple,
    Union,
)

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "Advance",
    "InvalidQuestion",
    "InvalidSelection",
    "Outcome",
    "Phase",
    "PlaybackSession",
    "PlaybackState",
    "Question",
    "Quiz",
    "QuizFailed",
    "QuizLoaded",
    "QuizRequested",
    "Restart",
    "SelectAnswer",
    "classify_outcome",
    "initial_state",
    "make_quiz",
    "transition",
]

DEFAULT_ERROR_MESSAGE = (
    "Failed to generate quiz. The source might not contain enough "
    "recognizable content."
)


class InvalidQuestion(ValueError):
    """Raised when a question record cannot be turned into a Question."""


class InvalidSelection(ValueError):
    """Raised when an option index is outside the current question."""


@dataclass(frozen=True)
class Question:
    """A prompt, its answer options and the index of the correct one."""

    prompt: str
    options: Tuple[str, ...]
    correct_option_index: int

    def __post_init__(self) -> None:
        if not isinstance(self.prompt, str) or not self.prompt.strip():
            raise InvalidQuestion("question prompt must be a non-empty string")
        options = tuple(self.options)
        if not options:
            raise InvalidQuestion("question must have at least one option")
        if not all(isinstance(option, str) for option in options):
            raise InvalidQuestion("question options must be strings")
        object.__setattr__(self, "options", options)
        index = self.correct_option_index
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidQuestion("correct option index must be an integer")
        if not 0 <= index < len(options):
            raise InvalidQuestion(
                f"correct option index {index} is outside 0..{len(options) - 1}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Question":
        """Build a question from the ``question/options/correctAnswer`` shape.

        ``prompt`` and ``correct_option_index`` are accepted as aliases.
        """
        if not isinstance(data, Mapping):
            raise InvalidQuestion("question record must be a mapping")
        prompt = data.get("question", data.get("prompt"))
        options = data.get("options")
        correct = data.get("correctAnswer", data.get("correct_option_index"))
        if not isinstance(options, (list, tuple)):
            raise InvalidQuestion("question options must be a list")
        if not isinstance(prompt, str):
            raise InvalidQuestion("question prompt must be a non-empty string")
        return cls(
            prompt=prompt.strip(),
            options=tuple(options),
            correct_option_index=correct,  # type: ignore[arg-type]
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.prompt,
            "options": list(self.options),
            "correctAnswer": self.correct_option_index,
        }

    def is_correct(self, option_index: int) -> bool:
        return option_index == self.correct_option_index


Quiz = Tuple[Question, ...]


def make_quiz(
    questions: Iterable[Union[Question, Mapping[str, Any]]],
) -> Quiz:
    """Freeze ``questions`` into a :data:`Quiz`, converting mappings."""
    return tuple(
        item if isinstance(item, Question) else Question.from_dict(item)
        for item in questions
    )


class Phase(Enum):
    LOADING = "loading"
    READY = "ready"
    ANSWER_REVEALED = "answer_revealed"
    COMPLETED = "completed"
    NO_QUESTIONS = "no_questions"
    ERROR = "error"


class Outcome(Enum):
    PERFECT = "perfect"
    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class PlaybackState:
    """Per-attempt playback state.

    ``quiz`` is empty outside ``READY``, ``ANSWER_REVEALED`` and
    ``COMPLETED``. ``error`` is only set in ``ERROR``.
    """

    phase: Phase = Phase.LOADING
    quiz: Quiz = ()
    current_index: int = 0
    selected_option_index: Optional[int] = None
    score: int = 0
    completed: bool = False
    error: Optional[str] = None
    request_token: int = 0

    @property
    def total(self) -> int:
        return len(self.quiz)

    @property
    def in_progress(self) -> bool:
        return self.phase in (Phase.READY, Phase.ANSWER_REVEALED)

    @property
    def current_question(self) -> Optional[Question]:
        if not self.quiz or self.phase not in (
            Phase.READY,
            Phase.ANSWER_REVEALED,
            Phase.COMPLETED,
        ):
            return None
        return self.quiz[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return bool(self.quiz) and self.current_index == len(self.quiz) - 1


@dataclass(frozen=True)
class QuizRequested:
    token: int


@dataclass(frozen=True)
class QuizLoaded:
    token: int
    quiz: Quiz


@dataclass(frozen=True)
class QuizFailed:
    token: int
    message: str = DEFAULT_ERROR_MESSAGE


@dataclass(frozen=True)
class SelectAnswer:
    option_index: int


@dataclass(frozen=True)
class Advance:
    pass


@dataclass(frozen=True)
class Restart:
    pass


Action = Union[QuizRequested, QuizLoaded, QuizFailed, SelectAnswer, Advance, Restart]


def initial_state(request_token: int = 0) -> PlaybackState:
    return PlaybackState(request_token=request_token)


def transition(state: PlaybackState, action: Action) -> PlaybackState:
    """Return the state that follows ``state`` after ``action``.

    Actions that do not apply to the current phase return ``state``
    unchanged. The only action that raises is :class:`SelectAnswer` with
    an out-of-range index while a question is awaiting an answer.
    """
    if isinstance(action, QuizRequested):
        return initial_state(action.token)
    if isinstance(action, QuizLoaded):
        return _apply_loaded(state, action)
    if isinstance(action, QuizFailed):
        return _apply_failed(state, action)
    if isinstance(action, SelectAnswer):
        return _apply_select(state, action.option_index)
    if isinstance(action, Advance):
        return _apply_advance(state)
    if isinstance(action, Restart):
        return _apply_restart(state)
    raise TypeError(f"Unsupported playback action: {action!r}")


def _is_current_load(state: PlaybackState, token: int) -> bool:
    return state.phase is Phase.LOADING and token == state.request_token


def _apply_loaded(state: PlaybackState, action: QuizLoaded) -> PlaybackState:
    if not _is_current_load(state, action.token):
        return state
    quiz = tuple(action.quiz)
    if not quiz:
        return PlaybackState(
            phase=Phase.NO_QUESTIONS, request_token=state.request_token
        )
    return PlaybackState(
        phase=Phase.READY, quiz=quiz, request_token=state.request_token
    )


def _apply_failed(state: PlaybackState, action: QuizFailed) -> PlaybackState:
    if not _is_current_load(state, action.token):
        return state
    message = (action.message or "").strip() or DEFAULT_ERROR_MESSAGE
    return PlaybackState(
        phase=Phase.ERROR, error=message, request_token=state.request_token
    )


def _apply_select(state: PlaybackState, option_index: int) -> PlaybackState:
    if state.phase is not Phase.READY:
        return state
    question = state.quiz[state.current_index]
    if (
        isinstance(option_index, bool)
        or not isinstance(option_index, int)
        or not 0 <= option_index < len(question.options)
    ):
        raise InvalidSelection(
            f"Option {option_index!r} is not valid for a question with "
            f"{len(question.options)} options."
        )
    gained = 1 if question.is_correct(option_index) else 0
    return replace(
        state,
        phase=Phase.ANSWER_REVEALED,
        selected_option_index=option_index,
        score=state.score + gained,
    )


def _apply_advance(state: PlaybackState) -> PlaybackState:
    if state.phase is not Phase.ANSWER_REVEALED:
        return state
    if state.current_index + 1 < len(state.quiz):
        return replace(
            state,
            phase=Phase.READY,
            current_index=state.current_index + 1,
            selected_option_index=None,
        )
    return replace(state, phase=Phase.COMPLETED, completed=True)


def _apply_restart(state: PlaybackState) -> PlaybackState:
    if state.quiz and state.phase in (
        Phase.READY,
        Phase.ANSWER_REVEALED,
        Phase.COMPLETED,
    ):
        return PlaybackState(
            phase=Phase.READY,
            quiz=state.quiz,
            request_token=state.request_token,
        )
    # Error/NoQuestions/Loading only restart the whole flow; the caller has
    # to request a new quiz.
    return initial_state(state.request_token)


def classify_outcome(score: int, total: int) -> Outcome:
    """Tier a final score. Exactly half counts as a pass."""
    if total <= 0:
        raise ValueError("cannot classify a quiz without questions")
    if not 0 <= score <= total:
        raise ValueError(f"score {score} is outside 0..{total}")
    if score == total:
        return Outcome.PERFECT
    if score * 2 >= total:
        return Outcome.PASS
    return Outcome.FAIL


Generator = Callable[[Any], Union[Iterable[Any], Awaitable[Iterable[Any]]]]


def _is_async_callable(func: Any) -> bool:
    return inspect.iscoroutinefunction(func) or inspect.iscoroutinefunction(
        getattr(func, "__call__", None)
    )


class PlaybackSession:
    """Mutable handle around one quiz attempt."""

    def __init__(self, *, logger: Optional[logging.Logger] = None) -> None:
        self._state = initial_state()
        self._epoch = itertools.count(1)
        self._logger = logger or logging.getLogger(__name__)

    @property
    def state(self) -> PlaybackState:
        return self._state

    def dispatch(self, action: Action) -> PlaybackState:
        before = self._state
        self._state = transition(before, action)
        if self._state is not before:
            self._logger.debug(
                "Playback transition",
                extra={
                    "action": type(action).__name__,
                    "from_phase": before.phase.value,
                    "to_phase": self._state.phase.value,
                    "index": self._state.current_index,
                    "score": self._state.score,
                },
            )
        return self._state

    def begin_load(self) -> int:
        """Start a new load cycle and return its request token."""
        token = next(self._epoch)
        self.dispatch(QuizRequested(token))
        return token

    def resolve(
        self,
        token: int,
        quiz: Iterable[Union[Question, Mapping[str, Any]]],
    ) -> bool:
        """Commit a loaded quiz. Returns ``False`` when ``token`` is stale."""
        if token != self._state.request_token:
            self._logger.info(
                "Ignoring superseded quiz result",
                extra={"token": token, "current": self._state.request_token},
            )
            return False
        before = self._state
        self.dispatch(QuizLoaded(token, make_quiz(quiz)))
        return self._state is not before

    def fail(self, token: int, message: str = DEFAULT_ERROR_MESSAGE) -> bool:
        if token != self._state.request_token:
            self._logger.info(
                "Ignoring superseded quiz failure",
                extra={"token": token, "current": self._state.request_token},
            )
            return False
        before = self._state
        self.dispatch(QuizFailed(token, message))
        return self._state is not before

    def load_quiz(
        self, quiz: Iterable[Union[Question, Mapping[str, Any]]]
    ) -> PlaybackState:
        """Load an already available quiz in one step."""
        self.resolve(self.begin_load(), quiz)
        return self._state

    async def load(self, generate: Generator, source: Any) -> PlaybackState:
        """Fetch a quiz through ``generate`` and commit it if still current.

        ``generate`` may be async or a blocking callable; the latter runs in
        a worker thread and may itself hand back an awaitable. A newer
        :meth:`load` or :meth:`begin_load` started while this one is pending
        wins.
        """
        token = self.begin_load()
        try:
            if _is_async_callable(generate):
                result = generate(source)
            else:
                result = await asyncio.to_thread(generate, source)
            if inspect.isawaitable(result):
                result = await result
            quiz = make_quiz(result)
        except Exception:
            if token == self._state.request_token:
                self._logger.exception(
                    "Quiz generation failed", extra={"token": token}
                )
            self.fail(token, DEFAULT_ERROR_MESSAGE)
            return self._state
        self.resolve(token, quiz)
        return self._state

    def select_answer(self, option_index: int) -> PlaybackState:
        return self.dispatch(SelectAnswer(option_index))

    def advance(self) -> PlaybackState:
        return self.dispatch(Advance())

    def restart(self) -> PlaybackState:
        return self.dispatch(Restart())

    def outcome(self) -> Optional[Outcome]:
        """Return the outcome tier once the quiz is completed."""
        if self._state.phase is not Phase.COMPLETED:
            return None
        return classify_outcome(self._state.score, self._state.total)
