from .engine import (
    DEFAULT_ERROR_MESSAGE,
    InvalidQuestion,
    InvalidSelection,
    Outcome,
    Phase,
    PlaybackSession,
    PlaybackState,
    Question,
    Quiz,
    classify_outcome,
    initial_state,
    make_quiz,
    transition,
)
from .storage import load_quiz, quiz_from_records, quiz_to_records, save_quiz
from .session import PlaybackResult, parse_command, run_playback
from .view import QuestionView, QuizApp

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "InvalidQuestion",
    "InvalidSelection",
    "Outcome",
    "Phase",
    "PlaybackSession",
    "PlaybackState",
    "Question",
    "Quiz",
    "classify_outcome",
    "initial_state",
    "make_quiz",
    "transition",
    "load_quiz",
    "quiz_from_records",
    "quiz_to_records",
    "save_quiz",
    "PlaybackResult",
    "parse_command",
    "run_playback",
    "QuestionView",
    "QuizApp",
]
