"""Read and write quizzes as JSON arrays of question records."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .engine import InvalidQuestion, Question, Quiz, make_quiz


def quiz_to_records(quiz: Iterable[Question]) -> List[Dict[str, Any]]:
    return [question.to_dict() for question in quiz]


def quiz_from_records(records: Any) -> Quiz:
    if not isinstance(records, list):
        raise InvalidQuestion("quiz data must be a JSON array")
    return make_quiz(records)


def save_quiz(path: Path, quiz: Iterable[Question]) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fh:
        json.dump(quiz_to_records(quiz), fh, ensure_ascii=False, indent=2)
        fh.write("\n")
    return target


def load_quiz(path: Path) -> Quiz:
    """Load a quiz file, raising :class:`InvalidQuestion` on bad content."""
    with Path(path).open("r", encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise InvalidQuestion(f"{path} is not valid JSON: {exc}") from exc
    return quiz_from_records(data)
