"""Chat-completion calls that turn study material into quizzes and reviewers."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional

from ..playback.engine import InvalidQuestion, Question, Quiz
from .prompts import (
    QuizOptions,
    ReviewerOptions,
    build_quiz_system_prompt,
    build_reviewer_system_prompt,
    build_structured_quiz_prompt,
)

DEFAULT_MODEL = "gpt-4o-mini"

_logger = logging.getLogger(__name__)


class GenerationFailed(RuntimeError):
    """Raised when the completion endpoint errors or returns nothing usable."""


def _require_content(content: str) -> str:
    text = (content or "").strip()
    if not text:
        raise ValueError("Please provide some content to generate from.")
    return text


def _token_params(model: str, max_tokens: int) -> Dict[str, int]:
    if "gpt-5" in model:
        return {"max_completion_tokens": max_tokens}
    return {"max_tokens": max_tokens}


def _chat_completion_content(
    client: Any,
    *,
    model: str,
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    max_tokens: int,
) -> str:
    try:
        resp = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            **_token_params(model, max_tokens),
        )
    except Exception as exc:
        raise GenerationFailed(f"Completion request failed: {exc}") from exc
    try:
        raw_content = resp.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as exc:
        raise GenerationFailed("Completion response had no choices") from exc
    return (raw_content or "").strip()


def _extract_json_array(content: str) -> Optional[List[Any]]:
    """Return the JSON array in ``content`` or ``None`` when there is none."""
    if not content:
        return None
    fenced = re.search(r"```(?:json)?\s*(.+?)```", content, re.DOTALL)
    payload = fenced.group(1) if fenced else content
    try:
        data = json.loads(payload)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, list) else None


def _build_questions(records: List[Any], *, limit: int) -> List[Question]:
    questions: List[Question] = []
    for position, record in enumerate(records):
        if len(questions) >= limit:
            break
        try:
            questions.append(Question.from_dict(record))
        except InvalidQuestion as exc:
            _logger.warning(
                "Skipping invalid question record",
                extra={"position": position, "reason": str(exc)},
            )
    return questions


def generate_quiz(
    source: str,
    *,
    client: Any,
    model: str = DEFAULT_MODEL,
    count: int = 5,
    temperature: float = 0.2,
    max_tokens: int = 2048,
) -> Quiz:
    """Ask the model for a multiple-choice quiz over ``source``.

    Transport failures raise :class:`GenerationFailed`. A reply that is not a
    JSON array is treated as "no questions" and yields an empty quiz, as do
    replies where every record is invalid. At most ``count`` questions are
    kept.
    """
    text = _require_content(source)
    if count <= 0:
        raise ValueError("count must be a positive integer")
    system_prompt, user_prompt = build_structured_quiz_prompt(text, count)
    _logger.info(
        "Requesting structured quiz",
        extra={"model": model, "count": count, "source_chars": len(text)},
    )
    content = _chat_completion_content(
        client,
        model=model,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    records = _extract_json_array(content)
    if records is None:
        _logger.warning(
            "Model reply was not a JSON array", extra={"reply_chars": len(content)}
        )
        return ()
    return tuple(_build_questions(records, limit=count))


def generate_quiz_text(
    content: str,
    options: QuizOptions,
    *,
    client: Any,
    model: str = DEFAULT_MODEL,
    temperature: float = 0.2,
    max_tokens: int = 2048,
) -> str:
    """Generate a numbered, free-form quiz with answers at the end."""
    text = _require_content(content)
    _logger.info(
        "Requesting quiz text",
        extra={
            "model": model,
            "question_type": options.question_type,
            "difficulty": options.difficulty,
            "count": options.number_of_questions,
            "language": options.language,
        },
    )
    result = _chat_completion_content(
        client,
        model=model,
        system_prompt=build_quiz_system_prompt(options),
        user_prompt=text,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    if not result:
        raise GenerationFailed("Failed to generate quiz: empty response")
    return result


def generate_reviewer(
    content: str,
    options: ReviewerOptions,
    *,
    client: Any,
    model: str = DEFAULT_MODEL,
    temperature: float = 0.2,
    max_tokens: int = 4096,
) -> str:
    """Generate a Markdown study reviewer for ``content``."""
    text = _require_content(content)
    _logger.info(
        "Requesting reviewer",
        extra={
            "model": model,
            "detail_level": options.detail_level,
            "format": options.format,
            "language": options.language,
        },
    )
    result = _chat_completion_content(
        client,
        model=model,
        system_prompt=build_reviewer_system_prompt(options),
        user_prompt=text,
        temperature=temperature,
        max_tokens=max_tokens,
    )
    if not result:
        raise GenerationFailed("Failed to generate reviewer content")
    return result
