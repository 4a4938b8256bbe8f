"""Quiz and reviewer generation through the OpenAI chat API."""

from .prompts import (
    DETAIL_LEVEL_PROMPTS,
    DIFFICULTIES,
    FORMAT_PROMPTS,
    QUESTION_TYPES,
    QuizOptions,
    ReviewerOptions,
    build_quiz_system_prompt,
    build_reviewer_system_prompt,
    build_structured_quiz_prompt,
    normalize_question_type,
)
from .service import (
    DEFAULT_MODEL,
    GenerationFailed,
    generate_quiz,
    generate_quiz_text,
    generate_reviewer,
)

__all__ = [
    "DETAIL_LEVEL_PROMPTS",
    "DIFFICULTIES",
    "FORMAT_PROMPTS",
    "QUESTION_TYPES",
    "QuizOptions",
    "ReviewerOptions",
    "build_quiz_system_prompt",
    "build_reviewer_system_prompt",
    "build_structured_quiz_prompt",
    "normalize_question_type",
    "DEFAULT_MODEL",
    "GenerationFailed",
    "generate_quiz",
    "generate_quiz_text",
    "generate_reviewer",
]
