"""Prompt assembly for quiz and reviewer generation.

Every public builder here is a pure function of its options so the exact
text sent to the model can be asserted in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

QUESTION_TYPES: Tuple[str, ...] = (
    "multiple-choice",
    "identification",
    "true-or-false",
    "matching",
    "short-answer",
    "essay",
    "fill-in-the-blank",
)
DIFFICULTIES: Tuple[str, ...] = ("easy", "medium", "hard")
SUGGESTED_COUNTS: Tuple[int, ...] = (3, 5, 10, 15, 20)

_QUESTION_TYPE_ALIASES = {"true-false": "true-or-false", "mcq": "multiple-choice"}

DETAIL_LEVEL_PROMPTS: Dict[str, str] = {
    "very-detailed": (
        "Create an extremely detailed and comprehensive reviewer that covers "
        "all aspects of the content with thorough explanations and examples"
    ),
    "thorough": (
        "Create a thorough reviewer that covers important concepts in detail "
        "with clear explanations"
    ),
    "medium": (
        "Create a balanced reviewer with moderate detail, focusing on key "
        "concepts and supporting points"
    ),
    "main-ideas": (
        "Focus only on the main ideas and core concepts, ignoring minor "
        "details"
    ),
    "concise": (
        "Create a concise, minimalist reviewer that captures only the "
        "absolute essential information"
    ),
}

FORMAT_PROMPTS: Dict[str, str] = {
    "bullet-points": (
        "Format the content as organized bullet points with clear "
        "hierarchical structure"
    ),
    "paragraphs": (
        "Format the content as well-structured paragraphs with clear "
        "transitions"
    ),
    "flashcards": (
        "Format the content as question/answer pairs suitable for flashcard "
        "studying"
    ),
    "mind-map": (
        "Format the content in a hierarchical structure similar to a mind "
        "map, with main concepts and supporting details"
    ),
    "summary": (
        "Format the content as a concise executive summary of the most "
        "important information"
    ),
    "terms-table": (
        "Format the content as a simple two-column table with the following "
        "structure:\n"
        "**Term** | **Definition / Example**\n"
        "- Each row should contain a term in the first column, and its "
        "definition (plus example if applicable) in the second column\n"
        "- Keep the formatting in clean markdown table format"
    ),
}

DEFAULT_DETAIL_LEVEL = "medium"
DEFAULT_FORMAT = "bullet-points"


@dataclass(frozen=True)
class QuizOptions:
    """User-selected settings for free-form quiz generation."""

    number_of_questions: int = 5
    question_type: str = "multiple-choice"
    difficulty: str = "medium"
    language: str = "English"
    instruction: Optional[str] = None

    def __post_init__(self) -> None:
        count = self.number_of_questions
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise ValueError("number_of_questions must be a positive integer")
        qtype = normalize_question_type(self.question_type)
        object.__setattr__(self, "question_type", qtype)
        difficulty = str(self.difficulty).strip().lower()
        if difficulty not in DIFFICULTIES:
            expected = ", ".join(DIFFICULTIES)
            raise ValueError(
                f"Unknown difficulty '{self.difficulty}'. Expected one of: "
                f"{expected}."
            )
        object.__setattr__(self, "difficulty", difficulty)
        language = str(self.language).strip()
        if not language:
            raise ValueError("language must be a non-empty string")
        object.__setattr__(self, "language", language)


@dataclass(frozen=True)
class ReviewerOptions:
    """User-selected settings for reviewer generation.

    Unknown detail levels and formats are kept as given; prompt assembly
    falls back to the defaults for them.
    """

    detail_level: str = DEFAULT_DETAIL_LEVEL
    format: str = DEFAULT_FORMAT
    language: str = "English"


def normalize_question_type(value: str) -> str:
    """Return the canonical question type name or raise ``ValueError``."""
    candidate = str(value).strip().lower().replace("_", "-").replace(" ", "-")
    candidate = _QUESTION_TYPE_ALIASES.get(candidate, candidate)
    if candidate not in QUESTION_TYPES:
        expected = ", ".join(QUESTION_TYPES)
        raise ValueError(
            f"Unknown question type '{value}'. Expected one of: {expected}."
        )
    return candidate


def build_quiz_system_prompt(options: QuizOptions) -> str:
    prompt = (
        "You are an AI-powered tutor that helps generate educational "
        "questions from images. You analyze the content of an image and "
        "create relevant test questions, making learning interactive and "
        f"engaging. Using {options.question_type} questions and "
        f"{options.difficulty} difficulty, You ensure they align with the "
        "subject matter to enhance understanding. Generate "
        f"{options.number_of_questions} questions. Put a number before each "
        "question. Give the answers at the end with explanation. use "
        f"{options.language} language"
    )
    instruction = (options.instruction or "").strip()
    if instruction:
        prompt += f"\n\nAdditional Instructions: {instruction}"
    return prompt


def build_reviewer_system_prompt(options: ReviewerOptions) -> str:
    detail = DETAIL_LEVEL_PROMPTS.get(
        options.detail_level, DETAIL_LEVEL_PROMPTS[DEFAULT_DETAIL_LEVEL]
    )
    layout = FORMAT_PROMPTS.get(options.format, FORMAT_PROMPTS[DEFAULT_FORMAT])
    return (
        "You are an AI-powered educational assistant that creates concise, "
        "effective study materials from text.\n\n"
        f"Detail Level: {detail}.\n"
        f"Format: {layout}.\n\n"
        "Create a comprehensive study reviewer based on the following "
        "content. Focus on organizing the information in a way that helps "
        "with learning and retention. If the content appears to be from a "
        "textbook, lecture notes, or educational material, structure the "
        "reviewer to highlight key concepts, definitions, theories, and "
        "examples.\n\n"
        f"Use the {options.language} language for the entire response.\n\n"
        "Start with a brief overview of what the content covers, then "
        "organize the main body of the reviewer according to the specified "
        "format. Make sure to maintain academic accuracy while making the "
        "content more accessible for studying.\n\n"
        "IMPORTANT FORMATTING INSTRUCTIONS:\n"
        "- DO NOT use horizontal rules/thematic breaks (---, ___, ***) in "
        "your response\n"
        "- DO NOT use HTML tags\n"
        "- Use headings (# Title), bold (**text**), and italic (*text*) for "
        "formatting\n"
        "- For lists, use proper markdown format with a space after the "
        "bullet point (- Item) or number (1. Item)\n"
        "- For tables, use simple markdown tables with | separators"
    )


def build_structured_quiz_prompt(source: str, count: int = 5) -> Tuple[str, str]:
    """Return ``(system, user)`` prompts asking for a JSON quiz array."""
    system = "You generate multiple-choice quizzes as strict JSON."
    user = (
        "Analyze the following study material.\n\n"
        f"Material:\n{source.strip()}\n\n"
        f"Based on this content, generate a quiz with {count} "
        "multiple-choice questions.\n"
        "Each question should have 4 options with exactly one correct "
        "answer.\n\n"
        "Return the result as a JSON array with this structure:\n"
        "[\n"
        "  {\n"
        '    "question": "Question text here",\n'
        '    "options": ["Option A", "Option B", "Option C", "Option D"],\n'
        '    "correctAnswer": 0\n'
        "  }\n"
        "]\n"
        "correctAnswer is the index of the correct option (0-3).\n\n"
        "Make sure the questions are directly related to the material. If "
        "the material doesn't contain enough recognizable content, return "
        "an empty array."
    )
    return system, user
