"""CLI entry points for free-form quiz and reviewer generation."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import Sequence

from pic2quiz.cli_support import (
    CommandContext,
    CommandError,
    add_common_arguments,
    add_source_arguments,
    open_command,
    read_source,
)
from pic2quiz.export import write_output

from .prompts import (
    DETAIL_LEVEL_PROMPTS,
    DIFFICULTIES,
    FORMAT_PROMPTS,
    QUESTION_TYPES,
    QuizOptions,
    ReviewerOptions,
)
from .service import GenerationFailed, generate_quiz_text, generate_reviewer


def build_quiz_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pic2quiz quiz",
        description=(
            "Generate a numbered quiz (answers at the end) from images or "
            "text. Unset options fall back to the [quiz] config table."
        ),
    )
    add_source_arguments(parser)
    parser.add_argument(
        "--count",
        type=int,
        help="Number of questions (3, 5, 10, 15 or 20 work well).",
    )
    parser.add_argument("--type", dest="question_type", choices=QUESTION_TYPES)
    parser.add_argument("--difficulty", choices=DIFFICULTIES)
    parser.add_argument("--language", help="Language to write the quiz in.")
    parser.add_argument(
        "--instruction",
        help="Additional instructions appended to the prompt.",
    )
    parser.add_argument(
        "--out",
        type=Path,
        help="Write the quiz to a file (.html renders the Markdown).",
    )
    add_common_arguments(parser)
    return parser


def build_reviewer_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pic2quiz reviewer",
        description=(
            "Generate a study reviewer from images or text. Unset options "
            "fall back to the [reviewer] config table."
        ),
    )
    add_source_arguments(parser)
    parser.add_argument("--detail", choices=tuple(DETAIL_LEVEL_PROMPTS))
    parser.add_argument(
        "--format", dest="output_format", choices=tuple(FORMAT_PROMPTS)
    )
    parser.add_argument("--language", help="Language to write the reviewer in.")
    parser.add_argument(
        "--out",
        type=Path,
        help="Write the reviewer to a file (.html renders the Markdown).",
    )
    add_common_arguments(parser)
    return parser


def quiz_options_from_args(
    args: argparse.Namespace, defaults: QuizOptions
) -> QuizOptions:
    changes = {
        "number_of_questions": args.count,
        "question_type": args.question_type,
        "difficulty": args.difficulty,
        "language": args.language,
        "instruction": args.instruction,
    }
    try:
        return dataclasses.replace(
            defaults,
            **{key: value for key, value in changes.items() if value is not None},
        )
    except ValueError as exc:
        raise CommandError(str(exc)) from exc


def reviewer_options_from_args(
    args: argparse.Namespace, defaults: ReviewerOptions
) -> ReviewerOptions:
    changes = {
        "detail_level": args.detail,
        "format": args.output_format,
        "language": args.language,
    }
    return dataclasses.replace(
        defaults,
        **{key: value for key, value in changes.items() if value is not None},
    )


def quiz_main(argv: Sequence[str] | None = None) -> int:
    parser = build_quiz_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        context = open_command("quiz", args)
        options = quiz_options_from_args(args, context.config.quiz)
        source = read_source(args, context)
        openai_cfg = context.config.openai
        result = generate_quiz_text(
            source,
            options,
            client=context.client(),
            model=openai_cfg.chat_model,
            temperature=openai_cfg.temperature,
            max_tokens=openai_cfg.max_tokens,
        )
    except CommandError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return exc.exit_code
    except (ValueError, GenerationFailed) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    return _emit(result, args.out, title="Quiz", context=context)


def reviewer_main(argv: Sequence[str] | None = None) -> int:
    parser = build_reviewer_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        context = open_command("reviewer", args)
        options = reviewer_options_from_args(args, context.config.reviewer)
        source = read_source(args, context)
        openai_cfg = context.config.openai
        result = generate_reviewer(
            source,
            options,
            client=context.client(),
            model=openai_cfg.chat_model,
            temperature=openai_cfg.temperature,
            max_tokens=openai_cfg.max_tokens,
        )
    except CommandError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return exc.exit_code
    except (ValueError, GenerationFailed) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    return _emit(result, args.out, title="Reviewer", context=context)


def _emit(
    text: str, out: Path | None, *, title: str, context: CommandContext
) -> int:
    if out is None:
        sys.stdout.write(text.rstrip("\n") + "\n")
        return 0
    target = write_output(out, text, title=title)
    context.logger.info(
        "Saved generated output", extra={"path": str(target), "kind": title}
    )
    sys.stdout.write(f"Saved {title.lower()} to {target}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(quiz_main())
