"""CLI entry point for playing a quiz in the terminal."""

from __future__ import annotations

import argparse
import asyncio
import functools
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from pic2quiz.cli_support import (
    CommandContext,
    CommandError,
    add_common_arguments,
    add_source_arguments,
    open_command,
    read_source,
)
from pic2quiz.generation import generate_quiz

from .engine import InvalidQuestion, Phase, PlaybackSession
from .session import run_playback
from .storage import load_quiz, save_quiz
from .view import QuizApp

AppRunner = Callable[[QuizApp], object]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pic2quiz play",
        description=(
            "Play a multiple-choice quiz one question at a time. The quiz "
            "comes from a saved JSON file or is generated from images/text."
        ),
    )
    add_source_arguments(parser)
    parser.add_argument(
        "--quiz",
        type=Path,
        help="Play a saved quiz (JSON array of question records).",
    )
    parser.add_argument(
        "--count",
        type=int,
        help="Number of questions to generate (defaults to [quiz] config).",
    )
    parser.add_argument(
        "--save",
        type=Path,
        help="Save the generated quiz as JSON before playing.",
    )
    parser.add_argument(
        "--tui",
        action="store_true",
        help="Play in the Textual interface instead of the Rich prompt loop.",
    )
    add_common_arguments(parser)
    return parser


def prepare_session(
    args: argparse.Namespace,
    context: CommandContext,
    *,
    session: Optional[PlaybackSession] = None,
) -> PlaybackSession:
    """Load or generate the quiz into a fresh session.

    Generation failures are not raised; they leave the session in
    ``ERROR`` (or ``NO_QUESTIONS`` for an empty reply).
    """
    session = session or PlaybackSession(
        logger=logging.getLogger("pic2quiz.playback")
    )
    if args.quiz is not None:
        if args.text or args.stdin or args.IMAGES:
            raise CommandError("--quiz cannot be combined with other sources.")
        try:
            quiz = load_quiz(Path(args.quiz).expanduser())
        except FileNotFoundError as exc:
            raise CommandError(f"Quiz file not found: {args.quiz}") from exc
        except InvalidQuestion as exc:
            raise CommandError(str(exc), exit_code=1) from exc
        session.load_quiz(quiz)
        return session

    count = args.count if args.count is not None else (
        context.config.quiz.number_of_questions
    )
    if args.stdin:
        raise CommandError(
            "--stdin cannot be used with play because answers are read from "
            "standard input. Use --text FILE instead."
        )
    if count <= 0:
        raise CommandError("--count must be a positive integer.")
    source = read_source(args, context)
    openai_cfg = context.config.openai
    generate = functools.partial(
        generate_quiz,
        client=context.client(),
        model=openai_cfg.chat_model,
        count=count,
        temperature=openai_cfg.temperature,
        max_tokens=openai_cfg.max_tokens,
    )
    asyncio.run(session.load(generate, source))
    return session


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Optional[Console] = None,
    run_app: Optional[AppRunner] = None,
) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    console = console or Console()

    try:
        context = open_command("play", args)
        session = prepare_session(args, context)
    except CommandError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return exc.exit_code

    state = session.state
    if args.save and state.phase is Phase.READY:
        target = save_quiz(args.save.expanduser(), state.quiz)
        context.logger.info("Saved quiz", extra={"path": str(target)})
        console.print(f"Saved quiz to {target}")

    if args.tui and state.phase is Phase.READY:
        app = QuizApp(session)
        (run_app or _run_app)(app)
        return 0

    result = run_playback(
        session, console, lambda: console.input("[bold green]>[/] ")
    )
    if result.exit_action in ("error", "empty", "interrupted"):
        return 1
    return 0


def _run_app(app: QuizApp) -> object:
    return app.run()


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
