"""Rich-powered playback loop over a :class:`PlaybackSession`.

The loop renders the current state, reads one command per turn and feeds it
to the session. All quiz rules live in :mod:`pic2quiz.playback.engine`; this
module only decides what to draw and which action a command maps to.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .engine import (
    InvalidSelection,
    Outcome,
    Phase,
    PlaybackSession,
    PlaybackState,
)

InputProvider = Callable[[], str]
ExitAction = Literal["completed", "quit", "interrupted", "error", "empty"]

OPTION_KEYS = string.ascii_uppercase

OUTCOME_MESSAGES = {
    Outcome.PERFECT: "Perfect score! Amazing job!",
    Outcome.PASS: "Good job! You passed the quiz.",
    Outcome.FAIL: "Better luck next time!",
}

NO_QUESTIONS_ADVICE = (
    "The source didn't produce any quiz questions. Try a different image "
    "or text with more readable content."
)


@dataclass(frozen=True)
class Command:
    """Normalized user command parsed from console input."""

    type: Literal["select", "next", "restart", "quit"]
    option_index: int | None = None


@dataclass(frozen=True)
class PlaybackResult:
    """Return value from ``run_playback``."""

    phase: Phase
    score: int
    total: int
    outcome: Outcome | None
    exit_action: ExitAction


def parse_command(raw: str | None) -> Command | None:
    """Parse raw user input into a structured command."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return Command("next")
    if lowered in {"r", "restart"}:
        return Command("restart")
    if lowered in {"q", "quit", "exit"}:
        return Command("quit")
    if len(text) == 1 and text.upper() in OPTION_KEYS:
        return Command("select", OPTION_KEYS.index(text.upper()))
    return None


def option_key(index: int) -> str:
    return OPTION_KEYS[index]


def run_playback(
    session: PlaybackSession,
    console: Console,
    input_provider: InputProvider,
) -> PlaybackResult:
    """Play the session's loaded quiz until completion or quit.

    Sessions that ended loading in ``ERROR`` or ``NO_QUESTIONS`` render
    their panel and return immediately without reading input.
    """

    state = session.state
    if state.phase is Phase.ERROR:
        render_error(console, state)
        return _result(session, "error")
    if state.phase is Phase.NO_QUESTIONS:
        render_no_questions(console)
        return _result(session, "empty")
    if state.phase is Phase.LOADING:
        raise RuntimeError("run_playback needs a session that finished loading")

    while True:
        state = session.state
        if state.phase is Phase.COMPLETED:
            render_completion(console, session)
        else:
            render_question(console, state)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            if session.state.phase is Phase.COMPLETED:
                return _result(session, "completed")
            console.print("\n[bold yellow]Session interrupted.[/]")
            return _result(session, "interrupted")
        command = parse_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            if session.state.phase is Phase.COMPLETED:
                return _result(session, "completed")
            console.print("\n[bold yellow]Ending quiz early.[/]")
            return _result(session, "quit")
        _apply_command(command, session, console)


def _apply_command(
    command: Command, session: PlaybackSession, console: Console
) -> None:
    state = session.state
    if command.type == "select" and command.option_index is not None:
        if state.phase is not Phase.READY:
            console.print("[yellow]Press n to continue.[/]")
            return
        try:
            session.select_answer(command.option_index)
        except InvalidSelection:
            console.print(
                "[red]'%s' is not a valid choice for this question.[/red]"
                % option_key(command.option_index)
            )
        return
    if command.type == "next":
        if state.phase is Phase.READY:
            console.print("[yellow]Pick an answer first.[/]")
            return
        session.advance()
        return
    if command.type == "restart":
        session.restart()


def render_question(console: Console, state: PlaybackState) -> None:
    question = state.current_question
    if question is None:
        return
    header = Text.assemble(
        (f"Question {state.current_index + 1}", "bold cyan"),
        (f" of {state.total}", "dim"),
        ("  |  ", "dim"),
        (f"Score: {state.score}", "bold"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.prompt, style="bold"))

    revealed = state.phase is Phase.ANSWER_REVEALED
    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Option")
    for idx, option in enumerate(question.options):
        row_text = Text(option)
        if revealed and idx == question.correct_option_index:
            row_text.stylize("bold green")
        elif revealed and idx == state.selected_option_index:
            row_text.stylize("bold red")
        table.add_row(option_key(idx), row_text)
    console.print(table)

    if revealed:
        selected = state.selected_option_index
        if selected is not None and question.is_correct(selected):
            console.print(Text("Correct!", style="bold green"))
        else:
            answer = question.options[question.correct_option_index]
            console.print(
                Text(
                    "Incorrect. The correct answer is "
                    f"{option_key(question.correct_option_index)}) {answer}",
                    style="bold red",
                )
            )
        next_label = "finish" if state.is_last_question else "next question"
        hint = f"Commands: n ({next_label}), r (restart), q (quit)"
    else:
        keys = ", ".join(option_key(i) for i in range(len(question.options)))
        hint = f"Commands: choices [{keys}], r (restart), q (quit)"
    console.print(Text(hint, style="dim"))


def render_completion(console: Console, session: PlaybackSession) -> None:
    state = session.state
    outcome = session.outcome()
    console.print()
    console.rule(Text("Quiz Completed!", style="bold magenta"))
    summary = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD, expand=False)
    summary.add_column("Metric", style="bold")
    summary.add_column("Value", justify="right")
    summary.add_row("Your score", f"{state.score} out of {state.total}")
    console.print(summary)
    if outcome is not None:
        style = "green" if outcome is not Outcome.FAIL else "yellow"
        console.print(Text(OUTCOME_MESSAGES[outcome], style=f"bold {style}"))
    console.print(Text("Commands: r (try again), q (quit)", style="dim"))


def render_error(console: Console, state: PlaybackState) -> None:
    console.print(
        Panel(
            state.error or "",
            title="Error",
            border_style="red",
        )
    )


def render_no_questions(console: Console) -> None:
    console.print(
        Panel(
            NO_QUESTIONS_ADVICE,
            title="No Questions Generated",
            border_style="yellow",
        )
    )


def _result(session: PlaybackSession, exit_action: ExitAction) -> PlaybackResult:
    state = session.state
    return PlaybackResult(
        phase=state.phase,
        score=state.score,
        total=state.total,
        outcome=session.outcome(),
        exit_action=exit_action,
    )
