"""Unified CLI entry point for pic2quiz."""

from __future__ import annotations

import inspect
import sys
from contextlib import contextmanager
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Callable, Iterator, List, Mapping, Optional, Sequence


CommandHandler = Callable[[Sequence[str]], int]


@dataclass(frozen=True)
class CommandSpec:
    """Represents a pic2quiz subcommand."""

    name: str
    summary: str
    handler: Optional[CommandHandler] = None
    is_tui: bool = False


def _module_handler(module_name: str, func_name: str, prog_name: str):
    def handler(argv: Sequence[str]) -> int:
        return _run_module_command(module_name, func_name, prog_name, argv)

    return handler


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="init",
        summary="Bootstrap the pic2quiz workspace (and optionally its config).",
        handler=_module_handler(
            "pic2quiz.workspace.cli", "main", "pic2quiz init"
        ),
    ),
    CommandSpec(
        name="ocr",
        summary="Extract text from images in the order given.",
        handler=_module_handler("pic2quiz.ocr.cli", "main", "pic2quiz ocr"),
    ),
    CommandSpec(
        name="quiz",
        summary="Generate a quiz with answers from images or text.",
        handler=_module_handler(
            "pic2quiz.generation.cli", "quiz_main", "pic2quiz quiz"
        ),
    ),
    CommandSpec(
        name="reviewer",
        summary="Generate a study reviewer from images or text.",
        handler=_module_handler(
            "pic2quiz.generation.cli", "reviewer_main", "pic2quiz reviewer"
        ),
    ),
    CommandSpec(
        name="play",
        summary="Play a multiple-choice quiz one question at a time.",
        is_tui=True,
        handler=_module_handler(
            "pic2quiz.playback.cli", "main", "pic2quiz play"
        ),
    ),
    CommandSpec(
        name="upscale",
        summary="Create an enhanced variation of an image.",
        handler=_module_handler("pic2quiz.upscale", "main", "pic2quiz upscale"),
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_command_table() -> str:
    """Return the aligned ``name  summary`` listing used by help output."""

    width = max(len(name) for name in COMMANDS)
    rows = [
        "  {0}  {1}{2}".format(
            spec.name.ljust(width), spec.summary, " (TUI)" if spec.is_tui else ""
        )
        for spec in _COMMAND_SPECS
    ]
    return "\n".join(["Available commands:", *rows])


def format_usage() -> str:
    return "\n".join(
        [
            "Usage: pic2quiz <command> [args...]",
            "Run `pic2quiz list` for commands or `pic2quiz help <name>` "
            "for details.",
            "",
            format_command_table(),
        ]
    )


def _out(text: str) -> None:
    sys.stdout.write(text + "\n")


def _err(text: str) -> None:
    sys.stderr.write(text + "\n")


def _unknown(name: str) -> int:
    _err(f"Unknown command '{name}'.")
    _err(format_command_table())
    return 2


def _show_version(_argv: Sequence[str]) -> int:
    try:
        _out(metadata.version("pic2quiz"))
    except metadata.PackageNotFoundError:
        _out("unknown")
    return 0


def _show_help(argv: Sequence[str]) -> int:
    if not argv:
        _out(format_usage())
        return 0
    spec = COMMANDS.get(argv[0])
    if spec is None:
        return _unknown(argv[0])
    _out(f"{spec.name}: {spec.summary}")
    _out(f"Run `pic2quiz {spec.name} --help` for CLI-specific options.")
    return 0


def _show_list(_argv: Sequence[str]) -> int:
    _out(format_command_table())
    return 0


_BUILTINS: Mapping[str, CommandHandler] = {
    "-h": lambda _argv: _show_help(()),
    "--help": lambda _argv: _show_help(()),
    "help": _show_help,
    "list": _show_list,
    "version": _show_version,
    "--version": _show_version,
    "-V": _show_version,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _out(format_usage())
        return 2

    head, tail = args[0], args[1:]
    builtin = _BUILTINS.get(head)
    if builtin is not None:
        return builtin(tail)

    spec = COMMANDS.get(head)
    if spec is None or spec.handler is None:
        return _unknown(head)
    return spec.handler(tail)


@contextmanager
def _program_argv(prog_name: str, args: List[str]) -> Iterator[None]:
    saved = sys.argv
    sys.argv = [prog_name, *args]
    try:
        yield
    finally:
        sys.argv = saved


def _run_module_command(
    module_name: str,
    func_name: str,
    prog_name: str,
    argv: Sequence[str],
) -> int:
    """Import ``module_name`` lazily and run ``func_name`` as ``prog_name``.

    Entry points may take the argument list or nothing at all; a
    ``SystemExit`` raised by argparse becomes the returned exit code.
    """
    target = getattr(import_module(module_name), func_name)
    args = list(argv)
    with _program_argv(prog_name, args):
        try:
            result = target(args) if _accepts_argv(target) else target()
        except SystemExit as exc:
            return _exit_code(exc.code)
    return result if isinstance(result, int) else 0


def _accepts_argv(func: Callable[..., object]) -> bool:
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False
    positional = {
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
        inspect.Parameter.VAR_POSITIONAL,
    }
    return any(param.kind in positional for param in params)


def _exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    _err(str(code))
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
