"""CLI entry point for bootstrapping the pic2quiz workspace."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from pic2quiz import config as config_mod
from pic2quiz.core import workspace as workspace_mod


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pic2quiz init",
        description=(
            "Create the pic2quiz workspace and its config, logs, quizzes and "
            "exports subdirectories."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Override the workspace root (defaults to PIC2QUIZ_DATA_HOME "
            "or ~/.pic2quiz-data)."
        ),
    )
    parser.add_argument(
        "--write-config",
        action="store_true",
        help="Also write the default pic2quiz.toml into the config directory.",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing pic2quiz.toml when used with --write-config.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )
    return parser


def _summary(
    layout: workspace_mod.WorkspaceLayout, config_path: Optional[Path]
) -> List[str]:
    def status(key: str) -> str:
        return "created" if layout.created.get(key) else "exists"

    width = max(len(name) for name, _ in layout.items())
    lines = [f"Workspace ready at {layout.home} ({status('home')})"]
    lines.append("Subdirectories:")
    lines.extend(
        f"  {name:<{width}}  {directory} ({status(name)})"
        for name, directory in layout.items()
    )
    if config_path is not None:
        lines.append(f"Config written to {config_path}")
    return lines


def _fail(message: object, code: int) -> int:
    sys.stderr.write(f"Error: {message}\n")
    return code


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(None if argv is None else list(argv))

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        return _fail(exc, 1)

    config_path: Optional[Path] = None
    if args.write_config:
        target = config_mod.default_config_path(layout)
        try:
            config_path = config_mod.write_default_config(
                target, overwrite=args.force
            )
        except config_mod.ConfigError as exc:
            return _fail(exc, 2)

    if not args.quiet:
        sys.stdout.write("\n".join(_summary(layout, config_path)) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
