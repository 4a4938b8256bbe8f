"""Workspace bootstrap helpers for pic2quiz commands."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping


WORKSPACE_ENV = "PIC2QUIZ_DATA_HOME"
DEFAULT_WORKSPACE = Path.home() / ".pic2quiz-data"

_SUBDIRS = {
    "config": "config",
    "logs": "logs",
    "quizzes": "quizzes",
    "exports": "exports",
}


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved workspace paths and creation metadata."""

    home: Path
    directories: Mapping[str, Path]
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise KeyError(f"Unknown workspace directory '{key}'.") from exc

    def items(self) -> tuple[tuple[str, Path], ...]:
        """Return a tuple of directory name/path pairs."""

        return tuple(self.directories.items())


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Ensure the workspace exists and return its layout.

    ``path`` wins over ``PIC2QUIZ_DATA_HOME``, which wins over
    ``~/.pic2quiz-data``. When the default location is not writable the
    layout falls back to a directory under the system temp dir; explicit
    locations never fall back.
    """

    env_map = os.environ if env is None else env
    base, explicit = _resolve_base(env_map, override=path)

    candidates = [base]
    if create and not explicit:
        fallback = Path(tempfile.gettempdir()) / "pic2quiz-data"
        if fallback != base:
            candidates.append(fallback)

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            return _materialize_layout(candidate, create=create)
        except PermissionError as exc:
            last_error = exc
    raise WorkspaceError(
        "Unable to prepare workspace at {0}".format(base)
    ) from last_error


def _resolve_base(
    env: Mapping[str, str], *, override: Path | None
) -> tuple[Path, bool]:
    if override is not None:
        target, explicit = override, True
    else:
        custom = (env.get(WORKSPACE_ENV) or "").strip()
        if custom:
            target, explicit = Path(custom), True
        else:
            target, explicit = DEFAULT_WORKSPACE, False
    target = target.expanduser()
    try:
        return target.resolve(), explicit
    except FileNotFoundError:
        return target.absolute(), explicit


def _materialize_layout(base: Path, *, create: bool) -> WorkspaceLayout:
    targets = {key: base / name for key, name in _SUBDIRS.items()}
    for key, target in (("home", base), *targets.items()):
        if target.exists() and not target.is_dir():
            raise WorkspaceError(
                f"Workspace entry '{key}' is not a directory: {target}"
            )

    created = {"home": False, **{key: False for key in targets}}
    if create:
        created["home"] = _ensure_dir(base)
        for key, target in targets.items():
            created[key] = _ensure_dir(target)

    return WorkspaceLayout(
        home=base,
        directories=MappingProxyType(targets),
        created=MappingProxyType(created),
    )


def _ensure_dir(path: Path) -> bool:
    """Create ``path`` as a private directory; report whether it is new."""
    if path.is_dir():
        return False
    path.mkdir(mode=0o700, parents=True)
    return True
