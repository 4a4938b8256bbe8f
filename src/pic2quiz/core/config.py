"""TOML helpers behind ``pic2quiz.toml`` loading and ``init --write-config``."""

from __future__ import annotations

import copy
import tomllib
from pathlib import Path
from typing import Any, Mapping

__all__ = [
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
]


class TomlConfigError(RuntimeError):
    """Raised when a TOML file cannot be read, parsed or validated."""


def load_toml(path: Path) -> dict[str, Any]:
    try:
        raw = Path(path).read_bytes()
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    try:
        return tomllib.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise TomlConfigError(f"Failed to parse {path}: {exc}") from exc


def merge_defaults(
    defaults: Mapping[str, Any], override: Mapping[str, Any]
) -> dict[str, Any]:
    """Return a copy of ``defaults`` with ``override`` applied.

    Keys missing from ``defaults`` are rejected, tables can only be replaced
    by tables and plain values only by plain values.
    """

    merged = copy.deepcopy(dict(defaults))
    _merge_into(merged, override, prefix="")
    return merged


def _merge_into(
    target: dict[str, Any], override: Mapping[str, Any], *, prefix: str
) -> None:
    for key, value in override.items():
        dotted = prefix + key
        if key not in target:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        current = target[key]
        if isinstance(current, dict):
            if not isinstance(value, Mapping):
                raise TomlConfigError(
                    f"'{dotted}' must be a table, not {type(value).__name__}."
                )
            _merge_into(current, value, prefix=f"{dotted}.")
        elif isinstance(value, Mapping):
            raise TomlConfigError(f"'{dotted}' must be a value, not a table.")
        else:
            target[key] = value


def write_toml_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Write ``template`` to ``path`` after checking that it parses."""

    target = Path(path).expanduser()
    if target.exists() and not overwrite:
        raise TomlConfigError(
            f"Config already exists: {target} (pass --force to overwrite)"
        )
    try:
        tomllib.loads(template)
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Template is not valid TOML: {exc}") from exc
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(template, encoding="utf-8")
    try:
        target.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return target
