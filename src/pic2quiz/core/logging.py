"""Logging helpers shared across pic2quiz subcommands.

Every command writes JSON lines to ``<workspace>/logs/<command>.log``;
``--verbose`` additionally mirrors records to stderr through rich.
"""

from __future__ import annotations

import json
import logging
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
    "reset_logger",
]

_FILE_MARKER = "_pic2quiz_file"
_CONSOLE_MARKER = "_pic2quiz_console"

# Attributes present on every LogRecord; anything else came from ``extra``.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return repr(value)


class JsonLogFormatter(logging.Formatter):
    """Render a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "timestamp": stamp.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True, default=_json_default)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Configure ``name`` with a rotating JSON file handler.

    Calling this again for the same logger reuses its handlers, swapping
    the file handler only when the target file changes. ``verbose``
    forces DEBUG on the file and adds a stderr console handler.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    log_path = _resolve_log_path(
        log_dir, filename or name.rsplit(".", 1)[-1] + ".log"
    )
    file_handler = _file_handler_for(logger, log_path)
    if file_handler is None:
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonLogFormatter())
        setattr(file_handler, _FILE_MARKER, True)
        logger.addHandler(file_handler)
    file_handler.setLevel(logging.DEBUG if verbose else _level_from_name(level))

    console = _marked(logger, _CONSOLE_MARKER)
    if verbose and not console:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=False,
        )
        handler.setLevel(logging.DEBUG)
        setattr(handler, _CONSOLE_MARKER, True)
        logger.addHandler(handler)
    elif not verbose:
        _detach(logger, console)

    return logger, log_path


def reset_logger(logger: logging.Logger) -> None:
    """Detach and close every handler managed by :func:`configure_logger`."""

    _detach(
        logger,
        _marked(logger, _FILE_MARKER) + _marked(logger, _CONSOLE_MARKER),
    )


def _marked(logger: logging.Logger, marker: str) -> list[logging.Handler]:
    return [h for h in logger.handlers if getattr(h, marker, False)]


def _detach(logger: logging.Logger, handlers: list[logging.Handler]) -> None:
    for handler in handlers:
        logger.removeHandler(handler)
        handler.close()


def _file_handler_for(
    logger: logging.Logger, path: Path
) -> RotatingFileHandler | None:
    current = _marked(logger, _FILE_MARKER)
    for handler in current:
        if Path(handler.baseFilename) == path:  # type: ignore[attr-defined]
            return handler  # type: ignore[return-value]
    _detach(logger, current)
    return None


def _level_from_name(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / "pic2quiz-logs"


def _resolve_log_path(log_dir: Path, filename: str) -> Path:
    """Create the log file, falling back to the temp dir when denied."""

    for directory in (log_dir, _fallback_log_dir()):
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path = directory / filename
            path.touch(exist_ok=True)
        except PermissionError:
            continue
        _restrict(directory, 0o700)
        _restrict(path, 0o600)
        return path
    raise PermissionError(f"Cannot write log file {filename} in {log_dir}")


def _restrict(path: Path, mode: int) -> None:
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
