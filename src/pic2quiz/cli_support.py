"""Plumbing shared by the per-command CLIs: config, logging, client, input."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence, TextIO

from pic2quiz.config import (
    AppConfig,
    ConfigError,
    ConfigOverrides,
    load_config,
)
from pic2quiz.core.ai import load_client
from pic2quiz.core.files import (
    IMAGE_EXTENSIONS,
    iter_input_files,
    read_text_file,
)
from pic2quiz.core.logging import configure_logger
from pic2quiz.core.workspace import WorkspaceLayout
from pic2quiz.ocr import (
    OcrError,
    combine_pages,
    configure_tesseract,
    extract_batch,
    load_images,
)


class CommandError(RuntimeError):
    """A user-facing failure carrying the exit code to return."""

    def __init__(self, message: str, *, exit_code: int = 2) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@dataclass
class CommandContext:
    config: AppConfig
    layout: WorkspaceLayout
    logger: logging.Logger
    log_path: Path
    client_factory: Callable[..., Any] = load_client
    _client: Any = field(default=None, repr=False)

    def client(self) -> Any:
        """Create the OpenAI client on first use."""
        if self._client is None:
            try:
                self._client = self.client_factory(
                    base_url=self.config.openai.api_base
                )
            except RuntimeError as exc:
                raise CommandError(str(exc), exit_code=1) from exc
        return self._client


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to pic2quiz.toml (defaults to the workspace config dir)",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root override (defaults to PIC2QUIZ_DATA_HOME)",
    )
    parser.add_argument("--model", help="Chat model override")
    parser.add_argument("--log-level", help="Log level for the log file")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr",
    )


def add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "IMAGES",
        nargs="*",
        help="Images (or directories of images) to OCR, in order",
    )
    parser.add_argument(
        "--text",
        type=Path,
        help="Read source material from a text file instead of images",
    )
    parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read source material from standard input",
    )
    parser.add_argument(
        "--lang",
        help="Tesseract language code(s) for OCR, e.g. eng or eng+fil",
    )


def open_command(name: str, args: argparse.Namespace) -> CommandContext:
    """Load config and configure logging for command ``name``."""
    overrides = ConfigOverrides(
        chat_model=getattr(args, "model", None),
        ocr_language=getattr(args, "lang", None),
        log_level=getattr(args, "log_level", None),
    )
    try:
        result = load_config(
            config_path=getattr(args, "config", None),
            overrides=overrides,
            workspace_path=getattr(args, "workspace", None),
        )
    except ConfigError as exc:
        raise CommandError(str(exc)) from exc

    logger, log_path = configure_logger(
        "pic2quiz",
        log_dir=result.layout.path_for("logs"),
        level=result.config.log_level,
        verbose=bool(getattr(args, "verbose", False)),
        filename=f"{name}.log",
    )
    logger.debug(
        "Command invoked",
        extra={"command": name, "config_path": result.config_path},
    )
    configure_tesseract(result.config.ocr.tesseract_cmd)
    return CommandContext(
        config=result.config,
        layout=result.layout,
        logger=logger,
        log_path=log_path,
        client_factory=load_client,
    )


def read_source(
    args: argparse.Namespace,
    context: CommandContext,
    *,
    stdin: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> str:
    """Collect source material from ``--text``, ``--stdin`` or images.

    Exactly one source kind must be given. Images are OCR'd in the order
    given and joined with blank lines.
    """
    images: Sequence[str] = getattr(args, "IMAGES", None) or []
    chosen = [bool(args.text), bool(args.stdin), bool(images)]
    if sum(chosen) != 1:
        raise CommandError(
            "Provide exactly one source: IMAGES, --text FILE or --stdin."
        )
    if args.text:
        path = Path(args.text).expanduser()
        if not path.is_file():
            raise CommandError(f"Text file not found: {path}")
        return read_text_file(path)
    if args.stdin:
        return (stdin or sys.stdin).read()
    return ocr_images(images, context, stderr=stderr)


def ocr_images(
    raw_paths: Sequence[str],
    context: CommandContext,
    *,
    stderr: Optional[TextIO] = None,
) -> str:
    err = stderr or sys.stderr
    try:
        paths: List[Path] = list(
            iter_input_files(
                [Path(p).expanduser() for p in raw_paths], set(IMAGE_EXTENSIONS)
            )
        )
    except FileNotFoundError as exc:
        raise CommandError(str(exc)) from exc

    batch = load_images(paths, max_bytes=context.config.ocr.max_image_bytes)
    for skipped in batch.skipped:
        err.write(f"Skipped: {skipped.reason}\n")
        context.logger.warning(
            "Skipped image", extra={"source": str(skipped.path)}
        )
    if not batch.images:
        raise CommandError("Please upload at least one image", exit_code=1)

    try:
        pages = extract_batch(
            batch.images, language=context.config.ocr.language
        )
    except OcrError as exc:
        raise CommandError(str(exc), exit_code=1) from exc
    return combine_pages(pages)
