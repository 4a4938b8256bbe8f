"""Core shared helpers for pic2quiz subcommands."""

from __future__ import annotations

from .ai import load_client
from .config import (
    TomlConfigError,
    load_toml,
    merge_defaults,
    write_toml_template,
)
from .files import (
    IMAGE_EXTENSIONS,
    iter_input_files,
    parse_extensions,
    read_text_file,
)
from .logging import JsonLogFormatter, configure_logger, reset_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "IMAGE_EXTENSIONS",
    "iter_input_files",
    "parse_extensions",
    "read_text_file",
    "configure_logger",
    "reset_logger",
    "JsonLogFormatter",
    "ensure_workspace",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
