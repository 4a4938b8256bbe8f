"""Configuration loader shared by every pic2quiz command.

Values resolve with the precedence CLI overrides > ``PIC2QUIZ_*``
environment variables > ``pic2quiz.toml`` > built-in defaults.
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, Optional

from pic2quiz.core import config as core_config
from pic2quiz.core import workspace as workspace_mod
from pic2quiz.generation.prompts import (
    DETAIL_LEVEL_PROMPTS,
    FORMAT_PROMPTS,
    QuizOptions,
    ReviewerOptions,
)

CONFIG_FILENAME = "pic2quiz.toml"
CONFIG_ENV = "PIC2QUIZ_CONFIG"
ENV_PREFIX = "PIC2QUIZ_"
TEMPLATE_RESOURCE = "template.toml"

_DEFAULTS: dict[str, dict[str, Any]] = {
    "openai": {
        "chat_model": "gpt-4o-mini",
        "temperature": 0.2,
        "max_tokens": 2048,
        "api_base": "",
    },
    "quiz": {
        "number_of_questions": 5,
        "question_type": "multiple-choice",
        "difficulty": "medium",
        "language": "English",
    },
    "reviewer": {
        "detail_level": "medium",
        "format": "bullet-points",
        "language": "English",
    },
    "ocr": {
        "language": "eng",
        "max_image_bytes": 10 * 1024 * 1024,
        "tesseract_cmd": "",
    },
    "logging": {"level": "INFO"},
}


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class OpenAIConfig:
    chat_model: str
    temperature: float
    max_tokens: int
    api_base: Optional[str]


@dataclass(frozen=True)
class OcrConfig:
    language: str
    max_image_bytes: int
    tesseract_cmd: Optional[str]


@dataclass(frozen=True)
class AppConfig:
    openai: OpenAIConfig
    quiz: QuizOptions
    reviewer: ReviewerOptions
    ocr: OcrConfig
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    chat_model: Optional[str] = None
    ocr_language: Optional[str] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: AppConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve the effective configuration and workspace layout."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    except workspace_mod.WorkspaceError as exc:
        raise ConfigError(str(exc)) from exc

    requested = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )

    table: dict[str, Any] = copy.deepcopy(_DEFAULTS)
    loaded_path: Optional[Path] = None
    if requested.exists():
        loaded_path = requested
        try:
            table = core_config.merge_defaults(
                _DEFAULTS, core_config.load_toml(requested)
            )
        except core_config.TomlConfigError as exc:
            raise ConfigError(str(exc)) from exc
    elif config_path is not None or _env_string(env_map, "CONFIG"):
        raise ConfigError(f"Config file not found: {requested}")

    config = _build_config(table, env_map, overrides)
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def default_config_path(layout: workspace_mod.WorkspaceLayout) -> Path:
    return layout.path_for("config") / CONFIG_FILENAME


def read_template() -> str:
    """Return the packaged ``pic2quiz.toml`` template."""
    resource = resources.files("pic2quiz").joinpath(TEMPLATE_RESOURCE)
    return resource.read_text(encoding="utf-8")


def write_default_config(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, template=read_template(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise ConfigError(str(exc)) from exc


def _build_config(
    table: Mapping[str, Mapping[str, Any]],
    env_map: Mapping[str, str],
    overrides: ConfigOverrides,
) -> AppConfig:
    openai_tbl = table["openai"]
    chat_model = _require_string(
        _pick_first(
            overrides.chat_model,
            _env_string(env_map, "MODEL"),
            openai_tbl["chat_model"],
        ),
        field="openai.chat_model",
    )
    api_base = openai_tbl["api_base"]
    if not isinstance(api_base, str):
        raise ConfigError("'openai.api_base' must be a string.")
    openai_cfg = OpenAIConfig(
        chat_model=chat_model,
        temperature=_require_float_range(
            openai_tbl["temperature"],
            field="openai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_tokens=_require_positive_int(
            openai_tbl["max_tokens"], field="openai.max_tokens"
        ),
        api_base=api_base.strip() or None,
    )

    quiz_tbl = table["quiz"]
    try:
        quiz = QuizOptions(
            number_of_questions=quiz_tbl["number_of_questions"],
            question_type=quiz_tbl["question_type"],
            difficulty=quiz_tbl["difficulty"],
            language=quiz_tbl["language"],
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid [quiz] settings: {exc}") from exc

    reviewer_tbl = table["reviewer"]
    reviewer = ReviewerOptions(
        detail_level=_require_choice(
            reviewer_tbl["detail_level"],
            field="reviewer.detail_level",
            choices=DETAIL_LEVEL_PROMPTS,
        ),
        format=_require_choice(
            reviewer_tbl["format"],
            field="reviewer.format",
            choices=FORMAT_PROMPTS,
        ),
        language=_require_string(
            reviewer_tbl["language"], field="reviewer.language"
        ),
    )

    ocr_tbl = table["ocr"]
    tesseract_cmd = ocr_tbl["tesseract_cmd"]
    if not isinstance(tesseract_cmd, str):
        raise ConfigError("'ocr.tesseract_cmd' must be a string.")
    ocr_cfg = OcrConfig(
        language=_require_string(
            _pick_first(
                overrides.ocr_language,
                _env_string(env_map, "OCR_LANG"),
                ocr_tbl["language"],
            ),
            field="ocr.language",
        ),
        max_image_bytes=_require_positive_int(
            ocr_tbl["max_image_bytes"], field="ocr.max_image_bytes"
        ),
        tesseract_cmd=tesseract_cmd.strip() or None,
    )

    log_level = _require_string(
        _pick_first(
            overrides.log_level,
            _env_string(env_map, "LOG_LEVEL"),
            table["logging"]["level"],
        ),
        field="logging.level",
    ).upper()

    return AppConfig(
        openai=openai_cfg,
        quiz=quiz,
        reviewer=reviewer,
        ocr=ocr_cfg,
        log_level=log_level,
    )


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return Path(config_path).expanduser()
    env_candidate = _env_string(env_map, "CONFIG")
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_choice(
    value: Any, *, field: str, choices: Mapping[str, str]
) -> str:
    text = _require_string(value, field=field).lower()
    if text not in choices:
        expected = ", ".join(choices)
        raise ConfigError(f"'{field}' must be one of: {expected}.")
    return text
