from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import FakeOpenAI, WorkspaceBuilder, sample_records  # noqa: E402

from pic2quiz.core.logging import reset_logger  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[Path]:
    """Point every test at its own workspace and drop ambient settings."""

    for key in list(os.environ):
        if key.startswith("PIC2QUIZ_"):
            monkeypatch.delenv(key)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    home = tmp_path / "data-home"
    monkeypatch.setenv("PIC2QUIZ_DATA_HOME", str(home))
    yield home
    logger = logging.getLogger("pic2quiz")
    reset_logger(logger)
    logger.propagate = True


@pytest.fixture
def data_home(_isolated_env: Path) -> Path:
    return _isolated_env


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path / "inputs")


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def records() -> list[dict[str, object]]:
    return sample_records()
