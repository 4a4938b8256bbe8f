from __future__ import annotations

from pathlib import Path

import pytest

from pic2quiz.core import workspace


def test_ensure_workspace_creates_directories(tmp_path, monkeypatch):
    root = tmp_path / "data"
    monkeypatch.setenv(workspace.WORKSPACE_ENV, str(root))

    layout = workspace.ensure_workspace()

    assert layout.home == root.resolve()
    assert [name for name, _ in layout.items()] == [
        "config",
        "logs",
        "quizzes",
        "exports",
    ]
    for name, path in layout.items():
        assert path.is_dir()
        assert layout.created[name] is True
    assert layout.created["home"] is True


def test_ensure_workspace_is_idempotent(tmp_path):
    root = tmp_path / "existing"

    workspace.ensure_workspace(path=root)
    second = workspace.ensure_workspace(path=root)

    assert all(not created for created in second.created.values())


def test_explicit_path_wins_over_env(tmp_path):
    env = {workspace.WORKSPACE_ENV: str(tmp_path / "from-env")}
    layout = workspace.ensure_workspace(env=env, path=tmp_path / "explicit")
    assert layout.home == (tmp_path / "explicit").resolve()
    assert not (tmp_path / "from-env").exists()


def test_ensure_workspace_without_create(tmp_path):
    root = tmp_path / "deferred"

    layout = workspace.ensure_workspace(path=root, create=False)

    assert layout.home == root.resolve()
    assert not root.exists()
    assert layout.path_for("quizzes") == root.resolve() / "quizzes"
    with pytest.raises(KeyError):
        layout.path_for("cache")


def test_ensure_workspace_errors_when_path_is_file(tmp_path):
    root = tmp_path / "file"
    root.write_text("not a dir", encoding="utf-8")

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=root)


def test_default_location_falls_back_to_tempdir(tmp_path, monkeypatch):
    monkeypatch.delenv(workspace.WORKSPACE_ENV, raising=False)
    blocked = tmp_path / "home" / ".pic2quiz-data"
    monkeypatch.setattr(workspace, "DEFAULT_WORKSPACE", blocked)
    monkeypatch.setattr(workspace.tempfile, "gettempdir", lambda: str(tmp_path))
    real_ensure_dir = workspace._ensure_dir

    def fake_ensure_dir(path: Path) -> bool:
        if path == blocked.resolve():
            raise PermissionError("denied")
        return real_ensure_dir(path)

    monkeypatch.setattr(workspace, "_ensure_dir", fake_ensure_dir)

    layout = workspace.ensure_workspace()

    assert layout.home == tmp_path / "pic2quiz-data"
    assert layout.created["home"] is True


def test_explicit_location_never_falls_back(tmp_path, monkeypatch):
    def deny(path: Path) -> bool:
        raise PermissionError("nope")

    monkeypatch.setattr(workspace, "_ensure_dir", deny)

    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=tmp_path / "explicit")
