"""Shared testing fixtures and fakes for the pic2quiz test suite."""

from .images import write_png  # noqa: F401
from .openai import FakeOpenAI  # noqa: F401
from .quizzes import sample_records, sample_reply  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "FakeOpenAI",
    "WorkspaceBuilder",
    "build_tree",
    "sample_records",
    "sample_reply",
    "write_png",
]
