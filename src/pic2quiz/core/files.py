"""Input discovery helpers shared across pic2quiz commands."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Set

__all__ = [
    "IMAGE_EXTENSIONS",
    "parse_extensions",
    "iter_input_files",
    "read_text_file",
]

IMAGE_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "bmp", "webp", "tif", "tiff"})


def parse_extensions(
    values: Optional[Sequence[str]],
    *,
    default: Optional[Iterable[str]] = None,
) -> Set[str]:
    """Normalize extension strings to a lowercase set without leading dots.

    ``values`` that are empty (or only contain blanks) fall back to
    ``default``, which itself defaults to :data:`IMAGE_EXTENSIONS`.
    """
    fallback = set(default if default is not None else IMAGE_EXTENSIONS)
    normalized: Set[str] = set()
    for item in values or ():
        if not isinstance(item, str):
            continue
        candidate = item.strip().lower().lstrip(".")
        if candidate:
            normalized.add(candidate)
    return normalized or fallback


def iter_input_files(
    paths: Sequence[Path],
    extensions: Set[str],
) -> Iterator[Path]:
    """Yield matching files from ``paths`` preserving the given order.

    Explicit files are yielded where they appear in ``paths``; directories
    expand in place to their matching children sorted by name.
    """
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            if _matches_extension(path, extensions):
                yield path
            continue
        if not path.exists():
            raise FileNotFoundError(f"Input not found: {path}")
        if path.is_dir():
            yield from _sorted_directory_files(path, extensions)


def _sorted_directory_files(root: Path, extensions: Set[str]) -> List[Path]:
    return sorted(
        (
            child
            for child in root.rglob("*")
            if child.is_file() and _matches_extension(child, extensions)
        ),
        key=lambda p: p.name.lower(),
    )


def _matches_extension(path: Path, extensions: Set[str]) -> bool:
    return path.suffix.lower().lstrip(".") in extensions


def read_text_file(path: Path) -> str:
    """Read a text file as UTF-8 with replacement for decode errors."""
    with Path(path).open("r", encoding="utf-8", errors="replace") as fh:
        return fh.read()
