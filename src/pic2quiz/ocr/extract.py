"""Tesseract-backed text extraction for uploaded images."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

import pytesseract
from PIL import Image, UnidentifiedImageError

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
PAGE_SEPARATOR = "\n\n"

_logger = logging.getLogger(__name__)


class OcrError(RuntimeError):
    """Raised when text cannot be extracted from an image."""


@dataclass(frozen=True)
class ImagePreview:
    """An accepted image with the metadata shown before extraction."""

    path: Path
    size_bytes: int
    width: int
    height: int

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class SkippedImage:
    path: Path
    reason: str


@dataclass(frozen=True)
class ImageBatch:
    """Images accepted for extraction, in the order they were given."""

    images: tuple[ImagePreview, ...]
    skipped: tuple[SkippedImage, ...] = ()

    def __len__(self) -> int:
        return len(self.images)


@dataclass(frozen=True)
class OcrPage:
    source: Path
    text: str


def configure_tesseract(tesseract_cmd: Optional[str]) -> None:
    """Point pytesseract at a specific tesseract binary."""
    if tesseract_cmd:
        pytesseract.pytesseract.tesseract_cmd = tesseract_cmd


def load_images(
    paths: Sequence[Path], *, max_bytes: int = DEFAULT_MAX_BYTES
) -> ImageBatch:
    """Validate ``paths`` and build a batch in input order.

    Every file is inspected before the batch is returned, so the accepted
    list always mirrors the order the images were supplied in. Oversized,
    missing or unreadable files land in ``skipped`` instead of raising.
    """
    accepted: List[ImagePreview] = []
    skipped: List[SkippedImage] = []
    limit_mb = max_bytes / (1024 * 1024)
    for raw in paths:
        path = Path(raw)
        if not path.is_file():
            skipped.append(SkippedImage(path, f"{path.name} was not found."))
            continue
        size = path.stat().st_size
        if size > max_bytes:
            skipped.append(
                SkippedImage(
                    path, f"{path.name} exceeds the {limit_mb:g}MB limit."
                )
            )
            continue
        try:
            with Image.open(path) as img:
                width, height = img.size
        except (UnidentifiedImageError, OSError):
            skipped.append(
                SkippedImage(path, f"{path.name} is not a readable image.")
            )
            continue
        accepted.append(ImagePreview(path, size, width, height))
    return ImageBatch(images=tuple(accepted), skipped=tuple(skipped))


def extract_text(path: Path, *, language: str = "eng") -> str:
    """Run OCR over one image and return the recognized text."""
    try:
        with Image.open(path) as img:
            return pytesseract.image_to_string(img, lang=language)
    except pytesseract.TesseractNotFoundError as exc:
        raise OcrError(
            "Tesseract is not installed or not on PATH. Install it or set "
            "ocr.tesseract_cmd."
        ) from exc
    except (pytesseract.TesseractError, UnidentifiedImageError, OSError) as exc:
        raise OcrError(f"Failed to extract text from {path}: {exc}") from exc


def extract_batch(
    images: Iterable[ImagePreview], *, language: str = "eng"
) -> List[OcrPage]:
    """Extract every image in order; the first failure aborts the batch."""
    pages: List[OcrPage] = []
    for image in images:
        text = extract_text(image.path, language=language)
        _logger.info(
            "Extracted text from image",
            extra={"source": str(image.path), "chars": len(text)},
        )
        pages.append(OcrPage(source=image.path, text=text))
    return pages


def combine_pages(pages: Iterable[OcrPage]) -> str:
    """Join page texts in order, dropping pages with no recognized text."""
    return PAGE_SEPARATOR.join(
        page.text.strip() for page in pages if page.text.strip()
    )
