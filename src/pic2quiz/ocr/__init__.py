"""Image loading and OCR helpers."""

from .extract import (
    DEFAULT_MAX_BYTES,
    ImageBatch,
    ImagePreview,
    OcrError,
    OcrPage,
    SkippedImage,
    combine_pages,
    configure_tesseract,
    extract_batch,
    extract_text,
    load_images,
)

__all__ = [
    "DEFAULT_MAX_BYTES",
    "ImageBatch",
    "ImagePreview",
    "OcrError",
    "OcrPage",
    "SkippedImage",
    "combine_pages",
    "configure_tesseract",
    "extract_batch",
    "extract_text",
    "load_images",
]
