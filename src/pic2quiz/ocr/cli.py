"""CLI entry point for extracting text from images."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from pic2quiz.cli_support import (
    CommandError,
    add_common_arguments,
    ocr_images,
    open_command,
)
from pic2quiz.export import write_output


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pic2quiz ocr",
        description=(
            "Extract text from images with Tesseract. Images are read in the "
            "order given and separated by a blank line."
        ),
    )
    parser.add_argument(
        "IMAGES",
        nargs="+",
        help="Image files or directories of images.",
    )
    parser.add_argument(
        "--lang",
        help="Tesseract language code(s), e.g. eng or eng+fil.",
    )
    parser.add_argument(
        "--out",
        type=Path,
        help="Write the extracted text to this file instead of stdout.",
    )
    add_common_arguments(parser)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        context = open_command("ocr", args)
        text = ocr_images(args.IMAGES, context)
    except CommandError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return exc.exit_code

    if not text.strip():
        sys.stderr.write("No text was recognized in the provided images.\n")
        return 1

    if args.out:
        target = write_output(args.out, text, title="Extracted Text")
        sys.stdout.write(f"Wrote extracted text to {target}\n")
    else:
        sys.stdout.write(text + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
