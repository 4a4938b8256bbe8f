"""Image enhancement through the OpenAI image variation endpoint.

There is no true upscaling endpoint, so the closest available operation is a
1024x1024 variation of the source image. ``scale`` and ``style`` are carried
through to the result for display only.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from pic2quiz.cli_support import CommandError, add_common_arguments, open_command

SCALES = ("2x", "4x")
STYLES = ("enhanced", "sharp", "smooth")
VARIATION_SIZE = "1024x1024"

_logger = logging.getLogger(__name__)


class UpscaleError(RuntimeError):
    """Raised when the image endpoint fails or returns no image."""


@dataclass(frozen=True)
class UpscaleResult:
    url: str
    original_size: int
    scale: str
    style: str


def upscale_image(
    path: Path,
    *,
    client: Any,
    scale: str = "2x",
    style: str = "enhanced",
) -> UpscaleResult:
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"No image provided: {source}")
    original_size = source.stat().st_size
    _logger.info(
        "Requesting image variation",
        extra={"source": str(source), "scale": scale, "style": style},
    )
    try:
        with source.open("rb") as fh:
            response = client.images.create_variation(
                image=fh,
                n=1,
                size=VARIATION_SIZE,
                response_format="url",
            )
    except Exception as exc:
        raise UpscaleError(
            "Failed to upscale image. Please try again."
        ) from exc
    data = getattr(response, "data", None) or []
    url = getattr(data[0], "url", None) if data else None
    if not url:
        raise UpscaleError("Failed to upscale image")
    return UpscaleResult(
        url=url, original_size=original_size, scale=scale, style=style
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pic2quiz upscale",
        description="Create an enhanced 1024x1024 variation of an image.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("IMAGE", help="Image file to enhance")
    parser.add_argument("--scale", choices=SCALES, default="2x")
    parser.add_argument("--style", choices=STYLES, default="enhanced")
    add_common_arguments(parser)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        context = open_command("upscale", args)
        result = upscale_image(
            Path(args.IMAGE).expanduser(),
            client=context.client(),
            scale=args.scale,
            style=args.style,
        )
    except CommandError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return exc.exit_code
    except (FileNotFoundError, UpscaleError) as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    sys.stdout.write(
        f"Upscaled image ({result.scale}, {result.style}): {result.url}\n"
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
