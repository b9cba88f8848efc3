"""
wallter: the simple wallpaper converter.

Recolors an image so that every pixel uses the nearest color of a theme.

Usage:
  wallter --input IMAGE --theme THEME [--output FILE]
  wallter --input IMAGE --palette-file PALETTE [--output FILE]

Themes:
  gruvbox, nord, solarized, catppuccin, dracula, or a custom list of hex
  colors such as "#282a36, #f8f8f2" (quote it in the shell).

Output:
  Defaults to <stem>-themed<suffix> next to the input. A relative
  --output is also resolved against the input's directory.
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from wallter.config import settings
from wallter.errors import WallterError
from wallter.image_io import default_output_path, load_image, save_image
from wallter.palettes.loader import parse_theme, preset_slugs
from wallter.palettes.theme import Palette, build_palette_from_bytes
from wallter.pipeline.theming import apply_theme

logger = logging.getLogger(__name__)


def parse_cli_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wallter",
        description="WALLter: the Simple Wallpaper Converter",
    )
    parser.add_argument("-i", "--input", type=Path, required=True, help="Filename to convert")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "-t",
        "--theme",
        help=f"Theme: one of {', '.join(preset_slugs())}, "
        'or custom hex colors, e.g. "#282a36, #f8f8f2"',
    )
    source.add_argument(
        "--palette-file",
        type=Path,
        help="File of raw RGB bytes, three per color",
    )
    parser.add_argument("-o", "--output", type=Path, default=None, help="Output filename")
    parser.add_argument(
        "--workers",
        type=int,
        default=settings.theme_workers,
        help="Threads used to recolor the image",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["debug", "info", "warning", "error"],
        type=str.lower,
    )
    return parser.parse_args(argv)


def resolve_palette(args: argparse.Namespace) -> Palette:
    if args.palette_file is not None:
        try:
            data = args.palette_file.read_bytes()
        except OSError as e:
            raise WallterError(f"Unable to read palette file {args.palette_file}: {e}") from e
        return build_palette_from_bytes(data)
    return parse_theme(args.theme)


def run(args: argparse.Namespace) -> Path:
    palette = resolve_palette(args)
    image = load_image(args.input)

    start_time = time.time()
    themed = apply_theme(
        image,
        palette,
        chunk_rows=settings.theme_chunk_rows,
        workers=max(1, args.workers),
    )
    logger.info(
        "Themed %s with %d colors in %d ms",
        args.input,
        len(palette),
        int((time.time() - start_time) * 1000),
    )

    output_path = default_output_path(args.input, args.output)
    return save_image(output_path, themed)


def main(argv: list[str] | None = None) -> int:
    args = parse_cli_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        output_path = run(args)
    except WallterError as e:
        logger.debug("Conversion failed", exc_info=True)
        print(e, file=sys.stderr)
        return 1

    print(output_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
