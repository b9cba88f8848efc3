from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

import numpy as np
from PIL import Image

from wallter.errors import EmptyPalette
from wallter.palettes.theme import Color, Palette

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_ROWS = 64


def closest_color(pixel: Sequence[int], palette: Palette) -> Color:
    """Return the palette color nearest to a single pixel.

    Distance is squared Euclidean over R, G, B; any further channels
    (alpha) are ignored. Ties go to the earliest palette entry.
    """
    if len(palette) == 0:
        raise EmptyPalette()

    r, g, b = int(pixel[0]), int(pixel[1]), int(pixel[2])
    best = palette[0]
    best_distance = (r - best[0]) ** 2 + (g - best[1]) ** 2 + (b - best[2]) ** 2
    for color in palette.colors[1:]:
        distance = (r - color[0]) ** 2 + (g - color[1]) ** 2 + (b - color[2]) ** 2
        if distance < best_distance:
            best_distance = distance
            best = color
    return best


def _nearest_palette_index(pixels: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """Map each pixel to the index of its nearest palette color.

    pixels: (N, 3) int32, palette: (P, 3) int32. Distances are accumulated
    one channel at a time so only an (N, P) matrix is ever allocated.
    argmin picks the first minimum, matching closest_color's tie-break.
    """
    distances = np.zeros((pixels.shape[0], palette.shape[0]), dtype=np.int32)
    for channel in range(3):
        diff = pixels[:, channel, np.newaxis] - palette[np.newaxis, :, channel]
        distances += diff * diff
    return np.argmin(distances, axis=-1)


def _rgb_view(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return np.repeat(image[:, :, np.newaxis], 3, axis=2)
    if image.ndim == 3 and image.shape[2] in (3, 4):
        return image[:, :, :3]
    raise ValueError(
        f"Expected an H x W, H x W x 3 or H x W x 4 image, got shape {image.shape}"
    )


def apply_theme(
    image: np.ndarray,
    palette: Palette,
    chunk_rows: int = DEFAULT_CHUNK_ROWS,
    workers: int = 1,
) -> np.ndarray:
    """Recolor every pixel of an image to its nearest palette color.

    Args:
        image: H x W x 4 (RGBA), H x W x 3 (RGB) or H x W (grayscale) array.
        palette: Colors allowed in the output.
        chunk_rows: Rows processed per band.
        workers: Threads used to process bands concurrently.

    Returns:
        New H x W x 3 uint8 RGB array. The input is left untouched.

    Raises:
        EmptyPalette: if the palette has no colors.
    """
    if len(palette) == 0:
        raise EmptyPalette()
    if chunk_rows < 1:
        raise ValueError(f"chunk_rows must be at least 1, got {chunk_rows}")

    rgb = _rgb_view(np.asarray(image))
    h, w = rgb.shape[:2]
    palette_rgb = palette.to_array()
    palette_i32 = palette_rgb.astype(np.int32)
    output = np.empty((h, w, 3), dtype=np.uint8)

    def process_band(start: int) -> None:
        stop = min(start + chunk_rows, h)
        pixels = rgb[start:stop].reshape(-1, 3).astype(np.int32)
        nearest_idx = _nearest_palette_index(pixels, palette_i32)
        output[start:stop] = palette_rgb[nearest_idx].reshape(stop - start, w, 3)

    starts = range(0, h, chunk_rows)
    start_time = time.perf_counter()
    if workers > 1 and len(starts) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # list() re-raises the first band failure
            list(executor.map(process_band, starts))
    else:
        for start in starts:
            process_band(start)

    logger.debug(
        "Themed %dx%d image with %d colors in %.1f ms (%d bands, %d workers)",
        w,
        h,
        len(palette),
        (time.perf_counter() - start_time) * 1000,
        len(starts),
        workers,
    )
    return output


def theme_image(image: Image.Image, palette: Palette, **kwargs) -> Image.Image:
    """Apply a theme to a Pillow image of any mode and return an RGB image."""
    rgba = np.array(image.convert("RGBA"))
    return Image.fromarray(apply_theme(rgba, palette, **kwargs))
