from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from wallter.errors import ImageDecodeError, ImageReadError, ImageWriteError

"""
Image decoding/encoding helpers. Decoded images are H x W x 4 RGBA uint8
arrays; encoded images are H x W x 3 RGB.
"""


def _to_rgba_array(im: Image.Image) -> np.ndarray:
    return np.array(im.convert("RGBA"), dtype=np.uint8)


def decode_image(data: bytes) -> np.ndarray:
    try:
        with Image.open(io.BytesIO(data)) as im:
            return _to_rgba_array(im)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e


def load_image(path: Path | str) -> np.ndarray:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageReadError(f"Unable to read file {path}: {e}") from e
    return decode_image(data)


def encode_image(rgb: np.ndarray, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(rgb).save(buffer, format=fmt.upper())
    return buffer.getvalue()


def save_image(path: Path | str, rgb: np.ndarray) -> Path:
    """Write an RGB array to disk, picking the format from the file extension."""
    path = Path(path)
    try:
        Image.fromarray(rgb).save(path)
    except (ValueError, KeyError, OSError) as e:
        raise ImageWriteError(
            f"Incorrect output path/filename/extension {path}: {e}"
        ) from e
    return path


def default_output_path(input_path: Path | str, output: Path | str | None = None) -> Path:
    """Derive where a themed image is written.

    Without an explicit output, "<stem>-themed<suffix>" is used. Relative
    outputs are placed next to the input file.
    """
    input_path = Path(input_path)
    if output is None:
        output_path = Path(f"{input_path.stem}-themed{input_path.suffix}")
    else:
        output_path = Path(output)

    if not output_path.is_absolute():
        output_path = input_path.parent / output_path
    return output_path


__all__ = [
    "decode_image",
    "load_image",
    "encode_image",
    "save_image",
    "default_output_path",
]
