from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

import numpy as np

from wallter.errors import InvalidColorError, InvalidPaletteLength

Color = tuple[int, int, int]


@dataclass(frozen=True)
class Palette:
    """An ordered, immutable set of reference colors.

    Order matters only for tie-breaking: when a pixel is equidistant from
    several entries, the earliest one wins. Duplicates are allowed.
    """

    colors: tuple[Color, ...] = ()

    def __len__(self) -> int:
        return len(self.colors)

    def __iter__(self) -> Iterator[Color]:
        return iter(self.colors)

    def __getitem__(self, index: int) -> Color:
        return self.colors[index]

    def to_array(self) -> np.ndarray:
        """Return the palette as a P x 3 uint8 array."""
        return np.array(self.colors, dtype=np.uint8).reshape(-1, 3)

    def hex(self) -> list[str]:
        return [f"#{r:02x}{g:02x}{b:02x}" for r, g, b in self.colors]


def _as_channel(value) -> int:
    if isinstance(value, bool):
        raise InvalidColorError(f"Color channel must be an integer, got {value!r}")
    try:
        return operator.index(value)
    except TypeError as e:
        raise InvalidColorError(f"Color channel must be an integer, got {value!r}") from e


def _as_color(color: Sequence[int]) -> Color:
    if len(color) != 3:
        raise InvalidColorError(
            f"RGB color tuple must have three components, got {tuple(color)}"
        )
    r, g, b = (_as_channel(c) for c in color)
    for channel in (r, g, b):
        if not 0 <= channel <= 255:
            raise InvalidColorError(
                f"Color channel {channel} out of range 0-255 in {(r, g, b)}"
            )
    return (r, g, b)


def build_palette(colors: Iterable[Sequence[int]]) -> Palette:
    """Build a palette from [r, g, b] triples, keeping their order."""
    return Palette(tuple(_as_color(c) for c in colors))


def build_palette_from_bytes(data: bytes | bytearray | Sequence[int]) -> Palette:
    """Build a palette from a flat byte sequence of consecutive RGB triples.

    Raises:
        InvalidPaletteLength: if len(data) is not a multiple of 3.
    """
    if len(data) % 3 != 0:
        raise InvalidPaletteLength(len(data))

    try:
        raw = bytes(data)
    except (TypeError, ValueError) as e:
        raise InvalidColorError(f"Palette bytes must be integers in 0-255: {e}") from e
    return Palette(
        tuple((raw[i], raw[i + 1], raw[i + 2]) for i in range(0, len(raw), 3))
    )
