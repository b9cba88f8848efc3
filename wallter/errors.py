from __future__ import annotations


class WallterError(Exception):
    """Base class for every error raised by wallter."""


class InvalidPaletteLength(WallterError, ValueError):
    """Raised when a raw palette byte sequence is not a whole number of RGB triples."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(
            f"Palette byte count must be a multiple of 3, got {length}"
        )


class EmptyPalette(WallterError, ValueError):
    """Raised when a nearest-color search is asked to pick from zero colors."""

    def __init__(self, message: str = "Palette has no colors to match against"):
        super().__init__(message)


class InvalidColorError(WallterError, ValueError):
    pass


class ImageReadError(WallterError, OSError):
    pass


class ImageDecodeError(WallterError, OSError):
    pass


class ImageWriteError(WallterError, OSError):
    pass
