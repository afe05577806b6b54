"""Exception hierarchy shared by every pipeline stage."""

from __future__ import annotations


class MosaicError(Exception):
    """Base class for all errors raised by emoji_mosaic."""


class InvalidInput(MosaicError, ValueError):
    """Malformed buffer, dimension mismatch, bad config or bad file content."""


class DecodeFailure(MosaicError, OSError):
    """An image could not be read or decoded."""


class EmptyPalette(MosaicError, LookupError):
    """Nearest-colour matching was attempted against zero entries."""


class UndefinedAverage(MosaicError, ZeroDivisionError):
    """Every pixel of a block is fully transparent."""

    def __init__(self, x: int, y: int, size: int) -> None:
        super().__init__(
            f"Block at ({x}, {y}) of size {size} is fully transparent"
        )
        self.x = x
        self.y = y
        self.size = size
