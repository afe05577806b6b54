"""Flat RGBA byte buffer → read-only 2-D pixel grid."""

from __future__ import annotations

from collections.abc import Iterator
from typing import NamedTuple

import numpy as np

from emoji_mosaic.errors import InvalidInput

CHANNELS = 4


class Pixel(NamedTuple):
    """One RGBA pixel. ``a == 0`` marks a fully transparent pixel."""

    r: int
    g: int
    b: int
    a: int = 255

    @property
    def transparent(self) -> bool:
        return self.a == 0


class PixelGrid:
    """Row-major ``height × width`` grid of :class:`Pixel`.

    Backed by a read-only ``(height, width, 4)`` uint8 array, so ``grid[y][x]``
    and ``grid.array[y, x]`` always agree.
    """

    __slots__ = ("_array",)

    def __init__(self, array: np.ndarray) -> None:
        if array.ndim != 3 or array.shape[2] != CHANNELS:
            msg = f"Expected a (height, width, 4) array, got shape {array.shape}"
            raise InvalidInput(msg)
        arr = np.array(array, dtype=np.uint8, copy=True)
        arr.setflags(write=False)
        self._array = arr

    @property
    def array(self) -> np.ndarray:
        return self._array

    @property
    def width(self) -> int:
        return self._array.shape[1]

    @property
    def height(self) -> int:
        return self._array.shape[0]

    def __len__(self) -> int:
        return self.height

    def __getitem__(self, y: int) -> tuple[Pixel, ...]:
        return tuple(Pixel(*map(int, px)) for px in self._array[y])

    def __iter__(self) -> Iterator[tuple[Pixel, ...]]:
        for y in range(self.height):
            yield self[y]

    def pixel(self, x: int, y: int) -> Pixel:
        return Pixel(*map(int, self._array[y, x]))

    def __repr__(self) -> str:
        return f"PixelGrid(width={self.width}, height={self.height})"


def build_pixel_grid(data: bytes | bytearray | memoryview | np.ndarray, width: int, height: int) -> PixelGrid:
    """Build a :class:`PixelGrid` from raw row-major RGBA bytes.

    Args:
        data:   Flat buffer of ``width * height * 4`` bytes.
        width:  Columns per row.
        height: Number of rows.

    Raises:
        InvalidInput: on non-positive dimensions or a length mismatch.
    """
    if width < 1 or height < 1:
        msg = f"Image dimensions must be positive, got {width}x{height}"
        raise InvalidInput(msg)

    if isinstance(data, np.ndarray):
        flat = data.astype(np.uint8, copy=False).reshape(-1)
    else:
        flat = np.frombuffer(bytes(data), dtype=np.uint8)

    expected = width * height * CHANNELS
    if flat.size != expected:
        msg = (
            f"Buffer holds {flat.size} bytes but {width}x{height} RGBA "
            f"needs {expected}"
        )
        raise InvalidInput(msg)

    return PixelGrid(flat.reshape(height, width, CHANNELS))
