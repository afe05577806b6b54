"""Block averaging with transparency-aware accumulation.

A block is a ``size × size`` window addressed by its top-left corner.
Pixels with ``a == 0`` are left out of the mean; every channel is rounded
half up on exact integer arithmetic. Trailing partial blocks at the right
and bottom edges are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
from skimage.util import view_as_blocks

from emoji_mosaic.color_utils import Color, round_half_up
from emoji_mosaic.config import TRANSPARENT_POLICIES
from emoji_mosaic.errors import InvalidInput, UndefinedAverage
from emoji_mosaic.pixels import PixelGrid

logger = logging.getLogger(__name__)

__all__ = [
    "TRANSPARENT_POLICIES",
    "MosaicGrid",
    "average_block",
    "average_image",
    "build_mosaic",
]


@dataclass(frozen=True, eq=False)
class MosaicGrid:
    """One averaged colour per block, row-major.

    Attributes:
        colors:        (rows, cols, 3) uint8.
        defined:       (rows, cols) bool - False for blocks skipped as fully
                       transparent.
        block_size:    Side of the source blocks.
        source_width:  Width of the grid the mosaic was built from.
        source_height: Height of the grid the mosaic was built from.
    """

    colors: np.ndarray
    defined: np.ndarray
    block_size: int
    source_width: int
    source_height: int

    @property
    def rows(self) -> int:
        return self.colors.shape[0]

    @property
    def cols(self) -> int:
        return self.colors.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.rows, self.cols

    def cell(self, row: int, col: int) -> Color | None:
        if not self.defined[row, col]:
            return None
        return Color(*map(int, self.colors[row, col]))

    def to_rows(self) -> list[list[Color | None]]:
        return [
            [self.cell(r, c) for c in range(self.cols)]
            for r in range(self.rows)
        ]


def _check_policy(policy: str) -> None:
    if policy not in TRANSPARENT_POLICIES:
        msg = f"Unknown transparent policy '{policy}'. Available: {', '.join(TRANSPARENT_POLICIES)}"
        raise InvalidInput(msg)


def _check_size(size: int) -> None:
    if size < 1:
        msg = f"Block size must be >= 1, got {size}"
        raise InvalidInput(msg)


def average_block(
    grid: PixelGrid,
    x: int,
    y: int,
    size: int,
    policy: str = "fallback",
    fallback: tuple[int, int, int] = (0, 0, 0),
) -> Color | None:
    """Mean colour of the opaque pixels in one block.

    Args:
        grid:     Source pixels.
        x, y:     Top-left corner of the block.
        size:     Block side; the block must lie inside the grid.
        policy:   Fully transparent block handling - ``"fallback"`` (default)
                  returns *fallback*, ``"skip"`` returns ``None``,
                  ``"error"`` raises :class:`UndefinedAverage`.
        fallback: Colour for the ``"fallback"`` policy.
    """
    _check_policy(policy)
    _check_size(size)
    if x < 0 or y < 0 or x + size > grid.width or y + size > grid.height:
        msg = f"Block ({x}, {y}) of size {size} lies outside {grid.width}x{grid.height}"
        raise InvalidInput(msg)

    window = grid.array[y:y + size, x:x + size].reshape(-1, 4)
    opaque = window[window[:, 3] != 0, :3].astype(np.int64)
    count = len(opaque)
    if count == 0:
        if policy == "fallback":
            return Color(*fallback)
        if policy == "skip":
            return None
        raise UndefinedAverage(x, y, size)

    sums = opaque.sum(axis=0)
    return Color(*(int(round_half_up(int(s), count)) for s in sums))


def average_image(grid: PixelGrid) -> Color:
    """Whole-image average: one block covering every pixel.

    Raises:
        UndefinedAverage: if the image is fully transparent.
    """
    window = grid.array.reshape(-1, 4)
    opaque = window[window[:, 3] != 0, :3].astype(np.int64)
    if len(opaque) == 0:
        raise UndefinedAverage(0, 0, max(grid.width, grid.height))
    sums = opaque.sum(axis=0)
    return Color(*(int(round_half_up(int(s), len(opaque))) for s in sums))


def build_mosaic(
    grid: PixelGrid,
    size: int,
    policy: str = "fallback",
    fallback: tuple[int, int, int] = (0, 0, 0),
) -> MosaicGrid:
    """Average every whole block of *grid*.

    Block origins run over ``0, size, ... <= dimension - size`` on both
    axes, so the result is ``floor(height/size) × floor(width/size)``; a
    block larger than the image yields an empty 0 × 0 mosaic. Equivalent to
    calling :func:`average_block` with the same *policy* for each origin.
    """
    _check_policy(policy)
    _check_size(size)

    rows, cols = grid.height // size, grid.width // size
    if rows == 0 or cols == 0:
        empty_colors = np.zeros((0, 0, 3), dtype=np.uint8)
        empty_defined = np.zeros((0, 0), dtype=bool)
        empty_colors.setflags(write=False)
        empty_defined.setflags(write=False)
        logger.debug("Block %d larger than %dx%d image, empty mosaic", size, grid.width, grid.height)
        return MosaicGrid(empty_colors, empty_defined, size, grid.width, grid.height)

    cropped = grid.array[:rows * size, :cols * size]
    blocks = view_as_blocks(cropped, (size, size, 4)).reshape(rows, cols, size * size, 4)

    opaque = blocks[..., 3] != 0
    counts = opaque.sum(axis=2).astype(np.int64)
    sums = (blocks[..., :3].astype(np.int64) * opaque[..., np.newaxis]).sum(axis=2)

    empty = counts == 0
    if empty.any():
        logger.debug("%d fully transparent block(s), policy=%s", int(empty.sum()), policy)
        if policy == "error":
            r, c = np.argwhere(empty)[0]
            raise UndefinedAverage(int(c) * size, int(r) * size, size)

    safe = np.where(empty, 1, counts)[..., np.newaxis]
    colors = round_half_up(sums, safe).astype(np.uint8)
    defined = np.ones((rows, cols), dtype=bool)
    if empty.any():
        if policy == "fallback":
            colors[empty] = np.asarray(fallback, dtype=np.uint8)
        else:
            colors[empty] = 0
            defined[empty] = False

    colors.setflags(write=False)
    defined.setflags(write=False)
    logger.debug("Mosaic %dx%d from %dx%d, block=%d", cols, rows, grid.width, grid.height, size)
    return MosaicGrid(colors, defined, size, grid.width, grid.height)
