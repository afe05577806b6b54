"""Turn a MosaicGrid into a raster or a text grid."""

from __future__ import annotations

import numpy as np

from emoji_mosaic.averaging import MosaicGrid
from emoji_mosaic.errors import InvalidInput
from emoji_mosaic.matcher import NearestColorMatcher


def render_flat(
    mosaic: MosaicGrid,
    cell_size: int | None = None,
    canvas_size: tuple[int, int] | None = None,
) -> np.ndarray:
    """Paint each block as a solid ``cell_size × cell_size`` square.

    Args:
        mosaic:      Averaged block colours.
        cell_size:   Output pixels per block side (default: the block size,
                     which reproduces the source geometry; ``1`` gives the
                     reduced mosaic).
        canvas_size: ``(width, height)`` of the output raster. Defaults to
                     exactly the painted area. Unpainted margins and skipped
                     blocks stay fully transparent.

    Returns:
        (H, W, 4) uint8 RGBA raster.
    """
    cell = mosaic.block_size if cell_size is None else cell_size
    if cell < 1:
        msg = f"Cell size must be >= 1, got {cell}"
        raise InvalidInput(msg)

    painted_h, painted_w = mosaic.rows * cell, mosaic.cols * cell
    width, height = canvas_size if canvas_size is not None else (painted_w, painted_h)
    if width < painted_w or height < painted_h:
        msg = f"Canvas {width}x{height} is smaller than the {painted_w}x{painted_h} mosaic"
        raise InvalidInput(msg)

    rgba = np.zeros((mosaic.rows, mosaic.cols, 4), dtype=np.uint8)
    rgba[..., :3] = mosaic.colors
    rgba[..., 3] = np.where(mosaic.defined, 255, 0)

    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    canvas[:painted_h, :painted_w] = np.repeat(np.repeat(rgba, cell, axis=0), cell, axis=1)
    return canvas


def snap_to_palette(mosaic: MosaicGrid, matcher: NearestColorMatcher) -> MosaicGrid:
    """Replace every block colour by its nearest palette colour."""
    idx = matcher.match_many(mosaic.colors.reshape(-1, 3))
    palette_colors = matcher.palette.colors()
    colors = palette_colors[idx].reshape(mosaic.rows, mosaic.cols, 3)
    colors[~mosaic.defined] = 0
    colors.setflags(write=False)
    return MosaicGrid(
        colors, mosaic.defined, mosaic.block_size,
        mosaic.source_width, mosaic.source_height,
    )


def render_glyphs(
    mosaic: MosaicGrid,
    matcher: NearestColorMatcher,
    blank: str = " ",
) -> str:
    """Text grid of nearest-palette glyphs, one line per mosaic row.

    Skipped (fully transparent) blocks are written as *blank*.
    """
    idx = matcher.match_many(mosaic.colors.reshape(-1, 3)).reshape(mosaic.shape)
    glyphs = [matcher.entry(i).glyph for i in range(len(matcher))]

    lines = []
    for r in range(mosaic.rows):
        lines.append("".join(
            glyphs[idx[r, c]] if mosaic.defined[r, c] else blank
            for c in range(mosaic.cols)
        ))
    return "\n".join(lines)
