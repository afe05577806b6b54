"""
Emoji Mosaic
============

Split an image into square blocks, average each block's opaque pixels,
and render the result as:

- **flat** - a block-colour mosaic PNG
- **glyph** - a text grid of the nearest palette glyphs (emoji art)
- **palette-color** - a mosaic PNG snapped to the palette's colours

The palette index is built offline from a manifest of small source images.
"""

__version__ = "1.0.0"

from emoji_mosaic.averaging import MosaicGrid, average_block, average_image, build_mosaic
from emoji_mosaic.color_utils import Color
from emoji_mosaic.config import MosaicConfig
from emoji_mosaic.errors import (
    DecodeFailure,
    EmptyPalette,
    InvalidInput,
    MosaicError,
    UndefinedAverage,
)
from emoji_mosaic.image_io import decode_image, load_pixel_grid, save_png
from emoji_mosaic.matcher import Match, NearestColorMatcher, match_nearest
from emoji_mosaic.palette import (
    Palette,
    PaletteBuild,
    PaletteEntry,
    build_palette,
    load_manifest,
    load_palette,
    save_palette,
)
from emoji_mosaic.pipeline import MosaicResult, run_pipeline
from emoji_mosaic.pixels import Pixel, PixelGrid, build_pixel_grid
from emoji_mosaic.render import render_flat, render_glyphs

__all__ = [
    "Color",
    "DecodeFailure",
    "EmptyPalette",
    "InvalidInput",
    "Match",
    "MosaicConfig",
    "MosaicError",
    "MosaicGrid",
    "MosaicResult",
    "NearestColorMatcher",
    "Palette",
    "PaletteBuild",
    "PaletteEntry",
    "Pixel",
    "PixelGrid",
    "UndefinedAverage",
    "average_block",
    "average_image",
    "build_mosaic",
    "build_palette",
    "build_pixel_grid",
    "decode_image",
    "load_manifest",
    "load_palette",
    "load_pixel_grid",
    "match_nearest",
    "render_flat",
    "render_glyphs",
    "run_pipeline",
    "save_palette",
    "save_png",
]
