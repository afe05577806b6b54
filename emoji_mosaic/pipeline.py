"""One parameterised run: decode → compute → encode.

Decoding and writing are the only stages that touch storage; everything in
between is pure. Errors from any stage propagate to the caller unchanged.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from emoji_mosaic.averaging import MosaicGrid, build_mosaic
from emoji_mosaic.config import MosaicConfig
from emoji_mosaic.errors import InvalidInput
from emoji_mosaic.image_io import load_pixel_grid, save_png
from emoji_mosaic.matcher import NearestColorMatcher
from emoji_mosaic.palette import Palette, load_palette
from emoji_mosaic.pixels import PixelGrid
from emoji_mosaic.render import render_flat, render_glyphs, snap_to_palette

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class MosaicResult:
    """Artifacts of a run; exactly one of *raster* / *text* is set."""

    mosaic: MosaicGrid
    raster: np.ndarray | None = None
    text: str | None = None
    output_path: Path | None = None


def compute(
    grid: PixelGrid,
    cfg: MosaicConfig,
    palette: Palette | None = None,
) -> MosaicResult:
    """Pure stage: block averaging plus rendering for ``cfg.output_mode``."""
    mosaic = build_mosaic(
        grid, cfg.block_size,
        policy=cfg.transparent_policy, fallback=cfg.fallback_color,
    )
    logger.info(
        "Averaged %dx%d blocks of %d px from %dx%d image",
        mosaic.cols, mosaic.rows, cfg.block_size, grid.width, grid.height,
    )

    if cfg.output_mode == "flat":
        return MosaicResult(mosaic, raster=_flat_raster(mosaic, cfg))

    if palette is None:
        msg = f"Output mode '{cfg.output_mode}' needs a palette"
        raise InvalidInput(msg)
    matcher = NearestColorMatcher(palette, kdtree_threshold=cfg.kdtree_threshold)

    if cfg.output_mode == "glyph":
        return MosaicResult(mosaic, text=render_glyphs(mosaic, matcher, blank=cfg.blank_glyph))

    snapped = snap_to_palette(mosaic, matcher)
    return MosaicResult(snapped, raster=_flat_raster(snapped, cfg))


def _flat_raster(mosaic: MosaicGrid, cfg: MosaicConfig) -> np.ndarray:
    # At native cell size the output keeps the source dimensions.
    if cfg.cell_size is None or cfg.cell_size == mosaic.block_size:
        return render_flat(mosaic, canvas_size=(mosaic.source_width, mosaic.source_height))
    return render_flat(mosaic, cell_size=cfg.cell_size)


def write_result(result: MosaicResult, cfg: MosaicConfig) -> MosaicResult:
    """Persist the artifact to ``cfg.output_path`` (no-op when unset)."""
    if cfg.output_path is None:
        return result
    if result.raster is not None:
        path = save_png(result.raster, cfg.output_path, cfg.upscale)
    else:
        path = Path(cfg.output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text((result.text or "") + "\n", encoding="utf-8")
    logger.info("Saved %s", path)
    return MosaicResult(result.mosaic, result.raster, result.text, path)


def run_pipeline(cfg: MosaicConfig, palette: Palette | None = None) -> MosaicResult:
    """Run one full image through the configured pipeline.

    The palette is loaded once from ``cfg.palette_path`` unless one is
    passed in, and then shared read-only by every block lookup.
    """
    cfg.validate()
    if cfg.input_source is None:
        msg = "No input image configured"
        raise InvalidInput(msg)

    t0 = time.perf_counter()
    grid = load_pixel_grid(cfg.input_source)
    if palette is None and cfg.output_mode != "flat":
        palette = load_palette(cfg.palette_path)

    result = compute(grid, cfg, palette)
    result = write_result(result, cfg)
    logger.debug("Pipeline finished in %.2f s", time.perf_counter() - t0)
    return result
