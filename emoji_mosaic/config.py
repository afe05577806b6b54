"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from emoji_mosaic.errors import InvalidInput

OUTPUT_MODES = ("flat", "glyph", "palette-color")
TRANSPARENT_POLICIES = ("fallback", "skip", "error")


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for one mosaic run.

    Attributes:
        block_size:         Side of the square block reduced to one colour.
        input_source:       Image to process.
        output_mode:        "flat" (block colours), "glyph" (text grid of
                            palette glyphs) or "palette-color" (block
                            colours snapped to the nearest palette entry).
        palette_path:       Palette index JSON, required by the palette modes.
        output_path:        Where the artifact is written (None = caller keeps it).
        transparent_policy: What a fully transparent block becomes
                            (see TRANSPARENT_POLICIES).
        fallback_color:     Colour used by the "fallback" policy.
        blank_glyph:        Text emitted for skipped blocks in glyph mode.
        cell_size:          Output pixels per block side (None = block_size).
        upscale:            Nearest-neighbour enlargement applied when saving.
        kdtree_threshold:   Palette size from which matching uses a k-d tree.
        workers:            Thread count for palette building (None = auto).
    """

    block_size: int = 5
    input_source: Path | None = None
    output_mode: str = "flat"
    palette_path: Path | None = None
    output_path: Path | None = None

    # Transparency
    transparent_policy: str = "fallback"
    fallback_color: tuple[int, int, int] = (0, 0, 0)
    blank_glyph: str = " "

    # Output
    cell_size: int | None = None
    upscale: int = 1

    # Matching / indexing
    kdtree_threshold: int = 1024
    workers: int | None = None

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tiff", ".tif", ".webp"}
    )

    def validate(self) -> MosaicConfig:
        """Raise :class:`InvalidInput` on inconsistent settings, else return self."""
        if self.block_size < 1:
            msg = f"Block size must be >= 1, got {self.block_size}"
            raise InvalidInput(msg)
        if self.output_mode not in OUTPUT_MODES:
            msg = f"Unknown output mode '{self.output_mode}'. Available: {', '.join(OUTPUT_MODES)}"
            raise InvalidInput(msg)
        if self.transparent_policy not in TRANSPARENT_POLICIES:
            msg = (
                f"Unknown transparent policy '{self.transparent_policy}'. "
                f"Available: {', '.join(TRANSPARENT_POLICIES)}"
            )
            raise InvalidInput(msg)
        if self.output_mode != "flat" and self.palette_path is None:
            msg = f"Output mode '{self.output_mode}' needs a palette path"
            raise InvalidInput(msg)
        if self.cell_size is not None and self.cell_size < 1:
            msg = f"Cell size must be >= 1, got {self.cell_size}"
            raise InvalidInput(msg)
        if self.upscale < 1:
            msg = f"Upscale must be >= 1, got {self.upscale}"
            raise InvalidInput(msg)
        return self
