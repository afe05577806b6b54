"""Nearest palette entry by Euclidean RGB distance.

Ties go to the entry that comes first in palette order. Distances are
compared on exact integer squares, so the choice never depends on
floating-point noise. Large palettes are searched through a k-d tree.
"""

from __future__ import annotations

import logging
import math
from typing import NamedTuple

import numpy as np
from scipy.spatial import cKDTree

from emoji_mosaic.color_utils import squared_distances
from emoji_mosaic.errors import EmptyPalette, InvalidInput
from emoji_mosaic.palette import Palette, PaletteEntry

logger = logging.getLogger(__name__)


class Match(NamedTuple):
    entry: PaletteEntry
    distance: float


class NearestColorMatcher:
    """Answers nearest-colour queries against one loaded palette.

    Args:
        palette:          Read-only palette shared for the whole run.
        kdtree_threshold: Palette size from which queries go through a
                          :class:`scipy.spatial.cKDTree`.
        chunk_size:       Targets compared per batch in :meth:`match_many`
                          (controls peak RAM on the brute-force path).
    """

    def __init__(
        self,
        palette: Palette,
        kdtree_threshold: int = 1024,
        chunk_size: int = 512,
    ) -> None:
        if len(palette) == 0:
            msg = "Cannot match colours against an empty palette"
            raise EmptyPalette(msg)
        self.palette = palette
        self._entries = list(palette.values())
        self._colors = palette.colors().astype(np.int64)
        self._chunk_size = chunk_size
        self._tree = None
        if len(self._entries) >= kdtree_threshold:
            self._tree = cKDTree(self._colors.astype(np.float64))
            logger.debug("k-d tree over %d palette colours", len(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    @staticmethod
    def _as_target(color: tuple[int, int, int]) -> np.ndarray:
        target = np.asarray(color, dtype=np.int64).reshape(-1)
        if target.shape != (3,):
            msg = f"Expected an (r, g, b) colour, got {color!r}"
            raise InvalidInput(msg)
        return target

    def _nearest_index(self, target: np.ndarray) -> tuple[int, int]:
        """Index of the first entry at minimal distance and its squared distance."""
        if self._tree is None:
            sq = squared_distances(self._colors, target)
            idx = int(np.argmin(sq))
            return idx, int(sq[idx])

        dist, _ = self._tree.query(target.astype(np.float64))
        candidates = np.array(
            sorted(self._tree.query_ball_point(target.astype(np.float64), dist + 1e-6)),
            dtype=np.intp,
        )
        sq = squared_distances(self._colors[candidates], target)
        best = int(np.argmin(sq))
        return int(candidates[best]), int(sq[best])

    def match(self, color: tuple[int, int, int]) -> Match:
        idx, sq = self._nearest_index(self._as_target(color))
        return Match(self._entries[idx], math.sqrt(sq))

    def match_many(self, colors: np.ndarray) -> np.ndarray:
        """Palette indices of the nearest entry for each row of an (M, 3) array."""
        targets = np.asarray(colors, dtype=np.int64).reshape(-1, 3)
        out = np.empty(len(targets), dtype=np.intp)
        if self._tree is not None:
            for i, target in enumerate(targets):
                out[i] = self._nearest_index(target)[0]
            return out

        for i in range(0, len(targets), self._chunk_size):
            j = min(i + self._chunk_size, len(targets))
            sq = squared_distances(self._colors[np.newaxis, :, :], targets[i:j, np.newaxis, :])
            out[i:j] = np.argmin(sq, axis=1)
        return out

    def entry(self, index: int) -> PaletteEntry:
        return self._entries[index]


def match_nearest(color: tuple[int, int, int], palette: Palette) -> Match:
    """One-off lookup; build a :class:`NearestColorMatcher` for repeated queries."""
    return NearestColorMatcher(palette).match(color)
