"""Colour records, rounding and Euclidean RGB distance."""

from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

from emoji_mosaic.errors import InvalidInput


class Color(NamedTuple):
    """An averaged, alpha-free RGB colour."""

    r: int
    g: int
    b: int


def round_half_up(total: np.ndarray | int, count: np.ndarray | int) -> np.ndarray | int:
    """Integer ``round(total / count)`` with halves rounded up.

    Works on plain ints and on integer numpy arrays alike; *count* must be
    strictly positive wherever the result is used.
    """
    return (2 * total + count) // (2 * count)


def color_distance(a: tuple[int, int, int], b: tuple[int, int, int]) -> float:
    """Euclidean distance between two RGB triples."""
    return math.sqrt(
        (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2 + (a[2] - b[2]) ** 2
    )


def squared_distances(colors: np.ndarray, target: np.ndarray) -> np.ndarray:
    """Exact squared distances from each row of *colors* to *target*.

    Args:
        colors: (N, 3) integer array.
        target: (3,) or (M, 1, 3) integer array.

    Returns:
        int64 array, broadcast over the leading axes.
    """
    diff = colors.astype(np.int64) - np.asarray(target, dtype=np.int64)
    return np.sum(diff * diff, axis=-1)


def parse_color(value: str) -> Color:
    """Parse ``#RRGGBB``, ``RRGGBB`` or ``r,g,b`` into a :class:`Color`."""
    text = value.strip()
    try:
        if "," in text:
            parts = [int(p) for p in text.split(",")]
        else:
            h = text.lstrip("#")
            if len(h) != 6:
                raise ValueError(h)
            parts = [int(h[i:i + 2], 16) for i in (0, 2, 4)]
    except ValueError:
        msg = f"Cannot parse colour {value!r} (use '#RRGGBB' or 'r,g,b')"
        raise InvalidInput(msg) from None

    if len(parts) != 3 or any(not 0 <= p <= 255 for p in parts):
        msg = f"Colour {value!r} must have three channels in 0-255"
        raise InvalidInput(msg)
    return Color(*parts)
