"""Palette index: build from source images, persist, reload.

The manifest maps entry names to source images::

    {"grinning": "emoji/1f600.png",
     "heart": {"path": "emoji/2764.png", "char": "❤"}}

The index file maps names to ``{"name", "r", "g", "b", "char"?}`` and is
written with a fixed layout so that load → save is byte-stable.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Iterator, Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from emoji_mosaic.averaging import average_image
from emoji_mosaic.color_utils import Color
from emoji_mosaic.errors import DecodeFailure, InvalidInput, UndefinedAverage
from emoji_mosaic.image_io import load_pixel_grid

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class PaletteEntry:
    """A named reference colour with an optional display glyph."""

    name: str
    r: int
    g: int
    b: int
    char: str | None = None

    @property
    def color(self) -> Color:
        return Color(self.r, self.g, self.b)

    @property
    def glyph(self) -> str:
        return self.char if self.char is not None else self.name

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"name": self.name, "r": self.r, "g": self.g, "b": self.b}
        if self.char is not None:
            data["char"] = self.char
        return data

    @classmethod
    def from_dict(cls, key: str, data: object) -> PaletteEntry:
        if not isinstance(data, dict):
            msg = f"Palette entry '{key}' must be an object"
            raise InvalidInput(msg)
        name = data.get("name", key)
        if name != key:
            msg = f"Palette entry '{key}' carries mismatched name '{name}'"
            raise InvalidInput(msg)
        channels = []
        for ch in ("r", "g", "b"):
            v = data.get(ch)
            if isinstance(v, bool) or not isinstance(v, int) or not 0 <= v <= 255:
                msg = f"Palette entry '{key}': channel '{ch}' must be an integer 0-255, got {v!r}"
                raise InvalidInput(msg)
            channels.append(v)
        char = data.get("char")
        if char is not None and not isinstance(char, str):
            msg = f"Palette entry '{key}': 'char' must be a string"
            raise InvalidInput(msg)
        return cls(key, *channels, char=char)


class Palette(Mapping[str, PaletteEntry]):
    """Insertion-ordered, read-only mapping of name → :class:`PaletteEntry`."""

    def __init__(self, entries: Mapping[str, PaletteEntry] | list[PaletteEntry] = ()) -> None:
        items = entries.values() if isinstance(entries, Mapping) else entries
        self._entries: dict[str, PaletteEntry] = {}
        for entry in items:
            if entry.name in self._entries:
                msg = f"Duplicate palette entry '{entry.name}'"
                raise InvalidInput(msg)
            self._entries[entry.name] = entry

    def __getitem__(self, name: str) -> PaletteEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Palette({len(self)} entries)"

    def colors(self) -> np.ndarray:
        """(N, 3) uint8 colours in palette order."""
        if not self._entries:
            return np.empty((0, 3), dtype=np.uint8)
        return np.array([(e.r, e.g, e.b) for e in self._entries.values()], dtype=np.uint8)

    def to_json(self) -> str:
        payload = {name: entry.to_dict() for name, entry in self._entries.items()}
        return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

    @classmethod
    def from_json(cls, text: str) -> Palette:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            msg = f"Malformed palette JSON: {exc}"
            raise InvalidInput(msg) from exc
        if not isinstance(payload, dict):
            msg = "Palette JSON must be an object of name → entry"
            raise InvalidInput(msg)
        return cls([PaletteEntry.from_dict(k, v) for k, v in payload.items()])


# -- Manifest ----------------------------------------------------------


@dataclass(frozen=True)
class PaletteSource:
    """One manifest line: an image to average plus an optional glyph."""

    path: Path
    char: str | None = None


def load_manifest(path: str | Path) -> dict[str, PaletteSource]:
    """Read a manifest JSON; relative image paths resolve against its folder."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        msg = f"Manifest not found: {path}"
        raise InvalidInput(msg) from None
    except UnicodeDecodeError as exc:
        msg = f"Manifest is not valid UTF-8: {path} ({exc})"
        raise InvalidInput(msg) from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Malformed manifest JSON in {path}: {exc}"
        raise InvalidInput(msg) from exc
    if not isinstance(payload, dict):
        msg = f"Manifest {path} must be an object of name → image path"
        raise InvalidInput(msg)

    base = path.parent
    sources: dict[str, PaletteSource] = {}
    for name, value in payload.items():
        if isinstance(value, str):
            src, char = value, None
        elif isinstance(value, dict) and isinstance(value.get("path"), str):
            src, char = value["path"], value.get("char")
            if char is not None and not isinstance(char, str):
                msg = f"Manifest entry '{name}': 'char' must be a string"
                raise InvalidInput(msg)
        else:
            msg = f"Manifest entry '{name}' must be a path or {{'path': ..., 'char': ...}}"
            raise InvalidInput(msg)
        p = Path(src)
        sources[name] = PaletteSource(p if p.is_absolute() else base / p, char)

    logger.info("Manifest %s: %d source(s)", path, len(sources))
    return sources


# -- Building ----------------------------------------------------------


@dataclass(frozen=True)
class SkippedSource:
    name: str
    reason: str


@dataclass(frozen=True)
class PaletteBuild:
    """Outcome of :func:`build_palette`: the partial palette and what failed."""

    palette: Palette
    skipped: list[SkippedSource] = field(default_factory=list)

    @property
    def skipped_names(self) -> list[str]:
        return [s.name for s in self.skipped]


def _index_source(name: str, source: PaletteSource) -> PaletteEntry:
    grid = load_pixel_grid(source.path)
    avg = average_image(grid)
    return PaletteEntry(name, avg.r, avg.g, avg.b, char=source.char)


def build_palette(
    sources: Mapping[str, PaletteSource | str | Path],
    workers: int | None = None,
    progress: ProgressCallback | None = None,
) -> PaletteBuild:
    """Average every source image into a palette entry.

    Sources are decoded and averaged on a thread pool. A source that cannot
    be decoded or is fully transparent is recorded in
    :attr:`PaletteBuild.skipped` and the rest of the batch carries on.
    Entries follow the order of *sources*.

    Args:
        sources:  name → image path (or :class:`PaletteSource`).
        workers:  Thread count (``None`` = ``min(32, cpu + 4)``).
        progress: Called as ``progress(done, total)`` after every source.
    """
    normalised = {
        name: src if isinstance(src, PaletteSource) else PaletteSource(Path(src))
        for name, src in sources.items()
    }
    total = len(normalised)
    if workers is None:
        workers = min(32, (os.cpu_count() or 1) + 4)
    workers = max(1, min(workers, total or 1))

    logger.info("Indexing %d source image(s) with %d worker(s) …", total, workers)
    done_entries: dict[str, PaletteEntry] = {}
    failures: dict[str, str] = {}

    with ThreadPoolExecutor(max_workers=workers) as executor:
        future_to_name = {
            executor.submit(_index_source, name, src): name
            for name, src in normalised.items()
        }
        for done, future in enumerate(as_completed(future_to_name), 1):
            name = future_to_name[future]
            try:
                done_entries[name] = future.result()
            except (DecodeFailure, UndefinedAverage, InvalidInput) as exc:
                failures[name] = str(exc)
                logger.warning("Skipping '%s': %s", name, exc)
            if progress is not None:
                progress(done, total)

    palette = Palette([done_entries[n] for n in normalised if n in done_entries])
    skipped = [SkippedSource(n, failures[n]) for n in normalised if n in failures]
    logger.info("Palette ready: %d entries, %d skipped", len(palette), len(skipped))
    return PaletteBuild(palette, skipped)


# -- Persistence -------------------------------------------------------


def save_palette(palette: Palette, path: str | Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(palette.to_json(), encoding="utf-8")
    logger.info("Wrote palette index %s (%d entries)", path, len(palette))
    return path


def load_palette(path: str | Path) -> Palette:
    """Read a palette index once; the result is shared read-only by a run."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        msg = f"Palette index not found: {path}"
        raise InvalidInput(msg) from None
    except UnicodeDecodeError as exc:
        msg = f"Palette index is not valid UTF-8: {path} ({exc})"
        raise InvalidInput(msg) from exc
    palette = Palette.from_json(text)
    logger.info("Loaded palette %s (%d entries)", path, len(palette))
    return palette
