"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn, TimeElapsedColumn

from emoji_mosaic.color_utils import parse_color
from emoji_mosaic.config import MosaicConfig
from emoji_mosaic.errors import MosaicError
from emoji_mosaic.palette import build_palette, load_manifest, save_palette
from emoji_mosaic.pipeline import run_pipeline

app = typer.Typer(
    name="emoji-mosaic",
    help="Block-average an image into a colour mosaic or emoji art.",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)
# stdout is reserved for emoji-art text; status and logs go to stderr
console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    logging.getLogger("emoji_mosaic").setLevel(level)


def _fail(exc: Exception) -> typer.Exit:
    console.print(f"[bold red]error:[/bold red] {escape(str(exc))}")
    return typer.Exit(1)


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- build-palette command ---------------------------------------------

@app.command("build-palette")
def build_palette_cmd(
    manifest: Path = typer.Argument(..., help="JSON manifest: name → image path"),
    output: Path = typer.Argument(..., help="Palette index JSON to write"),
    workers: int | None = typer.Option(
        _DEFAULTS.workers, "--workers", "-w", help="Decode threads (default: auto)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Average every manifest image and write the palette index."""
    _setup_logging(verbose)
    t0 = time.perf_counter()

    try:
        sources = load_manifest(manifest)
        with Progress(
            TextColumn("[cyan]Indexing"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as bar:
            task = bar.add_task("index", total=len(sources))
            result = build_palette(
                sources, workers=workers,
                progress=lambda done, total: bar.update(task, completed=done),
            )
        save_palette(result.palette, output)
    except (MosaicError, OSError) as exc:
        raise _fail(exc) from exc

    for skipped in result.skipped:
        console.print(f"  [yellow]skipped[/yellow] {escape(skipped.name)}: {escape(skipped.reason)}")
    console.print(
        f"[green]✓[/green] {output}  "
        f"[dim]{len(result.palette)} entries, {len(result.skipped)} skipped"
        f"  time={time.perf_counter() - t0:.1f}s[/dim]"
    )


# -- mosaic command ----------------------------------------------------

@app.command()
def mosaic(
    input_image: Path = typer.Argument(..., help="Image to process"),
    output: Path = typer.Argument(..., help="PNG file to write"),
    block_size: int = typer.Argument(..., help="Block side in pixels"),
    cell_size: int | None = typer.Option(
        _DEFAULTS.cell_size, "--cell-size", "-c",
        help="Output pixels per block (default: block size, keeps source dimensions)",
    ),
    upscale: int = typer.Option(_DEFAULTS.upscale, "--upscale", "-u", help="Pixel upscale factor"),
    transparent: str = typer.Option(
        _DEFAULTS.transparent_policy, "--transparent", "-t",
        help="Fully transparent blocks: 'fallback', 'skip' or 'error'",
    ),
    fallback: str = typer.Option("#000000", "--fallback", help="Colour for the 'fallback' policy"),
    palette: Path | None = typer.Option(
        None, "--palette", "-p", help="Snap block colours to this palette index",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Re-render INPUT_IMAGE as a block-colour mosaic."""
    _setup_logging(verbose)

    try:
        cfg = MosaicConfig(
            block_size=block_size,
            input_source=input_image,
            output_mode="palette-color" if palette else "flat",
            palette_path=palette,
            output_path=output,
            transparent_policy=transparent,
            fallback_color=tuple(parse_color(fallback)),
            cell_size=cell_size,
            upscale=upscale,
        )
        result = run_pipeline(cfg)
    except (MosaicError, OSError) as exc:
        raise _fail(exc) from exc

    console.print(
        f"[green]✓[/green] Saved to {result.output_path}  "
        f"[dim]{result.mosaic.cols}x{result.mosaic.rows} blocks of {block_size} px[/dim]"
    )


# -- emoji-art command -------------------------------------------------

@app.command("emoji-art")
def emoji_art(
    input_image: Path = typer.Argument(..., help="Image to process"),
    palette: Path = typer.Argument(..., help="Palette index JSON"),
    block_size: int = typer.Argument(..., help="Block side in pixels"),
    transparent: str = typer.Option(
        _DEFAULTS.transparent_policy, "--transparent", "-t",
        help="Fully transparent blocks: 'fallback', 'skip' or 'error'",
    ),
    blank: str = typer.Option(_DEFAULTS.blank_glyph, "--blank", help="Text for skipped blocks"),
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the text grid here instead of stdout",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Print INPUT_IMAGE as a grid of nearest-colour palette glyphs."""
    _setup_logging(verbose)

    try:
        cfg = MosaicConfig(
            block_size=block_size,
            input_source=input_image,
            output_mode="glyph",
            palette_path=palette,
            output_path=output,
            transparent_policy=transparent,
            blank_glyph=blank,
        )
        result = run_pipeline(cfg)
    except (MosaicError, OSError) as exc:
        raise _fail(exc) from exc

    if result.output_path is None:
        typer.echo(result.text)
    else:
        console.print(Panel.fit(
            f"[bold green]DONE[/bold green] - {result.mosaic.cols}x{result.mosaic.rows} "
            f"glyphs in [bold]{escape(str(result.output_path))}[/bold]",
            border_style="green",
        ))


if __name__ == "__main__":
    app()
