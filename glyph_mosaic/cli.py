"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from glyph_mosaic.color_utils import mean_delta_e
from glyph_mosaic.compositor import Mosaic, generate_mosaic, make_cache, make_renderer
from glyph_mosaic.config import MosaicConfig
from glyph_mosaic.glyphs import GlyphCache, GlyphRenderer
from glyph_mosaic.image_io import load_image, make_comparison_grid, save_canvas
from glyph_mosaic.matcher import MATCH_POLICIES

app = typer.Typer(
    name="glyph-mosaic",
    help="Redraw any image as a mosaic of coloured character glyphs.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _collect_images(folder: Path, extensions: frozenset[str]) -> list[Path]:
    if not folder.exists():
        return []
    return sorted(
        f for f in folder.iterdir()
        if f.is_file() and f.suffix.lower() in extensions
    )


def _check_policy(match: str) -> str:
    if match not in MATCH_POLICIES:
        msg = f"expected one of: {', '.join(MATCH_POLICIES)}"
        raise typer.BadParameter(msg, param_hint="--match")
    return match


def _fail(exc: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {exc}")
    raise typer.Exit(1) from exc


def _process(
    source: Path,
    output: Path,
    cfg: MosaicConfig,
    renderer: GlyphRenderer,
    cache: GlyphCache,
    comparison: Path | None = None,
    text: Path | None = None,
) -> tuple[Mosaic, float]:
    """Load, composite and save one image; returns the mosaic and its ΔE error."""
    image = load_image(source, cfg.max_side)
    mosaic = generate_mosaic(image, cfg, renderer=renderer, cache=cache)

    save_canvas(mosaic.canvas, output, cfg.pixel_upscale)
    if comparison is not None:
        make_comparison_grid(image, mosaic.canvas.pixels, comparison)
    if text is not None:
        text.write_text(mosaic.text + "\n", encoding="utf-8")

    return mosaic, mean_delta_e(image, mosaic.canvas.pixels)


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- single-image command ----------------------------------------------

@app.command()
def render(
    source: Path = typer.Argument(..., help="Path to the source image"),
    output: Path = typer.Argument(..., help="Where to write the mosaic"),
    pixel_size: int = typer.Option(
        _DEFAULTS.pixel_size, "--pixel-size", "-p", min=1,
        help="Glyph render size in pixels (tile size is slightly smaller)",
    ),
    max_side: int | None = typer.Option(
        _DEFAULTS.max_side, "--max-side", "-m", min=1,
        help="Shrink the source so its longest side fits (aspect ratio preserved)",
    ),
    font: Path | None = typer.Option(None, "--font", "-f", help="TrueType font file"),
    match: str = typer.Option(
        _DEFAULTS.match_policy, "--match", help="'best' or 'worst' glyph match",
    ),
    workers: int | None = typer.Option(_DEFAULTS.workers, "--workers", "-w", min=1),
    parallel: bool = typer.Option(_DEFAULTS.parallel, "--parallel/--sequential"),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u", min=1),
    comparison: Path | None = typer.Option(
        None, "--comparison", help="Also save an Original | Mosaic grid here",
    ),
    text: Path | None = typer.Option(
        None, "--text", help="Also write the matched characters here",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Convert SOURCE into a glyph mosaic saved to OUTPUT."""
    _setup_logging(verbose)

    cfg = MosaicConfig(
        pixel_size=pixel_size,
        max_side=max_side,
        font_path=str(font) if font else None,
        match_policy=_check_policy(match),
        workers=workers,
        parallel=parallel,
        pixel_upscale=upscale,
    )

    t0 = time.perf_counter()
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        renderer = make_renderer(cfg)
        cache = make_cache(cfg, renderer)
        mosaic, err = _process(source, output, cfg, renderer, cache, comparison, text)
    except (OSError, ValueError) as exc:
        _fail(exc)

    cols, rows = mosaic.grid
    console.print(
        f"[green]✓[/green] Saved to {output}  "
        f"[dim]{cols}x{rows} glyphs  ΔE={err:.1f}"
        f"  time={time.perf_counter() - t0:.1f}s[/dim]"
    )


# -- batch command -----------------------------------------------------

@app.command()
def batch(
    input_dir: Path = typer.Option(
        _DEFAULTS.input_dir, "--input", "-i", help="Folder with source images",
    ),
    output_dir: Path = typer.Option(
        _DEFAULTS.output_dir, "--output", "-o", help="Results folder",
    ),
    pixel_size: int = typer.Option(_DEFAULTS.pixel_size, "--pixel-size", "-p", min=1),
    max_side: int | None = typer.Option(_DEFAULTS.max_side, "--max-side", "-m", min=1),
    font: Path | None = typer.Option(None, "--font", "-f"),
    match: str = typer.Option(_DEFAULTS.match_policy, "--match"),
    workers: int | None = typer.Option(_DEFAULTS.workers, "--workers", "-w", min=1),
    parallel: bool = typer.Option(_DEFAULTS.parallel, "--parallel/--sequential"),
    upscale: int = typer.Option(_DEFAULTS.pixel_upscale, "--upscale", "-u", min=1),
    comparison: bool = typer.Option(
        _DEFAULTS.save_comparison, "--comparison/--no-comparison",
        help="Save an Original | Mosaic grid per image",
    ),
    text: bool = typer.Option(
        _DEFAULTS.save_text, "--text/--no-text",
        help="Write the matched characters per image",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Process all images in INPUT_DIR and write results to OUTPUT_DIR."""
    _setup_logging(verbose)
    logger = logging.getLogger("glyph_mosaic")

    cfg = MosaicConfig(
        pixel_size=pixel_size,
        max_side=max_side,
        font_path=str(font) if font else None,
        match_policy=_check_policy(match),
        workers=workers,
        parallel=parallel,
        pixel_upscale=upscale,
        save_comparison=comparison,
        save_text=text,
        input_dir=input_dir,
        output_dir=output_dir,
    )

    input_dir.mkdir(exist_ok=True)
    output_dir.mkdir(exist_ok=True)

    images = _collect_images(input_dir, cfg.SUPPORTED_EXTENSIONS)
    if not images:
        console.print(f"\n[yellow]No images found in {input_dir}/[/yellow]")
        console.print("Place .jpg / .png / ... files there and re-run.\n")
        raise typer.Exit(0)

    console.print(Panel.fit(
        f"[bold]GLYPH MOSAIC[/bold]\n"
        f"Pixel size: {cfg.pixel_size}  |  Match: {cfg.match_policy}\n"
        f"Workers: {cfg.workers or 'auto'}  |  Parallel: {cfg.parallel}\n"
        f"Glyphs: {len(cfg.alphabet)}  |  Images: {len(images)}",
        border_style="cyan",
    ))

    # One glyph cache serves every image in the batch
    try:
        renderer = make_renderer(cfg)
        cache = make_cache(cfg, renderer)
    except (OSError, ValueError) as exc:
        _fail(exc)
    logger.info("Tile size: %dx%d", *cache.tile_size)

    errors: list[float] = []
    t_batch = time.perf_counter()

    for idx, img_path in enumerate(images, 1):
        stem = img_path.stem
        console.rule(f"[bold cyan][{idx}/{len(images)}] {img_path.name}[/bold cyan]")
        t_total = time.perf_counter()

        mosaic_path = output_dir / f"{stem}_mosaic.{cfg.output_format}"
        comp_path = (
            output_dir / f"{stem}_comparison.{cfg.output_format}"
            if cfg.save_comparison else None
        )
        text_path = output_dir / f"{stem}_glyphs.txt" if cfg.save_text else None

        try:
            mosaic, err = _process(
                img_path, mosaic_path, cfg, renderer, cache, comp_path, text_path,
            )
        except (OSError, ValueError) as exc:
            _fail(exc)

        errors.append(err)
        cols, rows = mosaic.grid
        elapsed = time.perf_counter() - t_total
        console.print(
            f"  [green]✓[/green] {mosaic_path.name}  "
            f"[dim]{cols}x{rows} glyphs  ΔE={err:.1f}"
            f"  time={elapsed:.1f}s[/dim]"
        )

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - results in [bold]{output_dir}/[/bold]\n"
        f"Mean ΔE: {sum(errors) / len(errors):.1f}  |  "
        f"Total time: {time.perf_counter() - t_batch:.1f}s",
        border_style="green",
    ))


if __name__ == "__main__":
    app()
