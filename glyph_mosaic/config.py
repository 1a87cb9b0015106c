"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from glyph_mosaic.glyphs import ALPHABET

RGB = tuple[int, int, int]


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        pixel_size:       Square render size of each glyph before cropping.
        crop_margins:     (right, bottom) margin removed from each rendered
                          glyph, as a fraction of *pixel_size*.
        alphabet:         Characters available to the matcher.
        cache_background: Background colour of the reference glyphs.
        cache_foreground: Ink colour of the reference glyphs.
        canvas_fill:      Initial colour of the output canvas.
        match_policy:     "best" (minimum dissimilarity) or "worst" (maximum).
        parallel:         Compute tiles on a thread pool.
        workers:          Thread-pool size (None = executor default).
        font_path:        TrueType font to render with (None = bundled monospace).
        max_side:         Downscale the source so its longest side fits (None = keep).
        pixel_upscale:    Each output pixel becomes n x n in the saved image.
        output_format:    Image format for saved files.
        save_comparison:  Generate a side-by-side comparison grid.
        save_text:        Write the matched characters as a .txt file.
        input_dir:        Folder to scan for source images.
        output_dir:       Folder for results.
    """

    # Glyphs
    pixel_size: int = 16
    crop_margins: tuple[float, float] = (0.125, 0.0625)  # tuned for DejaVu Sans Mono
    alphabet: str = ALPHABET
    cache_background: RGB = (255, 255, 255)
    cache_foreground: RGB = (0, 0, 0)

    # Matching / compositing
    canvas_fill: RGB = (255, 255, 255)
    match_policy: str = "best"  # "best" | "worst"
    parallel: bool = True
    workers: int | None = None
    font_path: str | None = None

    # Input
    max_side: int | None = None

    # Output
    pixel_upscale: int = 1
    output_format: str = "png"
    save_comparison: bool = False
    save_text: bool = False

    # Paths
    input_dir: Path = field(default_factory=lambda: Path("images"))
    output_dir: Path = field(default_factory=lambda: Path("output"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".jfif"}
    )
