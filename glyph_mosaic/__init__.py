"""
Glyph Mosaic
============

Redraw an image as a grid of character glyphs. Each tile of the source
is replaced by the character whose rendered shape best matches the tile's
luminance, recoloured with the tile's average colour and brightness.

- **GlyphCache**: reference glyphs rendered once per run
- **Compositor**: parallel per-tile matching, then a sequential blit
"""

__version__ = "0.3.0"

from glyph_mosaic.canvas import Canvas
from glyph_mosaic.color_utils import average_brightness, average_color, mean_delta_e
from glyph_mosaic.compositor import (
    Mosaic,
    TileResult,
    apply_tiles,
    characters_to_text,
    composite,
    compute_tiles,
    generate_mosaic,
    render,
)
from glyph_mosaic.config import MosaicConfig
from glyph_mosaic.glyphs import ALPHABET, Glyph, GlyphCache, GlyphRenderer, truetype_loader
from glyph_mosaic.image_io import load_image, save_canvas, to_grayscale
from glyph_mosaic.matcher import best_character
from glyph_mosaic.similarity import score
from glyph_mosaic.tiles import Tile, grid_shape

__all__ = [
    "ALPHABET",
    "Canvas",
    "Glyph",
    "GlyphCache",
    "GlyphRenderer",
    "Mosaic",
    "MosaicConfig",
    "Tile",
    "TileResult",
    "apply_tiles",
    "average_brightness",
    "average_color",
    "best_character",
    "characters_to_text",
    "composite",
    "compute_tiles",
    "generate_mosaic",
    "grid_shape",
    "load_image",
    "mean_delta_e",
    "render",
    "save_canvas",
    "score",
    "to_grayscale",
    "truetype_loader",
]
