"""Glyph rasterisation and the per-run reference glyph cache."""

from __future__ import annotations

import io
import logging
import string
import threading
import time
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from glyph_mosaic.similarity import luminance

logger = logging.getLogger(__name__)

# No whitespace-only glyphs: they would match every flat tile.
SYMBOLS = "@#$%&*+=-/\\|()[]{}<>?!"
ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits + SYMBOLS

DEFAULT_FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf"

FontLoader = Callable[[int], "ImageFont.FreeTypeFont | ImageFont.ImageFont"]


def default_font_loader(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Monospace system font, or Pillow's bundled font when it is missing."""
    try:
        return ImageFont.truetype(DEFAULT_FONT_PATH, size)
    except OSError:
        logger.debug("%s unavailable, using Pillow default font", DEFAULT_FONT_PATH)
        return ImageFont.load_default(size=size)


def truetype_loader(source: str | Path | bytes) -> FontLoader:
    """Build a font loader from a font file path or raw TrueType bytes.

    Missing or corrupt font data raises :class:`OSError` on first use.
    """
    if isinstance(source, bytes):
        def load(size: int) -> ImageFont.FreeTypeFont:
            return ImageFont.truetype(io.BytesIO(source), size)
    else:
        path = str(source)

        def load(size: int) -> ImageFont.FreeTypeFont:
            return ImageFont.truetype(path, size)
    return load


def _rgb(color: Iterable[int]) -> tuple[int, int, int]:
    r, g, b = (int(c) for c in color)
    return r, g, b


@dataclass(frozen=True, eq=False)
class Glyph:
    """A rendered character bitmap; the pixels are made read-only."""

    character: str
    bitmap: np.ndarray

    def __post_init__(self) -> None:
        self.bitmap.flags.writeable = False

    @property
    def size(self) -> tuple[int, int]:
        h, w = self.bitmap.shape[:2]
        return w, h


class GlyphRenderer:
    """Rasterise single characters into fixed-size RGB bitmaps.

    Args:
        font_loader:  ``size -> ImageFont``.  Defaults to a monospace system
                      font.  Fonts are loaded lazily and cached per thread so
                      that concurrent renders never share a FreeType face.
        crop_margins: ``(right, bottom)`` fractions of the pixel size trimmed
                      off every rendered glyph to tighten its bounding box.
    """

    def __init__(
        self,
        font_loader: FontLoader | None = None,
        crop_margins: tuple[float, float] = (0.125, 0.0625),
    ) -> None:
        self.font_loader = font_loader or default_font_loader
        self.crop_margins = crop_margins
        self._local = threading.local()

    def font(self, size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        fonts = getattr(self._local, "fonts", None)
        if fonts is None:
            fonts = self._local.fonts = {}
        if size not in fonts:
            fonts[size] = self.font_loader(size)
        return fonts[size]

    def cropped_size(self, pixel_size: int) -> tuple[int, int]:
        """(width, height) of a glyph rendered at *pixel_size* after cropping."""
        right, bottom = self.crop_margins
        w = pixel_size - int(pixel_size * right)
        h = pixel_size - int(pixel_size * bottom)
        if w < 1 or h < 1:
            msg = (
                f"Crop margins {self.crop_margins} leave no pixels "
                f"at pixel_size={pixel_size}"
            )
            raise ValueError(msg)
        return w, h

    def render_character(
        self,
        character: str,
        pixel_size: int,
        background: Iterable[int],
        foreground: Iterable[int],
    ) -> np.ndarray:
        """Draw *character* on a square field; returns (pixel_size, pixel_size, 3) uint8."""
        img = Image.new("RGB", (pixel_size, pixel_size), _rgb(background))
        draw = ImageDraw.Draw(img)
        draw.text(
            (pixel_size // 4, 0),
            character,
            fill=_rgb(foreground),
            font=self.font(pixel_size + 1),
        )
        return np.array(img, dtype=np.uint8)

    def render_glyph(
        self,
        character: str,
        pixel_size: int,
        background: Iterable[int],
        foreground: Iterable[int],
    ) -> Glyph:
        """Render then crop the right/bottom margins."""
        w, h = self.cropped_size(pixel_size)
        full = self.render_character(character, pixel_size, background, foreground)
        return Glyph(character, np.ascontiguousarray(full[:h, :w]))


class GlyphCache(Mapping[str, Glyph]):
    """Read-only ``character -> Glyph`` table used only for matching.

    All glyphs share one size (:attr:`tile_size`).  Their luminance is stacked
    into a single ``(N, h, w)`` array so a tile can be scored against every
    glyph in one pass.
    """

    def __init__(self, glyphs: Iterable[Glyph], pixel_size: int) -> None:
        self._glyphs: dict[str, Glyph] = {}
        for glyph in glyphs:
            self._glyphs.setdefault(glyph.character, glyph)
        if not self._glyphs:
            msg = "Glyph cache needs at least one character"
            raise ValueError(msg)

        sizes = {g.size for g in self._glyphs.values()}
        if len(sizes) != 1:
            msg = f"Cached glyphs disagree in size: {sorted(sizes)}"
            raise ValueError(msg)

        self.pixel_size = pixel_size
        self.luminance_stack = np.stack(
            [luminance(g.bitmap) for g in self._glyphs.values()],
        )
        self.luminance_stack.flags.writeable = False

    @classmethod
    def build(
        cls,
        renderer: GlyphRenderer,
        alphabet: str = ALPHABET,
        pixel_size: int = 16,
        background: Iterable[int] = (255, 255, 255),
        foreground: Iterable[int] = (0, 0, 0),
    ) -> GlyphCache:
        """Render every character of *alphabet* once in the reference colours."""
        t0 = time.perf_counter()
        bg, fg = _rgb(background), _rgb(foreground)
        glyphs = [
            renderer.render_glyph(ch, pixel_size, bg, fg)
            for ch in dict.fromkeys(alphabet)
        ]
        cache = cls(glyphs, pixel_size)
        w, h = cache.tile_size
        logger.info(
            "Glyph cache ready  | %d glyphs  %dpx -> %dx%d tiles  (%.2f s)",
            len(cache), pixel_size, w, h, time.perf_counter() - t0,
        )
        return cache

    @property
    def tile_size(self) -> tuple[int, int]:
        return next(iter(self._glyphs.values())).size

    @property
    def characters(self) -> tuple[str, ...]:
        return tuple(self._glyphs)

    def __getitem__(self, character: str) -> Glyph:
        return self._glyphs[character]

    def __iter__(self) -> Iterator[str]:
        return iter(self._glyphs)

    def __len__(self) -> int:
        return len(self._glyphs)
