"""Tile-by-tile glyph substitution: a parallel map followed by a sequential blit.

Every tile task reads only immutable inputs (the two source views, the glyph
cache) and returns its own freshly rendered glyph.  The output canvas is
written afterwards on the calling thread, so no locking is involved and the
result does not depend on task completion order.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial

import numpy as np

from glyph_mosaic.canvas import Canvas
from glyph_mosaic.color_utils import average_brightness, average_color
from glyph_mosaic.config import MosaicConfig
from glyph_mosaic.glyphs import Glyph, GlyphCache, GlyphRenderer, truetype_loader
from glyph_mosaic.image_io import to_grayscale
from glyph_mosaic.matcher import MATCH_POLICIES, best_character
from glyph_mosaic.tiles import Tile, grid_shape, iter_tiles

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileResult:
    """The recoloured glyph chosen for one tile."""

    tile: Tile
    glyph: Glyph

    @property
    def character(self) -> str:
        return self.glyph.character


@dataclass
class Mosaic:
    """Output of :func:`generate_mosaic`."""

    canvas: Canvas
    tiles: list[TileResult]
    grid: tuple[int, int]  # (columns, rows)

    @property
    def text(self) -> str:
        return characters_to_text(self.tiles, self.grid[0])


def _render_tile(
    tile: Tile,
    *,
    source_color: np.ndarray,
    source_gray: np.ndarray,
    cache: GlyphCache,
    renderer: GlyphRenderer,
    pixel_size: int,
    policy: str,
) -> TileResult:
    character = best_character(tile.view(source_gray), cache, policy)
    color_tile = tile.view(source_color)
    glyph = renderer.render_glyph(
        character,
        pixel_size,
        background=average_brightness(color_tile),
        foreground=average_color(color_tile),
    )
    return TileResult(tile, glyph)


def compute_tiles(
    source_color: np.ndarray,
    source_gray: np.ndarray,
    cache: GlyphCache,
    renderer: GlyphRenderer,
    *,
    pixel_size: int | None = None,
    policy: str = "best",
    parallel: bool = True,
    workers: int | None = None,
) -> list[TileResult]:
    """Match, sample and re-render every whole tile of the source.

    Args:
        source_color: (H, W, 3) uint8 colour image.
        source_gray:  (H, W, 3) uint8 grayscale view of the same image.
        cache:        Reference glyphs; their size is the tile size.
        renderer:     Renderer used for the recoloured glyphs.
        pixel_size:   Re-render size (defaults to the cache's pixel size).
        policy:       ``"best"`` or ``"worst"`` (see :mod:`glyph_mosaic.matcher`).
        parallel:     Run tiles on a thread pool.
        workers:      Pool size (None = executor default).

    Returns:
        One :class:`TileResult` per tile in row-major order.
    """
    if source_color.shape != source_gray.shape:
        msg = f"Colour {source_color.shape} and grayscale {source_gray.shape} views differ"
        raise ValueError(msg)
    if policy not in MATCH_POLICIES:
        msg = f"Unknown match policy '{policy}'. Available: {', '.join(MATCH_POLICIES)}"
        raise ValueError(msg)

    h, w = source_gray.shape[:2]
    tiles = list(iter_tiles(w, h, cache.tile_size))
    cols, rows = grid_shape(w, h, cache.tile_size)

    job = partial(
        _render_tile,
        source_color=source_color,
        source_gray=source_gray,
        cache=cache,
        renderer=renderer,
        pixel_size=pixel_size or cache.pixel_size,
        policy=policy,
    )

    logger.info(
        "Compositing %dx%d tiles (%s, policy=%s) …",
        cols, rows, "parallel" if parallel else "sequential", policy,
    )
    t0 = time.perf_counter()
    if parallel and len(tiles) > 1:
        with ThreadPoolExecutor(max_workers=workers) as ex:
            results = list(ex.map(job, tiles))
    else:
        results = [job(tile) for tile in tiles]
    logger.info("Tiles ready  (%.2f s)", time.perf_counter() - t0)
    return results


def apply_tiles(canvas: Canvas, results: Iterable[TileResult]) -> Canvas:
    """Blit each result into *canvas* at its tile's pixel offset."""
    for result in results:
        tile = result.tile
        if result.glyph.size != (tile.width, tile.height):
            msg = (
                f"Glyph {result.glyph.size} does not fill "
                f"{tile.width}x{tile.height} tile at ({tile.gx}, {tile.gy})"
            )
            raise ValueError(msg)
        x, y = tile.origin
        logger.debug("  tile (%d, %d) -> %r", tile.gx, tile.gy, result.character)
        canvas.blit(result.glyph.bitmap, x, y)
    return canvas


def composite(
    source_color: np.ndarray,
    source_gray: np.ndarray,
    cache: GlyphCache,
    renderer: GlyphRenderer,
    *,
    pixel_size: int | None = None,
    fill: tuple[int, int, int] = (255, 255, 255),
    policy: str = "best",
    parallel: bool = True,
    workers: int | None = None,
) -> tuple[Canvas, list[TileResult]]:
    """Full-size glyph mosaic plus the per-tile results it was blitted from.

    Partial edge tiles keep *fill*.
    """
    h, w = source_color.shape[:2]
    results = compute_tiles(
        source_color, source_gray, cache, renderer,
        pixel_size=pixel_size, policy=policy, parallel=parallel, workers=workers,
    )
    return apply_tiles(Canvas.create(w, h, fill), results), results


def render(
    source_color: np.ndarray,
    source_gray: np.ndarray,
    cache: GlyphCache,
    renderer: GlyphRenderer,
    **options,
) -> Canvas:
    """Full-size glyph mosaic of the source; see :func:`composite` for *options*."""
    canvas, _ = composite(source_color, source_gray, cache, renderer, **options)
    return canvas


def characters_to_text(results: Sequence[TileResult], columns: int) -> str:
    """Matched characters as text, one line per tile row."""
    if columns < 1:
        return ""
    chars = [r.character for r in results]
    return "\n".join(
        "".join(chars[i : i + columns]) for i in range(0, len(chars), columns)
    )


def make_renderer(config: MosaicConfig) -> GlyphRenderer:
    """Renderer for ``config.font_path`` (or the default font) and crop margins."""
    loader = truetype_loader(config.font_path) if config.font_path else None
    return GlyphRenderer(loader, crop_margins=config.crop_margins)


def make_cache(config: MosaicConfig, renderer: GlyphRenderer) -> GlyphCache:
    return GlyphCache.build(
        renderer,
        config.alphabet,
        config.pixel_size,
        background=config.cache_background,
        foreground=config.cache_foreground,
    )


def generate_mosaic(
    source_color: np.ndarray,
    config: MosaicConfig | None = None,
    renderer: GlyphRenderer | None = None,
    cache: GlyphCache | None = None,
) -> Mosaic:
    """Composite *source_color* end to end.

    Args:
        source_color: (H, W, 3) uint8 image.
        config:       Run parameters (defaults to ``MosaicConfig()``).
        renderer:     Glyph renderer; built with :func:`make_renderer` when omitted.
        cache:        Reference glyphs from the same renderer; built when
                      omitted.  Pass one in to reuse it across images.
    """
    cfg = config or MosaicConfig()
    if renderer is None:
        renderer = make_renderer(cfg)
    if cache is None:
        cache = make_cache(cfg, renderer)
    source_gray = to_grayscale(source_color)

    canvas, results = composite(
        source_color, source_gray, cache, renderer,
        fill=cfg.canvas_fill,
        policy=cfg.match_policy,
        parallel=cfg.parallel,
        workers=cfg.workers,
    )
    return Mosaic(canvas, results, grid_shape(canvas.width, canvas.height, cache.tile_size))
