"""Luminance dissimilarity between glyph bitmaps and source tiles.

Both sides are read through channel 0 only.  Source tiles come from a
grayscale view (luminance replicated across R, G, B) and reference glyphs
are rendered in grayscale colours, so the red channel carries the full
luminance.  The score is therefore symmetric in its arguments.
"""

from __future__ import annotations

import numpy as np


def luminance(buffer: np.ndarray) -> np.ndarray:
    """(H, W) int16 luminance taken from channel 0 of an (H, W, 3) buffer."""
    return buffer[..., 0].astype(np.int16)


def score(a: np.ndarray, b: np.ndarray) -> float:
    """Mean absolute luminance difference scaled to ``[0, 1]``.

    0 means identical luminance; larger is less similar.

    Raises:
        ValueError: if the buffers differ in width or height.
    """
    if a.shape[:2] != b.shape[:2]:
        msg = f"Cannot score {a.shape[:2]} against {b.shape[:2]}"
        raise ValueError(msg)
    diff = np.abs(luminance(a) - luminance(b))
    return float(diff.mean() / 255.0)


def score_all(stack: np.ndarray, tile: np.ndarray) -> np.ndarray:
    """Score *tile* against every (h, w) luminance plane in *stack* at once.

    Args:
        stack: (N, h, w) int16 glyph luminance.
        tile:  (h, w, 3) uint8 grayscale tile.

    Returns:
        (N,) float64 scores, same scale as :func:`score`.
    """
    if stack.shape[1:] != tile.shape[:2]:
        msg = f"Cannot score {tile.shape[:2]} tile against {stack.shape[1:]} glyphs"
        raise ValueError(msg)
    diff = np.abs(stack - luminance(tile)[np.newaxis])
    return diff.mean(axis=(1, 2)) / 255.0
