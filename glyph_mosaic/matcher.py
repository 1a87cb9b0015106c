"""Pick the cached glyph that best (or worst) matches a tile."""

from __future__ import annotations

import numpy as np

from glyph_mosaic.glyphs import GlyphCache
from glyph_mosaic.similarity import score_all

# "best" minimises dissimilarity, "worst" maximises it (legacy behaviour).
MATCH_POLICIES = ("best", "worst")


def best_character(tile: np.ndarray, cache: GlyphCache, policy: str = "best") -> str:
    """Character whose reference glyph scores lowest (or highest) against *tile*.

    Ties go to the character that comes first in the cache's alphabet.

    Args:
        tile:   (h, w, 3) grayscale tile, same size as the cached glyphs.
        cache:  Reference glyphs.
        policy: ``"best"`` or ``"worst"``.
    """
    scores = score_all(cache.luminance_stack, tile)
    if policy == "best":
        idx = int(np.argmin(scores))
    elif policy == "worst":
        idx = int(np.argmax(scores))
    else:
        msg = f"Unknown match policy '{policy}'. Available: {', '.join(MATCH_POLICIES)}"
        raise ValueError(msg)
    return cache.characters[idx]
