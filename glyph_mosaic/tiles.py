"""Grid partitioning of a source buffer into fixed-size tiles."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Tile:
    """A window of ``width x height`` pixels at grid cell ``(gx, gy)``."""

    gx: int
    gy: int
    width: int
    height: int

    @property
    def origin(self) -> tuple[int, int]:
        """Pixel offset of the tile's top-left corner."""
        return self.gx * self.width, self.gy * self.height

    def view(self, buffer: np.ndarray) -> np.ndarray:
        """Read-only (height, width, 3) view into *buffer*; no pixels are copied."""
        x, y = self.origin
        window = buffer[y : y + self.height, x : x + self.width]
        if window.shape[:2] != (self.height, self.width):
            msg = f"Tile {self} does not fit a buffer of shape {buffer.shape}"
            raise IndexError(msg)
        window = window.view()
        window.flags.writeable = False
        return window


def grid_shape(width: int, height: int, tile_size: tuple[int, int]) -> tuple[int, int]:
    """Number of whole tiles (columns, rows); partial edge tiles are dropped."""
    tile_w, tile_h = tile_size
    return width // tile_w, height // tile_h


def iter_tiles(width: int, height: int, tile_size: tuple[int, int]) -> Iterator[Tile]:
    """Yield every whole tile in row-major order."""
    cols, rows = grid_shape(width, height, tile_size)
    tile_w, tile_h = tile_size
    for gy in range(rows):
        for gx in range(cols):
            yield Tile(gx, gy, tile_w, tile_h)
