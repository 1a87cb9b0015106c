"""Mutable RGB pixel buffer used for glyph scratch space and the final mosaic."""

from __future__ import annotations

import numpy as np
from PIL import Image

RGB = tuple[int, int, int]


class Canvas:
    """Fixed-size (H, W, 3) uint8 buffer with bounds-checked pixel access.

    Coordinates are ``(x, y)`` with ``x`` along the width.  Any access outside
    ``[0, width) x [0, height)`` raises :class:`IndexError`; negative indices
    are rejected rather than wrapped.
    """

    def __init__(self, pixels: np.ndarray) -> None:
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            msg = f"Canvas needs an (H, W, 3) array, got shape {pixels.shape}"
            raise ValueError(msg)
        self.pixels = np.ascontiguousarray(pixels, dtype=np.uint8)

    @classmethod
    def create(cls, width: int, height: int, fill_color: RGB = (255, 255, 255)) -> Canvas:
        """New canvas with every pixel set to *fill_color*."""
        pixels = np.empty((height, width, 3), dtype=np.uint8)
        pixels[:] = fill_color
        return cls(pixels)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            msg = f"Pixel ({x}, {y}) outside {self.width}x{self.height} canvas"
            raise IndexError(msg)

    def get_pixel(self, x: int, y: int) -> RGB:
        self._check(x, y)
        r, g, b = self.pixels[y, x]
        return int(r), int(g), int(b)

    def set_pixel(self, x: int, y: int, color: RGB) -> None:
        self._check(x, y)
        self.pixels[y, x] = color

    def blit(self, source: np.ndarray | Canvas, dest_x: int, dest_y: int) -> None:
        """Copy all of *source* into this canvas with its top-left at (dest_x, dest_y).

        The source must fit entirely inside the canvas.
        """
        src = source.pixels if isinstance(source, Canvas) else source
        h, w = src.shape[:2]
        if dest_x < 0 or dest_y < 0 or dest_x + w > self.width or dest_y + h > self.height:
            msg = (
                f"Cannot blit {w}x{h} at ({dest_x}, {dest_y}) "
                f"into {self.width}x{self.height} canvas"
            )
            raise IndexError(msg)
        self.pixels[dest_y : dest_y + h, dest_x : dest_x + w] = src

    def to_image(self) -> Image.Image:
        return Image.fromarray(self.pixels)
