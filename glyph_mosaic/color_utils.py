"""Tile colour sampling and perceptual error between source and mosaic."""

from __future__ import annotations

import numpy as np
from skimage.color import deltaE_cie76, rgb2lab

RGB = tuple[int, int, int]

# Integer weights of the brightness estimate: (2R + 3G + B) / 6
BRIGHTNESS_WEIGHTS = np.array([2, 3, 1], dtype=np.uint64)


def average_color(tile: np.ndarray) -> RGB:
    """Per-channel mean of an (h, w, 3) tile, truncated to integers."""
    flat = tile.reshape(-1, 3).astype(np.uint64)
    r, g, b = flat.sum(axis=0) // len(flat)
    return int(r), int(g), int(b)


def average_brightness(tile: np.ndarray) -> RGB:
    """Mean weighted luminance of a tile, replicated as a grey RGB triple."""
    flat = tile.reshape(-1, 3).astype(np.uint64)
    total = int((flat * BRIGHTNESS_WEIGHTS).sum())
    v = total // (int(BRIGHTNESS_WEIGHTS.sum()) * len(flat))
    return v, v, v


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert flat (N, 3) uint8 RGB → (N, 3) float64 CIELAB."""
    return rgb2lab(rgb.astype(np.float64).reshape(1, -1, 3) / 255.0).reshape(-1, 3)


def mean_delta_e(source: np.ndarray, mosaic: np.ndarray) -> float:
    """Mean CIE76 ΔE between two (H, W, 3) uint8 images of equal size."""
    if source.shape != mosaic.shape:
        msg = f"Shape mismatch: {source.shape} vs {mosaic.shape}"
        raise ValueError(msg)
    s = rgb_to_lab(source.reshape(-1, 3))
    m = rgb_to_lab(mosaic.reshape(-1, 3))
    return float(np.mean(deltaE_cie76(s, m)))
