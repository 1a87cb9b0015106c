"""Image loading, grayscale views, saving, and comparison-grid generation."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from glyph_mosaic.canvas import Canvas


def compute_target_size(
    original_width: int,
    original_height: int,
    max_side: int,
) -> tuple[int, int]:
    """Compute downscaled (w, h) preserving aspect ratio.

    The longest side becomes *max_side*; the other is scaled
    proportionally (rounded to the nearest integer, minimum 1).
    """
    if original_width >= original_height:
        w = max_side
        h = max(1, round(original_height * max_side / original_width))
    else:
        h = max_side
        w = max(1, round(original_width * max_side / original_height))
    return w, h


def load_image(path: str | Path, max_side: int | None = None) -> np.ndarray:
    """Decode an image as RGB, shrinking it if its longest side exceeds *max_side*.

    Returns:
        (H, W, 3) uint8 array.
    """
    img = Image.open(path).convert("RGB")
    if max_side is not None and max(img.size) > max_side:
        w, h = compute_target_size(img.width, img.height, max_side)
        img = img.resize((w, h), Image.LANCZOS)
    return np.array(img, dtype=np.uint8)


def to_grayscale(rgb: np.ndarray) -> np.ndarray:
    """ITU-R 601 luma of an (H, W, 3) image, replicated back to three channels."""
    gray = np.array(Image.fromarray(rgb.astype(np.uint8)).convert("L"), dtype=np.uint8)
    return np.repeat(gray[:, :, np.newaxis], 3, axis=2)


def save_canvas(
    canvas: Canvas,
    path: str | Path,
    pixel_upscale: int = 1,
) -> None:
    """Encode the canvas, optionally nearest-neighbour-upscaled."""
    img = canvas.to_image()
    if pixel_upscale > 1:
        img = img.resize(
            (canvas.width * pixel_upscale, canvas.height * pixel_upscale),
            Image.NEAREST,
        )
    img.save(path)


def make_comparison_grid(
    original: np.ndarray,
    mosaic: np.ndarray,
    output_path: str | Path,
    labels: tuple[str, str] = ("Original", "Mosaic"),
) -> None:
    """Create a 2-panel comparison: Original | Mosaic."""
    h, w = original.shape[:2]
    label_height = 36
    gap = 8

    panels = [Image.fromarray(original), Image.fromarray(mosaic)]
    total_w = len(panels) * w + (len(panels) - 1) * gap
    total_h = h + label_height

    canvas = Image.new("RGB", (total_w, total_h), (30, 30, 30))
    draw = ImageDraw.Draw(canvas)

    try:
        font = ImageFont.truetype(
            "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 18,
        )
    except OSError:
        font = ImageFont.load_default()

    for i, (panel, label) in enumerate(zip(panels, labels, strict=False)):
        x = i * (w + gap)
        canvas.paste(panel, (x, label_height))

        bbox = draw.textbbox((0, 0), label, font=font)
        text_w = bbox[2] - bbox[0]
        tx = x + (w - text_w) // 2
        draw.text((tx, 6), label, fill=(220, 220, 220), font=font)

    canvas.save(output_path)
