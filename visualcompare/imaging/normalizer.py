"""Image normalizer: fits screenshots onto a fixed canvas without cropping."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)

TRANSPARENT = (255, 255, 255, 0)


def fit_within(size: tuple[int, int], width: int, height: int) -> tuple[int, int]:
    """Largest size with the same aspect ratio as ``size`` that fits in width x height."""
    src_w, src_h = size
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Cannot fit an empty image ({src_w}x{src_h})")
    scale = min(width / src_w, height / src_h)
    return max(1, round(src_w * scale)), max(1, round(src_h * scale))


def pad_to_canvas(img: Image.Image, width: int, height: int) -> Image.Image:
    """Scale ``img`` to fit inside the canvas and center it on a transparent background."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Canvas must be positive, got {width}x{height}")
    img = img.convert("RGBA")
    new_size = fit_within(img.size, width, height)
    if new_size != img.size:
        img = img.resize(new_size, Image.LANCZOS)
    canvas = Image.new("RGBA", (width, height), TRANSPARENT)
    offset = ((width - new_size[0]) // 2, (height - new_size[1]) // 2)
    canvas.paste(img, offset)
    return canvas


def normalize_image(path: Path, width: int, height: int) -> tuple[int, int]:
    """Resize the image at ``path`` onto a width x height canvas, overwriting it.

    Decode and encode errors propagate to the caller.
    """
    path = Path(path)
    with Image.open(path) as img:
        original_size = img.size
        result = pad_to_canvas(img, width, height)
    result.save(path, format="PNG")
    logger.debug("Normalized %s from %dx%d to %dx%d",
                 path, original_size[0], original_size[1], width, height)
    return result.size
