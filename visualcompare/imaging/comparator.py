"""Pixel comparator: perceptual per-pixel diff of two equally sized images.

Colors are compared in YIQ space after blending each pixel's alpha onto a white
background. A pixel over the threshold that sits on an anti-aliased edge in
either image is drawn in the anti-aliasing color and left out of the mismatch
count, unless ``include_aa`` is set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from visualcompare.models.config import ComparisonConfig
from visualcompare.models.result import SIZE_MISMATCH

logger = logging.getLogger(__name__)

# Largest possible YIQ delta between two colors
MAX_YIQ_DELTA = 35215.0

# 3x3 neighbourhood, scanned column by column, top to bottom
_NEIGHBOURS = [(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)]


@dataclass(frozen=True)
class DiffOutcome:
    mismatched_pixels: int
    total_pixels: int
    diff_image: Image.Image
    antialiased_pixels: int = 0


@dataclass(frozen=True)
class ComparisonOutcome:
    similarity: Union[float, str]
    mismatched_pixels: Optional[int] = None
    total_pixels: Optional[int] = None
    diff_path: Optional[Path] = None

    @property
    def size_mismatch(self) -> bool:
        return self.similarity == SIZE_MISMATCH


def similarity_percentage(total_pixels: int, mismatched_pixels: int) -> float:
    if total_pixels == 0:
        return 100.0
    return (total_pixels - mismatched_pixels) / total_pixels * 100


def _blend_on_white(rgba: np.ndarray) -> np.ndarray:
    rgb = rgba[..., :3].astype(np.float64)
    alpha = rgba[..., 3:4].astype(np.float64) / 255.0
    return 255.0 + (rgb - 255.0) * alpha


def _luma(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.29889531 + rgb[..., 1] * 0.58662247 + rgb[..., 2] * 0.11448223


def _in_phase(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.59597799 - rgb[..., 1] * 0.27417610 - rgb[..., 2] * 0.32180189


def _quadrature(rgb: np.ndarray) -> np.ndarray:
    return rgb[..., 0] * 0.21147017 - rgb[..., 1] * 0.52261711 + rgb[..., 2] * 0.31114694


def _yiq_delta(rgb_a: np.ndarray, rgb_b: np.ndarray) -> np.ndarray:
    """Signed perceptual delta; negative where the first image is brighter."""
    y_a = _luma(rgb_a)
    y_b = _luma(rgb_b)
    y = y_a - y_b
    i = _in_phase(rgb_a) - _in_phase(rgb_b)
    q = _quadrature(rgb_a) - _quadrature(rgb_b)
    delta = 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q
    return np.where(y_a > y_b, -delta, delta)


def _neighbour(arr: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """Value at (x+dx, y+dy) for every pixel. Out-of-image cells repeat the edge."""
    height, width = arr.shape[:2]
    pad = [(1, 1), (1, 1)] + [(0, 0)] * (arr.ndim - 2)
    padded = np.pad(arr, pad, mode="edge")
    return padded[1 + dy:1 + dy + height, 1 + dx:1 + dx + width]


def _in_bounds(height: int, width: int, dx: int, dy: int) -> np.ndarray:
    ys = np.arange(height)[:, None] + dy
    xs = np.arange(width)[None, :] + dx
    return (ys >= 0) & (ys < height) & (xs >= 0) & (xs < width)


def _on_border(height: int, width: int) -> np.ndarray:
    ys = np.arange(height)[:, None]
    xs = np.arange(width)[None, :]
    return (ys == 0) | (ys == height - 1) | (xs == 0) | (xs == width - 1)


def _has_many_siblings(rgba: np.ndarray) -> np.ndarray:
    """True where more than two neighbours are exactly the same color.

    Image borders count as one sibling.
    """
    height, width = rgba.shape[:2]
    same = _on_border(height, width).astype(np.int32)
    for dx, dy in _NEIGHBOURS:
        identical = np.all(_neighbour(rgba, dx, dy) == rgba, axis=2)
        same += _in_bounds(height, width, dx, dy) & identical
    return same > 2


def _antialiased(
    rgba: np.ndarray,
    luma: np.ndarray,
    siblings: np.ndarray,
    other_siblings: np.ndarray,
) -> np.ndarray:
    """Pixels of ``rgba`` that look like anti-aliasing.

    Such a pixel has at most two neighbours of equal brightness, and both a
    darker and a brighter neighbour. Its darkest or brightest neighbour must
    sit in a flat region (many identical siblings) in both images.
    """
    height, width = luma.shape
    ys, xs = np.indices((height, width))
    zeroes = _on_border(height, width).astype(np.int32)
    darkest = np.zeros_like(luma)
    brightest = np.zeros_like(luma)
    dark_y, dark_x = ys.copy(), xs.copy()
    bright_y, bright_x = ys.copy(), xs.copy()

    for dx, dy in _NEIGHBOURS:
        valid = _in_bounds(height, width, dx, dy)
        identical = np.all(_neighbour(rgba, dx, dy) == rgba, axis=2)
        delta = np.where(identical, 0.0, luma - _neighbour(luma, dx, dy))

        zeroes += valid & (delta == 0)
        darker = valid & (delta < darkest)
        darkest = np.where(darker, delta, darkest)
        dark_y = np.where(darker, ys + dy, dark_y)
        dark_x = np.where(darker, xs + dx, dark_x)
        brighter = valid & (delta > brightest)
        brightest = np.where(brighter, delta, brightest)
        bright_y = np.where(brighter, ys + dy, bright_y)
        bright_x = np.where(brighter, xs + dx, bright_x)

    candidate = (zeroes <= 2) & (darkest != 0) & (brightest != 0)
    flat_dark = siblings[dark_y, dark_x] & other_siblings[dark_y, dark_x]
    flat_bright = siblings[bright_y, bright_x] & other_siblings[bright_y, bright_x]
    return candidate & (flat_dark | flat_bright)


class PixelComparator:
    """Counts perceptually mismatched pixels and renders a diff image."""

    def __init__(
        self,
        threshold: float = 0.1,
        diff_color: tuple[int, int, int] = (0, 0, 255),
        diff_color_alt: tuple[int, int, int] = (255, 165, 0),
        alpha: float = 0.1,
        aa_color: tuple[int, int, int] = (255, 255, 0),
        include_aa: bool = False,
    ):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be between 0 and 1, got {threshold}")
        self.threshold = threshold
        self.diff_color = diff_color
        self.diff_color_alt = diff_color_alt
        self.alpha = alpha
        self.aa_color = aa_color
        self.include_aa = include_aa
        self.max_delta = MAX_YIQ_DELTA * threshold * threshold

    @classmethod
    def from_config(cls, config: ComparisonConfig) -> "PixelComparator":
        return cls(
            threshold=config.threshold,
            diff_color=tuple(config.diff_color),
            diff_color_alt=tuple(config.diff_color_alt),
            alpha=config.diff_alpha,
            aa_color=tuple(config.aa_color),
            include_aa=config.include_aa,
        )

    def diff(self, img_a: Image.Image, img_b: Image.Image) -> DiffOutcome:
        """Diff two images of identical size. Raises ValueError otherwise."""
        if img_a.size != img_b.size:
            raise ValueError(f"size mismatch: {img_a.size} vs {img_b.size}")

        arr_a = np.asarray(img_a.convert("RGBA"), dtype=np.uint8)
        arr_b = np.asarray(img_b.convert("RGBA"), dtype=np.uint8)
        height, width = arr_a.shape[:2]
        total = width * height

        rgb_a = _blend_on_white(arr_a)
        rgb_b = _blend_on_white(arr_b)

        identical = np.all(arr_a == arr_b, axis=2)
        delta = _yiq_delta(rgb_a, rgb_b)
        over = ~identical & (np.abs(delta) > self.max_delta)

        if self.include_aa or not over.any():
            antialiased = np.zeros_like(over)
        else:
            luma_a = _luma(rgb_a)
            luma_b = _luma(rgb_b)
            siblings_a = _has_many_siblings(arr_a)
            siblings_b = _has_many_siblings(arr_b)
            antialiased = over & (
                _antialiased(arr_a, luma_a, siblings_a, siblings_b)
                | _antialiased(arr_b, luma_b, siblings_b, siblings_a)
            )
        mismatch = over & ~antialiased

        # Unchanged pixels: faded grayscale of the first image
        fade = self.alpha * arr_a[..., 3].astype(np.float64) / 255.0
        gray = 255.0 + (_luma(arr_a[..., :3].astype(np.float64)) - 255.0) * fade
        out = np.empty((height, width, 4), dtype=np.uint8)
        out[..., :3] = np.clip(gray, 0, 255).astype(np.uint8)[..., None]
        out[..., 3] = 255

        out[antialiased, :3] = self.aa_color
        out[mismatch & (delta >= 0), :3] = self.diff_color
        out[mismatch & (delta < 0), :3] = self.diff_color_alt

        mismatched = int(np.count_nonzero(mismatch))
        return DiffOutcome(
            mismatched_pixels=mismatched,
            total_pixels=total,
            diff_image=Image.fromarray(out),
            antialiased_pixels=int(np.count_nonzero(antialiased)),
        )

    def compare_files(self, path_a: Path, path_b: Path, diff_path: Path) -> ComparisonOutcome:
        """Compare two image files, writing the diff image to ``diff_path``.

        Returns the size-mismatch sentinel without writing a diff when the
        images differ in dimensions.
        """
        with Image.open(path_a) as img_a, Image.open(path_b) as img_b:
            if img_a.size != img_b.size:
                logger.error("Size mismatch for %s (%dx%d) and %s (%dx%d)",
                             path_a, img_a.size[0], img_a.size[1],
                             path_b, img_b.size[0], img_b.size[1])
                return ComparisonOutcome(similarity=SIZE_MISMATCH)
            outcome = self.diff(img_a, img_b)

        diff_path = Path(diff_path)
        diff_path.parent.mkdir(parents=True, exist_ok=True)
        outcome.diff_image.save(diff_path, format="PNG")

        similarity = similarity_percentage(outcome.total_pixels, outcome.mismatched_pixels)
        logger.debug("Compared %s vs %s: %d/%d mismatched, %d anti-aliased (%.2f%%)",
                     Path(path_a).name, Path(path_b).name, outcome.mismatched_pixels,
                     outcome.total_pixels, outcome.antialiased_pixels, similarity)
        return ComparisonOutcome(
            similarity=similarity,
            mismatched_pixels=outcome.mismatched_pixels,
            total_pixels=outcome.total_pixels,
            diff_path=diff_path,
        )
