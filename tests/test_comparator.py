"""Tests for the pixel comparator."""

from pathlib import Path

import pytest
from PIL import Image

from visualcompare.imaging.comparator import PixelComparator, similarity_percentage
from visualcompare.models.config import ComparisonConfig
from visualcompare.models.result import SIZE_MISMATCH


@pytest.fixture
def comparator() -> PixelComparator:
    return PixelComparator()


def _edge_image(gray_column: int) -> Image.Image:
    """7x5 black-to-white vertical edge with one gray anti-aliasing column."""
    img = Image.new("RGBA", (7, 5), (255, 255, 255, 255))
    for x in range(gray_column):
        for y in range(5):
            img.putpixel((x, y), (0, 0, 0, 255))
    for y in range(5):
        img.putpixel((gray_column, y), (128, 128, 128, 255))
    return img


def _edge_pair() -> tuple[Image.Image, Image.Image]:
    # The same edge rendered one pixel further right
    return _edge_image(3), _edge_image(4)


class TestSimilarityPercentage:

    def test_no_mismatch(self):
        assert similarity_percentage(1000, 0) == 100.0

    def test_partial_mismatch(self):
        assert similarity_percentage(1000, 250) == 75.0

    def test_empty_image(self):
        assert similarity_percentage(0, 0) == 100.0


class TestPixelComparatorInit:

    def test_rejects_bad_threshold(self):
        with pytest.raises(ValueError):
            PixelComparator(threshold=1.2)

    def test_from_config(self):
        cfg = ComparisonConfig(threshold=0.2, diff_color=(255, 0, 0), diff_color_alt=(0, 255, 0),
                               aa_color=(0, 255, 255), include_aa=True)
        comparator = PixelComparator.from_config(cfg)
        assert comparator.threshold == 0.2
        assert comparator.diff_color == (255, 0, 0)
        assert comparator.diff_color_alt == (0, 255, 0)
        assert comparator.aa_color == (0, 255, 255)
        assert comparator.include_aa is True


class TestDiff:

    def test_identical_images(self, comparator):
        img = Image.new("RGBA", (40, 30), (200, 100, 50, 255))
        outcome = comparator.diff(img, img.copy())
        assert outcome.mismatched_pixels == 0
        assert outcome.total_pixels == 1200
        assert outcome.diff_image.size == (40, 30)

    def test_known_region_difference(self, comparator):
        img_a = Image.new("RGBA", (100, 50), (255, 255, 255, 255))
        img_b = img_a.copy()
        # 10x20 black block = 200 of 5000 pixels
        img_b.paste((0, 0, 0, 255), (10, 10, 20, 30))

        outcome = comparator.diff(img_a, img_b)

        assert outcome.mismatched_pixels == 200
        assert similarity_percentage(outcome.total_pixels, outcome.mismatched_pixels) == pytest.approx(96.0)

    def test_small_color_shift_within_threshold(self, comparator):
        img_a = Image.new("RGBA", (20, 20), (120, 120, 120, 255))
        img_b = Image.new("RGBA", (20, 20), (123, 121, 119, 255))
        assert comparator.diff(img_a, img_b).mismatched_pixels == 0

    def test_zero_threshold_counts_any_visible_change(self):
        comparator = PixelComparator(threshold=0.0)
        img_a = Image.new("RGBA", (20, 20), (120, 120, 120, 255))
        img_b = Image.new("RGBA", (20, 20), (123, 121, 119, 255))
        assert comparator.diff(img_a, img_b).mismatched_pixels == 400

    def test_diff_colors_by_direction(self, comparator):
        white = Image.new("RGBA", (2, 1), (255, 255, 255, 255))
        mixed = Image.new("RGBA", (2, 1), (255, 255, 255, 255))
        mixed.putpixel((0, 0), (0, 0, 0, 255))

        # Second image darker: first image is brighter -> alt color
        outcome = comparator.diff(white, mixed)
        assert outcome.diff_image.getpixel((0, 0))[:3] == (255, 165, 0)

        # Second image brighter -> primary color
        outcome = comparator.diff(mixed, white)
        assert outcome.diff_image.getpixel((0, 0))[:3] == (0, 0, 255)

    def test_unchanged_pixels_rendered_faded(self, comparator):
        black = Image.new("RGBA", (4, 4), (0, 0, 0, 255))
        outcome = comparator.diff(black, black.copy())
        r, g, b, a = outcome.diff_image.getpixel((1, 1))
        # 10% of the way from white towards black
        assert r == g == b
        assert 225 <= r <= 235
        assert a == 255

    def test_transparent_padding_matches_white(self, comparator):
        transparent = Image.new("RGBA", (10, 10), (255, 255, 255, 0))
        white = Image.new("RGBA", (10, 10), (255, 255, 255, 255))
        assert comparator.diff(transparent, white).mismatched_pixels == 0

    def test_shifted_antialiased_edge_not_counted(self, comparator):
        img_a, img_b = _edge_pair()

        outcome = comparator.diff(img_a, img_b)

        assert outcome.mismatched_pixels == 0
        assert outcome.antialiased_pixels == 10
        assert outcome.diff_image.getpixel((3, 2))[:3] == (255, 255, 0)
        assert outcome.diff_image.getpixel((4, 0))[:3] == (255, 255, 0)

    def test_include_aa_counts_edge_pixels(self):
        img_a, img_b = _edge_pair()
        comparator = PixelComparator(include_aa=True)

        outcome = comparator.diff(img_a, img_b)

        assert outcome.mismatched_pixels == 10
        assert outcome.antialiased_pixels == 0

    def test_solid_block_is_not_antialiasing(self, comparator):
        img_a = Image.new("RGBA", (12, 12), (255, 255, 255, 255))
        img_b = img_a.copy()
        img_b.paste((0, 0, 0, 255), (4, 4, 8, 8))

        outcome = comparator.diff(img_a, img_b)

        assert outcome.mismatched_pixels == 16
        assert outcome.antialiased_pixels == 0

    def test_size_mismatch_raises(self, comparator):
        with pytest.raises(ValueError):
            comparator.diff(Image.new("RGBA", (10, 10)), Image.new("RGBA", (10, 11)))


class TestCompareFiles:

    def test_identical_files(self, comparator, make_image, tmp_path: Path):
        a = make_image("a.png")
        b = make_image("b.png")
        diff_path = tmp_path / "diff" / "a_b.png"

        outcome = comparator.compare_files(a, b, diff_path)

        assert outcome.similarity == 100.0
        assert outcome.mismatched_pixels == 0
        assert outcome.diff_path == diff_path
        with Image.open(diff_path) as diff:
            assert diff.size == (64, 40)

    def test_size_mismatch_sentinel(self, comparator, make_image, tmp_path: Path):
        a = make_image("a.png", size=(64, 40))
        b = make_image("b.png", size=(64, 48))
        diff_path = tmp_path / "diff.png"

        outcome = comparator.compare_files(a, b, diff_path)

        assert outcome.similarity == SIZE_MISMATCH
        assert outcome.size_mismatch
        assert not diff_path.exists()

    def test_completely_different(self, comparator, make_image, tmp_path: Path):
        a = make_image("a.png", color=(255, 255, 255, 255))
        b = make_image("b.png", color=(0, 0, 0, 255))
        outcome = comparator.compare_files(a, b, tmp_path / "diff.png")
        assert outcome.similarity == 0.0
        assert outcome.mismatched_pixels == outcome.total_pixels == 64 * 40

    def test_corrupt_file_raises(self, comparator, make_image, tmp_path: Path):
        a = make_image("a.png")
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"\x89PNG garbage")
        with pytest.raises(OSError):
            comparator.compare_files(a, bad, tmp_path / "diff.png")
