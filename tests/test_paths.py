"""Tests for page path sanitization and the artifact layout."""

from pathlib import Path

import pytest

from visualcompare.paths import ArtifactLayout, build_url, sanitize_page_path


class TestSanitizePagePath:

    @pytest.mark.parametrize("page_path,expected", [
        ("/", "_"),
        ("/apply/", "_apply_"),
        ("/programs/mba/", "_programs_mba_"),
        ("about", "about"),
    ])
    def test_slashes_become_underscores(self, page_path, expected):
        assert sanitize_page_path(page_path) == expected


class TestBuildUrl:

    def test_joins_with_single_slash(self):
        assert build_url("https://example.com", "/apply/") == "https://example.com/apply/"
        assert build_url("https://example.com/", "/apply/") == "https://example.com/apply/"

    def test_adds_leading_slash(self):
        assert build_url("https://example.com", "apply/") == "https://example.com/apply/"


class TestArtifactLayout:

    def test_image_paths(self, tmp_path: Path):
        layout = ArtifactLayout(tmp_path / "screenshots", "Desktop")
        assert layout.staging_path("/apply/") == tmp_path / "screenshots" / "Desktop" / "staging" / "_apply_.png"
        assert layout.prod_path("/apply/") == tmp_path / "screenshots" / "Desktop" / "prod" / "_apply_.png"
        assert layout.diff_path("/apply/") == tmp_path / "screenshots" / "Desktop" / "diff" / "_apply_.png"

    def test_unknown_kind(self, tmp_path: Path):
        layout = ArtifactLayout(tmp_path, "Desktop")
        with pytest.raises(ValueError):
            layout.image_path("baseline", "/")

    def test_ensure_creates_directories(self, tmp_path: Path):
        layout = ArtifactLayout(tmp_path / "screenshots", "Mobile")
        layout.ensure()
        for kind in ("staging", "prod", "diff"):
            assert (tmp_path / "screenshots" / "Mobile" / kind).is_dir()

    def test_reset_removes_old_screenshots(self, tmp_path: Path):
        layout = ArtifactLayout(tmp_path / "screenshots", "Desktop")
        layout.ensure()
        stale = layout.diff_path("/old/")
        stale.write_bytes(b"png")
        notes = layout.device_dir / "diff" / "notes.txt"
        notes.write_text("keep me")

        layout.reset()

        assert not stale.exists()
        assert notes.exists()
        assert (layout.device_dir / "staging").is_dir()
