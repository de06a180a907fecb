"""Artifact layout: page path sanitization and screenshot file locations."""

from __future__ import annotations

from pathlib import Path

IMAGE_KINDS = ("staging", "prod", "diff")


def sanitize_page_path(page_path: str) -> str:
    """Map a site-relative path to a file stem (``/apply/`` -> ``_apply_``)."""
    return page_path.replace("/", "_")


def build_url(base_url: str, page_path: str) -> str:
    """Join a base URL and a site-relative path with exactly one slash."""
    if not page_path.startswith("/"):
        page_path = "/" + page_path
    return base_url.rstrip("/") + page_path


class ArtifactLayout:
    """Locates screenshots for one device: ``<root>/<device>/{staging,prod,diff}/``."""

    def __init__(self, root: Path, device: str):
        self.root = Path(root)
        self.device = device
        self.device_dir = self.root / device

    def ensure(self) -> None:
        """Create the staging/prod/diff directories."""
        for kind in IMAGE_KINDS:
            (self.device_dir / kind).mkdir(parents=True, exist_ok=True)

    def reset(self) -> None:
        """Remove screenshots left over from a previous run and recreate the directories."""
        for kind in IMAGE_KINDS:
            kind_dir = self.device_dir / kind
            if kind_dir.exists():
                for png in kind_dir.glob("*.png"):
                    png.unlink()
        self.ensure()

    def image_path(self, kind: str, page_path: str) -> Path:
        if kind not in IMAGE_KINDS:
            raise ValueError(f"Unknown image kind: {kind}")
        return self.device_dir / kind / f"{sanitize_page_path(page_path)}.png"

    def staging_path(self, page_path: str) -> Path:
        return self.image_path("staging", page_path)

    def prod_path(self, page_path: str) -> Path:
        return self.image_path("prod", page_path)

    def diff_path(self, page_path: str) -> Path:
        return self.image_path("diff", page_path)
