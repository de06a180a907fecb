"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, Mock

import pytest
from PIL import Image

from visualcompare.models.config import (
    ComparisonConfig,
    DeviceConfig,
    EnvironmentConfig,
    ReportConfig,
    RunConfig,
)
from visualcompare.models.result import ComparisonResult, ComparisonRun
from visualcompare.paths import ArtifactLayout


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def device_config() -> DeviceConfig:
    """Create a desktop device configuration."""
    return DeviceConfig(name="Desktop", width=1280, height=800)


@pytest.fixture
def run_config(device_config: DeviceConfig, tmp_path: Path) -> RunConfig:
    """Create a run configuration with small canvases to keep tests fast."""
    return RunConfig(
        staging=EnvironmentConfig(name="staging", base_url="https://staging.example.com"),
        prod=EnvironmentConfig(name="prod", base_url="https://www.example.com/"),
        page_paths=["/", "/apply/", "/about/"],
        devices=[device_config],
        screenshots_dir="screenshots",
        comparison=ComparisonConfig(canvas_width=64, canvas_height=40),
        report=ReportConfig(output_dir="reports"),
    )


@pytest.fixture
def temp_config_file(run_config: RunConfig, tmp_path: Path) -> Path:
    """Write the run configuration to a temporary file."""
    config_file = tmp_path / "visual-config.json"
    run_config.save(config_file)
    return config_file


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a solid-color PNG and returning its path."""
    def _make(name: str, size=(64, 40), color=(255, 255, 255, 255), directory: Path | None = None) -> Path:
        path = (directory or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGBA", size, color).save(path)
        return path
    return _make


@pytest.fixture
def layout(tmp_path: Path) -> ArtifactLayout:
    """Create a ready-to-use artifact layout for the Desktop device."""
    layout = ArtifactLayout(tmp_path / "screenshots", "Desktop")
    layout.ensure()
    return layout


# ============================================================================
# Result Fixtures
# ============================================================================


@pytest.fixture
def mixed_results() -> list[ComparisonResult]:
    """One of each outcome: pass, fail, error and size mismatch."""
    return [
        ComparisonResult(page_path="/", similarity=99.5, mismatched_pixels=5, total_pixels=1000),
        ComparisonResult(page_path="/apply/", similarity=80.0, mismatched_pixels=200, total_pixels=1000),
        ComparisonResult(page_path="/broken/", similarity="Error", error="Missing screenshot(s)"),
        ComparisonResult(page_path="/tall/", similarity="Size mismatch"),
        ComparisonResult(page_path="/close/", similarity=94.99),
    ]


@pytest.fixture
def comparison_run(mixed_results: list[ComparisonResult]) -> ComparisonRun:
    return ComparisonRun(
        run_id="run_abc12345",
        device="Desktop",
        staging_url="https://staging.example.com",
        prod_url="https://www.example.com",
        started_at="2025-01-01T00:00:00Z",
        completed_at="2025-01-01T00:01:00Z",
        duration_seconds=60.0,
        results=mixed_results,
    )


# ============================================================================
# Playwright Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_page() -> AsyncMock:
    """Create a mock Playwright page that returns a white PNG screenshot."""
    buf = io.BytesIO()
    Image.new("RGBA", (64, 40), (255, 255, 255, 255)).save(buf, format="PNG")

    page = AsyncMock()
    page.goto = AsyncMock()
    page.screenshot = AsyncMock(return_value=buf.getvalue())
    page.wait_for_timeout = AsyncMock()
    page.url = "https://www.example.com/"
    return page


@pytest.fixture
def mock_context(mock_page: AsyncMock) -> AsyncMock:
    context = AsyncMock()
    context.new_page = AsyncMock(return_value=mock_page)
    context.close = AsyncMock()
    return context


@pytest.fixture
def mock_browser(mock_context: AsyncMock) -> Mock:
    browser = Mock()
    browser.new_context = AsyncMock(return_value=mock_context)
    browser.close = AsyncMock()
    return browser
