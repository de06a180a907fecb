"""Comparison orchestrator: captures, normalizes and diffs every page per device."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from pathlib import Path
from typing import Callable, Optional

from playwright.async_api import Browser, Page, async_playwright

from visualcompare.capture.browser import create_context, launch_browser
from visualcompare.capture.capture import ScreenshotCapturer
from visualcompare.imaging.comparator import PixelComparator
from visualcompare.imaging.normalizer import normalize_image
from visualcompare.models.config import DeviceConfig, RunConfig
from visualcompare.models.result import (
    ERROR,
    SIZE_MISMATCH,
    ComparisonResult,
    ComparisonRun,
    MenuCheckResult,
    WorkflowResult,
)
from visualcompare.paths import ArtifactLayout, build_url
from visualcompare.reporter.reporter import Reporter
from visualcompare.reporter.summary import summarize
from visualcompare.workflows.forms import run_form_workflows
from visualcompare.workflows.menus import check_menus

logger = logging.getLogger(__name__)

Normalizer = Callable[[Path, int, int], tuple[int, int]]


class ComparisonOrchestrator:
    """Runs the staging-vs-prod comparison for every configured device."""

    def __init__(
        self,
        config: RunConfig,
        capturer: Optional[ScreenshotCapturer] = None,
        comparator: Optional[PixelComparator] = None,
        normalizer: Normalizer = normalize_image,
        output_root: Path = Path("."),
    ):
        self.config = config
        self.capturer = capturer or ScreenshotCapturer.from_config(config.capture)
        self.comparator = comparator or PixelComparator.from_config(config.comparison)
        self.normalizer = normalizer
        self.output_root = Path(output_root)
        self.screenshots_root = self.output_root / config.screenshots_dir
        self.reporter = Reporter(config, self.screenshots_root)

    def run(self, device_names: Optional[list[str]] = None) -> dict:
        """Compare all pages on each device and write reports."""
        return asyncio.run(self.run_async(device_names))

    async def run_async(self, device_names: Optional[list[str]] = None) -> dict:
        start = time.time()
        devices = (
            [self.config.device(name) for name in device_names]
            if device_names else self.config.devices
        )
        logger.info("=== Comparing %d pages on %d device(s): %s vs %s ===",
                    len(self.config.page_paths), len(devices),
                    self.config.staging.base_url, self.config.prod.base_url)

        summaries: dict[str, dict] = {}
        async with async_playwright() as p:
            browser = await launch_browser(p, headless=self.config.capture.headless)
            try:
                for device in devices:
                    run = await self.run_device(browser, device)
                    reports = self.reporter.generate_reports(
                        run, output_dir=self.output_root / self.config.report.output_dir,
                    )
                    summary = summarize(run.results, self.config.report.pass_threshold)
                    summaries[device.name] = {**summary.model_dump(), "reports": reports}
            finally:
                await browser.close()

        duration = time.time() - start
        logger.info("=== Comparison complete in %.1fs ===", duration)
        return {"duration": round(duration, 2), "devices": summaries}

    def prepare_layout(self, device: DeviceConfig) -> ArtifactLayout:
        """Create a clean staging/prod/diff tree for the device. Failures are fatal."""
        layout = ArtifactLayout(self.screenshots_root, device.name)
        layout.reset()
        return layout

    async def run_device(self, browser: Browser, device: DeviceConfig) -> ComparisonRun:
        """Compare every page path for one device, reusing a single page."""
        layout = self.prepare_layout(device)
        run = ComparisonRun(
            run_id=f"run_{uuid.uuid4().hex[:8]}",
            device=device.name,
            staging_url=self.config.staging.base_url,
            prod_url=self.config.prod.base_url,
            started_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
        )
        start = time.time()
        total = len(self.config.page_paths)
        logger.info("--- Device %s (%dx%d) ---", device.name, device.width, device.height)

        context = await create_context(browser, device, self.config.capture)
        try:
            page = await context.new_page()
            for index, page_path in enumerate(self.config.page_paths):
                logger.info("Comparing [%d/%d]: %s", index + 1, total, page_path,
                            extra={"device": device.name, "page_path": page_path})
                result = await self.compare_page(page, layout, page_path)
                run.results.append(result)
        finally:
            await context.close()

        run.completed_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        run.duration_seconds = round(time.time() - start, 2)
        summary = summarize(run.results, self.config.report.pass_threshold)
        logger.info("Device %s: %d passed, %d failed, %d errors (%.1fs)",
                    device.name, summary.passed, summary.failed, summary.errors,
                    run.duration_seconds)
        return run

    async def compare_page(self, page: Page, layout: ArtifactLayout, page_path: str) -> ComparisonResult:
        """Capture both environments and compare. Never raises."""
        try:
            await self.capturer.capture_to_file(
                page, build_url(self.config.staging.base_url, page_path),
                layout.staging_path(page_path),
            )
            await self.capturer.capture_to_file(
                page, build_url(self.config.prod.base_url, page_path),
                layout.prod_path(page_path),
            )
            return self.compare_artifacts(layout, page_path)
        except Exception as e:
            logger.error("Comparison failed for %s: %s", page_path, e,
                         extra={"device": layout.device, "page_path": page_path})
            return ComparisonResult(page_path=page_path, similarity=ERROR, error=str(e))

    def compare_artifacts(self, layout: ArtifactLayout, page_path: str) -> ComparisonResult:
        """Normalize and diff the stored screenshots for one page.

        Decode and encode errors propagate; compare_page turns them into
        error results.
        """
        staging_path = layout.staging_path(page_path)
        prod_path = layout.prod_path(page_path)
        missing = [str(p) for p in (staging_path, prod_path) if not p.exists()]
        if missing:
            logger.error("Missing screenshot(s): %s", ", ".join(missing),
                         extra={"device": layout.device, "page_path": page_path})
            return ComparisonResult(
                page_path=page_path, similarity=ERROR,
                error=f"Missing screenshot(s): {', '.join(missing)}",
            )

        width = self.config.comparison.canvas_width
        height = self.config.comparison.canvas_height
        self.normalizer(staging_path, width, height)
        self.normalizer(prod_path, width, height)

        outcome = self.comparator.compare_files(
            staging_path, prod_path, layout.diff_path(page_path),
        )
        if outcome.size_mismatch:
            return ComparisonResult(
                page_path=page_path, similarity=SIZE_MISMATCH,
                error=f"Size mismatch between {staging_path.name} and {prod_path.name}",
            )

        logger.info("Similarity for %s: %.2f%%", page_path, outcome.similarity,
                    extra={"device": layout.device, "page_path": page_path})
        return ComparisonResult(
            page_path=page_path,
            similarity=outcome.similarity,
            mismatched_pixels=outcome.mismatched_pixels,
            total_pixels=outcome.total_pixels,
        )

    def run_forms(self) -> list[WorkflowResult]:
        """Run every configured form workflow."""
        return asyncio.run(self._run_forms())

    async def _run_forms(self) -> list[WorkflowResult]:
        async with async_playwright() as p:
            browser = await launch_browser(p, headless=self.config.capture.headless)
            try:
                return await run_form_workflows(
                    browser, self.config.forms, self.config.devices[0], self.config.capture,
                )
            finally:
                await browser.close()

    def run_menus(self) -> list[MenuCheckResult]:
        """Validate every configured navigation menu."""
        return asyncio.run(self._run_menus())

    async def _run_menus(self) -> list[MenuCheckResult]:
        async with async_playwright() as p:
            browser = await launch_browser(p, headless=self.config.capture.headless)
            try:
                return await check_menus(
                    browser, self.config.menus_url, self.config.menus,
                    self.config.devices[0], self.config.capture,
                    timeout_ms=self.config.capture.timeout_ms,
                )
            finally:
                await browser.close()
