"""Screenshot capture: navigates with a bounded wait and always produces an image."""

from __future__ import annotations

import logging
from pathlib import Path

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from visualcompare.models.config import CaptureConfig

logger = logging.getLogger(__name__)


class ScreenshotCapturer:
    """Captures full-page screenshots of URLs in an existing Playwright page."""

    def __init__(
        self,
        timeout_ms: int = 60000,
        wait_until: str = "networkidle",
        settle_ms: int = 0,
        full_page: bool = True,
    ):
        self.timeout_ms = timeout_ms
        self.wait_until = wait_until
        self.settle_ms = settle_ms
        self.full_page = full_page

    @classmethod
    def from_config(cls, config: CaptureConfig) -> "ScreenshotCapturer":
        return cls(
            timeout_ms=config.timeout_ms,
            wait_until=config.wait_until,
            settle_ms=config.settle_ms,
            full_page=config.full_page,
        )

    async def navigate(self, page: Page, url: str) -> bool:
        """Go to ``url``, waiting at most ``timeout_ms``. Returns False on failure."""
        logger.info("Navigating to: %s", url)
        try:
            await page.goto(url, wait_until=self.wait_until, timeout=self.timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.warning("Timed out after %dms waiting for %s on %s; capturing current render",
                           self.timeout_ms, self.wait_until, url)
        except PlaywrightError as e:
            logger.warning("Navigation to %s failed: %s; capturing current render", url, e)
        return False

    async def capture(self, page: Page, url: str) -> bytes:
        """Navigate to ``url`` and return PNG bytes of whatever is rendered.

        Navigation problems never prevent the capture; a failure of the
        screenshot call itself propagates.
        """
        await self.navigate(page, url)
        if self.settle_ms:
            await page.wait_for_timeout(self.settle_ms)
        return await page.screenshot(full_page=self.full_page, type="png")

    async def capture_to_file(self, page: Page, url: str, path: Path) -> Path:
        """Capture ``url`` and write the PNG to ``path``."""
        path = Path(path)
        data = await self.capture(page, url)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info("Screenshot captured: %s", path)
        return path
