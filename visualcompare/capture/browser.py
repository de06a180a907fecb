"""Browser helpers: launch Chromium and open per-device contexts."""

from __future__ import annotations

from typing import Optional

from playwright.async_api import Browser, BrowserContext, Playwright

from visualcompare.models.config import CaptureConfig, DeviceConfig

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

# Freezes CSS animations so repeated captures of the same page line up
_STABILIZE_INIT_SCRIPT = """
window.addEventListener('DOMContentLoaded', () => {
    const style = document.createElement('style');
    style.textContent = '*, *::before, *::after { animation: none !important; transition: none !important; caret-color: transparent !important; }';
    document.head.appendChild(style);
});
"""


async def launch_browser(playwright: Playwright, headless: bool = True) -> Browser:
    """Launch Chromium for capture."""
    return await playwright.chromium.launch(
        headless=headless,
        args=[
            "--disable-blink-features=AutomationControlled",
            "--hide-scrollbars",
        ],
    )


async def create_context(
    browser: Browser,
    device: DeviceConfig,
    capture: Optional[CaptureConfig] = None,
) -> BrowserContext:
    """Create a browser context sized to the device viewport."""
    capture = capture or CaptureConfig()
    context = await browser.new_context(
        viewport=device.viewport,
        user_agent=capture.user_agent or DEFAULT_USER_AGENT,
        locale="en-US",
        timezone_id="America/New_York",
        extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
    )
    await context.add_init_script(_STABILIZE_INIT_SCRIPT)
    return context
