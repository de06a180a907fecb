"""Navigation menu checks: menus must be visible and links should carry an href."""

from __future__ import annotations

import logging

from playwright.async_api import Browser, Page

from visualcompare.capture.browser import create_context
from visualcompare.models.config import CaptureConfig, DeviceConfig, MenuCheckConfig
from visualcompare.models.result import MenuCheckResult

logger = logging.getLogger(__name__)


async def check_menu(page: Page, menu: MenuCheckConfig) -> MenuCheckResult:
    """Inspect one menu. Links without an href are warnings, an invisible menu fails."""
    result = MenuCheckResult(name=menu.name)
    logger.info("Locating the '%s' menu...", menu.name)

    result.visible = await page.is_visible(menu.selector)
    if not result.visible:
        result.message = f"The '{menu.name}' menu is not visible"
        logger.error(result.message)
        return result

    submenu_selector = f"{menu.selector} {menu.submenu_selector}"
    links_selector = f"{submenu_selector} {menu.link_selector}"

    result.submenu_count = await page.locator(submenu_selector).count()
    links = page.locator(links_selector)
    result.link_count = await links.count()
    logger.debug("'%s': %d submenus, %d links", menu.name, result.submenu_count, result.link_count)

    for i in range(result.link_count):
        link = links.nth(i)
        text = ((await link.text_content()) or "").strip()
        href = await link.get_attribute("href")
        if not href or not href.strip():
            logger.warning("Link '%s' in '%s' menu does not have a valid href", text, menu.name)
            result.invalid_links.append(text)

    result.passed = True
    if result.invalid_links:
        result.message = f"{len(result.invalid_links)} link(s) without href"
    else:
        result.message = "All links valid"
    logger.info("'%s' menu: %s", menu.name, result.message)
    return result


async def check_menus(
    browser: Browser,
    url: str,
    menus: list[MenuCheckConfig],
    device: DeviceConfig,
    capture: CaptureConfig | None = None,
    timeout_ms: int = 30000,
) -> list[MenuCheckResult]:
    """Load ``url`` once and check every configured menu on it."""
    context = await create_context(browser, device, capture)
    try:
        page = await context.new_page()
        logger.info("Navigating to %s", url)
        await page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        return [await check_menu(page, menu) for menu in menus]
    finally:
        await context.close()
