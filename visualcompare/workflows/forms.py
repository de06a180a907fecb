"""Form workflows: fill and submit a web form, then verify the confirmation."""

from __future__ import annotations

import logging
import re
import time

from playwright.async_api import Browser, Page, Route

from visualcompare.capture.browser import create_context
from visualcompare.models.config import CaptureConfig, DeviceConfig, FormStep, FormWorkflowConfig
from visualcompare.models.result import WorkflowResult

logger = logging.getLogger(__name__)

# Dynamic variables that can appear in step values (Postman-style).
_DYNAMIC_VAR_RE = re.compile(r"\{\{\$(\w+)\}\}")


class WorkflowError(Exception):
    """A workflow step or check did not behave as configured."""


def _build_dynamic_vars() -> dict[str, str]:
    """Snapshot of dynamic variable values, fixed for one workflow run."""
    return {
        "timestamp": str(int(time.time() * 1000)),
    }


def resolve_dynamic_vars(value: str, resolved: dict[str, str]) -> str:
    """Replace ``{{$variable}}`` tokens with pre-computed values."""
    def _replacer(match: re.Match) -> str:
        name = match.group(1)
        if name in resolved:
            return resolved[name]
        logger.warning("Unknown dynamic variable: {{$%s}}", name)
        return match.group(0)

    return _DYNAMIC_VAR_RE.sub(_replacer, value)


async def block_resources(page: Page, extensions: list[str]) -> None:
    """Abort requests for static resources with the given extensions."""
    suffixes = tuple(ext if ext.startswith(".") else f".{ext}" for ext in extensions)

    async def _handler(route: Route) -> None:
        url = route.request.url.split("?", 1)[0]
        if url.endswith(suffixes):
            await route.abort()
        else:
            await route.continue_()

    await page.route("**/*", _handler)
    logger.debug("Blocking resources: %s", ", ".join(suffixes))


async def run_step(page: Page, step: FormStep, dynamic_vars: dict[str, str], timeout_ms: int) -> None:
    """Execute one fill/select/click step."""
    value = resolve_dynamic_vars(step.value, dynamic_vars) if step.value is not None else None
    label = step.description or f"{step.action} {step.selector}"
    logger.debug("Step: %s", label)

    if step.action == "fill":
        await page.fill(step.selector, value, timeout=timeout_ms)
    elif step.action == "select":
        if step.index is not None:
            await page.select_option(step.selector, index=step.index, timeout=timeout_ms)
        elif step.label is not None:
            await page.select_option(step.selector, label=step.label, timeout=timeout_ms)
        else:
            await page.select_option(step.selector, value=value, timeout=timeout_ms)
    elif step.action == "click":
        await page.click(step.selector, timeout=timeout_ms)
    else:
        raise WorkflowError(f"Unknown action: {step.action}")


async def run_form_workflow(page: Page, workflow: FormWorkflowConfig) -> WorkflowResult:
    """Run one form workflow on ``page``. Failures are reported, not raised."""
    start = time.time()
    result = WorkflowResult(name=workflow.name)
    dynamic_vars = _build_dynamic_vars()
    timeout = workflow.timeout_ms

    try:
        logger.info("Navigating to the form page: %s", workflow.url)
        await page.goto(workflow.url, wait_until="domcontentloaded", timeout=timeout)

        if workflow.block_resource_extensions:
            await block_resources(page, workflow.block_resource_extensions)

        if workflow.entry_selector:
            logger.info("Clicking entry point %s", workflow.entry_selector)
            await page.click(workflow.entry_selector, timeout=timeout)
            if workflow.entry_url_pattern:
                await page.wait_for_url(re.compile(workflow.entry_url_pattern), timeout=timeout)

        for step in workflow.steps:
            await run_step(page, step, dynamic_vars, timeout)
            result.steps_completed += 1

        logger.info("Submitting %s", workflow.name)
        await page.click(workflow.submit_selector, timeout=timeout)
        if workflow.success_url_pattern:
            await page.wait_for_url(re.compile(workflow.success_url_pattern), timeout=timeout)

        if workflow.confirmation_selector:
            await page.wait_for_selector(workflow.confirmation_selector, timeout=timeout)
            text = (await page.text_content(workflow.confirmation_selector) or "").strip()
            result.confirmation_text = text
            if workflow.expected_confirmation is not None and text != workflow.expected_confirmation:
                raise WorkflowError(
                    f"Confirmation message did not match: expected "
                    f"{workflow.expected_confirmation!r}, got {text!r}"
                )

        result.passed = True
        result.message = "Form submitted successfully"
        logger.info("[PASS] %s", workflow.name)
    except Exception as e:
        result.message = str(e)
        logger.error("[FAIL] %s: %s", workflow.name, e)
    finally:
        result.final_url = page.url
        result.duration_seconds = round(time.time() - start, 2)
    return result


async def run_form_workflows(
    browser: Browser,
    workflows: list[FormWorkflowConfig],
    device: DeviceConfig,
    capture: CaptureConfig | None = None,
) -> list[WorkflowResult]:
    """Run each workflow in its own context so cookies and routes don't leak."""
    results = []
    for workflow in workflows:
        context = await create_context(browser, device, capture)
        try:
            page = await context.new_page()
            results.append(await run_form_workflow(page, workflow))
        finally:
            await context.close()
    passed = sum(1 for r in results if r.passed)
    logger.info("Form workflows: %d/%d passed", passed, len(results))
    return results
