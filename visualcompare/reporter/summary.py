"""Result aggregation: pass/fail/error counts and triage ordering."""

from __future__ import annotations

from visualcompare.models.result import (
    STATUS_ERROR,
    STATUS_FAIL,
    STATUS_PASS,
    ComparisonResult,
    ReportSummary,
)

DEFAULT_PASS_THRESHOLD = 95.0


def summarize(
    results: list[ComparisonResult], pass_threshold: float = DEFAULT_PASS_THRESHOLD,
) -> ReportSummary:
    statuses = [r.status(pass_threshold) for r in results]
    return ReportSummary(
        total=len(results),
        passed=statuses.count(STATUS_PASS),
        failed=statuses.count(STATUS_FAIL),
        errors=statuses.count(STATUS_ERROR),
    )


def sort_for_triage(results: list[ComparisonResult]) -> list[ComparisonResult]:
    """Errors first, then ascending similarity. Returns a new list."""
    errors = [r for r in results if not r.is_numeric]
    numeric = sorted((r for r in results if r.is_numeric), key=lambda r: r.similarity)
    return errors + numeric
