"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from visualcompare.models.result import ComparisonRun

from .summary import summarize


def generate_json_report(run: ComparisonRun, pass_threshold: float, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    report = run.model_dump()
    report["pass_threshold"] = pass_threshold
    report["summary"] = summarize(run.results, pass_threshold).model_dump()
    for entry, result in zip(report["results"], run.results):
        entry["status"] = result.status(pass_threshold)

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2, default=str)


def load_json_report(path: Path) -> ComparisonRun:
    """Rebuild a ComparisonRun from a JSON report written by generate_json_report."""
    with open(path) as f:
        data = json.load(f)
    return ComparisonRun.model_validate(data)
