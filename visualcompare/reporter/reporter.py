"""Report generation orchestration."""

from __future__ import annotations

import logging
from pathlib import Path

from visualcompare.models.config import RunConfig
from visualcompare.models.result import ComparisonRun
from visualcompare.paths import ArtifactLayout

from .html_report import generate_html_report
from .json_report import generate_json_report

logger = logging.getLogger(__name__)


def report_basename(device: str) -> str:
    return f"visual_comparison_report_{device}"


class Reporter:
    """Generates reports from comparison runs."""

    def __init__(self, config: RunConfig, screenshots_root: Path | None = None):
        self.config = config
        self.screenshots_root = screenshots_root or Path(config.screenshots_dir)

    def generate_reports(self, run: ComparisonRun, output_dir: Path | None = None) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        out_dir = output_dir or Path(self.config.report.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        layout = ArtifactLayout(self.screenshots_root, run.device)
        base = report_basename(run.device)
        generated = {}
        logger.debug("Report output directory: %s", out_dir)

        if "html" in self.config.report.formats:
            path = out_dir / f"{base}.html"
            generate_html_report(run, layout, self.config, path)
            generated["html"] = str(path)
            logger.info("HTML report: %s", path)

        if "json" in self.config.report.formats:
            path = out_dir / f"{base}.json"
            generate_json_report(run, self.config.report.pass_threshold, path)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        return generated
