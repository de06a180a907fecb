"""HTML report generator: one row per page with staging, prod and diff images."""

from __future__ import annotations

import base64
import html
import logging
import os
import time
from pathlib import Path

from visualcompare.models.config import RunConfig
from visualcompare.models.result import ComparisonResult, ComparisonRun
from visualcompare.paths import ArtifactLayout, build_url

from .summary import sort_for_triage, summarize

logger = logging.getLogger(__name__)

NOT_AVAILABLE = '<span class="not-available">N/A</span>'


def _embed_image(path: Path) -> str:
    """Read an image file and return a base64 data URI, or empty string on failure."""
    try:
        p = Path(path)
        if not p.exists() or p.stat().st_size == 0:
            return ""
        with open(p, "rb") as f:
            data = base64.b64encode(f.read()).decode()
        suffix = p.suffix.lower()
        mime = "image/png" if suffix == ".png" else "image/jpeg" if suffix in (".jpg", ".jpeg") else "image/webp"
        return f"data:{mime};base64,{data}"
    except OSError as e:
        logger.warning("Could not embed %s: %s", path, e)
        return ""


def _link_image(path: Path, report_dir: Path) -> str:
    """Return a path to the image relative to the report, or empty string if missing."""
    p = Path(path)
    if not p.exists() or p.stat().st_size == 0:
        return ""
    return Path(os.path.relpath(p.resolve(), report_dir.resolve())).as_posix()


def _image_src(path: Path, embed: str, report_dir: Path) -> str:
    if embed == "inline":
        return _embed_image(path)
    return _link_image(path, report_dir)


def _image_cell(src: str, label: str) -> str:
    if not src:
        return NOT_AVAILABLE
    src_attr = html.escape(src, quote=True)
    return f'''<div class="image-wrapper">
          <img src="{src_attr}" alt="{label}" loading="lazy" onclick="openModal(this.src)">
          <div class="image-label">{label}</div>
        </div>'''


def _build_row(
    r: ComparisonResult,
    layout: ArtifactLayout,
    config: RunConfig,
    report_dir: Path,
) -> str:
    status = r.status(config.report.pass_threshold)
    status_class = f"status-{status.lower()}"
    embed = config.report.embed_images

    images = "\n        ".join(
        _image_cell(_image_src(layout.image_path(kind, r.page_path), embed, report_dir), label)
        for kind, label in (("staging", "Staging"), ("prod", "Prod"), ("diff", "Diff"))
    )

    staging_href = html.escape(build_url(config.staging.base_url, r.page_path), quote=True)
    prod_href = html.escape(build_url(config.prod.base_url, r.page_path), quote=True)
    error_html = f'<div class="error-detail">{html.escape(r.error)}</div>' if r.error else ""

    return f'''
    <tr class="result-row" data-status="{status.lower()}">
      <td>
        <div class="page-path">{html.escape(r.page_path)}</div>
        <a href="{staging_href}" target="_blank" class="staging">Staging</a> |
        <a href="{prod_href}" target="_blank" class="prod">Prod</a>
      </td>
      <td>{html.escape(r.similarity_text())}{error_html}</td>
      <td class="{status_class}">{status}</td>
      <td>
        <div class="image-container">
        {images}
        </div>
      </td>
    </tr>'''


def generate_html_report(
    run: ComparisonRun,
    layout: ArtifactLayout,
    config: RunConfig,
    output_path: Path,
) -> None:
    """Write the comparison report for one device to ``output_path``."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    report_dir = output_path.parent

    threshold = config.report.pass_threshold
    summary = summarize(run.results, threshold)
    rows = [_build_row(r, layout, config, report_dir) for r in sort_for_triage(run.results)]
    generated = time.strftime("%Y-%m-%d %H:%M:%S")

    device = html.escape(run.device)
    report_html = f'''<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Visual Comparison Report &mdash; {device}</title>
<style>
  :root {{ --pass: #22c55e; --fail: #ef4444; --error: #f97316; --staging: #f59e0b; --prod: #2563eb; --bg: #f8fafc; --card: white; --border: #e2e8f0; --text: #1e293b; --muted: #64748b; --accent: #6366f1; }}
  * {{ margin: 0; padding: 0; box-sizing: border-box; }}
  body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; background: var(--bg); color: var(--text); line-height: 1.6; padding: 1.5rem; }}
  .container {{ max-width: 1400px; margin: 0 auto; }}
  h1 {{ font-size: 1.8rem; margin-bottom: 0.3rem; }}
  .meta {{ color: var(--muted); margin-bottom: 1.5rem; font-size: 0.9rem; }}
  .summary {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(130px, 1fr)); gap: 0.8rem; margin-bottom: 1rem; }}
  .stat {{ background: var(--card); border-radius: 8px; padding: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.08); text-align: center; }}
  .stat .value {{ font-size: 1.8rem; font-weight: 700; }}
  .stat .label {{ font-size: 0.8rem; color: var(--muted); }}
  .stat.pass .value {{ color: var(--pass); }}
  .stat.fail .value {{ color: var(--fail); }}
  .stat.error .value {{ color: var(--error); }}
  .criteria {{ font-size: 0.9rem; font-weight: 600; margin-bottom: 1rem; }}
  .staging {{ color: var(--staging); font-weight: 600; }}
  .prod {{ color: var(--prod); font-weight: 600; }}
  table {{ width: 100%; border-collapse: collapse; background: var(--card); box-shadow: 0 1px 3px rgba(0,0,0,0.08); }}
  th, td {{ border: 1px solid var(--border); padding: 0.5rem; text-align: center; vertical-align: middle; font-size: 0.88rem; }}
  th {{ background: #f1f5f9; }}
  .page-path {{ font-family: monospace; }}
  .error-detail {{ color: var(--error); font-size: 0.78rem; }}
  .status-pass {{ color: var(--pass); font-weight: 700; }}
  .status-fail {{ color: var(--fail); font-weight: 700; }}
  .status-error {{ color: var(--error); font-weight: 700; }}
  .image-container {{ display: flex; justify-content: center; align-items: center; gap: 0.8rem; }}
  .image-wrapper {{ display: flex; flex-direction: column; align-items: center; }}
  .image-container img {{ width: 300px; cursor: pointer; border: 1px solid var(--border); border-radius: 4px; }}
  .image-label {{ font-size: 0.78rem; font-weight: 600; color: var(--muted); }}
  .not-available {{ color: var(--muted); font-style: italic; }}
  .filter-bar {{ display: flex; gap: 0.5rem; margin-bottom: 1rem; flex-wrap: wrap; }}
  .filter-btn {{ padding: 0.3rem 0.8rem; border-radius: 6px; border: 1px solid var(--border); background: var(--card); cursor: pointer; font-size: 0.82rem; }}
  .filter-btn.active {{ background: var(--accent); color: white; border-color: var(--accent); }}
  .modal {{ display: none; position: fixed; z-index: 1000; left: 0; top: 0; width: 100%; height: 100%; background: rgba(0,0,0,0.85); }}
  .modal img {{ display: block; max-width: 90%; max-height: 90%; margin: 3% auto; }}
  .modal-close {{ position: absolute; top: 1rem; right: 2rem; font-size: 2rem; color: white; cursor: pointer; }}
</style>
</head>
<body>
<div class="container">
  <h1>Visual Comparison Report</h1>
  <p class="meta">Device: {device} &middot;
    <span class="staging">Staging:</span> {html.escape(run.staging_url)} &middot;
    <span class="prod">Prod:</span> {html.escape(run.prod_url)} &middot;
    Run: {html.escape(run.run_id)} &middot; Last run: {html.escape(run.completed_at or generated)}</p>

  <div class="summary">
    <div class="stat"><div class="value">{summary.total}</div><div class="label">Pages Tested</div></div>
    <div class="stat pass"><div class="value">{summary.passed}</div><div class="label">Passed</div></div>
    <div class="stat fail"><div class="value">{summary.failed}</div><div class="label">Failed</div></div>
    <div class="stat error"><div class="value">{summary.errors}</div><div class="label">Errors</div></div>
  </div>
  <p class="criteria">Success criterion: a similarity score of {threshold:g}% or higher is a pass.</p>

  <div class="filter-bar">
    <button class="filter-btn active" onclick="filterRows('all', this)">All</button>
    <button class="filter-btn" onclick="filterRows('error', this)">Errors</button>
    <button class="filter-btn" onclick="filterRows('fail', this)">Failed</button>
    <button class="filter-btn" onclick="filterRows('pass', this)">Passed</button>
  </div>

  <table>
    <thead>
      <tr><th>Page</th><th>Similarity</th><th>Status</th><th>Images</th></tr>
    </thead>
    <tbody>
    {"".join(rows)}
    </tbody>
  </table>
</div>

<div id="modal" class="modal" onclick="closeModal()">
  <span class="modal-close">&times;</span>
  <img id="modal-image" alt="">
</div>

<script>
function filterRows(status, button) {{
  document.querySelectorAll('.filter-btn').forEach(b => b.classList.remove('active'));
  button.classList.add('active');
  document.querySelectorAll('.result-row').forEach(row => {{
    row.style.display = (status === 'all' || row.dataset.status === status) ? '' : 'none';
  }});
}}
function openModal(src) {{
  document.getElementById('modal-image').src = src;
  document.getElementById('modal').style.display = 'block';
}}
function closeModal() {{
  document.getElementById('modal').style.display = 'none';
}}
</script>
</body>
</html>'''

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(report_html)
    logger.debug("Wrote HTML report with %d rows to %s", len(rows), output_path)
