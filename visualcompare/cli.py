"""CLI entry point for the visual comparison harness."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from visualcompare.models.config import EnvironmentConfig, RunConfig
from visualcompare.orchestrator import ComparisonOrchestrator
from visualcompare.paths import ArtifactLayout
from visualcompare.reporter.html_report import generate_html_report
from visualcompare.reporter.json_report import load_json_report
from visualcompare.reporter.reporter import report_basename

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> RunConfig:
    try:
        return RunConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'visual-compare init' to create a default config.")
        sys.exit(1)
    except ValidationError as e:
        console.print(f"[red]Invalid config {config}:[/red]\n{escape(str(e))}")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Staging vs production visual regression harness"""
    setup_logging(verbose)


@cli.command()
@click.option("--staging", "-s", prompt="Staging base URL", help="Staging base URL")
@click.option("--prod", "-p", prompt="Production base URL", help="Production base URL")
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def init(staging: str, prod: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = RunConfig(
        staging=EnvironmentConfig(name="staging", base_url=staging),
        prod=EnvironmentConfig(name="prod", base_url=prod),
    )
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nAdd the pages to compare under 'page_paths', then run:")
    console.print("  [blue]visual-compare compare[/blue]")


@cli.command()
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
@click.option("--device", "-d", "devices", multiple=True, help="Only run these device names")
@click.option("--embed", type=click.Choice(["inline", "linked"]), default=None,
              help="Override how report images are referenced")
def compare(config: str, devices: tuple[str, ...], embed: str | None) -> None:
    """Capture staging and prod, diff every page and write reports."""
    cfg = _load_config(config)
    if embed:
        cfg.report.embed_images = embed

    try:
        orchestrator = ComparisonOrchestrator(cfg)
        results = orchestrator.run(list(devices) or None)
    except KeyError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    console.print("\n[bold green]Comparison Complete[/bold green]")
    table = Table(title="Results Summary")
    table.add_column("Device", style="bold")
    table.add_column("Pages")
    table.add_column("Passed")
    table.add_column("Failed")
    table.add_column("Errors")
    for name, summary in results["devices"].items():
        table.add_row(
            name,
            str(summary["total"]),
            f"[green]{summary['passed']}[/green]",
            f"[red]{summary['failed']}[/red]",
            f"[yellow]{summary['errors']}[/yellow]",
        )
    console.print(table)
    console.print(f"Duration: {results['duration']}s")

    for name, summary in results["devices"].items():
        for fmt, path in summary["reports"].items():
            console.print(f"  {name} {fmt.upper()} report: [blue]{path}[/blue]")

    if any(s["failed"] or s["errors"] for s in results["devices"].values()):
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def forms(config: str) -> None:
    """Run the configured form workflows."""
    cfg = _load_config(config)
    if not cfg.forms:
        console.print("[yellow]No form workflows configured[/yellow]")
        return

    results = ComparisonOrchestrator(cfg).run_forms()
    table = Table(title="Form Workflows")
    table.add_column("Workflow", style="bold")
    table.add_column("Result")
    table.add_column("Steps")
    table.add_column("Message")
    for r in results:
        status = "[green]PASS[/green]" if r.passed else "[red]FAIL[/red]"
        table.add_row(r.name, status, str(r.steps_completed), escape(r.message))
    console.print(table)

    if not all(r.passed for r in results):
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
def menus(config: str) -> None:
    """Check navigation menus for visibility and links without href."""
    cfg = _load_config(config)
    if not cfg.menus:
        console.print("[yellow]No menus configured[/yellow]")
        return

    results = ComparisonOrchestrator(cfg).run_menus()
    table = Table(title=f"Menus on {cfg.menus_url}")
    table.add_column("Menu", style="bold")
    table.add_column("Visible")
    table.add_column("Submenus")
    table.add_column("Links")
    table.add_column("Without href")
    for r in results:
        table.add_row(
            r.name,
            "[green]yes[/green]" if r.visible else "[red]no[/red]",
            str(r.submenu_count),
            str(r.link_count),
            f"[yellow]{len(r.invalid_links)}[/yellow]" if r.invalid_links else "0",
        )
    console.print(table)

    if not all(r.passed for r in results):
        sys.exit(1)


@cli.command()
@click.argument("run_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", "-c", default="visual-config.json", help="Config file path")
@click.option("--embed", type=click.Choice(["inline", "linked"]), default=None,
              help="Override how report images are referenced")
def report(run_file: str, config: str, embed: str | None) -> None:
    """Re-render the HTML report from a saved JSON report."""
    cfg = _load_config(config)
    if embed:
        cfg.report.embed_images = embed

    run = load_json_report(Path(run_file))
    layout = ArtifactLayout(Path(cfg.screenshots_dir), run.device)
    output_path = Path(cfg.report.output_dir) / f"{report_basename(run.device)}.html"
    generate_html_report(run, layout, cfg, output_path)
    console.print(f"[green]Report written:[/green] {output_path}")


if __name__ == "__main__":
    cli()
