"""CLI interface using Typer."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from hazard_hotspots import __version__
from hazard_hotspots.config import HotspotConfig, OutputFormat
from hazard_hotspots.exporters import export_geojson, export_json
from hazard_hotspots.fetchers.reports import make_report_source
from hazard_hotspots.models import Hotspot
from hazard_hotspots.pipeline import run_cycle
from hazard_hotspots.store import HotspotRepository, make_store

Exporter = Callable[[list[Hotspot], Path], Path]

EXPORTERS: dict[str, Exporter] = {
    "json": export_json,
    "geojson": export_geojson,
}

_SEVERITY_STYLES: dict[str, str] = {
    "critical": "[red]critical[/red]",
    "high": "[dark_orange]high[/dark_orange]",
    "medium": "[yellow]medium[/yellow]",
    "low": "[green]low[/green]",
}

app = typer.Typer(
    name="hazard-hotspots",
    help="Detect and score geographic hotspots of ocean hazard reports.",
    add_completion=False,
)
console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"hazard-hotspots {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Hazard Hotspots: cluster and score crowd-sourced hazard reports."""


@app.command()
def run(
    window_hours: Annotated[
        float | None,
        typer.Option("--window-hours", "-w", help="Only use reports from the last N hours."),
    ] = None,
    min_reports: Annotated[
        int | None,
        typer.Option("--min-reports", help="Minimum reports per hotspot."),
    ] = None,
    max_radius: Annotated[
        float | None,
        typer.Option("--max-radius", help="Clustering radius in metres."),
    ] = None,
    store_path: Annotated[
        Path | None,
        typer.Option("--store-path", help="JSON file backing the hotspot store."),
    ] = None,
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Output file path."),
    ] = Path("hotspots.json"),
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format: json or geojson."),
    ] = "json",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging."),
    ] = False,
) -> None:
    """Run one hotspot recalculation against the Report Store."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[logging.StreamHandler()],
    )

    overrides: dict[str, Any] = {
        "time_window_hours": window_hours,
        "min_reports": min_reports,
        "max_radius_meters": max_radius,
        "store_path": store_path,
    }
    config = HotspotConfig(**{k: v for k, v in overrides.items() if v is not None})

    try:
        fetch_reports = make_report_source(config)
    except ValueError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=1) from None

    repository = HotspotRepository(make_store(config))
    result = run_cycle(config, fetch_reports, repository)
    if result.status != "completed":
        console.print(f"[red]Recalculation {result.status}:[/red] {result.error}")
        raise typer.Exit(code=1)

    hotspots = repository.get_all()
    if not hotspots:
        console.print(
            f"[yellow]No hotspots among {result.report_count} reports.[/yellow]"
        )
        raise typer.Exit()

    EXPORTERS[output_format](hotspots, output)

    console.print()
    table = Table(title="Hazard Hotspots")
    table.add_column("Center", style="bold")
    table.add_column("Radius (m)", justify="right")
    table.add_column("Reports", justify="right")
    table.add_column("Severity")
    table.add_column("Confidence", justify="right", style="red")
    table.add_column("Hazards", style="dim")

    for h in hotspots:
        table.add_row(
            f"{h.center_location.lat:.4f}, {h.center_location.lng:.4f}",
            f"{h.radius_meters:.0f}",
            str(h.report_count),
            _SEVERITY_STYLES.get(h.severity_level, h.severity_level),
            f"{h.confidence_score:.2f}",
            ", ".join(h.hazard_types),
        )

    console.print(table)
    console.print(f"\n{output_format.upper()} written to [bold]{output}[/bold]")
    console.print(f"Total hotspots: {len(hotspots)}")
    console.print(f"Reports considered: {result.report_count}")


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address.")] = "0.0.0.0",
    port: Annotated[int, typer.Option("--port", "-p", help="Bind port.")] = 8000,
) -> None:
    """Serve the hotspot API with periodic recalculation."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    uvicorn.run("hazard_hotspots.api:app", host=host, port=port)
