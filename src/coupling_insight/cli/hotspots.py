"""Hotspot ranking command."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import CouplingInsightError
from ..temporal.cache import scan_cochanges_with_cache
from ..temporal.hotspots import analyze_hotspots
from ..temporal.models import Trend
from . import app
from ._common import FORMAT_CHOICE, console, fail, hotspot_to_dict, print_json, resolve_config

_TREND_STYLE = {
    Trend.INCREASING: "[red]increasing[/red]",
    Trend.DECREASING: "[green]decreasing[/green]",
    Trend.STABLE: "stable",
}


@app.command()
def hotspots(
    path: Path = typer.Argument(
        Path("."), help="Repository root", exists=True, file_okay=False, dir_okay=True
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Hotspots to show", min=1),
    trends: bool = typer.Option(False, "--trends", "-t", help="Classify size trends"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config TOML file"),
    fmt: str = typer.Option(
        "rich", "--format", "-f", help="Output format: rich or json", click_type=FORMAT_CHOICE
    ),
):
    """
    Rank files by change frequency x line count.

    [bold cyan]Examples:[/bold cyan]

      coupling-insight hotspots . --trends

      coupling-insight hotspots . -n 5 --format json
    """
    repo = path.resolve()
    config = resolve_config(repo, config_file)
    try:
        graph = scan_cochanges_with_cache(
            repo, config.cochange, cache_dir=config.cache_path(repo)
        )
        ranked = analyze_hotspots(
            repo,
            graph.file_frequencies or {},
            limit=limit,
            with_trends=trends,
            filter_config=config.cochange,
            hotspots_config=config.hotspots,
        )
    except CouplingInsightError as e:
        fail(e)

    if fmt == "json":
        print_json([hotspot_to_dict(h) for h in ranked])
        return

    table = Table(title="Hotspots")
    table.add_column("#", justify="right")
    table.add_column("File")
    table.add_column("Changes", justify="right")
    table.add_column("Lines", justify="right")
    table.add_column("Score", justify="right")
    if trends:
        table.add_column("Trend")
    for rank, h in enumerate(ranked, 1):
        row = [str(rank), h.file, str(h.change_frequency), str(h.line_count), str(h.score)]
        if trends:
            row.append(_TREND_STYLE[h.trend.direction] if h.trend else "-")
        table.add_row(*row)
    console.print(table)
