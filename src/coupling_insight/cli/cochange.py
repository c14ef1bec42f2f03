"""Co-change scan, neighborhood and cache commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import CouplingInsightError
from ..temporal.cache import clear_cache, scan_cochanges_with_cache
from ..temporal.cochange import scan_cochanges
from ..temporal.hotspots import file_neighborhood
from . import app
from ._common import (
    FORMAT_CHOICE,
    console,
    edge_to_dict,
    fail,
    load_import_edges,
    neighbor_to_dict,
    print_json,
    resolve_config,
)


@app.command()
def cochange(
    path: Path = typer.Argument(
        Path("."), help="Repository root", exists=True, file_okay=False, dir_okay=True
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Edges to show", min=1),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore and keep the cache untouched"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config TOML file"),
    fmt: str = typer.Option(
        "rich", "--format", "-f", help="Output format: rich or json", click_type=FORMAT_CHOICE
    ),
):
    """
    Mine git history into weighted co-change edges.

    [bold cyan]Examples:[/bold cyan]

      coupling-insight cochange .

      coupling-insight cochange . --no-cache --format json
    """
    repo = path.resolve()
    config = resolve_config(repo, config_file)
    try:
        if no_cache:
            graph = scan_cochanges(repo, config.cochange)
        else:
            graph = scan_cochanges_with_cache(
                repo, config.cochange, cache_dir=config.cache_path(repo)
            )
    except CouplingInsightError as e:
        fail(e)

    edges = sorted(graph.edges, key=lambda e: (-e.weight, e.files))

    if fmt == "json":
        print_json(
            {
                "last_sha": graph.last_sha,
                "total_commits_analyzed": graph.total_commits_analyzed,
                "total_commits_filtered": graph.total_commits_filtered,
                "edges": [edge_to_dict(e) for e in edges[:limit]],
            }
        )
        return

    console.print(
        f"[bold]{len(graph.edges)}[/bold] edges, "
        f"{graph.total_commits_analyzed} commits analyzed, "
        f"{graph.total_commits_filtered} filtered"
    )
    table = Table(title="Strongest co-change pairs")
    table.add_column("File A")
    table.add_column("File B")
    table.add_column("Weight", justify="right")
    table.add_column("Commits", justify="right")
    for edge in edges[:limit]:
        table.add_row(
            edge.files.first, edge.files.second, f"{edge.weight:.2f}", str(edge.commit_count)
        )
    console.print(table)


@app.command()
def neighbors(
    filepath: str = typer.Argument(..., help="Repo-relative file to inspect"),
    path: Path = typer.Argument(
        Path("."), help="Repository root", exists=True, file_okay=False, dir_okay=True
    ),
    imports: Optional[Path] = typer.Option(
        None, "--imports", "-i", help="JSON list of import edges", exists=True, dir_okay=False
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config TOML file"),
    fmt: str = typer.Option(
        "rich", "--format", "-f", help="Output format: rich or json", click_type=FORMAT_CHOICE
    ),
):
    """Show the files that change together with FILEPATH."""
    repo = path.resolve()
    config = resolve_config(repo, config_file)
    import_edges = load_import_edges(imports)
    try:
        graph = scan_cochanges_with_cache(
            repo, config.cochange, cache_dir=config.cache_path(repo)
        )
    except CouplingInsightError as e:
        fail(e)

    result = file_neighborhood(filepath, graph.edges, import_edges)

    if fmt == "json":
        print_json([neighbor_to_dict(n) for n in result])
        return

    if not result:
        console.print(f"[yellow]No co-change partners for {filepath}[/yellow]")
        return

    table = Table(title=f"Co-change neighborhood of {filepath}")
    table.add_column("File")
    table.add_column("Weight", justify="right")
    table.add_column("Commits", justify="right")
    table.add_column("Imports")
    for n in result:
        table.add_row(
            n.file,
            f"{n.cochange_weight:.2f}",
            str(n.cochange_commits),
            "[green]yes[/green]" if n.has_import_relation else "[red]no[/red]",
        )
    console.print(table)


@app.command()
def cache_clear(
    path: Path = typer.Argument(
        Path("."), help="Repository root", exists=True, file_okay=False, dir_okay=True
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config TOML file"),
):
    """Delete the co-change cache for a repository."""
    repo = path.resolve()
    config = resolve_config(repo, config_file)
    if clear_cache(config.cache_path(repo)):
        console.print("[green]Co-change cache cleared[/green]")
    else:
        console.print("[yellow]No co-change cache found[/yellow]")
