"""Coupling matrix command."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..coupling.matrix import build_coupling_matrix, find_hidden_coupling
from ..coupling.models import MatrixOptions, Quadrant
from ..exceptions import CouplingInsightError
from ..temporal.cache import scan_cochanges_with_cache
from . import app
from ._common import (
    FORMAT_CHOICE,
    console,
    entry_to_dict,
    fail,
    load_import_edges,
    load_registry,
    print_json,
    resolve_config,
)

_QUADRANT_STYLE = {
    Quadrant.EXPLICIT_MODULE: "green",
    Quadrant.STABLE_INTERFACE: "cyan",
    Quadrant.HIDDEN_COUPLING: "bold red",
    Quadrant.UNRELATED: "dim",
}


@app.command()
def coupling(
    path: Path = typer.Argument(
        Path("."), help="Repository root", exists=True, file_okay=False, dir_okay=True
    ),
    components: Optional[Path] = typer.Option(
        None, "--components", help="JSON component registry", exists=True, dir_okay=False
    ),
    imports: Optional[Path] = typer.Option(
        None, "--imports", "-i", help="JSON list of import edges", exists=True, dir_okay=False
    ),
    level: Optional[str] = typer.Option(None, "--level", help="component or file"),
    hidden_only: bool = typer.Option(False, "--hidden-only", help="Only hidden coupling"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Config TOML file"),
    fmt: str = typer.Option(
        "rich", "--format", "-f", help="Output format: rich or json", click_type=FORMAT_CHOICE
    ),
):
    """
    Classify pairs by import strength x co-change strength.

    [bold cyan]Examples:[/bold cyan]

      coupling-insight coupling . --components components.json --imports imports.json

      coupling-insight coupling . --level file --imports imports.json --hidden-only
    """
    repo = path.resolve()
    config = resolve_config(repo, config_file)
    chosen_level = level or config.matrix.level
    if chosen_level not in ("component", "file"):
        console.print(f"[red]--level must be 'component' or 'file', got {chosen_level}[/red]")
        raise typer.Exit(2)
    if chosen_level == "component" and components is None:
        console.print("[red]--components is required at component level[/red]")
        raise typer.Exit(2)

    registry = load_registry(components, repo) if components is not None else None
    import_edges = load_import_edges(imports)
    try:
        graph = scan_cochanges_with_cache(
            repo, config.cochange, cache_dir=config.cache_path(repo)
        )
    except CouplingInsightError as e:
        fail(e)

    matrix = build_coupling_matrix(
        graph,
        import_edges,
        registry,
        MatrixOptions(
            level=chosen_level,
            structural_threshold=config.matrix.structural_threshold,
            behavioral_threshold=config.matrix.behavioral_threshold,
            repo_dir=str(repo),
        ),
    )
    entries = find_hidden_coupling(matrix) if hidden_only else matrix.entries

    if fmt == "json":
        print_json(
            {
                "level": matrix.level,
                "structural_threshold": matrix.structural_threshold,
                "behavioral_threshold": matrix.behavioral_threshold,
                "entries": [entry_to_dict(e) for e in entries],
            }
        )
        return

    console.print(
        f"Thresholds: structural [bold]{matrix.structural_threshold:.2f}[/bold], "
        f"behavioral [bold]{matrix.behavioral_threshold:.2f}[/bold]"
    )
    table = Table(title=f"Coupling matrix ({matrix.level})")
    table.add_column("A")
    table.add_column("B")
    table.add_column("Imports", justify="right")
    table.add_column("Co-change", justify="right")
    table.add_column("Quadrant")
    for e in entries:
        style = _QUADRANT_STYLE[e.quadrant]
        label = e.quadrant.value
        if e.declared is False and e.quadrant is Quadrant.HIDDEN_COUPLING:
            label += " (undeclared)"
        table.add_row(
            e.pair[0],
            e.pair[1],
            f"{e.structural_weight:g}",
            f"{e.behavioral_weight:.2f}",
            f"[{style}]{label}[/{style}]",
        )
    console.print(table)
