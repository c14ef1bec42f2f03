"""Shared CLI helpers."""

import json
from pathlib import Path
from typing import Any, NoReturn, Optional

import click
import typer
from rich.console import Console

from ..config import AnalysisConfig, load_config
from ..coupling.models import ComponentRegistry, CouplingEntry, ImportEdge
from ..exceptions import CouplingInsightError
from ..temporal.models import CoChangeEdge, FileNeighbor, HotspotEntry

console = Console()

FORMAT_CHOICE = click.Choice(["rich", "json"], case_sensitive=False)


def resolve_config(path: Path, config_file: Optional[Path] = None) -> AnalysisConfig:
    """Load config for a repository, exiting with a message on invalid settings."""
    try:
        return load_config(repo_dir=path, config_file=config_file)
    except CouplingInsightError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(2)


def fail(error: CouplingInsightError) -> NoReturn:
    console.print(f"[red]Error:[/red] {error}")
    raise typer.Exit(1)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        console.print(f"[red]Cannot read {path}:[/red] {e}")
        raise typer.Exit(2)


def load_import_edges(path: Optional[Path]) -> list[ImportEdge]:
    """Read ``[{source, target[, weight]}, ...]`` from a JSON file."""
    if path is None:
        return []
    data = _read_json(path)
    if not isinstance(data, list):
        console.print(f"[red]{path} must contain a list of import edges[/red]")
        raise typer.Exit(2)
    try:
        return [ImportEdge.from_dict(item) for item in data]
    except (TypeError, ValueError) as e:
        console.print(f"[red]Invalid import edge in {path}:[/red] {e}")
        raise typer.Exit(2)


def load_registry(path: Path, base_dir: Path) -> ComponentRegistry:
    """Read ``{"components": {name: path|[paths]}, "dependencies": {name: [names]}}``."""
    data = _read_json(path)
    if not isinstance(data, dict) or not isinstance(data.get("components"), dict):
        console.print(f"[red]{path} must contain a 'components' object[/red]")
        raise typer.Exit(2)
    try:
        return ComponentRegistry.from_mapping(
            data["components"], data.get("dependencies"), base_dir=base_dir
        )
    except (TypeError, ValueError) as e:
        console.print(f"[red]Invalid component registry {path}:[/red] {e}")
        raise typer.Exit(2)


def edge_to_dict(edge: CoChangeEdge) -> dict[str, Any]:
    return {
        "files": [edge.files.first, edge.files.second],
        "weight": round(edge.weight, 6),
        "commit_count": edge.commit_count,
    }


def hotspot_to_dict(entry: HotspotEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "file": entry.file,
        "change_frequency": entry.change_frequency,
        "line_count": entry.line_count,
        "score": entry.score,
    }
    if entry.trend is not None:
        data["trend"] = {
            "direction": entry.trend.direction.value,
            "magnitude": round(entry.trend.magnitude, 3),
        }
    return data


def neighbor_to_dict(neighbor: FileNeighbor) -> dict[str, Any]:
    return {
        "file": neighbor.file,
        "cochange_weight": round(neighbor.cochange_weight, 6),
        "cochange_commits": neighbor.cochange_commits,
        "has_import_relation": neighbor.has_import_relation,
    }


def entry_to_dict(entry: CouplingEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "pair": list(entry.pair),
        "structural_weight": entry.structural_weight,
        "behavioral_weight": round(entry.behavioral_weight, 6),
        "quadrant": entry.quadrant.value,
    }
    if entry.declared is not None:
        data["declared"] = entry.declared
    return data


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data))
