"""CLI entry point: the typer app and its subcommands."""

import typer

from ..logging_config import setup_logging

app = typer.Typer(
    name="coupling-insight",
    help="Coupling Insight - co-change mining and coupling diagnostics",
    add_completion=False,
    rich_markup_mode="rich",
)


@app.callback()
def _root(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log errors"),
):
    setup_logging(verbose=verbose, quiet=quiet)


def main() -> None:
    app()


# Import subcommands to register them
from .cochange import cochange as _cochange, cache_clear as _cache_clear, neighbors as _neighbors  # noqa: F401, E402
from .coupling import coupling as _coupling  # noqa: F401, E402
from .hotspots import hotspots as _hotspots  # noqa: F401, E402
