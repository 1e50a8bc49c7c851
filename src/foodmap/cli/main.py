"""Foodmap CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from foodmap.cli.cache import cache_app
from foodmap.cli.coords import coords_cmd
from foodmap.cli.ingest import ingest_cmd
from foodmap.cli.init import init_cmd


def _version() -> str:
    try:
        return importlib.metadata.version("foodmap")
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"foodmap {_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="foodmap",
    help=(
        "Foodmap: restaurant map dataset and offline cache tooling.\n\n"
        "  foodmap ingest  Parse the restaurant list into the JSON dataset.\n"
        "  foodmap cache   Precache, clean up and query the offline cache."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log cache decisions and lifecycle steps."),
    ] = False,
) -> None:
    """Foodmap: restaurant map dataset and offline cache tooling."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


app.command("init")(init_cmd)
app.command("ingest")(ingest_cmd)
app.command("coords")(coords_cmd)
app.add_typer(cache_app, name="cache")


@app.command("version")
def version_cmd() -> None:
    """Show the installed Foodmap version."""
    typer.echo(f"foodmap {_version()}")


if __name__ == "__main__":
    app()
