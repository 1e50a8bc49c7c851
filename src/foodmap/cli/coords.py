"""foodmap coords: check scraped coordinate strings.

Used between scraping runs and the source document: every value is graded
PRECISE / COARSE / INVALID. The first failing value stops the run with exit
code 1, so a supervised batch halts instead of silently skipping a bad item.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from foodmap.cli.errors import err_low_precision
from foodmap.ingest.coordinates import CoordinateQuality, classify, validate

console = Console()


def coords_cmd(
    values: Annotated[
        list[str],
        typer.Argument(help='Coordinate strings, e.g. "51.5074,-0.1278".'),
    ],
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Reject whitespace around the comma."),
    ] = False,
    require_precise: Annotated[
        bool,
        typer.Option(
            "--require-precise",
            help="Fail unless both components have at least 10 decimal digits.",
        ),
    ] = False,
) -> None:
    """Validate coordinate strings and grade their precision."""
    for value in values:
        if not validate(value, strict=strict):
            console.print(f"  [red]✗[/] {value}  [dim]invalid[/]")
            raise typer.Exit(1)

        quality = classify(value)
        if quality is CoordinateQuality.PRECISE:
            console.print(f"  [green]✓[/] {value}  [dim]{quality.value}[/]")
            continue

        console.print(f"  [yellow]~[/] {value}  [dim]{quality.value}[/]")
        if require_precise:
            console.print(err_low_precision(value))
            raise typer.Exit(1)
