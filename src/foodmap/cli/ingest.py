"""foodmap ingest: parse the restaurant list into the JSON dataset.

Source format by extension (override with --format):
  .yaml .yml .json   → StructuredParser
  .txt .text .md     → LineTextParser

The output artifact is always fully replaced; nothing is merged with the
previous run.
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from foodmap.cli.errors import (
    err_config,
    err_parse_failed,
    err_source_missing,
    err_unknown_format,
)
from foodmap.config import ConfigError, load_config
from foodmap.ingest import FORMATS, ParseError, detect_format, get_parser
from foodmap.ingest.materializer import write_dataset
from foodmap.models import Restaurant

console = Console()


def ingest_cmd(
    source: Annotated[
        Path | None,
        typer.Option("--source", "-s", help="Source document (default: ingest.source)."),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="JSON artifact to write (default: ingest.output)."),
    ] = None,
    fmt: Annotated[
        str | None,
        typer.Option("--format", "-f", help=f"Source format: {', '.join(FORMATS)}."),
    ] = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Fail if any entry is skipped or malformed."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Parse and report without writing the artifact."),
    ] = False,
) -> None:
    """Parse the restaurant list and write the dataset loaded by the map."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    source_path = source or Path(cfg.ingest.source)
    output_path = output or Path(cfg.ingest.output)
    fmt = fmt or cfg.ingest.format

    if not source_path.is_file():
        console.print(err_source_missing(str(source_path)))
        raise typer.Exit(1)

    if fmt not in FORMATS:
        console.print(f"[red]Error:[/] Unknown format '{fmt}'. Use one of: {', '.join(FORMATS)}")
        raise typer.Exit(1)

    if fmt == "auto":
        try:
            fmt = detect_format(source_path)
        except ParseError:
            console.print(err_unknown_format(str(source_path)))
            raise typer.Exit(1)

    console.print(f"\n[bold]→ {source_path}[/] [dim]({fmt})[/]")

    parser = get_parser(fmt, strict=strict)
    content = source_path.read_text(encoding="utf-8", errors="replace")
    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            records = parser.parse(content)
    except ParseError as exc:
        console.print(err_parse_failed(str(source_path), str(exc)))
        raise typer.Exit(1)

    for w in caught:
        console.print(f"  [yellow]⚠[/] {w.message}")
    _report(records, parser.skipped)

    if dry_run:
        console.print("  [dim]Dry run, nothing written[/]")
        return

    write_dataset(records, output_path)
    console.print(f"  [green]✓[/] Saved to {output_path}")


def _report(records: list[Restaurant], skipped: list) -> None:
    with_coords = sum(1 for r in records if r.coordinates is not None)
    console.print(f"  [green]✓[/] Parsed {len(records)} restaurants")
    console.print(f"  [green]✓[/] Found coordinates for {with_coords} restaurants")
    if skipped:
        console.print(f"  [yellow]↷ Skipped {len(skipped)} entries[/]")
        for s in skipped:
            console.print(f"    [dim]#{s.position}: {s.reason}[/]")
