"""Foodmap rich error messages: actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from foodmap.cli.errors import err_source_missing
    console.print(err_source_missing("data/restaurants.yaml"))
    raise typer.Exit(1)
"""

from __future__ import annotations


def err_source_missing(path: str) -> str:
    """Source document does not exist."""
    return (
        f"[red]Error:[/] Source document not found: '{path}'\n"
        "  Use:  foodmap ingest --source <file>  or set ingest.source in foodmap.yaml"
    )


def err_unknown_format(path: str) -> str:
    """Format could not be inferred from the file extension."""
    return (
        f"[red]Error:[/] Cannot tell the source format of '{path}'.\n"
        "  Use:  --format text  (name / url / coords blocks)  or  --format yaml"
    )


def err_parse_failed(path: str, detail: str) -> str:
    """Source document could not be parsed."""
    return (
        f"[red]Error:[/] Could not parse '{path}': {detail}\n"
        "  Fix the entry above and re-run:  foodmap ingest"
    )


def err_config(detail: str) -> str:
    """foodmap.yaml holds an invalid value."""
    return (
        f"[red]Error:[/] Invalid configuration: {detail}\n"
        "  Edit foodmap.yaml (or run:  foodmap init  to write a fresh one)."
    )


def err_install_failed(detail: str) -> str:
    """Precaching failed and nothing was installed."""
    return (
        f"[red]Error:[/] Install failed, nothing was cached: {detail}\n"
        "  Check that cache.origin is reachable and every cache.precache path exists,\n"
        "  then run:  foodmap cache install"
    )


def err_no_cache_db(db_path: str) -> str:
    """No cache database yet."""
    return (
        f"[red]Error:[/] No cache database at '{db_path}'.\n"
        "  Run:  foodmap cache install"
    )


def err_not_installed() -> str:
    """Activate called without a successful install in the same database."""
    return (
        "[red]Error:[/] The static cache generation is not installed.\n"
        "  Run:  foodmap cache install"
    )


def err_low_precision(value: str) -> str:
    """Scraped coordinates are too coarse to trust."""
    return (
        f"[red]Error:[/] Coordinates '{value}' are not high precision.\n"
        "  Copy the coordinates from the place page itself and re-run."
    )
