"""foodmap init: write a default foodmap.yaml.

Creates:
  foodmap.yaml   ingest + cache configuration with defaults
  .gitignore     updated with the cache database (only if it exists)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from foodmap.config import PROJECT_CONFIG_NAME, CacheCfg, default_project_yaml

console = Console()

_DEFAULT_PROJECT_DIR = Path(".")


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = _DEFAULT_PROJECT_DIR,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Overwrite an existing foodmap.yaml without asking."),
    ] = False,
) -> None:
    """Write a foodmap.yaml with default settings."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)
    target = project_dir / PROJECT_CONFIG_NAME

    if target.exists() and not yes:
        console.print(f"[yellow]⚠[/]  {target} already exists.")
        if not typer.confirm("Overwrite?", default=False):
            console.print("[dim]Cancelled.[/]")
            raise typer.Exit(0)

    target.write_text(default_project_yaml(), encoding="utf-8")
    console.print(f"  [green]✓[/] {PROJECT_CONFIG_NAME}")
    _update_gitignore(project_dir)

    console.print("\nNext steps:")
    console.print("  1. foodmap ingest --source data/restaurants.yaml   (build the dataset)")
    console.print("  2. foodmap cache install                          (precache the app shell)")


def _update_gitignore(project_dir: Path) -> None:
    """Add the cache database to .gitignore if it already exists."""
    gitignore = project_dir / ".gitignore"
    entry = CacheCfg().db

    if gitignore.exists():
        existing = gitignore.read_text(encoding="utf-8")
        if entry not in existing:
            with gitignore.open("a", encoding="utf-8") as f:
                f.write(f"\n# Foodmap\n{entry}\n")
            console.print("  [green]✓[/] .gitignore (updated with Foodmap entries)")
