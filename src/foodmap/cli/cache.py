"""foodmap cache: drive the offline worker against a SQLite cache database.

Subcommands:
  install   precache the app shell, then activate (stale generations deleted)
  activate  delete stale generations of an installed database
  fetch     answer one request through the fetch policy
  status    list cache generations and entry counts
"""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from foodmap.cli.errors import err_config, err_install_failed, err_no_cache_db, err_not_installed
from foodmap.config import CacheCfg, ConfigError, load_config
from foodmap.db.connection import Database
from foodmap.db.schema import initialize
from foodmap.offline.lifecycle import CacheNames, InstallError, LifecycleController, LifecycleState
from foodmap.offline.models import Destination, Request
from foodmap.offline.network import Fetcher, HttpxFetcher, OfflineFetcher
from foodmap.offline.policy import FetchPolicy
from foodmap.offline.sqlite_storage import SqliteCacheStorage
from foodmap.offline.worker import ServiceWorker

console = Console()

cache_app = typer.Typer(help="Manage the offline cache database.", add_completion=False)

_DESTINATIONS = tuple(d.value for d in Destination if d.value)

_DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Cache database (default: the cache.db setting)."),
]


# ------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------


@cache_app.command("install")
def install_cmd(db: _DbOption = None) -> None:
    """Precache the app shell and activate the current generation."""
    cfg = _load()
    conn = _open_db(db or Path(cfg.db))
    try:
        deleted = asyncio.run(_install(conn, cfg))
    except InstallError as exc:
        console.print(err_install_failed(str(exc)))
        raise typer.Exit(1)
    finally:
        conn.close()

    console.print(f"  [green]✓[/] Installed {len(cfg.precache)} assets into {cfg.static_name}")
    _print_deleted(deleted)


@cache_app.command("activate")
def activate_cmd(db: _DbOption = None) -> None:
    """Delete every cache generation except the current static and runtime ones."""
    cfg = _load()
    db_path = db or Path(cfg.db)
    if not db_path.exists():
        console.print(err_no_cache_db(str(db_path)))
        raise typer.Exit(1)

    conn = _open_db(db_path)
    try:
        storage = SqliteCacheStorage(conn)
        if not storage.count_entries(cfg.static_name):
            console.print(err_not_installed())
            raise typer.Exit(1)
        controller = _controller(storage, cfg, state=LifecycleState.INSTALLED)
        deleted = asyncio.run(controller.activate())
    finally:
        conn.close()

    console.print("  [green]✓[/] Activated")
    _print_deleted(deleted)


@cache_app.command("fetch")
def fetch_cmd(
    url: Annotated[str, typer.Argument(help="Absolute URL to request.")],
    destination: Annotated[
        str,
        typer.Option(
            "--destination",
            "-d",
            help=f"Request destination: {', '.join(_DESTINATIONS)} ('document' for navigations).",
        ),
    ] = "",
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Simulate no connectivity."),
    ] = False,
    db: _DbOption = None,
) -> None:
    """Answer one request through the fetch policy and print the result."""
    if destination and destination not in _DESTINATIONS:
        console.print(
            f"[red]Error:[/] Unknown destination '{destination}'. "
            f"Use one of: {', '.join(_DESTINATIONS)}"
        )
        raise typer.Exit(1)

    cfg = _load()
    conn = _open_db(db or Path(cfg.db))
    request = Request(url, destination=Destination(destination))
    try:
        status, kind, size, strategy = asyncio.run(_fetch(conn, cfg, request, offline))
    finally:
        conn.close()

    colour = "green" if 200 <= status <= 299 else "red"
    console.print(
        f"  [{colour}]{status}[/] {url}  [dim]{kind} · {size} bytes · {strategy}[/]"
    )


@cache_app.command("status")
def status_cmd(db: _DbOption = None) -> None:
    """Show cache generations and how many entries each holds."""
    cfg = _load()
    db_path = db or Path(cfg.db)
    if not db_path.exists():
        console.print(err_no_cache_db(str(db_path)))
        raise typer.Exit(1)

    conn = _open_db(db_path)
    try:
        storage = SqliteCacheStorage(conn)
        names = asyncio.run(storage.keys())
        table = Table(title="Cache generations")
        table.add_column("Name")
        table.add_column("Entries", justify="right")
        table.add_column("State")
        current = {cfg.static_name, cfg.runtime_name}
        for name in names:
            state = "[green]current[/]" if name in current else "[yellow]stale[/]"
            table.add_row(name, str(storage.count_entries(name)), state)
    finally:
        conn.close()

    if not names:
        console.print("[yellow]No caches yet.[/]  Run:  foodmap cache install")
        return
    console.print(table)


# ------------------------------------------------------------------
# Async bodies
# ------------------------------------------------------------------


async def _install(conn: sqlite3.Connection, cfg: CacheCfg) -> list[str]:
    async with HttpxFetcher(origin=cfg.origin) as fetcher:
        storage = SqliteCacheStorage(conn, fetcher=fetcher)
        worker = _worker(storage, fetcher, cfg)
        await worker.start()
        return list(worker.last_deleted)


async def _fetch(
    conn: sqlite3.Connection, cfg: CacheCfg, request: Request, offline: bool
) -> tuple[int, str, int, str]:
    async with HttpxFetcher(origin=cfg.origin) as http:
        fetcher: Fetcher = OfflineFetcher() if offline else http
        storage = SqliteCacheStorage(conn, fetcher=fetcher)
        worker = _worker(storage, fetcher, cfg)
        strategy = worker.policy.classify(request).value
        response = await worker.on_fetch(request)
        body = response.read()
        return response.status, response.type.value, len(body), strategy


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


def _load() -> CacheCfg:
    try:
        return load_config().cache
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)


def _open_db(db_path: Path) -> sqlite3.Connection:
    """Open (or create) the cache database and run migrations."""
    conn = Database(db_path).connect()
    initialize(conn)
    return conn


def _controller(
    storage: SqliteCacheStorage,
    cfg: CacheCfg,
    state: LifecycleState = LifecycleState.PARSED,
) -> LifecycleController:
    return LifecycleController(
        storage=storage,
        origin=cfg.origin,
        names=CacheNames(static=cfg.static_name, runtime=cfg.runtime_name),
        precache=tuple(cfg.precache),
        state=state,
    )


def _worker(storage: SqliteCacheStorage, fetcher: Fetcher, cfg: CacheCfg) -> ServiceWorker:
    policy = FetchPolicy(
        storage,
        fetcher,
        origin=cfg.origin,
        names=CacheNames(static=cfg.static_name, runtime=cfg.runtime_name),
        provider_patterns=cfg.provider_patterns,
        runtime_prefix=cfg.runtime_prefix,
    )
    return ServiceWorker(_controller(storage, cfg), policy)


def _print_deleted(deleted: list[str]) -> None:
    if not deleted:
        console.print("  [dim]No stale generations[/]")
        return
    for name in deleted:
        console.print(f"  [yellow]↻[/] Deleted old cache: {name}")
