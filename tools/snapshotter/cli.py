"""CLI entry-point for the ClickUp snapshotter."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .api import ClickUpAPI
from .backfill import Backfiller
from .config import ClickUpConfig, MirrorConfig, SnapshotterConfig
from .snapshotter import Snapshotter
from .storage import SnapshotStore

console = Console()


QUIET_LOGGERS = ("httpx", "httpcore", "PIL")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose, rich_tracebacks=verbose)],
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _print_stats(stats: dict, title: str) -> None:
    table = Table(title=title, header_style="bold cyan")
    table.add_column("Counter", style="bold")
    table.add_column("Value", justify="right")
    for key in sorted(stats):
        style = "red" if key == "errors" and stats[key] else None
        table.add_row(key, str(stats[key]), style=style)
    console.print(table)


@click.group()
@click.option("--token", envvar="PERSONAL_ACCESS_TOKEN", default="", help="ClickUp personal access token")
@click.option("--space-id", envvar="CLICKUP_SPACE_ID", default="", help="ClickUp space to snapshot")
@click.option("--api-base", envvar="CLICKUP_API_BASE", default="https://api.clickup.com/api/v2", help="ClickUp API base URL")
@click.option("--snapshots-dir", envvar="SNAPSHOTS_DIR", default="src/data/snapshots", type=click.Path(path_type=Path), help="Directory holding {YYYY-MM}.json snapshots")
@click.option("--mirror-url", envvar="SNAPSHOT_MIRROR_URL", default="http://localhost:3000", help="Base URL of the published snapshots used for backfill")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, **kwargs: object) -> None:
    """ClickUp Snapshotter – monthly JSON snapshots of a ClickUp space.

    Fetches lists, statuses, tasks and image attachments from the ClickUp
    API and writes the current month's snapshot, backfilling earlier
    months from the published mirror when they are missing locally.
    """
    _setup_logging(bool(kwargs.pop("verbose")))
    ctx.ensure_object(dict)
    ctx.obj["clickup_cfg"] = ClickUpConfig(
        api_base=kwargs["api_base"],  # type: ignore[arg-type]
        token=kwargs["token"],  # type: ignore[arg-type]
        space_id=kwargs["space_id"],  # type: ignore[arg-type]
    )
    ctx.obj["mirror_cfg"] = MirrorConfig(base_url=kwargs["mirror_url"])  # type: ignore[arg-type]
    ctx.obj["snapshots_dir"] = kwargs["snapshots_dir"]


def _make_config(ctx: click.Context, *, backfill: bool = True, thumbs: bool = True) -> SnapshotterConfig:
    return SnapshotterConfig(
        clickup=ctx.obj["clickup_cfg"],
        mirror=ctx.obj["mirror_cfg"],
        snapshots_dir=ctx.obj["snapshots_dir"],
        backfill=backfill,
        generate_thumbnails=thumbs,
        show_progress=True,
    )


# ─── Commands ────────────────────────────────────────────────────


async def _run_snapshot(cfg: SnapshotterConfig) -> tuple[Path, dict]:
    async with Snapshotter(cfg) as s:
        path = await s.run()
        return path, s.stats


@cli.command()
@click.option("--no-backfill", is_flag=True, help="Skip recovering missing past months")
@click.option("--no-thumbs", is_flag=True, help="Skip attachment thumbnails")
@click.pass_context
def snapshot(ctx: click.Context, no_backfill: bool, no_thumbs: bool) -> None:
    """Build and write the current month's snapshot.

    Example: board-snapshots snapshot --no-backfill
    """
    cfg = _make_config(ctx, backfill=not no_backfill, thumbs=not no_thumbs)
    console.print(f"[bold]Snapshotting into [cyan]{cfg.snapshots_dir}[/cyan]...[/bold]")
    try:
        path, stats = asyncio.run(_run_snapshot(cfg))
    except OSError as exc:
        console.print(f"[red]✗[/red] Cannot write snapshots to {cfg.snapshots_dir}: {exc}")
        sys.exit(1)
    console.print(f"[green]✓[/green] Snapshot saved to {path}")
    _print_stats(stats, "Snapshot Run")


async def _run_backfill(store: SnapshotStore, cfg: MirrorConfig) -> tuple[list[str], dict]:
    async with Backfiller(store, cfg) as b:
        restored = await b.run()
        return restored, b.stats


@cli.command()
@click.pass_context
def backfill(ctx: click.Context) -> None:
    """Restore missing past months from the mirror without touching ClickUp.

    Example: board-snapshots --mirror-url https://board.example.org backfill
    """
    store = SnapshotStore(ctx.obj["snapshots_dir"])
    try:
        store.ensure_directory()
    except OSError as exc:
        console.print(f"[red]✗[/red] Cannot write snapshots to {store.directory}: {exc}")
        sys.exit(1)
    restored, stats = asyncio.run(_run_backfill(store, ctx.obj["mirror_cfg"]))
    for month in restored:
        console.print(f"  [green]✓[/green] {month}")
    _print_stats(stats, "Backfill")


async def _fetch_lists(cfg: ClickUpConfig) -> list[dict]:
    async with ClickUpAPI(cfg) as api:
        return await api.fetch_lists()


@cli.command(name="lists")
@click.pass_context
def list_lists(ctx: click.Context) -> None:
    """List the lists of the configured space."""
    lists = asyncio.run(_fetch_lists(ctx.obj["clickup_cfg"]))
    table = Table(title="ClickUp Lists", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Tasks", justify="right")
    for lst in lists:
        table.add_row(str(lst.get("id", "")), lst.get("name", ""), str(lst.get("task_count") or ""))
    console.print(table)


@cli.command(name="snapshots")
@click.pass_context
def list_snapshots(ctx: click.Context) -> None:
    """List local snapshot files."""
    store = SnapshotStore(ctx.obj["snapshots_dir"])
    table = Table(title="Local Snapshots", show_header=True, header_style="bold cyan")
    table.add_column("Month", style="bold")
    table.add_column("Lists", justify="right")
    table.add_column("Tasks", justify="right")
    for month in reversed(store.months()):
        try:
            data = store.read_snapshot(month)
        except ValueError:
            table.add_row(month, "[red]invalid[/red]", "")
            continue
        table.add_row(month, str(len(data.get("lists", []))), str(len(data.get("listViewTasks", []))))
    console.print(table)


@cli.command()
@click.argument("month")
@click.pass_context
def show(ctx: click.Context, month: str) -> None:
    """Summarise one snapshot's columns.

    Example: board-snapshots show 2024-05
    """
    store = SnapshotStore(ctx.obj["snapshots_dir"])
    if not store.exists(month):
        console.print(f"[red]✗[/red] No snapshot for {month}")
        sys.exit(1)
    try:
        data = store.read_snapshot(month)
    except ValueError as exc:
        console.print(f"[red]✗[/red] Snapshot {month} is not valid JSON: {exc}")
        sys.exit(1)
    for lst in data.get("lists", []):
        table = Table(title=f"{lst['name']} ({lst['numColumns']} columns)", show_header=True, header_style="bold cyan")
        table.add_column("Status", style="bold")
        table.add_column("Tasks", justify="right")
        for status, count in lst.get("columnsInfo", {}).items():
            table.add_row(status, str(count))
        console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
