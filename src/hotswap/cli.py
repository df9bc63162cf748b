"""Hotswap CLI entry point."""

import asyncio
import importlib
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hotswap.events import Event, EventBus, EventType
from hotswap.reload import (
    DEFAULT_CHECK_INTERVAL_MS,
    NoVersionTag,
    Reloader,
    ReloaderConfig,
    start_reloader,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich handler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def import_modules(modules: tuple[str, ...], paths: tuple[str, ...]) -> None:
    """Put ``paths`` on sys.path and import every module.

    Exits with status 1 if any module cannot be imported.
    """
    for path in reversed(paths):
        resolved = str(Path(path).resolve())
        if resolved not in sys.path:
            sys.path.insert(0, resolved)

    for name in modules:
        try:
            importlib.import_module(name)
        except Exception as e:
            console.print(f"[red]Failed to import {name}: {e}[/red]")
            raise SystemExit(1) from e


def print_event(event: Event) -> None:
    """Print reload events as they happen."""
    if event.type == EventType.MODULE_RELOADED:
        console.print(f"[green]✓[/green] reloaded {event.data['module']}")
    elif event.type == EventType.MODULE_RELOAD_FAILED:
        console.print(f"[red]✗[/red] {event.data['module']}: {event.data['error']}")
    elif event.type == EventType.RELOADER_TICK and event.data.get("error"):
        console.print(f"[red]Check failed: {event.data['error']}[/red]")


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Hotswap - reload changed Python modules without restarting."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@cli.command()
@click.argument("modules", nargs=-1, required=True)
@click.option(
    "--interval",
    "-i",
    default=DEFAULT_CHECK_INTERVAL_MS,
    type=click.IntRange(min=1),
    help="Check interval in milliseconds",
)
@click.option("--ignore", multiple=True, help="Package prefix to never reload")
@click.option("--path", "-p", "paths", multiple=True, default=["."], help="Directory to add to sys.path")
def watch(modules: tuple[str, ...], interval: int, ignore: tuple[str, ...], paths: tuple[str, ...]) -> None:
    """Import MODULES and reload them whenever their source changes."""
    import_modules(modules, paths)

    async def run_watch() -> None:
        bus = EventBus()
        bus.add_callback(print_event)
        config = ReloaderConfig(check_interval_ms=interval, ignore_prefixes=["hotswap", *ignore])
        reloader = await start_reloader(config, event_bus=bus)
        console.print(
            f"[bold green]Watching {len(modules)} module(s), checking every {interval}ms[/bold green]"
        )

        # Keep running until interrupted
        try:
            while True:
                await asyncio.sleep(1)
        finally:
            await reloader.stop()

    try:
        asyncio.run(run_watch())
    except KeyboardInterrupt:
        console.print("\n[yellow]Reloader stopped[/yellow]")


@cli.command()
@click.argument("modules", nargs=-1, required=True)
@click.option("--attribute", "-a", default="__version__", help="Version tag attribute")
@click.option("--path", "-p", "paths", multiple=True, default=["."], help="Directory to add to sys.path")
def versions(modules: tuple[str, ...], attribute: str, paths: tuple[str, ...]) -> None:
    """Show loaded and on-disk version tags of MODULES."""
    import_modules(modules, paths)
    reloader = Reloader(ReloaderConfig(version_attribute=attribute))

    table = Table(title="Module Versions")
    table.add_column("Module", style="cyan")
    table.add_column("Loaded")
    table.add_column("On disk")
    table.add_column("Changed")

    for name in modules:
        cells = []
        for read in (reloader.oracle.fingerprint_loaded, reloader.oracle.fingerprint_on_disk):
            try:
                cells.append(str(read(name)))
            except NoVersionTag:
                cells.append("[dim]-[/dim]")
        changed = reloader.is_unit_changed(name)
        table.add_row(name, *cells, "[yellow]yes[/yellow]" if changed else "no")

    console.print(table)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
