"""
CLI for the namespaced file cache.

Commands:
    nscache config - Show current configuration
    nscache set NAMESPACE KEY VALUE - Store a value
    nscache get NAMESPACE KEY - Print a stored value
    nscache remove NAMESPACE KEY - Remove a value
    nscache clear NAMESPACE - Remove all (or only expired) values
    nscache version - Print version
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Annotated, Any, Generator, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nscache import __version__
from nscache.cache.base import CacheResult
from nscache.config import Settings, clear_settings_cache, get_settings
from nscache.exceptions import CacheError
from nscache.factory import CacheFactory
from nscache.logging import setup_logging

app = typer.Typer(
    name="nscache",
    help="Namespaced TTL cache on the local filesystem",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def _load_settings() -> Settings:
    try:
        clear_settings_cache()
        return get_settings()
    except ValidationError as e:
        error_console.print(f"[red]Error:[/red] Configuration is invalid.\n{escape(str(e))}")
        raise typer.Exit(1)


@contextmanager
def _open_cache(namespace: str, adapter: str | None) -> Generator[Any, None, None]:
    """Yield the enabled adapter for a namespace, closing it afterwards."""
    settings = _load_settings()
    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)

    try:
        config = settings.factory_config()
        config.setdefault("defaults", {}).setdefault("options", {})["enabled"] = True
        cache = CacheFactory(config).make(namespace, adapter)
    except CacheError as e:
        error_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    try:
        yield cache
    finally:
        close = getattr(cache, "close", None)
        if callable(close):
            close()


def _exit_on(result: Any) -> None:
    if result is CacheResult.NOT_APPLICABLE:
        error_console.print("[yellow]Cache is disabled.[/yellow]")
        raise typer.Exit(2)
    if result is CacheResult.FAILURE:
        error_console.print("[red]Operation failed.[/red]")
        raise typer.Exit(1)


@app.command("set")
def set_value(
    namespace: Annotated[str, typer.Argument(help="Cache namespace")],
    key: Annotated[str, typer.Argument(help="Entry key")],
    value: Annotated[str, typer.Argument(help="Value to store")],
    ttl: Annotated[
        int,
        typer.Option("--ttl", "-t", help="Time to live in seconds (0 = default TTL)"),
    ] = 0,
    adapter: Annotated[
        Optional[str],
        typer.Option("--adapter", "-a", help="Adapter name"),
    ] = None,
) -> None:
    """Store a string value."""
    with _open_cache(namespace, adapter) as cache:
        result = cache.set(key, value, ttl)
    _exit_on(result)
    console.print(f"[green]Stored[/green] {escape(namespace)}/{escape(key)}")


@app.command("get")
def get_value(
    namespace: Annotated[str, typer.Argument(help="Cache namespace")],
    key: Annotated[str, typer.Argument(help="Entry key")],
    adapter: Annotated[
        Optional[str],
        typer.Option("--adapter", "-a", help="Adapter name"),
    ] = None,
) -> None:
    """Print a stored value."""
    with _open_cache(namespace, adapter) as cache:
        value = cache.get(key)
    _exit_on(value)
    if value is CacheResult.MISS:
        error_console.print(f"[yellow]Miss:[/yellow] {escape(namespace)}/{escape(key)}")
        raise typer.Exit(1)
    console.print(value, markup=False)


@app.command("remove")
def remove_value(
    namespace: Annotated[str, typer.Argument(help="Cache namespace")],
    key: Annotated[str, typer.Argument(help="Entry key")],
    adapter: Annotated[
        Optional[str],
        typer.Option("--adapter", "-a", help="Adapter name"),
    ] = None,
) -> None:
    """Remove a stored value."""
    with _open_cache(namespace, adapter) as cache:
        result = cache.remove(key)
    _exit_on(result)
    console.print(f"[green]Removed[/green] {escape(namespace)}/{escape(key)}")


@app.command("clear")
def clear(
    namespace: Annotated[str, typer.Argument(help="Cache namespace")],
    expired: Annotated[
        bool,
        typer.Option("--expired", "-e", help="Only remove expired entries"),
    ] = False,
    adapter: Annotated[
        Optional[str],
        typer.Option("--adapter", "-a", help="Adapter name"),
    ] = None,
) -> None:
    """Remove the entries of a namespace."""
    with _open_cache(namespace, adapter) as cache:
        if expired:
            clear_expired = getattr(cache, "clear_expired", None)
            if not callable(clear_expired):
                error_console.print("[red]Error:[/red] Adapter cannot clear expired entries.")
                raise typer.Exit(1)
            result = clear_expired()
        else:
            result = cache.clear_namespace()
    _exit_on(result)
    what = "expired entries" if expired else "all entries"
    console.print(f"[green]Cleared[/green] {what} of {escape(namespace)}")


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = _load_settings()

    table = Table(title="Cache Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.display().items():
        display_value = str(value) if value is not None else "[dim]not set[/dim]"
        table.add_row(key, display_value)

    console.print()
    console.print(table)
    console.print()


@app.command()
def version() -> None:
    """Print the version number."""
    console.print(f"nscache version {__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
