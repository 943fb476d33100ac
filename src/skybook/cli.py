"""CLI entry point for Skybook.

Provides commands:
  - lookup: One-shot airport/city suggestion lookup
  - form: Run the flight search form in the terminal
  - config show: Print the effective configuration
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from skybook.config import load_config
from skybook.exceptions import SuggestionSourceError
from skybook.models import Suggestion, dedupe_by_key

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Skybook - flight booking frontend tools",
    rich_markup_mode="rich",
)
console = Console()

config_app = typer.Typer(help="Inspect configuration")
app.add_typer(config_app, name="config")


async def _lookup(keyword: str, api: str | None, offline: bool, config_path: Path | None) -> list[Suggestion]:
    from skybook.search import LocationSearchClient, StaticLocationSource

    if offline:
        return await StaticLocationSource().search(keyword)

    client_config, _ = load_config(config_path)
    if api:
        client_config.api_base_url = api.rstrip("/")
    async with LocationSearchClient.from_config(client_config) as client:
        return await client.search(keyword)


@app.command()
def lookup(
    keyword: Annotated[str, typer.Argument(help="Airport or city name/code, 2+ characters")],
    api: Annotated[
        Optional[str],
        typer.Option("--api", help="Backend API base URL (overrides config)"),
    ] = None,
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Search the built-in airport table"),
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to skybook.json"),
    ] = None,
) -> None:
    """Look up location suggestions for KEYWORD."""
    try:
        suggestions = asyncio.run(_lookup(keyword, api, offline, config_path))
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1)
    except SuggestionSourceError as e:
        console.print(f"[red]Lookup failed:[/red] {escape(str(e))}")
        raise typer.Exit(code=1)

    suggestions = dedupe_by_key(suggestions)
    if not suggestions:
        console.print(f"[yellow]No locations match {keyword!r}.[/yellow]")
        return

    table = Table(title=f"Locations matching {keyword!r}")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Label")
    for suggestion in suggestions:
        table.add_row(suggestion.key, suggestion.label)
    console.print(table)


@app.command()
def form(
    api: Annotated[
        Optional[str],
        typer.Option("--api", help="Backend API base URL (overrides config)"),
    ] = None,
    offline: Annotated[
        bool,
        typer.Option("--offline", help="Use the built-in airport table"),
    ] = False,
    log_dir: Annotated[
        str,
        typer.Option("--log-dir", help="Directory for JSON-lines logs"),
    ] = "logs",
) -> None:
    """Run the flight search form in the terminal."""
    from skybook.tui import run_tui

    run_tui(api_base_url=api, offline=offline, log_dir=log_dir)


@config_app.command("show")
def config_show(
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to skybook.json"),
    ] = None,
) -> None:
    """Print the effective client and autocomplete settings."""
    client_config, autocomplete_config = load_config(config_path)

    table = Table(title="Skybook configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in {**asdict(client_config), **asdict(autocomplete_config)}.items():
        table.add_row(name, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
