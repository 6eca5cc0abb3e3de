"""Command-line interface for the Process Link admin service."""

import asyncio
import json
import logging
import sys
from contextlib import asynccontextmanager

import click
import uvicorn
from rich.console import Console
from rich.panel import Panel

from processlink import __version__
from processlink.config import settings
from processlink.credentials.service import config_store
from processlink.errors import ConfigurationError
from processlink.locations.router import get_redirect_fetcher
from processlink.locations.service import LocationsResponse, fetch_locations
from processlink.logger import setup_global_logger

console = Console()
logger = logging.getLogger(__name__)


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Override PROCESSLINK_LOG_LEVEL.")
def main(log_level):
    """
    Process Link nodes.

    Serve the admin lookups used by the node editor, or run a lookup once.
    """
    setup_global_logger(log_level or settings.LOG_LEVEL)


@main.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=1881, show_default=True, type=int)
@click.option(
    "--config-file",
    type=click.Path(exists=True, dir_okay=False),
    help="JSON list of config nodes to register before serving.",
)
def serve(host, port, config_file):
    """Run the admin HTTP service."""
    if config_file:
        loaded = config_store.load_file(config_file)
        console.print(f"[green]✓ Registered {len(loaded)} config nodes[/green]")

    console.print(
        Panel.fit(
            f"[bold]{settings.PROJECT_NAME}[/bold] v{__version__}\n"
            f"Listening on http://{host}:{port}",
            border_style="cyan",
        )
    )
    uvicorn.run("processlink.main:app", host=host, port=port, log_level="warning")


async def _lookup(config_id: str) -> LocationsResponse:
    async with asynccontextmanager(get_redirect_fetcher)() as fetcher:
        return await fetch_locations(
            config_store.get(config_id),
            fetcher,
            host=settings.FILES_HOST,
            timeout=settings.locations_timeout,
        )


@main.command()
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("config_id")
def locations(config_file, config_id):
    """Print the areas and folders visible to CONFIG_ID."""
    config_store.load_file(config_file)

    try:
        result = asyncio.run(_lookup(config_id))
    except ConfigurationError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(2)

    console.print_json(json.dumps(result.body))
    if result.status_code != 200:
        console.print(f"[red]❌ Lookup failed with status {result.status_code}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
