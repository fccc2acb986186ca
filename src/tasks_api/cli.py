"""
Command line entry point for the Tasks API.

Loads settings, initializes the database and serves the application with
uvicorn on the configured host and port. The command takes no options; all
configuration comes from the settings file and environment.
"""

import logging
import sys

import click
import uvicorn

from .api import create_app
from .config import ConfigurationError, load_settings

logger = logging.getLogger(__name__)


def print_startup_banner(host: str, port: int, database_path: str) -> None:
    """Print the addresses the service is reachable on."""
    display_host = "localhost" if host == "0.0.0.0" else host
    print("=" * 60)
    print("TASKS API STARTED")
    print("=" * 60)
    print(f"API:       http://{display_host}:{port}/")
    print(f"Docs:      http://{display_host}:{port}/swagger")
    print(f"Database:  {database_path}")
    print("Send the X-Api-Key header on every request except / and /swagger")
    print("=" * 60)


@click.command()
def main():
    """Start the Tasks API server."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    logging.basicConfig(level=settings.log_level)

    try:
        app = create_app(settings)
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        click.echo(f"Failed to initialize database: {e}", err=True)
        sys.exit(1)

    print_startup_banner(settings.host, settings.port, settings.database_path)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
