#!/usr/bin/env python3
"""
timetravel CLI - scrub through CRDT edit history

Main entrypoint for the timetravel command-line tool.
"""

import typer
from rich.console import Console
from rich.table import Table

from timetravel.config import Settings
from timetravel.logging_config import setup_logging
from timetravel.metrics import start_metrics_server

from cli.commands import scrub, seek, snapshot

# Initialize Typer app
app = typer.Typer(
    name="timetravel",
    help="Scrub through the edit history of a CRDT document",
    add_completion=False,
)

# Console for rich output
console = Console()

# Add command groups
app.add_typer(snapshot.app, name="snapshot", help="Seed snapshot operations")

# Add standalone commands
app.command(name="seek")(seek.seek_command)
app.command(name="scrub")(scrub.scrub_command)


@app.callback()
def configure():
    """Configure logging and metrics from the environment."""
    settings = Settings.from_env()
    setup_logging(settings)
    start_metrics_server(settings.metrics_enabled, settings.metrics_port)


@app.command()
def version():
    """Show version information."""
    from cli import __version__
    from timetravel import __version__ as core_version

    table = Table(show_header=False, box=None)
    table.add_row("[bold]timetravel CLI[/bold]", f"v{__version__}")
    table.add_row("Core", f"v{core_version}")
    table.add_row("Engines", "loro, memory")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()
