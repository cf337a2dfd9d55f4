"""
Shared CLI helpers: session loading, error output, stats rendering.
"""

import json
import math
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.table import Table

from timetravel.config import Settings
from timetravel.core.clock import ManualScheduler
from timetravel.core.stats import RunningStats
from timetravel.doc import open_document
from timetravel.navigation import TimeTravelSession

console = Console()

ENGINE_OPTION_HELP = "CRDT engine (loro, memory); default from TIMETRAVEL_ENGINE"


def fail(message: str, json_output: bool, **extra: Any) -> NoReturn:
    """Print an error and exit with code 2."""
    if json_output:
        print(json.dumps({"error": message, **extra}))
    else:
        console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(2)


def resolve_settings(engine: Optional[str]) -> Settings:
    settings = Settings.from_env()
    if engine is not None:
        settings = Settings(**{**settings.model_dump(), "engine": engine.lower()})
    return settings


def open_session(snapshot_path: str, settings: Settings) -> TimeTravelSession:
    """
    Load a snapshot file into a fresh session.

    The CLI seeks synchronously, so the dispatcher gets a manual scheduler
    that never fires on its own.

    Raises:
        FileNotFoundError: If snapshot_path does not exist
    """
    data = Path(snapshot_path).read_bytes()
    document = open_document(settings.engine)
    return TimeTravelSession.open(document, data, settings=settings, scheduler=ManualScheduler())


def fmt_ms(value: float) -> str:
    if math.isnan(value) or math.isinf(value):
        return "-"
    return f"{value:.2f}"


def json_number(value: float) -> Optional[float]:
    """JSON has no NaN/inf; map them to null."""
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def stats_to_json(stats: RunningStats) -> dict:
    return {k: (json_number(v) if isinstance(v, float) else v) for k, v in stats.to_dict().items()}


def stats_table(stats: RunningStats, text_length: Optional[int] = None) -> Table:
    table = Table(title="Checkout Latency")
    table.add_column("Metric", style="green")
    table.add_column("Value", style="cyan", justify="right")

    table.add_row("Checkouts", str(stats.count))
    table.add_row("Checkout duration", f"{fmt_ms(stats.last)} ms")
    table.add_row("Min", f"{fmt_ms(stats.min)} ms")
    table.add_row("Max", f"{fmt_ms(stats.max)} ms")
    table.add_row("Mean", f"{fmt_ms(stats.mean)} ± {fmt_ms(stats.error)} ms")
    table.add_row("Variance", f"{fmt_ms(stats.variance)} ms²")
    table.add_row("Standard deviation", f"{fmt_ms(stats.std_dev)} ms")
    if text_length is not None:
        table.add_row("Text length", str(text_length))
    return table
