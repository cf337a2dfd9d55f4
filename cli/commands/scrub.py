"""
Scrub command: seek across the timeline and report checkout latency
"""

import json
from typing import Optional

import typer
from pydantic import ValidationError
from rich.progress import Progress

from timetravel.core.errors import TimeTravelError

from .common import (
    ENGINE_OPTION_HELP,
    console,
    fail,
    open_session,
    resolve_settings,
    stats_table,
    stats_to_json,
)


def scrub_command(
    snapshot_path: str = typer.Option(..., "--snapshot", "-s", help="Snapshot file"),
    engine: Optional[str] = typer.Option(None, "--engine", "-e", help=ENGINE_OPTION_HELP),
    start: int = typer.Option(0, "--start", help="First index (-1 = live)"),
    stop: Optional[int] = typer.Option(None, "--stop", help="Last index, inclusive (default: max index)"),
    step: int = typer.Option(1, "--step", min=1, help="Seek every N-th index"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Seek through a range of versions and summarize checkout latency.

    Examples:
        timetravel scrub --snapshot doc.snapshot
        timetravel scrub -s doc.snapshot --step 100 --json
    """
    try:
        settings = resolve_settings(engine)
        session = open_session(snapshot_path, settings)
        last = session.max_index if stop is None else stop
        if not -1 <= start <= session.max_index or not -1 <= last <= session.max_index:
            fail(f"range [{start}, {last}] outside [-1, {session.max_index}]", json_output)
        if start > last:
            fail(f"empty range: start {start} is after stop {last}", json_output)
        indices = list(range(start, last + 1, step))

        if json_output:
            for index in indices:
                session.seek_now(index)
        else:
            with Progress(console=console, transient=True) as progress:
                task = progress.add_task("Scrubbing...", total=len(indices))
                for index in indices:
                    session.seek_now(index)
                    progress.advance(task)
    except FileNotFoundError:
        fail(f"Snapshot file not found: {snapshot_path}", json_output, path=snapshot_path)
    except (TimeTravelError, ValidationError, ValueError) as e:
        fail(str(e), json_output)

    stats = session.latency_stats
    if json_output:
        print(json.dumps({
            "engine": settings.engine,
            "seeks": len(indices),
            "max_index": session.max_index,
            "final_index": session.current_index,
            "stats": stats_to_json(stats),
        }, indent=2))
        return

    console.print(f"[green]✓ Scrubbed {len(indices)} versions[/green] of {session.max_index + 1}")
    console.print(stats_table(stats, text_length=len(session.current_text)))
