"""
Seek command: check out one version of a snapshot
"""

import json
from typing import Optional

import typer
from pydantic import ValidationError

from timetravel.core.canonical import content_hash
from timetravel.core.errors import TimeTravelError

from .common import ENGINE_OPTION_HELP, console, fail, fmt_ms, open_session, resolve_settings


def seek_command(
    snapshot_path: str = typer.Option(..., "--snapshot", "-s", help="Snapshot file"),
    index: int = typer.Option(..., "--index", "-i", help="Timeline index (-1 = live)"),
    engine: Optional[str] = typer.Option(None, "--engine", "-e", help=ENGINE_OPTION_HELP),
    show_text: bool = typer.Option(False, "--show-text", help="Print the document text"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Check out the document at a timeline index.

    Examples:
        timetravel seek --snapshot doc.snapshot --index 120
        timetravel seek -s doc.snapshot -i -1
        timetravel seek -s doc.snapshot -i 5 --show-text --json
    """
    try:
        settings = resolve_settings(engine)
        session = open_session(snapshot_path, settings)
        event = session.seek_now(index)
    except FileNotFoundError:
        fail(f"Snapshot file not found: {snapshot_path}", json_output, path=snapshot_path)
    except (TimeTravelError, ValidationError, ValueError) as e:
        fail(str(e), json_output)

    if json_output:
        output = {
            "index": event.index,
            "max_index": session.max_index,
            "change_id": str(session.timeline[event.index]) if event.index >= 0 else None,
            "latency_ms": event.latency_ms,
            "text_length": len(event.text),
            "content_hash": content_hash(event.text),
        }
        if show_text:
            output["text"] = event.text
        print(json.dumps(output, indent=2))
        return

    label = "live" if event.state.is_live else str(session.timeline[event.index])
    console.print(f"[bold]Version {event.index}[/bold] of {session.max_index} ({label})")
    console.print(f"  Checkout duration: [cyan]{fmt_ms(event.latency_ms)} ms[/cyan]")
    console.print(f"  Text length: {len(event.text)}")
    if show_text:
        console.print(event.text, markup=False, highlight=False)
