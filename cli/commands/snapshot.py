"""
Snapshot commands: build, info
"""

import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from timetravel.core.canonical import content_hash
from timetravel.core.errors import TimeTravelError
from timetravel.doc import load_trace, open_document, replay_trace
from timetravel.timeline import build_timeline

from .common import ENGINE_OPTION_HELP, console, fail, open_session, resolve_settings

app = typer.Typer()


@app.command()
def build(
    trace_path: str = typer.Option(..., "--trace", "-t", help="Edit trace (JSON, optionally .gz)"),
    output: str = typer.Option(..., "--out", "-o", help="Snapshot file to write"),
    engine: Optional[str] = typer.Option(None, "--engine", "-e", help=ENGINE_OPTION_HELP),
    peer: int = typer.Option(1, "--peer", help="Peer id recorded on the changes"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Replay only the first N transactions"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Build a seed snapshot by replaying an edit trace.

    Examples:
        timetravel snapshot build --trace seph-blog1.json.gz --out seph-blog1.loro-snapshot
        timetravel snapshot build -t trace.json -o doc.snapshot --engine memory --limit 500
    """
    try:
        settings = resolve_settings(engine)
        trace = load_trace(trace_path)
        document = open_document(settings.engine, peer=peer)
        applied = replay_trace(document, trace, field=settings.text_field, limit=limit)
        data = document.export_snapshot()
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        Path(output).write_bytes(data)
        versions = len(build_timeline(document))
        final_text = document.get_text(settings.text_field)
    except FileNotFoundError:
        fail(f"Trace file not found: {trace_path}", json_output, path=trace_path)
    except (TimeTravelError, ValidationError, ValueError) as e:
        fail(str(e), json_output)

    matches = None
    if limit is None and trace.end_content is not None:
        matches = final_text == trace.end_content

    if json_output:
        print(json.dumps({
            "success": True,
            "engine": settings.engine,
            "txns_applied": applied,
            "versions": versions,
            "bytes": len(data),
            "content_hash": content_hash(final_text),
            "matches_trace": matches,
        }, indent=2))
        return

    console.print(f"[green]✓ Replayed {applied} transactions[/green] ({settings.engine})")
    console.print(f"  Versions: [cyan]{versions}[/cyan]")
    console.print(f"  Snapshot: [yellow]{output}[/yellow] ({len(data)} bytes)")
    if matches is False:
        console.print("[yellow]Warning: final text differs from the trace's recorded end content[/yellow]")


@app.command()
def info(
    snapshot_path: str = typer.Option(..., "--snapshot", "-s", help="Snapshot file"),
    engine: Optional[str] = typer.Option(None, "--engine", "-e", help=ENGINE_OPTION_HELP),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show timeline size and head of a snapshot.

    Examples:
        timetravel snapshot info --snapshot doc.snapshot
        timetravel snapshot info -s doc.snapshot --engine memory --json
    """
    try:
        settings = resolve_settings(engine)
        session = open_session(snapshot_path, settings)
        text = session.document.get_text(settings.text_field)
    except FileNotFoundError:
        fail(f"Snapshot file not found: {snapshot_path}", json_output, path=snapshot_path)
    except (TimeTravelError, ValidationError, ValueError) as e:
        fail(str(e), json_output)

    timeline = session.timeline
    if json_output:
        print(json.dumps({
            "engine": settings.engine,
            "versions": len(timeline),
            "max_index": timeline.max_index,
            "head": [str(i) for i in timeline.head],
            "first": str(timeline[0]) if len(timeline) else None,
            "last": str(timeline.last()) if len(timeline) else None,
            "text_length": len(text),
            "content_hash": content_hash(text),
        }, indent=2))
        return

    console.print(f"[bold]Snapshot:[/bold] {snapshot_path}")
    console.print(f"  Engine: [cyan]{settings.engine}[/cyan]")
    console.print(f"  Versions: [cyan]{len(timeline)}[/cyan] (max index {timeline.max_index})")
    console.print(f"  Head: [yellow]{timeline.head}[/yellow]")
    console.print(f"  Latest text length: {len(text)}")
