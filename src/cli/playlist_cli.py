"""
Playlist CLI - Inspect and simulate adaptive playlists.

A developer tool that drives the playlist engine against JSON files.
It only reads files and prints; persistence belongs to the caller.

Usage:
    playlist show course.json                     # Fresh playlist as a table
    playlist show course.json -s session.json     # Saved session as a table
    playlist next course.json -s session.json     # Next decision as JSON
    playlist simulate course.json -g gates.json   # Walk the module end to end

Course file:
    {"enrollment_id": "...", "module_id": "...", "settings": {"mode": "guided"},
     "learning_units": [...], "node_progress": {"node-1": {"mastery": 0.9, "attempts": 4}}}
"""

from __future__ import annotations

import json
from collections import defaultdict, deque
from pathlib import Path
from typing import Annotated

import typer
from pydantic import BaseModel, Field, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.core.log_config import configure_logging
from src.playlist import (
    CorruptSessionError,
    CourseAdaptiveSettings,
    GateResult,
    HoldDecision,
    NodeProgress,
    PlaylistEngine,
    RetryEntry,
    StaticLearningUnit,
)
from src.playlist.models import gate_unit_of

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="playlist",
    help="Adaptive playlist engine inspector",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


class CourseFile(BaseModel):
    """Input file describing one module for one learner."""

    enrollment_id: str = "local-enrollment"
    module_id: str = "local-module"
    settings: CourseAdaptiveSettings | None = None
    learning_units: list[StaticLearningUnit] = Field(default_factory=list)
    node_progress: dict[str, NodeProgress] = Field(default_factory=dict)


def _load_course(path: Path) -> CourseFile:
    try:
        return CourseFile.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[red]Invalid course file {path}: {e.error_count()} error(s)[/]")
        raise typer.Exit(1)


def _build_engine(course: CourseFile, session_path: Path | None) -> PlaylistEngine:
    engine = PlaylistEngine(
        course.settings,
        course.learning_units,
        course.enrollment_id,
        course.module_id,
        course.node_progress,
    )
    if session_path is None:
        engine.initialize_playlist()
        return engine

    try:
        engine.restore_session(session_path.read_text(encoding="utf-8"))
    except CorruptSessionError as e:
        console.print(f"[red]Cannot restore {session_path}: {e}[/]")
        raise typer.Exit(1)
    return engine


def _load_gate_script(path: Path) -> dict[str, deque[GateResult]]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        results = [GateResult.model_validate(item) for item in raw]
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        console.print(f"[red]Invalid gate results file {path}: {e}[/]")
        raise typer.Exit(1)

    queues: dict[str, deque[GateResult]] = defaultdict(deque)
    for result in results:
        queues[result.lu_id].append(result)
    return queues


def _playlist_table(engine: PlaylistEngine) -> Table:
    table = Table(title=f"Playlist ({engine.mode.value})")
    table.add_column("#", justify="right")
    table.add_column("Entry")
    table.add_column("Kind")
    table.add_column("Status")
    table.add_column("Gate")

    for index, row in enumerate(engine.get_display_entries()):
        if row.is_current:
            status = "[bold cyan]current[/]"
        elif row.is_skipped:
            status = "[yellow]skipped[/]"
        elif row.is_completed:
            status = "[green]done[/]"
        else:
            status = "[dim]upcoming[/]"
        gate = row.gate_status.value if row.gate_status else ""
        table.add_row(str(index), row.title, row.kind, status, gate)

    return table


# =============================================================================
# Commands
# =============================================================================


@app.command()
def show(
    course_path: Annotated[Path, typer.Argument(help="Course JSON file", exists=True, dir_okay=False)],
    session_path: Annotated[
        Path | None, typer.Option("--session", "-s", help="Saved session JSON", exists=True, dir_okay=False)
    ] = None,
) -> None:
    """Render the playlist sidebar view."""
    engine = _build_engine(_load_course(course_path), session_path)
    console.print(_playlist_table(engine))
    if engine.is_complete():
        console.print("[green]Module complete[/]")


@app.command("next")
def next_decision(
    course_path: Annotated[Path, typer.Argument(help="Course JSON file", exists=True, dir_okay=False)],
    session_path: Annotated[
        Path | None, typer.Option("--session", "-s", help="Saved session JSON", exists=True, dir_okay=False)
    ] = None,
) -> None:
    """Print the decision the engine would take next."""
    engine = _build_engine(_load_course(course_path), session_path)
    typer.echo(engine.resolve_next().model_dump_json(indent=2, by_alias=True))


@app.command()
def simulate(
    course_path: Annotated[Path, typer.Argument(help="Course JSON file", exists=True, dir_okay=False)],
    gate_results: Annotated[
        Path | None,
        typer.Option("--gate-results", "-g", help="JSON list of gate results, consumed in order per gate"),
    ] = None,
    max_steps: Annotated[int, typer.Option("--max-steps", "-n", help="Stop after this many decisions")] = 100,
    as_json: Annotated[bool, typer.Option("--json", help="Print the final session as compact JSON")] = False,
) -> None:
    """
    Walk the module from the start, applying every resolved decision.

    Whenever the cursor sits on a gate awaiting an attempt, the next scripted
    result for that gate is recorded. The walk stops on completion, on a
    hold, or after --max-steps decisions.
    """
    engine = _build_engine(_load_course(course_path), None)
    queues = _load_gate_script(gate_results) if gate_results else {}

    trail = Table(title="Decisions")
    trail.add_column("Step", justify="right")
    trail.add_column("At")
    trail.add_column("Decision")
    trail.add_column("Detail")

    for step in range(1, max_steps + 1):
        if engine.is_complete():
            break

        entry = engine.get_current_entry()
        gate = gate_unit_of(entry)
        if gate is not None and queues.get(gate.id):
            recorded = len(engine.get_session().gate_attempts.get(gate.id, []))
            expected = entry.attempt_number if isinstance(entry, RetryEntry) else 1
            if recorded < expected:
                engine.record_gate_result(queues[gate.id].popleft())

        decision = engine.resolve_next()
        detail = decision.model_dump(exclude={"action"}, mode="json", by_alias=True)
        trail.add_row(
            str(step),
            entry.title if entry is not None else "(end)",
            decision.action,
            json.dumps(detail) if detail else "",
        )

        if isinstance(decision, HoldDecision):
            break
        engine.apply_decision(decision)

    if as_json:
        typer.echo(engine.get_session().to_json())
        return

    console.print(trail)
    console.print(_playlist_table(engine))
    state = "[green]complete[/]" if engine.is_complete() else "[yellow]in progress[/]"
    console.print(Panel(f"Module {engine.get_session().module_id}: {state}", border_style="cyan"))


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
