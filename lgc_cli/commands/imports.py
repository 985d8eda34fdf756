"""CSV import command."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.table import Table

from lgc_cli.commands.common import connect, get_state, print_json_payload
from lgc_cli.core.config import resolve_batch_size
from lgc_cli.core.constants import (
    EVENT_BATCH_FAILED,
    EVENT_CANCELLED,
    EVENT_COMPLETED,
    EVENT_ERROR,
    EVENT_WARNING,
)
from lgc_cli.core.extract import exercise_rules_from_config
from lgc_cli.core.models import ImportConflict, ImportEvent
from lgc_cli.core.reconcile import run_import
from lgc_cli.core.state import CLIState
from lgc_cli.utils.formatting import exercise_label, format_date

_EVENT_STYLES = {
    EVENT_WARNING: "yellow",
    EVENT_ERROR: "bold red",
    EVENT_BATCH_FAILED: "red",
    EVENT_CANCELLED: "yellow",
    EVENT_COMPLETED: "bold green",
}


def _print_event(state: CLIState, event: ImportEvent) -> None:
    progress = f"{event.progress:>3}%" if event.progress is not None else "    "
    if state.plain_output:
        typer.echo(f"{event.kind}\t{event.progress if event.progress is not None else ''}\t{event.message}")
        return
    state.console.print(f"{progress} {event.message}", style=_EVENT_STYLES.get(event.kind), markup=False)


def _print_conflicts(state: CLIState, conflicts: List[ImportConflict]) -> None:
    if state.plain_output:
        typer.echo("date\texercise\texisting_e1rm\tincoming_e1rm\taction")
        for conflict in conflicts:
            typer.echo(
                f"{conflict.date}\t{conflict.exercise}\t{conflict.existing_e1rm}\t"
                f"{conflict.incoming_e1rm}\t{conflict.action}"
            )
        return

    table = Table(title=f"Existing entries ({len(conflicts)})")
    table.add_column("Date")
    table.add_column("Exercise")
    table.add_column("Stored e1RM", justify="right")
    table.add_column("Imported e1RM", justify="right")
    table.add_column("Action")
    for conflict in conflicts:
        table.add_row(
            format_date(conflict.date),
            exercise_label(conflict.exercise),
            str(conflict.existing_e1rm),
            str(conflict.incoming_e1rm),
            "[green]replace[/green]" if conflict.replaces else "keep",
        )
    state.console.print(table)


def import_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Strong CSV export"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Apply improvements without asking"),
    dry_run: bool = typer.Option(False, help="Reconcile without writing"),
    batch_size: Optional[int] = typer.Option(None, min=1, help="Records per write (default: 50)"),
) -> None:
    """Import a Strong app workout or measurement export."""
    state = get_state(ctx)
    text = file.read_text(encoding="utf-8-sig", errors="replace")
    api, user_id = connect(state)

    def confirm(conflicts: List[ImportConflict]) -> bool:
        if yes:
            return True
        if state.json_output:
            return False
        _print_conflicts(state, conflicts)
        replacing = sum(1 for conflict in conflicts if conflict.replaces)
        return typer.confirm(
            f"Replace {replacing} stored entries with better results and import new entries?",
            default=False,
        )

    on_event = None if state.json_output else (lambda event: _print_event(state, event))

    result = run_import(
        text,
        user_id=user_id,
        gateway=api,
        confirm=confirm,
        on_event=on_event,
        batch_size=resolve_batch_size(state.config, batch_size),
        rules=exercise_rules_from_config(state.config),
        dry_run=dry_run,
        source=file.name,
    )

    if state.json_output:
        print_json_payload(state, result.to_dict())

    if result.status == "failed" or result.failed_batches:
        raise typer.Exit(code=1)
