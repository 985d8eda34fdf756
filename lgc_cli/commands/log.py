"""Manual workout and check-in commands."""

from __future__ import annotations

from typing import List, Optional

import typer

from lgc_cli.commands.common import connect, get_state, print_json_payload
from lgc_cli.core.api import APIError
from lgc_cli.core.constants import CHECKIN_KIND, EXERCISE_LABELS, SLEEP_QUALITY_RANGE, WORKOUT_KIND
from lgc_cli.core.extract import build_workout_record, exercise_rules_from_config, map_exercise_name
from lgc_cli.core.models import CheckinRecord
from lgc_cli.core.reconcile import merge_checkin
from lgc_cli.utils.date_ranges import local_date, validate_date
from lgc_cli.utils.formatting import exercise_label, format_number
from lgc_cli.utils.parsing import parse_set


def log_command(
    ctx: typer.Context,
    exercise: str = typer.Argument(..., help="Exercise key (squat, bench, ...) or name"),
    sets: List[str] = typer.Option(..., "--set", "-s", help="Set as WEIGHTxREPS or WEIGHTxREPS@RPE, repeatable"),
    date: Optional[str] = typer.Option(None, help="Workout date YYYY-MM-DD (default: today)", callback=validate_date),
    name: Optional[str] = typer.Option(None, help="Display name of the exercise"),
) -> None:
    """Log the working sets of one exercise for a day."""
    state = get_state(ctx)

    key = exercise.lower() if exercise.lower() in EXERCISE_LABELS else map_exercise_name(
        exercise, exercise_rules_from_config(state.config)
    )
    if not key:
        raise typer.BadParameter(f"Unrecognized exercise '{exercise}'. Use one of: {', '.join(EXERCISE_LABELS)}")

    try:
        parsed = [parse_set(item) for item in sets]
    except ValueError as exc:
        raise typer.BadParameter(str(exc))

    valid = [(weight, reps, rpe) for weight, reps, rpe in parsed if weight > 0 and reps > 0]
    if not valid:
        raise typer.BadParameter("At least one set needs a positive weight and reps")

    api, user_id = connect(state)
    display_name = name or (exercise if key != exercise.lower() else EXERCISE_LABELS[key])
    record = build_workout_record(user_id, date or local_date(), key, display_name, valid)

    try:
        api.upsert_batch(WORKOUT_KIND, [record.to_row()])
    except APIError as exc:
        typer.echo(f"Save failed: {exc}")
        raise typer.Exit(code=1)

    payload = {"status": "saved", "workout": record.to_row()}
    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo("status\tsaved")
        typer.echo(f"date\t{record.date}")
        typer.echo(f"exercise\t{record.exercise}")
        typer.echo(f"best\t{format_number(record.best_weight)}x{record.best_reps}")
        typer.echo(f"e1rm\t{record.e1rm}")
        return

    state.console.print(
        f"Saved {exercise_label(record.exercise)} on {record.date}: "
        f"best {format_number(record.best_weight)}x{record.best_reps}, e1RM {record.e1rm}"
    )


def checkin_command(
    ctx: typer.Context,
    date: Optional[str] = typer.Option(None, help="Check-in date YYYY-MM-DD (default: today)", callback=validate_date),
    weight: Optional[float] = typer.Option(None, min=0, help="Body weight"),
    waist: Optional[float] = typer.Option(None, min=0, help="Waist circumference"),
    neck: Optional[float] = typer.Option(None, min=0, help="Neck circumference"),
    hips: Optional[float] = typer.Option(None, min=0, help="Hip circumference"),
    sleep: Optional[int] = typer.Option(
        None,
        min=SLEEP_QUALITY_RANGE[0],
        max=SLEEP_QUALITY_RANGE[1],
        help="Sleep quality 1-10",
    ),
    notes: Optional[str] = typer.Option(None, help="Free-text note"),
) -> None:
    """Record body measurements, merged into any check-in for the day."""
    state = get_state(ctx)
    if not weight and not waist:
        raise typer.BadParameter("Enter at least --weight or --waist")

    api, user_id = connect(state)
    day = date or local_date()
    incoming = CheckinRecord(
        user_id=user_id,
        date=day,
        weight=weight or None,
        waist=waist or None,
        neck=neck or None,
        hips=hips or None,
        sleep_quality=sleep,
        notes=notes or None,
    )

    try:
        stored = [CheckinRecord.from_row(row) for row in api.fetch_all(user_id, CHECKIN_KIND)]
        existing = next((record for record in stored if record.date == day), None)
        merged = merge_checkin(existing, incoming)
        api.upsert_batch(CHECKIN_KIND, [merged.to_row()])
    except APIError as exc:
        typer.echo(f"Save failed: {exc}")
        raise typer.Exit(code=1)

    payload = {"status": "saved", "checkin": merged.to_row()}
    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo("status\tsaved")
        for field_name in ("date", "weight", "waist", "neck", "hips", "sleep_quality", "notes"):
            value = getattr(merged, field_name)
            typer.echo(f"{field_name}\t{value if value is not None else '-'}")
        return

    state.console.print(
        f"Saved check-in for {merged.date}: weight {format_number(merged.weight)}, "
        f"waist {format_number(merged.waist)}"
    )
