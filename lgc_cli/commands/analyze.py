"""Progress report commands."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import typer
from rich.table import Table

from lgc_cli.commands.common import connect, get_state, load_records, print_json_payload
from lgc_cli.core.analysis import build_summary, checkin_log, score_history, workout_log
from lgc_cli.core.api import APIError
from lgc_cli.core.config import ConfigError, resolve_birthday
from lgc_cli.core.constants import HISTORY_VIEWS, SCORE_LIFTS
from lgc_cli.core.state import CLIState
from lgc_cli.utils.formatting import (
    exercise_label,
    format_date,
    format_month_year,
    format_number,
    format_score,
)


def summary_command(ctx: typer.Context) -> None:
    """Show current lifts, waist, LGC score, check-in streak and recent wins."""
    state = get_state(ctx)
    try:
        birthday = resolve_birthday(state.config)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}")
        raise typer.Exit(code=2)

    api, user_id = connect(state)
    try:
        workouts, checkins = load_records(api, user_id)
    except APIError as exc:
        typer.echo(f"Load failed: {exc}")
        raise typer.Exit(code=1)

    report = build_summary(workouts, checkins, birthday=birthday)

    if state.json_output:
        print_json_payload(state, report)
        return

    if state.plain_output:
        typer.echo(f"lgc_score\t{report['lgc_score']}")
        for lift in SCORE_LIFTS:
            typer.echo(f"{lift}\t{report['lifts'][lift]}")
        typer.echo(f"total\t{report['total']}")
        typer.echo(f"waist\t{format_number(report['waist'])}")
        typer.echo(f"checkin_streak\t{report['checkin_streak']}")
        typer.echo(f"workouts_this_month\t{report['workouts_this_month']}")
        if report["age"] is not None:
            typer.echo(f"age\t{report['age']}")
        for win in report["wins"]:
            typer.echo(f"win\t{win}")
        return

    state.console.print(f"LGC Score: {format_score(report['lgc_score'])}")
    table = Table(title="Best e1RM")
    table.add_column("Lift")
    table.add_column("e1RM", justify="right")
    for lift in SCORE_LIFTS:
        table.add_row(exercise_label(lift), str(report["lifts"][lift] or "—"))
    table.add_row("Total", str(report["total"]))
    state.console.print(table)
    state.console.print(f"Waist: {format_number(report['waist'])}")
    state.console.print(f"Check-ins (last 7 days): {report['checkin_streak']}/7")
    state.console.print(f"Workouts this month: {report['workouts_this_month']}")
    if report["age"] is not None:
        state.console.print(f"Age: {report['age']}")
    if report["wins"]:
        state.console.print("Recent wins:")
        for win in report["wins"]:
            state.console.print(f"  • {win}")


def _print_score_history(state: CLIState, history: List[Dict[str, Any]]) -> None:
    if state.plain_output:
        typer.echo("month\tsquat\tbench\tdeadlift\twaist\tscore")
        for row in history:
            typer.echo(
                f"{row['date'][:7]}\t{row['squat']}\t{row['bench']}\t{row['deadlift']}\t"
                f"{format_number(row['waist'])}\t{row['score']}"
            )
        return

    if not history:
        state.console.print("No score history yet: log squat, bench or deadlift and a waist measurement.")
        return

    table = Table(title="LGC Score history")
    table.add_column("Month")
    table.add_column("Squat", justify="right")
    table.add_column("Bench", justify="right")
    table.add_column("Deadlift", justify="right")
    table.add_column("Waist", justify="right")
    table.add_column("Score", justify="right")
    for row in history:
        table.add_row(
            format_month_year(row["date"]),
            str(row["squat"]),
            str(row["bench"]),
            str(row["deadlift"]),
            format_number(row["waist"]),
            format_score(row["score"]),
        )
    state.console.print(table)


def _print_workout_log(state: CLIState, days: List[Dict[str, Any]]) -> None:
    if state.plain_output:
        typer.echo("date\texercise\tbest_weight\tbest_reps\te1rm")
        for day in days:
            for entry in day["entries"]:
                typer.echo(
                    f"{day['date']}\t{entry['exercise']}\t{format_number(entry['best_weight'])}\t"
                    f"{entry['best_reps']}\t{entry['e1rm']}"
                )
        return

    if not days:
        state.console.print("No workouts logged yet.")
        return

    table = Table(title="Workouts")
    table.add_column("Date")
    table.add_column("Lift")
    table.add_column("Best set", justify="right")
    table.add_column("e1RM", justify="right")
    for day in days:
        for index, entry in enumerate(day["entries"]):
            table.add_row(
                format_date(day["date"]) if index == 0 else "",
                entry["exercise_name"] or exercise_label(entry["exercise"]),
                f"{format_number(entry['best_weight'])} x {entry['best_reps']}",
                str(entry["e1rm"]),
            )
    state.console.print(table)


def _print_checkin_log(state: CLIState, checkins: List[Dict[str, Any]]) -> None:
    if state.plain_output:
        typer.echo("date\tweight\twaist")
        for row in checkins:
            typer.echo(f"{row['date']}\t{format_number(row['weight'])}\t{format_number(row['waist'])}")
        return

    if not checkins:
        state.console.print("No check-ins logged yet.")
        return

    table = Table(title="Check-ins")
    table.add_column("Date")
    table.add_column("Weight", justify="right")
    table.add_column("Waist", justify="right")
    for row in checkins:
        table.add_row(
            format_date(row["date"]),
            f"{format_number(row['weight'])} lb" if row["weight"] is not None else "-",
            f'{format_number(row["waist"])}"' if row["waist"] is not None else "-",
        )
    state.console.print(table)


def history_command(
    ctx: typer.Context,
    view: str = typer.Option("score", "--view", help="What to show: score|workouts|checkins"),
    limit: Optional[int] = typer.Option(None, min=1, help="Show only the latest N entries"),
) -> None:
    """Show the monthly LGC score history or the workout and check-in logs."""
    state = get_state(ctx)
    if view not in HISTORY_VIEWS:
        raise typer.BadParameter("--view must be score|workouts|checkins")

    api, user_id = connect(state)
    try:
        workouts, checkins = load_records(api, user_id)
    except APIError as exc:
        typer.echo(f"Load failed: {exc}")
        raise typer.Exit(code=1)

    if view == "workouts":
        days = workout_log(workouts)
        if limit:
            days = days[:limit]
        if state.json_output:
            print_json_payload(state, {"workouts": days})
            return
        _print_workout_log(state, days)
        return

    if view == "checkins":
        rows = checkin_log(checkins)
        if limit:
            rows = rows[:limit]
        if state.json_output:
            print_json_payload(state, {"checkins": rows})
            return
        _print_checkin_log(state, rows)
        return

    history = score_history(workouts, checkins)
    if limit:
        history = history[:limit]
    if state.json_output:
        print_json_payload(state, {"history": history})
        return
    _print_score_history(state, history)
