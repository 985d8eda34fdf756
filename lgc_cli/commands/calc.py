"""Offline formula calculators."""

from __future__ import annotations

from typing import Optional

import typer

from lgc_cli.commands.common import get_state, print_json_payload
from lgc_cli.core.formulas import body_fat, e1rm, lgc_score
from lgc_cli.utils.formatting import format_score

app = typer.Typer(help="Strength and body-composition calculators")


@app.command("e1rm")
def e1rm_command(
    ctx: typer.Context,
    weight: float = typer.Argument(..., help="Weight lifted"),
    reps: int = typer.Argument(..., help="Repetitions performed"),
) -> None:
    """Estimate a one-rep max from a set."""
    state = get_state(ctx)
    value = e1rm(weight, reps)

    if state.json_output:
        print_json_payload(state, {"weight": weight, "reps": reps, "e1rm": value})
        return
    if state.plain_output:
        typer.echo(str(value))
        return
    state.console.print(f"e1RM: {value}")


@app.command("score")
def score_command(
    ctx: typer.Context,
    squat: float = typer.Argument(..., help="Squat e1RM"),
    bench: float = typer.Argument(..., help="Bench press e1RM"),
    deadlift: float = typer.Argument(..., help="Deadlift e1RM"),
    waist: float = typer.Argument(..., help="Waist circumference"),
) -> None:
    """Compute the LGC score from lift e1RMs and waist."""
    state = get_state(ctx)
    value = lgc_score(squat, bench, deadlift, waist)

    if state.json_output:
        print_json_payload(
            state,
            {"squat": squat, "bench": bench, "deadlift": deadlift, "waist": waist, "lgc_score": value},
        )
        return
    if state.plain_output:
        typer.echo(str(value))
        return
    state.console.print(f"LGC Score: {format_score(value)}")


@app.command("bodyfat")
def bodyfat_command(
    ctx: typer.Context,
    sex: Optional[str] = typer.Option(None, help="male|female (default: [user] sex)"),
    waist: float = typer.Option(..., help="Waist circumference"),
    neck: float = typer.Option(..., help="Neck circumference"),
    height: Optional[float] = typer.Option(None, help="Height, same unit (default: [user] height)"),
    hips: Optional[float] = typer.Option(None, help="Hip circumference, required for female"),
) -> None:
    """Estimate body-fat percentage from circumferences."""
    state = get_state(ctx)
    user_cfg = state.config.get("user", {})
    sex = (sex or user_cfg.get("sex") or "").lower()
    height = height or user_cfg.get("height")

    if sex not in {"male", "female"}:
        raise typer.BadParameter("sex must be male or female")
    if not height:
        raise typer.BadParameter("height is required")
    if sex == "female" and not hips:
        raise typer.BadParameter("--hips is required for female")

    value = body_fat(sex, waist, neck, float(height), hips)

    if state.json_output:
        print_json_payload(state, {"sex": sex, "body_fat": value})
        return
    if state.plain_output:
        typer.echo("-" if value is None else str(value))
        return
    if value is None:
        state.console.print("Body fat: cannot be estimated from these measurements")
        return
    state.console.print(f"Body fat: {value}%")
