"""Shared command helpers."""

from __future__ import annotations

import json
from typing import Any, List, Tuple

import typer

from lgc_cli.core.api import SupabaseAPI
from lgc_cli.core.config import resolve_supabase, resolve_user_id
from lgc_cli.core.constants import CHECKIN_KIND, WORKOUT_KIND
from lgc_cli.core.models import CheckinRecord, WorkoutRecord
from lgc_cli.core.state import CLIState


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def connect(state: CLIState) -> Tuple[SupabaseAPI, str]:
    """Build the store client and resolve the acting user."""
    store = resolve_supabase(state.config)
    if not store["url"] or not store["key"]:
        typer.echo("Store not configured: set SUPABASE_URL and SUPABASE_KEY or [supabase] in the config file.")
        raise typer.Exit(code=2)

    user_id = resolve_user_id(state.config, state.user_id)
    if not user_id:
        typer.echo("No user id: pass --user-id, set LGC_USER_ID or [user] id in the config file.")
        raise typer.Exit(code=2)

    api_cfg = state.config.get("api", {})
    api = SupabaseAPI(
        url=str(store["url"]),
        api_key=str(store["key"]),
        access_token=store["access_token"],
        schema=str(store["schema"]),
        max_retries=int(api_cfg.get("max_retries", 3)),
        timeout_seconds=int(api_cfg.get("timeout_seconds", 30)),
    )
    return api, user_id


def load_records(api: Any, user_id: str) -> Tuple[List[WorkoutRecord], List[CheckinRecord]]:
    """Fetch and decode every workout and check-in of a user."""
    workouts = [WorkoutRecord.from_row(row) for row in api.fetch_all(user_id, WORKOUT_KIND)]
    checkins = [CheckinRecord.from_row(row) for row in api.fetch_all(user_id, CHECKIN_KIND)]
    return workouts, checkins


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    state.console.print_json(data=payload)
