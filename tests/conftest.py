from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from typer.testing import CliRunner

from lgc_cli.core.api import APIError
from lgc_cli.core.constants import CHECKIN_KIND, WORKOUT_KIND

STRONG_HEADER = (
    "Date,Workout Name,Duration,Exercise Name,Set Order,Weight,Reps,Distance,Seconds,Notes,Workout Notes,RPE"
)


class FakeGateway:
    """In-memory stand-in for the store, keyed like the real tables."""

    def __init__(
        self,
        workouts: Optional[List[Dict[str, Any]]] = None,
        checkins: Optional[List[Dict[str, Any]]] = None,
        fail_batches: Sequence[int] = (),
        fail_fetch: bool = False,
    ) -> None:
        self.tables: Dict[str, Dict[Tuple[str, ...], Dict[str, Any]]] = {
            WORKOUT_KIND: {},
            CHECKIN_KIND: {},
        }
        self.fail_batches = set(fail_batches)
        self.fail_fetch = fail_fetch
        self.batches: List[Tuple[str, int]] = []
        for row in workouts or []:
            self._store(WORKOUT_KIND, row)
        for row in checkins or []:
            self._store(CHECKIN_KIND, row)

    @staticmethod
    def _key(kind: str, row: Dict[str, Any]) -> Tuple[str, ...]:
        if kind == WORKOUT_KIND:
            return (row["user_id"], row["date"], row["exercise"])
        return (row["user_id"], row["date"])

    def _store(self, kind: str, row: Dict[str, Any]) -> None:
        self.tables[kind][self._key(kind, row)] = copy.deepcopy(row)

    def fetch_all(self, user_id: str, kind: str) -> List[Dict[str, Any]]:
        if self.fail_fetch:
            raise APIError("Store request failed for GET: connection refused")
        return [copy.deepcopy(row) for row in self.tables[kind].values() if row["user_id"] == user_id]

    def upsert_batch(self, kind: str, rows: Sequence[Dict[str, Any]]) -> None:
        self.batches.append((kind, len(rows)))
        if len(self.batches) in self.fail_batches:
            raise APIError(f"Store request failed for POST: batch {len(self.batches)} rejected")
        for row in rows:
            self._store(kind, row)

    def stored(self, kind: str, *key: str) -> Optional[Dict[str, Any]]:
        return self.tables[kind].get(tuple(key))


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def make_gateway():
    return FakeGateway


@pytest.fixture()
def strong_workout_csv() -> str:
    return "\n".join(
        [
            STRONG_HEADER,
            '2026-02-10 07:30:00,"Squat Day",1h,"Squat (Barbell)",W,95,10,,0,,,',
            '2026-02-10 07:30:00,"Squat Day",1h,"Squat (Barbell)",1,185,8,,0,,,7',
            '2026-02-10 07:30:00,"Squat Day",1h,"Squat (Barbell)",2,205,5,,0,,,8.5',
            '2026-02-10 07:30:00,"Squat Day",1h,"Squat (Barbell)",3,205,6,,0,,,9',
            '2026-02-10 07:30:00,"Squat Day",1h,"Chin Up",1,0,8,,0,,,',
            '2026-02-10 07:30:00,"Squat Day",1h,"Bulgarian Split Squat (Dumbbell)",1,50,10,,0,,,',
            '2026-02-12 07:30:00,"Bench Day",1h,"Bench Press (Barbell)",1,135,8,,0,,,',
            '2026-02-12 07:30:00,"Bench Day",1h,"Incline Bench Press (Barbell)",1,115,8,,0,,,',
            '2026-02-12 07:30:00,"Bench Day",1h,"Bent Over Row (Barbell)",1,135,10,,0,,,',
            '2026-02-14 07:30:00,"Deadlift Day",1h,"Deadlift (Barbell)",1,315,5,,0,,,',
            '2026-02-14 07:30:00,"Deadlift Day",1h,"Romanian Deadlift (Barbell)",1,225,8,,0,,,',
            '2026-02-14 07:30:00,"Deadlift Day",1h,"Overhead Press (Barbell)",1,95,8,,0,,,',
        ]
    )


@pytest.fixture()
def strong_measurement_csv() -> str:
    return "\n".join(
        [
            "Date,Measurement Type,Value,Unit",
            "2026-02-10 08:00:00,Weight,182.4,lbs",
            "2026-02-10 08:00:00,Waist,34.5,in",
            "2026-02-11 08:00:00,Body Weight,181.8,lbs",
            "2026-02-12 08:00:00,Waist,,in",
            "2026-02-13 08:00:00,Body Fat Percentage,18,%",
        ]
    )


@pytest.fixture()
def write_temp_csv(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write


@pytest.fixture()
def write_temp_toml(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.write_text(content.strip() + "\n")
        return path

    return _write
