"""Record types shared by the extractor, reconciliation engine and commands."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from lgc_cli.core.constants import ACTION_KEEP, ACTION_REPLACE, SLEEP_QUALITY_RANGE

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformedSet:
    """One working set: load, repetitions and its 1-based position."""

    weight: float
    reps: int
    set_number: int
    rpe: Optional[float] = None

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "weight": self.weight,
            "reps": self.reps,
            "set_number": self.set_number,
        }
        if self.rpe is not None:
            row["rpe"] = self.rpe
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any], position: int) -> "PerformedSet":
        rpe = row.get("rpe")
        return cls(
            weight=float(row.get("weight") or 0),
            reps=int(row.get("reps") or 0),
            set_number=int(row.get("set_number") or position),
            rpe=float(rpe) if rpe is not None else None,
        )


@dataclass
class WorkoutRecord:
    """Best performance for one exercise on one day."""

    user_id: str
    date: str
    exercise: str
    exercise_name: str
    sets: List[PerformedSet] = field(default_factory=list)
    best_weight: float = 0.0
    best_reps: int = 0
    e1rm: int = 0

    @property
    def key(self) -> tuple:
        return (self.date, self.exercise)

    def to_row(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "date": self.date,
            "exercise": self.exercise,
            "exercise_name": self.exercise_name,
            "sets": [item.to_row() for item in self.sets],
            "best_weight": self.best_weight,
            "best_reps": self.best_reps,
            "e1rm": self.e1rm,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "WorkoutRecord":
        raw_sets = row.get("sets") or []
        sets = [
            PerformedSet.from_row(item, position)
            for position, item in enumerate(raw_sets, 1)
            if isinstance(item, dict)
        ]
        return cls(
            user_id=str(row.get("user_id") or ""),
            date=str(row.get("date") or "")[:10],
            exercise=str(row.get("exercise") or ""),
            exercise_name=str(row.get("exercise_name") or ""),
            sets=sets,
            best_weight=float(row.get("best_weight") or 0),
            best_reps=int(row.get("best_reps") or 0),
            e1rm=int(row.get("e1rm") or 0),
        )


@dataclass
class CheckinRecord:
    """Body measurements and wellness notes for one day."""

    user_id: str
    date: str
    weight: Optional[float] = None
    waist: Optional[float] = None
    neck: Optional[float] = None
    hips: Optional[float] = None
    sleep_quality: Optional[int] = None
    notes: Optional[str] = None

    def __post_init__(self) -> None:
        low, high = SLEEP_QUALITY_RANGE
        if self.sleep_quality is not None and not low <= self.sleep_quality <= high:
            raise ValueError(f"sleep_quality must be between {low} and {high}, got {self.sleep_quality}")

    @property
    def key(self) -> tuple:
        return (self.date,)

    def to_row(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CheckinRecord":
        def _number(name: str) -> Optional[float]:
            value = row.get(name)
            return float(value) if value is not None else None

        sleep = row.get("sleep_quality")
        if sleep is not None:
            sleep = int(sleep)
            low, high = SLEEP_QUALITY_RANGE
            if not low <= sleep <= high:
                # Out-of-range stored values are dropped, not rejected.
                LOGGER.warning("dropping out-of-range sleep_quality %s for %s", sleep, row.get("date"))
                sleep = None
        return cls(
            user_id=str(row.get("user_id") or ""),
            date=str(row.get("date") or "")[:10],
            weight=_number("weight"),
            waist=_number("waist"),
            neck=_number("neck"),
            hips=_number("hips"),
            sleep_quality=sleep,
            notes=row.get("notes"),
        )


@dataclass(frozen=True)
class ImportConflict:
    """An incoming workout whose (date, exercise) already exists in storage."""

    date: str
    exercise: str
    existing_e1rm: int
    incoming_e1rm: int
    action: str

    @property
    def replaces(self) -> bool:
        return self.action == ACTION_REPLACE

    @property
    def keeps(self) -> bool:
        return self.action == ACTION_KEEP


@dataclass(frozen=True)
class ImportEvent:
    """One step of an import run, in the order it happened."""

    kind: str
    message: str
    progress: Optional[int] = None
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ImportResult:
    """Outcome of one import run."""

    kind: Optional[str] = None
    status: str = "completed"
    rows_found: int = 0
    records_found: int = 0
    conflicts: List[ImportConflict] = field(default_factory=list)
    imported: int = 0
    failed_batches: int = 0
    events: List[ImportEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "status": self.status,
            "rows_found": self.rows_found,
            "records_found": self.records_found,
            "conflicts": [asdict(item) for item in self.conflicts],
            "imported": self.imported,
            "failed_batches": self.failed_batches,
            "events": [asdict(item) for item in self.events],
        }
