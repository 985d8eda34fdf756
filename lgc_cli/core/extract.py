"""Record extraction from Strong app CSV exports."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from lgc_cli.core.constants import (
    DATE_COLUMN,
    EXERCISE_LABELS,
    EXERCISE_RULES,
    MEASUREMENT_FIELDS,
    MEASUREMENT_FORMAT,
    MEASUREMENT_HEADER,
    MIN_MEASUREMENT_COLUMNS,
    MIN_WORKOUT_COLUMNS,
    REPS_COLUMN,
    RPE_COLUMN,
    SET_ORDER_COLUMN,
    VALUE_COLUMN,
    WARMUP_SET_MARKER,
    WEIGHT_COLUMN,
    WORKOUT_FORMAT,
    WORKOUT_HEADER,
)
from lgc_cli.core.formulas import e1rm
from lgc_cli.core.models import CheckinRecord, PerformedSet, WorkoutRecord
from lgc_cli.utils.parsing import parse_int, parse_number

LOGGER = logging.getLogger(__name__)

ExerciseRule = Tuple[str, Sequence[Sequence[str]], Sequence[str]]


def detect_format(headers: Sequence[str]) -> Optional[str]:
    """Identify an export by its distinguishing header column."""
    if WORKOUT_HEADER in headers:
        return WORKOUT_FORMAT
    if MEASUREMENT_HEADER in headers:
        return MEASUREMENT_FORMAT
    return None


def _rule_matches(name: str, groups: Sequence[Sequence[str]], exclusions: Sequence[str]) -> bool:
    if any(term in name for term in exclusions):
        return False
    return any(all(term in name for term in group) for group in groups)


def map_exercise_name(
    name: str,
    rules: Sequence[ExerciseRule] = EXERCISE_RULES,
) -> Optional[str]:
    """Map a free-text exercise name to a tracked exercise key."""
    normalized = (name or "").lower()
    for key, groups, exclusions in rules:
        if _rule_matches(normalized, groups, exclusions):
            return key
    return None


def exercise_rules_from_config(config: Dict[str, Any]) -> List[ExerciseRule]:
    """Build exercise rules from config if provided, otherwise defaults.

    Configured rules are a table of key -> list of terms; a term may join
    several words with '+' to require all of them, and a leading '!' marks an
    exclusion, e.g. ``row = ["row+barbell", "!upright"]``. Keys must be tracked
    exercises; others are skipped.
    """
    configured = config.get("exercises", {}).get("rules", {})
    if not isinstance(configured, dict) or not configured:
        return [(key, [list(g) for g in groups], list(excl)) for key, groups, excl in EXERCISE_RULES]

    rules: List[ExerciseRule] = []
    for key, terms in configured.items():
        if key not in EXERCISE_LABELS:
            LOGGER.warning("ignoring exercise rule for unknown exercise %r", key)
            continue
        if isinstance(terms, str) or not isinstance(terms, Iterable):
            continue
        groups: List[List[str]] = []
        exclusions: List[str] = []
        for term in terms:
            text = str(term).strip().lower()
            if not text:
                continue
            if text.startswith("!"):
                exclusions.append(text[1:])
            else:
                groups.append([part.strip() for part in text.split("+") if part.strip()])
        if groups:
            rules.append((str(key), groups, exclusions))
    return rules or [(key, [list(g) for g in groups], list(excl)) for key, groups, excl in EXERCISE_RULES]


def _column(cols: Sequence[str], index: Optional[int]) -> str:
    if index is None or index >= len(cols):
        return ""
    return cols[index]


def _index(headers: Sequence[str], name: str) -> Optional[int]:
    try:
        return list(headers).index(name)
    except ValueError:
        return None


def _date_part(value: str) -> str:
    return value.split(" ")[0] if value else ""


def build_workout_record(
    user_id: str,
    date: str,
    exercise: str,
    exercise_name: str,
    sets: Iterable[Tuple[float, int, Optional[float]]],
) -> WorkoutRecord:
    """Build a record from (weight, reps, rpe) sets in the order performed.

    The best set is the heaviest, ties going to more reps; e1RM comes from it.
    """
    record = WorkoutRecord(user_id=user_id, date=date, exercise=exercise, exercise_name=exercise_name)
    for weight, reps, rpe in sets:
        add_set(record, weight, reps, rpe)
    return record


def add_set(record: WorkoutRecord, weight: float, reps: int, rpe: Optional[float] = None) -> None:
    """Append a set and refresh the record's best set and e1RM."""
    record.sets.append(PerformedSet(weight=weight, reps=reps, set_number=len(record.sets) + 1, rpe=rpe))
    if weight > record.best_weight or (weight == record.best_weight and reps > record.best_reps):
        record.best_weight = weight
        record.best_reps = reps
        record.e1rm = e1rm(weight, reps)


def extract_workouts(
    rows: Iterable[Sequence[str]],
    headers: Sequence[str],
    user_id: str,
    rules: Sequence[ExerciseRule] = EXERCISE_RULES,
) -> List[WorkoutRecord]:
    """Group set rows into one record per (date, exercise)."""
    date_idx = _index(headers, DATE_COLUMN)
    exercise_idx = _index(headers, WORKOUT_HEADER)
    set_order_idx = _index(headers, SET_ORDER_COLUMN)
    weight_idx = _index(headers, WEIGHT_COLUMN)
    reps_idx = _index(headers, REPS_COLUMN)
    rpe_idx = _index(headers, RPE_COLUMN)

    grouped: Dict[Tuple[str, str], WorkoutRecord] = {}
    skipped = 0

    for cols in rows:
        if len(cols) < MIN_WORKOUT_COLUMNS:
            skipped += 1
            continue

        date = _date_part(_column(cols, date_idx))
        exercise_name = _column(cols, exercise_idx)
        set_order = _column(cols, set_order_idx).upper()
        weight = parse_number(_column(cols, weight_idx)) or 0
        reps = parse_int(_column(cols, reps_idx)) or 0

        if set_order == WARMUP_SET_MARKER or weight <= 0 or reps <= 0 or not date:
            skipped += 1
            continue

        exercise = map_exercise_name(exercise_name, rules)
        if not exercise:
            skipped += 1
            continue

        key = (date, exercise)
        record = grouped.get(key)
        if record is None:
            record = WorkoutRecord(
                user_id=user_id,
                date=date,
                exercise=exercise,
                exercise_name=exercise_name,
            )
            grouped[key] = record

        add_set(record, weight, reps, parse_number(_column(cols, rpe_idx)))

    LOGGER.debug("extracted %d workout records, skipped %d rows", len(grouped), skipped)
    return list(grouped.values())


def extract_measurements(
    rows: Iterable[Sequence[str]],
    headers: Sequence[str],
    user_id: str,
) -> List[CheckinRecord]:
    """Group measurement rows into one check-in per date."""
    date_idx = _index(headers, DATE_COLUMN)
    type_idx = _index(headers, MEASUREMENT_HEADER)
    value_idx = _index(headers, VALUE_COLUMN)

    grouped: Dict[str, CheckinRecord] = {}

    for cols in rows:
        if len(cols) < MIN_MEASUREMENT_COLUMNS:
            continue

        date = _date_part(_column(cols, date_idx))
        measurement = _column(cols, type_idx).lower()
        value = parse_number(_column(cols, value_idx))
        if not date or not value:
            continue

        for needle, field_name in MEASUREMENT_FIELDS:
            if needle in measurement:
                record = grouped.setdefault(date, CheckinRecord(user_id=user_id, date=date))
                setattr(record, field_name, value)

    # Dates whose rows carry neither weight nor waist never get a record.
    return list(grouped.values())
