"""Import reconciliation: decide what to write without downgrading stored bests."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from lgc_cli.core.api import APIError
from lgc_cli.core.constants import (
    ACTION_KEEP,
    ACTION_REPLACE,
    CHECKIN_KIND,
    EVENT_BATCH_COMMITTED,
    EVENT_BATCH_FAILED,
    EVENT_CANCELLED,
    EVENT_COMPLETED,
    EVENT_CONFLICTS_FOUND,
    EVENT_ERROR,
    EVENT_FORMAT_DETECTED,
    EVENT_INFO,
    EVENT_RECORDS_FOUND,
    EVENT_ROWS_FOUND,
    EVENT_WARNING,
    EXERCISE_RULES,
    IMPORT_BATCH_SIZE,
    MEASUREMENT_FORMAT,
    WORKOUT_FORMAT,
    WORKOUT_KIND,
)
from lgc_cli.core.extract import (
    ExerciseRule,
    detect_format,
    extract_measurements,
    extract_workouts,
)
from lgc_cli.core.models import (
    CheckinRecord,
    ImportConflict,
    ImportEvent,
    ImportResult,
    WorkoutRecord,
)
from lgc_cli.utils.parsing import parse_csv_line, split_lines

LOGGER = logging.getLogger(__name__)

EventHandler = Callable[[ImportEvent], None]
ConfirmHandler = Callable[[List[ImportConflict]], bool]


class RecordGateway(Protocol):
    def fetch_all(self, user_id: str, kind: str) -> List[Dict[str, Any]]: ...

    def upsert_batch(self, kind: str, rows: Sequence[Dict[str, Any]]) -> None: ...


@dataclass
class WorkoutImportPlan:
    """New records plus conflicts against stored ones."""

    new_records: List[WorkoutRecord] = field(default_factory=list)
    conflicts: List[ImportConflict] = field(default_factory=list)
    replacements: Dict[Tuple[str, str], WorkoutRecord] = field(default_factory=dict)

    def records_to_commit(self) -> List[WorkoutRecord]:
        """New records and the incoming side of every replace conflict."""
        replacing = [
            self.replacements[(conflict.date, conflict.exercise)]
            for conflict in self.conflicts
            if conflict.replaces
        ]
        return self.new_records + replacing


def index_workouts(records: Iterable[WorkoutRecord]) -> Dict[Tuple[str, str], WorkoutRecord]:
    """Index records by (date, exercise); later duplicates win."""
    return {record.key: record for record in records}


def resolve_action(existing_e1rm: int, incoming_e1rm: int) -> str:
    """Replace only on a strictly better estimate."""
    return ACTION_REPLACE if incoming_e1rm > existing_e1rm else ACTION_KEEP


def find_conflicts(
    incoming: Iterable[WorkoutRecord],
    existing_index: Dict[Tuple[str, str], WorkoutRecord],
) -> List[ImportConflict]:
    """One conflict per incoming record whose key is already stored."""
    conflicts: List[ImportConflict] = []
    for record in incoming:
        existing = existing_index.get(record.key)
        if existing is None:
            continue
        conflicts.append(
            ImportConflict(
                date=record.date,
                exercise=record.exercise,
                existing_e1rm=existing.e1rm,
                incoming_e1rm=record.e1rm,
                action=resolve_action(existing.e1rm, record.e1rm),
            )
        )
    return conflicts


def plan_workout_import(
    incoming: Sequence[WorkoutRecord],
    existing: Iterable[WorkoutRecord],
) -> WorkoutImportPlan:
    """Split incoming records into new ones and conflicts with stored ones."""
    existing_index = index_workouts(existing)
    plan = WorkoutImportPlan(conflicts=find_conflicts(incoming, existing_index))
    for record in incoming:
        if record.key in existing_index:
            plan.replacements[record.key] = record
        else:
            plan.new_records.append(record)
    return plan


def merge_checkin(existing: Optional[CheckinRecord], incoming: CheckinRecord) -> CheckinRecord:
    """Overlay the measurements present in incoming onto existing."""
    if existing is None:
        return replace(incoming)

    merged = replace(existing, user_id=incoming.user_id)
    if incoming.weight is not None:
        merged.weight = incoming.weight
    if incoming.waist is not None:
        merged.waist = incoming.waist
    if incoming.neck is not None:
        merged.neck = incoming.neck
    if incoming.hips is not None:
        merged.hips = incoming.hips
    if incoming.sleep_quality is not None:
        merged.sleep_quality = incoming.sleep_quality
    if incoming.notes:
        merged.notes = incoming.notes
    return merged


def plan_checkin_import(
    incoming: Iterable[CheckinRecord],
    existing: Iterable[CheckinRecord],
) -> List[CheckinRecord]:
    """Merge each incoming check-in with the stored one for its date."""
    by_date = {record.date: record for record in existing}
    return [merge_checkin(by_date.get(record.date), record) for record in incoming]


def chunked(items: Sequence[Any], size: int) -> List[Sequence[Any]]:
    if size <= 0:
        raise ValueError("batch size must be positive")
    return [items[start : start + size] for start in range(0, len(items), size)]


def commit_in_batches(
    gateway: RecordGateway,
    kind: str,
    records: Sequence[Any],
    batch_size: int = IMPORT_BATCH_SIZE,
    emit: Optional[Callable[..., None]] = None,
) -> Tuple[int, int]:
    """Upsert records chunk by chunk; return (saved, failed_batches).

    A failing chunk is reported and skipped, later chunks are still sent.
    """
    saved = 0
    failed = 0
    batches = chunked(list(records), batch_size)

    for number, batch in enumerate(batches, 1):
        progress = 50 + round((number / len(batches)) * 50)
        try:
            gateway.upsert_batch(kind, [record.to_row() for record in batch])
        except APIError as exc:
            failed += 1
            LOGGER.debug("batch %d/%d of %s failed: %s", number, len(batches), kind, exc)
            if emit:
                emit(
                    EVENT_BATCH_FAILED,
                    f"Batch error: {exc}",
                    progress,
                    {"batch": number, "size": len(batch), "error": str(exc)},
                )
            continue

        saved += len(batch)
        if emit:
            emit(
                EVENT_BATCH_COMMITTED,
                f"Saved batch {number}/{len(batches)} ({len(batch)} records)",
                progress,
                {"batch": number, "size": len(batch)},
            )

    return saved, failed


class ImportRun:
    """One import of one file for one user, reporting progress as events."""

    def __init__(
        self,
        user_id: str,
        gateway: RecordGateway,
        confirm: Optional[ConfirmHandler] = None,
        on_event: Optional[EventHandler] = None,
        batch_size: int = IMPORT_BATCH_SIZE,
        rules: Optional[Sequence[ExerciseRule]] = None,
        dry_run: bool = False,
    ) -> None:
        self.user_id = user_id
        self.gateway = gateway
        self.confirm = confirm
        self.on_event = on_event
        self.batch_size = batch_size
        self.rules = rules if rules is not None else EXERCISE_RULES
        self.dry_run = dry_run
        self.result = ImportResult()

    def emit(
        self,
        kind: str,
        message: str,
        progress: Optional[int] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = ImportEvent(kind=kind, message=message, progress=progress, data=data or {})
        self.result.events.append(event)
        if self.on_event:
            self.on_event(event)

    def run(self, text: str, source: str = "file") -> ImportResult:
        self.emit(EVENT_INFO, f"Reading {source}...", 0)
        lines = split_lines(text)
        if not lines:
            self.result.status = "skipped"
            self.emit(EVENT_WARNING, "Unknown file format", 100)
            return self.result

        headers = parse_csv_line(lines[0])
        rows = [parse_csv_line(line) for line in lines[1:]]
        self.result.rows_found = len(rows)
        self.emit(EVENT_ROWS_FOUND, f"Found {len(rows)} rows", 5, {"rows": len(rows)})

        file_format = detect_format(headers)
        if file_format == WORKOUT_FORMAT:
            self.result.kind = WORKOUT_KIND
            self.emit(EVENT_FORMAT_DETECTED, "Detected workout file", 10, {"format": file_format})
            self._import_workouts(rows, headers)
        elif file_format == MEASUREMENT_FORMAT:
            self.result.kind = CHECKIN_KIND
            self.emit(EVENT_FORMAT_DETECTED, "Detected measurement file", 10, {"format": file_format})
            self._import_checkins(rows, headers)
        else:
            self.result.status = "skipped"
            self.emit(EVENT_WARNING, "Unknown file format", 100, {"headers": headers})

        return self.result

    def _fetch_existing(self, kind: str) -> Optional[List[Dict[str, Any]]]:
        try:
            return self.gateway.fetch_all(self.user_id, kind)
        except APIError as exc:
            self.result.status = "failed"
            self.emit(EVENT_ERROR, f"Error: could not load existing records: {exc}", 100)
            return None

    def _import_workouts(self, rows: List[List[str]], headers: List[str]) -> None:
        incoming = extract_workouts(rows, headers, self.user_id, self.rules)
        self.result.records_found = len(incoming)
        self.emit(
            EVENT_RECORDS_FOUND,
            f"Found {len(incoming)} unique workout entries",
            40,
            {"records": len(incoming)},
        )

        stored = self._fetch_existing(WORKOUT_KIND)
        if stored is None:
            return
        plan = plan_workout_import(incoming, [WorkoutRecord.from_row(row) for row in stored])
        self.result.conflicts = plan.conflicts

        if plan.conflicts:
            replacing = sum(1 for conflict in plan.conflicts if conflict.replaces)
            self.emit(
                EVENT_CONFLICTS_FOUND,
                f"Found {len(plan.conflicts)} existing entries "
                f"({replacing} improved, {len(plan.conflicts) - replacing} kept)",
                50,
                {"conflicts": len(plan.conflicts), "replace": replacing},
            )
            if not self.confirm or not self.confirm(list(plan.conflicts)):
                self.result.status = "cancelled"
                self.emit(EVENT_CANCELLED, "Import cancelled, nothing was saved", 100)
                return

        self._commit(WORKOUT_KIND, plan.records_to_commit(), "workout entries")

    def _import_checkins(self, rows: List[List[str]], headers: List[str]) -> None:
        incoming = extract_measurements(rows, headers, self.user_id)
        self.result.records_found = len(incoming)
        self.emit(
            EVENT_RECORDS_FOUND,
            f"Found {len(incoming)} measurement days",
            40,
            {"records": len(incoming)},
        )

        stored = self._fetch_existing(CHECKIN_KIND)
        if stored is None:
            return
        existing = [CheckinRecord.from_row(row) for row in stored]
        merged = plan_checkin_import(incoming, existing)
        overlapping = len({record.date for record in incoming} & {record.date for record in existing})
        if overlapping:
            self.emit(EVENT_INFO, f"Merging {overlapping} days with existing check-ins", 50)

        self._commit(CHECKIN_KIND, merged, "check-in entries")

    def _commit(self, kind: str, records: List[Any], label: str) -> None:
        if self.dry_run:
            self.result.status = "dry-run"
            self.emit(EVENT_COMPLETED, f"Dry run: would import {len(records)} {label}", 100, {"imported": 0})
            return

        saved, failed = commit_in_batches(self.gateway, kind, records, self.batch_size, self.emit)
        self.result.imported = saved
        self.result.failed_batches = failed
        self.emit(EVENT_COMPLETED, f"Imported {saved} {label}", 100, {"imported": saved, "failed_batches": failed})


def run_import(
    text: str,
    user_id: str,
    gateway: RecordGateway,
    confirm: Optional[ConfirmHandler] = None,
    on_event: Optional[EventHandler] = None,
    batch_size: int = IMPORT_BATCH_SIZE,
    rules: Optional[Sequence[ExerciseRule]] = None,
    dry_run: bool = False,
    source: str = "file",
) -> ImportResult:
    """Parse, reconcile and commit one export file."""
    runner = ImportRun(
        user_id=user_id,
        gateway=gateway,
        confirm=confirm,
        on_event=on_event,
        batch_size=batch_size,
        rules=rules,
        dry_run=dry_run,
    )
    return runner.run(text, source=source)
