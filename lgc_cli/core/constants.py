"""Static constants and mappings for the Lazy Gains Club CLI."""

from __future__ import annotations

WORKOUT_KIND = "workout"
CHECKIN_KIND = "checkin"

# kind -> (table, uniqueness key used for upsert)
RECORD_TABLES = {
    WORKOUT_KIND: ("workout_sets", "user_id,date,exercise"),
    CHECKIN_KIND: ("daily_checkins", "user_id,date"),
}

WORKOUT_FORMAT = "workouts"
MEASUREMENT_FORMAT = "measurements"

# Column names of the Strong app CSV exports.
WORKOUT_HEADER = "Exercise Name"
MEASUREMENT_HEADER = "Measurement Type"
DATE_COLUMN = "Date"
SET_ORDER_COLUMN = "Set Order"
WEIGHT_COLUMN = "Weight"
REPS_COLUMN = "Reps"
RPE_COLUMN = "RPE"
VALUE_COLUMN = "Value"

WARMUP_SET_MARKER = "W"
MIN_WORKOUT_COLUMNS = 5
MIN_MEASUREMENT_COLUMNS = 3

IMPORT_BATCH_SIZE = 50
E1RM_MAX_REPS = 12

# Ordered top-to-bottom, first match wins.
# (key, inclusion groups, exclusions): a rule matches when every term of any
# one inclusion group occurs in the name and no exclusion term does.
EXERCISE_RULES = [
    ("squat", [["squat"]], ["split"]),
    ("bench", [["bench press"]], ["incline", "close"]),
    ("deadlift", [["deadlift"]], ["romanian", "stiff"]),
    ("chinup", [["chin"], ["pull", "up"]], []),
    ("row", [["row", "barbell"]], []),
    ("ohp", [["overhead"], ["ohp"], ["shoulder press"]], []),
]

EXERCISE_LABELS = {
    "squat": "Squat (Barbell)",
    "bench": "Bench Press (Barbell)",
    "deadlift": "Deadlift (Barbell)",
    "chinup": "Chin-up",
    "row": "Pendlay Row (Barbell)",
    "ohp": "Overhead Press (Barbell)",
}

SCORE_LIFTS = ("squat", "bench", "deadlift")

MEASUREMENT_FIELDS = (("weight", "weight"), ("waist", "waist"))

SLEEP_QUALITY_RANGE = (1, 10)

CHECKIN_WINDOW_DAYS = 7
HISTORY_LOG_LIMIT = 200
HISTORY_VIEWS = ("score", "workouts", "checkins")

# Dashboard milestones, checked in this order.
WIN_TOTAL_LB = 1000
WIN_WAIST_IN = 33
WIN_STREAK_DAYS = 5
WIN_SCORE = 300

# Import event kinds.
EVENT_INFO = "info"
EVENT_ROWS_FOUND = "rows_found"
EVENT_FORMAT_DETECTED = "format_detected"
EVENT_RECORDS_FOUND = "records_found"
EVENT_CONFLICTS_FOUND = "conflicts_found"
EVENT_CANCELLED = "cancelled"
EVENT_BATCH_COMMITTED = "batch_committed"
EVENT_BATCH_FAILED = "batch_failed"
EVENT_WARNING = "warning"
EVENT_ERROR = "error"
EVENT_COMPLETED = "completed"

ACTION_KEEP = "keep"
ACTION_REPLACE = "replace"
