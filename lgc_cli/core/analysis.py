"""Dashboard summary, training logs and monthly LGC score history."""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from lgc_cli.core.constants import (
    CHECKIN_WINDOW_DAYS,
    EXERCISE_LABELS,
    HISTORY_LOG_LIMIT,
    SCORE_LIFTS,
    WIN_SCORE,
    WIN_STREAK_DAYS,
    WIN_TOTAL_LB,
    WIN_WAIST_IN,
)
from lgc_cli.core.formulas import calculate_age, lgc_score, round_half_up
from lgc_cli.core.models import CheckinRecord, WorkoutRecord


def _month_key(date_str: str) -> str:
    return date_str[:7]


def best_lifts(workouts: Iterable[WorkoutRecord]) -> Dict[str, int]:
    """Highest e1RM on record for each scored lift."""
    lifts = {lift: 0 for lift in SCORE_LIFTS}
    for workout in workouts:
        if workout.exercise in lifts and workout.e1rm > lifts[workout.exercise]:
            lifts[workout.exercise] = workout.e1rm
    return lifts


def latest_waist(checkins: Iterable[CheckinRecord]) -> Optional[float]:
    """Waist of the most recent check-in that has one."""
    with_waist = [checkin for checkin in checkins if checkin.waist]
    if not with_waist:
        return None
    return max(with_waist, key=lambda checkin: checkin.date).waist


def checkin_streak(checkins: Iterable[CheckinRecord], today: date, days: int = CHECKIN_WINDOW_DAYS) -> int:
    """Number of the last `days` days, today included, with a check-in."""
    window = {(today - timedelta(days=offset)).isoformat() for offset in range(days)}
    return len({checkin.date for checkin in checkins if checkin.date in window})


def workouts_this_month(workouts: Iterable[WorkoutRecord], today: date) -> int:
    """Distinct training days in the current calendar month."""
    month = today.strftime("%Y-%m")
    return len({workout.date for workout in workouts if workout.date.startswith(month)})


def recent_wins(total: int, waist: Optional[float], streak: int, score: float) -> List[str]:
    """Milestones reached by the current numbers."""
    wins: List[str] = []
    if total >= WIN_TOTAL_LB:
        wins.append(f"{WIN_TOTAL_LB:,} lb Club member")
    if waist and waist < WIN_WAIST_IN:
        wins.append(f"Waist under {WIN_WAIST_IN} inches")
    if streak >= WIN_STREAK_DAYS:
        wins.append(f"{WIN_STREAK_DAYS}+ check-ins this week")
    if score >= WIN_SCORE:
        wins.append(f"LGC Score over {WIN_SCORE}")
    return wins


def build_summary(
    workouts: Sequence[WorkoutRecord],
    checkins: Sequence[CheckinRecord],
    today: Optional[date] = None,
    birthday: Optional[date] = None,
) -> Dict[str, Any]:
    """Aggregate current lifts, waist and score into a report payload."""
    today = today or date.today()
    lifts = best_lifts(workouts)
    waist = latest_waist(checkins)
    total = sum(lifts.values())
    score = lgc_score(lifts["squat"], lifts["bench"], lifts["deadlift"], waist)
    streak = checkin_streak(checkins, today)
    return {
        "date": today.isoformat(),
        "age": calculate_age(birthday, today) if birthday else None,
        "lifts": lifts,
        "total": total,
        "waist": waist,
        "lgc_score": score,
        "checkin_streak": streak,
        "workouts_this_month": workouts_this_month(workouts, today),
        "wins": recent_wins(total, waist, streak, score),
    }


def workout_log(workouts: Iterable[WorkoutRecord], limit: int = HISTORY_LOG_LIMIT) -> List[Dict[str, Any]]:
    """Latest `limit` workout entries grouped by day, newest day first."""
    order = {key: index for index, key in enumerate(EXERCISE_LABELS)}
    ordered = sorted(workouts, key=lambda workout: order.get(workout.exercise, len(order)))
    ordered.sort(key=lambda workout: workout.date, reverse=True)

    days: List[Dict[str, Any]] = []
    for workout in ordered[:limit]:
        if not days or days[-1]["date"] != workout.date:
            days.append({"date": workout.date, "entries": []})
        days[-1]["entries"].append(
            {
                "exercise": workout.exercise,
                "exercise_name": workout.exercise_name,
                "best_weight": workout.best_weight,
                "best_reps": workout.best_reps,
                "e1rm": workout.e1rm,
            }
        )
    return days


def checkin_log(checkins: Iterable[CheckinRecord], limit: int = HISTORY_LOG_LIMIT) -> List[Dict[str, Any]]:
    """Latest `limit` check-ins, newest first."""
    ordered = sorted(checkins, key=lambda checkin: checkin.date, reverse=True)
    return [
        {
            "date": checkin.date,
            "weight": checkin.weight,
            "waist": checkin.waist,
            "sleep_quality": checkin.sleep_quality,
        }
        for checkin in ordered[:limit]
    ]


def score_history(
    workouts: Iterable[WorkoutRecord],
    checkins: Iterable[CheckinRecord],
) -> List[Dict[str, Any]]:
    """Monthly LGC scores, newest first.

    Each lift uses the month's best e1RM, or the latest earlier month's when
    it was not trained. Months need a lift total and at least one waist.
    """
    months: Dict[str, Dict[str, Any]] = defaultdict(
        lambda: {"lifts": {lift: 0 for lift in SCORE_LIFTS}, "waists": []}
    )

    for workout in workouts:
        if workout.exercise not in SCORE_LIFTS:
            continue
        bucket = months[_month_key(workout.date)]
        if workout.e1rm > bucket["lifts"][workout.exercise]:
            bucket["lifts"][workout.exercise] = workout.e1rm

    for checkin in checkins:
        if not checkin.waist:
            continue
        months[_month_key(checkin.date)]["waists"].append(checkin.waist)

    carried = {lift: 0 for lift in SCORE_LIFTS}
    history: List[Dict[str, Any]] = []

    for month in sorted(months):
        bucket = months[month]
        for lift in SCORE_LIFTS:
            if bucket["lifts"][lift] > 0:
                carried[lift] = bucket["lifts"][lift]
            else:
                bucket["lifts"][lift] = carried[lift]

        total = sum(bucket["lifts"].values())
        if total <= 0 or not bucket["waists"]:
            continue

        avg_waist = sum(bucket["waists"]) / len(bucket["waists"])
        history.append(
            {
                "date": f"{month}-01",
                "squat": bucket["lifts"]["squat"],
                "bench": bucket["lifts"]["bench"],
                "deadlift": bucket["lifts"]["deadlift"],
                "waist": round_half_up(avg_waist * 10) / 10,
                "score": lgc_score(
                    bucket["lifts"]["squat"],
                    bucket["lifts"]["bench"],
                    bucket["lifts"]["deadlift"],
                    avg_waist,
                ),
            }
        )

    history.sort(key=lambda row: row["date"], reverse=True)
    return history
