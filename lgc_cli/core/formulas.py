"""Strength and body-composition formulas."""

from __future__ import annotations

import math
from datetime import date
from typing import Optional

from lgc_cli.core.constants import E1RM_MAX_REPS


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    if value < 0:
        return -int(-value + 0.5)
    return int(value + 0.5)


def _round_tenth(value: float) -> float:
    return round_half_up(value * 10) / 10


def e1rm(weight: float, reps: int) -> int:
    """Estimated one-rep max, Epley-style with reps capped at 12."""
    if weight <= 0 or reps <= 0:
        return 0
    if reps == 1:
        return round_half_up(weight)
    capped = min(reps, E1RM_MAX_REPS)
    return round_half_up(weight * 36 / (37 - capped))


def lgc_score(
    squat: Optional[float],
    bench: Optional[float],
    deadlift: Optional[float],
    waist: Optional[float],
) -> float:
    """Total of the three lifts per unit of waist, to one decimal."""
    if not waist:
        return 0
    total = (squat or 0) + (bench or 0) + (deadlift or 0)
    if not total:
        return 0
    return round_half_up((total / waist) * 100) / 10


def body_fat(
    sex: str,
    waist: float,
    neck: float,
    height: float,
    hips: Optional[float] = None,
) -> Optional[float]:
    """US Navy circumference estimate of body-fat percentage.

    All circumferences and height must share one unit. Returns None for the
    female branch without hips, for an unknown sex, or when the measurements
    cannot produce a logarithm.
    """
    sex = (sex or "").strip().lower()
    if height <= 0:
        return None

    if sex == "male":
        span = waist - neck
        if span <= 0:
            return None
        return _round_tenth(86.010 * math.log10(span) - 70.041 * math.log10(height) + 36.76)

    if sex == "female" and hips:
        span = waist + hips - neck
        if span <= 0:
            return None
        return _round_tenth(163.205 * math.log10(span) - 97.684 * math.log10(height) - 78.387)

    return None


def calculate_age(birthday: date, today: Optional[date] = None) -> int:
    """Whole years elapsed since birthday."""
    today = today or date.today()
    age = today.year - birthday.year
    if (today.month, today.day) < (birthday.month, birthday.day):
        age -= 1
    return age
