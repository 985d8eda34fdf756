"""Formatting helpers used by console output."""

from __future__ import annotations

from typing import Optional

from lgc_cli.core.constants import EXERCISE_LABELS
from lgc_cli.utils.date_ranges import parse_date


def format_date(date_str: Optional[str]) -> str:
    """Format YYYY-MM-DD as e.g. 'Jan 5, 2026'."""
    if not date_str:
        return "Unknown"
    parsed = parse_date(date_str)
    return f"{parsed.strftime('%b')} {parsed.day}, {parsed.year}"


def format_month_year(date_str: Optional[str]) -> str:
    """Format YYYY-MM-DD as e.g. 'Jan 2026'."""
    if not date_str:
        return "Unknown"
    return parse_date(date_str).strftime("%b %Y")


def format_number(value: Optional[float], digits: int = 1) -> str:
    """Format a measurement, dropping a trailing .0 and using '-' for missing."""
    if value is None:
        return "-"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.{digits}f}"


def exercise_label(key: str) -> str:
    """Display label for an exercise key."""
    return EXERCISE_LABELS.get(key, key)


def format_score(score: float) -> str:
    """Format an LGC score, '—' when there is none."""
    return f"{score:.1f}" if score else "—"
