"""Parsing helpers for CSV exports and command-line values."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")
_SET_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[xX]\s*(\d+)\s*(?:@\s*(\d+(?:\.\d+)?))?\s*$")


def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line into trimmed fields.

    Double quotes toggle quoted mode and are dropped; commas inside quotes are
    kept. Escaped quotes are not supported, so an unclosed quote runs to the
    end of the line.
    """
    fields: List[str] = []
    current: List[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def split_lines(text: str) -> List[str]:
    """Split export text into lines, ignoring surrounding blank space."""
    stripped = text.lstrip("\ufeff").strip()
    if not stripped:
        return []
    return re.split(r"\r?\n", stripped)


def parse_number(value: Optional[str]) -> Optional[float]:
    """Parse the leading number of a field, None when there is none."""
    if value is None:
        return None
    match = _NUMBER_RE.match(value)
    if not match:
        return None
    return float(match.group(0))


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse the leading integer part of a field, None when there is none."""
    number = parse_number(value)
    if number is None:
        return None
    return int(number)


def parse_set(value: str) -> Tuple[float, int, Optional[float]]:
    """Parse a set like '185x5' or '185x5@8' into (weight, reps, rpe)."""
    match = _SET_RE.match(value)
    if not match:
        raise ValueError(f"Invalid set '{value}'. Expected WEIGHTxREPS or WEIGHTxREPS@RPE (e.g. 185x5@8)")
    weight = float(match.group(1))
    reps = int(match.group(2))
    rpe = float(match.group(3)) if match.group(3) else None
    return weight, reps, rpe
