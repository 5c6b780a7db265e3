"""
Input sanitization for sleep data posted by the form.
Pure functions: untrusted values are coerced into bounded domains, never rejected.
Text that ends up in the LLM prompt is stripped of known prompt-injection phrasings.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from datetime import date as date_cls
from typing import Any

from sleep_api.config import settings
from sleep_api.schemas.sleep import SleepRecord

# (min, max) per field class
HOURS_BOUNDS = (0, 24)
PHASE_HOURS_BOUNDS = (0, 12)
MINUTES_BOUNDS = (0, 59)
AWAKE_MINUTES_BOUNDS = (0, 480)

DEFAULT_TIME = "00:00"

INJECTION_PATTERNS = [
    re.compile(r"ignore\s*(all|previous|above)", re.IGNORECASE),
    re.compile(r"system\s*prompt", re.IGNORECASE),
    re.compile(r"you\s*are\s*(now|a)", re.IGNORECASE),
    re.compile(r"pretend\s*(to|you)", re.IGNORECASE),
    re.compile(r"act\s*as\s*(if|a)", re.IGNORECASE),
    re.compile(r"forget\s*(everything|all|previous)", re.IGNORECASE),
    re.compile(r"new\s*instruction", re.IGNORECASE),
    re.compile(r"override", re.IGNORECASE),
]

# Control characters except tab, newline and carriage return
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

TIME_RE = re.compile(r"([0-1]?[0-9]|2[0-3]):([0-5][0-9])")
DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

# Far above every field bound, far below int()'s digit limit
MAX_INT_DIGITS = 18


def _strip_injections(text: str) -> str:
    # Removing one phrase can join its neighbours into another ("ignignore allore all"),
    # so repeat until nothing matches.
    while True:
        stripped = text
        for pattern in INJECTION_PATTERNS:
            stripped = pattern.sub("", stripped)
        stripped = CONTROL_CHARS.sub("", stripped)
        if stripped == text:
            return stripped
        text = stripped


def sanitize_string(value: Any, max_length: int | None = None) -> str:
    """Remove injection phrases and control characters, trim, truncate. Non-strings become ""."""
    if not isinstance(value, str):
        return ""
    if max_length is None:
        max_length = settings.max_string_length
    text = _strip_injections(value).strip()[:max_length]
    # Truncation can leave trailing whitespace or cut into a new match
    return _strip_injections(text).strip()


def bounded_int(literal: str) -> int:
    """int() of a [+-]digits literal, saturated at MAX_INT_DIGITS nines so huge inputs still clamp."""
    sign = -1 if literal.startswith("-") else 1
    digits = literal.lstrip("+-").lstrip("0")
    if len(digits) > MAX_INT_DIGITS:
        return sign * int("9" * MAX_INT_DIGITS)
    return sign * int(digits or "0")


def _parse_int(value: Any) -> int | None:
    """Leading-integer parse: 7 -> 7, 7.9 -> 7, "12abc" -> 12; None when not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value)
    if isinstance(value, str):
        m = LEADING_INT_RE.match(value)
        return bounded_int(m.group(1)) if m else None
    return None


def sanitize_number(value: Any, min_value: int = 0, max_value: int = 1440) -> int:
    """Integer clamped to [min_value, max_value]; non-numeric input maps to min_value."""
    parsed = _parse_int(value)
    if parsed is None:
        return min_value
    return max(min_value, min(max_value, parsed))


def sanitize_time(value: Any) -> str:
    if not isinstance(value, str):
        return DEFAULT_TIME
    return value if TIME_RE.fullmatch(value) else DEFAULT_TIME


def sanitize_date(value: Any) -> str:
    """YYYY-MM-DD that is a real calendar date, else today (server-local)."""
    today = date_cls.today().isoformat()
    if not isinstance(value, str) or not DATE_RE.fullmatch(value):
        return today
    try:
        date_cls.fromisoformat(value)
    except ValueError:
        return today
    return value


def _section(data: Mapping, key: str) -> Mapping:
    value = data.get(key)
    return value if isinstance(value, Mapping) else {}


def _duration(section: Mapping, hours_bounds: tuple[int, int]) -> dict[str, int]:
    return {
        "hours": sanitize_number(section.get("hours"), *hours_bounds),
        "minutes": sanitize_number(section.get("minutes"), *MINUTES_BOUNDS),
    }


def sanitize_sleep_data(data: Any) -> SleepRecord | None:
    """
    Build a SleepRecord from an arbitrary (possibly hostile) payload.
    Every leaf is clamped or defaulted; returns None only when data is not an object.
    """
    if isinstance(data, SleepRecord):
        data = data.to_payload()
    if not isinstance(data, Mapping):
        return None

    sleep_time = _section(data, "sleepTime")
    return SleepRecord.model_validate(
        {
            "date": sanitize_date(data.get("date")),
            "totalSleep": _duration(_section(data, "totalSleep"), HOURS_BOUNDS),
            "awake": {
                "minutes": sanitize_number(_section(data, "awake").get("minutes"), *AWAKE_MINUTES_BOUNDS),
            },
            "rem": _duration(_section(data, "rem"), PHASE_HOURS_BOUNDS),
            "light": _duration(_section(data, "light"), PHASE_HOURS_BOUNDS),
            "deep": _duration(_section(data, "deep"), PHASE_HOURS_BOUNDS),
            "sleepTime": {
                "from": sanitize_time(sleep_time.get("from")),
                "to": sanitize_time(sleep_time.get("to")),
            },
        }
    )
