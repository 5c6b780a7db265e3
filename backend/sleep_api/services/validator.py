"""
Sleep data validation: accept/reject decision on already-sanitized data.
Checks only, no mutation. Structural checks run first; value checks only when
all required fields are present.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sleep_api.schemas.sleep import SleepRecord, ValidationResult

REQUIRED_FIELDS = ["date", "totalSleep", "rem", "light", "deep", "sleepTime"]

DURATION_MESSAGES = {
    "totalSleep": "Total sleep duration is required",
    "rem": "REM sleep duration is required",
    "light": "Light sleep duration is required",
    "deep": "Deep sleep duration is required",
}

PHASE_TOLERANCE = 0.1


def _as_mapping(data: Any) -> Mapping | None:
    if isinstance(data, SleepRecord):
        return data.to_payload()
    if isinstance(data, Mapping):
        return data
    return None


def _num(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _minutes(value: Any) -> float:
    if not isinstance(value, Mapping):
        return 0
    return _num(value.get("hours")) * 60 + _num(value.get("minutes"))


def _has_duration(value: Any) -> bool:
    if not isinstance(value, Mapping):
        return False
    return _num(value.get("hours")) > 0 or _num(value.get("minutes")) > 0


def validate_required_fields(data: Any) -> ValidationResult:
    payload = _as_mapping(data)
    if payload is None:
        return ValidationResult(valid=False, errors=["Invalid request data"])
    errors = [f"Field required: {field}" for field in REQUIRED_FIELDS if not payload.get(field)]
    return ValidationResult(valid=not errors, errors=errors)


def validate_durations(data: Any) -> ValidationResult:
    payload = _as_mapping(data) or {}
    errors = [message for field, message in DURATION_MESSAGES.items() if not _has_duration(payload.get(field))]
    return ValidationResult(valid=not errors, errors=errors)


def validate_time_span(data: Any) -> ValidationResult:
    """Both ends must be present; "00:00" counts as present (legitimate midnight)."""
    payload = _as_mapping(data) or {}
    span = payload.get("sleepTime")
    span = span if isinstance(span, Mapping) else {}
    errors = []
    if not span.get("from"):
        errors.append("Sleep start time is required")
    if not span.get("to"):
        errors.append("Sleep end time is required")
    return ValidationResult(valid=not errors, errors=errors)


def validate_phase_consistency(data: Any) -> ValidationResult:
    """Warn when REM + light + deep + awake differs from total sleep by more than 10%. Never invalid."""
    payload = _as_mapping(data) or {}
    total = _minutes(payload.get("totalSleep"))
    awake = payload.get("awake")
    awake_minutes = _num(awake.get("minutes")) if isinstance(awake, Mapping) else 0
    phases = (
        _minutes(payload.get("rem"))
        + _minutes(payload.get("light"))
        + _minutes(payload.get("deep"))
        + awake_minutes
    )
    warnings = []
    if total > 0 and abs(phases - total) > total * PHASE_TOLERANCE:
        warnings.append("Sleep phases do not add up to total sleep time")
    return ValidationResult(valid=True, warnings=warnings)


def validate_sleep_data(data: Any) -> ValidationResult:
    """Full validation. Every missing required field is reported at once."""
    required = validate_required_fields(data)
    errors = list(required.errors)
    warnings: list[str] = []
    if required.valid:
        errors += validate_durations(data).errors
        errors += validate_time_span(data).errors
        warnings += validate_phase_consistency(data).warnings
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
