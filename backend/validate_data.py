"""Clearly Politics — Snapshot Validation

Checks data/processed/latest.json before it is published: required
sections, value types, plausible ranges, freshness and cross-field
consistency. Problems are collected as errors (publish blockers) or
warnings, and a report is written to data/validation-report.json.

Usage:
    python validate_data.py                     # Validate latest.json
    python validate_data.py --path snapshot.json

Exit code is 1 when any error was found.
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from config import (
    LATEST_PATH, VALIDATION_REPORT_PATH,
    VALIDATION_REQUIRED_FIELDS, VALIDATION_NUMERIC_RANGES, VALIDATION_MAX_AGE_SECONDS,
)

logger = logging.getLogger("clearly.validate")

_TYPE_CHECKS = [
    ("gunViolenceByPolitics.red.incidents", "number"),
    ("gunViolenceByPolitics.blue.incidents", "number"),
    ("gunViolenceByPolitics.red.rate", "number"),
    ("gunViolenceByPolitics.blue.rate", "number"),
    ("politicalViolenceBreakdown.rightWingExtremism", "number"),
    ("politicalViolenceBreakdown.leftWingExtremism", "number"),
    ("metadata.processedAt", "string"),
]

# Red/blue rate ratio above this suggests a scraping or join error
MAX_RATE_RATIO = 10
# Tolerated gap between summed state incidents and the reported total
STATE_SUM_TOLERANCE = 100


def get_nested_value(obj: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts; None when any key is missing."""
    current = obj
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


class DataValidator:
    def __init__(self, max_age_seconds: int = VALIDATION_MAX_AGE_SECONDS):
        self.max_age_seconds = max_age_seconds
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def validate(self, data: dict, now: Optional[datetime] = None) -> bool:
        """Run every check. Returns True when no errors were recorded."""
        self.validate_structure(data)
        self.validate_data_types(data)
        self.validate_ranges(data)
        self.validate_freshness(data, now)
        self.validate_consistency(data)
        self.validate_state_sums(data)
        return not self.errors

    def validate_structure(self, data: dict):
        for field in VALIDATION_REQUIRED_FIELDS:
            if not get_nested_value(data, field):
                self.errors.append(f"Missing required field: {field}")

    def validate_data_types(self, data: dict):
        for path, expected in _TYPE_CHECKS:
            value = get_nested_value(data, path)
            if value is None:
                continue
            actual = _type_name(value)
            if actual != expected:
                self.errors.append(f"{path} should be {expected}, got {actual}")

    def validate_ranges(self, data: dict):
        for path, (lo, hi) in VALIDATION_NUMERIC_RANGES.items():
            value = get_nested_value(data, path)
            if _type_name(value) != "number":
                continue
            if value < lo or value > hi:
                self.warnings.append(f"{path} ({value}) outside expected range [{lo}, {hi}]")

    def validate_freshness(self, data: dict, now: Optional[datetime] = None):
        processed_at = get_nested_value(data, "metadata.processedAt")
        if not processed_at:
            self.errors.append("Missing processedAt timestamp")
            return
        try:
            processed = datetime.fromisoformat(str(processed_at).replace("Z", "+00:00"))
        except ValueError:
            self.errors.append("Invalid processedAt timestamp format")
            return
        if processed.tzinfo is None:
            processed = processed.replace(tzinfo=timezone.utc)

        age = ((now or datetime.now(timezone.utc)) - processed).total_seconds()
        if age > self.max_age_seconds:
            self.warnings.append(f"Data is {round(age / 86400)} days old")

    def validate_consistency(self, data: dict):
        red_rate = get_nested_value(data, "gunViolenceByPolitics.red.rate")
        blue_rate = get_nested_value(data, "gunViolenceByPolitics.blue.rate")
        if _type_name(red_rate) == _type_name(blue_rate) == "number" and red_rate and blue_rate:
            ratio = max(red_rate, blue_rate) / min(red_rate, blue_rate)
            if ratio > MAX_RATE_RATIO:
                self.warnings.append(
                    f"Large rate difference between red ({red_rate}) and blue ({blue_rate}) states"
                )

        right = get_nested_value(data, "politicalViolenceBreakdown.rightWingExtremism")
        left = get_nested_value(data, "politicalViolenceBreakdown.leftWingExtremism")
        if _type_name(right) == _type_name(left) == "number" and right + left == 0:
            self.errors.append("No political violence incidents recorded")

    def validate_state_sums(self, data: dict):
        states = get_nested_value(data, "gunViolenceSummary.stateBreakdown")
        expected = get_nested_value(data, "gunViolenceSummary.totalIncidents")
        if not isinstance(states, list) or _type_name(expected) != "number" or not expected:
            return
        # GVA only ranks the top states, so the sum may fall short but never exceed
        total = sum(
            s["incidents"] for s in states
            if isinstance(s, dict) and _type_name(s.get("incidents")) == "number"
        )
        if total - expected > STATE_SUM_TOLERANCE:
            self.warnings.append(f"State totals ({total}) exceed expected total ({expected})")

    def report(self) -> dict:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "status": "failed" if self.errors else "passed",
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def load_snapshot(path: Path) -> dict:
    with open(path) as f:
        return json.load(f)


def save_report(report: dict, path: Path = VALIDATION_REPORT_PATH) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(report, f, indent=2)
    return path


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate the processed dashboard snapshot")
    parser.add_argument("--path", type=Path, default=LATEST_PATH, help="Snapshot to validate")
    parser.add_argument("--report", type=Path, default=VALIDATION_REPORT_PATH, help="Where to write the report")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    validator = DataValidator()

    try:
        data = load_snapshot(args.path)
    except (OSError, json.JSONDecodeError) as e:
        validator.errors.append(f"Failed to load data: {e}")
    else:
        validator.validate(data)

    report = validator.report()
    save_report(report, args.report)

    for i, error in enumerate(validator.errors, 1):
        logger.error(f"{i}. {error}")
    for i, warning in enumerate(validator.warnings, 1):
        logger.warning(f"{i}. {warning}")

    if validator.errors:
        logger.error("Validation failed with errors")
        return 1
    if validator.warnings:
        logger.warning("Validation completed with warnings")
    else:
        logger.info("Validation passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
